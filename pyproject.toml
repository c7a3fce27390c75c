[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "ossim"
version = "0.1.0"
description = "A small operating system simulator: multi-level queue scheduling, paged virtual memory with swapping, and system calls"
requires-python = ">=3.10"
dependencies = []
keywords = ["operating system", "simulator", "scheduler", "paging", "virtual memory", "education"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ossim = "ossim.simulator:main"

[tool.setuptools.packages.find]
include = ["ossim*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
