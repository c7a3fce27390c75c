"""Operating system simulator with MLQ scheduling, paged virtual memory with swapping, and system calls."""

__version__ = "0.1.0"