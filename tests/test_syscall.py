from ossim.common import Pcb, SyscallRegs
from ossim.memphy import MemPhy
from ossim.mm import init_mm
from ossim.sysmem import MemOp
from ossim.syscall import (
    libsyscall,
    sys_listsyscall,
    sys_ni_syscall,
    syscall,
    syscall_names,
)


def _proc():
    return Pcb(pid=1, mm=init_mm(), mram=MemPhy(2048), active_mswp=MemPhy(2048))


def test_names_include_memmap():
    assert "17-sys_memmap" in syscall_names()


def test_names_have_number_dash_name_form():
    for entry in syscall_names():
        number, name = entry.split("-", 1)
        assert number.isdigit()
        assert name.startswith("sys_")


def test_listsyscall_prints_table(capsys):
    assert sys_listsyscall(_proc(), SyscallRegs()) == 0
    assert capsys.readouterr().out.splitlines() == syscall_names()


def test_ni_syscall_leaves_registers():
    regs = SyscallRegs(a1=1, a2=2, a3=3)
    assert sys_ni_syscall(_proc(), regs) == 0
    assert (regs.a1, regs.a2, regs.a3) == (1, 2, 3)


def test_memmap_write_then_read_through_dispatch():
    proc = _proc()
    syscall(proc, 17, SyscallRegs(a1=MemOp.IO_WRITE, a2=40, a3=9))
    regs = SyscallRegs(a1=MemOp.IO_READ, a2=40)
    assert syscall(proc, 17, regs) == 0
    assert regs.a3 == 9


def test_unknown_number_changes_nothing():
    proc = _proc()
    regs = SyscallRegs(a1=MemOp.IO_WRITE, a2=40, a3=9)
    assert syscall(proc, 5555, regs) == 0
    assert proc.mram.read(40) == 0


def test_libsyscall_passes_arguments():
    proc = _proc()
    assert libsyscall(proc, 17, MemOp.IO_WRITE, 100, 42) == 0
    assert proc.mram.read(100) == 42