"""
Executable image inspection.

This module reads just enough of a PE or ELF header to tell which processor
architecture an executable was built for.
"""

import logging
import struct
from pathlib import Path
from typing import BinaryIO, Union

from ..models.runtime import SUPPORTED_ARCHITECTURES, Architecture
from ..validation import UnsupportedArchitectureError

logger = logging.getLogger(__name__)

# IMAGE_FILE_HEADER.Machine values
PE_MACHINE_TYPES = {
    0x014C: Architecture.X86,
    0x8664: Architecture.AMD64,
    0x01C0: Architecture.ARM,
    0x01C2: Architecture.ARM,
    0x01C4: Architecture.ARM,
    0xAA64: Architecture.ARM64,
    0x0200: Architecture.IA64,
}

# Elf32_Ehdr/Elf64_Ehdr e_machine values
ELF_MACHINE_TYPES = {
    3: Architecture.X86,
    62: Architecture.AMD64,
    40: Architecture.ARM,
    183: Architecture.ARM64,
    50: Architecture.IA64,
}

_PE_LFANEW_OFFSET = 0x3C
_ELF_DATA_OFFSET = 5
_ELF_MACHINE_OFFSET = 18


def _read_at(f: BinaryIO, offset: int, size: int) -> bytes:
    f.seek(offset)
    data = f.read(size)
    if len(data) != size:
        raise EOFError(f"short read at offset {offset}")
    return data


def _pe_machine(f: BinaryIO) -> Architecture:
    (pe_offset,) = struct.unpack("<I", _read_at(f, _PE_LFANEW_OFFSET, 4))
    if _read_at(f, pe_offset, 4) != b"PE\0\0":
        return Architecture.UNKNOWN
    (machine,) = struct.unpack("<H", _read_at(f, pe_offset + 4, 2))
    return PE_MACHINE_TYPES.get(machine, Architecture.UNKNOWN)


def _elf_machine(f: BinaryIO) -> Architecture:
    ei_data = _read_at(f, _ELF_DATA_OFFSET, 1)[0]
    if ei_data == 1:
        fmt = "<H"
    elif ei_data == 2:
        fmt = ">H"
    else:
        return Architecture.UNKNOWN
    (machine,) = struct.unpack(fmt, _read_at(f, _ELF_MACHINE_OFFSET, 2))
    return ELF_MACHINE_TYPES.get(machine, Architecture.UNKNOWN)


def detect_architecture(path: Union[str, Path]) -> Architecture:
    """Return the architecture recorded in an executable's header.

    Unreadable, truncated and unrecognised files all map to
    ``Architecture.UNKNOWN``; this function never raises for bad input.

    Args:
        path: Path to a PE (.exe) or ELF executable.

    Returns:
        The detected Architecture.
    """
    try:
        with open(path, "rb") as f:
            magic = f.read(4)
            if magic[:2] == b"MZ":
                return _pe_machine(f)
            if magic == b"\x7fELF":
                return _elf_machine(f)
            return Architecture.UNKNOWN
    except (OSError, EOFError, struct.error) as e:
        logger.debug(f"Could not read executable header of {path}: {e}")
        return Architecture.UNKNOWN


def probe_architecture(path: Union[str, Path]) -> Architecture:
    """Return the architecture of ``path`` if it can be profiled.

    Raises:
        UnsupportedArchitectureError: For anything other than x86 or amd64,
            including files whose header cannot be read.
    """
    arch = detect_architecture(path)
    if arch not in SUPPORTED_ARCHITECTURES:
        logger.error(f"Executable {path} has unsupported architecture '{arch.value}'")
        raise UnsupportedArchitectureError(arch, path=str(path))
    logger.debug(f"Executable {path} is {arch.value}")
    return arch
