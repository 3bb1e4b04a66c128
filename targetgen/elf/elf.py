# targetgen
# Copyright (c) 2026 targetgen developers
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import io
import logging
import zlib
from typing import (IO, List, Optional)
from elftools.common.exceptions import ELFError
from elftools.elf.constants import SH_FLAGS
from elftools.elf.elffile import ELFFile
from intervaltree import IntervalTree

from ..core import exceptions
from ..core.memory_map import MemoryRange
from .decoder import ElfSymbolDecoder

LOG = logging.getLogger(__name__)

class ELFSection(MemoryRange):
    """@brief Memory range for a section of an ELF file.

    The contents of the ELF section can be read via the `data` property. The data is read from
    the file only once and cached. Sections of type `SHT_NOBITS` have no data.
    """

    def __init__(self, sect) -> None:
        self._section = sect
        self._name: str = sect.name
        self._data: Optional[bytes] = None
        super().__init__(start=sect['sh_addr'], length=sect['sh_size'])

    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> str:
        return self._section['sh_type']

    @property
    def flags(self) -> int:
        return self._section['sh_flags']

    @property
    def data(self) -> bytes:
        if self._data is None:
            if self.type == 'SHT_NOBITS':
                self._data = b""
            else:
                try:
                    self._data = bytes(self._section.data())
                except (ELFError, ValueError, EOFError, zlib.error) as err:
                    raise exceptions.InvalidImageError("section %s cannot be read (%s)"
                            % (self.name, err)) from err
        return self._data

    @property
    def flags_description(self) -> str:
        flags = self.flags
        names = []
        if flags & SH_FLAGS.SHF_WRITE:
            names.append("WRITE")
        if flags & SH_FLAGS.SHF_ALLOC:
            names.append("ALLOC")
        if flags & SH_FLAGS.SHF_EXECINSTR:
            names.append("EXECINSTR")
        return "|".join(names)

    def __eq__(self, other):
        if not isinstance(other, ELFSection):
            return NotImplemented
        # Include section name in equality test.
        return super().__eq__(other) and self.name == other.name

    def __hash__(self):
        return hash((self.start, self.end, self.name))

    def __repr__(self):
        return "<ELFSection@0x{0:x} {1} {2} {3} {4} {5}>".format(
            id(self), self.name, self.type, self.flags_description, hex(self.start), hex(self.length))

class ELFBinaryFile:
    """@brief An ELF object file, as found inside an FLM.

    The constructor parses the ELF header and section table immediately so that malformed input
    is rejected up front with InvalidImageError.

    An ELFSection object is created for each of the sections of the file that are loadable code or
    data, or otherwise occupy memory. More specifically, the list of sections contains any section
    with a type of `SHT_PROGBITS` or `SHT_NOBITS` that has at least one of the `SHF_WRITE`,
    `SHF_ALLOC`, or `SHF_EXECINSTR` flags set.
    """

    def __init__(self, elf: IO[bytes]) -> None:
        # pyelftools seeks around the file, so make sure we have a seekable stream.
        if not (hasattr(elf, 'seekable') and elf.seekable()):
            elf = io.BytesIO(elf.read())
        self._file = elf

        try:
            self._elf = ELFFile(self._file)
            self._extract_sections()
        except (ELFError, ValueError, EOFError) as err:
            raise exceptions.InvalidImageError("not a valid ELF file (%s)" % err) from err

        self._symbol_decoder: Optional[ElfSymbolDecoder] = None

    def _extract_sections(self) -> None:
        """@brief Get list of interesting sections."""
        self._sections: List[ELFSection] = []
        for s in self._elf.iter_sections():
            # Skip sections not of these types.
            if s['sh_type'] not in ('SHT_PROGBITS', 'SHT_NOBITS'):
                continue

            # Skip sections that don't have one of these flags set.
            if s['sh_flags'] & (SH_FLAGS.SHF_WRITE | SH_FLAGS.SHF_ALLOC | SH_FLAGS.SHF_EXECINSTR) == 0:
                continue

            self._sections.append(ELFSection(s))
        self._sections.sort(key=lambda x: x.start)

        self._section_tree = IntervalTree()
        for sect in self._sections:
            if sect.type == 'SHT_PROGBITS' and not sect.is_empty:
                self._section_tree.addi(sect.start, sect.end, sect)

    def read(self, addr: int, size: int) -> Optional[bytes]:
        """@brief Read program data from the elf file.

        Segments are searched first, by load address. Relocatable objects have no segments, so
        the section contents are used as a fallback.

        @param addr Address to read from.
        @param size Number of bytes to read.
        @return Requested data or None if the range is not fully contained in one segment or section.
        """
        try:
            for segment in self._elf.iter_segments():
                seg_addr = segment["p_paddr"]
                seg_size = min(segment["p_memsz"], segment["p_filesz"])
                if addr >= seg_addr and addr + size <= seg_addr + seg_size:
                    start = addr - seg_addr
                    return bytes(segment.data()[start:start + size])
        except (ELFError, ValueError, EOFError) as err:
            raise exceptions.InvalidImageError("invalid program header table (%s)" % err) from err

        for interval in self._section_tree[addr]:
            sect = interval.data
            if sect.contains_range(MemoryRange(addr, length=size)):
                start = addr - sect.start
                return sect.data[start:start + size]
        return None

    @property
    def sections(self) -> List[ELFSection]:
        """@brief Access the list of sections in the ELF file.
        @return A list of ELFSection objects sorted by start address.
        """
        return self._sections

    @property
    def symbol_decoder(self) -> ElfSymbolDecoder:
        if self._symbol_decoder is None:
            try:
                self._symbol_decoder = ElfSymbolDecoder(self._elf)
            except (ELFError, ValueError) as err:
                raise exceptions.InvalidImageError("invalid symbol table (%s)" % err) from err
        return self._symbol_decoder
