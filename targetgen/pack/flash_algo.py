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

import os
import struct
import logging
import itertools
from pathlib import PurePosixPath
from typing import (IO, Dict, Iterator, List, Optional, Sequence, Set, Tuple)

from ..core import exceptions
from ..core.family import (FlashAlgorithm, FlashGeometry, FunctionTable, SectorInfo)
from ..core.memory_map import MemoryRange
from ..elf.elf import (ELFBinaryFile, ELFSection)
from ..utility.mask import align_up

LOG = logging.getLogger(__name__)

RoRwZiType = Tuple[Optional[ELFSection], Optional[ELFSection], Optional[MemoryRange]]

def algo_name_from_file(file_name: str) -> str:
    """@brief Normalised algorithm name for an FLM path: the lowercased file stem.

    Both forward and back slashes are accepted as path separators.
    """
    return PurePosixPath(file_name.replace('\\', '/')).stem.lower()

class PackFlashAlgo:
    """@brief Class to wrap a flash algo

    This class is intended to provide easy access to the information
    provided by a flash algorithm, such as symbols and the flash
    algorithm itself.

    The code blob is the contents of the PrgCode section followed by the PrgData section. It
    is position independent and is executed in place from wherever it is copied to in RAM; the
    zero-initialised part of PrgData follows it in RAM but is not part of the blob.

    @sa PackFlashInfo
    """

    REQUIRED_SYMBOLS = {
        "Init",
        "UnInit",
        "EraseSector",
        "ProgramPage",
        }

    EXTRA_SYMBOLS = {
        "BlankCheck",
        "EraseChip",
        "Verify",
        }

    SECTIONS_TO_FIND = (
        ("PrgCode", "SHT_PROGBITS"),
        ("PrgData", "SHT_PROGBITS"),
        ("PrgData", "SHT_NOBITS"),
        )

    ## @brief Size of the breakpoint header that the loader places in front of the blob.
    #
    # The header is `bkpt #0; b .-2`. Before running a flash algo operation LR is set to the
    # address of the `bkpt`, so when the operation function returns it will halt the CPU.
    _FLASH_BLOB_HEADER_SIZE = 4

    # Minimum size that must be allocated for the flash algo stack.
    _MIN_STACK_SIZE = 512

    # Alignment for page buffers.
    _PAGE_BUFFER_ALIGN = 16

    def __init__(self, data: IO[bytes]) -> None:
        """@brief Construct a PackFlashAlgo from a file-like object.

        @exception InvalidImageError The data is not a usable ELF file.
        @exception MissingSectionError PrgCode or PrgData is missing.
        @exception MissingDescriptorError The FlashDevice symbol is missing.
        @exception MissingSymbolError A required entry point is missing.
        @exception InconsistentGeometryError The sector table does not cover the flash.
        """
        self.elf = ELFBinaryFile(data)

        ro_rw_zi = self._find_sections(self.SECTIONS_TO_FIND)
        ro_rw_zi = self._algo_fill_zi_if_missing(ro_rw_zi)
        self._algo_check_for_section_problems(ro_rw_zi)

        sect_ro, sect_rw, sect_zi = ro_rw_zi
        assert sect_ro and sect_rw and sect_zi
        self.ro_start = sect_ro.start
        self.ro_size = sect_ro.length
        self.rw_start = sect_rw.start
        self.rw_size = sect_rw.length
        self.zi_start = sect_zi.start
        self.zi_size = sect_zi.length

        self.flash_info = PackFlashInfo(self.elf)

        self.page_size = self.flash_info.page_size

        symbols: Dict[str, Optional[int]] = {}
        symbols.update(self._extract_symbols(self.REQUIRED_SYMBOLS))
        symbols.update(self._extract_symbols(self.EXTRA_SYMBOLS, required=False))
        self.symbols = symbols

        self.algo_data = self._create_algo_bin(sect_ro, sect_rw)
        self._check_entry_points()

    @property
    def ram_usage(self) -> int:
        """@brief Bytes of RAM needed to run the algo.

        Memory layout, from high to low addresses:
        ```
        [<--stack] [page buffer] [header, code, data, zero-init]
        ```
        """
        image_size = self._FLASH_BLOB_HEADER_SIZE + len(self.algo_data) + self.zi_size
        return align_up(image_size, self._PAGE_BUFFER_ALIGN) + self.page_size + self._MIN_STACK_SIZE

    @property
    def function_table(self) -> FunctionTable:
        s = self.symbols
        return FunctionTable(
            init=s["Init"],
            uninit=s["UnInit"],
            erase_sector=s["EraseSector"],
            program_page=s["ProgramPage"],
            erase_chip=s["EraseChip"],
            verify=s["Verify"],
            blank_check=s["BlankCheck"],
            )

    @property
    def geometry(self) -> FlashGeometry:
        i = self.flash_info
        return FlashGeometry(
            start=i.start,
            size=i.size,
            page_size=i.page_size,
            sectors=tuple(SectorInfo(address=start, size=size) for start, size in i.sector_info_list),
            program_page_timeout=i.prog_timeout_ms,
            erase_sector_timeout=i.erase_timeout_ms,
            erased_byte_value=i.value_empty,
            version=i.version,
            device_type=i.type,
            )

    def to_flash_algorithm(self, name: str, is_default: bool) -> FlashAlgorithm:
        """@brief Build the normalised record for this algo."""
        return FlashAlgorithm(
            name=name,
            description=self.flash_info.name.decode('ascii', errors='replace'),
            is_default=is_default,
            code_blob=bytes(self.algo_data),
            data_section_offset=self.rw_start - self.ro_start,
            ram_usage=self.ram_usage,
            function_table=self.function_table,
            geometry=self.geometry,
            )

    def _extract_symbols(self, symbols: Set[str], required: bool = True) -> Dict[str, Optional[int]]:
        """@brief Look up the addresses of flash algo entry points."""
        to_ret: Dict[str, Optional[int]] = {}
        for symbol in sorted(symbols):
            symbolInfo = self.elf.symbol_decoder.get_symbol_for_name(symbol)
            if symbolInfo is None:
                if not required:
                    to_ret[symbol] = None
                    continue
                raise exceptions.MissingSymbolError("missing symbol %s" % symbol)
            to_ret[symbol] = symbolInfo.address
        return to_ret

    def _find_sections(self, name_type_pairs: Sequence[Tuple[str, str]]) -> Tuple[Optional[ELFSection], ...]:
        """@brief Return a list of sections the same length and order of the input list"""
        sections: List[Optional[ELFSection]] = [None] * len(name_type_pairs)
        for section in self.elf.sections:
            for i, name_and_type in enumerate(name_type_pairs):
                if name_and_type != (section.name, section.type):
                    continue
                if sections[i] is not None:
                    raise exceptions.InvalidImageError("ELF contains duplicate section %s attr %s" %
                                    (section.name, section.type))
                sections[i] = section
        return tuple(sections)

    def _algo_fill_zi_if_missing(self, ro_rw_zi: RoRwZiType) -> RoRwZiType:
        """@brief Create an empty zi section if it is missing"""
        s_ro, s_rw, s_zi = ro_rw_zi
        if s_rw is None:
            return ro_rw_zi
        if s_zi is not None:
            return ro_rw_zi
        s_zi = MemoryRange(start=s_rw.end, length=0)
        return s_ro, s_rw, s_zi

    def _algo_check_for_section_problems(self, ro_rw_zi: RoRwZiType) -> None:
        """@brief Raise an ExtractionError describing any problems with the section layout."""
        s_ro, s_rw, s_zi = ro_rw_zi
        if s_ro is None:
            raise exceptions.MissingSectionError("PrgCode section is missing")
        if s_rw is None:
            raise exceptions.MissingSectionError("PrgData section is missing")
        assert s_zi is not None
        if s_ro.start != 0:
            raise exceptions.InvalidImageError("PrgCode section does not start at address 0")
        if s_ro.end != s_rw.start:
            raise exceptions.InvalidImageError("PrgData section does not follow PrgCode section")
        if s_rw.end != s_zi.start:
            raise exceptions.InvalidImageError("zero-init PrgData does not follow initialised PrgData")

    def _create_algo_bin(self, sect_ro: ELFSection, sect_rw: ELFSection) -> bytes:
        """@brief Concatenate the code and initialised data sections."""
        for section in (sect_ro, sect_rw):
            if len(section.data) != section.length:
                raise exceptions.InvalidImageError("section %s is truncated" % section.name)
        return sect_ro.data + sect_rw.data

    def _check_entry_points(self) -> None:
        blob_length = len(self.algo_data)
        for name, address in sorted(self.symbols.items()):
            if address is None:
                continue
            offset = address - self.ro_start
            if not (0 <= offset < blob_length):
                raise exceptions.InvalidImageError("entry point %s at 0x%x lies outside the code blob "
                    "(0x%x bytes)" % (name, address, blob_length))

class PackFlashInfo:
    """@brief Wrapper class for the non-executable information in an FLM file"""

    FLASH_DEVICE_STRUCT = "<H128sHLLLLBxxxLL"
    FLASH_DEVICE_STRUCT_SIZE = struct.calcsize(FLASH_DEVICE_STRUCT)
    FLASH_SECTORS_STRUCT = "<LL"
    FLASH_SECTORS_STRUCT_SIZE = struct.calcsize(FLASH_SECTORS_STRUCT)
    SECTOR_END = 0xFFFFFFFF

    ## Sanity limit on the number of sector table entries read before the end marker.
    MAX_SECTOR_ENTRIES = 512

    def __init__(self, elf: ELFBinaryFile) -> None:
        dev_info = elf.symbol_decoder.get_symbol_for_name("FlashDevice")
        if dev_info is None:
            raise exceptions.MissingDescriptorError("missing FlashDevice symbol")

        info_start = dev_info.address
        data = elf.read(info_start, self.FLASH_DEVICE_STRUCT_SIZE)
        if data is None or len(data) != self.FLASH_DEVICE_STRUCT_SIZE:
            raise exceptions.InvalidImageError("FlashDevice structure at 0x%x is truncated" % info_start)
        values = struct.unpack(self.FLASH_DEVICE_STRUCT, data)

        self.version: int = values[0]
        self.name: bytes = values[1].split(b"\x00", 1)[0]
        self.type: int = values[2]
        self.start: int = values[3]
        self.size: int = values[4]
        self.page_size: int = values[5]
        self.value_empty: int = values[7]
        self.prog_timeout_ms: int = values[8]
        self.erase_timeout_ms: int = values[9]

        sector_gen = self._sector_and_sz_itr(elf, info_start + self.FLASH_DEVICE_STRUCT_SIZE)
        self.sector_info_list: List[Tuple[int, int]] = list(sector_gen)
        self._check_geometry()

    def __str__(self):
        desc =  "Flash Device:" + os.linesep
        desc += "  name=%s" % self.name + os.linesep
        desc += "  version=0x%x" % self.version + os.linesep
        desc += "  type=%i" % self.type + os.linesep
        desc += "  start=0x%x" % self.start + os.linesep
        desc += "  size=0x%x" % self.size + os.linesep
        desc += "  page_size=0x%x" % self.page_size + os.linesep
        desc += "  value_empty=0x%x" % self.value_empty + os.linesep
        desc += "  prog_timeout_ms=%i" % self.prog_timeout_ms + os.linesep
        desc += "  erase_timeout_ms=%i" % self.erase_timeout_ms + os.linesep
        desc += "  sectors:" + os.linesep
        for sector_start, sector_size in self.sector_info_list:
            desc += ("    start=0x%x, size=0x%x" %
                     (sector_start, sector_size) + os.linesep)
        return desc

    def _sector_and_sz_itr(self, elf: ELFBinaryFile, data_start: int) -> Iterator[Tuple[int, int]]:
        """@brief Iterator which returns starting offset and sector size"""
        entries = itertools.count(data_start, self.FLASH_SECTORS_STRUCT_SIZE)
        for entry_start in itertools.islice(entries, self.MAX_SECTOR_ENTRIES):
            data = elf.read(entry_start, self.FLASH_SECTORS_STRUCT_SIZE)
            if data is None or len(data) != self.FLASH_SECTORS_STRUCT_SIZE:
                raise exceptions.InconsistentGeometryError("sector table ends at 0x%x without an end "
                    "marker" % entry_start)
            size, start = struct.unpack(self.FLASH_SECTORS_STRUCT, data)
            if (start, size) == (self.SECTOR_END, self.SECTOR_END):
                return
            yield start, size
        raise exceptions.InconsistentGeometryError("sector table has no end marker")

    def _check_geometry(self) -> None:
        """@brief Verify that the sector table tiles the flash with whole sectors."""
        if self.size == 0:
            raise exceptions.InconsistentGeometryError("flash size is zero")
        if not self.sector_info_list:
            raise exceptions.InconsistentGeometryError("sector table is empty")
        if self.sector_info_list[0][0] != 0:
            raise exceptions.InconsistentGeometryError("sector table starts at offset 0x%x instead of 0"
                % self.sector_info_list[0][0])

        total = 0
        for j, (start, sector_size) in enumerate(self.sector_info_list):
            if j + 1 < len(self.sector_info_list):
                end = self.sector_info_list[j + 1][0]
            else:
                end = self.size
            if sector_size == 0 or end <= start:
                raise exceptions.InconsistentGeometryError("invalid sector table entry at offset 0x%x" % start)
            if (end - start) % sector_size:
                raise exceptions.InconsistentGeometryError("sector table tier at offset 0x%x does not hold "
                    "a whole number of 0x%x byte sectors" % (start, sector_size))
            total += (end - start) // sector_size * sector_size

        if total != self.size:
            raise exceptions.InconsistentGeometryError("sectors cover 0x%x bytes but flash size is 0x%x"
                % (total, self.size))

def extract_flash_algo(
            data: IO[bytes],
            file_name: str,
            is_default: bool,
            log_info: bool = False,
        ) -> FlashAlgorithm:
    """@brief Decode one FLM image into a normalised FlashAlgorithm record.

    @param data File-like object containing the FLM.
    @param file_name Path of the FLM within its pack. The algorithm name is derived from it.
    @param is_default Value of the `default` attribute of the referencing algorithm element.
    @param log_info Log the decoded FlashDevice structure at debug level.
    @exception ExtractionError The image could not be decoded. The exception's `file_name`
        attribute is set to _file_name_.
    """
    try:
        algo = PackFlashAlgo(data)
    except exceptions.ExtractionError as err:
        err.file_name = file_name
        raise

    if log_info:
        LOG.debug("%s: %s", file_name, algo.flash_info)

    return algo.to_flash_algorithm(algo_name_from_file(file_name), is_default)
