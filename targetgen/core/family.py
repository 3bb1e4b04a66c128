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

from dataclasses import (dataclass, field)
import logging
from typing import (Dict, Iterator, List, Optional, Tuple)

from .memory_map import (MemoryRange, MemoryRegion)

LOG = logging.getLogger(__name__)

@dataclass(frozen=True)
class SectorInfo:
    """@brief One tier of a flash sector table.

    `address` is the offset of the first sector of this tier from the start of the flash.
    """
    address: int
    size: int

@dataclass(frozen=True)
class FlashGeometry:
    """@brief Flash device properties decoded from an FLM's FlashDevice structure."""
    ## Absolute start address of the flash covered by the algorithm.
    start: int
    ## Total size in bytes.
    size: int
    page_size: int
    sectors: Tuple[SectorInfo, ...]
    ## Timeouts in milliseconds.
    program_page_timeout: int
    erase_sector_timeout: int
    erased_byte_value: int = 0xff
    version: int = 0
    device_type: int = 0

    @property
    def address_range(self) -> MemoryRange:
        return MemoryRange(self.start, length=self.size)

    def sector_size_at(self, offset: int) -> int:
        """@brief Return the sector size of the tier containing the given offset from the flash start."""
        size = self.sectors[0].size if self.sectors else 0
        for sector in self.sectors:
            if sector.address > offset:
                break
            size = sector.size
        return size

@dataclass(frozen=True)
class FunctionTable:
    """@brief Entry point offsets relative to the start of the algorithm's code blob.

    The Thumb bit is preserved in each offset, as it appears in the ELF symbol table. Optional
    entry points are None when the algorithm does not provide them.
    """
    init: int
    uninit: int
    erase_sector: int
    program_page: int
    erase_chip: Optional[int] = None
    verify: Optional[int] = None
    blank_check: Optional[int] = None

    def items(self) -> Iterator[Tuple[str, Optional[int]]]:
        yield 'init', self.init
        yield 'uninit', self.uninit
        yield 'erase_chip', self.erase_chip
        yield 'erase_sector', self.erase_sector
        yield 'program_page', self.program_page
        yield 'verify', self.verify
        yield 'blank_check', self.blank_check

@dataclass(frozen=True)
class FlashAlgorithm:
    """@brief Normalised flash algorithm record extracted from an FLM file."""
    ## Lowercased file stem, e.g. "stm32f4xx_1024" for "Flash/STM32F4xx_1024.FLM".
    name: str
    ## Device name from the FLM's FlashDevice structure.
    description: str
    is_default: bool
    ## PrgCode followed by PrgData, ready to be copied to RAM and executed in place.
    code_blob: bytes
    data_section_offset: int
    ## Bytes of RAM needed for the blob, zero-init data, stack and one page buffer.
    ram_usage: int
    function_table: FunctionTable
    geometry: FlashGeometry

@dataclass
class Chip:
    """@brief One concrete device variant within a chip family."""
    name: str
    memory_map: List[MemoryRegion] = field(default_factory=list)
    flash_algorithms: List[str] = field(default_factory=list)

class ChipFamily:
    """@brief Group of chips that share a set of flash algorithms.

    Algorithms are kept in insertion order and are unique by lowercased name. The first
    algorithm added under a given name is kept, later ones with the same name are discarded.
    Chips are likewise unique by name within the family.
    """

    def __init__(self, name: str, core: str = "", manufacturer: Optional[str] = None) -> None:
        self._name = name
        self._core = core
        self._manufacturer = manufacturer
        self._flash_algorithms: Dict[str, FlashAlgorithm] = {}
        self._variants: List[Chip] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def core(self) -> str:
        return self._core

    @property
    def manufacturer(self) -> Optional[str]:
        return self._manufacturer

    @property
    def flash_algorithms(self) -> List[FlashAlgorithm]:
        return list(self._flash_algorithms.values())

    @property
    def variants(self) -> List[Chip]:
        return list(self._variants)

    def get_algorithm(self, name: str) -> Optional[FlashAlgorithm]:
        return self._flash_algorithms.get(name.lower())

    def get_variant(self, name: str) -> Optional[Chip]:
        for chip in self._variants:
            if chip.name == name:
                return chip
        return None

    def add_algorithm(self, algo: FlashAlgorithm) -> bool:
        """@brief Add an algorithm unless one with the same lowercased name exists.
        @return Whether the algorithm was added.
        """
        key = algo.name.lower()
        if key in self._flash_algorithms:
            LOG.debug("family %s: keeping existing flash algorithm '%s'", self.name, key)
            return False
        self._flash_algorithms[key] = algo
        return True

    def add_variant(self, chip: Chip) -> bool:
        """@brief Append a chip to the variant list.
        @return Whether the chip was added. False if a chip with the same name is already present.
        """
        if self.get_variant(chip.name) is not None:
            LOG.warning("family %s already contains chip %s; ignoring duplicate", self.name, chip.name)
            return False
        self._variants.append(chip)
        return True

    def merge(self, other: "ChipFamily") -> None:
        """@brief Union another record for the same family into this one.

        Algorithms and chips that are already present are kept. An unset core type is filled in
        from _other_. Follow with sort_variants() if the result must not depend on merge order.

        @exception ValueError _other_ is a record for a different family.
        """
        if other.name != self.name:
            raise ValueError("cannot merge family %s into family %s" % (other.name, self.name))
        if not self._core:
            self._core = other.core
        if self._manufacturer is None:
            self._manufacturer = other.manufacturer
        for algo in other.flash_algorithms:
            self.add_algorithm(algo)
        for chip in other.variants:
            if self.get_variant(chip.name) is None:
                self._variants.append(chip)

    def sort_variants(self) -> None:
        self._variants.sort(key=lambda chip: chip.name)

    def __repr__(self) -> str:
        return "<%s@%x %s core=%s algos=%d variants=%d>" % (self.__class__.__name__, id(self),
            self.name, self.core, len(self._flash_algorithms), len(self._variants))

class FamilyRegistry:
    """@brief Mapping of family name to ChipFamily, in insertion order.

    A registry is created empty for each run and filled by a single DeviceAggregator.
    """

    def __init__(self) -> None:
        self._families: Dict[str, ChipFamily] = {}

    def get_or_create(self, name: str, core: str = "", manufacturer: Optional[str] = None) -> ChipFamily:
        """@brief Return the family with the given name, inserting a new one if absent."""
        family = self._families.get(name)
        if family is None:
            family = ChipFamily(name, core, manufacturer)
            self._families[name] = family
        return family

    def merge(self, other: "FamilyRegistry") -> None:
        """@brief Union all families of another registry into this one.

        Families new to this registry are copied, so _other_ can still be changed afterwards.
        """
        for family in other:
            self.get_or_create(family.name, family.core, family.manufacturer).merge(family)

    @property
    def families(self) -> List[ChipFamily]:
        return list(self._families.values())

    def __getitem__(self, name: str) -> ChipFamily:
        return self._families[name]

    def __contains__(self, name: object) -> bool:
        return name in self._families

    def __iter__(self) -> Iterator[ChipFamily]:
        return iter(list(self._families.values()))

    def __len__(self) -> int:
        return len(self._families)
