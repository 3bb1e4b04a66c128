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

from enum import Enum
from functools import total_ordering
from typing import (Any, Dict, Optional)

class MemoryType(Enum):
    """@brief Memory region kinds that appear in a chip's memory map."""
    RAM = 1
    FLASH = 2

@total_ordering
class MemoryRange:
    """@brief Half-open range of addresses, `[start, end)`.

    Unlike the inclusive ranges used while talking to a live target, ranges in a target definition
    are written out with an exclusive end, so that is how they are stored here.
    """
    def __init__(self, start: int = 0, end: Optional[int] = None, length: Optional[int] = None) -> None:
        assert (end is None) ^ (length is None)
        self._start = start
        if length is not None:
            self._end = start + length
        else:
            assert end is not None
            self._end = end
        assert self._end >= self._start

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._end

    @property
    def length(self) -> int:
        return self._end - self._start

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    def contains_address(self, address: int) -> bool:
        return self.start <= address < self.end

    def contains_range(self, other: "MemoryRange") -> bool:
        """@return Whether _other_ is fully contained by this range."""
        return self.start <= other.start and other.end <= self.end

    def intersects_range(self, other: "MemoryRange") -> bool:
        """@return Whether the two ranges share at least one address."""
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> Dict[str, int]:
        return {'start': self.start, 'end': self.end}

    def __hash__(self) -> int:
        return hash((self.start, self.end))

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, MemoryRange):
            return NotImplemented
        return self.start == other.start and self.end == other.end

    def __lt__(self, other: "MemoryRange") -> bool:
        return (self.start, self.end) < (other.start, other.end)

    def __repr__(self) -> str:
        return "<%s 0x%08x..0x%08x>" % (self.__class__.__name__, self.start, self.end)

class MemoryRegion:
    """@brief One region of a chip's memory map.

    Memory regions are immutable once created. Subclasses add the fields specific to their kind
    and set the class attribute `type`, which doubles as the tag used in output records.
    """

    type: MemoryType

    def __init__(self, range: MemoryRange, is_boot_memory: bool = False) -> None:
        self._range = range
        self._is_boot_memory = is_boot_memory

    @property
    def range(self) -> MemoryRange:
        return self._range

    @property
    def start(self) -> int:
        return self._range.start

    @property
    def end(self) -> int:
        return self._range.end

    @property
    def length(self) -> int:
        return self._range.length

    @property
    def is_boot_memory(self) -> bool:
        return self._is_boot_memory

    @property
    def is_ram(self) -> bool:
        return self.type is MemoryType.RAM

    @property
    def is_flash(self) -> bool:
        return self.type is MemoryType.FLASH

    def _attrs(self) -> Dict[str, Any]:
        return {
            'range': self.range.to_dict(),
            'is_boot_memory': self.is_boot_memory,
            }

    def to_dict(self) -> Dict[str, Any]:
        """@brief Tagged plain-data form, e.g. `{'Ram': {'range': {...}, 'is_boot_memory': False}}`."""
        return {self.type.name.capitalize(): self._attrs()}

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, MemoryRegion):
            return NotImplemented
        return self.type is other.type and self._attrs() == other._attrs()

    def __hash__(self) -> int:
        return hash((self.type, self.range, self.is_boot_memory))

    def __repr__(self) -> str:
        return "<%s 0x%08x..0x%08x boot=%s>" % (self.__class__.__name__, self.start, self.end,
            self.is_boot_memory)

class RamRegion(MemoryRegion):
    """@brief Contiguous region of RAM."""
    type = MemoryType.RAM

class FlashRegion(MemoryRegion):
    """@brief Contiguous region of flash memory.

    The page size, sector size and erased byte value are taken from the flash algorithm that
    programs the region. They are left at zero sizes when no algorithm could be extracted.
    """
    type = MemoryType.FLASH

    def __init__(
                self,
                range: MemoryRange,
                is_boot_memory: bool = False,
                page_size: int = 0,
                sector_size: int = 0,
                erased_byte_value: int = 0xff,
            ) -> None:
        super().__init__(range, is_boot_memory)
        self._page_size = page_size
        self._sector_size = sector_size
        self._erased_byte_value = erased_byte_value

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def sector_size(self) -> int:
        return self._sector_size

    @property
    def erased_byte_value(self) -> int:
        return self._erased_byte_value

    def _attrs(self) -> Dict[str, Any]:
        attrs = super()._attrs()
        attrs.update({
            'page_size': self.page_size,
            'sector_size': self.sector_size,
            'erased_byte_value': self.erased_byte_value,
            })
        return attrs
