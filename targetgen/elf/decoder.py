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

import logging
from typing import (Dict, NamedTuple, Optional)
from elftools.elf.elffile import ELFFile
from elftools.elf.sections import SymbolTableSection

LOG = logging.getLogger(__name__)

class SymbolInfo(NamedTuple):
    name: str
    address: int
    size: int
    type: str

class ElfSymbolDecoder:
    """@brief Name lookup of the function and object symbols of an ELF file.

    An ELF without a `.symtab` section simply has no symbols.
    """

    def __init__(self, elf: ELFFile) -> None:
        assert isinstance(elf, ELFFile)
        self.elffile = elf

        self.symtab = self.elffile.get_section_by_name('.symtab')
        self.symbol_dict: Dict[str, SymbolInfo] = {}

        if isinstance(self.symtab, SymbolTableSection):
            self._build_symbol_dict()
        else:
            LOG.debug("ELF file has no symbol table")

    def get_symbol_for_name(self, name: str) -> Optional[SymbolInfo]:
        return self.symbol_dict.get(name)

    def _build_symbol_dict(self) -> None:
        for symbol in self.symtab.iter_symbols():
            # Only look for functions and objects.
            sym_type = symbol.entry['st_info']['type']
            if sym_type not in ('STT_FUNC', 'STT_OBJECT'):
                continue

            # The first definition of a name wins; local duplicates are common in FLMs.
            if symbol.name not in self.symbol_dict:
                self.symbol_dict[symbol.name] = SymbolInfo(name=symbol.name,
                    address=symbol.entry['st_value'], size=symbol.entry['st_size'], type=sym_type)
