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
import pytest

from targetgen.core import exceptions
from targetgen.elf.elf import ELFBinaryFile

from flm_builder import (SHF_ALLOC, SHF_COMPRESSED, SHF_EXECINSTR, SHF_WRITE, SHT_NOBITS, SHT_PROGBITS,
    STT_FUNC, STT_OBJECT, Section, build_elf, build_flm)

@pytest.fixture(scope='function')
def elf():
    data = build_elf([
            Section("PrgCode", SHT_PROGBITS, SHF_ALLOC | SHF_EXECINSTR, 0, bytes(range(16))),
            Section("PrgData", SHT_PROGBITS, SHF_ALLOC | SHF_WRITE, 16, b"\xaa" * 8),
            Section("PrgData", SHT_NOBITS, SHF_ALLOC | SHF_WRITE, 24, size=32),
            Section(".comment", SHT_PROGBITS, 0, 0, b"not loaded"),
        ], [
            ("Init", 1, 4, STT_FUNC, "PrgCode"),
            ("Table", 16, 8, STT_OBJECT, "PrgData"),
        ])
    return ELFBinaryFile(io.BytesIO(data))

class TestELFBinaryFile:
    def test_sections(self, elf):
        assert [(s.name, s.type, s.start, s.length) for s in elf.sections] == [
            ("PrgCode", 'SHT_PROGBITS', 0, 16),
            ("PrgData", 'SHT_PROGBITS', 16, 8),
            ("PrgData", 'SHT_NOBITS', 24, 32),
            ]
        assert elf.sections[0].flags_description == "ALLOC|EXECINSTR"
        assert elf.sections[1].flags_description == "WRITE|ALLOC"

    def test_section_data(self, elf):
        assert elf.sections[0].data == bytes(range(16))
        assert elf.sections[2].data == b""

    def test_read(self, elf):
        assert elf.read(4, 4) == bytes([4, 5, 6, 7])
        assert elf.read(16, 8) == b"\xaa" * 8

    def test_read_across_sections(self, elf):
        assert elf.read(12, 8) is None

    def test_read_nobits(self, elf):
        assert elf.read(24, 4) is None

    def test_symbols(self, elf):
        init = elf.symbol_decoder.get_symbol_for_name("Init")
        assert (init.address, init.size, init.type) == (1, 4, 'STT_FUNC')
        assert elf.symbol_decoder.get_symbol_for_name("Table").type == 'STT_OBJECT'
        assert elf.symbol_decoder.get_symbol_for_name("Missing") is None

    def test_no_symtab(self):
        elf = ELFBinaryFile(io.BytesIO(build_elf([
            Section("PrgCode", SHT_PROGBITS, SHF_ALLOC | SHF_EXECINSTR, 0, b"\0" * 4)])))
        assert elf.symbol_decoder.get_symbol_for_name("Init") is None

    def test_flm(self, flm_data):
        elf = ELFBinaryFile(io.BytesIO(flm_data))
        assert [s.name for s in elf.sections] == ["PrgCode", "PrgData", "PrgData", "DevDscr"]

    @pytest.mark.parametrize("data", [b"", b"garbage", b"\x7fELF\x01\x01\x01", build_flm()[:60]])
    def test_invalid(self, data):
        with pytest.raises(exceptions.InvalidImageError):
            ELFBinaryFile(io.BytesIO(data))

    def test_unreadable_section(self):
        data = build_elf([
                Section("PrgCode", SHT_PROGBITS, SHF_ALLOC | SHF_EXECINSTR | SHF_COMPRESSED, 0, b"\x11" * 16),
            ])
        elf = ELFBinaryFile(io.BytesIO(data))
        with pytest.raises(exceptions.InvalidImageError):
            elf.sections[0].data
        with pytest.raises(exceptions.InvalidImageError):
            elf.read(0, 4)
