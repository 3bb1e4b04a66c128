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

import pytest

from targetgen.core import exceptions
from targetgen.pack.pack_index import (PackRef, parse_pack_index)

from pack_builder import make_index

BASE = "https://keilpack.azureedge.net/pack/"

ENTRIES = """
    <pdsc url="https://example.com/packs/" vendor="A" name="One_DFP" version="1.0.0"/>
    <pdsc url="https://example.com/packs" vendor="B" name="Two_DFP" version="2.0.0"/>
    <pdsc url="relative/" vendor="C" name="Three_DFP" version="3.0.0"/>
    <pdsc url="https://example.com/packs/" vendor="D" name="Old_DFP" version="0.1.0" deprecated="2020-01-01"/>
    <pdsc vendor="E" name="NoUrl_DFP" version="1.2.3"/>
    <pdsc url="https://example.com/packs/" vendor="F" name="NoVersion_DFP"/>
"""

@pytest.fixture(scope='function')
def refs():
    return parse_pack_index(make_index(ENTRIES))

class TestParsePackIndex:
    def test_entries(self, refs):
        assert [r.identifier for r in refs] == [
            "A.One_DFP.1.0.0",
            "B.Two_DFP.2.0.0",
            "C.Three_DFP.3.0.0",
            "E.NoUrl_DFP.1.2.3",
            ]

    def test_fields(self, refs):
        assert refs[0] == PackRef("A", "One_DFP", "1.0.0", "https://example.com/packs/")

    def test_text_input(self):
        refs = parse_pack_index(make_index(ENTRIES).decode())
        assert len(refs) == 4

    def test_vendor_index_not_followed(self):
        text = make_index("").replace(b"</index>",
            b'<vindex><pidx url="https://vendor.example.com/" vendor="V" timestamp="x"/></vindex></index>')
        assert parse_pack_index(text) == []

    def test_malformed(self):
        with pytest.raises(exceptions.DescriptorError):
            parse_pack_index(b"<index><pindex>")

    def test_wrong_root(self):
        with pytest.raises(exceptions.DescriptorError):
            parse_pack_index(b"<package/>")

class TestPackRef:
    def test_file_name(self, refs):
        assert refs[0].file_name == "A.One_DFP.1.0.0.pack"

    def test_absolute_location(self, refs):
        assert refs[0].location(BASE) == "https://example.com/packs/A.One_DFP.1.0.0.pack"

    def test_absolute_location_without_slash(self, refs):
        assert refs[1].location(BASE) == "https://example.com/packs/B.Two_DFP.2.0.0.pack"

    def test_relative_location(self, refs):
        assert refs[2].location(BASE) == BASE + "relative/C.Three_DFP.3.0.0.pack"

    def test_empty_location(self, refs):
        assert refs[3].location(BASE) == BASE + "E.NoUrl_DFP.1.2.3.pack"

    def test_base_without_slash(self, refs):
        assert refs[3].location(BASE.rstrip('/')) == BASE + "E.NoUrl_DFP.1.2.3.pack"
