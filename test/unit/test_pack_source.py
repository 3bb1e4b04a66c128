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
import zipfile
import pytest

from targetgen.core import exceptions
from targetgen.pack.source import (
    ArchivePackSource,
    DirectoryPackSource,
    PackSource,
    sanitize_member_name,
    )

from pack_builder import (make_pack, make_pdsc, write_tree)

class TestSanitizeMemberName:
    @pytest.mark.parametrize(("name", "expected"), [
        ("Flash/Algo.FLM", "Flash/Algo.FLM"),
        ("Flash\\Algo.FLM", "Flash/Algo.FLM"),
        ("./Flash//Algo.FLM", "Flash/Algo.FLM"),
        ("a.pdsc", "a.pdsc"),
        ])
    def test_valid(self, name, expected):
        assert sanitize_member_name(name) == expected

    @pytest.mark.parametrize("name", [
        "/etc/passwd",
        "\\Windows\\x.FLM",
        "C:\\Keil\\x.FLM",
        "c:x.FLM",
        "../x.FLM",
        "Flash/../../x.FLM",
        "Flash\\..\\x.FLM",
        "",
        "./",
        ])
    def test_rejected(self, name):
        with pytest.raises(exceptions.SourceError):
            sanitize_member_name(name)

class TestDirectoryPackSource:
    def test_finds_descriptors_recursively(self, tmp_path):
        write_tree(tmp_path, {
            "a.pdsc": b"",
            "one/b.pdsc": b"",
            "one/two/three/c.PDSC": b"",
            "one/two/readme.txt": b"",
            "d/e/f/g.pdsc": b"",
            })
        source = DirectoryPackSource(tmp_path)
        names = list(source.iter_descriptors())
        assert len(names) == 4
        assert set(names) == {"a.pdsc", "one/b.pdsc", "one/two/three/c.PDSC", "d/e/f/g.pdsc"}
        assert names == sorted(names, key=lambda n: tmp_path.joinpath(n))

    def test_open(self, tmp_path, flm_data):
        write_tree(tmp_path, {"Flash/Algo.FLM": flm_data})
        source = DirectoryPackSource(tmp_path)
        assert source.open("Flash/Algo.FLM").read() == flm_data
        assert source.open("Flash\\Algo.FLM").read() == flm_data

    def test_open_relative_to_descriptor(self, tmp_path, flm_data):
        write_tree(tmp_path, {
            "vendor/pack/Test.pdsc": b"",
            "vendor/pack/Flash/Algo.FLM": flm_data,
            })
        source = DirectoryPackSource(tmp_path)
        assert source.open("Flash/Algo.FLM", relative_to="vendor/pack/Test.pdsc").read() == flm_data

    def test_case_insensitive_fallback(self, tmp_path, flm_data):
        write_tree(tmp_path, {
            "vendor/pack/Test.pdsc": b"",
            "vendor/pack/FLASH/Algo.flm": flm_data,
            })
        source = DirectoryPackSource(tmp_path)
        assert source.open("Flash\\ALGO.FLM", relative_to="vendor/pack/Test.pdsc").read() == flm_data
        with pytest.raises(exceptions.SourceError):
            source.open("Flash/Other.FLM", relative_to="vendor/pack/Test.pdsc")

    def test_missing_member(self, tmp_path):
        source = DirectoryPackSource(tmp_path)
        with pytest.raises(exceptions.SourceError):
            source.open("Flash/Missing.FLM")

    def test_traversal(self, tmp_path):
        root = tmp_path / "root"
        write_tree(tmp_path, {"secret.txt": b"x", "root/a.pdsc": b""})
        source = DirectoryPackSource(root)
        with pytest.raises(exceptions.SourceError):
            source.open("../secret.txt")

    def test_symlink_outside_root(self, tmp_path):
        root = tmp_path / "root"
        write_tree(tmp_path, {"secret.txt": b"x", "root/a.pdsc": b""})
        try:
            (root / "link.txt").symlink_to(tmp_path / "secret.txt")
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")
        with pytest.raises(exceptions.SourceError):
            DirectoryPackSource(root).open("link.txt")

    def test_missing_root(self, tmp_path):
        with pytest.raises(exceptions.SourceError):
            DirectoryPackSource(tmp_path / "nope")

    def test_find_descriptor_none(self, tmp_path):
        with pytest.raises(exceptions.SourceError):
            DirectoryPackSource(tmp_path).find_descriptor()

class TestArchivePackSource:
    def test_from_bytes(self, pack_data, flm_data):
        source = ArchivePackSource(pack_data)
        assert source.find_descriptor() == "Test.Test_DFP.pdsc"
        assert source.open("Flash/Algo.FLM").read() == flm_data

    def test_from_path(self, tmp_path, pack_data):
        path = tmp_path / "Test.Test_DFP.1.0.0.pack"
        path.write_bytes(pack_data)
        with ArchivePackSource(path) as source:
            assert source.name == str(path)
            assert list(source.iter_descriptors()) == ["Test.Test_DFP.pdsc"]

    def test_from_zipfile(self, pack_data):
        source = ArchivePackSource(zipfile.ZipFile(io.BytesIO(pack_data)))
        assert source.find_descriptor() == "Test.Test_DFP.pdsc"

    def test_bad_zip(self):
        with pytest.raises(exceptions.SourceError):
            ArchivePackSource(b"PK but not really a zip file")

    def test_missing_member(self, pack_data):
        with pytest.raises(exceptions.SourceError):
            ArchivePackSource(pack_data).open("Flash/Missing.FLM")

    def test_case_insensitive_fallback(self, pack_data, flm_data):
        source = ArchivePackSource(pack_data)
        assert source.open("flash/ALGO.flm").read() == flm_data

    def test_backslash_members(self, flm_data):
        data = make_pack({"Keil\\Test.pdsc": make_pdsc(), "Keil\\Flash\\Algo.FLM": flm_data})
        source = ArchivePackSource(data)
        assert source.find_descriptor() == "Keil/Test.pdsc"
        assert source.open("Flash\\Algo.FLM", relative_to="Keil/Test.pdsc").read() == flm_data

    def test_unsafe_members_ignored(self, flm_data):
        data = make_pack({"../evil.FLM": flm_data, "Test.pdsc": make_pdsc()})
        source = ArchivePackSource(data)
        assert source.members == ["Test.pdsc"]
        with pytest.raises(exceptions.SourceError):
            source.open("../evil.FLM")

    def test_no_descriptor(self, flm_data):
        source = ArchivePackSource(make_pack({"Flash/Algo.FLM": flm_data}))
        with pytest.raises(exceptions.SourceError):
            source.find_descriptor()

    def test_multiple_descriptors(self, caplog):
        source = ArchivePackSource(make_pack({"b.pdsc": b"", "a.pdsc": b""}))
        assert source.find_descriptor() == "b.pdsc"
        assert "2 descriptors" in caplog.text

class TestOpenPath:
    def test_directory(self, tmp_path):
        assert isinstance(PackSource.open_path(tmp_path), DirectoryPackSource)

    def test_archive(self, tmp_path, pack_data):
        path = tmp_path / "x.pack"
        path.write_bytes(pack_data)
        source = PackSource.open_path(path)
        assert isinstance(source, ArchivePackSource)
        source.close()

    def test_missing(self, tmp_path):
        with pytest.raises(exceptions.SourceError):
            PackSource.open_path(tmp_path / "missing.pack")

    def test_not_a_zip(self, tmp_path):
        path = tmp_path / "x.pack"
        path.write_text("hello")
        with pytest.raises(exceptions.SourceError):
            PackSource.open_path(path)
