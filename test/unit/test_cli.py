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
import pytest
from unittest import mock
import yaml

from targetgen.__main__ import TargetGenTool
from targetgen.utility.color_log import ColorFormatter

from fake_http import FakeSession
from flm_builder import build_flm
from pack_builder import (family_xml, make_index, make_pack, make_pdsc, write_tree)

@pytest.fixture(scope='function')
def run(monkeypatch, tmp_path):
    """Run the tool in an empty working directory and undo its logging setup afterwards."""
    monkeypatch.chdir(tmp_path)
    root_logger = logging.getLogger()
    saved_level = root_logger.level
    with mock.patch('colorama.init'):
        yield lambda *args: TargetGenTool().run(list(args))
    for handler in list(root_logger.handlers):
        if isinstance(handler.formatter, ColorFormatter):
            root_logger.removeHandler(handler)
    root_logger.setLevel(saved_level)

@pytest.fixture(scope='function')
def pack_path(tmp_path, pack_data):
    path = tmp_path / "Test.Test_DFP.1.0.0.pack"
    path.write_bytes(pack_data)
    return path

def load(path):
    with path.open() as f:
        return yaml.safe_load(f)

class TestPackCommand:
    def test_pack_file(self, run, pack_path, tmp_path):
        out = tmp_path / "out"
        assert run("pack", str(pack_path), str(out)) == 0
        data = load(out / "F.yaml")
        assert data['name'] == "F"
        assert data['manufacturer'] == "TestVendor"
        assert data['core'] == "M4"
        (variant,) = data['variants']
        assert variant['name'] == "D1"
        assert variant['flash_algorithms'] == ["algo"]
        assert variant['memory_map'][0] == {'Ram': {'range': {'start': 0x20000000, 'end': 0x20001000},
            'is_boot_memory': False}}
        assert variant['memory_map'][1]['Flash']['page_size'] == 1024
        assert variant['memory_map'][1]['Flash']['sector_size'] == 0x800
        assert [a['name'] for a in data['flash_algorithms']] == ["algo"]

    def test_pack_dir(self, run, tmp_path, flm_data):
        src = write_tree(tmp_path / "src", {
            "a/x.pdsc": make_pdsc(family_xml("FA", "DA")),
            "a/Flash/Algo.FLM": flm_data,
            "b/y.pdsc": make_pdsc(family_xml("FB", "DB")),
            "b/Flash/Algo.FLM": flm_data,
            })
        out = tmp_path / "out"
        assert run("pack", str(src), str(out)) == 0
        assert sorted(p.name for p in out.iterdir()) == ["FA.yaml", "FB.yaml"]

    def test_missing_source(self, run, tmp_path, caplog):
        assert run("pack", str(tmp_path / "nope"), str(tmp_path / "out")) == 1
        assert "does not exist" in caplog.text
        assert not (tmp_path / "out").exists()

    def test_malformed_descriptor(self, run, tmp_path):
        src = write_tree(tmp_path / "src", {"x.pdsc": b"<package"})
        assert run("pack", str(src), str(tmp_path / "out")) == 1

    def test_strict(self, run, tmp_path, flm_data):
        families = family_xml("F", "D1") + family_xml("F", "D2", algo="Flash/Missing.FLM")
        path = tmp_path / "x.pack"
        path.write_bytes(make_pack({"x.pdsc": make_pdsc(families), "Flash/Algo.FLM": flm_data}))

        assert run("pack", str(path), str(tmp_path / "lenient")) == 0
        assert run("pack", "--strict", str(path), str(tmp_path / "strict")) == 1
        # Output is still written in strict mode.
        data = load(tmp_path / "strict" / "F.yaml")
        assert [v['name'] for v in data['variants']] == ["D1", "D2"]

    def test_require_memory_map(self, run, tmp_path, flm_data):
        families = family_xml("F", "D1") + """
            <family Dfamily="F" Dvendor="V:1">
              <processor Dcore="Cortex-M4"/>
              <device Dname="NORAM">
                <memory name="IROM1" access="rx" start="0x08000000" size="0x10000" default="1"/>
              </device>
            </family>
            """
        path = tmp_path / "x.pack"
        path.write_bytes(make_pack({"x.pdsc": make_pdsc(families), "Flash/Algo.FLM": flm_data}))

        assert run("pack", str(path), str(tmp_path / "a")) == 0
        assert [v['name'] for v in load(tmp_path / "a" / "F.yaml")['variants']] == ["D1", "NORAM"]

        assert run("pack", "--require-memory-map", str(path), str(tmp_path / "b")) == 0
        assert [v['name'] for v in load(tmp_path / "b" / "F.yaml")['variants']] == ["D1"]

        assert run("pack", "-O", "generate.require_memory_map", str(path), str(tmp_path / "c")) == 0
        assert [v['name'] for v in load(tmp_path / "c" / "F.yaml")['variants']] == ["D1"]

    def test_config_file(self, run, tmp_path, pack_path):
        (tmp_path / "targetgen.yaml").write_text("generate.require_memory_map: true\n")
        pack_path.write_bytes(make_pack({"x.pdsc": make_pdsc(family_xml("F", "D1") + """
            <family Dfamily="G" Dvendor="V:1">
              <processor Dcore="Cortex-M4"/>
              <device Dname="NORAM"/>
            </family>
            """), "Flash/Algo.FLM": build_flm()}))

        assert run("pack", str(pack_path), str(tmp_path / "a")) == 0
        assert not (tmp_path / "a" / "G.yaml").exists()

        assert run("pack", "--no-config", str(pack_path), str(tmp_path / "b")) == 0
        assert (tmp_path / "b" / "G.yaml").exists()

class TestFlmCommand:
    def test_flm(self, run, tmp_path, flm_data, capsys):
        path = tmp_path / "Algo.FLM"
        path.write_bytes(flm_data)
        assert run("flm", str(path)) == 0
        out = capsys.readouterr().out
        assert "Test Flash" in out
        assert "0x08000000-0x08010000" in out
        assert "program_page" in out
        assert "0x800" in out

    def test_flm_missing(self, run, tmp_path):
        assert run("flm", str(tmp_path / "missing.flm")) == 1

    def test_flm_invalid(self, run, tmp_path, caplog):
        path = tmp_path / "Bad.FLM"
        path.write_bytes(b"not an elf")
        assert run("flm", str(path)) == 1
        assert "Bad.FLM" in caplog.text

class TestTool:
    def test_no_command(self, run, capsys):
        assert run() == 0
        assert "subcommands" in capsys.readouterr().out

    def test_help_options(self, run, capsys):
        assert run("--help-options") == 0
        out = capsys.readouterr().out
        assert "catalog.index_url" in out
        assert "generate.require_memory_map" in out

    def test_bad_log_level(self, run, pack_path, tmp_path):
        assert run("pack", "-L", "targetgen=loud", str(pack_path), str(tmp_path / "out")) == 1

class TestArmCommand:
    INDEX_URL = "https://index.example.com/index.pidx"
    BASE = "https://download.example.com/pack/"

    @pytest.fixture(scope='function')
    def session(self, flm_data):
        entries = "\n".join('<pdsc url="" vendor="V" name="P%d" version="1.0.0"/>' % i for i in range(3))
        routes = {self.INDEX_URL: make_index(entries)}
        for i in range(3):
            routes[self.BASE + "V.P%d.1.0.0.pack" % i] = make_pack({
                "V.P%d.pdsc" % i: make_pdsc(family_xml("F%d" % i, "D%d" % i)),
                "Flash/Algo.FLM": flm_data,
                })
        session = FakeSession(routes)
        with mock.patch('requests.Session', return_value=session):
            yield session

    def _run(self, run, tmp_path, *args):
        return run("arm", "--index-url", self.INDEX_URL, "--download-base", self.BASE, *args,
            str(tmp_path / "out"))

    def test_arm(self, run, session, tmp_path):
        assert self._run(run, tmp_path) == 0
        assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["F0.yaml", "F1.yaml", "F2.yaml"]
        assert [r[0] for r in session.requests] == [self.INDEX_URL] + \
            [self.BASE + "V.P%d.1.0.0.pack" % i for i in range(3)]
        for _, headers, timeout in session.requests:
            assert headers == {'User-Agent': "targetgen"}
            assert timeout == 60.0

    def test_partial_failure(self, run, session, tmp_path, caplog):
        session.routes[self.BASE + "V.P1.1.0.0.pack"] = 404
        assert self._run(run, tmp_path) == 0
        assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["F0.yaml", "F2.yaml"]
        assert "V.P1.1.0.0" in caplog.text

        assert self._run(run, tmp_path, "--strict") == 1

    def test_timeout_and_limit(self, run, session, tmp_path):
        assert self._run(run, tmp_path, "--timeout", "0", "--limit", "1") == 0
        assert [p.name for p in (tmp_path / "out").iterdir()] == ["F0.yaml"]
        assert all(timeout is None for _, _, timeout in session.requests)

    def test_timeout_option(self, run, session, tmp_path):
        assert self._run(run, tmp_path, "-O", "catalog.timeout=5") == 0
        assert all(timeout == 5.0 for _, _, timeout in session.requests)

    def test_index_unreachable(self, run, session, tmp_path):
        session.routes[self.INDEX_URL] = 503
        assert self._run(run, tmp_path) == 1
