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

from targetgen.core.exceptions import *

# Tests for ExtractionError.
class TestExtractionError:
    def test_no_args(self):
        e = InvalidImageError()
        assert str(e) == ""
        assert e.file_name is None

    def test_msg(self):
        e = MissingSectionError("no PrgCode section")
        assert str(e) == "no PrgCode section"

    def test_ctor_file_name(self):
        e = MissingSymbolError("no Init symbol", file_name="Flash/Algo.FLM")
        assert e.file_name == "Flash/Algo.FLM"
        assert str(e) == "Flash/Algo.FLM: no Init symbol"

    def test_set_file_name(self):
        e = InconsistentGeometryError("sector table does not cover the device")
        e.file_name = "x.flm"
        assert str(e) == "x.flm: sector table does not cover the device"

    @pytest.mark.parametrize("cls", [InvalidImageError, MissingSectionError, MissingDescriptorError,
            MissingSymbolError, InconsistentGeometryError])
    def test_hierarchy(self, cls):
        assert issubclass(cls, ExtractionError)
        assert issubclass(cls, Error)

# Tests for CatalogError.
class TestCatalogError:
    def test_no_args(self):
        e = CatalogError()
        assert str(e) == ""
        assert e.url is None
        assert e.status_code is None

    def test_msg(self):
        e = CatalogError("connection refused")
        assert str(e) == "connection refused"

    def test_url(self):
        e = CatalogError(url="https://x/index.pidx")
        assert str(e) == "(url https://x/index.pidx)"

    def test_msg_url_status(self):
        e = CatalogError("download failed", url="https://x/a.pack", status_code=404)
        assert str(e) == "download failed (url https://x/a.pack; status 404)"
        assert e.status_code == 404

class TestHierarchy:
    def test_mapping(self):
        assert issubclass(UnsupportedCoreError, MappingError)
        assert issubclass(MissingMemoryRegionError, MappingError)

    def test_error_is_runtime_error(self):
        for cls in (SourceError, DescriptorError, CatalogError, CommandError):
            assert issubclass(cls, Error)
        assert issubclass(Error, RuntimeError)
