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
import pytest

from targetgen.core import exceptions
from targetgen.core.outcome import (Outcome, failures)
from targetgen.utility.color_log import (ColorFormatter, LevelCountingHandler)
from targetgen.utility.mask import align_up

class TestMask:
    @pytest.mark.parametrize(("value", "multiple", "up"), [
        (0, 16, 0),
        (1, 16, 16),
        (16, 16, 16),
        (0x6a1, 16, 0x6b0),
        (5, 3, 6),
        ])
    def test_align_up(self, value, multiple, up):
        assert align_up(value, multiple) == up

class TestOutcome:
    def test_success(self):
        o = Outcome("V.P.1.0.0")
        assert o.succeeded
        assert str(o) == "V.P.1.0.0: ok"

    def test_failure(self):
        o = Outcome("D1: Flash/A.FLM", exceptions.MissingSectionError("no PrgCode section"))
        assert not o.succeeded
        assert str(o) == "D1: Flash/A.FLM: no PrgCode section"

    def test_failures(self):
        err = exceptions.SourceError("x")
        assert failures([Outcome("a"), Outcome("b", err), Outcome("c")]) == [Outcome("b", err)]
        assert failures([]) == []

class TestColorLog:
    def _logger(self, handler):
        logger = logging.getLogger("targetgen.test.color_log")
        logger.propagate = False
        logger.setLevel(logging.DEBUG)
        logger.handlers = [handler]
        return logger

    def test_no_color(self):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(ColorFormatter(ColorFormatter.FORMAT, use_color=False))
        self._logger(handler).warning("device %s skipped", "D1")
        assert stream.getvalue() == "WARNING device D1 skipped [targetgen.test.color_log]\n"

    def test_color(self):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(ColorFormatter(ColorFormatter.FORMAT, use_color=True))
        self._logger(handler).error("boom")
        text = stream.getvalue()
        assert "\x1b[" in text
        assert "boom" in text

    def test_exception_appended(self):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(ColorFormatter(ColorFormatter.FORMAT, use_color=False))
        logger = self._logger(handler)
        try:
            raise ValueError("bad value")
        except ValueError:
            logger.error("failed", exc_info=True)
        lines = stream.getvalue().splitlines()
        assert lines[0] == "ERROR   failed [targetgen.test.color_log]"
        assert lines[-1] == "ValueError: bad value"

    def test_level_counting(self):
        counter = LevelCountingHandler()
        logger = self._logger(counter)
        logger.info("ignored")
        logger.warning("w1")
        logger.warning("w2")
        logger.error("e1")
        assert counter.counts['WARNING'] == 2
        assert counter.counts['ERROR'] == 1
        assert counter.counts['INFO'] == 0
