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

import colorama
from colorama import (Fore, Style)
import logging
import sys
from collections import Counter
from typing import (IO, Optional)

class ColorFormatter(logging.Formatter):
    """@brief Log formatter that colours the level name and message by the record's log level.

    Exception and stack info are appended dimmed and are never coloured by level.
    """

    FORMAT = "{lvlcolor}{levelname:<7s}{_reset} {msgcolor}{message}{_reset} {_dim}[{name}]{_reset}"

    ## Colors for the log level name.
    LEVEL_COLORS = {
            'CRITICAL': Style.BRIGHT + Fore.LIGHTRED_EX,
            'ERROR': Fore.LIGHTRED_EX,
            'WARNING': Fore.LIGHTYELLOW_EX,
            'INFO': Fore.CYAN,
            'DEBUG': Style.DIM,
        }

    ## Colors for the rest of the log message.
    MESSAGE_COLORS = {
            'CRITICAL': Fore.LIGHTRED_EX,
            'ERROR': Fore.RED,
            'WARNING': Fore.YELLOW,
            'DEBUG': Style.DIM + Fore.LIGHTWHITE_EX,
        }

    def __init__(self, msg: str, use_color: bool) -> None:
        super().__init__(msg, style='{')
        self._use_color = use_color

    def format(self, record) -> str:
        # Take exc_info and stack_info off the record so the superclass leaves them to us.
        exc_info, record.exc_info = record.exc_info, None
        stack_info, record.stack_info = record.stack_info, None

        if self._use_color:
            record.lvlcolor = self.LEVEL_COLORS.get(record.levelname, '')
            record.msgcolor = self.MESSAGE_COLORS.get(record.levelname, '')
            record._reset = Style.RESET_ALL
            record._dim = Style.DIM
        else:
            record.lvlcolor = record.msgcolor = record._reset = record._dim = ""

        record.message = record.getMessage()
        log_msg = super().format(record)

        if exc_info:
            log_msg += "\n" + record._dim + self.formatException(exc_info) + record._reset
        if stack_info:
            log_msg += "\n" + record._dim + self.formatStack(stack_info) + record._reset

        # Restore the record for any other handlers.
        record.exc_info = exc_info
        record.stack_info = stack_info
        return log_msg

class LevelCountingHandler(logging.Handler):
    """@brief Handler that only counts records per level name.

    Used to print a warning/error tally at the end of a long batch run.
    """

    def __init__(self, level: int = logging.WARNING) -> None:
        super().__init__(level)
        self.counts: Counter = Counter()

    def emit(self, record: logging.LogRecord) -> None:
        self.counts[record.levelname] += 1

def build_color_logger(
            level: int = logging.INFO,
            color_setting: str = 'auto',
            stream: Optional[IO[str]] = None,
            is_tty: Optional[bool] = None,
        ) -> logging.Logger:
    """@brief Sets up color logging for the root logger.

    @param level Log level of the root logger.
    @param color_setting One of 'auto', 'always', or 'never'. The default 'auto' enables color if `is_tty` is True.
    @param stream The stream to which the log will be output. The default is stderr.
    @param is_tty Whether the output stream is a tty. Affects the 'auto' color_setting. If not provided, the
        `isatty()` method of _stream_ is used.
    """
    if stream is None:
        stream = sys.stderr
    if is_tty is None:
        is_tty = stream.isatty() if hasattr(stream, 'isatty') else False
    use_color = (color_setting == "always") or (color_setting == "auto" and is_tty)

    colorama.init(strip=(not use_color))

    console = logging.StreamHandler(stream)
    console.setFormatter(ColorFormatter(ColorFormatter.FORMAT, use_color))

    # Replace the console handler from any earlier call.
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler.formatter, ColorFormatter):
            root_logger.removeHandler(handler)
    root_logger.addHandler(console)
    root_logger.setLevel(level)

    return root_logger
