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

import argparse
import logging
from typing import List

from .base import GenerateSubcommandBase
from ..core.outcome import Outcome
from ..generate import (DeviceAggregator, visit_path)

LOG = logging.getLogger(__name__)

class PackSubcommand(GenerateSubcommandBase):
    """@brief `targetgen pack` subcommand."""

    NAMES = ['pack']
    HELP = "Generate target files from a local .pack file or a directory of expanded packs."
    EPILOG = "Any error opening the source or parsing a descriptor stops the run."

    @classmethod
    def get_args(cls) -> List[argparse.ArgumentParser]:
        """@brief Add this subcommand to the subparsers object."""
        parser = argparse.ArgumentParser(description=cls.HELP, add_help=False)
        parser.add_argument("source", metavar="SOURCE",
            help="Path to a .pack file, or to a directory searched recursively for .pdsc files.")
        parser.add_argument("output", metavar="OUTPUT",
            help="Directory to which a YAML file is written for each chip family.")
        return [cls.CommonOptions.COMMON, cls.CommonOptions.GENERATE, parser]

    def _collect(self, aggregator: DeviceAggregator) -> List[Outcome]:
        return visit_path(self._args.source, aggregator)
