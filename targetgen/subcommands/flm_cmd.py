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
from pathlib import Path
from typing import List

from .base import SubcommandBase
from ..core import exceptions
from ..pack.flash_algo import extract_flash_algo

LOG = logging.getLogger(__name__)

class FlmSubcommand(SubcommandBase):
    """@brief `targetgen flm` subcommand."""

    NAMES = ['flm']
    HELP = "Show the flash geometry and entry points of an .FLM flash algorithm."

    @classmethod
    def get_args(cls) -> List[argparse.ArgumentParser]:
        """@brief Add this subcommand to the subparsers object."""
        parser = argparse.ArgumentParser(description=cls.HELP, add_help=False)
        parser.add_argument("--no-header", action="store_true",
            help="Don't print table headers.")
        parser.add_argument("file", metavar="FILE", help="Path to the .FLM file.")
        return [cls.CommonOptions.COMMON, parser]

    def invoke(self) -> int:
        path = Path(self._args.file)
        try:
            with path.open('rb') as flm_file:
                algo = extract_flash_algo(flm_file, path.name, is_default=False,
                        log_info=self.options.get('debug.log_flm_info'))
        except OSError as err:
            raise exceptions.CommandError("cannot read %s: %s" % (path, err)) from err

        geometry = algo.geometry
        pt = self._get_pretty_table(["Property", "Value"])
        pt.add_row(["Name", algo.name])
        pt.add_row(["Device", algo.description])
        pt.add_row(["Flash range", "0x%08x-0x%08x" % (geometry.start, geometry.start + geometry.size)])
        pt.add_row(["Page size", "0x%x" % geometry.page_size])
        pt.add_row(["Erased value", "0x%02x" % geometry.erased_byte_value])
        pt.add_row(["Program timeout", "%d ms" % geometry.program_page_timeout])
        pt.add_row(["Erase timeout", "%d ms" % geometry.erase_sector_timeout])
        pt.add_row(["Code size", "0x%x" % len(algo.code_blob)])
        pt.add_row(["Data offset", "0x%x" % algo.data_section_offset])
        pt.add_row(["RAM usage", "0x%x" % algo.ram_usage])
        print(pt)
        print()

        pt = self._get_pretty_table(["Entry point", "Offset"])
        for name, offset in algo.function_table.items():
            pt.add_row([name, "-" if offset is None else "0x%x" % offset])
        print(pt)
        print()

        pt = self._get_pretty_table(["Sector offset", "Sector size"])
        for sector in geometry.sectors:
            pt.add_row(["0x%x" % sector.address, "0x%x" % sector.size])
        print(pt)
        return 0
