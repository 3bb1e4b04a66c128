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
from typing import (Any, Dict, List)

from .base import GenerateSubcommandBase
from ..core.outcome import Outcome
from ..generate import (DeviceAggregator, visit_arm_files)
from ..pack.catalog import RemoteCatalogClient

LOG = logging.getLogger(__name__)

class ArmSubcommand(GenerateSubcommandBase):
    """@brief `targetgen arm` subcommand."""

    NAMES = ['arm']
    HELP = "Download every pack listed in the published pack index and generate target files."
    EPILOG = "Packs that fail to download or parse are logged and skipped."

    @classmethod
    def get_args(cls) -> List[argparse.ArgumentParser]:
        """@brief Add this subcommand to the subparsers object."""
        parser = argparse.ArgumentParser(description=cls.HELP, add_help=False)

        catalog_group = parser.add_argument_group("catalog")
        catalog_group.add_argument("--index-url", metavar="URL",
            help="URL of the pack index. Overrides the 'catalog.index_url' option.")
        catalog_group.add_argument("--download-base", metavar="URL",
            help="Base URL for relative pack locations. Overrides the 'catalog.download_base' option.")
        catalog_group.add_argument("--timeout", type=float, metavar="SECONDS",
            help="Timeout for each HTTP request. Overrides the 'catalog.timeout' option.")
        catalog_group.add_argument("--limit", type=int, metavar="N",
            help="Only process the first N packs of the index.")

        parser.add_argument("output", metavar="OUTPUT",
            help="Directory to which a YAML file is written for each chip family.")
        return [cls.CommonOptions.COMMON, cls.CommonOptions.GENERATE, parser]

    def _explicit_options(self) -> Dict[str, Any]:
        options = super()._explicit_options()
        options.update({
            'catalog.index_url': self._args.index_url,
            'catalog.download_base': self._args.download_base,
            'catalog.timeout': self._args.timeout,
            })
        return options

    def _create_client(self) -> RemoteCatalogClient:
        timeout = self.options.get('catalog.timeout')
        return RemoteCatalogClient(
            index_url=self.options.get('catalog.index_url'),
            download_base=self.options.get('catalog.download_base'),
            # A timeout of 0 means wait forever.
            timeout=timeout if timeout else None,
            user_agent=self.options.get('catalog.user_agent'),
            )

    def _collect(self, aggregator: DeviceAggregator) -> List[Outcome]:
        return visit_arm_files(self._create_client(), aggregator, limit=self._args.limit)
