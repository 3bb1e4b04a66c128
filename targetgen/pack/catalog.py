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
from typing import (Iterator, List, NamedTuple, Optional)

import requests

from ..core import exceptions
from ..core.outcome import Outcome
from .pack_index import (PackRef, parse_pack_index)
from .source import ArchivePackSource

LOG = logging.getLogger(__name__)

DEFAULT_INDEX_URL = "https://www.keil.com/pack/index.pidx"
DEFAULT_DOWNLOAD_BASE = "https://keilpack.azureedge.net/pack/"

class DownloadedPack(NamedTuple):
    """@brief Result of fetching one pack listed in the index.

    On failure `source` and `descriptor` are None and `outcome` holds the error.
    """
    ref: PackRef
    source: Optional[ArchivePackSource]
    ## Member name of the pack's .pdsc.
    descriptor: Optional[str]
    outcome: Outcome

class RemoteCatalogClient:
    """@brief Sequential downloader for the packs listed in a published pack index.

    All requests go through one `requests.Session`, which may be passed in, and each request has
    the same bounded timeout. There are no retries.
    """

    def __init__(self,
            index_url: str = DEFAULT_INDEX_URL,
            download_base: str = DEFAULT_DOWNLOAD_BASE,
            timeout: Optional[float] = 60.0,
            session: Optional[requests.Session] = None,
            user_agent: Optional[str] = None,
            ) -> None:
        self._index_url = index_url
        self._download_base = download_base
        self._timeout = timeout
        self._session = session if (session is not None) else requests.Session()
        self._headers = {'User-Agent': user_agent} if user_agent else {}

    @property
    def index_url(self) -> str:
        return self._index_url

    @property
    def download_base(self) -> str:
        return self._download_base

    def _get(self, url: str) -> requests.Response:
        try:
            response = self._session.get(url, headers=self._headers, timeout=self._timeout)
            response.raise_for_status()
        except requests.HTTPError as err:
            status = err.response.status_code if (err.response is not None) else None
            raise exceptions.CatalogError("request failed", url=url, status_code=status) from err
        except requests.RequestException as err:
            raise exceptions.CatalogError("request failed: %s" % err, url=url) from err
        return response

    def fetch_index(self) -> List[PackRef]:
        """@brief Download and parse the pack index.
        @exception CatalogError The index could not be downloaded.
        @exception DescriptorError The index is malformed.
        """
        LOG.info("Fetching pack index %s", self._index_url)
        response = self._get(self._index_url)
        refs = parse_pack_index(response.content)
        LOG.info("Pack index lists %d packs", len(refs))
        return refs

    def download(self, ref: PackRef) -> bytes:
        """@brief Download the archive of one pack.
        @exception CatalogError The download failed.
        """
        url = ref.location(self._download_base)
        LOG.info("Downloading %s", url)
        return self._get(url).content

    def iter_packs(self, refs: Optional[List[PackRef]] = None) -> Iterator[DownloadedPack]:
        """@brief Download each pack in turn and open it.

        A pack whose download fails, that is not a zip archive, or that has no descriptor is
        logged and yielded with a failed outcome. Iteration always continues with the next pack.

        @param self
        @param refs Packs to fetch. If not provided, the index is fetched first.
        @exception CatalogError The index could not be fetched.
        """
        if refs is None:
            refs = self.fetch_index()

        for i, ref in enumerate(refs):
            LOG.info("Working on pack %d/%d: %s", i + 1, len(refs), ref.identifier)
            source: Optional[ArchivePackSource] = None
            try:
                data = self.download(ref)
                source = ArchivePackSource(data, name=ref.file_name)
                descriptor = source.find_descriptor()
            except (exceptions.CatalogError, exceptions.SourceError) as err:
                if source is not None:
                    source.close()
                LOG.error("Skipping pack %s: %s", ref.identifier, err)
                yield DownloadedPack(ref, None, None, Outcome(ref.identifier, err))
                continue
            yield DownloadedPack(ref, source, descriptor, Outcome(ref.identifier))
