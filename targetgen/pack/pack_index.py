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
from typing import (List, NamedTuple, Union)
from urllib.parse import urljoin
from xml.etree.ElementTree import (ParseError, fromstring)

from ..core import exceptions

LOG = logging.getLogger(__name__)

class PackRef(NamedTuple):
    """@brief One pack listed in a pack index."""
    vendor: str
    name: str
    version: str
    ## Directory URL from the index. Either absolute or relative to the download base.
    url: str

    @property
    def file_name(self) -> str:
        """@brief Name of the pack archive, `Vendor.Name.Version.pack`."""
        return "%s.%s.%s.pack" % (self.vendor, self.name, self.version)

    @property
    def identifier(self) -> str:
        return "%s.%s.%s" % (self.vendor, self.name, self.version)

    def location(self, download_base: str) -> str:
        """@brief Absolute URL of the pack archive.

        An absolute http(s) URL from the index is used as is. Anything else is resolved against
        _download_base_.
        """
        url = self.url
        if not url.lower().startswith(('http://', 'https://')):
            url = urljoin(_with_slash(download_base), url)
        return urljoin(_with_slash(url), self.file_name)

def _with_slash(url: str) -> str:
    return url if url.endswith('/') else url + '/'

def parse_pack_index(text: Union[str, bytes]) -> List[PackRef]:
    """@brief Parse a PIDX or VIDX pack index document.

    Each `<pdsc>` element under `<pindex>` produces a PackRef, in document order. Elements with a
    `deprecated` attribute are skipped. References to vendor indexes (`<pidx>` elements) are not
    followed.

    @exception DescriptorError The document is not well-formed XML or not a pack index.
    """
    try:
        root = fromstring(text)
    except ParseError as err:
        raise exceptions.DescriptorError("malformed pack index (%s)" % err) from err
    if root.tag != 'index':
        raise exceptions.DescriptorError("pack index root element is <%s>, expected <index>" % root.tag)

    for pidx in root.iter('pidx'):
        LOG.debug("not following vendor index %s from %s", pidx.attrib.get('vendor'), pidx.attrib.get('url'))

    refs: List[PackRef] = []
    for elem in root.iter('pdsc'):
        if 'deprecated' in elem.attrib:
            LOG.debug("skipping deprecated pack %s.%s", elem.attrib.get('vendor'), elem.attrib.get('name'))
            continue
        try:
            refs.append(PackRef(
                vendor=elem.attrib['vendor'],
                name=elem.attrib['name'],
                version=elem.attrib['version'],
                url=elem.attrib.get('url', ''),
                ))
        except KeyError as err:
            LOG.warning("pack index entry is missing the %s attribute", err)
    return refs
