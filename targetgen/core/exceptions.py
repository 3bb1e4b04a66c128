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

class Error(RuntimeError):
    """@brief Parent of all errors targetgen can raise"""
    pass

class SourceError(Error):
    """@brief A pack source could not be opened or a member of it could not be read.

    Raised for a missing backing path, a corrupt zip container, an unsafe or absent member name,
    and for archives without a descriptor.
    """
    pass

class DescriptorError(Error):
    """@brief A .pdsc descriptor or pack index document is malformed."""
    pass

class ExtractionError(Error):
    """@brief Failure to extract a flash algorithm from an FLM image.

    Positional arguments are passed through to the superclass constructor. The name of the
    offending file can optionally be recorded with the 'file_name' keyword argument, in which
    case it is included in the description of the exception.
    """
    def __init__(self, *args, **kwargs):
        super().__init__(*args)
        self._file_name = kwargs.get('file_name', None)

    @property
    def file_name(self):
        return self._file_name

    @file_name.setter
    def file_name(self, name):
        self._file_name = name

    def __str__(self):
        desc = super().__str__()
        if self._file_name is not None:
            desc = "%s: %s" % (self._file_name, desc)
        return desc

class InvalidImageError(ExtractionError):
    """@brief The data is not a well-formed ELF object, or its layout is unusable."""
    pass

class MissingSectionError(ExtractionError):
    """@brief A required PrgCode or PrgData section is absent."""
    pass

class MissingDescriptorError(ExtractionError):
    """@brief The FlashDevice descriptor symbol is absent."""
    pass

class MissingSymbolError(ExtractionError):
    """@brief A required flash algorithm entry point symbol is absent."""
    pass

class InconsistentGeometryError(ExtractionError):
    """@brief The FlashDevice sector table does not match the declared flash size."""
    pass

class MappingError(Error):
    """@brief A device description cannot be mapped onto a target definition."""
    pass

class UnsupportedCoreError(MappingError):
    """@brief The device's processor core has no output identifier."""
    pass

class MissingMemoryRegionError(MappingError):
    """@brief No default RAM or flash region could be selected for a device."""
    pass

class CatalogError(Error):
    """@brief Error fetching the remote pack index or a pack archive.

    The URL that failed and the HTTP status code, if there was a response, can be passed as the
    'url' and 'status_code' keyword arguments.
    """
    def __init__(self, *args, **kwargs):
        super().__init__(*args)
        self._url = kwargs.get('url', None)
        self._status_code = kwargs.get('status_code', None)

    @property
    def url(self):
        return self._url

    @property
    def status_code(self):
        return self._status_code

    def __str__(self):
        desc = super().__str__()
        parts = []
        if self.url is not None:
            parts.append("url %s" % self.url)
        if self.status_code is not None:
            parts.append("status %d" % self.status_code)
        if parts:
            if desc:
                desc += " "
            desc += "(%s)" % ("; ".join(parts))
        return desc

class CommandError(Error):
    """@brief Raised when a command encounters an error."""
    pass
