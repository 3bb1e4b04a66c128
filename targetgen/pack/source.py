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
import zipfile
import zlib
from pathlib import (Path, PurePosixPath)
from typing import (Dict, IO, Iterator, List, Optional, Union)

from ..core import exceptions

LOG = logging.getLogger(__name__)

DESCRIPTOR_SUFFIX = '.pdsc'

def sanitize_member_name(name: str) -> str:
    """@brief Normalise a member name from a pack and make sure it stays inside the pack.

    Backslashes are converted to forward slashes and `.` components and repeated separators are
    dropped. Absolute paths, Windows drive letters, and `..` components are rejected.

    @return The normalised relative name, using forward slashes.
    @exception SourceError The name is empty or would escape the root of the pack.
    """
    path = name.replace('\\', '/')
    if path.startswith('/'):
        raise exceptions.SourceError("absolute member name '%s' is not allowed" % name)

    parts = [p for p in path.split('/') if p not in ('', '.')]
    if not parts:
        raise exceptions.SourceError("empty member name '%s'" % name)
    if len(parts[0]) >= 2 and parts[0][1] == ':' and parts[0][0].isalpha():
        raise exceptions.SourceError("member name '%s' has a drive letter" % name)
    if '..' in parts:
        raise exceptions.SourceError("member name '%s' refers outside the pack" % name)
    return '/'.join(parts)

def _is_descriptor_name(name: str) -> bool:
    return name.lower().endswith(DESCRIPTOR_SUFFIX)

class PackSource:
    """@brief Uniform read access to the contents of a CMSIS-Pack.

    There are exactly two kinds of source: an expanded pack in a directory tree, handled by
    DirectoryPackSource, and a zip archive, handled by ArchivePackSource. Use open_path() to
    create the right one for a path.

    Member names are always relative to the root of the pack and use forward slashes.
    """

    @staticmethod
    def open_path(path: Union[str, Path]) -> "PackSource":
        """@brief Create a pack source for a local directory or .pack file.
        @exception SourceError The path does not exist or the file is not a zip archive.
        """
        path = Path(path).expanduser()
        if not path.exists():
            raise exceptions.SourceError("pack source '%s' does not exist" % path)
        if path.is_dir():
            return DirectoryPackSource(path)
        return ArchivePackSource(path)

    @property
    def name(self) -> str:
        """@brief Name of the source used in log messages."""
        raise NotImplementedError()

    def iter_descriptors(self) -> Iterator[str]:
        """@brief Iterate over the member names of all descriptor (.pdsc) files in the source."""
        raise NotImplementedError()

    def _read_member(self, name: str) -> bytes:
        """@brief Return the contents of a sanitised member name."""
        raise NotImplementedError()

    def open(self, name: str, relative_to: Optional[str] = None) -> IO[bytes]:
        """@brief Return a file-like object with the contents of a member of the pack.

        @param self
        @param name Member name. May use forward or back slashes.
        @param relative_to Optional member name of a descriptor. If provided, _name_ is resolved
            relative to the directory containing the descriptor, as paths in a .pdsc are.
        @return A BytesIO object that contains all of the data from the member.
        @exception SourceError The name is unsafe or the member does not exist.
        """
        member = sanitize_member_name(name)
        if relative_to is not None:
            base = PurePosixPath(sanitize_member_name(relative_to)).parent
            member = str(base / member)
        return io.BytesIO(self._read_member(member))

    def find_descriptor(self) -> str:
        """@brief Return the member name of the pack's descriptor.

        A pack is expected to contain exactly one descriptor. If there are several the first one
        found is used.

        @exception SourceError There is no descriptor in the pack.
        """
        descriptors = list(self.iter_descriptors())
        if not descriptors:
            raise exceptions.SourceError("%s is missing a %s file" % (self.name, DESCRIPTOR_SUFFIX))
        if len(descriptors) > 1:
            LOG.warning("%s contains %d descriptors; using %s", self.name, len(descriptors), descriptors[0])
        return descriptors[0]

    def close(self) -> None:
        pass

    def __enter__(self) -> "PackSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return "<%s@%x %s>" % (self.__class__.__name__, id(self), self.name)

class DirectoryPackSource(PackSource):
    """@brief Pack source for an expanded pack, or a tree of expanded packs, on disk.

    Descriptors are found recursively at any depth below the root.
    Member lookup falls back to a case-insensitive match, as for archives.
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self._root = Path(root).expanduser()
        if not self._root.is_dir():
            raise exceptions.SourceError("pack directory '%s' does not exist" % self._root)
        self._resolved_root = self._root.resolve()

    @property
    def name(self) -> str:
        return str(self._root)

    @property
    def root(self) -> Path:
        return self._root

    def iter_descriptors(self) -> Iterator[str]:
        try:
            paths = sorted(p for p in self._root.rglob('*') if _is_descriptor_name(p.name) and p.is_file())
        except OSError as err:
            raise exceptions.SourceError("failed to read directory '%s': %s" % (self._root, err)) from err
        for path in paths:
            yield path.relative_to(self._root).as_posix()

    def _find_case_insensitive(self, name: str) -> Optional[Path]:
        """@brief Resolve a member name one component at a time, ignoring case."""
        path = self._root
        for part in name.split('/'):
            try:
                matches = sorted(p for p in path.iterdir() if p.name.lower() == part.lower())
            except OSError:
                return None
            if not matches:
                return None
            path = matches[0]
        return path if path.is_file() else None

    def _read_member(self, name: str) -> bytes:
        path = self._root / name
        if not path.is_file():
            match = self._find_case_insensitive(name)
            if match is not None:
                LOG.debug("%s: using '%s' for '%s'", self._root, match.relative_to(self._root).as_posix(), name)
                path = match
        try:
            path.resolve().relative_to(self._resolved_root)
        except ValueError:
            raise exceptions.SourceError("member '%s' resolves outside of %s" % (name, self._root)) from None
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise exceptions.SourceError("%s has no member '%s'" % (self._root, name)) from None
        except OSError as err:
            raise exceptions.SourceError("failed to read '%s': %s" % (path, err)) from err

class ArchivePackSource(PackSource):
    """@brief Pack source for a .pack zip archive.

    The archive may be given as a path, the raw bytes of the archive (as downloaded), an open
    binary file, or a `ZipFile` object.

    Lookup of a member name first tries an exact match. If that fails a case-insensitive match is
    tried, since descriptors written on Windows often don't match the case of the archive members.
    """

    def __init__(self, archive: Union[str, Path, bytes, IO[bytes], zipfile.ZipFile],
            name: Optional[str] = None) -> None:
        if isinstance(archive, zipfile.ZipFile):
            self._zip = archive
        else:
            if isinstance(archive, (str, Path)):
                archive = str(Path(archive).expanduser())
                if name is None:
                    name = archive
            elif isinstance(archive, (bytes, bytearray)):
                archive = io.BytesIO(archive)
            try:
                self._zip = zipfile.ZipFile(archive, 'r')
            except (zipfile.BadZipFile, OSError) as err:
                raise exceptions.SourceError("failed to open pack '%s': %s" % (name or "<memory>", err)) from err

        self._name = name or self._zip.filename or "<memory>"

        # Map of normalised member name to the real name in the archive.
        self._members: Dict[str, str] = {}
        self._members_lower: Dict[str, str] = {}
        for info in self._zip.infolist():
            if info.is_dir():
                continue
            try:
                member = sanitize_member_name(info.filename)
            except exceptions.SourceError as err:
                LOG.warning("%s: ignoring member: %s", self._name, err)
                continue
            self._members.setdefault(member, info.filename)
            self._members_lower.setdefault(member.lower(), info.filename)

    @property
    def name(self) -> str:
        return self._name

    @property
    def members(self) -> List[str]:
        """@brief Normalised names of all file members, in archive order."""
        return list(self._members.keys())

    def iter_descriptors(self) -> Iterator[str]:
        for member in self._members:
            if _is_descriptor_name(member):
                yield member

    def _read_member(self, name: str) -> bytes:
        real_name = self._members.get(name)
        if real_name is None:
            real_name = self._members_lower.get(name.lower())
            if real_name is None:
                raise exceptions.SourceError("%s has no member '%s'" % (self._name, name))
            LOG.debug("%s: using member '%s' for '%s'", self._name, real_name, name)
        try:
            return self._zip.read(real_name)
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as err:
            raise exceptions.SourceError("failed to read '%s' from %s: %s" % (name, self._name, err)) from err

    def close(self) -> None:
        self._zip.close()
