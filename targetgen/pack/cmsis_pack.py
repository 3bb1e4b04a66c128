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

from dataclasses import (dataclass, field)
from xml.etree.ElementTree import (Element, ElementTree, ParseError)
import logging
from typing import (Any, Callable, Dict, IO, List, Optional, Tuple, TypeVar)

from ..core import exceptions
from ..core.memory_map import MemoryRange

LOG = logging.getLogger(__name__)

@dataclass
class _DeviceInfo:
    """@brief Simple container class to hold XML elements describing a device."""
    element: Element
    families: List[str] = field(default_factory=list)
    processors: List[Element] = field(default_factory=list)
    memories: List[Element] = field(default_factory=list)
    algos: List[Element] = field(default_factory=list)

@dataclass(frozen=True)
class MemoryAccess:
    """@brief Access permissions of a memory region, from the `access` attribute.

    The attribute is a string of flag characters: `r` read, `w` write, `x` execute, `p`
    peripheral, `s` secure, `n` non-secure, `c` non-secure callable.
    """
    read: bool = False
    write: bool = False
    execute: bool = False
    peripheral: bool = False
    secure: bool = False
    non_secure: bool = False
    non_secure_callable: bool = False

    @classmethod
    def from_string(cls, access: str) -> "MemoryAccess":
        access = access.lower()
        return cls(
            read='r' in access,
            write='w' in access,
            execute='x' in access,
            peripheral='p' in access,
            secure='s' in access,
            non_secure='n' in access,
            non_secure_callable='c' in access,
            )

    def __str__(self) -> str:
        return "".join(c for c, f in (('r', self.read), ('w', self.write), ('x', self.execute),
            ('p', self.peripheral), ('s', self.secure), ('n', self.non_secure),
            ('c', self.non_secure_callable)) if f)

@dataclass(frozen=True)
class ProcessorInfo:
    """@brief Descriptor for a processor defined in a DFP."""
    ## The Pname attribute, or Dcore if not Pname was provided.
    name: str
    ## The Dcore attribute, e.g. "Cortex-M4".
    core: str
    ## Total number of cores in an MPCore.
    units: int = 1

@dataclass(frozen=True)
class MemoryInfo:
    """@brief A `<memory>` element that applies to a device."""
    name: str
    start: int
    size: int
    access: MemoryAccess
    is_default: bool = False
    is_startup: bool = False
    pname: Optional[str] = None

    @property
    def range(self) -> MemoryRange:
        return MemoryRange(self.start, length=self.size)

@dataclass(frozen=True)
class AlgorithmInfo:
    """@brief An `<algorithm>` element that applies to a device."""
    ## Path of the FLM file, relative to the descriptor.
    file_name: str
    start: int
    size: int
    is_default: bool = False
    ram_start: Optional[int] = None
    ram_size: Optional[int] = None
    pname: Optional[str] = None

    @property
    def range(self) -> MemoryRange:
        return MemoryRange(self.start, length=self.size)

def _get_part_number_from_element(element: Element) -> str:
    """@brief Extract the part number from a device or variant XML element."""
    assert element.tag in ("device", "variant")
    # Both device and variant may have 'Dname' according to the current PDSC schema.
    if 'Dname' in element.attrib:
        return element.attrib['Dname']
    elif element.tag == "variant":
        return element.attrib['Dvariant']
    else:
        raise KeyError("device element has no Dname attribute")

def _get_bool_attribute(elem: Element, name: str, default: bool = False) -> bool:
    """@brief Extract an XML attribute with a boolean value.

    Supports "true"/"false" or "1"/"0" as the attribute values. Leading and trailing whitespace
    is stripped, and the comparison is case-insensitive.

    @param elem ElementTree.Element object.
    @param name String for the attribute name.
    @param default An optional default value if the attribute is missing. If not provided,
        the default is False.
    """
    if name not in elem.attrib:
        return default
    else:
        value = elem.attrib[name].strip().lower()
        if value in ("true", "1"):
            return True
        elif value in ("false", "0"):
            return False
        else:
            return default

def _get_int_attribute(elem: Element, name: str, default: Optional[int] = None) -> int:
    """@brief Retrieve an XML element's attribute value as an integer.
    @exception KeyError The attribute is missing and no default was provided.
    @exception ValueError The attribute cannot be converted to an integer or is negative.
    """
    if name not in elem.attrib:
        if default is None:
            raise KeyError("<%s> is missing required '%s' attribute" % (elem.tag, name))
        return default
    try:
        value = int(elem.attrib[name].strip(), base=0)
    except ValueError:
        raise ValueError("<%s> '%s' attribute is invalid ('%s')" % (elem.tag, name, elem.attrib[name])) from None
    if value < 0:
        raise ValueError("<%s> '%s' attribute is negative ('%s')" % (elem.tag, name, elem.attrib[name]))
    return value

class CmsisPackDescription:
    """@brief Parser for the PDSC XML file describing a CMSIS-Pack.

    The XML element hierarchy that defines devices is as follows.
    ```
    family [-> subFamily] -> device [-> variant]
    ```

    Elements describing processors, memories, and algorithms are collected from each level of the
    hierarchy, with inner elements overriding outer ones. A CmsisPackDevice is created for every
    `<variant>`, and for every `<device>` that has no variants.
    """

    def __init__(self, pdsc_file: IO[bytes], file_name: Optional[str] = None) -> None:
        """@brief Constructor.

        @param self This object.
        @param pdsc_file A file-like object for the .pdsc.
        @param file_name Name of the descriptor, used in log messages.
        @exception DescriptorError The file is not well-formed XML or is not a pack description.
        """
        self._file_name = file_name or getattr(pdsc_file, 'name', None) or "<pdsc>"

        # Convert PDSC into an ElementTree.
        try:
            self._pdsc = ElementTree(file=pdsc_file)
        except ParseError as err:
            raise exceptions.DescriptorError("%s: malformed XML (%s)" % (self._file_name, err)) from err
        root = self._pdsc.getroot()
        if root is None or root.tag != 'package':
            raise exceptions.DescriptorError("%s: root element is not <package>" % self._file_name)

        self._state_stack: List[_DeviceInfo] = []
        self._devices: List["CmsisPackDevice"] = []

        # Remember if we have already warned about overlapping memory regions
        # so we can limit these to one warning per DFP
        self._warned_overlapping_memory_regions = False

        # Extract devices.
        for family in self._pdsc.iter('family'):
            self._parse_devices(family)

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def pack_name(self) -> Optional[str]:
        """@brief Name of the CMSIS-Pack.
        @return Contents of the required <name> element, or None if missing.
        """
        return self._pdsc.findtext('name')

    @property
    def vendor(self) -> Optional[str]:
        """@brief Contents of the <vendor> element, or None if missing."""
        return self._pdsc.findtext('vendor')

    @property
    def version(self) -> Optional[str]:
        """@brief Version of the most recent release, or None if there are no releases.

        Releases are listed newest first.
        """
        release = self._pdsc.find('releases/release')
        return release.attrib.get('version') if release is not None else None

    @property
    def devices(self) -> List["CmsisPackDevice"]:
        """@brief A list of CmsisPackDevice objects for every part number defined in the pack."""
        return self._devices

    def _parse_devices(self, parent: Element) -> None:
        # Extract device description elements we care about.
        newState = _DeviceInfo(element=parent)
        children: List[Element] = []
        for elem in parent:
            if elem.tag == 'memory':
                newState.memories.append(elem)
            elif elem.tag == 'processor':
                newState.processors.append(elem)
            elif elem.tag == 'algorithm':
                newState.algos.append(elem)
            # Save any elements that we will recurse into.
            elif elem.tag in ('subFamily', 'device', 'variant'):
                children.append(elem)

        # Push the new device description state onto the stack.
        self._state_stack.append(newState)

        # Create a device object if this element defines one. A device with variants is only
        # an abstract parent for the variants.
        has_variants = any(elem.tag == 'variant' for elem in children)
        if parent.tag == 'variant' or (parent.tag == 'device' and not has_variants):
            # Build device info from elements applying to this device.
            deviceInfo = _DeviceInfo(element=parent,
                                        families=self._extract_families(),
                                        processors=self._extract_processors(),
                                        memories=self._extract_memories(),
                                        algos=self._extract_algos(),
                                        )
            try:
                self._devices.append(CmsisPackDevice(self, deviceInfo))
            except (KeyError, ValueError) as err:
                LOG.warning("%s: skipping <%s> element: %s", self._file_name, parent.tag, err)

        # Recursively process subelements.
        for elem in children:
            self._parse_devices(elem)

        self._state_stack.pop()

    def _extract_families(self) -> List[str]:
        """@brief Generate list of family names for a device.

        The first item is the vendor, followed by the family and optional subfamily.
        """
        families = []
        for state in self._state_stack:
            elem = state.element
            if elem.tag == 'family':
                families += [elem.attrib.get('Dvendor', ''), elem.attrib.get('Dfamily', '')]
            elif elem.tag == 'subFamily':
                families += [elem.attrib.get('DsubFamily', '')]
        return families

    ## Typevar used for _extract_items().
    _V = TypeVar('_V')

    def _extract_items(
                self,
                state_info_name: str,
                filter: Callable[[Dict[Any, _V], Element], None]
            ) -> List[_V]:
        """@brief Generic extractor utility.

        Iterates over saved elements for the specified device state info for each level of the
        device state stack, from outer to inner, calling the provided filter callback each
        iteration. A dictionary object is created and repeatedly passed to the filter callback, so
        state can be stored across calls to the filter.

        The filter callback extracts some identifying information from the element it is given
        and uses that as a key in the dictionary. When the filter is called for more deeply
        nested elements, those elements will override any previously examined elements with the
        same identifier.

        @return All values from the dictionary.
        """
        map = {}
        for state in self._state_stack:
            for elem in getattr(state, state_info_name):
                try:
                    filter(map, elem)
                except (KeyError, ValueError) as err:
                    LOG.debug("error parsing %s: %s", self._file_name, err)
        return list(map.values())

    def _inherit_attributes(self, to_elem: Element, from_elem: Optional[Element]) -> Element:
        """@brief Add attributes missing from an element but present in another.

        @param self
        @param to_elem The Element to which inherited attributes will be added.
        @param from_elem The Element from which attributes should be inherited. May be None, in which case
            `to_elem` is returned unmodified.
        @return The `to_elem` parameter is returned.
        """
        if from_elem is not None:
            inherited = {
                k: v
                for k, v in from_elem.attrib.items()
                if k not in to_elem.attrib
            }
            to_elem.attrib.update(inherited)
        return to_elem

    def _extract_processors(self) -> List[Element]:
        """@brief Extract processor elements.

        Attributes:
        - `Pname`: optional str for single-core devices
        - `Punits`: optional int, number of cores for MPCore cluster
        - `Dcore`: str, CPU type
        """
        def filter(map: Dict, elem: Element) -> None:
            # Pname attribute is optional if there is only one CPU.
            pname = elem.attrib.get('Pname')
            map[pname] = self._inherit_attributes(elem, map.get(pname))

        return self._extract_items('processors', filter)

    def _extract_memories(self) -> List[Element]:
        """@brief Extract memory elements.

        The unique identifier is a bi-tuple of the memory's name, which is either the 'name' or 'id' attribute,
        in that order, plus the pname. If neither attribute exists, the region base and size are turned into
        a string.

        An inner region that overlaps an outer region replaces it.

        Attributes:
        - `Pname`: optional str
        - `id`: optional str, deprecated in favour of `name`
        - `name`: optional str, overrides `id` if both are present
        - `access`: optional str
        - `start`: int
        - `size`: int
        - `default`: optional bool
        - `startup`: optional bool
        """
        def get_start_and_size(elem: Element) -> Tuple[int, int]:
            return (_get_int_attribute(elem, 'start'), _get_int_attribute(elem, 'size'))

        def filter(map: Dict, elem: Element) -> None:
            start, size = get_start_and_size(elem)
            if 'name' in elem.attrib: # 'name' takes precedence over 'id'.
                name = elem.attrib['name']
            elif 'id' in elem.attrib:
                name = elem.attrib['id']
            else:
                # Use the start and size for a name.
                name = "%08x:%08x" % (start, size)

            pname = elem.attrib.get('Pname', None)
            info = (name, pname)

            if info in map:
                del map[info]
            new_range = MemoryRange(start, length=size)
            for k in list(map.keys()):
                prev_start, prev_size = get_start_and_size(map[k])
                if new_range.intersects_range(MemoryRange(prev_start, length=prev_size)):
                    if (pname == k[1]) and not self._warned_overlapping_memory_regions:
                        LOG.warning("Overlapping memory regions in file %s (%s); deleting outer region. "
                                    "Further warnings will be suppressed for this file.",
                                    self._file_name, self._current_part_number())
                        self._warned_overlapping_memory_regions = True
                    del map[k]

            map[info] = elem

        return self._extract_items('memories', filter)

    def _extract_algos(self) -> List[Element]:
        """@brief Extract algorithm elements.

        The unique identifier is the algorithm's memory address range.

        Any algorithm elements with a 'style' attribute not set to 'Keil' (case-insensitive) are
        skipped.

        Attributes:
        - `Pname`: optional str
        - `name`: str
        - `start`: int
        - `size`: int
        - `RAMstart`: optional int
        - `RAMsize`: optional int
        - `default`: optional bool
        - `style`: optional str
        """
        def filter(map: Dict, elem: Element) -> None:
            # Only Keil FLM style flash algorithms are supported.
            if ('style' in elem.attrib) and (elem.attrib['style'].lower() != 'keil'):
                LOG.debug("%s: skipping non-Keil flash algorithm", self._file_name)
                return

            # Both start and size are required.
            memrange = (_get_int_attribute(elem, 'start'), _get_int_attribute(elem, 'size'))

            # An algo with the same range as an existing algo will override the previous.
            map[memrange] = elem

        return self._extract_items('algos', filter)

    def _current_part_number(self) -> str:
        try:
            return _get_part_number_from_element(self._state_stack[-1].element)
        except KeyError:
            return "unknown"

class CmsisPackDevice:
    """@brief A device defined in a CMSIS Device Family Pack.

    Converts the XML elements that describe the device into plain records. An instance can
    represent either a `<device>` or a `<variant>` element of the PDSC.
    """

    def __init__(self, pdsc: CmsisPackDescription, device_info: _DeviceInfo) -> None:
        """@brief Constructor.
        @param self
        @param pdsc The CmsisPackDescription object that contains this device.
        @param device_info A _DeviceInfo object with the XML elements that describe this device.
        @exception KeyError The device element has no name.
        """
        self._pdsc = pdsc
        self._info = device_info
        self._part: str = _get_part_number_from_element(device_info.element)
        self._processors = self._build_processors()
        self._memories = self._build_memories()
        self._algorithms = self._build_algorithms()

    @property
    def pack_description(self) -> CmsisPackDescription:
        """@brief The CmsisPackDescription object that defines this device."""
        return self._pdsc

    @property
    def part_number(self) -> str:
        """@brief Part number for this device.

        This value comes from either the `Dname` or `Dvariant` attribute, depending on whether the
        device was created from a `<device>` or `<variant>` element.
        """
        return self._part

    @property
    def vendor(self) -> str:
        """@brief Vendor or manufacturer name, without the `:NN` vendor ID suffix."""
        return self._info.families[0].split(':')[0] if self._info.families else ""

    @property
    def families(self) -> List[str]:
        """@brief List of families the device belongs to, ordered most generic to least."""
        return self._info.families[1:]

    @property
    def family(self) -> str:
        """@brief The `Dfamily` name."""
        return self._info.families[1] if len(self._info.families) > 1 else ""

    @property
    def sub_family(self) -> Optional[str]:
        return self._info.families[2] if len(self._info.families) > 2 else None

    @property
    def processors(self) -> List[ProcessorInfo]:
        return self._processors

    @property
    def memories(self) -> List[MemoryInfo]:
        """@brief Memory regions in document order, outer elements first."""
        return self._memories

    @property
    def algorithms(self) -> List[AlgorithmInfo]:
        return self._algorithms

    def _build_processors(self) -> List[ProcessorInfo]:
        """@brief Extract processor definitions."""
        processors: List[ProcessorInfo] = []
        for proc in self._info.processors:
            if 'Dcore' not in proc.attrib:
                LOG.warning("%s (%s): <processor> is missing 'Dcore' attribute",
                    self._pdsc.file_name, self.part_number)
                continue
            core = proc.attrib['Dcore']
            pname = proc.attrib.get('Pname', core)
            try:
                punits = _get_int_attribute(proc, 'Punits', 1)
            except ValueError as err:
                LOG.warning("%s (%s): %s", self._pdsc.file_name, self.part_number, err)
                punits = 1

            if any(p.name == pname for p in processors):
                LOG.warning("%s (%s): <processor> element has duplicate name '%s'",
                    self._pdsc.file_name, self.part_number, pname)
                continue
            processors.append(ProcessorInfo(name=pname, core=core, units=punits))
        return processors

    def _build_memories(self) -> List[MemoryInfo]:
        """@brief Create memory records for the device.

        Regions defined with the legacy `id` attribute have no `access` attribute. Their
        permissions are inferred from the id: `rw` if it contains "RAM", otherwise `rx`.
        """
        memories: List[MemoryInfo] = []
        for elem in self._info.memories:
            try:
                # Get the region name and access permissions.
                if 'name' in elem.attrib:
                    name = elem.attrib['name']
                    access = elem.attrib.get('access', '')
                elif 'id' in elem.attrib:
                    name = elem.attrib['id']
                    access = elem.attrib.get('access', 'rw' if 'RAM' in name.upper() else 'rx')
                else:
                    continue

                memories.append(MemoryInfo(
                    name=name,
                    start=_get_int_attribute(elem, 'start'),
                    size=_get_int_attribute(elem, 'size'),
                    access=MemoryAccess.from_string(access),
                    is_default=_get_bool_attribute(elem, 'default'),
                    is_startup=_get_bool_attribute(elem, 'startup'),
                    pname=elem.attrib.get('Pname'),
                    ))
            except (KeyError, ValueError) as err:
                # Ignore errors.
                LOG.debug("ignoring error parsing memories for device %s: %s", self.part_number, err)
        return memories

    def _build_algorithms(self) -> List[AlgorithmInfo]:
        algos: List[AlgorithmInfo] = []
        for elem in self._info.algos:
            try:
                ram_start = _get_int_attribute(elem, 'RAMstart') if 'RAMstart' in elem.attrib else None
                ram_size = _get_int_attribute(elem, 'RAMsize') if 'RAMsize' in elem.attrib else None
                algos.append(AlgorithmInfo(
                    file_name=elem.attrib['name'],
                    start=_get_int_attribute(elem, 'start'),
                    size=_get_int_attribute(elem, 'size'),
                    is_default=_get_bool_attribute(elem, 'default'),
                    ram_start=ram_start,
                    ram_size=ram_size,
                    pname=elem.attrib.get('Pname'),
                    ))
            except (KeyError, ValueError) as err:
                LOG.debug("ignoring error parsing algorithms for device %s: %s", self.part_number, err)
        return algos

    def __repr__(self):
        return "<%s@%x %s>" % (self.__class__.__name__, id(self), self.part_number)
