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
from pathlib import Path
from typing import (Dict, List, Optional, Sequence, Union)

from .core import exceptions
from .core.family import (Chip, FamilyRegistry, FlashAlgorithm)
from .core.memory_map import (FlashRegion, MemoryRegion, RamRegion)
from .core.options_manager import OptionsManager
from .core.outcome import (Outcome, failures)
from .pack.catalog import RemoteCatalogClient
from .pack.cmsis_pack import (CmsisPackDescription, CmsisPackDevice, MemoryInfo)
from .pack.flash_algo import extract_flash_algo
from .pack.source import (ArchivePackSource, DirectoryPackSource, PackSource)

LOG = logging.getLogger(__name__)

## Map from the `Dcore` attribute of a processor to the core identifier used in output records.
CORE_TYPE_MAP: Dict[str, str] = {
    'Cortex-M0': 'M0',
    'Cortex-M0+': 'M0',
    'Cortex-M3': 'M3',
    'Cortex-M4': 'M4',
    'Cortex-M7': 'M7',
    'Cortex-M33': 'M33',
    }

def _lookup_core_type(device: CmsisPackDevice) -> str:
    """@exception UnsupportedCoreError"""
    cores = [p.core for p in device.processors]
    if not cores:
        raise exceptions.UnsupportedCoreError("no processor is defined")
    if len(cores) > 1:
        raise exceptions.UnsupportedCoreError("asymmetric cores (%s) are not supported" % ", ".join(cores))
    try:
        return CORE_TYPE_MAP[cores[0]]
    except KeyError:
        raise exceptions.UnsupportedCoreError("core '%s' is not supported" % cores[0]) from None

def map_core_type(device: CmsisPackDevice) -> str:
    """@brief Return the output core identifier for a device.

    An unsupported core is logged and produces an empty identifier.
    """
    try:
        return _lookup_core_type(device)
    except exceptions.UnsupportedCoreError as err:
        LOG.warning("%s: %s", device.part_number, err)
        return ""

def _is_ram(memory: MemoryInfo) -> bool:
    a = memory.access
    return memory.is_default and a.read and a.write and not a.execute

def _is_flash(memory: MemoryInfo) -> bool:
    a = memory.access
    return memory.is_default and a.read and a.execute and not a.write

def _flash_properties_algo(memory: MemoryInfo, algorithms: Sequence[FlashAlgorithm]) -> Optional[FlashAlgorithm]:
    covering = [a for a in algorithms if a.geometry.address_range.contains_address(memory.start)]
    for algo in covering:
        if algo.is_default:
            return algo
    if covering:
        return covering[0]
    if algorithms:
        return algorithms[0]
    return None

def select_memory_regions(device: CmsisPackDevice, algorithms: Sequence[FlashAlgorithm]) -> List[MemoryRegion]:
    """@brief Choose the RAM and flash regions of a device.

    The RAM region is the first default region with read and write but not execute access. The
    flash region is the first default region with read and execute but not write access. A slot
    with no matching region is left out of the returned list.

    The flash region's page size, sector size, and erased byte value are taken from the default
    algorithm that covers the region's start address. Failing that, from the first covering
    algorithm, then the first algorithm.
    """
    regions: List[MemoryRegion] = []

    ram = next((m for m in device.memories if _is_ram(m)), None)
    if ram is not None:
        regions.append(RamRegion(ram.range, is_boot_memory=ram.is_startup))
    else:
        LOG.debug("%s: no default RAM region", device.part_number)

    flash = next((m for m in device.memories if _is_flash(m)), None)
    if flash is not None:
        algo = _flash_properties_algo(flash, algorithms)
        if algo is not None:
            geometry = algo.geometry
            offset = flash.start - geometry.start
            regions.append(FlashRegion(flash.range,
                    is_boot_memory=flash.is_startup,
                    page_size=geometry.page_size,
                    sector_size=geometry.sector_size_at(offset if offset >= 0 else 0),
                    erased_byte_value=geometry.erased_byte_value))
        else:
            regions.append(FlashRegion(flash.range, is_boot_memory=flash.is_startup))
    else:
        LOG.debug("%s: no default flash region", device.part_number)

    return regions

class DeviceAggregator:
    """@brief Merges the devices of parsed descriptors into a family registry.

    Each device becomes a Chip in the family named by its `Dfamily` attribute. Families are
    created on first use. The flash algorithms of a device are extracted from the pack and
    added to the family, where the first algorithm with a given name is kept.

    Failures to extract an algorithm only drop that algorithm. The result of each unit of work is
    returned as a list of Outcome objects.
    """

    def __init__(self, registry: Optional[FamilyRegistry] = None,
            options: Optional[OptionsManager] = None) -> None:
        self._registry = registry if (registry is not None) else FamilyRegistry()
        self._options = options if (options is not None) else OptionsManager()

    @property
    def registry(self) -> FamilyRegistry:
        return self._registry

    def handle_package(self, description: CmsisPackDescription, source: PackSource,
            descriptor_name: str) -> List[Outcome]:
        """@brief Process every device of a descriptor, in order of part number.

        @param self
        @param description The parsed descriptor.
        @param source Pack source from which the descriptor's flash algorithms are read.
        @param descriptor_name Member name of the descriptor in _source_. Algorithm paths are
            relative to its directory.
        """
        outcomes: List[Outcome] = []
        for device in sorted(description.devices, key=lambda d: d.part_number):
            outcomes += self.handle_device(device, source, descriptor_name)
        return outcomes

    def _extract_algorithms(self, device: CmsisPackDevice, source: PackSource,
            descriptor_name: str, outcomes: List[Outcome]) -> List[FlashAlgorithm]:
        algorithms: List[FlashAlgorithm] = []
        for info in device.algorithms:
            unit = "%s: %s" % (device.part_number, info.file_name)
            try:
                with source.open(info.file_name, relative_to=descriptor_name) as algo_file:
                    algo = extract_flash_algo(algo_file, info.file_name, info.is_default,
                            log_info=self._options.get('debug.log_flm_info'))
            except (exceptions.SourceError, exceptions.ExtractionError) as err:
                LOG.warning("%s: failed to extract flash algorithm: %s", device.part_number, err)
                outcomes.append(Outcome(unit, err))
                continue
            algorithms.append(algo)
            outcomes.append(Outcome(unit))
        return algorithms

    def handle_device(self, device: CmsisPackDevice, source: PackSource,
            descriptor_name: str) -> List[Outcome]:
        """@brief Extract, map, and merge a single device."""
        outcomes: List[Outcome] = []
        algorithms = self._extract_algorithms(device, source, descriptor_name, outcomes)
        regions = select_memory_regions(device, algorithms)

        if self._options.get('generate.require_memory_map'):
            missing = [kind for kind, present in (("RAM", any(r.is_ram for r in regions)),
                    ("flash", any(r.is_flash for r in regions))) if not present]
            if missing:
                err = exceptions.MissingMemoryRegionError("no default %s region" % " or ".join(missing))
                LOG.warning("%s: skipping device: %s", device.part_number, err)
                outcomes.append(Outcome(device.part_number, err))
                return outcomes

        core = map_core_type(device)
        family = self._registry.get_or_create(device.family, core, device.vendor or None)

        algo_names: List[str] = []
        for algo in algorithms:
            family.add_algorithm(algo)
            if algo.name not in algo_names:
                algo_names.append(algo.name)

        chip = Chip(name=device.part_number, memory_map=regions, flash_algorithms=algo_names)
        if family.add_variant(chip):
            outcomes.append(Outcome(device.part_number))
        else:
            outcomes.append(Outcome(device.part_number,
                    exceptions.MappingError("duplicate device in family %s" % family.name)))
        return outcomes

def _handle_descriptor(source: PackSource, descriptor_name: str, aggregator: DeviceAggregator) -> List[Outcome]:
    with source.open(descriptor_name) as pdsc_file:
        description = CmsisPackDescription(pdsc_file, file_name="%s:%s" % (source.name, descriptor_name))
    LOG.info("%s: %d devices", description.file_name, len(description.devices))
    return aggregator.handle_package(description, source, descriptor_name)

def visit_dirs(path: Union[str, Path], aggregator: DeviceAggregator) -> List[Outcome]:
    """@brief Process every descriptor found in a directory tree.

    Errors reading the tree or parsing a descriptor are raised.
    """
    source = DirectoryPackSource(path)
    outcomes: List[Outcome] = []
    for descriptor_name in source.iter_descriptors():
        LOG.info("Found .pdsc file: %s", Path(source.name, descriptor_name))
        outcomes += _handle_descriptor(source, descriptor_name, aggregator)
    return outcomes

def visit_file(path: Union[str, Path], aggregator: DeviceAggregator) -> List[Outcome]:
    """@brief Process a single .pack archive.

    Errors opening the archive, locating or parsing its descriptor are raised.
    """
    LOG.info("Trying to open pack file: %s", path)
    with ArchivePackSource(path) as source:
        return _handle_descriptor(source, source.find_descriptor(), aggregator)

def visit_path(path: Union[str, Path], aggregator: DeviceAggregator) -> List[Outcome]:
    """@brief Process a local directory or pack archive."""
    path = Path(path).expanduser()
    if path.is_dir():
        return visit_dirs(path, aggregator)
    elif path.exists():
        return visit_file(path, aggregator)
    else:
        raise exceptions.SourceError("pack source '%s' does not exist" % path)

def visit_arm_files(client: RemoteCatalogClient, aggregator: DeviceAggregator,
        limit: Optional[int] = None) -> List[Outcome]:
    """@brief Process the packs listed in the remote pack index.

    Failure to fetch the index is raised. Any failure while handling a single pack is logged and
    recorded, and processing continues with the next pack.

    @param client Catalog client.
    @param aggregator Aggregator into which devices are merged.
    @param limit If not None, only the first _limit_ packs of the index are processed.
    """
    refs = client.fetch_index()
    if limit is not None:
        refs = refs[:limit]

    outcomes: List[Outcome] = []
    for pack in client.iter_packs(refs):
        if pack.source is None or pack.descriptor is None:
            outcomes.append(pack.outcome)
            continue
        with pack.source:
            try:
                pack_outcomes = _handle_descriptor(pack.source, pack.descriptor, aggregator)
            except exceptions.Error as err:
                LOG.error("Something went wrong while handling pack %s: %s", pack.ref.identifier, err)
                outcomes.append(Outcome(pack.ref.identifier, err))
                continue
            except Exception as err:
                LOG.error("Something went wrong while handling pack %s: %s", pack.ref.identifier, err,
                        exc_info=True)
                outcomes.append(Outcome(pack.ref.identifier, err))
                continue
        outcomes.append(pack.outcome)
        outcomes += pack_outcomes
    return outcomes

def log_summary(outcomes: Sequence[Outcome]) -> None:
    """@brief Log the number of failed units and each failure."""
    failed = failures(outcomes)
    LOG.info("Processed %d units, %d failed", len(outcomes), len(failed))
    for outcome in failed:
        LOG.info("  %s", outcome)
