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

import base64
import logging
import re
from pathlib import Path
from typing import (Any, Dict, List, Union)

import yaml

from .core import exceptions
from .core.family import (ChipFamily, FamilyRegistry, FlashAlgorithm)

LOG = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r'[^A-Za-z0-9._+-]+')

def family_file_name(name: str) -> str:
    """@brief Output file name for a family.

    Runs of characters other than letters, digits, `.`, `_`, `+`, and `-` are replaced with an
    underscore.
    """
    safe = _UNSAFE_CHARS_RE.sub('_', name).strip('._')
    return (safe or "unnamed") + ".yaml"

def algorithm_to_dict(algo: FlashAlgorithm) -> Dict[str, Any]:
    geometry = algo.geometry
    result: Dict[str, Any] = {
        'name': algo.name,
        'description': algo.description,
        'default': algo.is_default,
        'instructions': base64.b64encode(algo.code_blob).decode('ascii'),
        }
    for name, offset in algo.function_table.items():
        if offset is not None:
            result['pc_' + name] = offset
    result.update({
        'data_section_offset': algo.data_section_offset,
        'ram_usage': algo.ram_usage,
        'flash_properties': {
            'address_range': geometry.address_range.to_dict(),
            'page_size': geometry.page_size,
            'erased_byte_value': geometry.erased_byte_value,
            'program_page_timeout': geometry.program_page_timeout,
            'erase_sector_timeout': geometry.erase_sector_timeout,
            'sectors': [{'size': s.size, 'address': s.address} for s in geometry.sectors],
            },
        })
    return result

def family_to_dict(family: ChipFamily) -> Dict[str, Any]:
    """@brief Convert a family to plain data in a fixed key order."""
    variants: List[Dict[str, Any]] = []
    for chip in family.variants:
        variants.append({
            'name': chip.name,
            'memory_map': [region.to_dict() for region in chip.memory_map],
            'flash_algorithms': list(chip.flash_algorithms),
            })
    result: Dict[str, Any] = {'name': family.name}
    if family.manufacturer is not None:
        result['manufacturer'] = family.manufacturer
    result['core'] = family.core
    result['variants'] = variants
    result['flash_algorithms'] = [algorithm_to_dict(algo) for algo in family.flash_algorithms]
    return result

def write_family(family: ChipFamily, out_dir: Union[str, Path]) -> Path:
    """@brief Write one family record to a YAML file in a directory.
    @return Path of the written file.
    @exception Error The file could not be written.
    """
    out_dir = Path(out_dir)
    path = out_dir / family_file_name(family.name)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        with path.open('w', encoding='utf-8') as out_file:
            yaml.safe_dump(family_to_dict(family), out_file, sort_keys=False)
    except OSError as err:
        raise exceptions.Error("failed to write %s: %s" % (path, err)) from err
    LOG.debug("Wrote %s", path)
    return path

def write_families(registry: FamilyRegistry, out_dir: Union[str, Path]) -> List[Path]:
    """@brief Write every family of the registry, in registry order.

    If two family names map to the same file name, the later family is skipped with a warning.
    """
    paths: List[Path] = []
    for family in registry:
        path = Path(out_dir) / family_file_name(family.name)
        if path in paths:
            LOG.warning("family %s would overwrite %s; skipping", family.name, path)
            continue
        paths.append(write_family(family, out_dir))
    LOG.info("Wrote %d family files to %s", len(paths), out_dir)
    return paths
