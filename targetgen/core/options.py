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

from typing import (Any, Dict, List, NamedTuple, Tuple, Union)

class OptionInfo(NamedTuple):
    name: str
    type: Union[type, Tuple[type, ...]]
    default: Any
    help: str

## @brief Definitions of the builtin options.
BUILTIN_OPTIONS = [
    OptionInfo('catalog.download_base', str, "https://keilpack.azureedge.net/pack/",
        "Base URL against which relative pack locations from the index are resolved."),
    OptionInfo('catalog.index_url', str, "https://www.keil.com/pack/index.pidx",
        "URL of the published CMSIS-Pack index."),
    OptionInfo('catalog.timeout', float, 60.0,
        "Timeout in seconds for each HTTP request made to the pack server. Set to 0 to wait forever."),
    OptionInfo('catalog.user_agent', str, "targetgen",
        "Value of the User-Agent header sent with HTTP requests. Some pack servers reject unknown agents."),
    OptionInfo('config_file', str, None,
        "Path to custom config file."),
    OptionInfo('debug.log_flm_info', bool, False,
        "Log details of extracted .FLM flash algos."),
    OptionInfo('debug.traceback', bool, False,
        "Print tracebacks for exceptions."),
    OptionInfo('generate.require_memory_map', bool, False,
        "Skip any device for which no default RAM or flash region can be selected, instead of "
        "emitting it with a partial memory map."),
    OptionInfo('no_config', bool, False,
        "Do not use default config file."),
    ]

## @brief The runtime dictionary of options.
OPTIONS_INFO: Dict[str, OptionInfo] = {}

def add_option_set(options: List[OptionInfo]) -> None:
    """@brief Merge a list of OptionInfo objects into OPTIONS_INFO."""
    OPTIONS_INFO.update({oi.name: oi for oi in options})

# Start with only builtin options.
add_option_set(BUILTIN_OPTIONS)
