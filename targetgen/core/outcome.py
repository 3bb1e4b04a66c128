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

from typing import (Iterable, List, NamedTuple, Optional)

class Outcome(NamedTuple):
    """@brief Result of processing one unit of work.

    A unit is a pack, a descriptor, a device, or a flash algorithm, identified by a
    human-readable string such as "Keil.STM32F4xx_DFP.2.15.0" or "STM32F407VG: Flash/STM32F4xx_1024.FLM".
    """
    unit: str
    ## The exception that caused the unit to fail, or None on success.
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def __str__(self) -> str:
        if self.succeeded:
            return "%s: ok" % self.unit
        return "%s: %s" % (self.unit, self.error)

def failures(outcomes: Iterable[Outcome]) -> List[Outcome]:
    """@brief Return the failed outcomes from a list."""
    return [o for o in outcomes if not o.succeeded]
