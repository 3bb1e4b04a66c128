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

import pytest

from flm_builder import build_flm
from pack_builder import (make_pack, make_pdsc)

@pytest.fixture(scope='function')
def flm_data():
    return build_flm()

@pytest.fixture(scope='function')
def pack_members(flm_data):
    return {
            "Test.Test_DFP.pdsc": make_pdsc(),
            "Flash/Algo.FLM": flm_data,
        }

@pytest.fixture(scope='function')
def pack_data(pack_members):
    return make_pack(pack_members)
