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

import os
import re
from setuptools import (setup, find_packages)
from pathlib import Path

# Get the directory containing this setup.py. Even though full paths are used below, we must
# chdir so that find_packages() sees the right tree.
SCRIPT_DIR = Path(__file__).parent.resolve()
os.chdir(SCRIPT_DIR)

# Read the version from the package without importing it.
version_match = re.search(r'^__version__ = "([^"]+)"',
        (SCRIPT_DIR / "targetgen" / "__init__.py").read_text(), re.MULTILINE)
if version_match is None:
    raise RuntimeError("unable to find __version__ in targetgen/__init__.py")

setup(
    name="targetgen",
    version=version_match.group(1),
    description="Generate debug target definitions from CMSIS-Packs",
    license="Apache-2.0",
    python_requires=">=3.7",
    packages=find_packages(include=["targetgen", "targetgen.*"]),
    install_requires=[
        "colorama<1.0",
        "intervaltree>=3.0.2,<4.0",
        "prettytable>=2.0,<4.0",
        "pyelftools<1.0",
        "pyyaml>=6.0,<7.0",
        "requests>=2.20,<3.0",
        ],
    extras_require={
        "test": [
            "pytest>=6.2",
            ],
        },
    entry_points={
        "console_scripts": [
            "targetgen = targetgen.__main__:main",
            ],
        },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Embedded Systems",
        ],
)
