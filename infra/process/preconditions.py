# Copyright 2026 Dell Inc. or its subsidiaries. All Rights Reserved.
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

"""Preconditions checked before the image builder is started."""

import logging
import os
from typing import List

from core.builds.exceptions import ScriptPermissionError

logger = logging.getLogger(__name__)

SCRIPT_MODE = 0o755


def ensure_scripts_executable(elements_dir: str, suffix: str = ".d") -> List[str]:
    """Make every element hook script executable.

    Hook scripts live in directories whose name ends in ``suffix``
    (``install.d``, ``post-install.d``, ...). Their mode is set to 0755 on
    every run, since checkouts and copies tend to lose the exec bit.

    Args:
        elements_dir: Root of the local elements tree.
        suffix: Directory name suffix marking hook directories.

    Returns:
        Paths whose mode was set.

    Raises:
        ScriptPermissionError: If the directory is missing or a chmod fails.
    """
    if not os.path.isdir(elements_dir):
        raise ScriptPermissionError(f"Elements directory not found: {elements_dir}")

    touched: List[str] = []
    for dirpath, _dirnames, filenames in os.walk(elements_dir):
        if not os.path.basename(dirpath).endswith(suffix):
            continue
        for filename in filenames:
            path = os.path.join(dirpath, filename)
            try:
                os.chmod(path, SCRIPT_MODE)
            except OSError as exc:
                raise ScriptPermissionError(f"failed to chmod {path}: {exc}") from exc
            touched.append(path)

    logger.debug("Element scripts made executable: %d", len(touched))
    return touched
