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

"""Unit tests for builder preconditions."""

import os
import stat

import pytest

from core.builds.exceptions import ScriptPermissionError
from infra.process import ensure_scripts_executable


def _mode(path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)


class TestEnsureScriptsExecutable:
    """Tests for ensure_scripts_executable."""

    def test_hook_scripts_made_executable(self, tmp_path):
        """Files below *.d directories get mode 0755; others are untouched."""
        install_d = tmp_path / "image-agent" / "install.d"
        install_d.mkdir(parents=True)
        hook = install_d / "50-install-agent"
        hook.write_text("#!/bin/sh\n")
        hook.chmod(0o644)
        readme = tmp_path / "image-agent" / "README.rst"
        readme.write_text("docs\n")
        readme.chmod(0o644)

        touched = ensure_scripts_executable(str(tmp_path))

        assert touched == [str(hook)]
        assert _mode(hook) == 0o755
        assert _mode(readme) == 0o644

    def test_custom_suffix(self, tmp_path):
        """The directory suffix is configurable."""
        hooks = tmp_path / "el" / "hooks"
        hooks.mkdir(parents=True)
        (hooks / "run").write_text("#!/bin/sh\n")

        assert ensure_scripts_executable(str(tmp_path), suffix="hooks") == [str(hooks / "run")]

    def test_missing_directory(self, tmp_path):
        """A missing elements directory raises."""
        with pytest.raises(ScriptPermissionError):
            ensure_scripts_executable(str(tmp_path / "nope"))
