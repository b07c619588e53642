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

"""YAML-backed distro configuration repository."""

import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from core.builds.entities import DistroConfig
from core.builds.exceptions import DistroConfigError
from core.builds.repositories import DistroConfigRepository

logger = logging.getLogger(__name__)

DEFAULT_ALIASES: Dict[str, str] = {
    "debian": "debian-12",
    "ubuntu": "ubuntu-24",
}


class YamlDistroConfigRepository(DistroConfigRepository):
    """Loads ``<config_dir>/<distro>.yaml`` files.

    Short distro names are resolved through an alias table first
    (``debian`` -> ``debian-12``). Only the base name of the result is
    used to build the path, so a distro can never point outside
    ``config_dir``.
    """

    def __init__(
        self,
        config_dir: str = "configs/distros",
        aliases: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._config_dir = Path(config_dir)
        self._aliases = dict(DEFAULT_ALIASES if aliases is None else aliases)

    def resolve_name(self, distro: str) -> str:
        """Return the configuration file stem used for distro."""
        return os.path.basename(self._aliases.get(distro, distro))

    def load(self, distro: str) -> DistroConfig:
        config_name = self.resolve_name(distro)
        if not config_name or config_name in (".", ".."):
            raise DistroConfigError(f"unknown distro '{distro}'")

        path = self._config_dir / f"{config_name}.yaml"
        try:
            with open(path, "r", encoding="utf-8") as config_file:
                data = yaml.safe_load(config_file)
        except OSError as exc:
            raise DistroConfigError(
                f"unknown distro '{distro}' (failed to read distro config {path}: {exc})"
            ) from exc
        except yaml.YAMLError as exc:
            raise DistroConfigError(
                f"failed to parse distro config {path}: {exc}"
            ) from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise DistroConfigError(f"distro config {path} must be a mapping")

        elements = data.get("elements") or []
        env = data.get("env") or {}
        if not isinstance(elements, list):
            raise DistroConfigError(f"'elements' in {path} must be a list")
        if not isinstance(env, dict):
            raise DistroConfigError(f"'env' in {path} must be a mapping")

        logger.debug("Loaded distro config %s from %s", config_name, path)
        return DistroConfig(
            id=str(data.get("id") or config_name),
            name=str(data.get("name") or ""),
            os_element=str(data.get("os_element") or ""),
            elements=tuple(str(e) for e in elements),
            env={str(k): str(v) for k, v in env.items()},
        )
