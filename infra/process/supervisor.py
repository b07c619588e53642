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

"""Supervisor for the external disk image builder process."""

import asyncio
import glob
import logging
import os
import shutil
import signal
from collections import deque
from pathlib import Path
from typing import Deque, Dict, List, Mapping, Optional

from core.builds.entities import DistroConfig
from core.builds.exceptions import (
    BuildExecutionError,
    BuildTimeoutError,
    ScriptPermissionError,
)
from core.builds.interfaces import LogSink
from core.builds.repositories import DistroConfigRepository
from infra.process.preconditions import ensure_scripts_executable

logger = logging.getLogger(__name__)

TAIL_LINES = 50
DEFAULT_PACKAGES = "iputils-ping,curl,qemu-guest-agent,vim"
CLOUD_INIT_DATASOURCES = "OpenStack,ConfigDrive,None"
CONVERSION_MARKER = "Converting image"
CONVERSION_STATUS_LINE = (
    "\n>>> [STATUS] Build logic finished. Converting raw image to QCOW2 (Final Step)...\n"
)
# asyncio StreamReader line limit; builder output can carry very long lines
_STREAM_LIMIT = 1024 * 1024


class DiskImageBuilder:
    """Runs ``disk-image-create`` for one image and supervises it.

    The process gets a wall-clock deadline. Both output pipes are drained
    concurrently; every line goes to the caller's log sink and into a
    bounded ring buffer whose content is attached to the error raised on
    failure.
    """

    def __init__(
        self,
        distro_repo: DistroConfigRepository,
        command: str = "disk-image-create",
        work_dir: str = ".",
        elements_dir: str = "./elements",
        packages: str = DEFAULT_PACKAGES,
        timeout_seconds: float = 600,
        manager_address: str = "",
        ssh_inject_key: str = "",
        base_env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._distro_repo = distro_repo
        self._command = command
        self._work_dir = work_dir
        self._elements_dir = elements_dir
        self._packages = packages
        self._timeout_seconds = timeout_seconds
        self._manager_address = manager_address
        self._ssh_inject_key = ssh_inject_key
        self._base_env = base_env

    def build_command(self, image_name: str, distro_cfg: DistroConfig) -> List[str]:
        """Return the builder argv for image_name."""
        argv = [self._command]
        argv.extend(distro_cfg.element_args())
        argv.extend(["-p", self._packages, "-o", image_name])
        return argv

    def build_env(self, distro_cfg: DistroConfig) -> Dict[str, str]:
        """Return the process environment for a build."""
        env = dict(os.environ if self._base_env is None else self._base_env)
        env["ELEMENTS_PATH"] = os.path.abspath(self._elements_dir)
        env["DIB_CLOUD_INIT_DATASOURCES"] = CLOUD_INIT_DATASOURCES
        if self._manager_address:
            env["MANAGER_ADDRESS"] = self._manager_address
        else:
            logger.warning("Agent callback address is empty! Agent might not connect back.")
        if self._ssh_inject_key:
            env["SSH_INJECT_KEY"] = self._ssh_inject_key
        env.update(distro_cfg.env)
        return env

    async def build_image(
        self,
        image_name: str,
        distro: str,
        log_sink: Optional[LogSink] = None,
    ) -> None:
        """Build image_name for distro.

        Raises:
            DistroConfigError: If the distro configuration cannot be loaded.
            BuildExecutionError: If the process cannot start or exits non-zero.
            BuildTimeoutError: If the deadline expires; the process is killed.
        """
        try:
            ensure_scripts_executable(self._elements_dir)
        except ScriptPermissionError as exc:
            logger.warning("Failed to ensure executable permissions: %s", exc.message)

        distro_cfg = self._distro_repo.load(distro)
        argv = self.build_command(image_name, distro_cfg)
        env = self.build_env(distro_cfg)

        logger.info(
            "Starting build process: image=%s, distro=%s, timeout=%ss",
            image_name,
            distro,
            self._timeout_seconds,
        )
        logger.debug("Executing command: %s", " ".join(argv))

        tail: Deque[str] = deque(maxlen=TAIL_LINES)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self._work_dir,
                env=env,
                limit=_STREAM_LIMIT,
                start_new_session=True,
            )
        except OSError as exc:
            raise BuildExecutionError(f"failed to start command: {exc}") from exc

        supervised = asyncio.gather(
            self._drain(proc.stdout, "STDOUT", tail, log_sink),
            self._drain(proc.stderr, "STDERR", tail, log_sink),
            proc.wait(),
        )
        try:
            await asyncio.wait_for(supervised, timeout=self._timeout_seconds)
        except asyncio.TimeoutError:
            await self._kill(proc)
            logger.error(
                "Build process timed out: image=%s, timeout=%ss",
                image_name,
                self._timeout_seconds,
            )
            raise BuildTimeoutError(
                f"timed out after {self._timeout_seconds}s", list(tail)
            ) from None
        except (asyncio.CancelledError, ValueError):
            # cancelled by the pipeline, or a line overran the reader limit
            await self._kill(proc)
            raise

        if proc.returncode != 0:
            raise BuildExecutionError(f"exit status {proc.returncode}", list(tail))

        logger.info("Build completed successfully: image=%s", image_name)

    async def _drain(
        self,
        stream: asyncio.StreamReader,
        label: str,
        tail: Deque[str],
        log_sink: Optional[LogSink],
    ) -> None:
        while True:
            raw = await stream.readline()
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            logger.debug("[DIB-%s] %s", label, line)
            if log_sink is not None:
                if label == "STDOUT" and CONVERSION_MARKER in line:
                    log_sink(CONVERSION_STATUS_LINE)
                log_sink(line)
            tail.append(f"[{label}] {line}")

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        try:
            # builder forks helpers; take down the whole session
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        await proc.wait()

    def cleanup(self, image_name: str) -> None:
        """Remove local artifacts of image_name; missing files are ignored."""
        logger.info("Cleaning up artifacts: image=%s", image_name)
        work = Path(self._work_dir)
        for path in (work / image_name, work / f"{image_name}.qcow2"):
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except IsADirectoryError:
                shutil.rmtree(path, ignore_errors=True)
            except OSError as exc:
                logger.warning("Failed to remove %s: %s", path, exc)
        shutil.rmtree(work / f"{image_name}.d", ignore_errors=True)
        pattern = os.path.join(glob.escape(str(work)), f"dib-manifest-*{glob.escape(image_name)}*")
        for match in glob.glob(pattern):
            try:
                if os.path.isdir(match):
                    shutil.rmtree(match, ignore_errors=True)
                else:
                    os.remove(match)
            except OSError as exc:
                logger.warning("Failed to remove %s: %s", match, exc)
