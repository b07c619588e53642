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

"""Watchdog bounding how long a build waits for its test agent."""

import asyncio
import logging
from typing import Awaitable, Callable

from api.logging_utils import log_secure_info
from core.builds.exceptions import BuildDomainError
from core.builds.repositories import BuildRepository
from core.builds.value_objects import BuildStatus
from core.images.exceptions import CloudAdapterError
from core.images.repositories import CloudAdapter

logger = logging.getLogger(__name__)

DEFAULT_WARN_AFTER_SECONDS = 180
DEFAULT_TIMEOUT_SECONDS = 480


def _describe(seconds: float) -> str:
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)} minutes"
    return f"{seconds:g} seconds"


class AgentWatchdog:
    """Two-stage timer started when a build enters WAITING_AGENT.

    After ``warn_after`` seconds a warning is appended if the build is still
    waiting. After ``timeout`` seconds in total the build is moved to
    ERROR_TIMEOUT with a compare-and-set, and only when that applied is the
    test VM deleted. A report that lands at the deadline therefore either
    wins (the watchdog does nothing) or loses (the report finds a terminal
    record); never both.
    """

    def __init__(
        self,
        build_repo: BuildRepository,
        cloud: CloudAdapter,
        warn_after: float = DEFAULT_WARN_AFTER_SECONDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if warn_after >= timeout:
            raise ValueError("warn_after must be less than timeout")
        self._build_repo = build_repo
        self._cloud = cloud
        self._warn_after = warn_after
        self._timeout = timeout
        self._sleep = sleep

    async def watch(self, build_id: int, vm_id: str) -> None:
        """Run both watchdog stages for build_id."""
        await self._sleep(self._warn_after)
        status, _ = self._build_repo.get_status(build_id)
        if status != BuildStatus.WAITING_AGENT:
            logger.debug("Watchdog for build %s done early: status=%s", build_id, status.value)
            return

        self._build_repo.append_log(
            build_id,
            f"WARNING: Agent is silent for {_describe(self._warn_after)}. Check server logs. "
            f"Will terminate in {_describe(self._timeout - self._warn_after)}.",
        )
        log_secure_info("warning", "Agent silent, build still waiting", build_id=build_id)

        await self._sleep(self._timeout - self._warn_after)
        applied = self._build_repo.update_status(
            build_id, BuildStatus.ERROR_TIMEOUT, expected={BuildStatus.WAITING_AGENT}
        )
        if not applied:
            logger.debug("Watchdog for build %s lost to an agent report", build_id)
            return

        logger.warning("Watchdog timeout reached: build=%s", build_id)
        try:
            self._build_repo.append_log(
                build_id,
                f"TIMEOUT: Agent did not report in {_describe(self._timeout)}. Terminating.",
            )
        except BuildDomainError as exc:
            logger.warning("Failed to append timeout log for build %s: %s", build_id, exc.message)
        log_secure_info(
            "error", "Agent did not report, build timed out", build_id=build_id, end_section=True
        )

        try:
            await asyncio.to_thread(self._cloud.delete_vm, vm_id)
        except CloudAdapterError as exc:
            logger.warning("Failed to delete VM %s after timeout: %s", vm_id, exc.message)
