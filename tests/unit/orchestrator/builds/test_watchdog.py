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

"""Unit tests for the agent watchdog."""

# pylint: disable=redefined-outer-name

import pytest

from core.builds.value_objects import BuildStatus
from orchestrator.builds.watchdog import AgentWatchdog, _describe


class FakeSleep:
    """Records requested delays and runs an optional hook per call."""

    def __init__(self, hooks=None):
        self.delays = []
        self._hooks = list(hooks or [])

    async def __call__(self, seconds):
        self.delays.append(seconds)
        if self._hooks:
            hook = self._hooks.pop(0)
            if hook is not None:
                hook()


@pytest.fixture
def waiting_build(build_repo):
    """A build waiting for its agent on vm-1."""
    build_id = build_repo.create("golden")
    for status in (
        BuildStatus.BUILDING,
        BuildStatus.UPLOADING,
        BuildStatus.BOOTING_VM,
        BuildStatus.WAITING_AGENT,
    ):
        build_repo.update_status(build_id, status)
    build_repo.set_vm_id(build_id, "vm-1")
    return build_id


class TestAgentWatchdog:
    """Tests for the two watchdog stages."""

    @pytest.mark.asyncio
    async def test_warns_then_times_out(self, build_repo, cloud, waiting_build):
        """A silent agent gets a warning, then the build times out and the VM goes."""
        sleep = FakeSleep()
        watchdog = AgentWatchdog(build_repo, cloud, warn_after=180, timeout=480, sleep=sleep)

        await watchdog.watch(waiting_build, "vm-1")

        status, log = build_repo.get_status(waiting_build)
        assert sleep.delays == [180, 300]
        assert status == BuildStatus.ERROR_TIMEOUT
        assert (
            "WARNING: Agent is silent for 3 minutes. Check server logs. "
            "Will terminate in 5 minutes." in log
        )
        assert "TIMEOUT: Agent did not report in 8 minutes. Terminating." in log
        assert log.index("WARNING") < log.index("TIMEOUT")
        assert cloud.calls_for("delete_vm") == [("vm-1",)]

    @pytest.mark.asyncio
    async def test_report_before_warning(self, build_repo, cloud, waiting_build):
        """A finished build ends the watchdog at the first check."""
        sleep = FakeSleep(hooks=[
            lambda: build_repo.update_status(waiting_build, BuildStatus.SUCCESS),
        ])
        watchdog = AgentWatchdog(build_repo, cloud, warn_after=180, timeout=480, sleep=sleep)

        await watchdog.watch(waiting_build, "vm-1")

        status, log = build_repo.get_status(waiting_build)
        assert sleep.delays == [180]
        assert status == BuildStatus.SUCCESS
        assert "WARNING" not in log
        assert cloud.calls_for("delete_vm") == []

    @pytest.mark.asyncio
    async def test_report_between_warning_and_timeout(self, build_repo, cloud, waiting_build):
        """A report after the warning wins; the watchdog changes nothing more."""
        sleep = FakeSleep(hooks=[
            None,
            lambda: build_repo.update_status(waiting_build, BuildStatus.ERROR_TEST),
        ])
        watchdog = AgentWatchdog(build_repo, cloud, warn_after=180, timeout=480, sleep=sleep)

        await watchdog.watch(waiting_build, "vm-1")

        status, log = build_repo.get_status(waiting_build)
        assert status == BuildStatus.ERROR_TEST
        assert "WARNING: Agent is silent" in log
        assert "TIMEOUT" not in log
        assert cloud.calls_for("delete_vm") == []

    @pytest.mark.asyncio
    async def test_vm_delete_failure_is_tolerated(self, build_repo, cloud, waiting_build):
        """A failed VM delete leaves the timeout recorded."""
        cloud.fail_on.add("delete_vm")
        watchdog = AgentWatchdog(build_repo, cloud, warn_after=1, timeout=2, sleep=FakeSleep())

        await watchdog.watch(waiting_build, "vm-1")

        assert build_repo.get_status(waiting_build)[0] == BuildStatus.ERROR_TIMEOUT
        assert cloud.calls_for("delete_vm") == [("vm-1",)]

    @pytest.mark.asyncio
    async def test_real_sleep_with_short_delays(self, build_repo, cloud, waiting_build):
        """The default sleep drives the same sequence."""
        watchdog = AgentWatchdog(build_repo, cloud, warn_after=0.01, timeout=0.02)

        await watchdog.watch(waiting_build, "vm-1")

        status, log = build_repo.get_status(waiting_build)
        assert status == BuildStatus.ERROR_TIMEOUT
        assert "Agent is silent for 0.01 seconds" in log

    def test_warn_must_precede_timeout(self, build_repo, cloud):
        """warn_after must be shorter than timeout."""
        with pytest.raises(ValueError):
            AgentWatchdog(build_repo, cloud, warn_after=480, timeout=480)

    @pytest.mark.parametrize(
        "seconds,text",
        [(180, "3 minutes"), (300, "5 minutes"), (90, "90 seconds"), (0.5, "0.5 seconds")],
    )
    def test_describe(self, seconds, text):
        """Durations render in minutes when whole."""
        assert _describe(seconds) == text
