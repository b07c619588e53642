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

"""Unit tests for ReportAgentStatusUseCase."""

# pylint: disable=redefined-outer-name

import pytest

from core.agent.exceptions import InvalidAgentReportError
from core.builds.exceptions import BuildStoreError
from core.builds.value_objects import AgentCommand, BuildStatus
from core.images.services import ImagePromotionService
from orchestrator.agent.commands import AgentReportCommand
from orchestrator.agent.use_cases import ReportAgentStatusUseCase

_TO_BOOTING = (BuildStatus.BUILDING, BuildStatus.UPLOADING, BuildStatus.BOOTING_VM)


@pytest.fixture
def use_case(build_repo, cloud):
    """Use case wired to the in-memory store and cloud."""
    return ReportAgentStatusUseCase(build_repo, cloud, ImagePromotionService(cloud))


def _build_on_vm(build_repo, cloud, vm_id="vm-1", waiting=True) -> int:
    build_id = build_repo.create("golden")
    for status in _TO_BOOTING:
        build_repo.update_status(build_id, status)
    build_repo.set_candidate_id(build_id, cloud.add_image("golden-candidate"))
    build_repo.set_vm_id(build_id, vm_id)
    if waiting:
        build_repo.update_status(build_id, BuildStatus.WAITING_AGENT)
    return build_id


def _report(success: bool, vm_id: str = "vm-1", details: str = "Disk: OK; Net: OK"):
    return AgentReportCommand(
        vm_id=vm_id, phase="BOOT_CHECK", success=success, details=details, correlation_id="corr-1"
    )


class TestSuccessReport:
    """Agent reports that every check passed."""

    def test_promotes_and_shuts_down(self, use_case, build_repo, cloud):
        """The candidate becomes production and the VM is deleted."""
        cloud.add_image("golden")
        build_id = _build_on_vm(build_repo, cloud)

        result = use_case.execute(_report(True))

        assert result.command == AgentCommand.SHUTDOWN
        status, log = build_repo.get_status(build_id)
        assert status == BuildStatus.SUCCESS
        assert "Agent report [BOOT_CHECK]: PASSED (Disk: OK; Net: OK)" in log
        assert "Image promoted to production as golden" in log
        assert cloud.names() == ["golden"]
        assert cloud.calls_for("delete_vm") == [("vm-1",)]

    def test_duplicate_report_promotes_once(self, use_case, build_repo, cloud):
        """A repeated success report changes nothing but still deletes the VM."""
        _build_on_vm(build_repo, cloud)

        first = use_case.execute(_report(True))
        second = use_case.execute(_report(True))

        assert first.command == second.command == AgentCommand.SHUTDOWN
        assert len(cloud.calls_for("rename_image")) == 1
        assert len(cloud.calls_for("delete_images_by_name")) == 1
        assert cloud.calls_for("delete_vm") == [("vm-1",), ("vm-1",)]

    def test_report_while_booting(self, use_case, build_repo, cloud):
        """A report before the pipeline saw ACTIVE is accepted."""
        build_id = _build_on_vm(build_repo, cloud, waiting=False)

        assert use_case.execute(_report(True)).command == AgentCommand.SHUTDOWN
        assert build_repo.get_status(build_id)[0] == BuildStatus.SUCCESS

    def test_report_after_timeout_does_not_promote(self, use_case, build_repo, cloud):
        """A late report finds a terminal record and promotes nothing."""
        build_id = _build_on_vm(build_repo, cloud)
        build_repo.update_status(build_id, BuildStatus.ERROR_TIMEOUT)

        result = use_case.execute(_report(True))

        assert result.command == AgentCommand.SHUTDOWN
        assert build_repo.get_status(build_id)[0] == BuildStatus.ERROR_TIMEOUT
        assert cloud.calls_for("rename_image") == []
        assert cloud.calls_for("delete_vm") == [("vm-1",)]

    def test_promotion_failure_is_logged(self, use_case, build_repo, cloud):
        """A failed rename keeps SUCCESS and records the failure in the log."""
        build_id = _build_on_vm(build_repo, cloud)
        cloud.fail_on.add("rename_image")

        result = use_case.execute(_report(True))

        status, log = build_repo.get_status(build_id)
        assert result.command == AgentCommand.SHUTDOWN
        assert status == BuildStatus.SUCCESS
        assert "PROMOTION FAILED:" in log
        assert cloud.calls_for("delete_vm") == [("vm-1",)]

    def test_vm_delete_failure_still_shuts_down(self, use_case, build_repo, cloud):
        """VM cleanup is best effort."""
        _build_on_vm(build_repo, cloud)
        cloud.fail_on.add("delete_vm")

        assert use_case.execute(_report(True)).command == AgentCommand.SHUTDOWN

    def test_unknown_vm(self, use_case, cloud):
        """An unknown VM is still deleted and told to shut down."""
        result = use_case.execute(_report(True, vm_id="vm-stray"))

        assert result.command == AgentCommand.SHUTDOWN
        assert cloud.calls_for("delete_vm") == [("vm-stray",)]
        assert cloud.calls_for("rename_image") == []


class TestFailureReport:
    """Agent reports a failed check."""

    def test_marks_error_and_keeps_vm(self, use_case, build_repo, cloud):
        """The VM stays for debugging and the agent waits."""
        build_id = _build_on_vm(build_repo, cloud)

        result = use_case.execute(_report(False, details="Disk: OK; Net: FAIL: No Internet"))

        assert result.command == AgentCommand.WAIT
        status, log = build_repo.get_status(build_id)
        assert status == BuildStatus.ERROR_TEST
        assert "Agent report [BOOT_CHECK]: FAILED (Disk: OK; Net: FAIL: No Internet)" in log
        assert "Test VM vm-1 kept for debugging." in log
        assert cloud.calls_for("delete_vm") == []
        assert "golden-candidate" in cloud.names()

    def test_failure_after_success_ignored(self, use_case, build_repo, cloud):
        """A failure report cannot undo a success."""
        build_id = _build_on_vm(build_repo, cloud)
        use_case.execute(_report(True))

        result = use_case.execute(_report(False))

        assert result.command == AgentCommand.WAIT
        assert build_repo.get_status(build_id)[0] == BuildStatus.SUCCESS

    def test_unknown_vm(self, use_case, cloud):
        """Unknown VMs are told to wait."""
        assert use_case.execute(_report(False, vm_id="vm-stray")).command == AgentCommand.WAIT
        assert cloud.calls == []


class TestInvalidReport:
    """Malformed reports."""

    def test_empty_vm_id(self, use_case):
        """A report without vm_id is rejected with the correlation id."""
        with pytest.raises(InvalidAgentReportError) as exc_info:
            use_case.execute(_report(True, vm_id=""))
        assert exc_info.value.correlation_id == "corr-1"


def _store_down(*args, **kwargs):
    raise BuildStoreError("store down")


class TestStoreUnavailable:
    """Reports that arrive while the build store is failing."""

    def test_lookup_failure_still_deletes_vm(self, use_case, build_repo, cloud, monkeypatch):
        """A success report tears the VM down even when the record cannot be read."""
        _build_on_vm(build_repo, cloud)
        monkeypatch.setattr(build_repo, "find_by_vm_id", _store_down)

        result = use_case.execute(_report(True))

        assert result.command == AgentCommand.SHUTDOWN
        assert cloud.calls_for("delete_vm") == [("vm-1",)]
        assert cloud.calls_for("rename_image") == []

    def test_claim_failure_still_deletes_vm(self, use_case, build_repo, cloud, monkeypatch):
        """A store error while claiming SUCCESS skips promotion, not teardown."""
        _build_on_vm(build_repo, cloud)
        monkeypatch.setattr(build_repo, "update_status", _store_down)

        result = use_case.execute(_report(True))

        assert result.command == AgentCommand.SHUTDOWN
        assert cloud.calls_for("delete_vm") == [("vm-1",)]
        assert cloud.calls_for("rename_image") == []

    def test_failure_report_waits(self, use_case, build_repo, cloud, monkeypatch):
        """A failure report is answered with WAIT and keeps the VM."""
        _build_on_vm(build_repo, cloud)
        monkeypatch.setattr(build_repo, "find_by_vm_id", _store_down)

        assert use_case.execute(_report(False)).command == AgentCommand.WAIT
        assert cloud.calls_for("delete_vm") == []
