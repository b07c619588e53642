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

"""Unit tests for Builds value objects."""

import pytest

from core.builds.value_objects import (
    AGENT_REPORTABLE_STATUSES,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    BuildStatus,
    DistroName,
    ImageName,
)


class TestBuildStatus:
    """Tests for the build state machine."""

    @pytest.mark.parametrize(
        "source,target",
        [
            (BuildStatus.PENDING, BuildStatus.BUILDING),
            (BuildStatus.BUILDING, BuildStatus.UPLOADING),
            (BuildStatus.BUILDING, BuildStatus.ERROR_BUILD),
            (BuildStatus.UPLOADING, BuildStatus.BOOTING_VM),
            (BuildStatus.UPLOADING, BuildStatus.ERROR_UPLOAD),
            (BuildStatus.BOOTING_VM, BuildStatus.WAITING_AGENT),
            (BuildStatus.BOOTING_VM, BuildStatus.ERROR_VM_BOOT),
            (BuildStatus.WAITING_AGENT, BuildStatus.SUCCESS),
            (BuildStatus.WAITING_AGENT, BuildStatus.ERROR_TEST),
            (BuildStatus.WAITING_AGENT, BuildStatus.ERROR_TIMEOUT),
        ],
    )
    def test_pipeline_transitions_allowed(self, source, target):
        """Every forward step of the pipeline is allowed."""
        assert source.can_transition_to(target)

    def test_agent_verdict_accepted_while_booting(self):
        """An early agent report may finish a BOOTING_VM record."""
        assert BuildStatus.BOOTING_VM.can_transition_to(BuildStatus.SUCCESS)
        assert BuildStatus.BOOTING_VM.can_transition_to(BuildStatus.ERROR_TEST)

    def test_timeout_only_from_waiting_agent(self):
        """Only the watchdog stage can time out."""
        sources = [s for s in BuildStatus if s.can_transition_to(BuildStatus.ERROR_TIMEOUT)]
        assert sources == [BuildStatus.WAITING_AGENT]

    def test_no_skipping_stages(self):
        """Stages cannot be skipped."""
        assert not BuildStatus.PENDING.can_transition_to(BuildStatus.UPLOADING)
        assert not BuildStatus.BUILDING.can_transition_to(BuildStatus.WAITING_AGENT)
        assert not BuildStatus.UPLOADING.can_transition_to(BuildStatus.SUCCESS)

    def test_terminal_statuses_have_no_exit(self):
        """Terminal statuses are absorbing."""
        for status in TERMINAL_STATUSES:
            assert status.is_terminal
            assert status not in ALLOWED_TRANSITIONS
            assert not any(status.can_transition_to(t) for t in BuildStatus)

    def test_active_statuses_are_not_terminal(self):
        """Non-terminal statuses are exactly the in-flight ones."""
        active = {s for s in BuildStatus if not s.is_terminal}
        assert active == {
            BuildStatus.PENDING,
            BuildStatus.BUILDING,
            BuildStatus.UPLOADING,
            BuildStatus.BOOTING_VM,
            BuildStatus.WAITING_AGENT,
        }

    def test_agent_reportable_statuses(self):
        """Agent verdicts apply only once the VM exists."""
        assert AGENT_REPORTABLE_STATUSES == {BuildStatus.BOOTING_VM, BuildStatus.WAITING_AGENT}

    def test_status_serializes_as_string(self):
        """Status values are their names."""
        assert BuildStatus.ERROR_VM_BOOT.value == "ERROR_VM_BOOT"
        assert BuildStatus("SUCCESS") is BuildStatus.SUCCESS


class TestImageName:
    """Tests for ImageName value object."""

    def test_valid_name(self):
        """Valid names are accepted and derive stage names."""
        name = ImageName("debian-golden_1.0")
        assert str(name) == "debian-golden_1.0"
        assert name.candidate_name == "debian-golden_1.0-candidate"
        assert name.test_vm_name == "debian-golden_1.0-test-agent"
        assert name.artifact_filename == "debian-golden_1.0.qcow2"

    @pytest.mark.parametrize(
        "value", ["", "   ", "bad name", "a/b", "../etc", "..", "x" * 129, "web01\n", "web01\r\n"]
    )
    def test_invalid_name_raises(self, value):
        """Empty, too long and path-like names are rejected."""
        with pytest.raises(ValueError):
            ImageName(value)

    def test_max_length_accepted(self):
        """Names of exactly MAX_LENGTH are valid."""
        assert ImageName("x" * ImageName.MAX_LENGTH).value == "x" * 128

    def test_immutable(self):
        """Value objects are frozen."""
        name = ImageName("img")
        with pytest.raises(AttributeError):
            name.value = "other"


class TestDistroName:
    """Tests for DistroName value object."""

    @pytest.mark.parametrize("value", ["debian", "ubuntu-24", "debian-12"])
    def test_valid_distro(self, value):
        """Known distro identifiers are accepted."""
        assert DistroName(value).value == value

    @pytest.mark.parametrize("value", ["", "deb ian", "../debian", "d" * 65, "debian\n"])
    def test_invalid_distro_raises(self, value):
        """Malformed distro identifiers are rejected."""
        with pytest.raises(ValueError):
            DistroName(value)
