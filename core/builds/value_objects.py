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

"""Value objects for the Builds domain.

All value objects are immutable and defined by their values, not identity.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, FrozenSet


class BuildStatus(str, Enum):
    """Lifecycle states of a build record."""

    PENDING = "PENDING"
    BUILDING = "BUILDING"
    UPLOADING = "UPLOADING"
    BOOTING_VM = "BOOTING_VM"
    WAITING_AGENT = "WAITING_AGENT"
    SUCCESS = "SUCCESS"
    ERROR_BUILD = "ERROR_BUILD"
    ERROR_UPLOAD = "ERROR_UPLOAD"
    ERROR_VM_BOOT = "ERROR_VM_BOOT"
    ERROR_TEST = "ERROR_TEST"
    ERROR_TIMEOUT = "ERROR_TIMEOUT"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible from this state."""
        return self in TERMINAL_STATUSES

    def can_transition_to(self, target: "BuildStatus") -> bool:
        """Check if the state machine allows moving to target."""
        return target in ALLOWED_TRANSITIONS.get(self, frozenset())


TERMINAL_STATUSES: FrozenSet[BuildStatus] = frozenset({
    BuildStatus.SUCCESS,
    BuildStatus.ERROR_BUILD,
    BuildStatus.ERROR_UPLOAD,
    BuildStatus.ERROR_VM_BOOT,
    BuildStatus.ERROR_TEST,
    BuildStatus.ERROR_TIMEOUT,
})

# The agent may report while the pipeline is still waiting for the VM to
# become ACTIVE, so BOOTING_VM accepts the agent verdicts as well.
ALLOWED_TRANSITIONS: Dict[BuildStatus, FrozenSet[BuildStatus]] = {
    BuildStatus.PENDING: frozenset({BuildStatus.BUILDING}),
    BuildStatus.BUILDING: frozenset({BuildStatus.UPLOADING, BuildStatus.ERROR_BUILD}),
    BuildStatus.UPLOADING: frozenset({BuildStatus.BOOTING_VM, BuildStatus.ERROR_UPLOAD}),
    BuildStatus.BOOTING_VM: frozenset({
        BuildStatus.WAITING_AGENT,
        BuildStatus.ERROR_VM_BOOT,
        BuildStatus.SUCCESS,
        BuildStatus.ERROR_TEST,
    }),
    BuildStatus.WAITING_AGENT: frozenset({
        BuildStatus.SUCCESS,
        BuildStatus.ERROR_TEST,
        BuildStatus.ERROR_TIMEOUT,
    }),
}

# Statuses in which an agent verdict is still meaningful.
AGENT_REPORTABLE_STATUSES: FrozenSet[BuildStatus] = frozenset({
    BuildStatus.BOOTING_VM,
    BuildStatus.WAITING_AGENT,
})


class AgentCommand(str, Enum):
    """Command returned to the in-guest agent."""

    WAIT = "WAIT"
    SHUTDOWN = "SHUTDOWN"


@dataclass(frozen=True)
class ImageName:
    """Logical image name requested by the caller.

    Attributes:
        value: Image name string.

    Raises:
        ValueError: If image name format is invalid.
    """

    value: str

    MAX_LENGTH: ClassVar[int] = 128
    NAME_PATTERN: ClassVar[str] = r'[a-zA-Z0-9_.\-]+'

    def __post_init__(self) -> None:
        """Validate image name format."""
        if not self.value or not self.value.strip():
            raise ValueError("Image name cannot be empty")
        if len(self.value) > self.MAX_LENGTH:
            raise ValueError(
                f"Image name length cannot exceed {self.MAX_LENGTH} "
                f"characters, got {len(self.value)}"
            )
        if not re.fullmatch(self.NAME_PATTERN, self.value) or self.value in (".", ".."):
            raise ValueError(
                f"Invalid image name format: {self.value}. "
                f"Must contain only alphanumeric characters, dots, underscores, and hyphens."
            )

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @property
    def candidate_name(self) -> str:
        """Name under which the untested image is uploaded."""
        return f"{self.value}-candidate"

    @property
    def test_vm_name(self) -> str:
        """Name of the disposable test instance."""
        return f"{self.value}-test-agent"

    @property
    def artifact_filename(self) -> str:
        """File produced by the image builder."""
        return f"{self.value}.qcow2"


@dataclass(frozen=True)
class DistroName:
    """Distribution identifier used to select the build configuration.

    Attributes:
        value: Distro identifier (e.g. debian, ubuntu-24).

    Raises:
        ValueError: If distro format is invalid.
    """

    value: str

    MAX_LENGTH: ClassVar[int] = 64
    DISTRO_PATTERN: ClassVar[str] = r'[a-zA-Z0-9_.\-]+'

    def __post_init__(self) -> None:
        """Validate distro format."""
        if not self.value or not self.value.strip():
            raise ValueError("Distro cannot be empty")
        if len(self.value) > self.MAX_LENGTH:
            raise ValueError(
                f"Distro length cannot exceed {self.MAX_LENGTH} "
                f"characters, got {len(self.value)}"
            )
        if not re.fullmatch(self.DISTRO_PATTERN, self.value):
            raise ValueError(
                f"Invalid distro format: {self.value}. "
                f"Must contain only alphanumeric characters, dots, underscores, and hyphens."
            )

    def __str__(self) -> str:
        """Return string representation."""
        return self.value
