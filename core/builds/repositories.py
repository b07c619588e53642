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

"""Repository interfaces for the Builds module."""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

from core.builds.entities import BuildRecord, BuildSummary, DistroConfig
from core.builds.value_objects import BuildStatus


class BuildRepository(ABC):
    """Store owning every build record.

    Implementations serialize writes per record. Status updates are
    compare-and-set: they only apply when the state machine allows the
    move and, if ``expected`` is given, the current status is one of it.
    """

    @abstractmethod
    def create(self, image_name: str) -> int:
        """Create a PENDING record and return its id.

        Raises:
            BuildStoreError: If the store cannot be written.
        """
        ...

    @abstractmethod
    def update_status(
        self,
        build_id: int,
        status: BuildStatus,
        expected: Optional[Iterable[BuildStatus]] = None,
    ) -> bool:
        """Move a record to status.

        Returns:
            True if the update applied, False if it was refused.

        Raises:
            BuildNotFoundError: If the record does not exist.
        """
        ...

    @abstractmethod
    def update_status_by_vm_id(
        self,
        vm_id: str,
        status: BuildStatus,
        expected: Optional[Iterable[BuildStatus]] = None,
    ) -> bool:
        """Move the newest record bound to vm_id to status.

        Returns:
            True if the update applied, False if refused or no record matched.
        """
        ...

    @abstractmethod
    def append_log(self, build_id: int, text: str) -> None:
        """Append a line of text to the record log."""
        ...

    @abstractmethod
    def set_candidate_id(self, build_id: int, candidate_id: str) -> None:
        """Bind the uploaded candidate image id to the record."""
        ...

    @abstractmethod
    def set_vm_id(self, build_id: int, vm_id: str) -> None:
        """Bind the test VM id to the record.

        Raises:
            DuplicateVmIdError: If another live record holds vm_id.
        """
        ...

    @abstractmethod
    def get_status(self, build_id: int) -> Tuple[BuildStatus, str]:
        """Return (status, log) of a record.

        Raises:
            BuildNotFoundError: If the record does not exist.
        """
        ...

    @abstractmethod
    def find_by_id(self, build_id: int) -> Optional[BuildRecord]:
        """Return a snapshot of the record or None."""
        ...

    @abstractmethod
    def find_by_vm_id(self, vm_id: str) -> Optional[BuildRecord]:
        """Return the newest record bound to vm_id or None."""
        ...

    @abstractmethod
    def list_recent(self, limit: int = 50) -> List[BuildSummary]:
        """Return the newest records first."""
        ...


class DistroConfigRepository(ABC):
    """Repository for reading per-distro build configuration."""

    @abstractmethod
    def load(self, distro: str) -> DistroConfig:
        """Load configuration for distro.

        Raises:
            DistroConfigError: If the configuration is missing or invalid.
        """
        ...
