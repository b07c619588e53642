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

"""Builds domain exceptions."""

from typing import List, Optional


class BuildDomainError(Exception):
    """Base exception for build domain errors."""

    def __init__(self, message: str, correlation_id: str = ""):
        """Initialize domain error.

        Args:
            message: Error message.
            correlation_id: Request correlation ID for tracing.
        """
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id


class InvalidImageNameError(BuildDomainError):
    """Raised when the requested image name is invalid."""


class InvalidDistroError(BuildDomainError):
    """Raised when the requested distro identifier is invalid."""


class BuildNotFoundError(BuildDomainError):
    """Raised when no build record exists for the given id."""

    def __init__(self, build_id: int, correlation_id: str = ""):
        super().__init__(f"Build not found: {build_id}", correlation_id)
        self.build_id = build_id


class DuplicateVmIdError(BuildDomainError):
    """Raised when a vm_id is already bound to another live build."""

    def __init__(self, vm_id: str, owner_build_id: int):
        super().__init__(
            f"VM {vm_id} is already bound to live build {owner_build_id}"
        )
        self.vm_id = vm_id
        self.owner_build_id = owner_build_id


class BuildStoreError(BuildDomainError):
    """Raised when the build store cannot be read or written."""


class DistroConfigError(BuildDomainError):
    """Raised when a distro configuration cannot be loaded."""


class ScriptPermissionError(BuildDomainError):
    """Raised when element scripts cannot be made executable."""


class BuildExecutionError(BuildDomainError):
    """Raised when the image builder exits unsuccessfully.

    Attributes:
        exit_cause: Short description of why the process failed.
        tail: Most recent output lines captured before the failure.
    """

    def __init__(self, exit_cause: str, tail: Optional[List[str]] = None):
        self.exit_cause = exit_cause
        self.tail = list(tail or [])
        super().__init__(self._format(exit_cause, self.tail))

    @staticmethod
    def _format(exit_cause: str, tail: List[str]) -> str:
        if not tail:
            return f"build failed: {exit_cause}"
        lines = "".join(f"  > {line}\n" for line in tail)
        return f"build failed: {exit_cause}. Last logs:\n{lines}"


class BuildTimeoutError(BuildExecutionError):
    """Raised when the image builder exceeds its wall-clock deadline."""
