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

"""Domain entities for the Agent module."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class AgentReport:
    """Verdict sent by the in-guest agent of a test VM.

    The agent knows nothing about builds; ``vm_id`` is the only
    correlation key.

    Attributes:
        vm_id: Cloud id of the reporting VM.
        phase: Agent check phase (e.g. BOOT_CHECK).
        success: True if every smoke check passed.
        details: Free-text diagnostics.
    """

    vm_id: str
    phase: str
    success: bool
    details: str = ""

    def __post_init__(self) -> None:
        if not self.vm_id or not self.vm_id.strip():
            raise ValueError("vm_id cannot be empty")

    def to_log_line(self) -> str:
        """Render the report for the build log."""
        verdict = "PASSED" if self.success else "FAILED"
        line = f"Agent report [{self.phase or 'UNKNOWN'}]: {verdict}"
        if self.details:
            line += f" ({self.details})"
        return line

    def to_dict(self) -> Dict[str, Any]:
        """Serialize report to dictionary."""
        return {
            "vm_id": self.vm_id,
            "phase": self.phase,
            "success": self.success,
            "details": self.details,
        }
