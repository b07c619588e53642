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

"""AgentReport command DTO."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AgentReportCommand:
    """Verdict posted by the agent of a test VM.

    Attributes:
        vm_id: Cloud id of the reporting VM.
        phase: Check phase (e.g. BOOT_CHECK).
        success: True if the smoke checks passed.
        details: Free-text diagnostics.
        correlation_id: Request correlation identifier for tracing.
    """

    vm_id: str
    phase: str
    success: bool
    details: str = ""
    correlation_id: str = ""
