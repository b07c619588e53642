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

"""Pydantic schemas for Agent API requests and responses."""

from pydantic import BaseModel, Field


class AgentReportRequest(BaseModel):
    """Report sent by the in-guest test agent."""

    vm_id: str = Field(..., description="Cloud id of the reporting VM", max_length=64)
    phase: str = Field("", description="Check phase (e.g. BOOT_CHECK)", max_length=64)
    success: bool = Field(..., description="True if every smoke check passed")
    details: str = Field("", description="Free-text diagnostics", max_length=4096)


class AgentReportResponse(BaseModel):
    """Instruction for the agent."""

    command: str = Field(..., description="SHUTDOWN or WAIT")
