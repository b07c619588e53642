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

"""Pydantic schemas for Builds API requests and responses."""

from pydantic import BaseModel, Field


class StartBuildRequest(BaseModel):
    """Request model for starting a build."""

    image_name: str = Field(
        ...,
        description="Production image name; the candidate is uploaded as <image_name>-candidate",
        min_length=1,
        max_length=128,
    )
    distro: str = Field(
        ...,
        description="Distribution identifier (e.g. debian, ubuntu, debian-12)",
        min_length=1,
        max_length=64,
    )


class StartBuildResponse(BaseModel):
    """Response model for an accepted build (202 Accepted)."""

    status: str = Field(..., description="Acceptance status")
    build_id: int = Field(..., description="Build identifier")
    message: str = Field(..., description="Human readable acknowledgement")


class BuildStatusResponse(BaseModel):
    """Response model for the status of one build."""

    id: int = Field(..., description="Build identifier")
    status: str = Field(..., description="Current build status")
    logs: str = Field(..., description="Accumulated build log")


class BuildSummaryResponse(BaseModel):
    """One row of the build history."""

    id: int = Field(..., description="Build identifier")
    image_name: str = Field(..., description="Requested image name")
    status: str = Field(..., description="Current build status")
    created_at: str = Field(..., description="Creation timestamp (ISO 8601)")
