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

"""Build response DTOs."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StartBuildResponse:
    """Response DTO for an accepted build.

    Attributes:
        status: Always ``started``.
        build_id: Identifier of the new build record.
        message: Human readable acknowledgement.
    """

    status: str
    build_id: int
    message: str


@dataclass(frozen=True)
class BuildStatusResponse:
    """Response DTO for the status of one build."""

    id: int
    status: str
    logs: str
