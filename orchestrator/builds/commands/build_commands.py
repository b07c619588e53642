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

"""Build command DTOs."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StartBuildCommand:
    """Command to start an image build.

    Attributes:
        image_name: Logical (production) name of the image.
        distro: Distribution identifier selecting the build configuration.
        correlation_id: Request correlation identifier for tracing.
    """

    image_name: str
    distro: str
    correlation_id: str = ""


@dataclass(frozen=True)
class GetBuildStatusCommand:
    """Command to read the status and log of one build."""

    build_id: int
    correlation_id: str = ""
