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

"""FastAPI dependency providers for Builds API."""

from api.dependencies import _get_container
from orchestrator.builds.use_cases import (
    GetBuildStatusUseCase,
    ListBuildsUseCase,
    StartBuildUseCase,
)


def get_start_build_use_case() -> StartBuildUseCase:
    """Provide start build use case."""
    return _get_container().start_build_use_case()


def get_build_status_use_case() -> GetBuildStatusUseCase:
    """Provide get build status use case."""
    return _get_container().get_build_status_use_case()


def get_list_builds_use_case() -> ListBuildsUseCase:
    """Provide list builds use case."""
    return _get_container().list_builds_use_case()
