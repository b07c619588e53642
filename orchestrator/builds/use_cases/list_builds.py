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

"""ListBuilds use case implementation."""

from typing import List

from core.builds.entities import BuildSummary
from core.builds.repositories import BuildRepository

DEFAULT_HISTORY_LIMIT = 50


class ListBuildsUseCase:
    """Use case for the build history, newest first."""

    def __init__(self, build_repo: BuildRepository) -> None:
        self._build_repo = build_repo

    def execute(self, limit: int = DEFAULT_HISTORY_LIMIT) -> List[BuildSummary]:
        """Return at most limit build summaries."""
        return self._build_repo.list_recent(limit)
