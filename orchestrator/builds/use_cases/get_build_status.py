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

"""GetBuildStatus use case implementation."""

from core.builds.exceptions import BuildNotFoundError
from core.builds.repositories import BuildRepository
from orchestrator.builds.commands import GetBuildStatusCommand
from orchestrator.builds.dtos import BuildStatusResponse


class GetBuildStatusUseCase:
    """Use case for reading the status and log of a build."""

    def __init__(self, build_repo: BuildRepository) -> None:
        self._build_repo = build_repo

    def execute(self, command: GetBuildStatusCommand) -> BuildStatusResponse:
        """Return status and log of command.build_id.

        Raises:
            BuildNotFoundError: If no such build exists.
        """
        try:
            status, logs = self._build_repo.get_status(command.build_id)
        except BuildNotFoundError as exc:
            raise BuildNotFoundError(command.build_id, command.correlation_id) from exc
        return BuildStatusResponse(id=command.build_id, status=status.value, logs=logs)
