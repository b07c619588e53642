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

"""StartBuild use case implementation."""

import logging

from api.logging_utils import create_build_log_file, log_secure_info
from core.builds.exceptions import InvalidDistroError, InvalidImageNameError
from core.builds.repositories import BuildRepository
from core.builds.value_objects import DistroName, ImageName
from orchestrator.builds.commands import StartBuildCommand
from orchestrator.builds.dtos import StartBuildResponse
from orchestrator.builds.pipeline import BuildPipeline
from orchestrator.builds.runner import BackgroundTaskRunner

logger = logging.getLogger(__name__)

STARTED_MESSAGE = "Build started. VM will be launched after upload."


class StartBuildUseCase:
    """Use case for accepting a build request.

    Validates the request, creates the PENDING build record and hands the
    rest of the work to a detached pipeline task. Returns as soon as the
    record exists; the caller polls the status endpoint afterwards.

    Attributes:
        build_repo: Build record store.
        pipeline: Pipeline executed in the background.
        runner: Runner owning the background task.
    """

    def __init__(
        self,
        build_repo: BuildRepository,
        pipeline: BuildPipeline,
        runner: BackgroundTaskRunner,
    ) -> None:
        self._build_repo = build_repo
        self._pipeline = pipeline
        self._runner = runner

    def execute(self, command: StartBuildCommand) -> StartBuildResponse:
        """Start a build.

        Args:
            command: StartBuild command with image name and distro.

        Returns:
            StartBuildResponse DTO with the new build id.

        Raises:
            InvalidImageNameError: If the image name is invalid.
            InvalidDistroError: If the distro identifier is invalid.
            BuildStoreError: If the build record cannot be created.
        """
        image_name = self._validate_image_name(command)
        distro = self._validate_distro(command)

        build_id = self._build_repo.create(image_name.value)
        self._build_repo.append_log(
            build_id, f"Build request received for {image_name} ({distro})"
        )
        create_build_log_file(build_id)
        log_secure_info(
            "info",
            f"Build request accepted: build_id={build_id}, image={image_name}, distro={distro}",
            build_id=build_id,
        )

        self._runner.spawn(
            self._pipeline.run(build_id, image_name.value, distro.value),
            name=f"build-{build_id}",
        )

        return StartBuildResponse(
            status="started",
            build_id=build_id,
            message=STARTED_MESSAGE,
        )

    def _validate_image_name(self, command: StartBuildCommand) -> ImageName:
        try:
            return ImageName(command.image_name)
        except ValueError as exc:
            raise InvalidImageNameError(str(exc), command.correlation_id) from exc

    def _validate_distro(self, command: StartBuildCommand) -> DistroName:
        try:
            return DistroName(command.distro)
        except ValueError as exc:
            raise InvalidDistroError(str(exc), command.correlation_id) from exc
