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

"""Build pipeline: drives one build record through its lifecycle."""

import asyncio
import logging
import os
from typing import Dict, Optional

from api.logging_utils import log_secure_info, remove_build_logger
from core.builds.exceptions import BuildDomainError, DuplicateVmIdError
from core.builds.interfaces import ImageBuilder
from core.builds.repositories import BuildRepository
from core.builds.services import BuildLogSink
from core.builds.value_objects import BuildStatus, ImageName
from core.images.exceptions import CloudAdapterError
from core.images.repositories import CloudAdapter
from orchestrator.builds.runner import BackgroundTaskRunner
from orchestrator.builds.watchdog import AgentWatchdog

logger = logging.getLogger(__name__)

DEFAULT_VM_ACTIVE_TIMEOUT_SECONDS = 300

# status a stage fails into when an unexpected exception escapes it
_STAGE_ERRORS: Dict[BuildStatus, BuildStatus] = {
    BuildStatus.BUILDING: BuildStatus.ERROR_BUILD,
    BuildStatus.UPLOADING: BuildStatus.ERROR_UPLOAD,
    BuildStatus.BOOTING_VM: BuildStatus.ERROR_VM_BOOT,
}


class BuildPipeline:
    """Runs build -> upload -> test VM for one build record.

    Stage failures are caught here, recorded as the matching ERROR_* status
    plus a log line, and end the run; nothing is retried. Every status move
    is a compare-and-set from the status the pipeline itself last wrote, so
    an agent report that finished the record early is never overwritten.
    Local build artifacts are removed on every exit path.
    """

    def __init__(
        self,
        build_repo: BuildRepository,
        builder: ImageBuilder,
        cloud: CloudAdapter,
        runner: BackgroundTaskRunner,
        watchdog: AgentWatchdog,
        flavor_id: str,
        network_id: str,
        vm_active_timeout: float = DEFAULT_VM_ACTIVE_TIMEOUT_SECONDS,
        work_dir: str = ".",
    ) -> None:  # pylint: disable=too-many-arguments,too-many-positional-arguments
        self._build_repo = build_repo
        self._builder = builder
        self._cloud = cloud
        self._runner = runner
        self._watchdog = watchdog
        self._flavor_id = flavor_id
        self._network_id = network_id
        self._vm_active_timeout = vm_active_timeout
        self._work_dir = work_dir

    async def run(self, build_id: int, image_name: str, distro: str) -> None:
        """Execute the pipeline for build_id until WAITING_AGENT or an error."""
        name = ImageName(image_name)
        stage = BuildStatus.PENDING
        try:
            if not self._advance(build_id, BuildStatus.BUILDING, stage):
                return
            stage = BuildStatus.BUILDING
            if not await self._build(build_id, name, distro):
                return

            if not self._advance(build_id, BuildStatus.UPLOADING, stage):
                return
            stage = BuildStatus.UPLOADING
            candidate_id = await self._upload(build_id, name)
            if candidate_id is None:
                return

            if not self._advance(build_id, BuildStatus.BOOTING_VM, stage):
                return
            stage = BuildStatus.BOOTING_VM
            vm_id = await self._boot_vm(build_id, name, candidate_id)
            if vm_id is None:
                return

            if not self._advance(build_id, BuildStatus.WAITING_AGENT, stage):
                logger.info(
                    "Build %s left BOOTING_VM before the VM was active; not waiting for agent",
                    build_id,
                )
                return
            stage = BuildStatus.WAITING_AGENT
            self._append(build_id, "VM is ACTIVE. Waiting for agent report...")
            log_secure_info("info", "VM active, waiting for agent", identifier=vm_id, build_id=build_id)
            self._runner.spawn(
                self._watchdog.watch(build_id, vm_id), name=f"watchdog-{build_id}"
            )
        except asyncio.CancelledError:
            logger.warning("Pipeline for build %s cancelled in stage %s", build_id, stage.value)
            raise
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unexpected error in pipeline for build %s", build_id)
            error_status = _STAGE_ERRORS.get(stage)
            if error_status is not None:
                self._fail(build_id, error_status, stage, f"Internal error: {exc}")
        finally:
            try:
                self._builder.cleanup(image_name)
            except OSError as exc:
                logger.warning("Cleanup warning for %s: %s", image_name, exc)
            remove_build_logger(build_id)

    async def _build(self, build_id: int, name: ImageName, distro: str) -> bool:
        self._append(build_id, "Starting disk-image-builder...")
        log_secure_info("info", f"Starting build of {name} ({distro})", build_id=build_id)
        try:
            await self._builder.build_image(
                name.value, distro, BuildLogSink(self._build_repo, build_id)
            )
        except BuildDomainError as exc:
            logger.error("Build failed for build %s: %s", build_id, exc.message)
            self._fail(build_id, BuildStatus.ERROR_BUILD, BuildStatus.BUILDING,
                       f"Build failed: {exc.message}")
            return False
        self._append(build_id, "Build successful. Image size optimized.")
        return True

    async def _upload(self, build_id: int, name: ImageName) -> Optional[str]:
        self._append(build_id, "Uploading to OpenStack Glance (Candidate)...")
        try:
            await asyncio.to_thread(self._cloud.delete_images_by_name, name.candidate_name)
        except CloudAdapterError as exc:
            logger.warning("Failed to delete old candidate (ignoring): %s", exc.message)

        artifact = os.path.join(self._work_dir, name.artifact_filename)
        try:
            candidate_id = await asyncio.to_thread(
                self._cloud.upload_image, artifact, name.candidate_name
            )
        except CloudAdapterError as exc:
            logger.error("Upload failed for build %s: %s", build_id, exc.message)
            self._fail(build_id, BuildStatus.ERROR_UPLOAD, BuildStatus.UPLOADING,
                       f"Upload failed: {exc.message}")
            return None

        self._build_repo.set_candidate_id(build_id, candidate_id)
        self._append(build_id, f"Candidate uploaded. ID: {candidate_id}")
        return candidate_id

    async def _boot_vm(self, build_id: int, name: ImageName, candidate_id: str) -> Optional[str]:
        self._append(build_id, "Creating Test VM...")
        try:
            vm_id = await asyncio.to_thread(
                self._cloud.create_vm,
                name.test_vm_name,
                candidate_id,
                self._flavor_id,
                self._network_id,
            )
        except CloudAdapterError as exc:
            logger.error("VM create failed for build %s: %s", build_id, exc.message)
            self._fail(build_id, BuildStatus.ERROR_VM_BOOT, BuildStatus.BOOTING_VM,
                       f"VM boot failed: {exc.message}")
            return None

        try:
            self._build_repo.set_vm_id(build_id, vm_id)
        except DuplicateVmIdError as exc:
            self._fail(build_id, BuildStatus.ERROR_VM_BOOT, BuildStatus.BOOTING_VM,
                       f"VM boot failed: {exc.message}")
            await self._delete_vm(vm_id)
            return None
        self._append(build_id, f"VM created. ID: {vm_id}. Waiting for ACTIVE status...")

        try:
            await asyncio.to_thread(self._cloud.wait_vm_active, vm_id, self._vm_active_timeout)
        except CloudAdapterError as exc:
            logger.error("VM failed to become active for build %s: %s", build_id, exc.message)
            if self._fail(build_id, BuildStatus.ERROR_VM_BOOT, BuildStatus.BOOTING_VM,
                          f"VM boot failed (not active): {exc.message}"):
                await self._delete_vm(vm_id)
            return None
        return vm_id

    def _advance(self, build_id: int, status: BuildStatus, current: BuildStatus) -> bool:
        applied = self._build_repo.update_status(build_id, status, expected={current})
        if not applied:
            logger.info(
                "Build %s: transition %s -> %s refused, record changed elsewhere",
                build_id,
                current.value,
                status.value,
            )
        return applied

    def _append(self, build_id: int, text: str) -> None:
        self._build_repo.append_log(build_id, text)

    def _fail(
        self,
        build_id: int,
        status: BuildStatus,
        current: BuildStatus,
        message: str,
    ) -> bool:
        """Record an ERROR_* status and its message.

        Returns False only when another writer already finished the record.
        """
        try:
            applied = self._build_repo.update_status(
                build_id, status, expected={current}
            )
            if not applied:
                logger.info(
                    "Build %s: %s not recorded, record changed elsewhere: %s",
                    build_id,
                    status.value,
                    message,
                )
                return False
            self._build_repo.append_log(build_id, message)
        except BuildDomainError as exc:
            logger.error("Failed to record %s for build %s: %s", status.value, build_id, exc.message)
            return True
        log_secure_info("error", message, build_id=build_id, end_section=True)
        return True

    async def _delete_vm(self, vm_id: str) -> None:
        try:
            await asyncio.to_thread(self._cloud.delete_vm, vm_id)
        except CloudAdapterError as exc:
            logger.warning("Failed to delete VM %s: %s", vm_id, exc.message)
