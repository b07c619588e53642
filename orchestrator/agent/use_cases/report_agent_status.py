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

"""ReportAgentStatus use case implementation."""

import logging
from typing import Optional

from api.logging_utils import log_secure_info
from core.agent.entities import AgentReport
from core.agent.exceptions import InvalidAgentReportError
from core.builds.entities import BuildRecord
from core.builds.exceptions import BuildDomainError, BuildStoreError
from core.builds.repositories import BuildRepository
from core.builds.value_objects import (
    AGENT_REPORTABLE_STATUSES,
    AgentCommand,
    BuildStatus,
)
from core.images.exceptions import CloudAdapterError, PromotionError
from core.images.repositories import CloudAdapter
from core.images.services import ImagePromotionService
from orchestrator.agent.commands import AgentReportCommand
from orchestrator.agent.dtos import AgentReportResponse

logger = logging.getLogger(__name__)


class ReportAgentStatusUseCase:
    """Use case for a verdict reported by a test VM agent.

    On success the build is claimed with a compare-and-set to SUCCESS
    before anything else happens. Only the caller that won the claim
    promotes the candidate, so a duplicated report cannot promote twice
    and a report racing the watchdog either wins or changes nothing. The
    VM is deleted and the agent told to SHUTDOWN in every success case.

    On failure the build moves to ERROR_TEST, the VM is kept for
    debugging and the agent is told to WAIT.
    """

    def __init__(
        self,
        build_repo: BuildRepository,
        cloud: CloudAdapter,
        promotion_service: ImagePromotionService,
    ) -> None:
        self._build_repo = build_repo
        self._cloud = cloud
        self._promotion_service = promotion_service

    def execute(self, command: AgentReportCommand) -> AgentReportResponse:
        """Handle one agent report.

        Args:
            command: AgentReport command from the HTTP layer.

        Returns:
            AgentReportResponse with SHUTDOWN or WAIT.

        Raises:
            InvalidAgentReportError: If the report has no vm_id.
        """
        report = self._to_report(command)
        log_secure_info(
            "info",
            f"Agent report received: phase={report.phase}, success={report.success}",
            identifier=report.vm_id,
        )

        record = self._find_record(report.vm_id)

        if report.success:
            return self._handle_success(report, record)
        return self._handle_failure(report, record)

    def _to_report(self, command: AgentReportCommand) -> AgentReport:
        try:
            return AgentReport(
                vm_id=command.vm_id,
                phase=command.phase,
                success=command.success,
                details=command.details,
            )
        except ValueError as exc:
            raise InvalidAgentReportError(str(exc), command.correlation_id) from exc

    def _find_record(self, vm_id: str) -> Optional[BuildRecord]:
        try:
            record = self._build_repo.find_by_vm_id(vm_id)
        except BuildStoreError as exc:
            logger.error("Build lookup for VM %s failed: %s", vm_id, exc.message)
            return None
        if record is None:
            logger.warning("Agent report for VM %s matches no build", vm_id)
        return record

    def _claim(self, build_id: int, status: BuildStatus) -> bool:
        try:
            return self._build_repo.update_status(
                build_id, status, expected=AGENT_REPORTABLE_STATUSES
            )
        except BuildStoreError as exc:
            logger.error(
                "Failed to record %s for build %s: %s", status.value, build_id, exc.message
            )
            return False

    def _handle_success(
        self, report: AgentReport, record: Optional[BuildRecord]
    ) -> AgentReportResponse:
        logger.info("Test PASSED for VM %s. Cleaning up VM...", report.vm_id)
        try:
            if record is not None:
                if self._claim(record.id, BuildStatus.SUCCESS):
                    self._append(record.id, report.to_log_line())
                    self._promote(record)
                    log_secure_info(
                        "info", "Build finished successfully", build_id=record.id, end_section=True
                    )
                else:
                    logger.info(
                        "Success report for build %s not applied: record finished or store failed",
                        record.id,
                    )
        finally:
            self._delete_vm(report.vm_id)
        return AgentReportResponse(command=AgentCommand.SHUTDOWN)

    def _handle_failure(
        self, report: AgentReport, record: Optional[BuildRecord]
    ) -> AgentReportResponse:
        logger.warning("Test FAILED for VM %s. Keeping VM for debug: %s", report.vm_id, report.details)
        if record is not None:
            if self._claim(record.id, BuildStatus.ERROR_TEST):
                self._append(record.id, report.to_log_line())
                self._append(record.id, f"Test VM {report.vm_id} kept for debugging.")
                log_secure_info(
                    "warning", "Agent reported failure", build_id=record.id, end_section=True
                )
            else:
                logger.info(
                    "Failure report for build %s not applied: record finished or store failed",
                    record.id,
                )
        return AgentReportResponse(command=AgentCommand.WAIT)

    def _promote(self, record: BuildRecord) -> None:
        try:
            self._promotion_service.promote(record.candidate_id or "", record.image_name)
        except PromotionError as exc:
            logger.critical(
                "Promotion failed for build %s (production absent: %s): %s",
                record.id,
                exc.production_absent,
                exc.message,
            )
            self._append(record.id, f"PROMOTION FAILED: {exc.message}")
            return
        self._append(record.id, f"Image promoted to production as {record.image_name}")

    def _append(self, build_id: int, text: str) -> None:
        try:
            self._build_repo.append_log(build_id, text)
        except BuildDomainError as exc:
            logger.warning("Failed to append log to build %s: %s", build_id, exc.message)

    def _delete_vm(self, vm_id: str) -> None:
        try:
            self._cloud.delete_vm(vm_id)
            logger.info("VM %s deleted successfully", vm_id)
        except CloudAdapterError as exc:
            logger.error("Failed to delete VM %s: %s", vm_id, exc.message)
