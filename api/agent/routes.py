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

"""FastAPI routes for the test VM agent."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from api.agent.dependencies import get_report_agent_status_use_case
from api.agent.schemas import AgentReportRequest, AgentReportResponse
from api.dependencies import get_correlation_id
from api.logging_utils import log_secure_info
from api.schemas import ErrorResponse
from core.agent.exceptions import InvalidAgentReportError
from orchestrator.agent.commands import AgentReportCommand
from orchestrator.agent.use_cases import ReportAgentStatusUseCase

router = APIRouter(prefix="/agent", tags=["Agent"])


def _build_error_response(
    error_code: str,
    message: str,
    correlation_id: str,
) -> ErrorResponse:
    return ErrorResponse(
        error=error_code,
        message=message,
        correlation_id=correlation_id,
        timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
    )


@router.post(
    "/report",
    response_model=AgentReportResponse,
    summary="Report agent verdict",
    description="Called by the agent inside a test VM once its smoke checks ran",
    responses={
        200: {"description": "Report handled", "model": AgentReportResponse},
        400: {"description": "Invalid report", "model": ErrorResponse},
    },
)
def report_agent_status(
    request_body: AgentReportRequest,
    use_case: ReportAgentStatusUseCase = Depends(get_report_agent_status_use_case),
    correlation_id: str = Depends(get_correlation_id),
) -> AgentReportResponse:
    """Record the verdict and tell the agent whether to shut down."""
    try:
        result = use_case.execute(
            AgentReportCommand(
                vm_id=request_body.vm_id,
                phase=request_body.phase,
                success=request_body.success,
                details=request_body.details,
                correlation_id=correlation_id,
            )
        )
    except InvalidAgentReportError as exc:
        log_secure_info("warning", "Agent report rejected: reason=invalid_report, status=400")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_build_error_response(
                "INVALID_AGENT_REPORT",
                exc.message,
                correlation_id,
            ).model_dump(),
        ) from exc

    return AgentReportResponse(command=result.command.value)
