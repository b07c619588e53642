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

"""FastAPI routes for build operations."""

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.builds.dependencies import (
    get_build_status_use_case,
    get_list_builds_use_case,
    get_start_build_use_case,
)
from api.builds.schemas import (
    BuildStatusResponse,
    BuildSummaryResponse,
    StartBuildRequest,
    StartBuildResponse,
)
from api.dependencies import get_correlation_id
from api.logging_utils import log_secure_info
from api.schemas import ErrorResponse
from core.builds.exceptions import (
    BuildDomainError,
    BuildNotFoundError,
    BuildStoreError,
    InvalidDistroError,
    InvalidImageNameError,
)
from orchestrator.builds.commands import GetBuildStatusCommand, StartBuildCommand
from orchestrator.builds.use_cases import (
    GetBuildStatusUseCase,
    ListBuildsUseCase,
    StartBuildUseCase,
)

router = APIRouter(prefix="/builds", tags=["Builds"])


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
    "",
    response_model=StartBuildResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start build",
    description="Build an image, upload it as a candidate and test it on a VM",
    responses={
        202: {"description": "Build accepted", "model": StartBuildResponse},
        400: {"description": "Invalid request", "model": ErrorResponse},
        500: {"description": "Internal error", "model": ErrorResponse},
    },
)
async def start_build(
    request_body: StartBuildRequest,
    use_case: StartBuildUseCase = Depends(get_start_build_use_case),
    correlation_id: str = Depends(get_correlation_id),
) -> StartBuildResponse:
    """Accept a build and run it in the background.

    Returns 202 as soon as the build record exists; progress is read
    through ``GET /builds/{build_id}``.
    """
    log_secure_info(
        "info",
        f"Start build request: image={request_body.image_name}, "
        f"distro={request_body.distro}, correlation_id={correlation_id}",
    )

    try:
        result = use_case.execute(
            StartBuildCommand(
                image_name=request_body.image_name,
                distro=request_body.distro,
                correlation_id=correlation_id,
            )
        )

    except InvalidImageNameError as exc:
        log_secure_info("warning", "Start build failed: reason=invalid_image_name, status=400")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_build_error_response(
                "INVALID_IMAGE_NAME",
                exc.message,
                correlation_id,
            ).model_dump(),
        ) from exc

    except InvalidDistroError as exc:
        log_secure_info("warning", "Start build failed: reason=invalid_distro, status=400")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_build_error_response(
                "INVALID_DISTRO",
                exc.message,
                correlation_id,
            ).model_dump(),
        ) from exc

    except BuildStoreError as exc:
        log_secure_info("error", "Start build failed: reason=store_error, status=500", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_build_error_response(
                "DATABASE_ERROR",
                "Failed to record the build",
                correlation_id,
            ).model_dump(),
        ) from exc

    log_secure_info(
        "info",
        f"Start build success: build_id={result.build_id}, status=202",
        build_id=result.build_id,
    )
    return StartBuildResponse(
        status=result.status,
        build_id=result.build_id,
        message=result.message,
    )


@router.get(
    "/{build_id}",
    response_model=BuildStatusResponse,
    summary="Get build status",
    description="Return the current status and accumulated log of a build",
    responses={
        200: {"description": "Build found", "model": BuildStatusResponse},
        404: {"description": "Build not found", "model": ErrorResponse},
        500: {"description": "Internal error", "model": ErrorResponse},
    },
)
def get_build_status(
    build_id: int,
    use_case: GetBuildStatusUseCase = Depends(get_build_status_use_case),
    correlation_id: str = Depends(get_correlation_id),
) -> BuildStatusResponse:
    """Return status and log of one build."""
    try:
        result = use_case.execute(
            GetBuildStatusCommand(build_id=build_id, correlation_id=correlation_id)
        )
    except BuildNotFoundError as exc:
        log_secure_info("warning", f"Build not found: build_id={build_id}, status=404")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_build_error_response(
                "BUILD_NOT_FOUND",
                exc.message,
                correlation_id,
            ).model_dump(),
        ) from exc
    except BuildDomainError as exc:
        log_secure_info("error", f"Get build status failed: build_id={build_id}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_build_error_response(
                "DATABASE_ERROR",
                exc.message,
                correlation_id,
            ).model_dump(),
        ) from exc

    return BuildStatusResponse(id=result.id, status=result.status, logs=result.logs)


@router.get(
    "",
    response_model=List[BuildSummaryResponse],
    summary="Build history",
    description="Return the most recent builds, newest first",
)
def list_builds(
    limit: int = Query(50, ge=1, le=500, description="Maximum number of builds"),
    use_case: ListBuildsUseCase = Depends(get_list_builds_use_case),
    correlation_id: str = Depends(get_correlation_id),
) -> List[BuildSummaryResponse]:
    """Return the build history."""
    try:
        summaries = use_case.execute(limit)
    except BuildDomainError as exc:
        log_secure_info("error", "List builds failed", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_build_error_response(
                "DATABASE_ERROR",
                exc.message,
                correlation_id,
            ).model_dump(),
        ) from exc

    return [BuildSummaryResponse(**summary.to_dict()) for summary in summaries]
