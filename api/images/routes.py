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

"""FastAPI routes for cloud image queries."""

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_correlation_id
from api.images.dependencies import get_list_images_use_case
from api.images.schemas import ImageResponse
from api.logging_utils import log_secure_info
from api.schemas import ErrorResponse
from core.images.exceptions import CloudAdapterError
from orchestrator.images.use_cases import ListImagesUseCase

router = APIRouter(prefix="/images", tags=["Images"])


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


@router.get(
    "",
    response_model=List[ImageResponse],
    summary="List cloud images",
    description="Return the images visible to the configured cloud project",
    responses={
        200: {"description": "Images listed", "model": List[ImageResponse]},
        502: {"description": "Image service error", "model": ErrorResponse},
    },
)
def list_images(
    use_case: ListImagesUseCase = Depends(get_list_images_use_case),
    correlation_id: str = Depends(get_correlation_id),
) -> List[ImageResponse]:
    """Return the cloud image list."""
    try:
        images = use_case.execute()
    except CloudAdapterError as exc:
        log_secure_info("error", f"Failed to list images: {exc.message}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=_build_error_response(
                "UPSTREAM_ERROR",
                "Failed to list images from the image service",
                correlation_id,
            ).model_dump(),
        ) from exc

    return [ImageResponse(**image.to_dict()) for image in images]
