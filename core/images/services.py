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

"""Domain services for the Images module."""

import logging
from typing import Callable, Optional

from core.images.exceptions import CloudAdapterError, PromotionError
from core.images.repositories import CloudAdapter

logger = logging.getLogger(__name__)

PromotionAlertHook = Callable[[str, str, Exception], None]


class ImagePromotionService:
    """Swaps the production-named image for a tested candidate.

    The image service forbids two images sharing a name, so the swap is
    delete-then-rename:

    1. Delete every image already called ``production_name`` (zero
       matches is fine).
    2. Rename the candidate to ``production_name``.

    Between the two steps no production image exists. A crash or a failed
    rename in that window leaves production absent; the alert hook is
    invoked in that case so an operator can re-run the rename by hand.
    """

    def __init__(
        self,
        cloud: CloudAdapter,
        alert_hook: Optional[PromotionAlertHook] = None,
    ) -> None:
        self._cloud = cloud
        self._alert_hook = alert_hook

    def promote(self, candidate_id: str, production_name: str) -> None:
        """Make candidate_id the image served under production_name.

        Args:
            candidate_id: Cloud id of the tested candidate image.
            production_name: Stable production image name.

        Raises:
            PromotionError: If either step fails. ``production_absent`` is
                set when the old image was already removed.
        """
        if not candidate_id:
            raise PromotionError("No candidate image recorded for promotion")

        try:
            self._cloud.delete_images_by_name(production_name)
        except CloudAdapterError as exc:
            raise PromotionError(
                f"Failed to remove current production image {production_name}: {exc.message}"
            ) from exc

        try:
            self._cloud.rename_image(candidate_id, production_name)
        except CloudAdapterError as exc:
            logger.critical(
                "Promotion left no production image: name=%s, candidate=%s, error=%s",
                production_name,
                candidate_id,
                exc.message,
            )
            self._raise_alert(candidate_id, production_name, exc)
            raise PromotionError(
                f"Failed to rename candidate {candidate_id} to {production_name}: {exc.message}",
                production_absent=True,
            ) from exc

        logger.info(
            "Image promoted successfully: id=%s, new_name=%s",
            candidate_id,
            production_name,
        )

    def _raise_alert(self, candidate_id: str, production_name: str, exc: Exception) -> None:
        if self._alert_hook is None:
            return
        try:
            self._alert_hook(candidate_id, production_name, exc)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Promotion alert hook failed")
