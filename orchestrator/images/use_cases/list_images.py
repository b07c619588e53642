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

"""ListImages use case implementation."""

import logging
from typing import List

from core.images.entities import ImageInfo
from core.images.repositories import CloudAdapter

logger = logging.getLogger(__name__)


class ListImagesUseCase:
    """Use case for listing images held by the cloud image service."""

    def __init__(self, cloud: CloudAdapter) -> None:
        self._cloud = cloud

    def execute(self) -> List[ImageInfo]:
        """Return every image visible to the project.

        Raises:
            CloudAdapterError: If the image service cannot be queried.
        """
        images = self._cloud.list_images()
        logger.debug("Listed %d cloud images", len(images))
        return images
