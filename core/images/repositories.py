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

"""Port for the cloud image and compute services."""

from abc import ABC, abstractmethod
from typing import List

from core.images.entities import ImageInfo


class CloudAdapter(ABC):
    """Image and VM operations against the infrastructure API.

    All methods raise CloudAdapterError on failure.
    """

    @abstractmethod
    def list_images(self) -> List[ImageInfo]:
        """Return every image visible to the project."""
        ...

    @abstractmethod
    def upload_image(self, file_path: str, name: str) -> str:
        """Upload a local qcow2 file as a new image and return its id."""
        ...

    @abstractmethod
    def delete_images_by_name(self, name: str) -> None:
        """Delete every image called name; zero matches is not an error."""
        ...

    @abstractmethod
    def create_vm(
        self,
        name: str,
        image_id: str,
        flavor_id: str,
        network_id: str,
        user_data: str = "",
    ) -> str:
        """Request a new server and return its id."""
        ...

    @abstractmethod
    def wait_vm_active(self, vm_id: str, timeout: float) -> None:
        """Block until the server is ACTIVE.

        Raises:
            VmActivationTimeoutError: If timeout elapses first.
            CloudAdapterError: If the server enters an error state.
        """
        ...

    @abstractmethod
    def delete_vm(self, vm_id: str) -> None:
        """Delete a server."""
        ...

    @abstractmethod
    def rename_image(self, image_id: str, new_name: str) -> None:
        """Change the name of an image (metadata patch)."""
        ...
