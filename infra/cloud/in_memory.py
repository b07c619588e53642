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

"""In-memory cloud adapter used in development and tests."""

import itertools
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Set, Tuple

from core.images.entities import ImageInfo
from core.images.exceptions import CloudAdapterError, VmActivationTimeoutError
from core.images.repositories import CloudAdapter


@dataclass
class _Image:
    id: str
    name: str
    size: int
    created_at: str


@dataclass
class _Server:
    id: str
    name: str
    image_id: str
    flavor_id: str
    network_id: str
    user_data: str = ""
    status: str = "ACTIVE"


class InMemoryCloudAdapter(CloudAdapter):
    """Deterministic stand-in for the cloud.

    Every call is recorded in ``calls`` as ``(operation, args)``. Operations
    listed in ``fail_on`` raise CloudAdapterError; a VM id listed in
    ``never_active`` makes ``wait_vm_active`` time out.
    """

    def __init__(self) -> None:
        self.images: Dict[str, _Image] = {}
        self.servers: Dict[str, _Server] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self.fail_on: Set[str] = set()
        self.never_active: Set[str] = set()
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, args))
        if operation in self.fail_on:
            raise CloudAdapterError(f"{operation} failed (injected)")

    def calls_for(self, operation: str) -> List[tuple]:
        """Return the argument tuples of every call to operation."""
        return [args for op, args in self.calls if op == operation]

    def add_image(self, name: str, size: int = 0) -> str:
        """Seed an existing image and return its id."""
        with self._lock:
            image_id = f"img-{next(self._ids)}"
            self.images[image_id] = _Image(image_id, name, size, _now())
            return image_id

    def names(self) -> List[str]:
        """Return the names of all images."""
        return [img.name for img in self.images.values()]

    def list_images(self) -> List[ImageInfo]:
        with self._lock:
            self._record("list_images")
            return [
                ImageInfo(id=i.id, name=i.name, status="active", size=i.size, created_at=i.created_at)
                for i in self.images.values()
            ]

    def upload_image(self, file_path: str, name: str) -> str:
        with self._lock:
            self._record("upload_image", file_path, name)
            image_id = f"img-{next(self._ids)}"
            self.images[image_id] = _Image(image_id, name, 0, _now())
            return image_id

    def delete_images_by_name(self, name: str) -> None:
        with self._lock:
            self._record("delete_images_by_name", name)
            for image_id in [i.id for i in self.images.values() if i.name == name]:
                del self.images[image_id]

    def rename_image(self, image_id: str, new_name: str) -> None:
        with self._lock:
            self._record("rename_image", image_id, new_name)
            image = self.images.get(image_id)
            if image is None:
                raise CloudAdapterError(f"image {image_id} not found")
            image.name = new_name

    def create_vm(
        self,
        name: str,
        image_id: str,
        flavor_id: str,
        network_id: str,
        user_data: str = "",
    ) -> str:
        with self._lock:
            self._record("create_vm", name, image_id, flavor_id, network_id)
            vm_id = f"vm-{next(self._ids)}"
            self.servers[vm_id] = _Server(vm_id, name, image_id, flavor_id, network_id, user_data)
            return vm_id

    def wait_vm_active(self, vm_id: str, timeout: float) -> None:
        with self._lock:
            self._record("wait_vm_active", vm_id, timeout)
            if vm_id not in self.servers:
                raise CloudAdapterError(f"VM {vm_id} not found")
            if vm_id in self.never_active:
                raise VmActivationTimeoutError(f"VM {vm_id} not ACTIVE after {timeout}s")

    def delete_vm(self, vm_id: str) -> None:
        with self._lock:
            self._record("delete_vm", vm_id)
            self.servers.pop(vm_id, None)


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M")
