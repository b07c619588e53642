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

"""Domain entities for the Images module."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ImageInfo:
    """Summary of an image held by the cloud image service.

    Attributes:
        id: Cloud image identifier.
        name: Image name.
        status: Image service status (queued, active, ...).
        size: Size in bytes, 0 when unknown.
        created_at: Creation time formatted as ``YYYY-MM-DD HH:MM``.
    """

    id: str
    name: str
    status: str
    size: int
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "size": self.size,
            "created_at": self.created_at,
        }
