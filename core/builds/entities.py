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

"""Domain entities for the Builds module."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from core.builds.value_objects import BuildStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
# pylint: disable=too-many-instance-attributes
class BuildRecord:
    """Snapshot of one build attempt as held by the build store.

    The store owns the record; callers receive copies and must re-read
    instead of caching across asynchronous boundaries.

    Attributes:
        id: Store-assigned identifier.
        image_name: Requested logical image name.
        status: Current lifecycle state.
        candidate_id: Cloud identifier of the uploaded candidate image.
        vm_id: Cloud identifier of the test instance.
        log: Append-only build log text.
        created_at: Creation timestamp.
    """

    id: int
    image_name: str
    status: BuildStatus
    candidate_id: Optional[str] = None
    vm_id: Optional[str] = None
    log: str = ""
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_terminal(self) -> bool:
        """Check if the record reached SUCCESS or an ERROR_* state."""
        return self.status.is_terminal


@dataclass(frozen=True)
class BuildSummary:
    """Row of the build history listing."""

    id: int
    image_name: str
    status: BuildStatus
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Serialize summary to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "image_name": self.image_name,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class DistroConfig:
    """Build parameters of one distribution.

    Attributes:
        id: Configuration identifier (file stem).
        name: Human readable distribution name.
        os_element: Base OS element passed first to the image builder.
        elements: Additional elements, in build order.
        env: Extra environment variables for the image builder.
    """

    id: str
    name: str = ""
    os_element: str = ""
    elements: Tuple[str, ...] = ()
    env: Dict[str, str] = field(default_factory=dict)

    def element_args(self) -> List[str]:
        """Return the ordered element list for the builder command line."""
        args = [self.os_element] if self.os_element else []
        args.extend(self.elements)
        return args

    def env_pairs(self) -> List[str]:
        """Return extra environment as KEY=VALUE strings."""
        return [f"{key}={value}" for key, value in self.env.items()]
