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

"""Mappers for domain <-> ORM model conversion."""

from datetime import timezone

from core.builds.entities import BuildRecord, BuildSummary
from core.builds.value_objects import BuildStatus
from .models import BuildModel


class BuildMapper:
    """Mapper for BuildRecord entity <-> BuildModel ORM."""

    @staticmethod
    def to_domain(model: BuildModel) -> BuildRecord:
        """Convert BuildModel ORM instance to a BuildRecord snapshot."""
        return BuildRecord(
            id=model.id,
            image_name=model.image_name,
            status=BuildStatus(model.status),
            candidate_id=model.candidate_id,
            vm_id=model.vm_id,
            log=model.log or "",
            created_at=_aware(model.created_at),
        )

    @staticmethod
    def to_summary(model: BuildModel) -> BuildSummary:
        """Convert BuildModel ORM instance to a history row."""
        return BuildSummary(
            id=model.id,
            image_name=model.image_name,
            status=BuildStatus(model.status),
            created_at=_aware(model.created_at),
        )


def _aware(value):
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
