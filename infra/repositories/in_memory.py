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

""" In-memory implementation of the build repository.
    It is used in testing and development."""

import threading
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from core.builds.entities import BuildRecord, BuildSummary
from core.builds.exceptions import BuildNotFoundError, DuplicateVmIdError
from core.builds.repositories import BuildRepository
from core.builds.value_objects import BuildStatus


class InMemoryBuildRepository(BuildRepository):
    def __init__(self) -> None:
        self._records: Dict[int, BuildRecord] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, image_name: str) -> int:
        with self._lock:
            build_id = self._next_id
            self._next_id += 1
            self._records[build_id] = BuildRecord(
                id=build_id, image_name=image_name, status=BuildStatus.PENDING
            )
            return build_id

    def update_status(
        self,
        build_id: int,
        status: BuildStatus,
        expected: Optional[Iterable[BuildStatus]] = None,
    ) -> bool:
        with self._lock:
            record = self._get(build_id)
            return self._apply_status(record, status, expected)

    def update_status_by_vm_id(
        self,
        vm_id: str,
        status: BuildStatus,
        expected: Optional[Iterable[BuildStatus]] = None,
    ) -> bool:
        with self._lock:
            record = self._newest_for_vm(vm_id)
            if record is None:
                return False
            return self._apply_status(record, status, expected)

    def append_log(self, build_id: int, text: str) -> None:
        with self._lock:
            record = self._get(build_id)
            self._records[build_id] = replace(record, log=record.log + text + "\n")

    def set_candidate_id(self, build_id: int, candidate_id: str) -> None:
        with self._lock:
            record = self._get(build_id)
            self._records[build_id] = replace(record, candidate_id=candidate_id)

    def set_vm_id(self, build_id: int, vm_id: str) -> None:
        with self._lock:
            record = self._get(build_id)
            for other in self._records.values():
                if other.id != build_id and other.vm_id == vm_id and not other.is_terminal:
                    raise DuplicateVmIdError(vm_id, other.id)
            self._records[build_id] = replace(record, vm_id=vm_id)

    def get_status(self, build_id: int) -> Tuple[BuildStatus, str]:
        with self._lock:
            record = self._get(build_id)
            return record.status, record.log

    def find_by_id(self, build_id: int) -> Optional[BuildRecord]:
        with self._lock:
            return self._records.get(build_id)

    def find_by_vm_id(self, vm_id: str) -> Optional[BuildRecord]:
        with self._lock:
            return self._newest_for_vm(vm_id)

    def list_recent(self, limit: int = 50) -> List[BuildSummary]:
        with self._lock:
            newest = sorted(self._records.values(), key=lambda r: r.id, reverse=True)
            return [
                BuildSummary(
                    id=r.id, image_name=r.image_name, status=r.status, created_at=r.created_at
                )
                for r in newest[:limit]
            ]

    def _get(self, build_id: int) -> BuildRecord:
        record = self._records.get(build_id)
        if record is None:
            raise BuildNotFoundError(build_id)
        return record

    def _newest_for_vm(self, vm_id: str) -> Optional[BuildRecord]:
        matches = [r for r in self._records.values() if r.vm_id == vm_id]
        if not matches:
            return None
        return max(matches, key=lambda r: r.id)

    def _apply_status(
        self,
        record: BuildRecord,
        status: BuildStatus,
        expected: Optional[Iterable[BuildStatus]],
    ) -> bool:
        if expected is not None and record.status not in set(expected):
            return False
        if not record.status.can_transition_to(status):
            return False
        self._records[record.id] = replace(record, status=status)
        return True
