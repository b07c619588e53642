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

"""SQL repository implementation for build record persistence.

Implements the BuildRepository port using SQLAlchemy. Each operation runs in
its own session; status changes are conditional UPDATE statements, so two
writers racing on one record cannot both apply.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, ContextManager, Iterable, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.builds.entities import BuildRecord, BuildSummary
from core.builds.exceptions import (
    BuildNotFoundError,
    BuildStoreError,
    DuplicateVmIdError,
)
from core.builds.repositories import BuildRepository
from core.builds.value_objects import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    BuildStatus,
)
from .mappers import BuildMapper
from .models import BuildModel
from .session import get_db_session

SessionFactory = Callable[[], ContextManager[Session]]


def _sources_for(
    status: BuildStatus, expected: Optional[Iterable[BuildStatus]]
) -> List[str]:
    """Return the statuses a record may be in for a move to status to apply."""
    sources = {src for src, targets in ALLOWED_TRANSITIONS.items() if status in targets}
    if expected is not None:
        sources &= set(expected)
    return sorted(s.value for s in sources)


class SqlBuildRepository(BuildRepository):
    """SQL implementation of BuildRepository."""

    def __init__(self, session_factory: SessionFactory = get_db_session) -> None:
        """Initialize repository with a session factory.

        Args:
            session_factory: Callable returning a session context manager
                that commits on success and rolls back on error.
        """
        self._session_factory = session_factory

    @contextmanager
    def _session(self):
        try:
            with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            raise BuildStoreError(f"Build store error: {exc}") from exc

    def create(self, image_name: str) -> int:
        with self._session() as session:
            model = BuildModel(
                image_name=image_name,
                status=BuildStatus.PENDING.value,
                log="",
                created_at=datetime.now(timezone.utc),
            )
            session.add(model)
            session.flush()
            return model.id

    def update_status(
        self,
        build_id: int,
        status: BuildStatus,
        expected: Optional[Iterable[BuildStatus]] = None,
    ) -> bool:
        sources = _sources_for(status, expected)
        with self._session() as session:
            if not sources:
                self._require(session, build_id)
                return False
            result = session.execute(
                update(BuildModel)
                .where(BuildModel.id == build_id, BuildModel.status.in_(sources))
                .values(status=status.value)
            )
            if result.rowcount == 1:
                return True
            self._require(session, build_id)
            return False

    def update_status_by_vm_id(
        self,
        vm_id: str,
        status: BuildStatus,
        expected: Optional[Iterable[BuildStatus]] = None,
    ) -> bool:
        sources = _sources_for(status, expected)
        with self._session() as session:
            newest = session.execute(
                select(func.max(BuildModel.id)).where(BuildModel.vm_id == vm_id)
            ).scalar()
            if newest is None or not sources:
                return False
            result = session.execute(
                update(BuildModel)
                .where(BuildModel.id == newest, BuildModel.status.in_(sources))
                .values(status=status.value)
            )
            return result.rowcount == 1

    def append_log(self, build_id: int, text: str) -> None:
        with self._session() as session:
            result = session.execute(
                update(BuildModel)
                .where(BuildModel.id == build_id)
                .values(log=func.coalesce(BuildModel.log, "") + text + "\n")
            )
            if result.rowcount == 0:
                raise BuildNotFoundError(build_id)

    def set_candidate_id(self, build_id: int, candidate_id: str) -> None:
        with self._session() as session:
            model = self._require(session, build_id)
            model.candidate_id = candidate_id

    def set_vm_id(self, build_id: int, vm_id: str) -> None:
        with self._session() as session:
            model = self._require(session, build_id)
            owner = session.execute(
                select(BuildModel.id).where(
                    BuildModel.vm_id == vm_id,
                    BuildModel.id != build_id,
                    BuildModel.status.notin_([s.value for s in TERMINAL_STATUSES]),
                )
            ).scalar()
            if owner is not None:
                raise DuplicateVmIdError(vm_id, owner)
            model.vm_id = vm_id

    def get_status(self, build_id: int) -> Tuple[BuildStatus, str]:
        with self._session() as session:
            model = self._require(session, build_id)
            return BuildStatus(model.status), model.log or ""

    def find_by_id(self, build_id: int) -> Optional[BuildRecord]:
        with self._session() as session:
            model = session.get(BuildModel, build_id)
            if model is None:
                return None
            return BuildMapper.to_domain(model)

    def find_by_vm_id(self, vm_id: str) -> Optional[BuildRecord]:
        with self._session() as session:
            model = session.execute(
                select(BuildModel)
                .where(BuildModel.vm_id == vm_id)
                .order_by(BuildModel.id.desc())
                .limit(1)
            ).scalar_one_or_none()
            if model is None:
                return None
            return BuildMapper.to_domain(model)

    def list_recent(self, limit: int = 50) -> List[BuildSummary]:
        with self._session() as session:
            models = session.execute(
                select(BuildModel).order_by(BuildModel.id.desc()).limit(limit)
            ).scalars().all()
            return [BuildMapper.to_summary(m) for m in models]

    @staticmethod
    def _require(session: Session, build_id: int) -> BuildModel:
        model = session.get(BuildModel, build_id)
        if model is None:
            raise BuildNotFoundError(build_id)
        return model
