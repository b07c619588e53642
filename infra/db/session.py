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

"""SQLAlchemy engine and session handling for the build store.

Nothing touches the database until the first session is requested, so
importing this module is free when the in-memory store is in use.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import db_config

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def configure(database_url: str) -> None:
    """Switch to database_url; the next session opens a fresh engine."""
    global _engine, _session_factory
    db_config.database_url = database_url
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": db_config.echo}
    if not db_config.is_sqlite:
        options.update(
            pool_size=db_config.pool_size,
            max_overflow=db_config.max_overflow,
            pool_recycle=db_config.pool_recycle,
        )
        return options
    # pipelines write from worker threads as well as the request thread
    options["connect_args"] = {"check_same_thread": False}
    if ":memory:" in db_config.database_url:
        options["poolclass"] = StaticPool
    return options


def _get_engine() -> Engine:
    """Return the cached engine, creating it on first use.

    Raises:
        ValueError: If no database URL is configured.
    """
    global _engine
    if _engine is None:
        db_config.validate()
        _engine = create_engine(db_config.database_url, **_engine_options())
    return _engine


def _get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=_get_engine(), autoflush=False)
    return _session_factory


def SessionLocal() -> Session:  # pylint: disable=invalid-name
    """Open a new session on the configured database."""
    return _get_session_factory()()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Yield a session that commits on success and rolls back on error.

    Usage:
        with get_db_session() as session:
            session.execute(stmt)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_schema() -> None:
    """Create any missing build store tables."""
    from .models import Base  # pylint: disable=import-outside-toplevel

    Base.metadata.create_all(bind=_get_engine())
