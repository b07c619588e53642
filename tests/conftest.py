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

"""Shared pytest fixtures for Image Pipeline tests.

Note: the FastAPI app is imported lazily so tests that only exercise the
domain and infrastructure layers do not build the DI container.
"""

# pylint: disable=redefined-outer-name,global-statement,import-outside-toplevel

from typing import Generator

import pytest

from infra.cloud import InMemoryCloudAdapter
from infra.repositories import InMemoryBuildRepository
from orchestrator.builds.runner import BackgroundTaskRunner
from tests.mocks.fake_image_builder import FakeImageBuilder

_APP = None


def _get_app():
    """Lazy import of FastAPI app."""
    global _APP
    if _APP is None:
        from main import app  # noqa: PLC0415
        _APP = app
    return _APP


@pytest.fixture(autouse=True)
def build_log_dir(tmp_path, monkeypatch):
    """Send per-build log files to a temporary directory."""
    log_dir = tmp_path / "build-logs"
    monkeypatch.setenv("IMAGE_PIPELINE_LOG_DIR", str(log_dir))
    return log_dir


@pytest.fixture
def build_repo() -> InMemoryBuildRepository:
    """Empty in-memory build store."""
    return InMemoryBuildRepository()


@pytest.fixture
def cloud() -> InMemoryCloudAdapter:
    """In-memory cloud with no images or servers."""
    return InMemoryCloudAdapter()


@pytest.fixture
def fake_builder() -> FakeImageBuilder:
    """Image builder that succeeds immediately."""
    return FakeImageBuilder()


@pytest.fixture
def runner() -> BackgroundTaskRunner:
    """Fresh background task runner."""
    return BackgroundTaskRunner()


@pytest.fixture
def app():
    """FastAPI application with dependency overrides cleared afterwards."""
    application = _get_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def test_client(app) -> Generator:
    """Create a FastAPI TestClient.

    Tests install their own ``app.dependency_overrides`` before sending
    requests.
    """
    from fastapi.testclient import TestClient  # noqa: PLC0415

    with TestClient(app) as client:
        yield client
