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

"""Unit tests for the Builds, Images and Agent API routes."""

# pylint: disable=redefined-outer-name

import pytest

from api.agent.dependencies import get_report_agent_status_use_case
from api.builds.dependencies import (
    get_build_status_use_case,
    get_list_builds_use_case,
    get_start_build_use_case,
)
from api.builds.routes import _build_error_response
from api.images.dependencies import get_list_images_use_case
from core.builds.exceptions import BuildStoreError, InvalidImageNameError
from core.builds.value_objects import BuildStatus
from core.images.services import ImagePromotionService
from orchestrator.agent.use_cases import ReportAgentStatusUseCase
from orchestrator.builds.dtos import StartBuildResponse
from orchestrator.builds.use_cases import GetBuildStatusUseCase, ListBuildsUseCase
from orchestrator.images.use_cases import ListImagesUseCase


class MockStartBuildUseCase:
    """Mock use case for testing."""

    def __init__(self, error_to_raise=None):
        """Initialize mock with optional failure."""
        self.error_to_raise = error_to_raise
        self.executed_commands = []

    def execute(self, command):
        """Mock execute method."""
        self.executed_commands.append(command)
        if self.error_to_raise:
            raise self.error_to_raise
        return StartBuildResponse(status="started", build_id=7, message="Build started.")


@pytest.fixture
def client(app, test_client, build_repo, cloud):
    """TestClient whose read and agent use cases use the in-memory fixtures."""
    app.dependency_overrides[get_build_status_use_case] = lambda: GetBuildStatusUseCase(build_repo)
    app.dependency_overrides[get_list_builds_use_case] = lambda: ListBuildsUseCase(build_repo)
    app.dependency_overrides[get_list_images_use_case] = lambda: ListImagesUseCase(cloud)
    app.dependency_overrides[get_report_agent_status_use_case] = lambda: ReportAgentStatusUseCase(
        build_repo, cloud, ImagePromotionService(cloud)
    )
    return test_client


class TestErrorResponse:
    """Tests for the error body builder."""

    def test_build_error_response(self):
        """Error bodies carry code, message, correlation id and timestamp."""
        response = _build_error_response("TEST_ERROR", "Test error message", "corr-123")

        assert response.error == "TEST_ERROR"
        assert response.message == "Test error message"
        assert response.correlation_id == "corr-123"
        assert response.timestamp.endswith("Z")


class TestStartBuildRoute:
    """POST /api/v1/builds."""

    def test_accepted(self, app, client):
        """A valid request answers 202 with the build id."""
        use_case = MockStartBuildUseCase()
        app.dependency_overrides[get_start_build_use_case] = lambda: use_case

        response = client.post(
            "/api/v1/builds",
            json={"image_name": "golden", "distro": "debian"},
            headers={"X-Correlation-Id": "corr-42"},
        )

        assert response.status_code == 202
        assert response.json() == {"status": "started", "build_id": 7, "message": "Build started."}
        command = use_case.executed_commands[0]
        assert (command.image_name, command.distro, command.correlation_id) == (
            "golden",
            "debian",
            "corr-42",
        )

    def test_generated_correlation_id(self, app, client):
        """Requests without a correlation id get one."""
        use_case = MockStartBuildUseCase()
        app.dependency_overrides[get_start_build_use_case] = lambda: use_case

        client.post("/api/v1/builds", json={"image_name": "golden", "distro": "debian"})

        assert len(use_case.executed_commands[0].correlation_id) == 36

    def test_invalid_image_name(self, app, client):
        """Domain validation errors map to 400."""
        app.dependency_overrides[get_start_build_use_case] = lambda: MockStartBuildUseCase(
            InvalidImageNameError("Invalid image name format: a b", "corr-1")
        )

        response = client.post(
            "/api/v1/builds",
            json={"image_name": "a b", "distro": "debian"},
            headers={"X-Correlation-Id": "corr-1"},
        )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "INVALID_IMAGE_NAME"
        assert detail["correlation_id"] == "corr-1"

    def test_store_error(self, app, client):
        """Store failures map to 500."""
        app.dependency_overrides[get_start_build_use_case] = lambda: MockStartBuildUseCase(
            BuildStoreError("disk full")
        )

        response = client.post("/api/v1/builds", json={"image_name": "golden", "distro": "debian"})

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "DATABASE_ERROR"

    def test_missing_field(self, app, client):
        """Schema violations are rejected before the use case."""
        use_case = MockStartBuildUseCase()
        app.dependency_overrides[get_start_build_use_case] = lambda: use_case

        response = client.post("/api/v1/builds", json={"image_name": "golden"})

        assert response.status_code == 422
        assert use_case.executed_commands == []


class TestBuildStatusRoutes:
    """GET /api/v1/builds and /api/v1/builds/{id}."""

    def test_get_status(self, client, build_repo):
        """Status and log of an existing build are returned."""
        build_id = build_repo.create("golden")
        build_repo.append_log(build_id, "Build request received for golden (debian)")

        response = client.get(f"/api/v1/builds/{build_id}")

        assert response.status_code == 200
        assert response.json() == {
            "id": build_id,
            "status": "PENDING",
            "logs": "Build request received for golden (debian)\n",
        }

    def test_get_status_not_found(self, client):
        """Unknown ids answer 404."""
        response = client.get("/api/v1/builds/999", headers={"X-Correlation-Id": "corr-404"})

        assert response.status_code == 404
        detail = response.json()["detail"]
        assert detail["error"] == "BUILD_NOT_FOUND"
        assert detail["correlation_id"] == "corr-404"

    def test_history(self, client, build_repo):
        """History is a list, newest first."""
        first = build_repo.create("a")
        second = build_repo.create("b")
        build_repo.update_status(second, BuildStatus.BUILDING)

        response = client.get("/api/v1/builds", params={"limit": 10})

        assert response.status_code == 200
        body = response.json()
        assert [b["id"] for b in body] == [second, first]
        assert body[0]["status"] == "BUILDING"
        assert body[0]["image_name"] == "b"
        assert body[0]["created_at"]

    def test_history_limit_validated(self, client):
        """The limit must be positive."""
        assert client.get("/api/v1/builds", params={"limit": 0}).status_code == 422


class TestImagesRoute:
    """GET /api/v1/images."""

    def test_list(self, client, cloud):
        """Images are listed with their metadata."""
        image_id = cloud.add_image("golden", size=10)

        response = client.get("/api/v1/images")

        assert response.status_code == 200
        assert response.json()[0]["id"] == image_id
        assert response.json()[0]["size"] == 10

    def test_upstream_error(self, client, cloud):
        """Image service failures answer 502."""
        cloud.fail_on.add("list_images")

        response = client.get("/api/v1/images")

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "UPSTREAM_ERROR"


class TestAgentReportRoute:
    """POST /api/v1/agent/report."""

    def test_success_report(self, client, build_repo, cloud):
        """A passing report promotes and answers SHUTDOWN."""
        build_id = build_repo.create("golden")
        for status in (
            BuildStatus.BUILDING,
            BuildStatus.UPLOADING,
            BuildStatus.BOOTING_VM,
            BuildStatus.WAITING_AGENT,
        ):
            build_repo.update_status(build_id, status)
        build_repo.set_candidate_id(build_id, cloud.add_image("golden-candidate"))
        build_repo.set_vm_id(build_id, "vm-1")

        response = client.post(
            "/api/v1/agent/report",
            json={"vm_id": "vm-1", "phase": "BOOT_CHECK", "success": True,
                  "details": "Disk: OK; Net: OK"},
        )

        assert response.status_code == 200
        assert response.json() == {"command": "SHUTDOWN"}
        assert build_repo.get_status(build_id)[0] == BuildStatus.SUCCESS
        assert cloud.names() == ["golden"]

    def test_failure_report(self, client):
        """A failing report answers WAIT."""
        response = client.post(
            "/api/v1/agent/report",
            json={"vm_id": "vm-9", "phase": "BOOT_CHECK", "success": False},
        )

        assert response.status_code == 200
        assert response.json() == {"command": "WAIT"}

    def test_blank_vm_id(self, client):
        """A blank vm_id answers 400."""
        response = client.post("/api/v1/agent/report", json={"vm_id": "  ", "success": True})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "INVALID_AGENT_REPORT"


class TestServiceRoutes:
    """Root and health endpoints."""

    def test_health(self, test_client):
        """Health answers healthy."""
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self, test_client):
        """Root points at the docs."""
        assert test_client.get("/").json()["docs"] == "/docs"
