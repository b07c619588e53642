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

"""Unit tests for the OpenStack cloud adapter."""

# pylint: disable=redefined-outer-name,protected-access

import json
from typing import Any, Dict, List, Optional

import pytest
import requests

from common.config import OpenStackConfig
from core.images.exceptions import CloudAdapterError, VmActivationTimeoutError
from infra.cloud import OpenStackCloudAdapter

IMAGE_URL = "https://glance.example:9292"
COMPUTE_URL = "https://nova.example:8774/v2.1"


class FakeResponse:
    """Minimal requests.Response stand-in."""

    def __init__(self, status_code: int, body: Any = None, headers: Optional[Dict] = None):
        self.status_code = status_code
        self._body = body
        self.headers = headers or {}
        self.text = json.dumps(body) if body is not None else ""

    def json(self):
        """Return the canned body."""
        return self._body


class FakeSession:
    """Records requests and answers them from a queue per (method, url)."""

    def __init__(self):
        self.requests: List[tuple] = []
        self.routes: Dict[tuple, List[FakeResponse]] = {}
        self.auth_count = 0
        self.uploaded: List[bytes] = []

    def add(self, method: str, url: str, *responses: FakeResponse) -> None:
        """Queue responses for method and url."""
        self.routes.setdefault((method, url), []).extend(responses)

    def post(self, url, json=None, timeout=None):  # pylint: disable=redefined-outer-name
        """Keystone token request."""
        self.auth_count += 1
        self.requests.append(("POST", url, json, None))
        return FakeResponse(
            201,
            {
                "token": {
                    "catalog": [
                        {"type": "image", "endpoints": [
                            {"interface": "public", "region_id": "RegionOne", "url": IMAGE_URL},
                            {"interface": "internal", "region_id": "RegionOne", "url": "http://int"},
                        ]},
                        {"type": "compute", "endpoints": [
                            {"interface": "public", "region_id": "RegionOne", "url": COMPUTE_URL},
                        ]},
                    ]
                }
            },
            headers={"X-Subject-Token": f"token-{self.auth_count}"},
        )

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        """Answer any other call from the route queue."""
        self.requests.append((method, url, kwargs.get("json"), headers))
        body = kwargs.get("data")
        if hasattr(body, "read"):
            self.uploaded.append(body.read())
        queue = self.routes.get((method, url))
        if not queue:
            raise requests.ConnectionError(f"no route for {method} {url}")
        return queue.pop(0) if len(queue) > 1 else queue[0]


@pytest.fixture
def session():
    """Fake HTTP session."""
    return FakeSession()


@pytest.fixture
def adapter(session):
    """Adapter wired to the fake session with instant polling."""
    config = OpenStackConfig(
        auth_url="https://keystone.example:5000",
        username="svc",
        password="secret",
        project_name="images",
        network_id="net-1",
    )
    return OpenStackCloudAdapter(config, session=session, poll_interval=0, sleep=lambda _s: None)


class TestAuthentication:
    """Keystone authentication."""

    def test_authenticates_once_and_uses_public_endpoints(self, adapter, session):
        """The token is cached and the public endpoints used."""
        session.add("GET", f"{IMAGE_URL}/v2/images?limit=100", FakeResponse(200, {"images": []}))

        adapter.list_images()
        adapter.list_images()

        assert session.auth_count == 1
        method, url, body, _ = session.requests[0]
        assert (method, url) == ("POST", "https://keystone.example:5000/v3/auth/tokens")
        scope = body["auth"]["scope"]["project"]
        assert scope == {"name": "images", "domain": {"name": "Default"}}
        assert session.requests[1][3]["X-Auth-Token"] == "token-1"

    def test_reauthenticates_on_401(self, adapter, session):
        """An expired token triggers one re-authentication and a retry."""
        session.add(
            "GET",
            f"{IMAGE_URL}/v2/images?limit=100",
            FakeResponse(401, {"error": "expired"}),
            FakeResponse(200, {"images": []}),
        )

        assert adapter.list_images() == []
        assert session.auth_count == 2

    def test_transport_error_becomes_cloud_error(self, adapter):
        """Connection failures surface as CloudAdapterError."""
        with pytest.raises(CloudAdapterError):
            adapter.delete_vm("vm-1")


class TestImages:
    """Glance operations."""

    def test_list_images_follows_pagination(self, adapter, session):
        """Pages are followed through next links."""
        session.add(
            "GET",
            f"{IMAGE_URL}/v2/images?limit=100",
            FakeResponse(200, {
                "images": [{"id": "a", "name": "golden", "status": "active",
                            "size": 1024, "created_at": "2026-03-01T12:30:45Z"}],
                "next": "/v2/images?limit=100&marker=a",
            }),
        )
        session.add(
            "GET",
            f"{IMAGE_URL}/v2/images?limit=100&marker=a",
            FakeResponse(200, {"images": [{"id": "b", "name": None, "status": "queued", "size": None}]}),
        )

        images = adapter.list_images()

        assert [i.id for i in images] == ["a", "b"]
        assert images[0].created_at == "2026-03-01 12:30"
        assert images[0].size == 1024
        assert images[1].name == ""
        assert images[1].size == 0

    def test_upload_image(self, adapter, session, tmp_path):
        """Metadata is created, then the file is uploaded."""
        artifact = tmp_path / "golden.qcow2"
        artifact.write_bytes(b"qcow2")
        session.add("POST", f"{IMAGE_URL}/v2/images", FakeResponse(201, {"id": "img-9"}))
        session.add("PUT", f"{IMAGE_URL}/v2/images/img-9/file", FakeResponse(204))

        assert adapter.upload_image(str(artifact), "golden-candidate") == "img-9"

        create = session.requests[1]
        assert create[2]["name"] == "golden-candidate"
        assert create[2]["disk_format"] == "qcow2"
        assert create[2]["container_format"] == "bare"
        assert create[2]["visibility"] == "private"
        upload = session.requests[2]
        assert upload[3]["Content-Type"] == "application/octet-stream"

    def test_upload_retried_after_401_sends_whole_file(self, adapter, session, tmp_path):
        """A re-authenticated upload resends the artifact from its first byte."""
        artifact = tmp_path / "golden.qcow2"
        artifact.write_bytes(b"qcow2-image-bytes")
        session.add("POST", f"{IMAGE_URL}/v2/images", FakeResponse(201, {"id": "img-9"}))
        session.add(
            "PUT",
            f"{IMAGE_URL}/v2/images/img-9/file",
            FakeResponse(401, {"error": "expired"}),
            FakeResponse(204),
        )

        assert adapter.upload_image(str(artifact), "golden-candidate") == "img-9"

        assert session.auth_count == 2
        assert session.uploaded == [b"qcow2-image-bytes", b"qcow2-image-bytes"]

    def test_upload_missing_file(self, adapter, session, tmp_path):
        """A missing artifact is reported as an adapter error."""
        session.add("POST", f"{IMAGE_URL}/v2/images", FakeResponse(201, {"id": "img-9"}))

        with pytest.raises(CloudAdapterError) as exc_info:
            adapter.upload_image(str(tmp_path / "missing.qcow2"), "golden-candidate")
        assert "open file failed" in exc_info.value.message

    def test_delete_images_by_name(self, adapter, session):
        """Only exact name matches are deleted; failures are logged."""
        session.add(
            "GET",
            f"{IMAGE_URL}/v2/images?limit=100&name=golden",
            FakeResponse(200, {"images": [
                {"id": "a", "name": "golden"},
                {"id": "b", "name": "golden"},
            ]}),
        )
        session.add("DELETE", f"{IMAGE_URL}/v2/images/a", FakeResponse(204))
        session.add("DELETE", f"{IMAGE_URL}/v2/images/b", FakeResponse(500, {"error": "boom"}))

        adapter.delete_images_by_name("golden")

        deletes = [r[1] for r in session.requests if r[0] == "DELETE"]
        assert deletes == [f"{IMAGE_URL}/v2/images/a", f"{IMAGE_URL}/v2/images/b"]

    def test_rename_image(self, adapter, session):
        """Rename is a JSON patch on the name."""
        session.add("PATCH", f"{IMAGE_URL}/v2/images/img-9", FakeResponse(200, {"id": "img-9"}))

        adapter.rename_image("img-9", "golden")

        _, _, body, headers = session.requests[-1]
        assert body == [{"op": "replace", "path": "/name", "value": "golden"}]
        assert headers["Content-Type"] == "application/openstack-images-v2.1-json-patch"


class TestServers:
    """Nova operations."""

    def test_create_vm(self, adapter, session):
        """The server request carries image, flavor, network and key."""
        session.add("POST", f"{COMPUTE_URL}/servers", FakeResponse(202, {"server": {"id": "vm-1"}}))

        assert adapter.create_vm("golden-test-agent", "img-9", "2", "net-1") == "vm-1"

        server = session.requests[-1][2]["server"]
        assert server == {
            "name": "golden-test-agent",
            "imageRef": "img-9",
            "flavorRef": "2",
            "networks": [{"uuid": "net-1"}],
            "key_name": "master-key",
        }

    def test_wait_vm_active_polls(self, adapter, session):
        """Polling continues until the server is ACTIVE."""
        session.add(
            "GET",
            f"{COMPUTE_URL}/servers/vm-1",
            FakeResponse(200, {"server": {"status": "BUILD"}}),
            FakeResponse(200, {"server": {"status": "ACTIVE"}}),
        )

        adapter.wait_vm_active("vm-1", timeout=60)

        polls = [r for r in session.requests if r[1].endswith("/servers/vm-1")]
        assert len(polls) == 2

    def test_wait_vm_error_state(self, adapter, session):
        """A server in ERROR fails immediately."""
        session.add(
            "GET",
            f"{COMPUTE_URL}/servers/vm-1",
            FakeResponse(200, {"server": {"status": "ERROR", "fault": {"message": "No valid host"}}}),
        )

        with pytest.raises(CloudAdapterError) as exc_info:
            adapter.wait_vm_active("vm-1", timeout=60)
        assert not isinstance(exc_info.value, VmActivationTimeoutError)
        assert "No valid host" in exc_info.value.message

    def test_wait_vm_timeout(self, adapter, session):
        """A server that never becomes ACTIVE times out."""
        session.add("GET", f"{COMPUTE_URL}/servers/vm-1", FakeResponse(200, {"server": {"status": "BUILD"}}))

        with pytest.raises(VmActivationTimeoutError):
            adapter.wait_vm_active("vm-1", timeout=0)

    def test_delete_vm_tolerates_missing_server(self, adapter, session):
        """Deleting a server that is already gone succeeds."""
        session.add("DELETE", f"{COMPUTE_URL}/servers/vm-1", FakeResponse(404, {}))
        adapter.delete_vm("vm-1")
