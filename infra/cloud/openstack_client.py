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

"""OpenStack adapter speaking the Keystone v3, Glance v2 and Nova REST APIs."""

import base64
import logging
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import requests

from common.config import OpenStackConfig
from core.images.entities import ImageInfo
from core.images.exceptions import CloudAdapterError, VmActivationTimeoutError
from core.images.repositories import CloudAdapter

logger = logging.getLogger(__name__)

JSON_PATCH_CONTENT_TYPE = "application/openstack-images-v2.1-json-patch"
UPLOAD_CONTENT_TYPE = "application/octet-stream"
IMAGE_PROPERTIES = {
    "hw_qemu_guest_agent": "yes",
    "os_distro": "linux",
}


def _format_created_at(raw: Optional[str]) -> str:
    """Format an API timestamp as ``YYYY-MM-DD HH:MM``."""
    if not raw:
        return ""
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return raw


class OpenStackCloudAdapter(CloudAdapter):
    """CloudAdapter backed by an OpenStack project.

    Authenticates lazily with a Keystone v3 password grant and resolves
    the image and compute endpoints from the returned service catalog.
    A 401 answer triggers one re-authentication and a retry, so expired
    tokens do not fail long running pipelines.
    """

    def __init__(
        self,
        config: OpenStackConfig,
        session: Optional[requests.Session] = None,
        poll_interval: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._timeout = config.request_timeout_seconds
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._token: Optional[str] = None
        self._endpoints: Dict[str, str] = {}
        self._auth_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Keystone
    # ------------------------------------------------------------------

    def _auth_body(self) -> Dict[str, Any]:
        cfg = self._config
        if cfg.project_id:
            project: Dict[str, Any] = {"id": cfg.project_id}
        else:
            project = {"name": cfg.project_name, "domain": {"name": cfg.domain_name}}
        return {
            "auth": {
                "identity": {
                    "methods": ["password"],
                    "password": {
                        "user": {
                            "name": cfg.username,
                            "domain": {"name": cfg.domain_name},
                            "password": cfg.password,
                        }
                    },
                },
                "scope": {"project": project},
            }
        }

    def _authenticate(self) -> None:
        url = self._config.auth_url.rstrip("/")
        if not url.endswith("/v3"):
            url += "/v3"
        try:
            response = self._session.post(
                f"{url}/auth/tokens", json=self._auth_body(), timeout=self._timeout
            )
        except requests.RequestException as exc:
            raise CloudAdapterError(f"auth failed: {exc}") from exc
        if response.status_code != 201:
            raise CloudAdapterError(
                f"auth failed: HTTP {response.status_code}: {response.text[:200]}"
            )

        token = response.headers.get("X-Subject-Token")
        catalog = response.json().get("token", {}).get("catalog", [])
        endpoints = {}
        for service_type in ("image", "compute"):
            endpoint = self._find_endpoint(catalog, service_type)
            if endpoint is None:
                raise CloudAdapterError(
                    f"no public {service_type} endpoint in region {self._config.region}"
                )
            endpoints[service_type] = endpoint.rstrip("/")

        self._token = token
        self._endpoints = endpoints
        logger.info("Authenticated against OpenStack: region=%s", self._config.region)

    def _find_endpoint(self, catalog: List[Dict[str, Any]], service_type: str) -> Optional[str]:
        for service in catalog:
            if service.get("type") != service_type:
                continue
            for endpoint in service.get("endpoints", []):
                region = endpoint.get("region_id") or endpoint.get("region")
                if endpoint.get("interface") == "public" and region == self._config.region:
                    return endpoint.get("url")
        return None

    def _ensure_auth(self, force: bool = False) -> None:
        with self._auth_lock:
            if force or self._token is None:
                self._authenticate()

    def _request(
        self,
        service: str,
        method: str,
        path: str,
        expected: tuple = (200,),
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> requests.Response:
        self._ensure_auth()
        for attempt in range(2):
            base = self._endpoints[service]
            url = path if path.startswith("http") else f"{base}{path}"
            all_headers = {"X-Auth-Token": self._token or ""}
            all_headers.update(headers or {})
            try:
                response = self._session.request(
                    method, url, headers=all_headers, timeout=self._timeout, **kwargs
                )
            except requests.RequestException as exc:
                raise CloudAdapterError(f"{method} {path} failed: {exc}") from exc
            if response.status_code == 401 and attempt == 0:
                logger.info("OpenStack token rejected, re-authenticating")
                self._ensure_auth(force=True)
                body = kwargs.get("data")
                if hasattr(body, "seek"):
                    body.seek(0)
                continue
            if response.status_code not in expected:
                raise CloudAdapterError(
                    f"{method} {path} failed: HTTP {response.status_code}: {response.text[:200]}"
                )
            return response
        raise CloudAdapterError(f"{method} {path} failed: unauthorized")

    def _image_path(self, suffix: str) -> str:
        self._ensure_auth()
        base = self._endpoints["image"]
        prefix = "" if base.endswith("/v2") else "/v2"
        return f"{prefix}{suffix}"

    # ------------------------------------------------------------------
    # Glance
    # ------------------------------------------------------------------

    def _iter_images(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        path = self._image_path("/images?limit=100")
        if name is not None:
            path += f"&name={quote(name)}"
        images: List[Dict[str, Any]] = []
        while path:
            body = self._request("image", "GET", path).json()
            images.extend(body.get("images", []))
            next_link = body.get("next")
            if next_link:
                # next links are rooted at the service root, not at /v2
                root = self._endpoints["image"]
                if root.endswith("/v2"):
                    root = root[: -len("/v2")]
                path = f"{root}{next_link}"
            else:
                path = ""
        return images

    def list_images(self) -> List[ImageInfo]:
        return [
            ImageInfo(
                id=img.get("id", ""),
                name=img.get("name") or "",
                status=img.get("status", ""),
                size=int(img.get("size") or 0),
                created_at=_format_created_at(img.get("created_at")),
            )
            for img in self._iter_images()
        ]

    def upload_image(self, file_path: str, name: str) -> str:
        logger.info("Starting image upload: file=%s, name=%s", file_path, name)
        body = {
            "name": name,
            "container_format": "bare",
            "disk_format": "qcow2",
            "visibility": "private",
        }
        body.update(IMAGE_PROPERTIES)
        image = self._request(
            "image", "POST", self._image_path("/images"), expected=(201,), json=body
        ).json()
        image_id = image["id"]
        logger.debug("Image metadata created: id=%s", image_id)

        try:
            with open(file_path, "rb") as data:
                self._request(
                    "image",
                    "PUT",
                    self._image_path(f"/images/{image_id}/file"),
                    expected=(204,),
                    headers={"Content-Type": UPLOAD_CONTENT_TYPE},
                    data=data,
                )
        except OSError as exc:
            raise CloudAdapterError(f"open file failed: {exc}") from exc

        logger.info("Image uploaded successfully: id=%s", image_id)
        return image_id

    def delete_images_by_name(self, name: str) -> None:
        for img in self._iter_images(name=name):
            if img.get("name") != name:
                continue
            logger.info(
                "Deleting old image: id=%s, name=%s, status=%s",
                img.get("id"),
                name,
                img.get("status"),
            )
            try:
                self._request(
                    "image", "DELETE", self._image_path(f"/images/{img['id']}"),
                    expected=(204, 404),
                )
            except CloudAdapterError as exc:
                logger.error("Failed to delete old image %s: %s", img.get("id"), exc.message)

    def rename_image(self, image_id: str, new_name: str) -> None:
        patch = [{"op": "replace", "path": "/name", "value": new_name}]
        self._request(
            "image",
            "PATCH",
            self._image_path(f"/images/{image_id}"),
            headers={"Content-Type": JSON_PATCH_CONTENT_TYPE},
            json=patch,
        )

    # ------------------------------------------------------------------
    # Nova
    # ------------------------------------------------------------------

    def create_vm(
        self,
        name: str,
        image_id: str,
        flavor_id: str,
        network_id: str,
        user_data: str = "",
    ) -> str:
        server: Dict[str, Any] = {
            "name": name,
            "imageRef": image_id,
            "flavorRef": flavor_id,
            "networks": [{"uuid": network_id}],
        }
        if self._config.ssh_key_name:
            server["key_name"] = self._config.ssh_key_name
        if user_data:
            server["user_data"] = base64.b64encode(user_data.encode("utf-8")).decode("ascii")

        body = self._request(
            "compute", "POST", "/servers", expected=(202,), json={"server": server}
        ).json()
        vm_id = body["server"]["id"]
        logger.info("VM created: id=%s, key=%s", vm_id, self._config.ssh_key_name)
        return vm_id

    def wait_vm_active(self, vm_id: str, timeout: float) -> None:
        logger.info("Waiting for VM to become active: id=%s", vm_id)
        deadline = time.monotonic() + timeout
        while True:
            server = self._request("compute", "GET", f"/servers/{vm_id}").json()["server"]
            status = server.get("status", "")
            if status == "ACTIVE":
                return
            if status == "ERROR":
                fault = server.get("fault", {}).get("message", "unknown fault")
                raise CloudAdapterError(f"VM {vm_id} entered ERROR state: {fault}")
            if time.monotonic() >= deadline:
                raise VmActivationTimeoutError(
                    f"VM {vm_id} not ACTIVE after {timeout}s (last status {status})"
                )
            self._sleep(self._poll_interval)

    def delete_vm(self, vm_id: str) -> None:
        self._request("compute", "DELETE", f"/servers/{vm_id}", expected=(204, 404))
