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

"""Test VM agent.

Runs inside a freshly booted test VM, performs smoke checks and reports
the verdict to the image pipeline. On SHUTDOWN the agent removes itself
from the image so it does not ship in the promoted image.

Usage:
    image-agent --manager http://10.0.0.5:8080
"""

import argparse
import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional

import requests

logger = logging.getLogger("image_agent")

METADATA_URL = "http://169.254.169.254/openstack/latest/meta_data.json"
METADATA_TIMEOUT_SECONDS = 2
REPORT_TIMEOUT_SECONDS = 5
REPORT_PATH = "/api/v1/agent/report"
UNKNOWN_VM_ID = "unknown-id"
DEFAULT_MANAGER_ADDRESS = "http://127.0.0.1:8080"
BOOT_CHECK_PHASE = "BOOT_CHECK"

SERVICE_NAME = "image-agent"
UNIT_FILE = "/etc/systemd/system/image-agent.service"
AGENT_BINARY = "/usr/local/bin/agent"

CommandRunner = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class CheckResult:
    """Outcome of the smoke checks."""

    disk: str
    net: str

    @property
    def success(self) -> bool:
        """True if every check passed."""
        return self.disk == "OK" and self.net == "OK"

    @property
    def details(self) -> str:
        """Details string sent with the report."""
        return f"Disk: {self.disk}; Net: {self.net}"


def get_vm_id(session: requests.Session, url: str = METADATA_URL) -> str:
    """Read this VM's id from the metadata service, or ``unknown-id``."""
    try:
        response = session.get(url, timeout=METADATA_TIMEOUT_SECONDS)
        response.raise_for_status()
        vm_id = response.json().get("uuid")
    except requests.RequestException as exc:
        logger.warning("Failed to get metadata from %s: %s", url, exc)
        return UNKNOWN_VM_ID
    except ValueError as exc:
        logger.warning("Failed to parse metadata JSON: %s", exc)
        return UNKNOWN_VM_ID
    return vm_id or UNKNOWN_VM_ID


def run_smoke_checks(run: CommandRunner = subprocess.run) -> CheckResult:
    """Check that the root filesystem is listable and the network is up."""
    disk = "OK"
    try:
        run(["ls", "/"], check=True, capture_output=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        disk = f"FAIL: {exc}"

    net = "OK"
    try:
        run(["ping", "-c", "1", "8.8.8.8"], check=True, capture_output=True)
    except (OSError, subprocess.CalledProcessError):
        net = "FAIL: No Internet"

    return CheckResult(disk=disk, net=net)


def report_status(
    session: requests.Session, manager_address: str, vm_id: str, result: CheckResult
) -> str:
    """Post the verdict and return the command sent back.

    Raises:
        requests.RequestException: If the pipeline cannot be reached.
    """
    response = session.post(
        f"{normalize_address(manager_address)}{REPORT_PATH}",
        json={
            "vm_id": vm_id,
            "phase": BOOT_CHECK_PHASE,
            "success": result.success,
            "details": result.details,
        },
        timeout=REPORT_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.json().get("command", "")


def normalize_address(address: str) -> str:
    """Return address as an http(s) base URL without trailing slash."""
    address = address.strip().rstrip("/")
    if not address.startswith(("http://", "https://")):
        address = f"http://{address}"
    return address


def self_destruct(
    run: CommandRunner = subprocess.run,
    remove: Callable[[str], None] = os.remove,
) -> None:
    """Disable and delete the agent service and binary."""
    logger.info("Mission complete. Self-destructing...")
    run(["systemctl", "disable", SERVICE_NAME], check=False)
    for path in (UNIT_FILE, AGENT_BINARY):
        try:
            remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to remove %s: %s", path, exc)
    run(["systemctl", "stop", SERVICE_NAME], check=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse agent command line arguments."""
    parser = argparse.ArgumentParser(description="Image pipeline test VM agent")
    parser.add_argument(
        "--manager",
        default=os.getenv("MANAGER_ADDRESS", ""),
        help="Image pipeline address (default: $MANAGER_ADDRESS)",
    )
    parser.add_argument(
        "--metadata-url",
        default=METADATA_URL,
        help="Metadata service URL exposing the VM uuid",
    )
    parser.add_argument(
        "--no-self-destruct",
        action="store_true",
        help="Keep the agent installed after a SHUTDOWN reply",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Agent entry point; returns the process exit code."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args(argv)
    logger.info("Agent started...")

    manager_address = args.manager
    if not manager_address:
        manager_address = DEFAULT_MANAGER_ADDRESS
        logger.warning("MANAGER_ADDRESS not set, defaulting to %s", manager_address)

    with requests.Session() as session:
        vm_id = get_vm_id(session, args.metadata_url)
        logger.info("Detected VM ID: %s", vm_id)

        result = run_smoke_checks()

        logger.info("Reporting status to Manager...")
        try:
            command = report_status(session, manager_address, vm_id, result)
        except requests.RequestException as exc:
            logger.error("Could not report status: %s", exc)
            return 1

    logger.info("Manager replied: %s", command)
    if command == "SHUTDOWN" and not args.no_self_destruct:
        self_destruct()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
