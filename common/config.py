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

"""Configuration loader for the image pipeline.

Values are read from an INI file and then overridden by environment
variables, so a deployment can run from the environment alone.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import configparser

DEFAULT_CONFIG_PATH = "./image_pipeline.ini"
DEFAULT_PACKAGES = "iputils-ping,curl,qemu-guest-agent,vim"


@dataclass
class ServerConfig:
    """HTTP server and logging configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    log_file_path: Optional[str] = None


@dataclass
class StorageConfig:
    """Build store configuration."""
    database_url: str = "sqlite:///./image-pipeline.db"


@dataclass
class BuilderConfig:
    """Image builder process configuration."""
    command: str = "disk-image-create"
    work_dir: str = "."
    elements_dir: str = "./elements"
    distro_config_dir: str = "./configs/distros"
    packages: str = DEFAULT_PACKAGES
    timeout_seconds: int = 600
    agent_public_address: str = ""
    ssh_inject_key: str = ""


@dataclass
class PipelineConfig:
    """Timeouts of the pipeline stages after the build."""
    vm_active_timeout_seconds: int = 300
    agent_warn_after_seconds: int = 180
    agent_timeout_seconds: int = 480


@dataclass
class OpenStackConfig:
    """OpenStack credentials and placement of test VMs."""
    auth_url: str = ""
    username: str = ""
    password: str = ""
    project_id: str = ""
    project_name: str = ""
    domain_name: str = "Default"
    region: str = "RegionOne"
    ssh_key_name: str = "master-key"
    flavor_id: str = "2"
    network_id: str = ""
    request_timeout_seconds: int = 60

    def validate(self) -> None:
        """Validate settings required to talk to OpenStack.

        Raises:
            ValueError: If a required setting is missing.
        """
        if not self.auth_url:
            raise ValueError("OpenStack auth_url (OS_AUTH_URL) is required")
        if not self.network_id:
            raise ValueError("OpenStack network_id (OS_NETWORK_ID) is required")


@dataclass
class ImagePipelineConfig:
    """Image pipeline configuration."""
    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    builder: BuilderConfig = field(default_factory=BuilderConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    openstack: OpenStackConfig = field(default_factory=OpenStackConfig)


# environment variable -> (section, option)
_ENV_OVERRIDES = {
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "LOG_LEVEL": ("server", "log_level"),
    "LOG_FILE_PATH": ("server", "log_file_path"),
    "DATABASE_URL": ("storage", "database_url"),
    "AGENT_PUBLIC_ADDRESS": ("builder", "agent_public_address"),
    "SSH_INJECT_KEY": ("builder", "ssh_inject_key"),
    "OS_AUTH_URL": ("openstack", "auth_url"),
    "OS_USERNAME": ("openstack", "username"),
    "OS_PASSWORD": ("openstack", "password"),
    "OS_PROJECT_ID": ("openstack", "project_id"),
    "OS_PROJECT_NAME": ("openstack", "project_name"),
    "OS_DOMAIN_NAME": ("openstack", "domain_name"),
    "OS_REGION_NAME": ("openstack", "region"),
    "OS_SSH_KEY_NAME": ("openstack", "ssh_key_name"),
    "OS_FLAVOR_ID": ("openstack", "flavor_id"),
    "OS_NETWORK_ID": ("openstack", "network_id"),
}


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ImagePipelineConfig:
    """Load image pipeline configuration from INI file and environment.

    Args:
        config_path: Path to configuration file. If None, uses
                    IMAGE_PIPELINE_CONFIG_PATH environment variable or
                    default path; a missing default file is not an error.
        environ: Environment mapping, os.environ when None.

    Returns:
        ImagePipelineConfig instance.

    Raises:
        FileNotFoundError: If an explicitly requested config file is missing.
        ValueError: If a value is invalid.
    """
    env = os.environ if environ is None else environ
    explicit = config_path is not None or "IMAGE_PIPELINE_CONFIG_PATH" in env
    if config_path is None:
        config_path = env.get("IMAGE_PIPELINE_CONFIG_PATH", DEFAULT_CONFIG_PATH)

    parser = configparser.ConfigParser()
    config_file = Path(config_path)
    if config_file.exists():
        parser.read(config_file)
    elif explicit:
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    for env_name, (section, option) in _ENV_OVERRIDES.items():
        if env_name in env and env[env_name] != "":
            if not parser.has_section(section):
                parser.add_section(section)
            parser.set(section, option, env[env_name])

    config = ImagePipelineConfig(
        server=ServerConfig(
            host=parser.get("server", "host", fallback="0.0.0.0"),
            port=_get_int(parser, "server", "port", 8080),
            log_level=parser.get("server", "log_level", fallback="INFO").upper(),
            log_file_path=parser.get("server", "log_file_path", fallback=None),
        ),
        storage=StorageConfig(
            database_url=parser.get(
                "storage", "database_url", fallback=StorageConfig.database_url
            ),
        ),
        builder=BuilderConfig(
            command=parser.get("builder", "command", fallback=BuilderConfig.command),
            work_dir=parser.get("builder", "work_dir", fallback=BuilderConfig.work_dir),
            elements_dir=parser.get(
                "builder", "elements_dir", fallback=BuilderConfig.elements_dir
            ),
            distro_config_dir=parser.get(
                "builder", "distro_config_dir", fallback=BuilderConfig.distro_config_dir
            ),
            packages=parser.get("builder", "packages", fallback=DEFAULT_PACKAGES),
            timeout_seconds=_get_int(parser, "builder", "timeout_seconds", 600),
            agent_public_address=parser.get("builder", "agent_public_address", fallback=""),
            ssh_inject_key=parser.get("builder", "ssh_inject_key", fallback=""),
        ),
        pipeline=PipelineConfig(
            vm_active_timeout_seconds=_get_int(
                parser, "pipeline", "vm_active_timeout_seconds", 300
            ),
            agent_warn_after_seconds=_get_int(
                parser, "pipeline", "agent_warn_after_seconds", 180
            ),
            agent_timeout_seconds=_get_int(
                parser, "pipeline", "agent_timeout_seconds", 480
            ),
        ),
        openstack=_load_openstack(parser),
    )

    if not 1 <= config.server.port <= 65535:
        raise ValueError(f"Port {config.server.port} is not in valid range 1-65535")
    if config.pipeline.agent_warn_after_seconds >= config.pipeline.agent_timeout_seconds:
        raise ValueError("agent_warn_after_seconds must be less than agent_timeout_seconds")

    return config


def _load_openstack(parser: configparser.ConfigParser) -> OpenStackConfig:
    section = "openstack"
    defaults = OpenStackConfig()
    return OpenStackConfig(
        auth_url=parser.get(section, "auth_url", fallback=""),
        username=parser.get(section, "username", fallback=""),
        password=parser.get(section, "password", fallback=""),
        project_id=parser.get(section, "project_id", fallback=""),
        project_name=parser.get(section, "project_name", fallback=""),
        domain_name=parser.get(section, "domain_name", fallback=defaults.domain_name),
        region=parser.get(section, "region", fallback=defaults.region),
        ssh_key_name=parser.get(section, "ssh_key_name", fallback=defaults.ssh_key_name),
        flavor_id=parser.get(section, "flavor_id", fallback=defaults.flavor_id),
        network_id=parser.get(section, "network_id", fallback=""),
        request_timeout_seconds=_get_int(parser, section, "request_timeout_seconds", 60),
    )


def _get_int(
    parser: configparser.ConfigParser, section: str, option: str, default: int
) -> int:
    if not parser.has_option(section, option):
        return default
    raw = parser.get(section, option)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            f"[{section}] {option} must be a valid integer, got: {raw}"
        ) from None
