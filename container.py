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

"""Dependency Injector containers for the image pipeline."""
# pylint: disable=c-extension-no-member

import os

from dependency_injector import containers, providers

from common.config import ImagePipelineConfig, load_config
from core.images.services import ImagePromotionService
from infra.cloud import InMemoryCloudAdapter, OpenStackCloudAdapter
from infra.db import SqlBuildRepository, configure, init_schema
from infra.id_generator import CorrelationIdGenerator
from infra.process import DiskImageBuilder
from infra.repositories import InMemoryBuildRepository, YamlDistroConfigRepository
from orchestrator.agent.use_cases import ReportAgentStatusUseCase
from orchestrator.builds.pipeline import BuildPipeline
from orchestrator.builds.runner import BackgroundTaskRunner
from orchestrator.builds.use_cases import (
    GetBuildStatusUseCase,
    ListBuildsUseCase,
    StartBuildUseCase,
)
from orchestrator.builds.watchdog import AgentWatchdog
from orchestrator.images.use_cases import ListImagesUseCase


def _create_openstack_adapter(config: ImagePipelineConfig) -> OpenStackCloudAdapter:
    """Validate OpenStack settings and create the adapter.

    Raises:
        ValueError: If required OpenStack settings are missing.
    """
    config.openstack.validate()
    return OpenStackCloudAdapter(config.openstack)


def _init_sql_storage(config: ImagePipelineConfig) -> None:
    """Point the session layer at the configured database and create tables."""
    configure(config.storage.database_url)
    init_schema()


def _init_memory_storage(config: ImagePipelineConfig) -> None:  # pylint: disable=unused-argument
    """In-memory storage needs no schema."""


class DevContainer(containers.DeclarativeContainer):  # pylint: disable=R0903
    """Development profile container.

    Uses the in-memory build store and cloud for fast development and
    testing. No database or cloud credentials required.

    Activated when ENV=dev (default).
    """

    config = providers.Singleton(load_config)

    correlation_id_generator = providers.Singleton(CorrelationIdGenerator)

    # --- Storage ---
    build_repository = providers.Singleton(InMemoryBuildRepository)
    init_storage = providers.Callable(_init_memory_storage, config=config)

    # --- Cloud ---
    cloud_adapter = providers.Singleton(InMemoryCloudAdapter)

    # --- Builder ---
    distro_config_repository = providers.Singleton(
        YamlDistroConfigRepository,
        config_dir=config.provided.builder.distro_config_dir,
    )

    image_builder = providers.Singleton(
        DiskImageBuilder,
        distro_repo=distro_config_repository,
        command=config.provided.builder.command,
        work_dir=config.provided.builder.work_dir,
        elements_dir=config.provided.builder.elements_dir,
        packages=config.provided.builder.packages,
        timeout_seconds=config.provided.builder.timeout_seconds,
        manager_address=config.provided.builder.agent_public_address,
        ssh_inject_key=config.provided.builder.ssh_inject_key,
    )

    # --- Pipeline ---
    task_runner = providers.Singleton(BackgroundTaskRunner)

    agent_watchdog = providers.Singleton(
        AgentWatchdog,
        build_repo=build_repository,
        cloud=cloud_adapter,
        warn_after=config.provided.pipeline.agent_warn_after_seconds,
        timeout=config.provided.pipeline.agent_timeout_seconds,
    )

    build_pipeline = providers.Singleton(
        BuildPipeline,
        build_repo=build_repository,
        builder=image_builder,
        cloud=cloud_adapter,
        runner=task_runner,
        watchdog=agent_watchdog,
        flavor_id=config.provided.openstack.flavor_id,
        network_id=config.provided.openstack.network_id,
        vm_active_timeout=config.provided.pipeline.vm_active_timeout_seconds,
        work_dir=config.provided.builder.work_dir,
    )

    promotion_service = providers.Singleton(
        ImagePromotionService,
        cloud=cloud_adapter,
    )

    # --- Use cases ---
    start_build_use_case = providers.Factory(
        StartBuildUseCase,
        build_repo=build_repository,
        pipeline=build_pipeline,
        runner=task_runner,
    )

    get_build_status_use_case = providers.Factory(
        GetBuildStatusUseCase,
        build_repo=build_repository,
    )

    list_builds_use_case = providers.Factory(
        ListBuildsUseCase,
        build_repo=build_repository,
    )

    report_agent_status_use_case = providers.Factory(
        ReportAgentStatusUseCase,
        build_repo=build_repository,
        cloud=cloud_adapter,
        promotion_service=promotion_service,
    )

    list_images_use_case = providers.Factory(
        ListImagesUseCase,
        cloud=cloud_adapter,
    )


class ProdContainer(containers.DeclarativeContainer):  # pylint: disable=R0903
    """Production profile container.

    Uses the SQL build store (SQLite by default, any SQLAlchemy URL via
    DATABASE_URL) and the OpenStack adapter.

    Activated when ENV=prod.
    """

    config = providers.Singleton(load_config)

    correlation_id_generator = providers.Singleton(CorrelationIdGenerator)

    # --- Storage ---
    build_repository = providers.Singleton(SqlBuildRepository)
    init_storage = providers.Callable(_init_sql_storage, config=config)

    # --- Cloud ---
    cloud_adapter = providers.Singleton(_create_openstack_adapter, config=config)

    # --- Builder ---
    distro_config_repository = providers.Singleton(
        YamlDistroConfigRepository,
        config_dir=config.provided.builder.distro_config_dir,
    )

    image_builder = providers.Singleton(
        DiskImageBuilder,
        distro_repo=distro_config_repository,
        command=config.provided.builder.command,
        work_dir=config.provided.builder.work_dir,
        elements_dir=config.provided.builder.elements_dir,
        packages=config.provided.builder.packages,
        timeout_seconds=config.provided.builder.timeout_seconds,
        manager_address=config.provided.builder.agent_public_address,
        ssh_inject_key=config.provided.builder.ssh_inject_key,
    )

    # --- Pipeline ---
    task_runner = providers.Singleton(BackgroundTaskRunner)

    agent_watchdog = providers.Singleton(
        AgentWatchdog,
        build_repo=build_repository,
        cloud=cloud_adapter,
        warn_after=config.provided.pipeline.agent_warn_after_seconds,
        timeout=config.provided.pipeline.agent_timeout_seconds,
    )

    build_pipeline = providers.Singleton(
        BuildPipeline,
        build_repo=build_repository,
        builder=image_builder,
        cloud=cloud_adapter,
        runner=task_runner,
        watchdog=agent_watchdog,
        flavor_id=config.provided.openstack.flavor_id,
        network_id=config.provided.openstack.network_id,
        vm_active_timeout=config.provided.pipeline.vm_active_timeout_seconds,
        work_dir=config.provided.builder.work_dir,
    )

    promotion_service = providers.Singleton(
        ImagePromotionService,
        cloud=cloud_adapter,
    )

    # --- Use cases ---
    start_build_use_case = providers.Factory(
        StartBuildUseCase,
        build_repo=build_repository,
        pipeline=build_pipeline,
        runner=task_runner,
    )

    get_build_status_use_case = providers.Factory(
        GetBuildStatusUseCase,
        build_repo=build_repository,
    )

    list_builds_use_case = providers.Factory(
        ListBuildsUseCase,
        build_repo=build_repository,
    )

    report_agent_status_use_case = providers.Factory(
        ReportAgentStatusUseCase,
        build_repo=build_repository,
        cloud=cloud_adapter,
        promotion_service=promotion_service,
    )

    list_images_use_case = providers.Factory(
        ListImagesUseCase,
        cloud=cloud_adapter,
    )


def get_container_class():
    """Select container class based on ENV environment variable.

    Returns:
        DevContainer if ENV=dev (default)
        ProdContainer if ENV=prod
    """
    env = os.getenv("ENV", "dev").lower()

    if env == "prod":
        return ProdContainer

    return DevContainer


Container = get_container_class()

# Singleton container instance shared across app and dependencies
container = Container()

__all__ = ["Container", "container", "get_container_class"]
