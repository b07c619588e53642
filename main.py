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

"""Image Pipeline API Server.

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8080
    python main.py                 # host/port from image_pipeline.ini or env
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.router import api_router
from common.config import ServerConfig
from container import container

API_VERSION = "1.0.0"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(server_config: ServerConfig) -> None:
    """Send service logs to stderr and, if configured, to a log file."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if server_config.log_file_path:
        handlers.append(logging.FileHandler(server_config.log_file_path, mode="a"))
    logging.basicConfig(
        level=getattr(logging, server_config.log_level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


configure_logging(container.config().server)
logger = logging.getLogger(__name__)
logger.info("Using container: %s", container.__class__.__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pylint: disable=unused-argument
    """Prepare the build store and own background pipelines.

    The task runner is bound to the serving loop so sync routes running in
    the thread pool can start pipelines; on shutdown every pipeline and
    watchdog still running is cancelled.
    """
    container.init_storage()
    task_runner = container.task_runner()
    task_runner.bind_loop()
    logger.info("Image pipeline ready")

    yield

    await task_runner.shutdown()
    logger.info("Image pipeline stopped")


app = FastAPI(
    title="Image Pipeline API",
    description="Builds VM images, tests them on a disposable VM and promotes them",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.container = container

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/", summary="Service information")
async def root() -> dict:
    """Return service name, version and where the API docs live."""
    return {
        "message": "Welcome to Image Pipeline API",
        "docs": "/docs",
        "version": API_VERSION,
    }


@app.get("/health", summary="Health check", status_code=status.HTTP_200_OK)
async def health_check() -> dict:
    """Liveness probe."""
    return {"status": "healthy"}


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):  # pylint: disable=unused-argument
    """Answer 500 for anything the routes did not map to an error body."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"status": "error", "message": "An internal server error occurred"},
    )


if __name__ == "__main__":
    import uvicorn

    server = container.config().server
    logger.info("Starting Image Pipeline API server on %s:%d", server.host, server.port)
    uvicorn.run("main:app", host=server.host, port=server.port)
