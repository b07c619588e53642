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

"""Domain services for the Builds module."""

import logging

from core.builds.exceptions import BuildDomainError
from core.builds.repositories import BuildRepository

logger = logging.getLogger(__name__)


class BuildLogSink:
    """Forwards builder output lines into the build record log.

    Used as the ``log_sink`` of the image builder so that the log of a
    running build can be tailed through the status endpoint.
    """

    def __init__(self, build_repo: BuildRepository, build_id: int) -> None:
        self._build_repo = build_repo
        self._build_id = build_id

    def __call__(self, line: str) -> None:
        try:
            self._build_repo.append_log(self._build_id, line)
        except BuildDomainError as exc:
            logger.warning(
                "Failed to append builder output to build %s: %s",
                self._build_id,
                exc.message,
            )
