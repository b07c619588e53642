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

"""Port for the external image builder process."""

from typing import Callable, Optional, Protocol

LogSink = Callable[[str], None]


class ImageBuilder(Protocol):
    """Supervises the external disk image creation tool."""

    async def build_image(
        self,
        image_name: str,
        distro: str,
        log_sink: Optional[LogSink] = None,
    ) -> None:
        """Run the image builder until it exits or its deadline expires.

        Raises:
            DistroConfigError: If the distro configuration cannot be loaded.
            BuildExecutionError: If the tool fails; carries the output tail.
            BuildTimeoutError: If the deadline expires.
        """
        ...

    def cleanup(self, image_name: str) -> None:
        """Remove local artifacts produced for image_name."""
        ...
