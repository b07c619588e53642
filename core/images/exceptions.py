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

"""Images domain exceptions."""

from core.builds.exceptions import BuildDomainError


class CloudAdapterError(BuildDomainError):
    """Raised when a call against the cloud API fails."""


class VmActivationTimeoutError(CloudAdapterError):
    """Raised when a VM does not reach ACTIVE within its timeout."""


class PromotionError(BuildDomainError):
    """Raised when a candidate image could not be promoted.

    Attributes:
        production_absent: True if the old production image was already
            deleted when the failure occurred.
    """

    def __init__(self, message: str, production_absent: bool = False):
        super().__init__(message)
        self.production_absent = production_absent
