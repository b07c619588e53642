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

"""SQLAlchemy ORM models for build record persistence.

ORM models are infrastructure-only and never exposed outside this layer.
Domain <-> ORM conversion is handled by mappers in mappers.py.
"""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class BuildModel(Base):
    """ORM model for builds table.

    Maps to BuildRecord domain entity via BuildMapper.
    """

    __tablename__ = "builds"

    id = Column(Integer, primary_key=True, autoincrement=True)

    image_name = Column(String(128), nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True)
    candidate_id = Column(String(64), nullable=True)
    vm_id = Column(String(64), nullable=True, index=True)
    log = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (
        Index("ix_builds_vm_status", "vm_id", "status"),
    )
