# Copyright 2026 Firefly Software Solutions Inc.
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
"""Connection settings for a Parse Server deployment."""

from __future__ import annotations

from enum import Enum
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parsely.core.config import config_properties


class CachePolicy(str, Enum):
    """Request cache policies understood by the transport."""

    USE_PROTOCOL_CACHE_POLICY = "use_protocol_cache_policy"
    RELOAD_IGNORING_LOCAL_CACHE_DATA = "reload_ignoring_local_cache_data"
    RELOAD_IGNORING_LOCAL_AND_REMOTE_CACHE_DATA = "reload_ignoring_local_and_remote_cache_data"
    RETURN_CACHE_DATA_ELSE_LOAD = "return_cache_data_else_load"
    RETURN_CACHE_DATA_DONT_LOAD = "return_cache_data_dont_load"
    RELOAD_REVALIDATING_CACHE_DATA = "reload_revalidating_cache_data"


@config_properties(prefix="parsely.client")
class ParseConfiguration(BaseModel):
    """Settings every command reads at dispatch time.

    Treated as immutable once handed to :func:`parsely.initialize`.
    """

    model_config = ConfigDict(frozen=True)

    application_id: str
    server_url: str
    client_key: str | None = None
    primary_key: str | None = None
    maintenance_key: str | None = None
    live_query_server_url: str | None = None
    requiring_custom_object_ids: bool = False
    using_transactions: bool = False
    using_post_for_query: bool = False
    request_cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY
    http_additional_headers: dict[str, str] = Field(default_factory=dict)
    max_connection_attempts: int = Field(default=5, ge=1)
    timeout_seconds: float = Field(default=60.0, gt=0)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    downloads_directory: str | None = None

    @field_validator("server_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        parsed = urlparse(value)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"server_url must be an absolute URL, got '{value}'")
        return value.rstrip("/")

    @property
    def mount_path(self) -> str:
        """Path component of ``server_url``, e.g. ``/parse``."""
        return urlparse(self.server_url).path or "/"
