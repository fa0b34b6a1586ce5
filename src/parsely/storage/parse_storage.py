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
"""Typed access to SDK state persisted in a :class:`PrimitiveStore`."""

from __future__ import annotations

from typing import Any, TypeVar

import structlog
from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from parsely.storage.port import PrimitiveStore

M = TypeVar("M", bound=BaseModel)

logger = structlog.get_logger(__name__)


class StorageKeys:
    CURRENT_USER = "_currentUser"
    CURRENT_INSTALLATION = "_currentInstallation"
    CURRENT_CONFIG = "_currentConfig"
    DEFAULT_ACL = "_defaultACL"
    CURRENT_VERSION = "_currentVersion"


class ParseStorage:
    """Wraps a store with JSON-safe writes and model-aware reads."""

    def __init__(self, store: PrimitiveStore) -> None:
        self._store = store

    @property
    def store(self) -> PrimitiveStore:
        return self._store

    async def get(self, key: str, model: type[M] | None = None) -> Any | None:
        value = await self._store.get(key)
        if value is None or model is None:
            return value
        return model.model_validate(value)

    async def set(self, key: str, value: Any) -> None:
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json", by_alias=True, exclude_none=True)
        await self._store.set(key, to_jsonable_python(value))

    async def delete(self, key: str) -> None:
        await self._store.delete(key)

    async def delete_all(self) -> None:
        await self._store.delete_all()

    async def get_quietly(self, key: str) -> Any | None:
        """Best-effort read for header decoration; store failures are logged, not raised."""
        try:
            return await self._store.get(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("storage_read_failed", key=key, error=str(exc))
            return None
