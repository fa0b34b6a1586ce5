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
"""HTTP methods and REST endpoints of Parse Server."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


# Built-in classes that live under their own collection path.
_SPECIAL_COLLECTIONS = {
    "_User": "users",
    "_Installation": "installations",
    "_Session": "sessions",
    "_Role": "roles",
}


def _segment(value: str) -> str:
    return quote(value, safe="")


@dataclass(frozen=True)
class Endpoint:
    """A path relative to the configured server URL."""

    path: str

    def __str__(self) -> str:
        return self.path

    @classmethod
    def for_class(cls, class_name: str, object_id: str | None = None) -> Endpoint:
        """Collection or instance endpoint for *class_name*."""
        collection = _SPECIAL_COLLECTIONS.get(class_name)
        base = f"/{collection}" if collection is not None else f"/classes/{_segment(class_name)}"
        if object_id is None:
            return cls(base)
        return cls(f"{base}/{_segment(object_id)}")

    @classmethod
    def batch(cls) -> Endpoint:
        return cls("/batch")

    @classmethod
    def login(cls) -> Endpoint:
        return cls("/login")

    @classmethod
    def logout(cls) -> Endpoint:
        return cls("/logout")

    @classmethod
    def aggregate(cls, class_name: str) -> Endpoint:
        return cls(f"/aggregate/{_segment(class_name)}")

    @classmethod
    def event(cls, name: str) -> Endpoint:
        return cls(f"/events/{_segment(name)}")

    @classmethod
    def file(cls, name: str) -> Endpoint:
        return cls(f"/files/{_segment(name)}")

    @classmethod
    def function(cls, name: str) -> Endpoint:
        return cls(f"/functions/{_segment(name)}")

    @classmethod
    def job(cls, name: str) -> Endpoint:
        return cls(f"/jobs/{_segment(name)}")

    @classmethod
    def config(cls) -> Endpoint:
        return cls("/config")

    @classmethod
    def health(cls) -> Endpoint:
        return cls("/health")

    @classmethod
    def server_info(cls) -> Endpoint:
        return cls("/serverInfo")

    @classmethod
    def schemas(cls) -> Endpoint:
        return cls("/schemas")

    @classmethod
    def schema(cls, class_name: str) -> Endpoint:
        return cls(f"/schemas/{_segment(class_name)}")

    @classmethod
    def purge(cls, class_name: str) -> Endpoint:
        return cls(f"/purge/{_segment(class_name)}")
