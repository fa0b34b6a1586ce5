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
"""Capabilities a record type can declare."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Identifiable(Protocol):
    @property
    def is_saved(self) -> bool: ...


@runtime_checkable
class Savable(Protocol):
    def save(self, *args: Any, **kwargs: Any) -> Any: ...


@runtime_checkable
class Fetchable(Protocol):
    def fetch(self, *args: Any, **kwargs: Any) -> Any: ...


@runtime_checkable
class Deletable(Protocol):
    def delete(self, *args: Any, **kwargs: Any) -> Any: ...
