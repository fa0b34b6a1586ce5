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
"""Class-name registry used to resolve pointers back to record types."""

from __future__ import annotations

from typing import Any

_registry: dict[str, type[Any]] = {}


def register(class_name: str, record_type: type[Any]) -> None:
    _registry[class_name] = record_type


def lookup(class_name: str) -> type[Any] | None:
    return _registry.get(class_name)
