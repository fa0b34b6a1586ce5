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
"""Sort orders for queries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class Order:
    """A single sort order: key + direction. Descending keys travel as ``-key``."""

    key: str
    direction: Literal["asc", "desc"] = "asc"

    @staticmethod
    def asc(key: str) -> Order:
        """Create an ascending order for the given key."""
        return Order(key=key, direction="asc")

    @staticmethod
    def desc(key: str) -> Order:
        """Create a descending order for the given key."""
        return Order(key=key, direction="desc")

    @staticmethod
    def parse(value: str) -> Order:
        if value.startswith("-"):
            return Order.desc(value[1:])
        return Order.asc(value)

    def to_wire(self) -> str:
        return f"-{self.key}" if self.direction == "desc" else self.key
