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
"""Type-erased JSON values.

:class:`AnyCodable` holds one of six variants (null, bool, number, string,
array, map). Arrays and maps hold further :class:`AnyCodable` values, so a
whole JSON document can be carried around (analytics dimensions, pipeline
stages, query hints) and compared structurally.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema


class AnyCodableKind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    MAP = "map"


@dataclass(frozen=True, eq=True)
class AnyCodable:
    kind: AnyCodableKind
    value: Any = None

    @classmethod
    def null(cls) -> AnyCodable:
        return cls(AnyCodableKind.NULL)

    @classmethod
    def wrap(cls, value: Any) -> AnyCodable:
        """Wrap a JSON-compatible Python value, recursing into lists and dicts."""
        if isinstance(value, AnyCodable):
            return value
        if value is None:
            return cls(AnyCodableKind.NULL)
        # bool before number: bool is an int subclass
        if isinstance(value, bool):
            return cls(AnyCodableKind.BOOL, value)
        if isinstance(value, (int, float)):
            return cls(AnyCodableKind.NUMBER, value)
        if isinstance(value, str):
            return cls(AnyCodableKind.STRING, value)
        if isinstance(value, (list, tuple)):
            return cls(AnyCodableKind.ARRAY, tuple(cls.wrap(item) for item in value))
        if isinstance(value, Mapping):
            return cls(AnyCodableKind.MAP, {str(k): cls.wrap(v) for k, v in value.items()})
        raise TypeError(f"AnyCodable cannot hold a value of type {type(value).__name__}")

    def to_wire(self) -> Any:
        """Plain JSON-compatible Python value."""
        match self.kind:
            case AnyCodableKind.NULL:
                return None
            case AnyCodableKind.ARRAY:
                return [item.to_wire() for item in self.value]
            case AnyCodableKind.MAP:
                return {key: item.to_wire() for key, item in self.value.items()}
            case _:
                return self.value

    def __getitem__(self, key: int | str) -> AnyCodable:
        if self.kind not in (AnyCodableKind.ARRAY, AnyCodableKind.MAP):
            raise TypeError(f"AnyCodable of kind {self.kind.value} is not subscriptable")
        return self.value[key]

    def __hash__(self) -> int:
        return hash(_freeze(self.to_wire()))

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls.wrap,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda v: v.to_wire()),
        )


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    return value
