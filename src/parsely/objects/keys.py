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
"""Field accessors: a wire key paired with get/set functions on a record."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

R = TypeVar("R")
V = TypeVar("V")


@dataclass(frozen=True)
class FieldKey(Generic[R, V]):
    """Names a record field for the operation engine.

    ``key`` is the name sent over the wire; ``getter``/``setter`` read and
    write the local value. :meth:`of` builds one for a declared model field.
    """

    key: str
    getter: Callable[[R], V]
    setter: Callable[[R, V], None]

    @classmethod
    def of(cls, model: type[BaseModel], name: str) -> FieldKey[Any, Any]:
        """Accessor for a declared field, looked up by attribute name or wire alias."""
        attribute = _attribute_name(model, name)
        if attribute is None:
            raise KeyError(f"{model.__name__} has no field named '{name}'")
        info = model.model_fields[attribute]
        return cls(
            key=info.alias or attribute,
            getter=lambda record, _a=attribute: getattr(record, _a, None),
            setter=lambda record, value, _a=attribute: setattr(record, _a, value),
        )

    def get(self, record: R) -> V:
        return self.getter(record)

    def set(self, record: R, value: V) -> None:
        self.setter(record, value)


def resolve_field(model: type[BaseModel], field: str | FieldKey[Any, Any]) -> FieldKey[Any, Any] | None:
    """The accessor for *field*, or ``None`` when *field* names no declared field."""
    if isinstance(field, FieldKey):
        return field
    if _attribute_name(model, field) is None:
        return None
    return FieldKey.of(model, field)


def wire_key(model: type[BaseModel], field: str | FieldKey[Any, Any]) -> str:
    """Wire name for *field*; undeclared names pass through unchanged."""
    accessor = resolve_field(model, field)
    return accessor.key if accessor is not None else field  # type: ignore[return-value]


def _attribute_name(model: type[BaseModel], name: str) -> str | None:
    fields = model.model_fields
    if name in fields:
        return name
    for attribute, info in fields.items():
        if info.alias == name:
            return attribute
    return None
