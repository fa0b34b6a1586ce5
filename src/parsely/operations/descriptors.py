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
"""Wire descriptors for per-field operations (``{"__op": ...}``)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from parsely.coding.coding import encode_value
from parsely.kernel.exceptions import ParseError


class OperationDescriptor(ABC):
    @abstractmethod
    def to_wire(self) -> Any: ...


@dataclass(frozen=True)
class SetValue(OperationDescriptor):
    """A plain value; encodes as the value itself."""

    value: Any

    def to_wire(self) -> Any:
        return encode_value(self.value)


@dataclass(frozen=True)
class Increment(OperationDescriptor):
    amount: int | float

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, (int, float)):
            raise ParseError.other(f"Increment amount must be a number, got {self.amount!r}")

    def to_wire(self) -> dict[str, Any]:
        return {"__op": "Increment", "amount": self.amount}


@dataclass(frozen=True)
class _ArrayOperation(OperationDescriptor):
    objects: tuple[Any, ...]

    op_name = ""

    def to_wire(self) -> dict[str, Any]:
        return {"__op": self.op_name, "objects": [encode_value(item) for item in self.objects]}


@dataclass(frozen=True)
class Add(_ArrayOperation):
    op_name = "Add"


@dataclass(frozen=True)
class AddUnique(_ArrayOperation):
    op_name = "AddUnique"


@dataclass(frozen=True)
class Remove(_ArrayOperation):
    op_name = "Remove"


@dataclass(frozen=True)
class AddRelation(_ArrayOperation):
    """``objects`` are pointers to saved records."""

    op_name = "AddRelation"


@dataclass(frozen=True)
class RemoveRelation(_ArrayOperation):
    op_name = "RemoveRelation"


@dataclass(frozen=True)
class Delete(OperationDescriptor):
    def to_wire(self) -> dict[str, str]:
        return {"__op": "Delete"}


@dataclass(frozen=True)
class ParseOperationBatch(OperationDescriptor):
    """Several operations applied to one field in a single request."""

    ops: tuple[OperationDescriptor, ...] = ()

    def append_operations(self, *operations: OperationDescriptor) -> ParseOperationBatch:
        return ParseOperationBatch((*self.ops, *operations))

    def to_wire(self) -> dict[str, Any]:
        return {"__op": "Batch", "ops": [op.to_wire() for op in self.ops]}
