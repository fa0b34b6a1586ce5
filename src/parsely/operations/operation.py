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
"""Field-level change tracking for a saved record.

A :class:`ParseOperation` collects per-field changes and saves them as one
update carrying only those changes::

    updated = await (
        score.operation
        .set("player_name", "Ana")
        .increment("points", 5)
        .add_unique("tags", ["ranked"])
        .save()
    )

Every method returns a new operation; the receiver is left untouched.
Changes are also applied to a local copy of the record (:attr:`target`)
where that is meaningful, so a UI can show them before the save completes.

Fields are named by attribute, by wire key, or by :class:`FieldKey`. Names
that match no declared field are sent as-is without any local change.

Two modes exist and cannot be mixed. :meth:`assign` writes a field straight
onto the record, which is then saved whole; every other method records a
keyed operation. An operation holding both fails with ``OTHER_CAUSE`` when
encoded or saved.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

import structlog

from parsely.api.command import Command, NonParseBodyCommand
from parsely.api.endpoint import Method
from parsely.api.options import Option, Options
from parsely.api.responses import UpdateResponse
from parsely.api.surface import surface
from parsely.coding.coding import encode_value
from parsely.core.configuration import ParseConfiguration
from parsely.core.runtime import ParseClient, resolve
from parsely.kernel.exceptions import ParseError, ParseErrorCode
from parsely.objects.keys import FieldKey, resolve_field
from parsely.objects.parse_object import ParseObject
from parsely.objects.pointer import Pointer
from parsely.operations.descriptors import (
    Add,
    AddRelation,
    AddUnique,
    Delete,
    Increment,
    OperationDescriptor,
    ParseOperationBatch,
    Remove,
    RemoveRelation,
    SetValue,
)

T = TypeVar("T", bound=ParseObject)

FieldArg = str | FieldKey[Any, Any]

logger = structlog.get_logger(__name__)

_COMBINE_MESSAGE = (
    'Cannot combine operations with the "assign" method that writes whole fields. '
    "Use keyed operations only, or save the record directly."
)


class ParseOperation(Generic[T]):
    """An accumulated set of field changes for one record."""

    def __init__(self, target: T) -> None:
        self._original: T = target.model_copy(deep=True)
        self._target: T = target.model_copy(deep=True)
        self._operations: dict[str, OperationDescriptor] = {}
        self._keys_to_null: set[str] = set()
        self._assigned = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def target(self) -> T:
        """Copy of the record with local changes applied."""
        return self._target.model_copy(deep=True)

    @property
    def operations(self) -> dict[str, OperationDescriptor]:
        return dict(self._operations)

    @property
    def keys_to_null(self) -> frozenset[str]:
        return frozenset(self._keys_to_null)

    def _copy(self) -> ParseOperation[T]:
        clone = copy.copy(self)
        clone._original = self._original.model_copy(deep=True)
        clone._target = self._target.model_copy(deep=True)
        clone._operations = dict(self._operations)
        clone._keys_to_null = set(self._keys_to_null)
        return clone

    def _resolve(self, field: FieldArg) -> tuple[str, FieldKey[Any, Any] | None]:
        accessor = resolve_field(type(self._target), field)
        if accessor is None:
            return str(field), None
        return accessor.key, accessor

    def _record(self, key: str, descriptor: OperationDescriptor) -> None:
        self._operations[key] = descriptor
        self._keys_to_null.discard(key)

    def _record_null(self, key: str) -> None:
        self._keys_to_null.add(key)
        self._operations.pop(key, None)

    # ------------------------------------------------------------------
    # Whole-field mode
    # ------------------------------------------------------------------

    def assign(self, field: FieldArg, value: Any) -> ParseOperation[T]:
        """Write *field* directly on the record; the save then sends the record itself."""
        _, accessor = self._resolve(field)
        if accessor is None:
            raise ParseError.other(f"{type(self._target).__name__} has no field named '{field}'")
        op = self._copy()
        op._target = op._target.set(accessor, value)
        op._assigned = True
        return op

    # ------------------------------------------------------------------
    # Keyed mode
    # ------------------------------------------------------------------

    def set(self, field: FieldArg, value: Any) -> ParseOperation[T]:
        """Record *value* for *field* if it differs from the current one.

        Setting ``None`` over a non-``None`` value sends an explicit null.
        Setting the current value again changes nothing.
        """
        op = self._copy()
        key, accessor = op._resolve(field)
        if accessor is None:
            if value is None:
                op._record_null(key)
            else:
                op._record(key, SetValue(value))
            return op
        current = accessor.get(op._target)
        if value is None:
            if current is not None:
                op._record_null(key)
                accessor.set(op._target, None)
        elif current != value:
            op._record(key, SetValue(value))
            accessor.set(op._target, value)
        return op

    def force_set(self, field: FieldArg, value: Any) -> ParseOperation[T]:
        """Record *value* (or an explicit null) for *field* even when unchanged."""
        op = self._copy()
        key, accessor = op._resolve(field)
        if value is None:
            op._record_null(key)
        else:
            op._record(key, SetValue(value))
        if accessor is not None:
            accessor.set(op._target, value)
        return op

    def increment(self, field: FieldArg, amount: int | float) -> ParseOperation[T]:
        """Atomically add *amount* on the server; the local value is left alone."""
        op = self._copy()
        key, _ = op._resolve(field)
        op._record(key, Increment(amount))
        return op

    def add(self, field: FieldArg, objects: Iterable[Any]) -> ParseOperation[T]:
        items = tuple(objects)
        op = self._copy()
        key, accessor = op._resolve(field)
        op._record(key, Add(items))
        if accessor is not None:
            accessor.set(op._target, [*op._current_list(accessor), *items])
        return op

    def add_unique(self, field: FieldArg, objects: Iterable[Any]) -> ParseOperation[T]:
        """Add only values not already present; the local list keeps each value once."""
        items = tuple(objects)
        op = self._copy()
        key, accessor = op._resolve(field)
        op._record(key, AddUnique(items))
        if accessor is not None:
            accessor.set(op._target, _unique([*op._current_list(accessor), *items]))
        return op

    def remove(self, field: FieldArg, objects: Iterable[Any]) -> ParseOperation[T]:
        """Remove every occurrence of *objects*; the local list behaves as a set difference."""
        items = tuple(objects)
        op = self._copy()
        key, accessor = op._resolve(field)
        op._record(key, Remove(items))
        if accessor is not None:
            remaining = [value for value in op._current_list(accessor) if value not in items]
            accessor.set(op._target, _unique(remaining))
        return op

    def add_relation(self, field: FieldArg, objects: Iterable[ParseObject]) -> ParseOperation[T]:
        """Relate saved records to this one; unsaved records fail with ``MISSING_OBJECT_ID``."""
        records = tuple(objects)
        pointers = tuple(Pointer.to(record) for record in records)
        op = self._copy()
        key, accessor = op._resolve(field)
        op._record(key, AddRelation(pointers))
        if accessor is not None:
            accessor.set(op._target, [*op._current_list(accessor), *records])
        return op

    def remove_relation(self, field: FieldArg, objects: Iterable[ParseObject]) -> ParseOperation[T]:
        records = tuple(objects)
        pointers = tuple(Pointer.to(record) for record in records)
        op = self._copy()
        key, accessor = op._resolve(field)
        op._record(key, RemoveRelation(pointers))
        if accessor is not None:
            remaining = [
                value
                for value in op._current_list(accessor)
                if not any(pointer.has_same_object_id(value) for pointer in pointers)
            ]
            accessor.set(op._target, remaining)
        return op

    def batch(self, field: FieldArg, operations: ParseOperationBatch) -> ParseOperation[T]:
        op = self._copy()
        key, _ = op._resolve(field)
        op._record(key, operations)
        return op

    def unset(self, field: FieldArg) -> ParseOperation[T]:
        """Delete *field* on the server and clear it locally."""
        op = self._copy()
        key, accessor = op._resolve(field)
        op._record(key, Delete())
        if accessor is not None:
            accessor.set(op._target, None)
        return op

    def _current_list(self, accessor: FieldKey[Any, Any]) -> list[Any]:
        current = accessor.get(self._target)
        return list(current) if current is not None else []

    # ------------------------------------------------------------------
    # Encoding and saving
    # ------------------------------------------------------------------

    @property
    def _whole_record(self) -> bool:
        return self._assigned or self._target.original_data is not None

    @property
    def _has_keyed_changes(self) -> bool:
        return bool(self._operations or self._keys_to_null)

    def to_wire(self) -> dict[str, Any]:
        """One entry per operation plus an explicit null per nulled key."""
        if self._whole_record and self._has_keyed_changes:
            raise ParseError.other(_COMBINE_MESSAGE)
        body: dict[str, Any] = {key: descriptor.to_wire() for key, descriptor in self._operations.items()}
        body.update({key: None for key in self._keys_to_null})
        return body

    def save_command(self, configuration: ParseConfiguration) -> Command[T] | NonParseBodyCommand[T]:
        if self._target.object_id is None:
            raise ParseError(ParseErrorCode.MISSING_OBJECT_ID, "ParseObject is not saved.")
        if self._whole_record:
            if self._has_keyed_changes:
                raise ParseError.other(_COMBINE_MESSAGE)
            return self._target.save_command(configuration)
        if not self._has_keyed_changes:
            return self._target.save_command(configuration)
        # PUT: the server does not accept PATCH for operation payloads yet.
        return NonParseBodyCommand(
            method=Method.PUT,
            path=self._target.endpoint(Method.PUT),
            body=self.to_wire(),
            mapper=lambda data: self.apply(UpdateResponse.model_validate_json(data)),
        )

    def apply(self, response: UpdateResponse) -> T:
        """The original record with the saved changes and the server's reply applied.

        Explicit sets, nulls and deletes are applied as sent. Values the
        server computes (increments, array operations) are taken from the
        reply when echoed; otherwise the original value is kept.
        """
        original = self._original
        data = original.model_dump(by_alias=True, exclude_none=True)
        for key, descriptor in self._operations.items():
            if isinstance(descriptor, SetValue):
                data[key] = encode_value(descriptor.value)
            elif isinstance(descriptor, Delete):
                data.pop(key, None)
        for key in self._keys_to_null:
            data.pop(key, None)
        data.update(response.changed_fields)
        data["updatedAt"] = response.updated_at
        return type(original).model_validate(data)

    @surface
    async def save(self, options: Options | Iterable[Option] | None = None, client: ParseClient | None = None) -> T:
        """Send the accumulated changes and return the updated record."""
        client = resolve(client)
        command = self.save_command(client.configuration)
        logger.debug(
            "operation_saving",
            class_name=self._target.class_name,
            object_id=self._target.object_id,
            keys=sorted({*self._operations, *self._keys_to_null}),
        )
        return await command.execute(client, Options.of(options))


def _unique(values: list[Any]) -> list[Any]:
    unique: list[Any] = []
    for value in values:
        if value not in unique:
            unique.append(value)
    return unique
