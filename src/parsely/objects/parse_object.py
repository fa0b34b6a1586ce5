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
"""Typed records.

Subclass :class:`ParseObject` to declare a class stored on the server::

    class GameScore(ParseObject):
        points: int | None = None
        player_name: str | None = None
        tags: list[str] | None = None

Attribute names are snake_case in Python and camelCase on the wire
(``player_name`` <-> ``playerName``). The server class name defaults to the
Python class name; set ``class_name`` to override it. Give every field a
default: the server may return partial objects (``select``) and partial
copies are built for change tracking.

Records behave as values. Methods that change state (:meth:`set`,
:meth:`merge`, saving) return new instances and never mutate the receiver.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator
from pydantic.alias_generators import to_camel

from parsely.api.command import Command
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Option, Options
from parsely.api.responses import CreateResponse, ReplaceResponse, UpdateResponse
from parsely.api.surface import Result, class_surface, surface
from parsely.coding.coding import SERVER_KEYS, dumps, encode_fields, normalize_incoming
from parsely.core.configuration import ParseConfiguration
from parsely.core.runtime import ParseClient, resolve
from parsely.kernel.exceptions import ParseError, ParseErrorCode
from parsely.objects.acl import ParseACL
from parsely.objects.keys import FieldKey, resolve_field
from parsely.objects.pointer import Pointer
from parsely.objects.registry import register

if TYPE_CHECKING:
    from parsely.operations.operation import ParseOperation
    from parsely.query.constraints import QueryConstraint, QueryWhere
    from parsely.query.query import Query

OptionsArg = Options | Iterable[Option] | None


class ParseObject(BaseModel):
    """Base class for every record stored in a Parse class."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        ignored_types=(surface,),
    )

    class_name: ClassVar[str] = "ParseObject"

    object_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    acl: ParseACL | None = Field(default=None, alias="ACL")

    _original_data: dict[str, Any] | None = PrivateAttr(default=None)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        if "class_name" not in cls.__dict__:
            cls.class_name = cls.__name__
        register(cls.class_name, cls)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        return normalize_incoming(data)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def is_saved(self) -> bool:
        return self.object_id is not None

    @property
    def original_data(self) -> dict[str, Any] | None:
        """Snapshot of the record taken by :attr:`mergeable`, if any."""
        return self._original_data

    def endpoint(self, method: Method | None = None) -> Endpoint:
        if method is Method.POST or self.object_id is None:
            return Endpoint.for_class(self.class_name)
        return Endpoint.for_class(self.class_name, self.object_id)

    def has_same_object_id(self, other: Any) -> bool:
        return (
            self.object_id is not None
            and getattr(other, "class_name", None) == self.class_name
            and getattr(other, "object_id", None) == self.object_id
        )

    def to_pointer(self) -> Pointer[Self]:
        return Pointer.to(self)

    @property
    def operation(self) -> ParseOperation[Self]:
        """A fresh change-tracking session for this record."""
        from parsely.operations.operation import ParseOperation

        return ParseOperation(self)

    @classmethod
    def query(cls, *constraints: QueryConstraint | QueryWhere) -> Query[Self]:
        """A query over this class, optionally starting with *constraints*."""
        from parsely.query.query import Query

        return Query(cls, *constraints)

    # ------------------------------------------------------------------
    # Field access and local change tracking
    # ------------------------------------------------------------------

    def field(self, name: str) -> FieldKey[Self, Any]:
        return FieldKey.of(type(self), name)

    def get(self, field: str | FieldKey[Any, Any]) -> Any:
        accessor = self._accessor(field)
        return accessor.get(self)

    @property
    def mergeable(self) -> Self:
        """A copy suited to sending only changed fields.

        For a saved record without a snapshot, this is an empty record that
        keeps only the id and creation time, with the full current state
        kept as :attr:`original_data`. Otherwise it is a plain copy.
        """
        if self.is_saved and self._original_data is None:
            empty = type(self).model_construct(object_id=self.object_id, created_at=self.created_at)
            empty._original_data = self._snapshot()
            return empty
        return self.model_copy(deep=True)

    def set(self, field: str | FieldKey[Any, Any], value: Any) -> Self:
        """Copy of the record (see :attr:`mergeable`) with *field* set to *value*."""
        accessor = self._accessor(field)
        updated = self.mergeable
        accessor.set(updated, value)
        return updated

    def is_dirty(self, field: str | FieldKey[Any, Any] | None = None) -> bool:
        """Whether *field* (or any set field) differs from :attr:`original_data`.

        Without a snapshot, unsaved records count as dirty and saved ones as clean.
        """
        if self._original_data is None:
            return not self.is_saved
        current = self._snapshot()
        if field is None:
            keys = set(current) - SERVER_KEYS
        else:
            keys = {self._accessor(field).key}
        return any(key in current and current[key] != self._original_data.get(key) for key in keys)

    def revert(self, field: str | FieldKey[Any, Any] | None = None) -> Self:
        """Undo local changes to *field* (or to every field) using :attr:`original_data`."""
        if self._original_data is None:
            return self.model_copy(deep=True)
        original = type(self).model_validate(self._original_data)
        if field is None:
            return original
        accessor = self._accessor(field)
        reverted = self.model_copy(deep=True)
        accessor.set(reverted, accessor.get(original))
        return reverted

    def should_restore_key(self, field: str | FieldKey[Any, Any], original: Self) -> bool:
        """True when *field* is unset here but has a different value on *original*."""
        accessor = self._accessor(field)
        mine = accessor.get(self)
        return mine is None and accessor.get(original) != mine

    def merge_automatically(self, original: Self) -> Self:
        """Overlay every non-``None`` field of this record onto *original*."""
        base = original.model_dump(by_alias=True, exclude_none=True)
        base.update(self.model_dump(by_alias=True, exclude_none=True))
        return type(self).model_validate(base)

    def merge(self, original: Self) -> Self:
        if not self.has_same_object_id(original):
            raise ParseError.other("objectIds of the objects being merged do not match")
        return self.merge_automatically(original)

    def _accessor(self, field: str | FieldKey[Any, Any]) -> FieldKey[Any, Any]:
        accessor = resolve_field(type(self), field)
        if accessor is None:
            raise ParseError.other(f"{type(self).__name__} has no field named '{field}'")
        return accessor

    def _snapshot(self) -> dict[str, Any]:
        return encode_fields(self)

    # ------------------------------------------------------------------
    # Applying server responses
    # ------------------------------------------------------------------

    def _without_snapshot(self) -> Self:
        copy = self.model_copy(deep=True)
        copy._original_data = None
        return copy

    def _merged_with_snapshot(self, updated: Self) -> Self:
        """Fill fields the server did not echo from the snapshot taken before the change."""
        if self._original_data is None:
            return updated
        try:
            original = type(self).model_validate(self._original_data)
        except ValueError:
            return updated
        if not original.has_same_object_id(updated):
            return updated
        return updated.merge(original)

    def apply_create(self, response: CreateResponse) -> Self:
        updated = self._without_snapshot()
        updated.object_id = response.object_id
        updated.created_at = response.created_at
        updated.updated_at = response.updated_at
        return updated

    def apply_replace(self, response: ReplaceResponse) -> Self:
        updated = self._without_snapshot()
        if response.created_at is not None:
            updated.created_at = response.created_at
            updated.updated_at = response.created_at
        elif response.updated_at is not None:
            updated.updated_at = response.updated_at
        return self._merged_with_snapshot(updated)

    def apply_update(self, response: UpdateResponse) -> Self:
        """Apply ``{updatedAt, <changed fields>}``; all-or-nothing via revalidation."""
        data = self._without_snapshot().model_dump(by_alias=True, exclude_none=True)
        data.update(response.changed_fields)
        data["updatedAt"] = response.updated_at
        return self._merged_with_snapshot(type(self).model_validate(data))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def save_command(self, configuration: ParseConfiguration, ignoring_custom_object_id: bool = False) -> Command[Self]:
        """Create when new, replace when saved."""
        custom_ids = configuration.requiring_custom_object_ids and not ignoring_custom_object_id
        if custom_ids:
            if self.object_id is None:
                raise ParseError(ParseErrorCode.MISSING_OBJECT_ID, "objectId must not be nil")
            if self.created_at is None:
                return self.create_command(include_object_id=True)
            return self.replace_command()
        if self.is_saved:
            return self.replace_command()
        return self.create_command()

    def create_command(self, include_object_id: bool = False) -> Command[Self]:
        skip = SERVER_KEYS - {"objectId"} if include_object_id else SERVER_KEYS
        return Command(
            method=Method.POST,
            path=self.endpoint(Method.POST),
            body=self,
            skip_keys=skip,
            mapper=lambda data: self.apply_create(CreateResponse.model_validate_json(data)),
        )

    def replace_command(self) -> Command[Self]:
        self._require_object_id()
        return Command(
            method=Method.PUT,
            path=self.endpoint(Method.PUT),
            body=self,
            mapper=lambda data: self.apply_replace(ReplaceResponse.model_validate_json(data)),
        )

    def update_command(self) -> Command[Self]:
        self._require_object_id()
        return Command(
            method=Method.PATCH,
            path=self.endpoint(Method.PATCH),
            body=self,
            mapper=lambda data: self.apply_update(UpdateResponse.model_validate_json(data)),
        )

    def fetch_command(self, include: Iterable[str] | None = None) -> Command[Self]:
        self._require_object_id()
        params = {"include": dumps(sorted(set(include)))} if include else None
        return Command(
            method=Method.GET,
            path=self.endpoint(Method.GET),
            params=params,
            mapper=type(self).model_validate_json,
        )

    def delete_command(self) -> Command[None]:
        self._require_object_id()
        return Command(method=Method.DELETE, path=self.endpoint(Method.DELETE), mapper=lambda data: None)

    def _require_object_id(self) -> None:
        if self.object_id is None:
            raise ParseError(ParseErrorCode.MISSING_OBJECT_ID, "objectId must not be nil")

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @surface
    async def save(
        self,
        options: OptionsArg = None,
        client: ParseClient | None = None,
        *,
        ignoring_custom_object_id: bool = False,
    ) -> Self:
        """Create or replace this record on the server."""
        client = resolve(client)
        command = self.save_command(client.configuration, ignoring_custom_object_id)
        return await command.execute(client, Options.of(options))

    @surface
    async def create(self, options: OptionsArg = None, client: ParseClient | None = None) -> Self:
        client = resolve(client)
        command = self.create_command(include_object_id=client.configuration.requiring_custom_object_ids)
        return await command.execute(client, Options.of(options))

    @surface
    async def replace(self, options: OptionsArg = None, client: ParseClient | None = None) -> Self:
        return await self.replace_command().execute(resolve(client), Options.of(options))

    @surface
    async def update(self, options: OptionsArg = None, client: ParseClient | None = None) -> Self:
        """PATCH the non-``None`` fields of this record."""
        return await self.update_command().execute(resolve(client), Options.of(options))

    @surface
    async def fetch(
        self,
        include: Iterable[str] | None = None,
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> Self:
        return await self.fetch_command(include).execute(resolve(client), Options.of(options))

    @surface
    async def delete(self, options: OptionsArg = None, client: ParseClient | None = None) -> None:
        await self.delete_command().execute(resolve(client), Options.of(options))

    @class_surface
    async def save_all(
        cls,
        records: Iterable[Self],
        batch_limit: int | None = None,
        transaction: bool | None = None,
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> list[Result[Self]]:
        """Save many records through ``/batch``; one :class:`Result` per record."""
        from parsely.objects.batch import save_all

        return await save_all(list(records), batch_limit, transaction, Options.of(options), resolve(client))

    @class_surface
    async def delete_all(
        cls,
        records: Iterable[Self],
        batch_limit: int | None = None,
        transaction: bool | None = None,
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> list[Result[None]]:
        from parsely.objects.batch import delete_all

        return await delete_all(list(records), batch_limit, transaction, Options.of(options), resolve(client))

    def to_body(self) -> dict[str, Any]:
        """Wire encoding of the user fields, as sent when saving."""
        return encode_fields(self, skip=SERVER_KEYS)
