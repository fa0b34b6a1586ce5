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
"""Class schemas (``/schemas``): fields, indexes and class-level permissions.

Every schema request needs the primary key; it is added for you::

    schema = (
        ParseSchema(class_name="GameScore")
        .add_field("points", SchemaFieldType.NUMBER, required=True, default_value=0)
        .add_field("player", SchemaFieldType.POINTER, target_class="_User")
        .add_index("points_1", {"points": 1})
    )
    created = await schema.create()
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from parsely.api.command import NonParseBodyCommand
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Option, Options, UsePrimaryKey
from parsely.api.surface import surface
from parsely.coding.coding import encode_value
from parsely.core.runtime import ParseClient, resolve
from parsely.kernel.exceptions import ParseError

OptionsArg = Options | Iterable[Option] | None

_DELETE = {"__op": "Delete"}


class SchemaFieldType(str, Enum):
    STRING = "String"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    DATE = "Date"
    FILE = "File"
    GEO_POINT = "GeoPoint"
    POLYGON = "Polygon"
    ARRAY = "Array"
    OBJECT = "Object"
    POINTER = "Pointer"
    RELATION = "Relation"
    BYTES = "Bytes"
    ACL = "ACL"


class ParseSchema(BaseModel):
    """The schema of one class; builder methods return updated copies."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True, ignored_types=(surface,))

    class_name: str = Field(alias="className")
    fields: dict[str, Any] = Field(default_factory=dict)
    indexes: dict[str, Any] = Field(default_factory=dict)
    class_level_permissions: dict[str, Any] | None = Field(default=None, alias="classLevelPermissions")

    def add_field(
        self,
        name: str,
        field_type: SchemaFieldType,
        *,
        target_class: str | None = None,
        required: bool | None = None,
        default_value: Any = None,
    ) -> ParseSchema:
        if field_type in (SchemaFieldType.POINTER, SchemaFieldType.RELATION) and target_class is None:
            raise ParseError.other(f"A {field_type.value} field needs a target class")
        definition: dict[str, Any] = {"type": field_type.value}
        if target_class is not None:
            definition["targetClass"] = target_class
        if required is not None:
            definition["required"] = required
        if default_value is not None:
            definition["defaultValue"] = encode_value(default_value)
        return self.model_copy(update={"fields": {**self.fields, name: definition}})

    def delete_field(self, name: str) -> ParseSchema:
        return self.model_copy(update={"fields": {**self.fields, name: dict(_DELETE)}})

    def add_index(self, name: str, index: Mapping[str, Any]) -> ParseSchema:
        return self.model_copy(update={"indexes": {**self.indexes, name: dict(index)}})

    def delete_index(self, name: str) -> ParseSchema:
        return self.model_copy(update={"indexes": {**self.indexes, name: dict(_DELETE)}})

    def with_permissions(self, permissions: Mapping[str, Any]) -> ParseSchema:
        return self.model_copy(update={"class_level_permissions": dict(permissions)})

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _command(self, method: Method, path: Endpoint, body: Any = None) -> NonParseBodyCommand[ParseSchema]:
        return NonParseBodyCommand(method=method, path=path, body=body, mapper=ParseSchema.model_validate_json)

    def fetch_command(self) -> NonParseBodyCommand[ParseSchema]:
        return self._command(Method.GET, Endpoint.schema(self.class_name))

    def create_command(self) -> NonParseBodyCommand[ParseSchema]:
        return self._command(Method.POST, Endpoint.schema(self.class_name), self.to_wire())

    def update_command(self) -> NonParseBodyCommand[ParseSchema]:
        return self._command(Method.PUT, Endpoint.schema(self.class_name), self.to_wire())

    def purge_command(self) -> NonParseBodyCommand[None]:
        return NonParseBodyCommand(method=Method.DELETE, path=Endpoint.purge(self.class_name), mapper=lambda data: None)

    def delete_command(self) -> NonParseBodyCommand[None]:
        return NonParseBodyCommand(
            method=Method.DELETE, path=Endpoint.schema(self.class_name), mapper=lambda data: None
        )

    @staticmethod
    def _elevated(options: OptionsArg) -> Options:
        return Options.of(options).union([UsePrimaryKey()])

    @surface
    async def fetch(self, options: OptionsArg = None, client: ParseClient | None = None) -> ParseSchema:
        return await self.fetch_command().execute(resolve(client), self._elevated(options))

    @surface
    async def create(self, options: OptionsArg = None, client: ParseClient | None = None) -> ParseSchema:
        return await self.create_command().execute(resolve(client), self._elevated(options))

    @surface
    async def update(self, options: OptionsArg = None, client: ParseClient | None = None) -> ParseSchema:
        return await self.update_command().execute(resolve(client), self._elevated(options))

    @surface
    async def purge(self, options: OptionsArg = None, client: ParseClient | None = None) -> None:
        """Delete every record of the class, keeping the schema."""
        await self.purge_command().execute(resolve(client), self._elevated(options))

    @surface
    async def delete(self, options: OptionsArg = None, client: ParseClient | None = None) -> None:
        """Delete the schema; the class must be empty, see :meth:`purge`."""
        await self.delete_command().execute(resolve(client), self._elevated(options))
