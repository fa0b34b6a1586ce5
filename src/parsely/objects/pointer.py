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
"""Pointers: lightweight references to saved records."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from parsely.api.command import Command
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Option, Options
from parsely.api.surface import surface
from parsely.coding.coding import dumps
from parsely.core.runtime import ParseClient, resolve
from parsely.kernel.exceptions import ParseError, ParseErrorCode
from parsely.objects.registry import lookup

T = TypeVar("T")


class Pointer(BaseModel, Generic[T]):
    """``{"__type": "Pointer", "className": ..., "objectId": ...}``"""

    model_config = ConfigDict(populate_by_name=True, frozen=True, ignored_types=(surface,))

    class_name: str = Field(alias="className")
    object_id: str = Field(alias="objectId")

    @classmethod
    def to(cls, record: Any) -> Pointer[Any]:
        """Pointer to a saved record; unsaved records cannot be referenced."""
        if getattr(record, "object_id", None) is None:
            raise ParseError(ParseErrorCode.MISSING_OBJECT_ID, "Cannot set a pointer to an unsaved object")
        return cls(class_name=record.class_name, object_id=record.object_id)

    @model_serializer
    def _serialize(self) -> dict[str, str]:
        return self.to_wire()

    def to_wire(self) -> dict[str, str]:
        return {"__type": "Pointer", "className": self.class_name, "objectId": self.object_id}

    def has_same_object_id(self, other: Any) -> bool:
        return (
            getattr(other, "class_name", None) == self.class_name
            and getattr(other, "object_id", None) == self.object_id
        )

    def target_type(self) -> type[Any]:
        record_type = lookup(self.class_name)
        if record_type is None:
            raise ParseError.other(f"No record type is registered for class '{self.class_name}'")
        return record_type

    def to_object(self) -> Any:
        """An otherwise empty record carrying only this pointer's id."""
        return self.target_type().model_construct(object_id=self.object_id)

    def fetch_command(self, include: Iterable[str] | None = None) -> Command[Any]:
        record_type = self.target_type()
        params = {"include": dumps(sorted(set(include)))} if include else None
        return Command(
            method=Method.GET,
            path=Endpoint.for_class(self.class_name, self.object_id),
            params=params,
            mapper=record_type.model_validate_json,
        )

    @surface
    async def fetch(
        self,
        include: Iterable[str] | None = None,
        options: Options | Iterable[Option] | None = None,
        client: ParseClient | None = None,
    ) -> Any:
        """Fetch the full record this pointer references."""
        return await self.fetch_command(include).execute(resolve(client), Options.of(options))
