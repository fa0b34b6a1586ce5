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
"""Response envelopes returned by Parse Server."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from parsely.coding.coding import normalize_incoming

T = TypeVar("T")


class Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        return normalize_incoming(data)


class CreateResponse(Envelope):
    object_id: str = Field(alias="objectId")
    created_at: datetime = Field(alias="createdAt")

    @property
    def updated_at(self) -> datetime:
        return self.created_at


class LoginSignupResponse(CreateResponse):
    session_token: str = Field(alias="sessionToken")


class ReplaceResponse(Envelope):
    """A PUT may create the object (custom object ids), so both stamps are optional."""

    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class UpdateResponse(Envelope):
    """``{updatedAt, <changed fields>}``; extra keys are the server-side results of operations."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    updated_at: datetime = Field(alias="updatedAt")

    @property
    def changed_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class QueryResponse(Envelope, Generic[T]):
    results: list[T]
    count: int | None = None


class AnyResultsResponse(Envelope):
    results: list[Any]


class AnyResultsMongoResponse(Envelope):
    """Explain output from a MongoDB backend: a single plan document, not a list."""

    results: dict[str, Any]


class AnyResultResponse(Envelope):
    result: Any = None


class BooleanResponse(Envelope):
    result: bool


class FileUploadResponse(Envelope):
    name: str
    url: str


class ConfigFetchResponse(Envelope):
    params: dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(Envelope):
    code: int
    error: str


class BatchResponseItem(Envelope):
    success: dict[str, Any] | None = None
    error: ErrorEnvelope | None = None
