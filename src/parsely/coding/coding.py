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
"""Canonical wire encoding.

Rules shared by every request body and query parameter:

* dates travel as ``{"__type": "Date", "iso": "2026-01-02T03:04:05.678Z"}``
  (millisecond precision, UTC) and are accepted back in that form or as a
  bare ISO-8601 string;
* a saved record nested inside another value travels as a pointer;
* objects exposing ``to_wire()`` (pointers, files, ACLs, :class:`AnyCodable`)
  encode themselves;
* pydantic models encode their non-``None`` fields under their aliases;
* sets encode as sorted arrays so compiled output is deterministic.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Mapping
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from parsely.kernel.exceptions import ParseError

SERVER_KEYS = frozenset({"objectId", "createdAt", "updatedAt"})

_ISO_FORMAT = "%Y-%m-%dT%H:%M:%S"


@runtime_checkable
class WireEncodable(Protocol):
    def to_wire(self) -> Any: ...


@runtime_checkable
class Referenceable(Protocol):
    """A record that can be referenced by a pointer once saved."""

    def to_pointer(self) -> Any: ...


def format_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return f"{value.strftime(_ISO_FORMAT)}.{value.microsecond // 1000:03d}Z"


def encode_date(value: datetime) -> dict[str, str]:
    return {"__type": "Date", "iso": format_date(value)}


def decode_date(value: Any) -> datetime:
    """Accept a ``Date`` envelope, an ISO-8601 string, or a datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, Mapping) and value.get("__type") == "Date":
        value = value.get("iso")
    if not isinstance(value, str):
        raise ParseError.other(f"Cannot decode a date from {value!r}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def encode_value(value: Any) -> Any:
    """Encode any supported value to plain JSON-compatible Python."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, WireEncodable):
        return value.to_wire()
    if isinstance(value, datetime):
        return encode_date(value)
    if isinstance(value, date):
        return encode_date(datetime(value.year, value.month, value.day, tzinfo=UTC))
    if isinstance(value, Enum):
        return encode_value(value.value)
    if isinstance(value, bytes):
        return {"__type": "Bytes", "base64": base64.b64encode(value).decode("ascii")}
    if isinstance(value, Referenceable):
        return encode_value(value.to_pointer())
    if isinstance(value, BaseModel):
        return encode_fields(value)
    if isinstance(value, Mapping):
        return {str(k): encode_value(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return [encode_value(v) for v in _sorted(value)]
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    raise ParseError.other(f"Cannot encode a value of type {type(value).__name__}")


def encode_fields(model: BaseModel, skip: frozenset[str] = frozenset()) -> dict[str, Any]:
    """Encode a model's non-``None`` fields under their wire aliases."""
    body: dict[str, Any] = {}
    for name, info in type(model).model_fields.items():
        if info.exclude:
            continue
        key = info.alias or name
        if key in skip:
            continue
        value = getattr(model, name, None)
        if value is None:
            continue
        body[key] = encode_value(value)
    return body


def normalize_incoming(value: Any) -> Any:
    """Rewrite ``Date`` envelopes into ISO strings so models can validate them."""
    if isinstance(value, Mapping):
        if value.get("__type") == "Date" and "iso" in value:
            return value["iso"]
        return {k: normalize_incoming(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_incoming(v) for v in value]
    return value


def dumps(value: Any) -> str:
    """Compact, key-sorted JSON text of an already-encoded value."""
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def dump_bytes(value: Any) -> bytes:
    return dumps(encode_value(value)).encode("utf-8")


def loads(data: bytes | str) -> Any:
    return json.loads(data)


def _sorted(values: Any) -> list[Any]:
    try:
        return sorted(values)
    except TypeError:
        return sorted(values, key=lambda v: dumps(encode_value(v)))
