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
"""Per-request header options and request header assembly.

Options from the call site, from the caller, and from a query are combined
into one :class:`Options` value before dispatch. It behaves as a set union
that remembers insertion order: headers are applied in that order, and for
:class:`UseCachePolicy` the *first* policy wins. Call sites that insert a
policy ahead of the caller's options therefore keep their own policy.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from parsely.api.endpoint import Method
from parsely.coding.coding import dumps, encode_value
from parsely.core.configuration import CachePolicy, ParseConfiguration
from parsely.core.runtime import ParseClient
from parsely.storage.parse_storage import StorageKeys
from parsely.version import SDK_VERSION

O = TypeVar("O", bound="Option")


class Option:
    """A named request option."""

    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        """Write this option's headers. Options that only steer dispatch write none."""


@dataclass(frozen=True)
class UsePrimaryKey(Option):
    """Send the primary (master) key."""

    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        if configuration.primary_key is not None:
            headers["X-Parse-Master-Key"] = configuration.primary_key


@dataclass(frozen=True)
class UseMaintenanceKey(Option):
    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        if configuration.maintenance_key is not None:
            headers["X-Parse-Maintenance-Key"] = configuration.maintenance_key


@dataclass(frozen=True)
class SessionToken(Option):
    token: str

    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        headers["X-Parse-Session-Token"] = self.token


@dataclass(frozen=True)
class InstallationId(Option):
    installation_id: str

    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        headers["X-Parse-Installation-Id"] = self.installation_id


@dataclass(frozen=True)
class MimeType(Option):
    mime_type: str

    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        headers["Content-Type"] = self.mime_type


@dataclass(frozen=True)
class RemoveMimeType(Option):
    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        headers.pop("Content-Type", None)


@dataclass(frozen=True)
class FileSize(Option):
    size: int

    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        headers["Content-Length"] = str(self.size)


@dataclass(frozen=True)
class Metadata(Option):
    """File metadata, sent as plain headers."""

    values: Mapping[str, str] = field(default_factory=dict)

    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        headers.update(self.values)


@dataclass(frozen=True)
class Tags(Option):
    """File tags, sent as plain headers."""

    values: Mapping[str, str] = field(default_factory=dict)

    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        headers.update(self.values)


@dataclass(frozen=True)
class Context(Option):
    """Arbitrary context forwarded to Cloud Code triggers."""

    value: Any

    def apply(self, headers: dict[str, str], configuration: ParseConfiguration) -> None:
        headers["X-Parse-Cloud-Context"] = dumps(encode_value(self.value))


@dataclass(frozen=True)
class UseCachePolicy(Option):
    policy: CachePolicy


@dataclass(frozen=True)
class ServerURL(Option):
    """Send this request to a different server than the configured one."""

    url: str


class Options:
    """Insertion-ordered set of :class:`Option` values."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Option] = ()) -> None:
        unique: list[Option] = []
        for item in items:
            if not isinstance(item, Option):
                raise TypeError(f"Expected an Option, got {type(item).__name__}")
            if item not in unique:
                unique.append(item)
        self._items: tuple[Option, ...] = tuple(unique)

    @classmethod
    def of(cls, options: Options | Iterable[Option] | None) -> Options:
        if options is None:
            return cls()
        if isinstance(options, Options):
            return options
        return cls(options)

    def with_defaults(self, *defaults: Option) -> Options:
        """*defaults* placed ahead of the existing options."""
        return Options((*defaults, *self._items))

    def union(self, other: Options | Iterable[Option] | None) -> Options:
        return Options((*self._items, *Options.of(other)))

    def __or__(self, other: Options | Iterable[Option]) -> Options:
        return self.union(other)

    def first(self, kind: type[O]) -> O | None:
        for item in self._items:
            if isinstance(item, kind):
                return item
        return None

    def cache_policy(self, default: CachePolicy) -> CachePolicy:
        chosen = self.first(UseCachePolicy)
        return chosen.policy if chosen is not None else default

    def server_url(self, default: str) -> str:
        chosen = self.first(ServerURL)
        return chosen.url.rstrip("/") if chosen is not None else default

    def __iter__(self) -> Iterator[Option]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Options):
            return NotImplemented
        return len(self) == len(other) and all(item in other for item in self._items)

    def __repr__(self) -> str:
        return f"Options({list(self._items)!r})"


async def build_headers(client: ParseClient, options: Options, method: Method) -> dict[str, str]:
    """Assemble the headers for one request."""
    configuration = client.configuration
    headers: dict[str, str] = {
        "X-Parse-Application-Id": configuration.application_id,
        "Content-Type": "application/json",
        "X-Parse-Client-Version": f"python{SDK_VERSION}",
    }
    if configuration.client_key is not None:
        headers["X-Parse-Client-Key"] = configuration.client_key

    user = await client.storage.get_quietly(StorageKeys.CURRENT_USER)
    if isinstance(user, dict) and user.get("sessionToken"):
        headers["X-Parse-Session-Token"] = user["sessionToken"]
    installation = await client.storage.get_quietly(StorageKeys.CURRENT_INSTALLATION)
    if isinstance(installation, dict) and installation.get("installationId"):
        headers["X-Parse-Installation-Id"] = installation["installationId"]

    headers.update(configuration.http_additional_headers)

    if method not in (Method.GET, Method.DELETE):
        headers["X-Parse-Request-Id"] = str(uuid.uuid4()).lower()

    for option in options:
        option.apply(headers, configuration)
    return headers
