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
"""Typed queries.

A :class:`Query` is an immutable description of a request against one
record class. Builder methods return new queries; nothing is sent until an
execution method runs::

    query = (
        GameScore.query(Constraint.gte("points", 10))
        .order(Order.desc("points"))
        .include("player")
        .limit(20)
    )
    scores = await query.find()
    best = await query.first()

Queries compile to GET requests whose parameters are JSON-encoded, or to a
POST carrying the same values as a body when ``using_post_for_query`` is
set. Both forms come from :meth:`Query.to_wire`.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Generic, TypeVar

import structlog

from parsely.api.command import NonParseBodyCommand
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Option, Options, UsePrimaryKey
from parsely.api.responses import AnyResultsMongoResponse, AnyResultsResponse, QueryResponse
from parsely.api.surface import surface
from parsely.coding.any_codable import AnyCodable
from parsely.coding.coding import dumps, encode_value
from parsely.core.configuration import ParseConfiguration
from parsely.core.runtime import ParseClient, resolve
from parsely.kernel.exceptions import ParseError, ParseErrorCode
from parsely.objects.batch import BATCH_LIMIT
from parsely.objects.parse_object import ParseObject
from parsely.query.constraints import Constraint, QueryConstraint, QueryWhere
from parsely.query.order import Order

T = TypeVar("T", bound=ParseObject)
V = TypeVar("V")

OptionsArg = Options | Iterable[Option] | None

DEFAULT_LIMIT = 100
INCLUDE_ALL_KEY = "*"

logger = structlog.get_logger(__name__)

_OBJECT_NOT_FOUND = "Object not found on the server."


def _sorted_keys(values: frozenset[str] | None) -> list[str] | None:
    return sorted(values) if values is not None else None


def _union(current: frozenset[str] | None, keys: Iterable[str]) -> frozenset[str]:
    return (current or frozenset()) | frozenset(keys)


class Query(Generic[T]):
    """An immutable query against the records of ``record_type``."""

    def __init__(self, record_type: type[T], *constraints: QueryConstraint | QueryWhere) -> None:
        self._record_type = record_type
        self._where = QueryWhere().add(*constraints)
        self._limit = DEFAULT_LIMIT
        self._skip = 0
        self._keys: frozenset[str] | None = None
        self._include: frozenset[str] | None = None
        self._exclude_keys: frozenset[str] | None = None
        self._fields: frozenset[str] | None = None
        self._watch: frozenset[str] | None = None
        self._order: tuple[Order, ...] | None = None
        self._is_count: bool | None = None
        self._explain: bool | None = None
        self._hint: AnyCodable | None = None
        self._read_preference: str | None = None
        self._include_read_preference: str | None = None
        self._subquery_read_preference: str | None = None
        self._distinct: str | None = None
        self._pipeline: tuple[AnyCodable, ...] | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def record_type(self) -> type[T]:
        return self._record_type

    @property
    def class_name(self) -> str:
        return self._record_type.class_name

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint.for_class(self.class_name)

    @property
    def constraints(self) -> QueryWhere:
        return self._where

    @property
    def limit_value(self) -> int:
        return self._limit

    @property
    def skip_value(self) -> int:
        return self._skip

    @property
    def order_value(self) -> tuple[Order, ...] | None:
        return self._order

    @property
    def fields_value(self) -> frozenset[str] | None:
        """Keys a live subscription receives; not sent with regular queries."""
        return self._fields

    @property
    def watch_value(self) -> frozenset[str] | None:
        return self._watch

    def _copy(self, **changes: Any) -> Query[T]:
        clone = copy.copy(self)
        for name, value in changes.items():
            setattr(clone, f"_{name}", value)
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return self._record_type is other._record_type and self.to_wire() == other.to_wire()

    def __hash__(self) -> int:
        return hash((self.class_name, dumps(self.to_wire())))

    def __repr__(self) -> str:
        return f"Query({self.class_name}, {dumps(self.to_wire())})"

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def where(self, *constraints: QueryConstraint | QueryWhere) -> Query[T]:
        return self._copy(where=self._where.add(*constraints))

    def limit(self, value: int) -> Query[T]:
        """At most *value* results; ``0`` or less makes every execution method return nothing."""
        return self._copy(limit=value)

    def skip(self, value: int) -> Query[T]:
        return self._copy(skip=value)

    def include(self, *keys: str) -> Query[T]:
        """Also fetch the records referenced by pointers at *keys*; repeated calls accumulate."""
        return self._copy(include=_union(self._include, keys))

    def include_all(self) -> Query[T]:
        return self._copy(include=_union(self._include, [INCLUDE_ALL_KEY]))

    def exclude(self, *keys: str) -> Query[T]:
        return self._copy(exclude_keys=_union(self._exclude_keys, keys))

    def select(self, *keys: str) -> Query[T]:
        """Return only *keys* of each record; repeated calls accumulate."""
        return self._copy(keys=_union(self._keys, keys))

    def fields(self, *keys: str) -> Query[T]:
        return self._copy(fields=_union(self._fields, keys))

    def watch(self, *keys: str) -> Query[T]:
        return self._copy(watch=_union(self._watch, keys))

    def order(self, *orders: Order | str) -> Query[T]:
        """Replace the sort order; strings use the ``key`` / ``-key`` form."""
        parsed = tuple(item if isinstance(item, Order) else Order.parse(item) for item in orders)
        return self._copy(order=parsed or None)

    def hint(self, value: Any) -> Query[T]:
        """Force the server to use an index, given by name or by specification."""
        return self._copy(hint=AnyCodable.wrap(encode_value(value)))

    def read_preference(
        self,
        read_preference: str | None,
        include_read_preference: str | None = None,
        subquery_read_preference: str | None = None,
    ) -> Query[T]:
        return self._copy(
            read_preference=read_preference,
            include_read_preference=include_read_preference,
            subquery_read_preference=subquery_read_preference,
        )

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def to_wire(self) -> dict[str, Any]:
        """Every query facet that is set, keyed by its wire name."""
        body: dict[str, Any] = {
            "where": self._where.to_wire(),
            "limit": self._limit,
            "skip": self._skip,
            "keys": _sorted_keys(self._keys),
            "include": _sorted_keys(self._include),
            "order": [order.to_wire() for order in self._order] if self._order is not None else None,
            "count": self._is_count,
            "explain": self._explain,
            "hint": self._hint.to_wire() if self._hint is not None else None,
            "excludeKeys": _sorted_keys(self._exclude_keys),
            "readPreference": self._read_preference,
            "includeReadPreference": self._include_read_preference,
            "subqueryReadPreference": self._subquery_read_preference,
            "distinct": self._distinct,
            "pipeline": [stage.to_wire() for stage in self._pipeline] if self._pipeline is not None else None,
        }
        return {key: value for key, value in body.items() if value is not None}

    def parameters(self) -> dict[str, str]:
        """The GET form: each facet as JSON text."""
        return {key: dumps(value) for key, value in self.to_wire().items()}

    def _aggregate_wire(self) -> dict[str, Any]:
        body = {
            "pipeline": [stage.to_wire() for stage in self._pipeline] if self._pipeline is not None else None,
            "hint": self._hint.to_wire() if self._hint is not None else None,
            "explain": self._explain,
            "includeReadPreference": self._include_read_preference,
        }
        return {key: value for key, value in body.items() if value is not None}

    def _distinct_wire(self) -> dict[str, Any]:
        body = {
            "hint": self._hint.to_wire() if self._hint is not None else None,
            "explain": self._explain,
            "includeReadPreference": self._include_read_preference,
            "distinct": self._distinct,
        }
        return {key: value for key, value in body.items() if value is not None}

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _command(
        self,
        configuration: ParseConfiguration,
        mapper: Callable[[bytes], V],
        *,
        path: Endpoint | None = None,
        wire: Mapping[str, Any] | None = None,
    ) -> NonParseBodyCommand[V]:
        path = path or self.endpoint
        wire = self.to_wire() if wire is None else wire
        if configuration.using_post_for_query:
            return NonParseBodyCommand(method=Method.POST, path=path, body={**wire, "_method": "GET"}, mapper=mapper)
        params = {key: dumps(value) for key, value in wire.items()}
        return NonParseBodyCommand(method=Method.GET, path=path, params=params, mapper=mapper)

    def _results(self) -> Callable[[bytes], list[T]]:
        adapter = QueryResponse[self._record_type]
        return lambda data: adapter.model_validate_json(data).results

    def find_command(self, configuration: ParseConfiguration) -> NonParseBodyCommand[list[T]]:
        return self._command(configuration, self._results())

    def first_command(self, configuration: ParseConfiguration) -> NonParseBodyCommand[T]:
        query = self._copy(limit=1)
        results = query._results()

        def first(data: bytes) -> T:
            found = results(data)
            if not found:
                raise ParseError(ParseErrorCode.OBJECT_NOT_FOUND, _OBJECT_NOT_FOUND)
            return found[0]

        return query._command(configuration, first)

    def count_command(self, configuration: ParseConfiguration) -> NonParseBodyCommand[int]:
        query = self._copy(limit=0, is_count=True)
        response = QueryResponse[self._record_type]
        return query._command(configuration, lambda data: response.model_validate_json(data).count or 0)

    def with_count_command(self, configuration: ParseConfiguration) -> NonParseBodyCommand[tuple[list[T], int]]:
        query = self._copy(is_count=True)
        response = QueryResponse[self._record_type]

        def both(data: bytes) -> tuple[list[T], int]:
            decoded = response.model_validate_json(data)
            return decoded.results, decoded.count or 0

        return query._command(configuration, both)

    def _with_pipeline(self, stages: Iterable[Mapping[str, Any]]) -> Query[T]:
        """The aggregation query: ``where`` becomes a leading ``match`` stage unless empty."""
        encoded = [AnyCodable.wrap(encode_value(dict(stage))) for stage in stages]
        where = self._where.to_json()
        if where != "{}":
            encoded.insert(0, AnyCodable.wrap({"match": where}))
        return self._copy(where=QueryWhere(), pipeline=tuple(encoded))

    def aggregate_command(
        self, configuration: ParseConfiguration, pipeline: Iterable[Mapping[str, Any]]
    ) -> NonParseBodyCommand[list[T]]:
        query = self._with_pipeline(pipeline)
        return query._command(
            configuration,
            self._results(),
            path=Endpoint.aggregate(self.class_name),
            wire=query._aggregate_wire(),
        )

    def distinct_command(self, configuration: ParseConfiguration, key: str) -> NonParseBodyCommand[list[Any]]:
        query = self._copy(distinct=key)
        return query._command(
            configuration,
            lambda data: AnyResultsResponse.model_validate_json(data).results,
            path=Endpoint.aggregate(self.class_name),
            wire=query._distinct_wire(),
        )

    # -- explain ---------------------------------------------------------

    @staticmethod
    def _explain_results(using_mongodb: bool) -> Callable[[bytes], list[Any]]:
        if using_mongodb:
            return lambda data: [AnyResultsMongoResponse.model_validate_json(data).results]
        return lambda data: AnyResultsResponse.model_validate_json(data).results

    def find_explain_command(
        self, configuration: ParseConfiguration, using_mongodb: bool = False
    ) -> NonParseBodyCommand[list[Any]]:
        return self._copy(explain=True)._command(configuration, self._explain_results(using_mongodb))

    def first_explain_command(
        self, configuration: ParseConfiguration, using_mongodb: bool = False
    ) -> NonParseBodyCommand[Any]:
        query = self._copy(limit=1, explain=True)

        def first(data: bytes) -> Any:
            if using_mongodb:
                try:
                    return AnyResultsMongoResponse.model_validate_json(data).results
                except ValueError as exc:
                    raise ParseError(ParseErrorCode.OBJECT_NOT_FOUND, f"{_OBJECT_NOT_FOUND} Error: {exc}") from exc
            found = AnyResultsResponse.model_validate_json(data).results
            if not found:
                raise ParseError(ParseErrorCode.OBJECT_NOT_FOUND, _OBJECT_NOT_FOUND)
            return found[0]

        return query._command(configuration, first)

    def count_explain_command(
        self, configuration: ParseConfiguration, using_mongodb: bool = False
    ) -> NonParseBodyCommand[list[Any]]:
        query = self._copy(limit=0, is_count=True, explain=True)
        return query._command(configuration, self._explain_results(using_mongodb))

    def with_count_explain_command(
        self, configuration: ParseConfiguration, using_mongodb: bool = False
    ) -> NonParseBodyCommand[list[Any]]:
        query = self._copy(is_count=True, explain=True)
        return query._command(configuration, self._explain_results(using_mongodb))

    def aggregate_explain_command(
        self,
        configuration: ParseConfiguration,
        pipeline: Iterable[Mapping[str, Any]],
        using_mongodb: bool = False,
    ) -> NonParseBodyCommand[list[Any]]:
        query = self._with_pipeline(pipeline)._copy(explain=True)
        return query._command(
            configuration,
            self._explain_results(using_mongodb),
            path=Endpoint.aggregate(self.class_name),
            wire=query._aggregate_wire(),
        )

    def distinct_explain_command(
        self, configuration: ParseConfiguration, key: str, using_mongodb: bool = False
    ) -> NonParseBodyCommand[list[Any]]:
        query = self._copy(distinct=key, explain=True)
        return query._command(
            configuration,
            self._explain_results(using_mongodb),
            path=Endpoint.aggregate(self.class_name),
            wire=query._distinct_wire(),
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @surface
    async def find(self, options: OptionsArg = None, client: ParseClient | None = None) -> list[T]:
        if self._limit <= 0:
            return []
        client = resolve(client)
        return await self.find_command(client.configuration).execute(client, Options.of(options))

    @surface
    async def first(self, options: OptionsArg = None, client: ParseClient | None = None) -> T:
        """The first matching record; fails with ``OBJECT_NOT_FOUND`` when there is none."""
        if self._limit <= 0:
            raise ParseError(ParseErrorCode.OBJECT_NOT_FOUND, _OBJECT_NOT_FOUND)
        client = resolve(client)
        return await self.first_command(client.configuration).execute(client, Options.of(options))

    @surface
    async def count(self, options: OptionsArg = None, client: ParseClient | None = None) -> int:
        if self._limit <= 0:
            return 0
        client = resolve(client)
        return await self.count_command(client.configuration).execute(client, Options.of(options))

    @surface
    async def with_count(
        self, options: OptionsArg = None, client: ParseClient | None = None
    ) -> tuple[list[T], int]:
        """Matching records and the total number of matches, in one request."""
        if self._limit <= 0:
            return [], 0
        client = resolve(client)
        return await self.with_count_command(client.configuration).execute(client, Options.of(options))

    @surface
    async def find_all(
        self,
        batch_limit: int | None = None,
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> list[T]:
        """Every matching record, fetched page by page in ascending ``objectId`` order.

        Pages are requested one after another; each adds ``objectId > <last
        id>`` to the original constraints. The query must not set an order,
        skip, or a limit other than the default.
        """
        if self._limit <= 0:
            return []
        if self._order is not None or self._skip > 0 or self._limit != DEFAULT_LIMIT:
            raise ParseError.other("Cannot iterate on a query with sort, skip, or limit.")
        if batch_limit is not None and batch_limit <= 0:
            raise ParseError.other(f"batch_limit must be positive, got {batch_limit}")
        client = resolve(client)
        options = Options.of(options)
        page_size = batch_limit or BATCH_LIMIT
        base = self.order(Order.asc("objectId"))._copy(limit=page_size)
        query = base
        results: list[T] = []
        page = 0
        while True:
            current = await query.find_command(client.configuration).execute(client, options)
            results.extend(current)
            page += 1
            logger.debug("find_all_page", class_name=self.class_name, page=page, rows=len(current))
            if len(current) < page_size:
                return results
            last_id = results[-1].object_id
            if last_id is None:
                raise ParseError.other("Last object should have an objectId.")
            query = base.where(Constraint.gt("objectId", last_id))

    @surface
    async def aggregate(
        self,
        pipeline: Iterable[Mapping[str, Any]],
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> list[T]:
        """Run an aggregation pipeline; requires the primary key, which is added for you."""
        if self._limit <= 0:
            return []
        client = resolve(client)
        command = self.aggregate_command(client.configuration, pipeline)
        return await command.execute(client, Options.of(options).union([UsePrimaryKey()]))

    @surface
    async def distinct(self, key: str, options: OptionsArg = None, client: ParseClient | None = None) -> list[Any]:
        if self._limit <= 0:
            return []
        client = resolve(client)
        command = self.distinct_command(client.configuration, key)
        return await command.execute(client, Options.of(options).union([UsePrimaryKey()]))

    @surface
    async def find_explain(
        self, using_mongodb: bool = False, options: OptionsArg = None, client: ParseClient | None = None
    ) -> list[Any]:
        """Query plan for :meth:`find`. Set *using_mongodb* for a MongoDB backend, whose plan is unwrapped."""
        if self._limit <= 0:
            return []
        client = resolve(client)
        return await self.find_explain_command(client.configuration, using_mongodb).execute(
            client, Options.of(options)
        )

    @surface
    async def first_explain(
        self, using_mongodb: bool = False, options: OptionsArg = None, client: ParseClient | None = None
    ) -> Any:
        if self._limit <= 0:
            raise ParseError(ParseErrorCode.OBJECT_NOT_FOUND, _OBJECT_NOT_FOUND)
        client = resolve(client)
        return await self.first_explain_command(client.configuration, using_mongodb).execute(
            client, Options.of(options)
        )

    @surface
    async def count_explain(
        self, using_mongodb: bool = False, options: OptionsArg = None, client: ParseClient | None = None
    ) -> list[Any]:
        if self._limit <= 0:
            return []
        client = resolve(client)
        return await self.count_explain_command(client.configuration, using_mongodb).execute(
            client, Options.of(options)
        )

    @surface
    async def with_count_explain(
        self, using_mongodb: bool = False, options: OptionsArg = None, client: ParseClient | None = None
    ) -> list[Any]:
        if self._limit <= 0:
            return []
        client = resolve(client)
        return await self.with_count_explain_command(client.configuration, using_mongodb).execute(
            client, Options.of(options)
        )

    @surface
    async def aggregate_explain(
        self,
        pipeline: Iterable[Mapping[str, Any]],
        using_mongodb: bool = False,
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> list[Any]:
        if self._limit <= 0:
            return []
        client = resolve(client)
        command = self.aggregate_explain_command(client.configuration, pipeline, using_mongodb)
        return await command.execute(client, Options.of(options).union([UsePrimaryKey()]))

    @surface
    async def distinct_explain(
        self,
        key: str,
        using_mongodb: bool = False,
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> list[Any]:
        if self._limit <= 0:
            return []
        client = resolve(client)
        command = self.distinct_explain_command(client.configuration, key, using_mongodb)
        return await command.execute(client, Options.of(options).union([UsePrimaryKey()]))
