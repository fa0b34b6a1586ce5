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
"""Query constraints and the ``where`` tree they build.

Provides :class:`Constraint` for individual field predicates and
:class:`QueryWhere` for the accumulated constraint tree that is sent as
the ``where`` parameter.

Example::

    where = Constraint.gte("points", 10) & Constraint.lt("points", 100)
    ranked = Constraint.exists("rank") | Constraint.eq("invited", True)

Constraints on the same key are merged into one object; a later constraint
with the same comparator replaces the earlier one.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol

from parsely.coding.coding import dumps, encode_value
from parsely.objects.pointer import Pointer


class Subquery(Protocol):
    """What a nested query contributes to ``$inQuery``/``$select``."""

    class_name: str

    @property
    def constraints(self) -> QueryWhere: ...


@dataclass(frozen=True)
class QueryConstraint:
    """One predicate: ``{key: {comparator: value}}``.

    A ``None`` comparator places ``value`` directly under ``key``; compound
    constraints (``$or``, ``$and``, ``$nor``, ``$relatedTo``) use that form.
    """

    key: str
    value: Any
    comparator: str | None = None

    def __and__(self, other: QueryConstraint | QueryWhere) -> QueryWhere:
        return QueryWhere.of(self) & other

    def __or__(self, other: QueryConstraint | QueryWhere) -> QueryWhere:
        return QueryWhere.of(Constraint.or_(QueryWhere.of(self), _as_where(other)))

    def __invert__(self) -> QueryWhere:
        return QueryWhere.of(Constraint.nor_(QueryWhere.of(self)))

    def encoded_value(self) -> Any:
        if isinstance(self.value, QueryWhere):
            return self.value.to_wire()
        if isinstance(self.value, (list, tuple)) and self.value and isinstance(self.value[0], QueryWhere):
            return [where.to_wire() for where in self.value]
        return encode_value(self.value)


class QueryWhere:
    """Ordered mapping of key to its constraints; immutable."""

    __slots__ = ("_constraints",)

    def __init__(self, constraints: Iterable[QueryConstraint] = ()) -> None:
        grouped: dict[str, tuple[QueryConstraint, ...]] = {}
        for constraint in constraints:
            grouped[constraint.key] = (*grouped.get(constraint.key, ()), constraint)
        self._constraints = grouped

    @classmethod
    def of(cls, *constraints: QueryConstraint) -> QueryWhere:
        return cls(constraints)

    def add(self, *constraints: QueryConstraint | QueryWhere) -> QueryWhere:
        flat: list[QueryConstraint] = list(self)
        for item in constraints:
            flat.extend(_as_where(item))
        return QueryWhere(flat)

    def __iter__(self) -> Iterator[QueryConstraint]:
        for constraints in self._constraints.values():
            yield from constraints

    def __len__(self) -> int:
        return sum(len(constraints) for constraints in self._constraints.values())

    def __bool__(self) -> bool:
        return bool(self._constraints)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryWhere):
            return NotImplemented
        return self.to_wire() == other.to_wire()

    def __hash__(self) -> int:
        return hash(self.to_json())

    def __and__(self, other: QueryConstraint | QueryWhere) -> QueryWhere:
        return self.add(*_as_where(other))

    def __or__(self, other: QueryConstraint | QueryWhere) -> QueryWhere:
        return QueryWhere.of(Constraint.or_(self, _as_where(other)))

    def __invert__(self) -> QueryWhere:
        return QueryWhere.of(Constraint.nor_(self))

    def to_wire(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        for key, constraints in self._constraints.items():
            merged: dict[str, Any] = {}
            for constraint in constraints:
                if constraint.comparator is None:
                    body[key] = constraint.encoded_value()
                else:
                    merged[constraint.comparator] = constraint.encoded_value()
                    body[key] = merged
        return body

    def to_json(self) -> str:
        return dumps(self.to_wire())

    def __repr__(self) -> str:
        return f"QueryWhere({self.to_json()})"


def _as_where(value: QueryConstraint | QueryWhere) -> QueryWhere:
    if isinstance(value, QueryWhere):
        return value
    if isinstance(value, QueryConstraint):
        return QueryWhere.of(value)
    raise TypeError(f"Cannot combine a query constraint with {type(value).__name__}")


def _quote(text: str) -> str:
    """Literal regex text in the ``\\Q...\\E`` form the server understands."""
    return "\\Q" + text.replace("\\E", "\\E\\\\E\\Q") + "\\E"


def _subquery(query: Subquery) -> dict[str, Any]:
    return {"where": query.constraints.to_wire(), "className": query.class_name}


class Constraint:
    """Factories for every supported predicate.

    Each static method returns a :class:`QueryConstraint`; combine them
    with ``&`` (AND), ``|`` (OR) and ``~`` (NOR).
    """

    @staticmethod
    def eq(key: str, value: Any) -> QueryConstraint:
        """Equal to."""
        return QueryConstraint(key, value, "$eq")

    @staticmethod
    def ne(key: str, value: Any) -> QueryConstraint:
        """Not equal to."""
        return QueryConstraint(key, value, "$ne")

    @staticmethod
    def gt(key: str, value: Any) -> QueryConstraint:
        return QueryConstraint(key, value, "$gt")

    @staticmethod
    def gte(key: str, value: Any) -> QueryConstraint:
        return QueryConstraint(key, value, "$gte")

    @staticmethod
    def lt(key: str, value: Any) -> QueryConstraint:
        return QueryConstraint(key, value, "$lt")

    @staticmethod
    def lte(key: str, value: Any) -> QueryConstraint:
        return QueryConstraint(key, value, "$lte")

    @staticmethod
    def contained_in(key: str, values: Iterable[Any]) -> QueryConstraint:
        """Value is one of *values*."""
        return QueryConstraint(key, list(values), "$in")

    @staticmethod
    def not_contained_in(key: str, values: Iterable[Any]) -> QueryConstraint:
        return QueryConstraint(key, list(values), "$nin")

    @staticmethod
    def contains_all(key: str, values: Iterable[Any]) -> QueryConstraint:
        """Array field contains every one of *values*."""
        return QueryConstraint(key, list(values), "$all")

    @staticmethod
    def contained_by(key: str, values: Iterable[Any]) -> QueryConstraint:
        """Every element of the array field is one of *values*."""
        return QueryConstraint(key, list(values), "$containedBy")

    @staticmethod
    def exists(key: str) -> QueryConstraint:
        return QueryConstraint(key, True, "$exists")

    @staticmethod
    def does_not_exist(key: str) -> QueryConstraint:
        return QueryConstraint(key, False, "$exists")

    @staticmethod
    def matches_regex(key: str, pattern: str, modifiers: str | None = None) -> QueryWhere:
        """Regex match; *modifiers* is any of ``i``, ``m``, ``x``, ``s``."""
        where = QueryWhere.of(QueryConstraint(key, pattern, "$regex"))
        if modifiers:
            where = where.add(QueryConstraint(key, modifiers, "$options"))
        return where

    @staticmethod
    def contains_string(key: str, substring: str, case_insensitive: bool = False) -> QueryWhere:
        return Constraint.matches_regex(key, _quote(substring), "i" if case_insensitive else None)

    @staticmethod
    def has_prefix(key: str, prefix: str) -> QueryConstraint:
        return QueryConstraint(key, f"^{_quote(prefix)}", "$regex")

    @staticmethod
    def has_suffix(key: str, suffix: str) -> QueryConstraint:
        return QueryConstraint(key, f"{_quote(suffix)}$", "$regex")

    @staticmethod
    def or_(*wheres: QueryWhere) -> QueryConstraint:
        """Any of *wheres* holds."""
        return QueryConstraint("$or", list(wheres))

    @staticmethod
    def and_(*wheres: QueryWhere) -> QueryConstraint:
        return QueryConstraint("$and", list(wheres))

    @staticmethod
    def nor_(*wheres: QueryWhere) -> QueryConstraint:
        """None of *wheres* holds."""
        return QueryConstraint("$nor", list(wheres))

    @staticmethod
    def in_query(key: str, query: Subquery) -> QueryConstraint:
        """Pointer field references a record matched by *query*."""
        return QueryConstraint(key, _subquery(query), "$inQuery")

    @staticmethod
    def not_in_query(key: str, query: Subquery) -> QueryConstraint:
        return QueryConstraint(key, _subquery(query), "$notInQuery")

    @staticmethod
    def matches_key_in_query(key: str, query_key: str, query: Subquery) -> QueryConstraint:
        """Value of *key* equals the value of *query_key* in some record matched by *query*."""
        return QueryConstraint(key, {"query": _subquery(query), "key": query_key}, "$select")

    @staticmethod
    def does_not_match_key_in_query(key: str, query_key: str, query: Subquery) -> QueryConstraint:
        return QueryConstraint(key, {"query": _subquery(query), "key": query_key}, "$dontSelect")

    @staticmethod
    def related_to(key: str, parent: Any) -> QueryConstraint:
        """Records in the relation *key* of the saved record *parent*."""
        pointer = parent if isinstance(parent, Pointer) else Pointer.to(parent)
        return QueryConstraint("$relatedTo", {"object": pointer.to_wire(), "key": key})
