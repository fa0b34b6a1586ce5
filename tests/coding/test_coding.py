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
"""Tests for the wire encoding helpers and AnyCodable."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from parsely.coding.any_codable import AnyCodable, AnyCodableKind
from parsely.coding.coding import decode_date, dumps, encode_value, normalize_incoming
from parsely.kernel.exceptions import ParseError


class TestDates:
    def test_encodes_in_utc_with_milliseconds(self):
        value = datetime(2026, 1, 2, 5, 4, 5, 678901, tzinfo=timezone(timedelta(hours=2)))
        assert encode_value(value) == {"__type": "Date", "iso": "2026-01-02T03:04:05.678Z"}

    def test_naive_datetimes_are_utc(self):
        assert encode_value(datetime(2026, 1, 2))["iso"] == "2026-01-02T00:00:00.000Z"

    def test_dates(self):
        assert encode_value(date(2026, 1, 2))["iso"] == "2026-01-02T00:00:00.000Z"

    def test_decode_accepts_envelope_and_string(self):
        expected = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=UTC)
        assert decode_date({"__type": "Date", "iso": "2026-01-02T03:04:05.678Z"}) == expected
        assert decode_date("2026-01-02T03:04:05.678Z") == expected

    def test_decode_rejects_other_values(self):
        with pytest.raises(ParseError):
            decode_date(42)

    def test_normalize_incoming_unwraps_nested_dates(self):
        data = {"a": [{"__type": "Date", "iso": "2026-01-01T00:00:00.000Z"}], "b": 1}
        assert normalize_incoming(data) == {"a": ["2026-01-01T00:00:00.000Z"], "b": 1}


class TestEncodeValue:
    def test_containers(self):
        assert encode_value({"tags": ("a", "b"), "seen": {"z", "y"}}) == {"tags": ["a", "b"], "seen": ["y", "z"]}

    def test_bytes(self):
        assert encode_value(b"hi") == {"__type": "Bytes", "base64": "aGk="}

    def test_unsupported(self):
        with pytest.raises(ParseError):
            encode_value(object())

    def test_dumps_is_compact_and_sorted(self):
        assert dumps({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'


class TestAnyCodable:
    def test_wrap_distinguishes_bool_from_number(self):
        assert AnyCodable.wrap(True).kind is AnyCodableKind.BOOL
        assert AnyCodable.wrap(1).kind is AnyCodableKind.NUMBER

    def test_nested_round_trip(self):
        value = {"name": "x", "scores": [1, 2.5, None], "flags": {"on": True}}
        wrapped = AnyCodable.wrap(value)
        assert wrapped.to_wire() == value
        assert wrapped["scores"][1] == AnyCodable(AnyCodableKind.NUMBER, 2.5)

    def test_equal_values_hash_equally(self):
        assert hash(AnyCodable.wrap({"a": [1]})) == hash(AnyCodable.wrap({"a": [1]}))

    def test_scalars_are_not_subscriptable(self):
        with pytest.raises(TypeError):
            AnyCodable.wrap("x")["a"]

    def test_unsupported_value(self):
        with pytest.raises(TypeError):
            AnyCodable.wrap(object())
