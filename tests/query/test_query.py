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
"""Tests for Query: encoding, commands, and execution."""

import json

import pytest

from parsely.core.configuration import ParseConfiguration
from parsely.core.runtime import ParseClient, initialize, reset
from parsely.kernel.exceptions import ParseError, ParseErrorCode
from parsely.objects.parse_object import ParseObject
from parsely.query import Constraint, Order
from parsely.storage.memory import InMemoryPrimitiveStore


class GameScore(ParseObject):
    points: int | None = None
    player_name: str | None = None


def page(*ids):
    return {"results": [{"objectId": object_id, "points": 1} for object_id in ids]}


def where_of(request):
    return json.loads(request.params["where"])


class TestBuilders:
    def test_builders_return_new_queries(self):
        query = GameScore.query()
        limited = query.limit(5)
        assert query.limit_value == 100
        assert limited.limit_value == 5

    def test_include_and_select_accumulate(self):
        query = GameScore.query().include("player").include("team").select("points").select("points")
        wire = query.to_wire()
        assert wire["include"] == ["player", "team"]
        assert wire["keys"] == ["points"]

    def test_include_all(self):
        assert GameScore.query().include_all().to_wire()["include"] == ["*"]

    def test_order_replaces_previous_order(self):
        query = GameScore.query().order(Order.desc("points")).order("playerName", "-createdAt")
        assert query.to_wire()["order"] == ["playerName", "-createdAt"]

    def test_minimal_wire(self):
        assert GameScore.query().to_wire() == {"where": {}, "limit": 100, "skip": 0}

    def test_fields_and_watch_are_not_sent(self):
        query = GameScore.query().fields("points").watch("points")
        assert query.fields_value == frozenset({"points"})
        assert "fields" not in query.to_wire()
        assert "watch" not in query.to_wire()

    def test_equal_queries(self):
        first = GameScore.query(Constraint.eq("points", 1)).limit(3)
        second = GameScore.query().where(Constraint.eq("points", 1)).limit(3)
        assert first == second
        assert hash(first) == hash(second)

    def test_parameters_are_json_encoded(self):
        params = GameScore.query(Constraint.gt("points", 2)).order(Order.desc("points")).parameters()
        assert params == {
            "where": '{"points":{"$gt":2}}',
            "limit": "100",
            "skip": "0",
            "order": '["-points"]',
        }


class TestCommands:
    def test_get_form(self, configuration):
        command = GameScore.query(Constraint.eq("points", 3)).find_command(configuration)
        assert command.method.value == "GET"
        assert str(command.path) == "/classes/GameScore"
        assert command.params["where"] == '{"points":{"$eq":3}}'
        assert command.body is None

    def test_post_form_carries_same_values(self, configuration):
        post_configuration = configuration.model_copy(update={"using_post_for_query": True})
        query = GameScore.query(Constraint.eq("points", 3)).skip(2)
        command = query.find_command(post_configuration)
        assert command.method.value == "POST"
        assert command.params is None
        assert command.body == {**query.to_wire(), "_method": "GET"}
        get = query.find_command(configuration)
        assert {key: json.loads(value) for key, value in get.params.items()} == query.to_wire()

    def test_count_command(self, configuration):
        command = GameScore.query().count_command(configuration)
        assert command.params["limit"] == "0"
        assert command.params["count"] == "true"

    def test_first_command_limits_to_one(self, configuration):
        command = GameScore.query().limit(20).first_command(configuration)
        assert command.params["limit"] == "1"

    def test_aggregate_adds_match_stage(self, configuration):
        query = GameScore.query(Constraint.eq("points", 3))
        command = query.aggregate_command(configuration, [{"group": {"objectId": "$points"}}])
        assert str(command.path) == "/aggregate/GameScore"
        assert json.loads(command.params["pipeline"]) == [
            {"match": '{"points":{"$eq":3}}'},
            {"group": {"objectId": "$points"}},
        ]
        assert "where" not in command.params

    def test_aggregate_without_constraints_has_no_match_stage(self, configuration):
        command = GameScore.query().aggregate_command(configuration, [{"group": {"objectId": None}}])
        assert json.loads(command.params["pipeline"]) == [{"group": {"objectId": None}}]

    def test_distinct_command(self, configuration):
        command = GameScore.query().distinct_command(configuration, "points")
        assert str(command.path) == "/aggregate/GameScore"
        assert command.params == {"distinct": '"points"'}


class TestNonPositiveLimit:
    @pytest.mark.asyncio
    async def test_find_returns_empty_without_request(self, client, transport):
        assert await GameScore.query().limit(0).find() == []
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_first_fails_without_request(self, client, transport):
        with pytest.raises(ParseError) as info:
            await GameScore.query().limit(-1).first()
        assert info.value.code == ParseErrorCode.OBJECT_NOT_FOUND
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_other_methods_short_circuit(self, client, transport):
        query = GameScore.query().limit(0)
        assert await query.count() == 0
        assert await query.with_count() == ([], 0)
        assert await query.find_all() == []
        assert await query.aggregate([{"group": {"objectId": None}}]) == []
        assert await query.distinct("points") == []
        assert await query.find_explain() == []
        assert transport.requests == []


class TestExecution:
    @pytest.mark.asyncio
    async def test_find_decodes_results(self, client, transport):
        transport.reply({"results": [{"objectId": "a", "points": 3, "playerName": "Ana"}]})
        found = await GameScore.query(Constraint.eq("points", 3)).find()
        assert len(found) == 1
        assert found[0].object_id == "a"
        assert found[0].player_name == "Ana"

    @pytest.mark.asyncio
    async def test_first_raises_when_nothing_matches(self, client, transport):
        transport.reply({"results": []})
        with pytest.raises(ParseError) as info:
            await GameScore.query().first()
        assert info.value.code == ParseErrorCode.OBJECT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_count(self, client, transport):
        transport.reply({"results": [], "count": 42})
        assert await GameScore.query().count() == 42

    @pytest.mark.asyncio
    async def test_with_count(self, client, transport):
        transport.reply({"results": [{"objectId": "a"}], "count": 7})
        results, count = await GameScore.query().with_count()
        assert [record.object_id for record in results] == ["a"]
        assert count == 7

    @pytest.mark.asyncio
    async def test_server_error_envelope(self, client, transport):
        transport.reply({"code": 101, "error": "Object not found."}, status=404)
        with pytest.raises(ParseError) as info:
            await GameScore.query().find()
        assert info.value.code == ParseErrorCode.OBJECT_NOT_FOUND
        assert info.value.message == "Object not found."

    @pytest.mark.asyncio
    async def test_non_success_reply_without_envelope_fails(self, client, transport):
        transport.reply({"results": []}, status=502)
        with pytest.raises(ParseError) as info:
            await GameScore.query().count()
        assert info.value.code == ParseErrorCode.OTHER_CAUSE
        assert info.value.context["status"] == 502

    @pytest.mark.asyncio
    async def test_undecodable_body_is_other_cause(self, client, transport):
        transport.reply(b"not json")
        with pytest.raises(ParseError) as info:
            await GameScore.query().find()
        assert info.value.code == ParseErrorCode.OTHER_CAUSE

    @pytest.mark.asyncio
    async def test_aggregate_sends_primary_key(self, client, transport):
        transport.reply({"results": []})
        await GameScore.query().aggregate([{"group": {"objectId": None}}])
        assert transport.last.headers["X-Parse-Master-Key"] == "primary-key"

    @pytest.mark.asyncio
    async def test_distinct_returns_plain_values(self, client, transport):
        transport.reply({"results": [1, 2, 3]})
        assert await GameScore.query().distinct("points") == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_explain_with_mongodb_wraps_plan(self, client, transport):
        transport.reply({"results": {"queryPlanner": {}}})
        assert await GameScore.query().find_explain(using_mongodb=True) == [{"queryPlanner": {}}]

    @pytest.mark.asyncio
    async def test_explicit_client_overrides_default(self, configuration, transport):
        other = initialize(configuration, transport=transport)
        reset()
        transport.reply({"results": []})
        assert await GameScore.query().find(client=other) == []
        assert len(transport.requests) == 1


class TestFindAll:
    @pytest.mark.asyncio
    async def test_rejects_order_skip_and_limit(self, client, transport):
        for query in (
            GameScore.query().order("points"),
            GameScore.query().skip(1),
            GameScore.query().limit(10),
        ):
            with pytest.raises(ParseError) as info:
                await query.find_all()
            assert info.value.code == ParseErrorCode.OTHER_CAUSE
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_rejects_non_positive_batch_limit(self, client, transport):
        for batch_limit in (0, -1):
            with pytest.raises(ParseError) as info:
                await GameScore.query().find_all(batch_limit=batch_limit)
            assert info.value.code == ParseErrorCode.OTHER_CAUSE
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_pages_in_ascending_object_id_order(self, client, transport):
        transport.reply(page("a", "b"))
        transport.reply(page("c", "d"))
        transport.reply(page("e"))

        found = await GameScore.query(Constraint.eq("points", 1)).find_all(batch_limit=2)

        assert [record.object_id for record in found] == ["a", "b", "c", "d", "e"]
        assert len(transport.requests) == 3
        first, second, third = transport.requests
        assert json.loads(first.params["order"]) == ["objectId"]
        assert first.params["limit"] == "2"
        assert where_of(first) == {"points": {"$eq": 1}}
        assert where_of(second) == {"points": {"$eq": 1}, "objectId": {"$gt": "b"}}
        assert where_of(third) == {"points": {"$eq": 1}, "objectId": {"$gt": "d"}}

    @pytest.mark.asyncio
    async def test_cursor_replaces_existing_lower_bound(self, client, transport):
        transport.reply(page("m", "n"))
        transport.reply(page())

        query = GameScore.query(Constraint.gt("objectId", "k"), Constraint.lt("objectId", "z"))
        found = await query.find_all(batch_limit=2)

        assert [record.object_id for record in found] == ["m", "n"]
        assert where_of(transport.requests[0]) == {"objectId": {"$gt": "k", "$lt": "z"}}
        assert where_of(transport.requests[1]) == {"objectId": {"$gt": "n", "$lt": "z"}}

    @pytest.mark.asyncio
    async def test_default_page_size(self, client, transport):
        transport.reply(page("a"))
        await GameScore.query().find_all()
        assert transport.last.params["limit"] == "50"


class TestPostForm:
    @pytest.mark.asyncio
    async def test_get_and_post_decode_identically(self, configuration, transport):
        get_client = ParseClient(configuration, transport, InMemoryPrimitiveStore())
        post_client = ParseClient(
            configuration.model_copy(update={"using_post_for_query": True}), transport, InMemoryPrimitiveStore()
        )
        body = {"results": [{"objectId": "a", "points": 3, "playerName": "Ana"}], "count": 4}
        query = GameScore.query(Constraint.eq("points", 3))
        for _ in range(6):
            transport.reply(body)

        outcomes = [
            (
                await query.find(client=current),
                await query.count(client=current),
                await query.with_count(client=current),
            )
            for current in (get_client, post_client)
        ]

        assert outcomes[0] == outcomes[1]
        assert outcomes[0][1] == 4
        get_requests, post_requests = transport.requests[:3], transport.requests[3:]
        assert all(request.method == "GET" and request.content is None for request in get_requests)
        for request in post_requests:
            sent = json.loads(request.content)
            assert request.method == "POST"
            assert request.params is None
            assert sent["_method"] == "GET"
            assert sent["where"] == {"points": {"$eq": 3}}
