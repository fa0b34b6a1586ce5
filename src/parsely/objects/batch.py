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
"""Saving and deleting many records through ``POST /batch``."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from pydantic import TypeAdapter

from parsely.api.command import Command, NonParseBodyCommand
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Options
from parsely.api.responses import BatchResponseItem, CreateResponse, ReplaceResponse
from parsely.api.surface import Result
from parsely.coding.coding import encode_fields
from parsely.core.runtime import ParseClient
from parsely.kernel.exceptions import ParseError

if TYPE_CHECKING:
    from parsely.objects.parse_object import ParseObject

R = TypeVar("R", bound="ParseObject")

BATCH_LIMIT = 50

logger = structlog.get_logger(__name__)

_items = TypeAdapter(list[BatchResponseItem])


def _chunks(values: Sequence[Any], size: int) -> list[Sequence[Any]]:
    return [values[start : start + size] for start in range(0, len(values), size)]


def _request_entry(command: Command[Any], mount_path: str) -> dict[str, Any]:
    prefix = "" if mount_path == "/" else mount_path.rstrip("/")
    entry: dict[str, Any] = {"method": command.method.value, "path": f"{prefix}{command.path}"}
    if command.body is not None and command.method not in (Method.GET, Method.DELETE):
        entry["body"] = encode_fields(command.body, skip=command.skip_keys)
    return entry


def _batch_command(
    entries: list[dict[str, Any]],
    transaction: bool,
    interpret: Callable[[list[BatchResponseItem]], list[Result[Any]]],
) -> NonParseBodyCommand[list[Result[Any]]]:
    body: dict[str, Any] = {"requests": entries}
    if transaction:
        body["transaction"] = True
    return NonParseBodyCommand(
        method=Method.POST,
        path=Endpoint.batch(),
        body=body,
        mapper=lambda data: interpret(_items.validate_json(data)),
    )


def _failure(item: BatchResponseItem) -> Result[Any] | None:
    if item.error is not None:
        return Result.failure(ParseError(item.error.code, item.error.error))
    if item.success is None:
        return Result.failure(ParseError.other("Batch response item has neither success nor error"))
    return None


async def _run(
    commands: list[Command[Any]],
    interpret_one: Callable[[Command[Any], dict[str, Any]], Any],
    batch_limit: int | None,
    transaction: bool | None,
    options: Options,
    client: ParseClient,
) -> list[Result[Any]]:
    limit = batch_limit or BATCH_LIMIT
    use_transaction = client.configuration.using_transactions if transaction is None else transaction
    if use_transaction and len(commands) > limit:
        raise ParseError.other(
            f"Cannot batch more than {limit} requests in a transaction; "
            f"{len(commands)} were given. Raise batch_limit or disable the transaction."
        )

    results: list[Result[Any]] = []
    for chunk in _chunks(commands, limit):

        def interpret(items: list[BatchResponseItem], _chunk: Sequence[Command[Any]] = chunk) -> list[Result[Any]]:
            if len(items) != len(_chunk):
                raise ParseError.other(f"Batch returned {len(items)} results for {len(_chunk)} requests")
            out: list[Result[Any]] = []
            for command, item in zip(_chunk, items, strict=True):
                failed = _failure(item)
                out.append(failed if failed is not None else Result.success(interpret_one(command, item.success or {})))
            return out

        entries = [_request_entry(command, client.configuration.mount_path) for command in chunk]
        logger.debug("batch_dispatched", requests=len(entries), transaction=use_transaction)
        results.extend(await _batch_command(entries, use_transaction, interpret).execute(client, options))
    return results


async def save_all(
    records: list[R],
    batch_limit: int | None,
    transaction: bool | None,
    options: Options,
    client: ParseClient,
) -> list[Result[R]]:
    commands = [record.save_command(client.configuration) for record in records]
    owners = {id(command): record for command, record in zip(commands, records, strict=True)}

    def interpret_one(command: Command[Any], success: dict[str, Any]) -> Any:
        record = owners[id(command)]
        if command.method is Method.POST:
            return record.apply_create(CreateResponse.model_validate(success))
        return record.apply_replace(ReplaceResponse.model_validate(success))

    return await _run(commands, interpret_one, batch_limit, transaction, options, client)


async def delete_all(
    records: list[R],
    batch_limit: int | None,
    transaction: bool | None,
    options: Options,
    client: ParseClient,
) -> list[Result[None]]:
    commands = [record.delete_command() for record in records]
    return await _run(commands, lambda command, success: None, batch_limit, transaction, options, client)
