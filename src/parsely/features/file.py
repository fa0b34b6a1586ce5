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
"""Files stored by the server.

A :class:`ParseFile` starts from in-memory data, a local path, or a link
to download first. Saving uploads it and returns a copy carrying the
server-assigned ``name`` and ``url``; saved files cannot be uploaded again::

    avatar = ParseFile(name="avatar.png", data=png_bytes, mime_type="image/png")
    saved = await avatar.save(progress=lambda task, sent, total, expected: ...)

Uploads and downloads report progress as ``(task, bytes, total, expected)``
and can be stopped with ``task.cancel()``; a cancelled transfer fails with
``OTHER_CAUSE``.
"""

from __future__ import annotations

import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_serializer

from parsely.api.command import Command
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import (
    Metadata,
    MimeType,
    Option,
    Options,
    RemoveMimeType,
    Tags,
    UseCachePolicy,
    UsePrimaryKey,
)
from parsely.api.responses import FileUploadResponse
from parsely.api.surface import surface
from parsely.client.ports.outbound import ProgressCallback, TransferTask
from parsely.coding.coding import loads
from parsely.core.configuration import CachePolicy, ParseConfiguration
from parsely.core.runtime import ParseClient, resolve
from parsely.kernel.exceptions import ParseError

OptionsArg = Options | Iterable[Option] | None

logger = structlog.get_logger(__name__)

_LOCAL_FIRST_POLICIES = frozenset(
    {
        CachePolicy.USE_PROTOCOL_CACHE_POLICY,
        CachePolicy.RETURN_CACHE_DATA_ELSE_LOAD,
        CachePolicy.RETURN_CACHE_DATA_DONT_LOAD,
    }
)


def downloads_directory(configuration: ParseConfiguration) -> Path:
    if configuration.downloads_directory is not None:
        return Path(configuration.downloads_directory)
    return Path(tempfile.gettempdir()) / "parsely" / "downloads"


class ParseFile(BaseModel):
    """``{"__type": "File", "name": ..., "url": ...}`` plus local upload sources."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", ignored_types=(surface,))

    name: str = "file"
    url: str | None = None
    data: bytes | None = Field(default=None, exclude=True)
    local_path: Path | None = Field(default=None, exclude=True)
    cloud_url: str | None = Field(default=None, exclude=True)
    mime_type: str | None = Field(default=None, exclude=True)
    metadata: dict[str, str] | None = Field(default=None, exclude=True)
    tags: dict[str, str] | None = Field(default=None, exclude=True)

    @model_serializer
    def _serialize(self) -> dict[str, Any]:
        return self.to_wire()

    def to_wire(self) -> dict[str, Any]:
        body: dict[str, Any] = {"__type": "File", "name": self.name}
        if self.url is not None:
            body["url"] = self.url
        return body

    @property
    def is_saved(self) -> bool:
        return self.url is not None

    @property
    def is_download_needed(self) -> bool:
        return self.cloud_url is not None and not self.is_saved and self.local_path is None and self.data is None

    def _upload_options(self, options: OptionsArg) -> Options:
        defaults: list[Option] = [MimeType(self.mime_type) if self.mime_type is not None else RemoveMimeType()]
        if self.metadata:
            defaults.append(Metadata(self.metadata))
        if self.tags:
            defaults.append(Tags(self.tags))
        return Options.of(options).union(defaults)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def upload_command(self) -> Command[ParseFile]:
        if self.is_saved:
            raise ParseError.other("File is already saved and cannot be updated.")
        if self.data is None and self.local_path is None:
            raise ParseError.other("A file needs data or a local path before it can be uploaded.")

        def apply(data: bytes) -> ParseFile:
            uploaded = FileUploadResponse.model_validate_json(data)
            return self.model_copy(update={"name": uploaded.name, "url": uploaded.url})

        return Command(
            method=Method.POST,
            path=Endpoint.file(self.name),
            upload_data=self.data,
            upload_file=self.local_path,
            mapper=apply,
        )

    def download_command(self, directory: Path) -> Command[ParseFile]:
        source = self.url or self.cloud_url
        if source is None:
            raise ParseError.other("Cannot download the file without specifying the url")
        destination = directory / Path(self.name).name

        def apply(data: bytes) -> ParseFile:
            return self.model_copy(update={"local_path": Path(loads(data))})

        return Command(
            method=Method.GET,
            path=Endpoint.file(self.name),
            url=source,
            destination=destination,
            mapper=apply,
        )

    def delete_command(self) -> Command[None]:
        if not self.is_saved:
            raise ParseError.other("Cannot delete a file that is not saved.")
        return Command(method=Method.DELETE, path=Endpoint.file(self.name), mapper=lambda data: None)

    def _cached(self, options: Options, configuration: ParseConfiguration) -> ParseFile | None:
        policy = options.cache_policy(configuration.request_cache_policy)
        if policy not in _LOCAL_FIRST_POLICIES:
            return None
        candidate = downloads_directory(configuration) / Path(self.name).name
        if candidate.exists():
            return self.model_copy(update={"local_path": candidate})
        if policy is CachePolicy.RETURN_CACHE_DATA_DONT_LOAD:
            raise ParseError.other(f"The file '{self.name}' is not available locally")
        return None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @surface
    async def save(
        self,
        options: OptionsArg = None,
        client: ParseClient | None = None,
        *,
        progress: ProgressCallback | None = None,
        task: TransferTask | None = None,
    ) -> ParseFile:
        """Upload the file; a file given only by ``cloud_url`` is downloaded first."""
        client = resolve(client)
        source = self
        if self.is_download_needed:
            source = await self.fetch(options, client, progress=progress, task=task)
        command = source.upload_command()
        uploaded = await command.execute(client, source._upload_options(options), progress=progress, task=task)
        logger.debug("file_uploaded", name=uploaded.name)
        return uploaded

    @surface
    async def fetch(
        self,
        options: OptionsArg = None,
        client: ParseClient | None = None,
        *,
        progress: ProgressCallback | None = None,
        task: TransferTask | None = None,
    ) -> ParseFile:
        """Download the file into the downloads directory, reusing a local copy when the cache policy allows."""
        client = resolve(client)
        options = Options.of(options)
        cached = self._cached(options, client.configuration)
        if cached is not None:
            return cached
        command = self.download_command(downloads_directory(client.configuration))
        return await command.execute(client, options, progress=progress, task=task)

    @surface
    async def delete(self, options: OptionsArg = None, client: ParseClient | None = None) -> None:
        """Delete the file from the server; requires the primary key, which is added for you."""
        options = Options.of(options).with_defaults(
            UsePrimaryKey(), UseCachePolicy(CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA)
        )
        await self.delete_command().execute(resolve(client), options)
