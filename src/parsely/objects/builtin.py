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
"""Built-in Parse classes.

Their server class names route them to their own collection endpoints
(``/users``, ``/installations``, ``/sessions``, ``/roles``). :class:`ParseUser`
adds sign-up, login and logout on top of the plain record operations.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, ClassVar, Self

import structlog
from pydantic import Field

from parsely.api.command import Command, NonParseBodyCommand
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Option, Options, SessionToken, UseCachePolicy
from parsely.api.responses import LoginSignupResponse
from parsely.api.surface import class_surface, surface
from parsely.coding.coding import encode_fields
from parsely.core.configuration import CachePolicy
from parsely.core.runtime import ParseClient, resolve
from parsely.kernel.exceptions import ParseError, ParseErrorCode
from parsely.objects.parse_object import ParseObject
from parsely.storage.parse_storage import StorageKeys

OptionsArg = Options | Iterable[Option] | None

logger = structlog.get_logger(__name__)


class ParseUser(ParseObject):
    """A ``_User`` record with sign-up and session handling.

    The logged-in user is kept in storage together with its session token,
    which is then sent as ``X-Parse-Session-Token`` on every request.
    """

    class_name: ClassVar[str] = "_User"

    username: str | None = None
    email: str | None = None
    email_verified: bool | None = None
    password: str | None = None
    session_token: str | None = Field(default=None, exclude=True)
    auth_data: dict[str, Any] | None = None

    def _apply_signup(self, response: LoginSignupResponse) -> Self:
        updated = self.apply_create(response)
        updated.session_token = response.session_token
        updated.password = None
        return updated

    def signup_command(self) -> Command[Self]:
        return Command(
            method=Method.POST,
            path=self.endpoint(Method.POST),
            body=self,
            mapper=lambda data: self._apply_signup(LoginSignupResponse.model_validate_json(data)),
        )

    @classmethod
    def login_command(cls, username: str, password: str) -> NonParseBodyCommand[Self]:
        return NonParseBodyCommand(
            method=Method.POST,
            path=Endpoint.login(),
            body={"username": username, "password": password},
            mapper=cls.model_validate_json,
        )

    @classmethod
    def become_command(cls, session_token: str) -> Command[Self]:
        def mapper(data: bytes) -> Self:
            user = cls.model_validate_json(data)
            if user.session_token is None:
                user.session_token = session_token
            return user

        return Command(method=Method.GET, path=Endpoint.for_class(cls.class_name, "me"), mapper=mapper)

    @staticmethod
    def logout_command() -> NonParseBodyCommand[None]:
        return NonParseBodyCommand(method=Method.POST, path=Endpoint.logout(), mapper=lambda data: None)

    @surface
    async def signup(self, options: OptionsArg = None, client: ParseClient | None = None) -> Self:
        """Create this user on the server and make it the current user."""
        if self.username is None:
            raise ParseError(ParseErrorCode.USERNAME_MISSING, "Cannot sign up a user without a username.")
        if self.password is None:
            raise ParseError(ParseErrorCode.PASSWORD_MISSING, "Cannot sign up a user without a password.")
        client = resolve(client)
        options = Options.of(options).with_defaults(UseCachePolicy(CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA))
        user = await self.signup_command().execute(client, options)
        await user._store_as_current(client)
        return user

    @class_surface
    async def login(
        cls,
        username: str,
        password: str,
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> Self:
        client = resolve(client)
        options = Options.of(options).with_defaults(UseCachePolicy(CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA))
        user = await cls.login_command(username, password).execute(client, options)
        await user._store_as_current(client)
        return user

    @class_surface
    async def become(cls, session_token: str, options: OptionsArg = None, client: ParseClient | None = None) -> Self:
        """Log in with an existing session token, fetching the user it belongs to."""
        client = resolve(client)
        options = (
            Options.of(options)
            .with_defaults(UseCachePolicy(CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA))
            .union([SessionToken(session_token)])
        )
        user = await cls.become_command(session_token).execute(client, options)
        await user._store_as_current(client)
        return user

    @class_surface
    async def logout(cls, options: OptionsArg = None, client: ParseClient | None = None) -> None:
        """End the session on the server. The local user is cleared even when the request fails."""
        client = resolve(client)
        options = Options.of(options).with_defaults(UseCachePolicy(CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA))
        try:
            await cls.logout_command().execute(client, options)
        finally:
            await cls.delete_current(client)

    @classmethod
    async def current(cls, client: ParseClient | None = None) -> Self:
        stored = await resolve(client).storage.get_quietly(StorageKeys.CURRENT_USER)
        if not isinstance(stored, dict):
            raise ParseError.other("There is no current user logged in")
        return cls.model_validate(stored)

    @classmethod
    async def delete_current(cls, client: ParseClient | None = None) -> None:
        await resolve(client).storage.delete(StorageKeys.CURRENT_USER)
        logger.info("current_user_cleared")

    async def _store_as_current(self, client: ParseClient) -> None:
        stored = encode_fields(self, skip=frozenset({"password"}))
        stored["sessionToken"] = self.session_token
        await client.storage.set(StorageKeys.CURRENT_USER, stored)
        logger.info("current_user_stored", object_id=self.object_id)


class ParseInstallation(ParseObject):
    class_name: ClassVar[str] = "_Installation"

    installation_id: str | None = None
    device_type: str | None = None
    device_token: str | None = None
    channels: list[str] | None = None
    app_name: str | None = None
    app_identifier: str | None = None
    app_version: str | None = None
    parse_version: str | None = None
    locale_identifier: str | None = None
    time_zone: str | None = None
    badge: int | None = None


class ParseSession(ParseObject):
    class_name: ClassVar[str] = "_Session"

    session_token: str | None = None
    user: ParseUser | None = None
    installation_id: str | None = None
    expires_at: datetime | None = None
    created_with: dict[str, str] | None = None
    restricted: bool | None = None


class ParseRole(ParseObject):
    class_name: ClassVar[str] = "_Role"

    name: str | None = None
