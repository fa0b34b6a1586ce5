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
"""Unified exception hierarchy for Parsely.

Every failure the SDK surfaces is a :class:`ParseError`. Errors decoded from
the server's ``{"code": ..., "error": ...}`` envelope keep the server's code;
failures raised locally (unsaved records, empty singular queries, bad
operation combinations, undecodable payloads, transport problems) use the
client-side codes of :class:`ParseErrorCode`.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class ParseErrorCode(IntEnum):
    """Error codes shared with Parse Server."""

    OTHER_CAUSE = -1
    INTERNAL_SERVER = 1
    SERVICE_UNAVAILABLE = 2
    CLIENT_DISCONNECTED = 4
    CONNECTION_FAILED = 100
    OBJECT_NOT_FOUND = 101
    INVALID_QUERY = 102
    INVALID_CLASS_NAME = 103
    MISSING_OBJECT_ID = 104
    INVALID_KEY_NAME = 105
    INVALID_POINTER = 106
    INVALID_JSON = 107
    COMMAND_UNAVAILABLE = 108
    NOT_INITIALIZED = 109
    INCORRECT_TYPE = 111
    INVALID_CHANNEL_NAME = 112
    PUSH_MISCONFIGURED = 115
    OBJECT_TOO_LARGE = 116
    OPERATION_FORBIDDEN = 119
    CACHE_MISS = 120
    INVALID_NESTED_KEY = 121
    INVALID_FILE_NAME = 122
    INVALID_ACL = 123
    TIMEOUT = 124
    INVALID_EMAIL_ADDRESS = 125
    MISSING_CONTENT_TYPE = 126
    MISSING_CONTENT_LENGTH = 127
    INVALID_CONTENT_LENGTH = 128
    FILE_TOO_LARGE = 129
    FILE_SAVE_ERROR = 130
    DUPLICATE_VALUE = 137
    INVALID_ROLE_NAME = 139
    EXCEEDED_QUOTA = 140
    SCRIPT_FAILED = 141
    VALIDATION_ERROR = 142
    FILE_DELETE_ERROR = 153
    REQUEST_LIMIT_EXCEEDED = 155
    DUPLICATE_REQUEST = 159
    INVALID_EVENT_NAME = 160
    INVALID_VALUE = 162
    USERNAME_MISSING = 200
    PASSWORD_MISSING = 201
    USERNAME_TAKEN = 202
    EMAIL_TAKEN = 203
    EMAIL_MISSING = 204
    EMAIL_NOT_FOUND = 205
    SESSION_MISSING = 206
    MUST_CREATE_USER_THROUGH_SIGNUP = 207
    ACCOUNT_ALREADY_LINKED = 208
    INVALID_SESSION_TOKEN = 209
    MFA_ERROR = 210
    MFA_TOKEN_REQUIRED = 211
    LINKED_ID_MISSING = 250
    INVALID_LINKED_SESSION = 251
    UNSUPPORTED_SERVICE = 252
    INVALID_SCHEMA_OPERATION = 255
    AGGREGATE_ERROR = 600
    FILE_READ_ERROR = 601
    X_DOMAIN_REQUEST = 602


class ParselyException(Exception):
    """Base exception for all Parsely errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code.
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: int | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.context: dict = context if context is not None else {}


class ParseError(ParselyException):
    """A failure reported by the server or detected by the SDK.

    Args:
        code: A :class:`ParseErrorCode`, or the raw integer the server sent
            when it is not one of the known codes.
        message: Human-readable error description.
        underlying: The exception that caused this error, if any.
    """

    code: ParseErrorCode | int

    def __init__(
        self,
        code: ParseErrorCode | int,
        message: str,
        underlying: BaseException | None = None,
        context: dict | None = None,
    ) -> None:
        try:
            code = ParseErrorCode(code)
        except ValueError:
            pass
        super().__init__(message, code=code, context=context)
        self.underlying = underlying
        if underlying is not None:
            self.__cause__ = underlying

    @classmethod
    def from_envelope(cls, payload: Any) -> ParseError | None:
        """Decode ``{"code": int, "error": str}``; ``None`` if *payload* is not an error envelope."""
        if not isinstance(payload, dict):
            return None
        code = payload.get("code")
        message = payload.get("error")
        if isinstance(code, bool) or not isinstance(code, int) or not isinstance(message, str):
            return None
        return cls(code, message)

    @classmethod
    def other(cls, message: str, underlying: BaseException | None = None) -> ParseError:
        return cls(ParseErrorCode.OTHER_CAUSE, message, underlying)

    def to_dict(self) -> dict[str, Any]:
        return {"code": int(self.code), "error": self.message}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError):
            return NotImplemented
        return int(self.code) == int(other.code) and self.message == other.message

    def __hash__(self) -> int:
        return hash((int(self.code), self.message))

    def __str__(self) -> str:
        code = self.code.name if isinstance(self.code, ParseErrorCode) else str(self.code)
        return f"ParseError code={code} message={self.message}"
