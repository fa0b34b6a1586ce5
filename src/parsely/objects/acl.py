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
"""Access control lists."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_serializer, model_validator

PUBLIC = "*"


class ParseACL(BaseModel):
    """Per-user and per-role read/write permissions.

    Wire form: ``{"*": {"read": true}, "<userId>": {"read": true, "write": true},
    "role:Admin": {"write": true}}``.
    """

    permissions: dict[str, dict[str, bool]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if isinstance(data, dict) and "permissions" not in data:
            return {"permissions": data}
        return data

    @model_serializer
    def _serialize(self) -> dict[str, dict[str, bool]]:
        return self.to_wire()

    def to_wire(self) -> dict[str, dict[str, bool]]:
        return {
            entity: {access: True for access, allowed in sorted(rules.items()) if allowed}
            for entity, rules in self.permissions.items()
            if any(rules.values())
        }

    def _set(self, entity: str, access: str, value: bool) -> ParseACL:
        permissions = {key: dict(rules) for key, rules in self.permissions.items()}
        permissions.setdefault(entity, {})[access] = value
        return ParseACL(permissions=permissions)

    def _get(self, entity: str, access: str) -> bool:
        return self.permissions.get(entity, {}).get(access, False)

    def set_read_access(self, user_id: str, value: bool) -> ParseACL:
        return self._set(user_id, "read", value)

    def set_write_access(self, user_id: str, value: bool) -> ParseACL:
        return self._set(user_id, "write", value)

    def set_role_read_access(self, role: str, value: bool) -> ParseACL:
        return self._set(f"role:{role}", "read", value)

    def set_role_write_access(self, role: str, value: bool) -> ParseACL:
        return self._set(f"role:{role}", "write", value)

    def get_read_access(self, user_id: str) -> bool:
        return self._get(user_id, "read")

    def get_write_access(self, user_id: str) -> bool:
        return self._get(user_id, "write")

    @property
    def public_read(self) -> bool:
        return self._get(PUBLIC, "read")

    @property
    def public_write(self) -> bool:
        return self._get(PUBLIC, "write")

    def with_public_access(self, read: bool, write: bool) -> ParseACL:
        return self._set(PUBLIC, "read", read)._set(PUBLIC, "write", write)
