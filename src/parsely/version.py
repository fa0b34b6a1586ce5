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
"""SDK and server version handling."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

from parsely.kernel.exceptions import ParseError

SDK_VERSION = "1.0.0"

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:-(alpha|beta)(?:\.(\d+))?)?$")

_PRERELEASE_RANK = {"alpha": 0, "beta": 1, None: 2}


@total_ordering
@dataclass(frozen=True)
class ParseVersion:
    """Semantic version with an optional ``alpha``/``beta`` prerelease tag."""

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    prerelease_version: int | None = None

    @classmethod
    def parse(cls, value: str) -> ParseVersion:
        match = _VERSION_RE.match(value.strip())
        if match is None:
            raise ParseError.other(f"Cannot parse version string '{value}'")
        major, minor, patch, pre, pre_version = match.groups()
        return cls(
            int(major),
            int(minor),
            int(patch),
            pre,
            int(pre_version) if pre_version is not None else None,
        )

    def _key(self) -> tuple[int, int, int, int, int]:
        return (
            self.major,
            self.minor,
            self.patch,
            _PRERELEASE_RANK[self.prerelease],
            self.prerelease_version or 0,
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ParseVersion):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease is not None:
            text += f"-{self.prerelease}"
            if self.prerelease_version is not None:
                text += f".{self.prerelease_version}"
        return text
