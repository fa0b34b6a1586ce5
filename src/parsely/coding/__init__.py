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
"""Parsely coding: wire encoding rules and type-erased JSON values."""

from parsely.coding.any_codable import AnyCodable, AnyCodableKind
from parsely.coding.coding import (
    SERVER_KEYS,
    decode_date,
    dump_bytes,
    dumps,
    encode_date,
    encode_fields,
    encode_value,
    format_date,
    loads,
    normalize_incoming,
)

__all__ = [
    "SERVER_KEYS",
    "AnyCodable",
    "AnyCodableKind",
    "decode_date",
    "dump_bytes",
    "dumps",
    "encode_date",
    "encode_fields",
    "encode_value",
    "format_date",
    "loads",
    "normalize_incoming",
]
