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
"""Parsely objects: typed records, pointers, ACLs, and field accessors."""

from parsely.objects.acl import ParseACL
from parsely.objects.builtin import ParseInstallation, ParseRole, ParseSession, ParseUser
from parsely.objects.keys import FieldKey
from parsely.objects.parse_object import ParseObject
from parsely.objects.pointer import Pointer
from parsely.objects.protocols import Deletable, Fetchable, Identifiable, Savable

__all__ = [
    "Deletable",
    "FieldKey",
    "Fetchable",
    "Identifiable",
    "ParseACL",
    "ParseInstallation",
    "ParseObject",
    "ParseRole",
    "ParseSession",
    "ParseUser",
    "Pointer",
    "Savable",
]
