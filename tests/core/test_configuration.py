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
"""Tests for layered settings and ParseConfiguration binding."""

import pytest

from parsely.core.config import Config
from parsely.core.configuration import CachePolicy, ParseConfiguration


def client_section(**values):
    return Config({"parsely": {"client": values}})


class TestConfig:
    def test_dot_notation_lookup(self):
        config = Config({"parsely": {"client": {"server_url": "http://a/parse"}}})
        assert config.get("parsely.client.server_url") == "http://a/parse"
        assert config.get("parsely.client.missing", "fallback") == "fallback"

    def test_env_var_wins(self, monkeypatch):
        monkeypatch.setenv("PARSELY_CLIENT_APPLICATION_ID", "from-env")
        config = client_section(application_id="from-file")
        assert config.get("parsely.client.application_id") == "from-env"

    def test_placeholders(self, monkeypatch):
        monkeypatch.setenv("PARSE_HOST", "db.example.com")
        config = Config({"parsely": {"client": {"server_url": "https://${PARSE_HOST}/parse", "key": "${nope:abc}"}}})
        assert config.get("parsely.client.server_url") == "https://db.example.com/parse"
        assert config.get("parsely.client.key") == "abc"

    def test_unresolvable_placeholder(self):
        config = client_section(client_key="${SURELY_NOT_SET_ANYWHERE}")
        with pytest.raises(ValueError):
            config.get("parsely.client.client_key")

    def test_packaged_defaults_are_loaded(self, tmp_path):
        config = Config.from_sources(tmp_path)
        assert config.get("parsely.client.max_connection_attempts") == 5
        assert config.get("parsely.logging.format") == "console"

    def test_yaml_file_and_profile_overlay(self, tmp_path):
        (tmp_path / "parsely.yaml").write_text(
            "parsely:\n  client:\n    application_id: app\n    server_url: http://localhost:1337/parse\n"
        )
        (tmp_path / "parsely-prod.yaml").write_text("parsely:\n  client:\n    server_url: https://prod/parse\n")
        config = Config.from_sources(tmp_path, active_profiles=["prod"])
        assert config.get("parsely.client.application_id") == "app"
        assert config.get("parsely.client.server_url") == "https://prod/parse"
        assert len(config.loaded_sources) == 3

    def test_toml_file(self, tmp_path):
        (tmp_path / "parsely.toml").write_text('[parsely.client]\napplication_id = "toml-app"\n')
        config = Config.from_sources(tmp_path)
        assert config.get("parsely.client.application_id") == "toml-app"


class TestParseConfiguration:
    def test_bind(self):
        configuration = client_section(
            application_id="app",
            server_url="http://localhost:1337/parse/",
            using_post_for_query="true",
            request_cache_policy="reload_ignoring_local_cache_data",
        ).bind(ParseConfiguration)
        assert configuration.server_url == "http://localhost:1337/parse"
        assert configuration.using_post_for_query is True
        assert configuration.request_cache_policy is CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA
        assert configuration.max_connection_attempts == 5

    def test_bind_fails_fast(self):
        with pytest.raises(ValueError, match="ParseConfiguration"):
            client_section(server_url="http://localhost/parse").bind(ParseConfiguration)

    def test_relative_server_url_is_rejected(self):
        with pytest.raises(ValueError):
            ParseConfiguration(application_id="app", server_url="/parse")

    def test_mount_path(self):
        assert ParseConfiguration(application_id="a", server_url="http://h:1337/parse").mount_path == "/parse"
        assert ParseConfiguration(application_id="a", server_url="http://h:1337").mount_path == "/"

    def test_env_override_through_bind(self, monkeypatch):
        monkeypatch.setenv("PARSELY_CLIENT_MAX_CONNECTION_ATTEMPTS", "2")
        configuration = client_section(application_id="app", server_url="http://h/parse", max_connection_attempts=5).bind(
            ParseConfiguration
        )
        assert configuration.max_connection_attempts == 2
