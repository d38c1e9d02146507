"""
Tests for configuration loading — defaults, YAML file, env vars, overrides.
"""

from pathlib import Path

import pytest

from repo_sync.config.loader import load_config, load_yaml, parse_sources
from repo_sync.config.models import DEFAULT_SOURCES, SourceOrg, SyncConfig
from repo_sync.errors import ConfigurationError


class TestDefaults:
    """Built-in defaults name the two stock organizations."""

    def test_default_values(self):
        config = load_config(env={})

        assert config.sources == DEFAULT_SOURCES
        assert [(s.org, s.branch) for s in config.sources] == [
            ("EmergentMonk", "TEST"),
            ("multimodalas", "DEV"),
        ]
        assert config.build_org == "QSOLKCB"
        assert config.workdir == Path.home() / "repo_mirror"
        assert config.max_repos == 200
        assert config.retry_count == 3
        assert config.destination_ref == "BUILD"
        assert config.dry_run is False

    def test_derived_paths(self, tmp_path):
        config = SyncConfig(workdir=tmp_path)

        assert config.log_file == tmp_path / "repo_sync.log"
        assert config.marker_path("foo") == tmp_path / "foo" / ".repo_sync_skip"
        assert config.build_remote_url("foo") == "git@github.com:QSOLKCB/foo.git"
        assert config.push_refspec("DEV") == "DEV:BUILD"

    def test_config_is_immutable(self):
        config = SyncConfig()

        with pytest.raises(Exception):
            config.retry_count = 9

    def test_token_not_in_repr(self):
        config = SyncConfig(github_token="ghp_secret")

        assert "ghp_secret" not in repr(config)


class TestLayers:
    """Precedence: defaults < YAML < env < overrides."""

    def test_env_overrides_defaults(self, tmp_path):
        config = load_config(
            env={
                "REPO_SYNC_WORKDIR": str(tmp_path),
                "REPO_SYNC_BUILD_ORG": "OTHER",
                "REPO_SYNC_MAX_REPOS": "50",
                "REPO_SYNC_SOURCES": "x:TEST, y:DEV ,z:QA",
                "GITHUB_TOKEN": "tok",
            }
        )

        assert config.workdir == tmp_path
        assert config.build_org == "OTHER"
        assert config.max_repos == 50
        assert config.github_token == "tok"
        assert [s.org for s in config.sources] == ["x", "y", "z"]

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "repo_sync.yaml"
        path.write_text(
            "build_org: YAMLORG\n"
            "retry_count: 4\n"
            "sources:\n"
            "  - org: one\n    branch: TEST\n"
        )

        config = load_config(env={"REPO_SYNC_CONFIG": str(path)})

        assert config.build_org == "YAMLORG"
        assert config.retry_count == 4
        assert config.sources == (SourceOrg(org="one", branch="TEST"),)

    def test_env_beats_yaml_and_overrides_beat_env(self, tmp_path):
        path = tmp_path / "repo_sync.yaml"
        path.write_text("build_org: YAMLORG\nretry_count: 4\n")

        config = load_config(
            {"retry_count": 7, "dry_run": True},
            env={"REPO_SYNC_CONFIG": str(path), "REPO_SYNC_BUILD_ORG": "ENVORG"},
        )

        assert config.build_org == "ENVORG"
        assert config.retry_count == 7
        assert config.dry_run is True

    def test_none_overrides_are_ignored(self):
        config = load_config({"retry_count": None}, env={})

        assert config.retry_count == 3


class TestInvalid:
    """Invalid values surface as ConfigurationError."""

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(env={"REPO_SYNC_CONFIG": str(tmp_path / "nope.yaml")})

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            load_config(env={"REPO_SYNC_CONFIG": str(path)})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("sources: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_config(env={"REPO_SYNC_CONFIG": str(path)})

    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_retry_count(self, value):
        with pytest.raises(ConfigurationError):
            load_config({"retry_count": value}, env={})

    def test_non_numeric_max_repos(self):
        with pytest.raises(ConfigurationError):
            load_config(env={"REPO_SYNC_MAX_REPOS": "lots"})


class TestParseSources:
    """Tests for parse_sources()."""

    def test_order_preserved(self):
        assert parse_sources("b:DEV,a:TEST") == [
            {"org": "b", "branch": "DEV"},
            {"org": "a", "branch": "TEST"},
        ]

    @pytest.mark.parametrize("raw", ["org", "org:", ":DEV", ",,"])
    def test_malformed(self, raw):
        with pytest.raises(ConfigurationError):
            parse_sources(raw)


class TestLoadYaml:
    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_yaml(path) == {}
