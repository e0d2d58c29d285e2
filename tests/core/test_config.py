"""Tests for nikki.core.config."""

import json
import os

import pytest
import yaml

from nikki.core.config import Config
from nikki.core.exceptions import ConfigurationError


class TestConfig:
    def test_defaults(self):
        config = Config()
        data_dir = config.get("paths.data_dir")
        assert data_dir.endswith(".nikki-data")
        assert config.get("database.name") == "nikki"
        assert config.get("search.threshold") == 0.3

    def test_custom_data_dir(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        assert config.get("paths.data_dir") == tmp_dir
        assert config.get("paths.log_dir") == os.path.join(tmp_dir, "logs")

    def test_custom_env_prefix(self, monkeypatch, tmp_dir):
        monkeypatch.setenv("MYAPP_DATABASE__NAME", "other")
        config = Config(env_prefix="MYAPP_", data_dir=tmp_dir)
        assert config.get("database.name") == "other"

    def test_yaml_config_file(self, tmp_config_file):
        config = Config(config_file=tmp_config_file)
        assert config.get("database.name") == "diary"
        assert config.get("search.threshold") == 0.25
        # Untouched defaults survive the merge
        assert config.get("search.weights.content") == 0.7

    def test_json_config_file(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "config.json")
        with open(config_path, "w") as f:
            json.dump({"database": {"name": "from-json"}}, f)

        config = Config(config_file=config_path, data_dir=tmp_dir)
        assert config.get("database.name") == "from-json"

    def test_unparseable_file(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "config.yaml")
        with open(config_path, "w") as f:
            f.write("database: [unclosed")

        with pytest.raises(ConfigurationError):
            Config(config_file=config_path, data_dir=tmp_dir)

    def test_missing_file_uses_defaults(self, tmp_dir):
        config = Config(config_file=os.path.join(tmp_dir, "absent.yaml"), data_dir=tmp_dir)
        assert config.get("database.name") == "nikki"

    def test_env_overrides_file(self, tmp_dir, monkeypatch):
        config_path = os.path.join(tmp_dir, "config.yaml")
        with open(config_path, "w") as f:
            yaml.dump({"database": {"name": "diary"}}, f)

        monkeypatch.setenv("NIKKI_DATABASE__NAME", "override")
        config = Config(config_file=config_path, data_dir=tmp_dir)
        assert config.get("database.name") == "override"

    def test_get_missing_key(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        assert config.get("nonexistent.key") is None
        assert config.get("nonexistent.key", "fallback") == "fallback"

    def test_set(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        config.set("custom.nested.value", 42)
        assert config.get("custom.nested.value") == 42

    def test_ensure_directories(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        config.ensure_directories()
        assert os.path.isdir(os.path.join(tmp_dir, "logs"))

    def test_extra_defaults(self, tmp_dir):
        config = Config(data_dir=tmp_dir, defaults={"custom": {"key": "value"}})
        assert config.get("custom.key") == "value"
