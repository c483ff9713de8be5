"""Tests for configuration loading."""

import pytest
import yaml

from tagtrack.config import Config, load_config, load_yaml_config
from tagtrack.models import SourceType

ENV_VARS = (
    "TAGTRACK_SOURCE_NAME", "TAGTRACK_SOURCE_TYPE", "TAGTRACK_SNAPSHOT_CATEGORY",
    "TAGTRACK_MAX_ACTIVITY_SIZE", "TAGTRACK_METRICS_ON_EXCEPTION",
    "TAGTRACK_METRICS_FREQUENCY", "TAGTRACK_DELIMITER", "TAGTRACK_SINK",
    "TAGTRACK_OUTPUT_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_default_values(self):
        config = load_config()
        assert config == Config()
        assert config.source_name is None
        assert config.source_type is SourceType.APPL
        assert config.snapshot_category == "Logging"
        assert config.max_activity_size == 100
        assert config.metrics_on_exception is True
        assert config.metrics_frequency == 60
        assert config.delimiter == "#"
        assert config.sink == "jsonl"

    def test_frozen(self):
        config = Config()
        with pytest.raises(AttributeError):
            config.max_activity_size = 5


class TestYaml:
    def test_load_yaml_section(self, tmp_path):
        path = tmp_path / "tagtrack.yml"
        path.write_text(yaml.dump({"tracker": {
            "source_name": "shop",
            "source_type": "server",
            "max_activity_size": 10,
            "metrics_on_exception": False,
            "metrics_frequency": 5,
            "sink": "memory",
        }}))
        config = load_config(load_yaml_config(str(path)))
        assert config.source_name == "shop"
        assert config.source_type is SourceType.SERVER
        assert config.max_activity_size == 10
        assert config.metrics_on_exception is False
        assert config.metrics_frequency == 5
        assert config.sink == "memory"
        assert config.snapshot_category == "Logging"

    def test_missing_file_uses_defaults(self):
        assert load_yaml_config("/nonexistent/tagtrack.yml") == {}

    def test_no_path(self):
        assert load_yaml_config(None) == {}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_yaml_config(str(path)) == {}


class TestEnvironment:
    def test_env_overrides_yaml(self, monkeypatch):
        monkeypatch.setenv("TAGTRACK_MAX_ACTIVITY_SIZE", "7")
        monkeypatch.setenv("TAGTRACK_METRICS_ON_EXCEPTION", "false")
        monkeypatch.setenv("TAGTRACK_DELIMITER", "@")
        config = load_config({"tracker": {"max_activity_size": 50}})
        assert config.max_activity_size == 7
        assert config.metrics_on_exception is False
        assert config.delimiter == "@"


class TestValidation:
    @pytest.mark.parametrize("section", [
        {"max_activity_size": 0},
        {"metrics_frequency": -1},
        {"delimiter": "##"},
        {"sink": "kafka"},
        {"source_type": "SPACESHIP"},
    ])
    def test_invalid_values(self, section):
        with pytest.raises(ValueError):
            load_config({"tracker": section})

    def test_non_numeric_size(self, monkeypatch):
        monkeypatch.setenv("TAGTRACK_MAX_ACTIVITY_SIZE", "lots")
        with pytest.raises(ValueError):
            load_config()
