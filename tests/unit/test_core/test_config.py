"""
test_config.py - configuration loading

Priority: env (IPSQR_*) > YAML > built-in defaults
"""

from pathlib import Path

import pytest

from ipsqr.core.config import DEFAULTS, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "IPSQR_API_BASE_URL",
        "IPSQR_API_TIMEOUT",
        "IPSQR_STORAGE_PATH",
        "IPSQR_STORAGE_QUOTA_BYTES",
        "IPSQR_DEFAULT_LANGUAGE",
    ):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        config = load_config(tmp_path / "missing.yaml")

        assert config == DEFAULTS

    def test_defaults_not_mutated(self, tmp_path: Path):
        config = load_config(tmp_path / "missing.yaml")
        config["api"]["timeout"] = 1.0

        assert DEFAULTS["api"]["timeout"] == 30.0

    def test_yaml_merged_over_defaults(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("language:\n  default: en\n", encoding="utf-8")

        config = load_config(path)

        assert config["language"]["default"] == "en"
        # untouched keys in the same section survive
        assert config["language"]["debounce_seconds"] == 0.5
        assert config["api"]["timeout"] == 30.0

    def test_empty_yaml(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == DEFAULTS

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("api:\n  timeout: 10\n", encoding="utf-8")
        monkeypatch.setenv("IPSQR_API_TIMEOUT", "5")
        monkeypatch.setenv("IPSQR_STORAGE_PATH", "/tmp/other.json")

        config = load_config(path)

        assert config["api"]["timeout"] == 5.0
        assert config["storage"]["path"] == "/tmp/other.json"

    def test_project_default_yaml(self, default_config_path: Path, default_config: dict):
        config = load_config(default_config_path)

        assert config["api"]["base_url"] == default_config["api"]["base_url"]
        assert config["language"]["default"] == "sr_RS_Latn"
