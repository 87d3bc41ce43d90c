"""
配置加载测试
"""

import json

import pytest

from swiftloc.utils.config import ToolConfig, load_config
from swiftloc.utils.logger import ConfigurationError


class TestToolConfig:

    def test_defaults(self):
        config = ToolConfig()

        assert config.source_language == "en"
        assert config.target_language == "fr"
        assert config.source_extensions == [".swift"]
        assert config.ollama_host == "http://localhost:11434"
        assert config.ollama_model == "llama3.2"
        assert config.quality_batch_size == 0

    def test_invalid_values_are_clamped(self):
        config = ToolConfig(ollama_timeout=0, quality_batch_size=-3, source_extensions=[])

        assert config.ollama_timeout == 1
        assert config.quality_batch_size == 0
        assert config.source_extensions == [".swift"]

    def test_trailing_slash_stripped_from_host(self):
        assert ToolConfig(ollama_host="http://gpu-box:11434/").ollama_host == "http://gpu-box:11434"


class TestLoadConfig:

    def test_no_file_gives_defaults(self):
        assert load_config() == ToolConfig()

    def test_reads_working_directory_file(self, tmp_path):
        (tmp_path / "swiftloc.json").write_text(
            json.dumps({"target_language": "ja", "ollama_model": "qwen2.5"}), encoding="utf-8"
        )

        config = load_config()

        assert config.target_language == "ja"
        assert config.ollama_model == "qwen2.5"

    def test_explicit_path_wins_over_env(self, tmp_path, monkeypatch):
        env_file = tmp_path / "env.json"
        env_file.write_text('{"target_language": "de"}', encoding="utf-8")
        explicit = tmp_path / "explicit.json"
        explicit.write_text('{"target_language": "es"}', encoding="utf-8")
        monkeypatch.setenv("SWIFTLOC_CONFIG", str(env_file))

        assert load_config(explicit).target_language == "es"
        assert load_config().target_language == "de"

    def test_missing_explicit_path_raises(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "nope.json")

    def test_missing_env_path_raises(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SWIFTLOC_CONFIG", str(tmp_path / "nope.json"))

        with pytest.raises(ConfigurationError):
            load_config()

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text('{"target_language": "it", "theme": "dark"}', encoding="utf-8")

        assert load_config(path).target_language == "it"

    def test_malformed_json_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text("{not json", encoding="utf-8")

        assert load_config(path) == ToolConfig()

    def test_env_host_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "c.json"
        path.write_text('{"ollama_host": "http://file:11434"}', encoding="utf-8")
        monkeypatch.setenv("OLLAMA_HOST", "http://env:11434/")

        assert load_config(path).ollama_host == "http://env:11434"

    def test_wrong_value_type_raises(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text('{"ollama_timeout": "soon"}', encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(path)
