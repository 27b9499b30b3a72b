"""Tests for loading the file mapping configuration."""

import json

import pytest

from redirector.config import ConfigError, load_config, load_file_map, parse_file_map


def _write_json(tmp_path, data, name="config.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


class TestLoadFileMap:
    """Tests for reading config files."""

    def test_json_config(self, tmp_path):
        """The files section of a JSON config becomes the mapping."""
        path = _write_json(tmp_path, {"files": {"tool": "acme/tool", "cli": "acme/cli"}})
        assert load_file_map(path) == {"tool": "acme/tool", "cli": "acme/cli"}

    def test_yaml_config(self, tmp_path):
        """YAML files are accepted by extension."""
        path = tmp_path / "config.yaml"
        path.write_text("files:\n  tool: acme/tool\n", encoding="utf-8")
        assert load_file_map(str(path)) == {"tool": "acme/tool"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_file_map(str(tmp_path / "nope.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(str(path))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("files: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(str(path))

    def test_top_level_must_be_mapping(self, tmp_path):
        path = _write_json(tmp_path, ["tool"])
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)


class TestParseFileMap:
    """Tests for validating the files section."""

    def test_missing_files_section(self):
        with pytest.raises(ConfigError, match="'files'"):
            parse_file_map({"other": {}})

    def test_leading_slash_is_stripped(self):
        assert parse_file_map({"files": {"/tool": "acme/tool"}}) == {"tool": "acme/tool"}

    def test_empty_files_section(self):
        assert parse_file_map({"files": {}}) == {}

    @pytest.mark.parametrize(
        "files",
        [
            {"tool": ""},
            {"tool": 5},
            {"tool": None},
            {"": "acme/tool"},
            {"/": "acme/tool"},
        ],
    )
    def test_invalid_entries(self, files):
        with pytest.raises(ConfigError):
            parse_file_map({"files": files})

    def test_duplicate_after_normalization(self):
        with pytest.raises(ConfigError, match="Duplicate"):
            parse_file_map({"files": {"tool": "acme/a", "/tool": "acme/b"}})
