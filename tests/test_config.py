import pytest
from pathlib import Path

from dirmatrix.config import loader
from dirmatrix.config.loader import load_and_merge_configs, resolve_config_values
from dirmatrix.config.settings import ChangeBackend, MatrixConfig
from dirmatrix.exceptions import ConfigError


class TestMatrixConfig:

    def test_defaults(self):
        config = MatrixConfig()
        assert config.root_path is None
        assert config.exclude == []
        assert config.change_backend == ChangeBackend.API
        assert not config.uses_api_backend

    def test_values_from_toml_strings_are_coerced(self):
        config = MatrixConfig(root_path="packages", change_backend="git", exclude=" a, b ,,a ", output_file="m.json")
        assert config.root_path == Path("packages")
        assert config.change_backend == ChangeBackend.GIT
        assert config.exclude == ["a", "b"]
        assert config.output_file == Path("m.json")

    def test_repeated_exclude_options_are_flattened(self):
        assert MatrixConfig(exclude=["a,b", "c"]).exclude == ["a", "b", "c"]

    def test_blank_filter_and_metadata_mean_unset(self):
        config = MatrixConfig(filter_pattern="  ", metadata_file="")
        assert config.filter_pattern is None
        assert config.metadata_file is None

    @pytest.mark.parametrize("raw,expected", [
        ("false", False), ("False", False), ("0", False), ("", False), ("nonsense", False),
        ("true", True), (" yes ", True), ("1", True), (True, True), (0, False),
    ])
    def test_flag_strings_are_coerced(self, raw, expected):
        config = MatrixConfig(include_hidden=raw, changed_only=raw)
        assert config.include_hidden is expected
        assert config.changed_only is expected

    def test_string_false_flag_from_config_file(self, tmp_path):
        (tmp_path / ".dirmatrix.toml").write_text('include_hidden = "false"\n')
        values = resolve_config_values(load_and_merge_configs(tmp_path), None)
        assert MatrixConfig(**values).include_hidden is False

    def test_unknown_backend_falls_back_to_api(self):
        assert MatrixConfig(change_backend="svn").change_backend == ChangeBackend.API

    def test_api_backend_flag(self):
        assert MatrixConfig(changed_only=True).uses_api_backend
        assert not MatrixConfig(changed_only=True, change_backend=ChangeBackend.GIT).uses_api_backend


class TestLoader:

    def test_project_file_preferred_in_order(self, tmp_path):
        (tmp_path / ".dirmatrix.toml").write_text('path = "first"\n')
        (tmp_path / "pyproject.toml").write_text('[tool.dirmatrix]\npath = "second"\n')
        assert load_and_merge_configs(tmp_path)["path"] == "first"

    def test_pyproject_tool_table(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n\n[tool.dirmatrix]\nchanged_only = true\n')
        assert load_and_merge_configs(tmp_path) == {"changed_only": True}

    def test_pyproject_without_tool_table_is_skipped(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        assert load_and_merge_configs(tmp_path) == {}

    def test_user_config_is_overridden_by_project(self, tmp_path, monkeypatch):
        user_file = tmp_path / "user" / "config.toml"
        user_file.parent.mkdir()
        user_file.write_text('include_hidden = true\npath = "user"\n[profiles.u]\nfilter = "^u"\n')
        monkeypatch.setattr(loader, "USER_CONFIG_FILE", user_file)
        project = tmp_path / "project"
        project.mkdir()
        (project / "dirmatrix.toml").write_text('path = "project"\n[profiles.p]\nfilter = "^p"\n')

        merged = load_and_merge_configs(project)

        assert merged["path"] == "project"
        assert merged["include_hidden"] is True
        assert set(merged["profiles"]) == {"u", "p"}

    def test_broken_toml_is_a_config_error(self, tmp_path):
        (tmp_path / ".dirmatrix.toml").write_text("path = [unclosed\n")
        with pytest.raises(ConfigError):
            load_and_merge_configs(tmp_path)

    def test_resolve_maps_keys_and_applies_profile(self):
        raw = {"path": "pkgs", "filter": "^a", "profiles": {"strict": {"filter": "^b", "metadata_file": "m.yml"}}}
        values = resolve_config_values(raw, "strict")
        assert values == {"root_path": "pkgs", "filter_pattern": "^b", "metadata_file": "m.yml"}

    def test_resolve_unknown_profile(self):
        with pytest.raises(ConfigError):
            resolve_config_values({}, "missing")
