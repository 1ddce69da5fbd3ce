"""Tests for loading and saving the switcher configuration."""

from __future__ import annotations

import json
import os

import pytest

from refswitch.config import SwitcherConfiguration, load_configuration, save_configuration
from refswitch.errors import ConfigurationError
from refswitch.switching.state import PackageRestore


def _write(tmp_path, data) -> str:
    path = tmp_path / "switcher.json"
    path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return str(path)


class TestLoadConfiguration:
    def test_loads_fields(self, tmp_path):
        path = _write(tmp_path, {
            "solution": "All.sln",
            "solutionFolder": "External",
            "removeProjects": True,
            "mappings": {"Contoso.Core": ["../core/Contoso.Core.csproj"]},
        })
        config = load_configuration(path)

        assert config.solution_path == "All.sln"
        assert config.solution_folder == "External"
        assert config.remove_projects_on_switch_back is True
        assert config.mappings == {"Contoso.Core": ["../core/Contoso.Core.csproj"]}
        assert len(config.restore_state) == 0
        assert config.case_sensitive_paths is False

    def test_paths_resolve_against_config_directory(self, tmp_path):
        config = load_configuration(_write(tmp_path, {"solution": "sub/All.sln", "mappings": {}}))

        assert config.actual_solution_path == os.path.join(str(tmp_path), "sub", "All.sln")
        assert config.actual_path("..\\core\\Core.csproj") == os.path.join(
            os.path.dirname(str(tmp_path)), "core", "Core.csproj"
        )

    def test_loads_restore_state(self, tmp_path):
        config = load_configuration(_write(tmp_path, {
            "solution": "All.sln",
            "mappings": {},
            "restore": [{"name": "App", "packages": [{"packageName": "P", "packageVersion": "1.0.0"}]}],
        }))

        assert config.restore_state.lookup("App", "P") == PackageRestore("P", "1.0.0")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_configuration(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        with pytest.raises(ConfigurationError, match="could not be read"):
            load_configuration(_write(tmp_path, "{ not json"))

    def test_invalid_mappings(self, tmp_path):
        with pytest.raises(ConfigurationError, match="invalid mappings"):
            load_configuration(_write(tmp_path, {"solution": "All.sln", "mappings": {"P": "x.csproj"}}))

    @pytest.mark.parametrize("restore", [
        {"name": "App"},
        ["App"],
        [{"packages": []}],
        [{"name": "App", "packages": {"packageName": "P"}}],
        [{"name": "App", "packages": [{"packageVersion": "1.0.0"}]}],
        [{"name": "App", "packages": [{"packageName": "P", "include": "P", "metadata": [{"Value": "x"}]}]}],
        [{"name": "App", "packages": [{"packageName": "P", "include": "P", "metadata": {"Key": "x"}}]}],
    ])
    def test_invalid_restore_section(self, tmp_path, restore):
        path = _write(tmp_path, {"solution": "All.sln", "mappings": {}, "restore": restore})

        with pytest.raises(ConfigurationError, match="invalid restore section"):
            load_configuration(path)

    def test_missing_solution(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not name a solution"):
            load_configuration(_write(tmp_path, {"mappings": {}}))


class TestSaveConfiguration:
    def test_restore_written_only_when_present(self, tmp_path):
        path = _write(tmp_path, {"solution": "All.sln", "mappings": {"P": ["p.csproj"]}})
        config = load_configuration(path)

        save_configuration(config)
        assert "restore" not in json.loads(open(path, encoding="utf-8").read())

        config.restore_state.record("App", PackageRestore("P", "1.0.0"))
        save_configuration(config)
        data = json.loads(open(path, encoding="utf-8").read())
        assert data["restore"] == [{"name": "App", "packages": [{"packageName": "P", "packageVersion": "1.0.0"}]}]

    def test_unknown_keys_preserved(self, tmp_path):
        path = _write(tmp_path, {"solution": "All.sln", "mappings": {}, "$schema": "switcher.schema.json"})
        save_configuration(load_configuration(path))

        assert json.loads(open(path, encoding="utf-8").read())["$schema"] == "switcher.schema.json"

    def test_to_json_key_order(self, tmp_path):
        config = SwitcherConfiguration(
            path=str(tmp_path / "switcher.json"), solution_path="All.sln",
            solution_folder="Ext", mappings={"P": ["p.csproj"]},
        )
        assert list(config.to_json()) == ["solution", "solutionFolder", "removeProjects", "mappings"]
