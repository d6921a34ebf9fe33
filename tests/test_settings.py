"""
Unit Tests for dbgraph/config/settings.py
"""

import pytest

from dbgraph.config.settings import AnalysisSettings


class TestAnalysisSettings:
    """Tests for defaults, environment and YAML loading."""

    def test_defaults(self):
        settings = AnalysisSettings()
        assert settings.god_object_threshold == 15
        assert settings.island_size_cutoff == 3
        assert settings.cascade_row_threshold == 1000
        assert settings.view_coupling_min_depth == 2

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DBGRAPH_GOD_OBJECT_THRESHOLD", "20")
        monkeypatch.setenv("DBGRAPH_VIEW_COUPLING_MIN_DEPTH", "3")
        monkeypatch.delenv("DBGRAPH_ISLAND_SIZE_CUTOFF", raising=False)
        settings = AnalysisSettings.from_env()
        assert settings.god_object_threshold == 20
        assert settings.view_coupling_min_depth == 3
        assert settings.island_size_cutoff == 3

    def test_from_env_invalid(self, monkeypatch):
        monkeypatch.setenv("DBGRAPH_CASCADE_ROW_THRESHOLD", "lots")
        with pytest.raises(ValueError):
            AnalysisSettings.from_env()

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("god_object_threshold: 8\nisland_size_cutoff: 2\n")
        settings = AnalysisSettings.from_yaml(str(path))
        assert settings.god_object_threshold == 8
        assert settings.island_size_cutoff == 2
        assert settings.cascade_row_threshold == 1000

    def test_from_yaml_empty(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert AnalysisSettings.from_yaml(str(path)) == AnalysisSettings()

    def test_from_yaml_unknown_key(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("threshold: 3\n")
        with pytest.raises(ValueError):
            AnalysisSettings.from_yaml(str(path))

    def test_from_yaml_null_value(self, tmp_path):
        """A key left blank in YAML is rejected with its name."""
        path = tmp_path / "settings.yaml"
        path.write_text("god_object_threshold:\n")
        with pytest.raises(ValueError, match="god_object_threshold must be an integer"):
            AnalysisSettings.from_yaml(str(path))

    def test_from_yaml_non_numeric(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("island_size_cutoff: few\n")
        with pytest.raises(ValueError, match="island_size_cutoff"):
            AnalysisSettings.from_yaml(str(path))

    def test_from_yaml_not_mapping(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            AnalysisSettings.from_yaml(str(path))

    def test_from_yaml_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AnalysisSettings.from_yaml(str(tmp_path / "nope.yaml"))

    def test_to_dict(self):
        assert AnalysisSettings().to_dict()["god_object_threshold"] == 15
