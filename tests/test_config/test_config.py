"""Tests for configuration loading."""

from pickem.config import DEFAULT_CONFIG, load_config


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_gives_defaults(self, tmp_path):
        """Test fallback to built-in defaults."""
        config = load_config(tmp_path / "missing.yaml")
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_partial_file_merged(self, tmp_path):
        """Test that nested keys override without dropping siblings."""
        path = tmp_path / "pickem.yaml"
        path.write_text("api:\n  rate_limit:\n    max_retries: 7\nteam:\n  abbrev: TOR\n")

        config = load_config(path)

        assert config["api"]["rate_limit"]["max_retries"] == 7
        assert config["api"]["rate_limit"]["request_delay"] == 0.5
        assert config["team"] == {"abbrev": "TOR", "team_id": 17}

    def test_empty_file(self, tmp_path):
        """Test that an empty file behaves like no overrides."""
        path = tmp_path / "pickem.yaml"
        path.write_text("")
        assert load_config(path) == DEFAULT_CONFIG

    def test_returned_config_is_a_copy(self, tmp_path):
        """Test that callers cannot mutate the defaults."""
        config = load_config(tmp_path / "missing.yaml")
        config["team"]["abbrev"] = "BOS"
        assert DEFAULT_CONFIG["team"]["abbrev"] == "DET"
