"""Tests for configuration and review policy loading."""

import pytest

from reviewthis_core.config import (
    ReviewConfig,
    build_config,
    load_config,
    load_policy,
    parse_modelfile,
    validate_config,
)
from reviewthis_core.prompt import DEFAULT_POLICY


def test_defaults_applied_when_no_config_file(tmp_path, monkeypatch):
    monkeypatch.delenv("OLLAMA_HOST", raising=False)
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["mode"] == "working"
    assert config["branch"] == "develop"
    assert config["model"] == "codellama"
    assert config["host"] == "http://localhost:11434"
    assert config["report_path"] == "review_results.json"
    assert config["modelfile"] is None
    assert config["exclude"] == []


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".review-this.yml"
    cfg.write_text("model: llama3.2\ntemperature: 0.7\n")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "llama3.2"
    assert config["temperature"] == 0.7


def test_exclude_patterns_loaded(tmp_path):
    cfg = tmp_path / ".review-this.yml"
    cfg.write_text("exclude:\n  - migrations/\n  - '*.min.js'\n")
    config = load_config(config_path=str(cfg))
    assert "migrations/" in config["exclude"]
    assert "*.min.js" in config["exclude"]


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".review-this.yml"
    cfg.write_text("model: llama3.2\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": "codellama"})
    assert config["model"] == "codellama"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".review-this.yml"
    cfg.write_text("model: llama3.2\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": None})
    assert config["model"] == "llama3.2"


def test_ollama_host_env_var(tmp_path, monkeypatch):
    monkeypatch.setenv("OLLAMA_HOST", "http://gpu-box:11434")
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["host"] == "http://gpu-box:11434"


def test_cli_host_beats_env_var(tmp_path, monkeypatch):
    monkeypatch.setenv("OLLAMA_HOST", "http://gpu-box:11434")
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"), cli_overrides={"host": "http://other:1"})
    assert config["host"] == "http://other:1"


def test_branch_ref_inline_in_mode(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"), cli_overrides={"mode": "branch:main"})
    assert config["mode"] == "branch"
    assert config["branch"] == "main"


def test_exclude_list_is_not_shared_reference(tmp_path):
    """Mutating one config's exclude list must not affect another."""
    config_a = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_b = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_a["exclude"].append("migrations/")
    assert config_b["exclude"] == []


# ---------------------------------------------------------------------------
# validate_config / build_config
# ---------------------------------------------------------------------------


class TestValidateConfig:
    def _config(self, tmp_path, **overrides):
        return load_config(config_path=str(tmp_path / "nonexistent.yml"), cli_overrides=overrides)

    def test_unknown_mode_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid mode"):
            validate_config(self._config(tmp_path, mode="staged"))

    def test_temperature_above_range_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="between 0 and 2"):
            validate_config(self._config(tmp_path, temperature=2.5))

    def test_negative_temperature_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            validate_config(self._config(tmp_path, temperature=-0.1))

    def test_non_numeric_temperature_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid temperature"):
            validate_config(self._config(tmp_path, temperature="hot"))

    def test_numeric_string_temperature_coerced(self, tmp_path):
        config = self._config(tmp_path, temperature="1.5")
        validate_config(config)
        assert config["temperature"] == 1.5

    def test_boundaries_accepted(self, tmp_path):
        for value in (0, 2):
            validate_config(self._config(tmp_path, temperature=value))


class TestBuildConfig:
    def test_returns_frozen_config(self, tmp_path):
        config = build_config(load_config(config_path=str(tmp_path / "nonexistent.yml")))
        assert isinstance(config, ReviewConfig)
        assert config.policy == DEFAULT_POLICY
        with pytest.raises(AttributeError):
            config.model = "other"

    def test_exclude_frozen_as_tuple(self, tmp_path):
        cfg = tmp_path / ".review-this.yml"
        cfg.write_text("exclude:\n  - vendor/\n")
        config = build_config(load_config(config_path=str(cfg)))
        assert config.exclude == ("vendor/",)

    def test_trailing_slash_stripped_from_host(self, tmp_path):
        config = build_config(
            load_config(config_path=str(tmp_path / "nonexistent.yml"), cli_overrides={"host": "http://h:1/"})
        )
        assert config.host == "http://h:1"

    def test_custom_policy_loaded(self, tmp_path):
        modelfile = tmp_path / "Modelfile"
        modelfile.write_text('FROM codellama\nSYSTEM """\nOnly report security issues.\n"""\n')
        config = build_config(
            load_config(config_path=str(tmp_path / "nonexistent.yml"), cli_overrides={"modelfile": str(modelfile)})
        )
        assert config.policy == "Only report security issues."


# ---------------------------------------------------------------------------
# Modelfile policy extraction
# ---------------------------------------------------------------------------


class TestParseModelfile:
    def test_multiline_block(self):
        text = 'FROM codellama\nPARAMETER temperature 0.1\nSYSTEM """\nLine one.\nLine two.\n"""\n'
        assert parse_modelfile(text) == "Line one.\nLine two."

    def test_block_opening_on_same_line(self):
        text = 'SYSTEM """You are strict.\nFlag everything.\n"""'
        assert parse_modelfile(text) == "You are strict.\nFlag everything."

    def test_single_line_block(self):
        assert parse_modelfile('SYSTEM """Be brief."""') == "Be brief."

    def test_unquoted_single_line(self):
        assert parse_modelfile("FROM llama3\nSYSTEM Review like a hawk.\n") == "Review like a hawk."

    def test_missing_system_raises(self):
        with pytest.raises(ValueError, match="No SYSTEM"):
            parse_modelfile("FROM codellama\nPARAMETER temperature 0.1\n")

    def test_empty_block_raises(self):
        with pytest.raises(ValueError):
            parse_modelfile('SYSTEM """\n\n"""')

    def test_system_must_start_the_line(self):
        with pytest.raises(ValueError):
            parse_modelfile('# SYSTEM """commented out"""')


class TestLoadPolicy:
    def test_default_when_no_modelfile(self):
        assert load_policy(None) == DEFAULT_POLICY

    def test_missing_modelfile_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_policy(str(tmp_path / "does-not-exist"))

    def test_modelfile_without_instructions_raises(self, tmp_path):
        modelfile = tmp_path / "Modelfile"
        modelfile.write_text("FROM codellama\n")
        with pytest.raises(ValueError, match="Modelfile"):
            load_policy(str(modelfile))
