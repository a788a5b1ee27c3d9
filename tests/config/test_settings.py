"""Tests for FieldwiseSettings — unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from fieldwise.config.settings import FieldwiseSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FIELDWISE_CONFIG", raising=False)
    monkeypatch.delenv("FIELDWISE_ENGINE__MAX_DEPTH", raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = FieldwiseSettings.from_cli(project_root=tmp_path)
        assert settings.project_root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.engine.max_depth == 128
        assert settings.stream.chunk_size == 16
        assert settings.plugins.enabled is True

    def test_frozen(self, tmp_path: Path) -> None:
        settings = FieldwiseSettings.from_cli(project_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "fieldwise.toml").write_text(
            "[engine]\nmax_depth = 32\n[stream]\nchunk_size = 4\n"
        )
        settings = FieldwiseSettings.from_cli(project_root=tmp_path)
        assert settings.engine.max_depth == 32
        assert settings.engine.strict_strings is False
        assert settings.stream.chunk_size == 4

    def test_discovered_root(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "fieldwise.toml").write_text("[plugins]\nenabled = false\n")
        child = tmp_path / "data" / "raw"
        child.mkdir(parents=True)
        monkeypatch.chdir(child)
        settings = FieldwiseSettings.from_cli()
        assert settings.project_root == tmp_path.resolve()
        assert settings.plugins.enabled is False

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('[plugins]\ndisabled = ["noisy"]\n')
        settings = FieldwiseSettings.from_cli(config_path=str(custom), project_root=tmp_path)
        assert settings.plugins.disabled == ["noisy"]
        assert settings.config_path == custom

    def test_invalid_toml_raises_click_exception(self, tmp_path: Path) -> None:
        (tmp_path / "fieldwise.toml").write_text("[engine\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            FieldwiseSettings.from_cli(project_root=tmp_path)

    def test_out_of_range_value_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "fieldwise.toml").write_text("[stream]\nchunk_size = 0\n")
        with pytest.raises(ValueError):
            FieldwiseSettings.from_cli(project_root=tmp_path)


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "fieldwise.toml").write_text("[engine]\nmax_depth = 32\n")
        monkeypatch.setenv("FIELDWISE_ENGINE__MAX_DEPTH", "64")
        settings = FieldwiseSettings.from_cli(project_root=tmp_path)
        assert settings.engine.max_depth == 64

    def test_cli_flags_override(self, tmp_path: Path) -> None:
        settings = FieldwiseSettings.from_cli(
            project_root=tmp_path, json_output=True, quiet=True, verbose=True
        )
        assert settings.json_output is True
        assert settings.quiet is True
        assert settings.verbose is True

    def test_cli_flags_override_toml(self, tmp_path: Path) -> None:
        (tmp_path / "fieldwise.toml").write_text("log_json = true\n")
        settings = FieldwiseSettings.from_cli(project_root=tmp_path, log_json=False)
        assert settings.log_json is False
