"""Unit tests for settings loading and the process-wide settings lifecycle."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from selfhelp_pages.config import (
    Settings,
    SettingsError,
    configure,
    get_settings,
    is_configured,
    load_settings,
    reset_settings,
    settings_from_mapping,
)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "selfhelp.yaml"
    path.write_text(dedent(text).strip() + "\n", encoding="utf-8")
    return path


def test_load_settings_reads_yaml_values(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
        api_base_url: https://cms.example.org/cms-api/v1/
        language: de-CH
        preview: "1"
        cache_ttl: 0.5
        output_dir: dist
        log_level: debug
        """,
    )
    settings = load_settings(path, environ={})
    assert settings.api_base_url == "https://cms.example.org/cms-api/v1", (
        "expected the trailing slash stripped"
    )
    assert settings.language == "de-CH", "expected the language from the file"
    assert settings.preview is True, "expected '1' to enable preview"
    assert settings.cache_ttl == 0.5, "expected the configured ttl"
    assert settings.output_dir == Path("dist"), "expected output_dir as a Path"
    assert settings.log_level == "DEBUG", "expected the level upper-cased"
    assert settings.request_timeout == 10.0, "expected defaults for unset keys"


def test_environment_overrides_win(tmp_path: Path) -> None:
    path = _write(tmp_path, "language: de-CH\ncache_ttl: 1\n")
    settings = load_settings(
        path,
        environ={
            "SELFHELP_LANGUAGE": "en-GB",
            "SELFHELP_CACHE_TTL": "2.5",
            "SELFHELP_PREVIEW": "true",
            "UNRELATED": "x",
        },
    )
    assert settings.language == "en-GB", "expected the env language to win"
    assert settings.cache_ttl == 2.5, "expected the env ttl parsed as seconds"
    assert settings.preview is True, "expected the env preview flag"


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    path = _write(tmp_path, "")
    assert load_settings(path, environ={}) == Settings(), "expected default settings"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "absent.yaml", environ={})


def test_non_mapping_raises_type_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "- just\n- a list\n")
    with pytest.raises(TypeError, match="mapping"):
        load_settings(path, environ={})


@pytest.mark.parametrize(
    ("raw", "fragment"),
    [
        ({"cache_ttl": -1}, "must not be negative"),
        ({"cache_ttl": "soon"}, "number of seconds"),
        ({"api_base_url": "  "}, "must not be empty"),
        ({"preview": "maybe"}, "must be a boolean"),
        ({"output_dir": ""}, "non-empty path"),
    ],
)
def test_invalid_values_raise_settings_error(raw: dict[str, object], fragment: str) -> None:
    with pytest.raises(SettingsError, match=fragment):
        settings_from_mapping(raw)


def test_settings_lifecycle() -> None:
    assert not is_configured(), "expected a clean slate"
    assert get_settings() == Settings(), "expected defaults before configure"
    installed = configure(Settings(language="fr-CH"))
    assert get_settings() is installed, "expected the installed record"
    assert is_configured(), "expected configured state"
    reset_settings()
    assert get_settings().language is None, "expected defaults after reset"
