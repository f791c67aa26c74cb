from __future__ import annotations

import os
from pathlib import Path

import pytest

from smelt.utils import (
    ensure_directory,
    env_bool,
    env_path,
    expand_env,
    load_yaml_file,
    parse_env_bool,
    with_trailing_separator,
)


def test_ensure_directory_creates_parents(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b"
    ensure_directory(target)
    ensure_directory(target)
    assert target.is_dir()


def test_with_trailing_separator_appends_once() -> None:
    assert with_trailing_separator(Path("/tmp/stage")) == f"/tmp/stage{os.sep}"
    assert with_trailing_separator(Path("/")) == "/"


def test_expand_env_walks_nested_values(monkeypatch) -> None:
    monkeypatch.setenv("SMELT_TEST_ROOT", "/vault")
    data = {"source_dir": "$SMELT_TEST_ROOT/notes", "mirror": {"extra_args": ["${SMELT_TEST_ROOT}"]}, "workers": 2}

    assert expand_env(data) == {
        "source_dir": "/vault/notes",
        "mirror": {"extra_args": ["/vault"]},
        "workers": 2,
    }


def test_load_yaml_file_empty_document(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_yaml_file(path) == {}


def test_load_yaml_file_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_yaml_file(path)


class TestParseEnvBool:
    @pytest.mark.parametrize("value", ["true", "True", "TRUE", "1", "yes", "YES", "on", "ON"])
    def test_parses_truthy_values(self, value: str) -> None:
        assert parse_env_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "False", "FALSE", "0", "no", "NO", "off", "OFF"])
    def test_parses_falsy_values(self, value: str) -> None:
        assert parse_env_bool(value) is False

    def test_returns_none_for_none(self) -> None:
        assert parse_env_bool(None) is None

    def test_returns_none_for_unrecognized(self) -> None:
        assert parse_env_bool("maybe") is None
        assert parse_env_bool("") is None

    def test_strips_whitespace(self) -> None:
        assert parse_env_bool("  true  ") is True


class TestEnvHelpers:
    def test_env_bool_reads_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("SMELT_TEST_BOOL", "on")
        assert env_bool("SMELT_TEST_BOOL") is True

    def test_env_bool_unset(self, monkeypatch) -> None:
        monkeypatch.delenv("SMELT_TEST_BOOL", raising=False)
        assert env_bool("SMELT_TEST_BOOL") is None

    def test_env_path_expands_user(self, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("SMELT_TEST_PATH", " ~/smelt.yaml ")
        assert env_path("SMELT_TEST_PATH") == tmp_path / "smelt.yaml"

    def test_env_path_blank(self, monkeypatch) -> None:
        monkeypatch.setenv("SMELT_TEST_PATH", "   ")
        assert env_path("SMELT_TEST_PATH") is None
