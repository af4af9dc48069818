from pathlib import Path

import pytest
from pydantic import ValidationError

from hmatch.config import ConfigLoadError, ExtractorConfig, default_config, load_config
from hmatch.errors import HMatchError


def test_missing_file_gives_defaults(tmp_path: Path):
    assert load_config(tmp_path / "absent.yaml") == ExtractorConfig()


def test_empty_file_gives_defaults(write_yaml):
    assert load_config(write_yaml("")) == ExtractorConfig()


def test_full_config(write_yaml):
    path = write_yaml("""
        schema_version: 1
        skip_tags: [script, style]
        max_attempts: 5000
        root_selector: "main .content"
    """)
    assert load_config(path) == ExtractorConfig(
        skip_tags=["script", "style"],
        max_attempts=5000,
        root_selector="main .content",
    )


def test_schema_version_is_optional(write_yaml):
    assert load_config(write_yaml("max_attempts: 10\n")).max_attempts == 10


@pytest.mark.parametrize("text, message", [
    ("schema_version: 2\n", "unsupported config schema 2"),
    ("skip_tag: [script]\n", "unknown key"),
    ("max_attempts: many\n", "max_attempts"),
    ("max_attempts: 0\n", "must be positive"),
    ("max_attempts: true\n", "max_attempts"),
    ("skip_tags: script\n", "skip_tags"),
    ("- a\n- b\n", "expected a mapping"),
    ("skip_tags: [unclosed\n", "invalid YAML"),
])
def test_invalid_config(write_yaml, text, message):
    with pytest.raises(ConfigLoadError, match=message):
        load_config(write_yaml(text))


def test_config_errors_are_user_errors(write_yaml):
    with pytest.raises(HMatchError):
        load_config(write_yaml("schema_version: 9\n"))


class TestDefaultConfig:
    """HMATCH_CONFIG lookup."""

    def test_unset(self):
        assert default_config() == ExtractorConfig()

    def test_points_to_file(self, write_yaml, monkeypatch):
        monkeypatch.setenv("HMATCH_CONFIG", str(write_yaml("skip_tags: [nav]\n")))
        assert default_config().skip_tags == ["nav"]

    def test_points_to_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HMATCH_CONFIG", str(tmp_path / "nope.yaml"))
        assert default_config() == ExtractorConfig()


class TestExtractorConfig:
    """The settings model itself."""

    def test_error_names_file_and_key(self, write_yaml):
        path = write_yaml("skip_tag: [script]\n")
        with pytest.raises(ConfigLoadError, match=r"\.skip_tag: unknown key$") as exc:
            load_config(path)
        assert str(exc.value).startswith(str(path))

    def test_constructor_is_strict(self):
        with pytest.raises(ValidationError):
            ExtractorConfig(max_attempts="5")
        with pytest.raises(ValidationError):
            ExtractorConfig(skip_tag=["nav"])
