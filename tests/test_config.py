"""Tests for buildbox.config module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from buildbox.config import (
    BuildConfig,
    CustomCommandData,
    EnvType,
    PullPolicy,
    TaskData,
    Variant,
    get_optional_str,
    parse_json,
)
from buildbox.errors import (
    ConfigParseError,
    ContextExpansionError,
    InvalidEnvTypeError,
    InvalidPullPolicyError,
    InvalidVariantError,
    ValidationError,
)


class TestVariant:
    """Tests for Variant parsing."""

    @pytest.mark.parametrize("literal", ["user", "userdebug", "eng"])
    def test_round_trip(self, literal: str) -> None:
        """Every literal parses and prints back unchanged."""
        assert str(Variant.parse(literal)) == literal

    def test_default_member(self) -> None:
        """userdebug maps to USERDEBUG."""
        assert Variant.parse("userdebug") is Variant.USERDEBUG

    @pytest.mark.parametrize("literal", ["debug", "", "USER", " eng"])
    def test_invalid(self, literal: str) -> None:
        """Anything else is rejected, matching is exact."""
        with pytest.raises(InvalidVariantError):
            Variant.parse(literal)

    def test_error_is_validation_error(self) -> None:
        """Variant errors share the ValidationError base."""
        with pytest.raises(ValidationError) as exc_info:
            Variant.parse("debug")
        assert "debug" in str(exc_info.value)
        assert "userdebug" in str(exc_info.value)


class TestEnvType:
    """Tests for EnvType parsing."""

    @pytest.mark.parametrize("literal", ["aosp", "vendor", "qssi", "kernel", "hlos", "non-hlos"])
    def test_round_trip(self, literal: str) -> None:
        """Every literal parses and prints back unchanged."""
        assert str(EnvType.parse(literal)) == literal

    def test_invalid(self) -> None:
        """Unknown types raise InvalidEnvTypeError."""
        with pytest.raises(InvalidEnvTypeError):
            EnvType.parse("android")


class TestPullPolicy:
    """Tests for PullPolicy parsing."""

    def test_values(self) -> None:
        """Both policies parse."""
        assert PullPolicy.parse("strict") is PullPolicy.STRICT
        assert PullPolicy.parse("tolerant") is PullPolicy.TOLERANT

    def test_invalid(self) -> None:
        """Unknown policies raise InvalidPullPolicyError."""
        with pytest.raises(InvalidPullPolicyError):
            PullPolicy.parse("always")


class TestParseHelpers:
    """Tests for JSON helper functions."""

    def test_parse_json_requires_object(self) -> None:
        """A JSON array is not a config."""
        with pytest.raises(ConfigParseError):
            parse_json("[1, 2]")

    def test_parse_json_malformed(self) -> None:
        """Malformed JSON raises ConfigParseError naming the source."""
        with pytest.raises(ConfigParseError) as exc_info:
            parse_json("{", "configs/x.json")
        assert "configs/x.json" in str(exc_info.value)

    def test_optional_str_sentinel(self) -> None:
        """Empty strings and "NA" read as absent."""
        assert get_optional_str({"a": "NA"}, "a") is None
        assert get_optional_str({"a": ""}, "a") is None
        assert get_optional_str({}, "a") is None
        assert get_optional_str({"a": "x"}, "a") == "x"

    def test_optional_str_first_key_wins(self) -> None:
        """Alternate keys are tried in order."""
        assert get_optional_str({"init_env": "b"}, "initenv", "init_env") == "b"


class TestBuildConfig:
    """Tests for BuildConfig parsing."""

    def test_defaults(self) -> None:
        """Only version is required; the rest is absent."""
        config = BuildConfig.from_str('{"version": "1"}')
        assert config.version == "1"
        assert config.name is None
        assert config.init_env is None
        assert config.product is None
        assert config.arch is None
        assert config.description is None
        assert config.context == ()
        assert config.tasks == ()
        assert config.custom == {}

    def test_exact_values(self) -> None:
        """Values are kept exactly, including trailing whitespace."""
        config = BuildConfig.from_str(
            json.dumps({"version": "2", "name": "test", "initenv": "test-env.sh "})
        )
        assert config.version == "2"
        assert config.name == "test"
        assert config.init_env == "test-env.sh "

    def test_na_means_absent(self) -> None:
        """The legacy "NA" marker reads as absent."""
        config = BuildConfig.from_str('{"version": "1", "name": "NA", "initenv": "NA"}')
        assert config.name is None
        assert config.init_env is None

    def test_missing_version(self) -> None:
        """version is required."""
        with pytest.raises(ConfigParseError) as exc_info:
            BuildConfig.from_str('{"name": "x"}')
        assert "version" in str(exc_info.value)

    def test_numeric_version(self) -> None:
        """A numeric version is read as its string form."""
        assert BuildConfig.from_str('{"version": 3}').version == "3"

    def test_wrong_type(self) -> None:
        """Non-string fields are rejected."""
        with pytest.raises(ConfigParseError):
            BuildConfig.from_str('{"version": "1", "product": ["a"]}')

    def test_tasks_sorted_by_index(self) -> None:
        """Tasks are ordered by index, not file order."""
        config = BuildConfig.from_value(
            {
                "version": "1",
                "tasks": [
                    {"index": "3", "name": "c"},
                    {"index": 1, "name": "a"},
                    {"index": "2", "name": "b"},
                ],
            }
        )
        assert [t.name for t in config.tasks] == ["a", "b", "c"]

    def test_tasks_as_object(self) -> None:
        """tasks may also be a name -> task object."""
        config = BuildConfig.from_value(
            {"version": "1", "tasks": {"x": {"index": "1", "name": "x", "build": "make"}}}
        )
        assert config.task("x") is not None
        assert config.task("y") is None

    def test_custom_commands(self) -> None:
        """Custom commands accept a string or an object with cmd/docker."""
        config = BuildConfig.from_value(
            {
                "version": "1",
                "deploy": "./flash.sh",
                "upload": {"cmd": "./upload.sh", "docker": "uploader:2"},
            }
        )
        assert config.custom["deploy"] == CustomCommandData("deploy", "./flash.sh")
        assert config.custom["upload"].docker_image == "uploader:2"
        assert "setup" not in config.custom

    def test_custom_command_wrong_type(self) -> None:
        """A custom command must be a string or an object."""
        with pytest.raises(ConfigParseError):
            BuildConfig.from_value({"version": "1", "sync": 5})

    def test_from_file_names_path(self, tmp_path: Path) -> None:
        """Errors from a file mention the file."""
        path = tmp_path / "broken.json"
        path.write_text('{"name": "x"}', encoding="utf-8")
        with pytest.raises(ConfigParseError) as exc_info:
            BuildConfig.from_file(path)
        assert "broken.json" in str(exc_info.value)


class TestTaskData:
    """Tests for TaskData parsing and expansion."""

    def test_from_str(self) -> None:
        """All fields are read from their JSON keys."""
        task = TaskData.from_str(
            '{"index": "4", "name": "k", "builddir": "kernel", "build": "make",'
            ' "clean": "make clean", "docker": "gcc:12"}'
        )
        assert task == TaskData(4, "k", "kernel", "make", "make clean", "gcc:12")
        assert task.runs_in_container

    def test_docker_na(self) -> None:
        """A task with docker "NA" runs natively."""
        task = TaskData.from_value({"name": "k", "docker": "NA"})
        assert task.docker_image is None
        assert not task.runs_in_container

    def test_non_numeric_index(self) -> None:
        """index must be an integer."""
        with pytest.raises(ConfigParseError):
            TaskData.from_value({"name": "k", "index": "first"})

    def test_expand_anchors_relative_dir(self, tmp_path: Path) -> None:
        """A relative build dir is resolved against the workspace."""
        task = TaskData(1, "k", "$#[SUB]/kernel", "build.sh $#[V]", "rm -rf out")
        expanded = task.expand({"SUB": "src", "V": "eng"}, tmp_path)
        assert expanded.build_dir == str(tmp_path / "src" / "kernel")
        assert expanded.build_cmd == "build.sh eng"
        assert expanded.clean_cmd == "rm -rf out"

    def test_expand_keeps_absolute_dir(self, tmp_path: Path) -> None:
        """An absolute build dir is left alone."""
        task = TaskData(1, "k", "/opt/src", "make", "")
        assert task.expand({}, tmp_path).build_dir == "/opt/src"

    def test_expand_unknown_token(self, tmp_path: Path) -> None:
        """Unknown tokens fail loudly."""
        task = TaskData(1, "k", "dir", "make $#[MISSING]", "")
        with pytest.raises(ContextExpansionError):
            task.expand({}, tmp_path)
