"""Tests for toolspec.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from toolspec.config import ConfigError, ToolSpecConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path, environ={})

    assert isinstance(config, ToolSpecConfig)
    assert config.root == tmp_path.resolve()
    assert config.github.api_base == "https://api.github.com"
    assert config.github.token is None
    assert config.github.timeout == pytest.approx(10.0)
    assert config.export_format is None
    assert config.export_options("galaxy") == {}
    assert config.export_options("codemeta") == {}


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".toolspec.yml"
    config_file.write_text(
        """
github:
  api_base: "https://github.example.org/api/v3/"
  token: "file-token"
  timeout: 30
export:
  format: galaxy
galaxy:
  command: "python /src/run.py"
  container: "ghcr.io/lab/tool:latest"
  container_version: "v1.2.0"
  profile: "23.1"
cwl:
  version: v1.1
  base_command: run
doap:
  format: rdfxml
  maintainer: "Jane Roe"
""",
        encoding="utf-8",
    )

    config = load_config(config_file, environ={})

    assert config.github.api_base == "https://github.example.org/api/v3"
    assert config.github.token == "file-token"
    assert config.github.timeout == pytest.approx(30.0)
    assert config.export_format == "galaxy"
    assert config.export_options("galaxy") == {
        "command": "python /src/run.py",
        "container": "ghcr.io/lab/tool:latest",
        "container_version": "v1.2.0",
        "profile": "23.1",
    }
    assert config.export_options("cwl") == {"cwl_version": "v1.1", "base_command": "run"}
    assert config.export_options("doap") == {"format": "rdfxml", "maintainer": "Jane Roe"}


def test_environment_overrides_file(tmp_path: Path) -> None:
    (tmp_path / ".toolspec.yml").write_text("github:\n  token: file-token\n", encoding="utf-8")

    config = load_config(
        tmp_path,
        environ={"TOOLSPEC_GITHUB_API_BASE": "http://localhost:8080/", "GITHUB_TOKEN": " env-token "},
    )

    assert config.github.api_base == "http://localhost:8080"
    assert config.github.token == "env-token"


def test_specific_token_wins_over_generic(tmp_path: Path) -> None:
    config = load_config(
        tmp_path, environ={"TOOLSPEC_GITHUB_TOKEN": "specific", "GITHUB_TOKEN": "generic"}
    )

    assert config.github.token == "specific"


def test_invalid_timeout_keeps_default(tmp_path: Path) -> None:
    (tmp_path / ".toolspec.yml").write_text("github:\n  timeout: soon\n", encoding="utf-8")

    assert load_config(tmp_path, environ={}).github.timeout == pytest.approx(10.0)


def test_empty_file_is_accepted(tmp_path: Path) -> None:
    (tmp_path / ".toolspec.yml").write_text("   \n", encoding="utf-8")

    assert load_config(tmp_path, environ={}).export_format is None


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    (tmp_path / ".toolspec.yml").write_text("github: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse .toolspec.yml"):
        load_config(tmp_path, environ={})


def test_non_mapping_root_raises(tmp_path: Path) -> None:
    (tmp_path / ".toolspec.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config(tmp_path, environ={})
