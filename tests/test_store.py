"""Tests for loading the application configuration file."""

from pathlib import Path

import pytest

from ecs_toolkit.cli.configuration.store import ConfigError, load_config

CONFIG = """\
version: v1
cluster: production
services:
  - name: web
    containers: [web]
    force: true
    max_wait: 20
tasks:
  pre:
    - family: migrate
      containers: [app]
      count: 1
      launch_type: fargate
      network_configuration:
        vpc_configuration:
          assign_public_ip: false
          security_groups: [sg-1]
          subnets: [subnet-1, subnet-2]
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / ".ecs-toolkit.yml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_config_parses_yaml(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, CONFIG))

    assert config.cluster == "production"
    [service] = config.services
    assert service.force_new_deployment is True
    assert service.max_wait_seconds == 1200.0
    [task] = config.tasks.pre
    assert task.launch_type == "fargate"
    assert task.network_configuration.vpc_configuration.subnets == ["subnet-1", "subnet-2"]
    assert config.tasks.post == []


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.yml")


def test_load_config_invalid_yaml(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="parse"):
        load_config(_write(tmp_path, "version: [v1\n"))


def test_load_config_requires_mapping(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="mapping"):
        load_config(_write(tmp_path, "- v1\n"))


def test_load_config_rejects_unknown_keys(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="validate"):
        load_config(_write(tmp_path, CONFIG + "region: us-east-1\n"))
