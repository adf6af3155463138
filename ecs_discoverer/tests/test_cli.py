"""Tests for the ecs-discoverer command surface."""
from __future__ import annotations

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from ecs_discoverer import __version__
from ecs_discoverer.cli import app
from ecs_discoverer.tier0_core.errors import ApiError, EmptyResultError

runner = CliRunner()


@pytest.fixture
def mock_discover():
    with patch("ecs_discoverer.cli.discover_peers") as mock:
        mock.return_value = ["10.0.0.2", "10.0.0.3"]
        yield mock


def test_prints_join_line(mock_discover):
    result = runner.invoke(app, ["-s", "consul"])

    assert result.exit_code == 0
    assert result.stdout.strip().splitlines()[-1] == "10.0.0.2,10.0.0.3"
    mock_discover.assert_called_once()
    call = mock_discover.call_args
    assert call.args == ("consul",)
    assert call.kwargs["cluster"] is None
    assert call.kwargs["region"] is None
    assert call.kwargs["debug"] is False
    assert call.kwargs["dedupe"] is None


def test_remote_cluster_and_flags(mock_discover):
    result = runner.invoke(
        app, ["--service", "consul", "-c", "prod", "-r", "eu-west-1", "-d", "--dedupe"]
    )

    assert result.exit_code == 0
    kwargs = mock_discover.call_args.kwargs
    assert kwargs["cluster"] == "prod"
    assert kwargs["region"] == "eu-west-1"
    assert kwargs["debug"] is True
    assert kwargs["dedupe"] is True


def test_cluster_without_region_is_usage_error(mock_discover):
    result = runner.invoke(app, ["-s", "consul", "-c", "prod"])

    assert result.exit_code == 2
    assert "--region" in result.output
    mock_discover.assert_not_called()


def test_region_without_cluster_is_usage_error(mock_discover):
    result = runner.invoke(app, ["-s", "consul", "-r", "eu-west-1"])

    assert result.exit_code == 2
    mock_discover.assert_not_called()


def test_empty_cluster_is_usage_error(mock_discover):
    result = runner.invoke(app, ["-s", "consul", "-c", ""])

    assert result.exit_code == 2
    assert "--cluster" in result.output
    mock_discover.assert_not_called()


def test_empty_cluster_with_region_is_usage_error(mock_discover):
    result = runner.invoke(app, ["-s", "consul", "-c", "", "-r", "eu-west-1"])

    assert result.exit_code == 2
    mock_discover.assert_not_called()


def test_blank_region_is_usage_error(mock_discover):
    result = runner.invoke(app, ["-s", "consul", "-c", "prod", "-r", "  "])

    assert result.exit_code == 2
    assert "--region" in result.output
    mock_discover.assert_not_called()


def test_service_is_required(mock_discover):
    result = runner.invoke(app, [])

    assert result.exit_code == 2
    mock_discover.assert_not_called()


def test_stage_failure_exits_non_zero_without_output(mock_discover):
    mock_discover.side_effect = EmptyResultError(
        "filter_tasks",
        "no_running_instances",
        "No running instances: no ECS tasks found in RUNNING state on other hosts.",
    )

    result = runner.invoke(app, ["-s", "consul"])

    assert result.exit_code == 1
    assert "No running instances" in result.output
    assert "10.0.0." not in result.output


def test_api_failure_exits_non_zero(mock_discover):
    mock_discover.side_effect = ApiError("Cannot retrieve ECS task list: AccessDeniedException")

    result = runner.invoke(app, ["-s", "consul"])

    assert result.exit_code == 1
    assert "AccessDeniedException" in result.output


def test_version(mock_discover):
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
    mock_discover.assert_not_called()
