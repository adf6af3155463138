"""
ecs_discoverer test configuration.

All tests run against stubbed AWS clients and a mocked agent endpoint —
no network, no credentials, no instance metadata service required.
"""
from __future__ import annotations

import logging
import os

import pytest

# ── Keep boto3 away from real AWS ──────────────────────────────────────────
# These must be set before any client is created.

os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_EC2_METADATA_DISABLED"] = "true"
os.environ.setdefault("ECS_DISCOVERER_LOG_LEVEL", "WARNING")

REGION = "us-east-1"
CLUSTER = "consul-cluster"
SERVICE = "nginx"
H1 = "arn:aws:ecs:us-east-1:123456789012:container-instance/consul-cluster/h1"
H2 = "arn:aws:ecs:us-east-1:123456789012:container-instance/consul-cluster/h2"
H3 = "arn:aws:ecs:us-east-1:123456789012:container-instance/consul-cluster/h3"


def task_arn(n: int) -> str:
    return f"arn:aws:ecs:us-east-1:123456789012:task/{CLUSTER}/{n:032x}"


def task(n: int, container_instance_arn: str, status: str = "RUNNING") -> dict:
    return {
        "taskArn": task_arn(n),
        "lastStatus": status,
        "containerInstanceArn": container_instance_arn,
    }


def container_instance(arn: str, ec2_id: str, status: str = "ACTIVE") -> dict:
    return {"containerInstanceArn": arn, "ec2InstanceId": ec2_id, "status": status}


def instance(instance_id: str, ip: str, state: str = "running") -> dict:
    codes = {"pending": 0, "running": 16, "stopping": 64, "stopped": 80}
    return {
        "InstanceId": instance_id,
        "State": {"Name": state, "Code": codes.get(state, 48)},
        "PrivateIpAddress": ip,
    }


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_config():
    """Each test reads a fresh config, so monkeypatched env vars apply."""
    from ecs_discoverer.tier0_core.config import _reset_config

    _reset_config()
    yield
    _reset_config()


@pytest.fixture
def ecs_client():
    import boto3
    return boto3.client("ecs", region_name=REGION)


@pytest.fixture
def ec2_client():
    import boto3
    return boto3.client("ec2", region_name=REGION)


@pytest.fixture
def ecs_stub(ecs_client):
    from botocore.stub import Stubber

    with Stubber(ecs_client) as stubber:
        yield stubber


@pytest.fixture
def ec2_stub(ec2_client):
    from botocore.stub import Stubber

    with Stubber(ec2_client) as stubber:
        yield stubber


@pytest.fixture
def log_capture():
    """Collects every event sent to ``stage_log``."""
    from structlog.testing import LogCapture
    return LogCapture()


@pytest.fixture
def stage_log(log_capture):
    """A debug-level structlog logger writing only into ``log_capture``."""
    import structlog

    return structlog.wrap_logger(
        structlog.testing.CapturingLogger(),
        processors=[log_capture],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    )


@pytest.fixture
def agent_client():
    """httpx client answering like the ECS agent running on host H1."""
    import httpx

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"Cluster": CLUSTER, "ContainerInstanceArn": H1, "Version": "Amazon ECS Agent - v1.14.1"},
        )

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        yield client


@pytest.fixture
def process_logging():
    """Lets a test configure real logging; detaches its stdout handler afterwards."""
    import structlog

    from ecs_discoverer.tier0_core import logging as discoverer_logging

    yield
    if discoverer_logging._handler is not None:
        logging.getLogger().removeHandler(discoverer_logging._handler)
        discoverer_logging._handler = None
    discoverer_logging._configured = False
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
