"""
ecs_discoverer.tier0_core.aws
──────────────────────────────
boto3 client construction and region auto-detection.

Credentials come from the default boto3 chain (env, profile, instance role).
botocore retries are disabled: every call is attempted exactly once and a
failure surfaces straight away as an ApiError.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError
from botocore.utils import InstanceMetadataRegionFetcher

from ecs_discoverer.tier0_core.errors import ConfigurationError

_CLIENT_CONFIG = Config(
    # max_attempts counts retries only; 0 means the initial call alone.
    retries={"max_attempts": 0, "mode": "standard"},
    user_agent_extra="ecs-discoverer",
)


@dataclass
class AwsClients:
    """The two control-plane clients the pipeline talks to."""
    ecs: Any
    ec2: Any


def build_clients(region: str, session: boto3.session.Session | None = None) -> AwsClients:
    """Create ECS and EC2 clients bound to ``region``."""
    session = session or boto3.session.Session(region_name=region)
    return AwsClients(
        ecs=session.client("ecs", region_name=region, config=_CLIENT_CONFIG),
        ec2=session.client("ec2", region_name=region, config=_CLIENT_CONFIG),
    )


def detect_region(timeout: float = 2.0, num_attempts: int = 1) -> str:
    """
    Return the region this EC2 instance lives in, via the instance
    metadata service. Raises ConfigurationError when it cannot be found.
    """
    fetcher = InstanceMetadataRegionFetcher(timeout=timeout, num_attempts=num_attempts)
    try:
        region = fetcher.retrieve_region()
    except BotoCoreError as exc:
        raise ConfigurationError(
            user_message=f"Cannot retrieve AWS region from EC2 metadata service: {exc}",
        ) from exc
    if not region:
        raise ConfigurationError(
            user_message="Cannot retrieve AWS region from EC2 metadata service; pass --region.",
        )
    return region


__all__ = ["AwsClients", "build_clients", "detect_region"]
