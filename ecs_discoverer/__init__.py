"""
ecs_discoverer
──────────────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
__version__ = "0.1.0"

from ecs_discoverer.tier0_core.logging import get_logger
from ecs_discoverer.tier0_core.errors import (
    DiscovererError,
    ApiError,
    NotFoundError,
    InconsistentError,
    EmptyResultError,
    AgentMetadataError,
    ConfigurationError,
    format_aws_error,
)
from ecs_discoverer.tier0_core.config import get_config, DiscovererConfig
from ecs_discoverer.tier0_core.metadata import AgentMetadata, fetch_agent_metadata

from ecs_discoverer.tier1_runtime.context import NO_SELF_HOST, ResolutionRequest

from ecs_discoverer.tier3_platform.discovery import (
    PeerResolver,
    discover_peers,
    format_join_line,
)

__all__ = [
    # logging
    "get_logger",
    # errors
    "DiscovererError", "ApiError", "NotFoundError", "InconsistentError",
    "EmptyResultError", "AgentMetadataError", "ConfigurationError",
    "format_aws_error",
    # config
    "get_config", "DiscovererConfig",
    # agent metadata
    "AgentMetadata", "fetch_agent_metadata",
    # context
    "NO_SELF_HOST", "ResolutionRequest",
    # discovery
    "PeerResolver", "discover_peers", "format_join_line",
]
