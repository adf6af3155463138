"""
ecs_discoverer.tier0_core.metadata
───────────────────────────────────
Local ECS agent introspection. The agent on the Docker host answers
GET /v1/metadata with the cluster name and this host's container
instance ARN, which is all self-cluster mode needs to bootstrap.

Backed by: httpx (sync client).
"""
from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ecs_discoverer.tier0_core.errors import AgentMetadataError
from ecs_discoverer.tier1_runtime.validate import validate_input


class AgentMetadata(BaseModel):
    """The document served by the ECS agent introspection endpoint."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    cluster: str = Field(..., min_length=1, alias="Cluster")
    container_instance_arn: str = Field(..., min_length=1, alias="ContainerInstanceArn")
    version: str | None = Field(default=None, alias="Version")


def fetch_agent_metadata(
    url: str,
    *,
    timeout: float = 5.0,
    client: httpx.Client | None = None,
) -> AgentMetadata:
    """
    Fetch and parse the agent metadata document.

    Any transport error, timeout, non-2xx status or malformed body is
    terminal: AgentMetadataError (transport/JSON) or ValidationError (shape).
    """
    owns_client = client is None
    client = client or httpx.Client(timeout=timeout)
    try:
        response = client.get(url)
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPError as exc:
        raise AgentMetadataError(
            user_message=f"Error retrieving metadata from ECS agent ({url}): {exc}",
        ) from exc
    except ValueError as exc:
        raise AgentMetadataError(
            user_message=f"Error parsing JSON response from ECS agent ({url}): {exc}",
        ) from exc
    finally:
        if owns_client:
            client.close()

    return validate_input(AgentMetadata, payload, source="ECS agent metadata")


__all__ = ["AgentMetadata", "fetch_agent_metadata"]
