"""
ecs_discoverer.tier3_platform.discovery
────────────────────────────────────────
Peer resolution. Translates an ECS service name into the private IPs of
the other hosts running it:

  service → RUNNING tasks → ACTIVE container instances
          → running EC2 instances → private IPs

Every stage either returns a non-empty list or raises; the first error
aborts the pipeline and nothing partial is ever returned. Dropped
candidates are logged at debug level with the reason they were dropped.
"""
from __future__ import annotations

from typing import Any, Iterable

from botocore.exceptions import BotoCoreError, ClientError

from ecs_discoverer.tier0_core.aws import AwsClients, build_clients, detect_region
from ecs_discoverer.tier0_core.config import DiscovererConfig, get_config
from ecs_discoverer.tier0_core.errors import (
    ApiError,
    ConfigurationError,
    EmptyResultError,
    InconsistentError,
    NotFoundError,
)
from ecs_discoverer.tier0_core.logging import clear_context, configure_logging, get_logger
from ecs_discoverer.tier0_core.metadata import fetch_agent_metadata
from ecs_discoverer.tier1_runtime.context import NO_SELF_HOST, ResolutionRequest, new_context
from ecs_discoverer.tier1_runtime.paging import call_batched, collect_pages

TASK_RUNNING = "RUNNING"
CONTAINER_INSTANCE_ACTIVE = "ACTIVE"
INSTANCE_RUNNING = "running"


def _unique(items: Iterable[str]) -> list[str]:
    """Drop repeated entries, keeping the first occurrence and the order."""
    return list(dict.fromkeys(items))


# ── Existence checks ──────────────────────────────────────────────────────────

def verify_cluster_exists(ecs: Any, cluster: str) -> None:
    """Raise unless exactly one ECS cluster named ``cluster`` exists."""
    try:
        response = ecs.describe_clusters(clusters=[cluster])
    except (ClientError, BotoCoreError) as exc:
        raise ApiError.wrap("Cannot verify if ECS cluster exists", exc) from exc

    clusters = response.get("clusters") or []
    if not clusters:
        raise NotFoundError(
            user_message=f"ECS cluster '{cluster}' does not exist, cannot proceed.",
            cluster=cluster,
        )
    if len(clusters) != 1:
        names = [c.get("clusterName") for c in clusters]
        raise InconsistentError(
            user_message=(
                f"Unexpected number of ECS clusters returned when searching for "
                f"'{cluster}'. Received: {names}"
            ),
            cluster=cluster,
        )


def verify_service_exists(ecs: Any, cluster: str, service: str, *, log: Any = None) -> None:
    """
    Raise ApiError if the service cannot be described at all.

    An answer without the service in it is accepted; a missing service
    surfaces later as "no tasks found".
    """
    try:
        response = ecs.describe_services(cluster=cluster, services=[service])
    except (ClientError, BotoCoreError) as exc:
        raise ApiError.wrap("Cannot verify if ECS service exists", exc) from exc

    if log is not None and response.get("failures"):
        log.debug("service.describe_failures", failures=response["failures"])


# ── Task placements ───────────────────────────────────────────────────────────

def resolve_container_instance_arns(
    ecs: Any,
    cluster: str,
    service: str,
    self_host_id: str,
    *,
    log: Any,
    batch_size: int = 100,
    max_pages: int = 1000,
    dedupe: bool = False,
) -> list[str]:
    """
    Return the container instance ARNs hosting a RUNNING task of
    ``service``, leaving out ``self_host_id``.
    """
    task_arns = collect_pages(
        ecs,
        "list_tasks",
        "taskArns",
        max_pages=max_pages,
        error_context="Cannot retrieve ECS task list",
        cluster=cluster,
        serviceName=service,
    )
    if not task_arns:
        raise EmptyResultError(
            "list_tasks",
            "no_tasks_found",
            f"No ECS tasks found with specified filter - cluster: {cluster}, service: {service}",
        )
    log.debug("tasks.listed", count=len(task_arns))

    tasks = call_batched(
        ecs,
        "describe_tasks",
        "tasks",
        task_arns,
        "tasks",
        batch_size=batch_size,
        error_context="Cannot retrieve ECS task details",
        cluster=cluster,
    )
    if not tasks:
        raise EmptyResultError(
            "describe_tasks",
            "no_task_details",
            f"No ECS task details found with specified filter - tasks: {', '.join(task_arns)}",
        )

    result: list[str] = []
    for task in tasks:
        arn = task.get("containerInstanceArn")
        status = task.get("lastStatus")
        if not arn:
            log.debug("task.excluded", task_arn=task.get("taskArn"), reason="no_container_instance")
        elif status != TASK_RUNNING:
            log.debug(
                "task.excluded",
                task_arn=task.get("taskArn"),
                container_instance_arn=arn,
                last_status=status,
                reason="not_running",
            )
        elif arn == self_host_id:
            log.debug(
                "task.excluded",
                task_arn=task.get("taskArn"),
                container_instance_arn=arn,
                reason="is_self",
            )
        else:
            result.append(arn)

    if dedupe:
        result = _unique(result)
    if not result:
        raise EmptyResultError(
            "filter_tasks",
            "no_running_instances",
            "No running instances: no ECS tasks found in RUNNING state on other hosts, "
            "no ECS container instances to return.",
        )
    return result


# ── Container instances ───────────────────────────────────────────────────────

def resolve_ec2_instance_ids(
    ecs: Any,
    cluster: str,
    container_instance_arns: list[str],
    *,
    log: Any,
    batch_size: int = 100,
    dedupe: bool = False,
) -> list[str]:
    """Return the EC2 instance ids behind the ACTIVE container instances."""
    if not container_instance_arns:
        raise EmptyResultError(
            "describe_container_instances",
            "no_container_instances_found",
            "No ECS container instances to describe.",
        )

    records = call_batched(
        ecs,
        "describe_container_instances",
        "containerInstances",
        container_instance_arns,
        "containerInstances",
        batch_size=batch_size,
        error_context="Cannot retrieve ECS container instance information",
        cluster=cluster,
    )
    if not records:
        raise EmptyResultError(
            "describe_container_instances",
            "no_container_instances_found",
            f"No ECS container instances found with specified filter - cluster: {cluster} "
            f"- instances: {', '.join(container_instance_arns)}",
        )

    result: list[str] = []
    for record in records:
        if record.get("status") == CONTAINER_INSTANCE_ACTIVE and record.get("ec2InstanceId"):
            result.append(record["ec2InstanceId"])
        else:
            log.debug(
                "container_instance.excluded",
                container_instance_arn=record.get("containerInstanceArn"),
                ec2_instance_id=record.get("ec2InstanceId"),
                status=record.get("status"),
                reason="not_active",
            )

    if dedupe:
        result = _unique(result)
    if not result:
        raise EmptyResultError(
            "filter_container_instances",
            "no_active_instances",
            "No ACTIVE ECS container instances found in result set, cannot proceed.",
        )
    return result


# ── EC2 instances ─────────────────────────────────────────────────────────────

def resolve_private_ips(
    ec2: Any,
    instance_ids: list[str],
    *,
    log: Any,
    max_pages: int = 1000,
    dedupe: bool = False,
) -> list[str]:
    """Return the private IPs of the running EC2 instances among ``instance_ids``."""
    if not instance_ids:
        raise EmptyResultError(
            "describe_instances",
            "no_instances_found",
            "No EC2 instance ids to describe.",
        )

    reservations = collect_pages(
        ec2,
        "describe_instances",
        "Reservations",
        max_pages=max_pages,
        error_context="Cannot retrieve EC2 instance information",
        InstanceIds=instance_ids,
    )
    instances = [i for r in reservations for i in (r.get("Instances") or [])]
    if not instances:
        raise EmptyResultError(
            "describe_instances",
            "no_instances_found",
            f"No EC2 instances found with specified Instance IDs filter: {', '.join(instance_ids)}",
        )

    result: list[str] = []
    for instance in instances:
        state = (instance.get("State") or {}).get("Name")
        address = instance.get("PrivateIpAddress")
        if state != INSTANCE_RUNNING:
            log.debug(
                "instance.excluded",
                instance_id=instance.get("InstanceId"),
                state=state,
                reason="not_running",
            )
        elif not address:
            log.debug(
                "instance.excluded",
                instance_id=instance.get("InstanceId"),
                reason="no_private_address",
            )
        else:
            result.append(address)

    if dedupe:
        result = _unique(result)
    if not result:
        raise EmptyResultError(
            "filter_instances",
            "no_running_instances",
            "No running EC2 instances found in result set, cannot proceed.",
        )
    return result


# ── Orchestration ─────────────────────────────────────────────────────────────

class PeerResolver:
    """
    Runs the resolution stages in order for one ResolutionRequest.

    Usage::

        resolver = PeerResolver(clients.ecs, clients.ec2)
        ips = resolver.resolve(request)
    """

    def __init__(
        self,
        ecs: Any,
        ec2: Any,
        *,
        config: DiscovererConfig | None = None,
        log: Any = None,
    ) -> None:
        self._ecs = ecs
        self._ec2 = ec2
        self._config = config or get_config()
        self._log = log if log is not None else get_logger(__name__)

    def resolve(self, request: ResolutionRequest, *, verify_cluster: bool | None = None) -> list[str]:
        """
        Run every stage for ``request``. The cluster check runs when asked,
        or by default whenever the request is not for this host's own cluster.
        """
        log = self._log
        cfg = self._config

        if verify_cluster is None:
            verify_cluster = not request.is_self_cluster
        if verify_cluster:
            verify_cluster_exists(self._ecs, request.cluster)
        verify_service_exists(self._ecs, request.cluster, request.service, log=log)

        container_instance_arns = resolve_container_instance_arns(
            self._ecs,
            request.cluster,
            request.service,
            request.self_host_id,
            log=log,
            batch_size=cfg.describe_batch_size,
            max_pages=cfg.max_pages,
            dedupe=request.dedupe,
        )
        log.debug("container_instances.resolved", count=len(container_instance_arns))

        instance_ids = resolve_ec2_instance_ids(
            self._ecs,
            request.cluster,
            container_instance_arns,
            log=log,
            batch_size=cfg.describe_batch_size,
            dedupe=request.dedupe,
        )
        log.debug("ec2_instances.resolved", count=len(instance_ids))

        addresses = resolve_private_ips(
            self._ec2,
            instance_ids,
            log=log,
            max_pages=cfg.max_pages,
            dedupe=request.dedupe,
        )
        log.debug("private_ips.resolved", count=len(addresses))
        return addresses


def discover_peers(
    service: str,
    *,
    cluster: str | None = None,
    region: str | None = None,
    debug: bool = False,
    dedupe: bool | None = None,
    config: DiscovererConfig | None = None,
    clients: AwsClients | None = None,
    metadata_client: Any = None,
    log: Any = None,
) -> list[str]:
    """
    Resolve the private IPs of the other hosts running ``service``.

    Without ``cluster`` the local ECS agent supplies the cluster name and
    this host's container instance ARN, which is then excluded. With
    ``cluster`` (and ``region``) nothing is excluded and the cluster's
    existence is checked first.
    """
    cfg = config or get_config()

    remote = cluster is not None
    if remote and not region:
        raise ConfigurationError(
            user_message="A cluster override requires a region override as well.",
        )

    metadata = None
    if remote:
        self_host_id = NO_SELF_HOST
    else:
        metadata = fetch_agent_metadata(
            cfg.agent_metadata_url,
            timeout=cfg.agent_metadata_timeout,
            client=metadata_client,
        )
        cluster = metadata.cluster
        self_host_id = metadata.container_instance_arn

    request = new_context(
        cluster,
        service,
        self_host_id,
        debug=debug,
        dedupe=cfg.dedupe if dedupe is None else dedupe,
    )
    try:
        if log is None:
            configure_logging(request.log_level)
            log = get_logger(__name__)
        if metadata is not None:
            log.debug(
                "agent.metadata",
                container_instance_arn=metadata.container_instance_arn,
                agent_version=metadata.version,
            )
        if clients is None:
            clients = build_clients(region or cfg.aws_region or detect_region())
        resolver = PeerResolver(clients.ecs, clients.ec2, config=cfg, log=log)
        return resolver.resolve(request)
    finally:
        clear_context()


def format_join_line(addresses: Iterable[str]) -> str:
    """Render addresses as the single comma-separated output line."""
    return ",".join(addresses)


__all__ = [
    "verify_cluster_exists",
    "verify_service_exists",
    "resolve_container_instance_arns",
    "resolve_ec2_instance_ids",
    "resolve_private_ips",
    "PeerResolver",
    "discover_peers",
    "format_join_line",
]
