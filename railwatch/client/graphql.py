"""Async GraphQL client for the Railway platform.

Every request is a JSON ``{query, variables}`` POST to a single endpoint and
carries a bearer credential when one is set.  A response with an ``errors``
array is a failure even when partial ``data`` is present.

List operations return ``[]`` for an empty (or absent) connection and for a
``MalformedResponse``; ``Unreachable`` and ``Unauthorized`` propagate so the
caller can keep its last-known state.  ``fetch_deployments(strict=True)``
also propagates ``MalformedResponse`` for callers that must not mistake a
degraded result for an empty bucket.  A deployment with a status outside
``DeploymentStatus`` is skipped on its own; its siblings are kept.

``fetch_logs`` degrades every failure except ``Unauthorized`` to ``[]``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import httpx
import structlog

from railwatch.client import queries
from railwatch.client.errors import MalformedResponse, RemoteError, Unauthorized, Unreachable
from railwatch.models.config import DEFAULT_ENDPOINT
from railwatch.models.resources import (
    Deployment,
    DeploymentStatus,
    Environment,
    LogLine,
    Project,
    Service,
    UnknownDeploymentStatus,
)
from railwatch.observability.metrics import fetches_total

_log = structlog.get_logger(component="client.graphql")

_T = TypeVar("_T")

_AUTH_ERROR_MARKERS = ("not authorized", "unauthorized", "authentication")


class RailwayClient:
    """Issues hierarchy and log queries against the Railway GraphQL API.

    Args:
        endpoint:   GraphQL endpoint URL.
        token:      Optional initial bearer credential.
        timeout:    Per-request timeout in seconds.
        transport:  Optional httpx transport (tests pass ``httpx.MockTransport``).
        on_warning: Called with a user-facing message when a log fetch fails.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        token: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
        on_warning: Callable[[str], None] | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._http = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        self._on_warning = on_warning
        if token:
            self.set_credential(token)

    # ------------------------------------------------------------------
    # Credential
    # ------------------------------------------------------------------

    @property
    def has_credential(self) -> bool:
        return "Authorization" in self._http.headers

    def set_credential(self, token: str) -> None:
        """Attach *token* as the bearer credential for every later request."""
        token = token.strip()
        if not token:
            raise ValueError("API token must not be empty")
        self._http.headers["Authorization"] = f"Bearer {token}"
        _log.info("credential_set", token_length=len(token))

    def clear_credential(self) -> None:
        self._http.headers.pop("Authorization", None)
        _log.info("credential_cleared")

    async def close(self) -> None:
        await self._http.aclose()

    async def stop(self) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def execute(self, operation: str, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST one GraphQL document and return its ``data`` object.

        Raises:
            Unreachable:       transport failure, timeout or HTTP 5xx.
            Unauthorized:      HTTP 401/403 or an authorization GraphQL error.
            MalformedResponse: any other GraphQL error or unexpected body shape.
        """
        try:
            data = await self._post(operation, query, variables)
        except RemoteError as exc:
            fetches_total.labels(operation=operation, outcome=exc.kind.value).inc()
            _log.warning("remote_request_failed", operation=operation, kind=exc.kind.value, error=str(exc))
            raise
        fetches_total.labels(operation=operation, outcome="ok").inc()
        return data

    async def _post(self, operation: str, query: str, variables: dict[str, Any] | None) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = await self._http.post(self._endpoint, json=payload)
        except httpx.TimeoutException as exc:
            raise Unreachable("request timed out", operation) from exc
        except httpx.HTTPError as exc:
            raise Unreachable(f"transport error: {exc}", operation) from exc

        if response.status_code in (401, 403):
            raise Unauthorized(f"credential rejected (HTTP {response.status_code})", operation)
        if response.status_code >= 500:
            raise Unreachable(f"server error (HTTP {response.status_code})", operation)

        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedResponse(
                f"non-JSON response (HTTP {response.status_code}): {response.text[:200]!r}", operation
            ) from exc
        if not isinstance(body, dict):
            raise MalformedResponse("response body is not an object", operation)

        errors = body.get("errors")
        if errors:
            messages = _error_messages(errors)
            if any(marker in message.lower() for message in messages for marker in _AUTH_ERROR_MARKERS):
                raise Unauthorized("; ".join(messages), operation)
            raise MalformedResponse("; ".join(messages) or "unspecified GraphQL error", operation)

        if not response.is_success:
            raise MalformedResponse(f"unexpected HTTP {response.status_code}", operation)

        data = body.get("data")
        if not isinstance(data, dict):
            raise MalformedResponse("response has no data object", operation)
        return data

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def check_connection(self) -> None:
        """Run a trivial query to validate endpoint and credential.  Raises RemoteError."""
        await self.execute("check_connection", queries.CONNECTION_CHECK)

    async def fetch_projects(self) -> list[Project]:
        return await self._fetch_list(
            "projects", queries.PROJECTS, None, queries.PROJECTS_PATH, Project.from_node
        )

    async def fetch_environments(self, project_id: str) -> list[Environment]:
        return await self._fetch_list(
            "environments",
            queries.ENVIRONMENTS,
            {"projectId": project_id},
            queries.ENVIRONMENTS_PATH,
            lambda node: Environment.from_node(node, project_id),
        )

    async def fetch_services(self, project_id: str) -> list[Service]:
        return await self._fetch_list(
            "services",
            queries.SERVICES,
            {"projectId": project_id},
            queries.SERVICES_PATH,
            lambda node: Service.from_node(node, project_id),
        )

    async def fetch_deployments(
        self, service_id: str, environment_id: str, limit: int = 10, strict: bool = False
    ) -> list[Deployment]:
        return await self._fetch_list(
            "deployments",
            queries.DEPLOYMENTS,
            {"serviceId": service_id, "environmentId": environment_id, "first": limit},
            queries.DEPLOYMENTS_PATH,
            lambda node: Deployment.from_node(node, service_id, environment_id),
            strict=strict,
            skip=UnknownDeploymentStatus,
        )

    async def fetch_deployment_status(self, deployment_id: str) -> DeploymentStatus | None:
        """Return the current status of one deployment, or None if unknown or malformed."""
        try:
            data = await self.execute("deployment_status", queries.DEPLOYMENT_STATUS, {"deploymentId": deployment_id})
            deployment = _walk(data, ("deployment",), "deployment_status")
            if deployment is None:
                return None
            if not isinstance(deployment, dict):
                raise MalformedResponse("deployment is not an object", "deployment_status")
            return DeploymentStatus(str(deployment.get("status", "")).upper())
        except ValueError:
            _log.warning("deployment_status_unknown", deployment_id=deployment_id)
            return None
        except MalformedResponse:
            return None

    async def fetch_logs(
        self,
        deployment_id: str | None = None,
        service_id: str | None = None,
        environment_id: str | None = None,
        limit: int = 500,
    ) -> list[LogLine]:
        """Fetch the most recent *limit* log lines for a deployment or a service.

        Pass either ``deployment_id`` (build/deploy logs) or both ``service_id``
        and ``environment_id`` (application logs).  Remote failures yield
        ``[]`` and a warning through ``on_warning``.

        Raises:
            Unauthorized: the credential was rejected; the caller decides
                whether to stop polling.
        """
        if deployment_id:
            operation, query, path = "deployment_logs", queries.DEPLOYMENT_LOGS, queries.DEPLOYMENT_LOGS_PATH
            variables: dict[str, Any] = {"deploymentId": deployment_id, "limit": limit}
        elif service_id and environment_id:
            operation, query, path = "application_logs", queries.APPLICATION_LOGS, queries.APPLICATION_LOGS_PATH
            variables = {"serviceId": service_id, "environmentId": environment_id, "limit": limit}
        else:
            raise ValueError("fetch_logs needs a deployment_id or a service_id/environment_id pair")

        try:
            data = await self.execute(operation, query, variables)
            raw = _walk(data, path, operation)
            if raw is None:
                return []
            if not isinstance(raw, list):
                raise MalformedResponse("log payload is not a list", operation)
            return _build_all(raw, LogLine.from_node, operation)
        except Unauthorized:
            raise
        except RemoteError as exc:
            _log.warning("log_fetch_failed", operation=operation, kind=exc.kind.value)
            if self._on_warning is not None:
                self._on_warning("Unable to fetch logs. The logs may not be available yet.")
            return []

    async def _fetch_list(
        self,
        operation: str,
        query: str,
        variables: dict[str, Any] | None,
        path: tuple[str, ...],
        build: Callable[[dict[str, Any]], _T],
        strict: bool = False,
        skip: type[ValueError] | None = None,
    ) -> list[_T]:
        try:
            data = await self.execute(operation, query, variables)
            nodes = _edge_nodes(data, path, operation)
            items = _build_all(nodes, build, operation, skip)
        except MalformedResponse as exc:
            if strict:
                raise
            _log.warning("malformed_response_degraded", operation=operation, error=str(exc))
            return []
        _log.debug("fetched", operation=operation, count=len(items))
        return items


def _error_messages(errors: Any) -> list[str]:
    if not isinstance(errors, list):
        return [str(errors)]
    messages = []
    for error in errors:
        if isinstance(error, dict):
            messages.append(str(error.get("message", "")))
        else:
            messages.append(str(error))
    return messages


def _walk(data: dict[str, Any], path: tuple[str, ...], operation: str) -> Any:
    """Follow *path* through nested objects; a null along the way yields None."""
    node: Any = data
    for key in path:
        if node is None:
            return None
        if not isinstance(node, dict):
            raise MalformedResponse(f"expected object at {key!r}", operation)
        node = node.get(key)
    return node


def _edge_nodes(data: dict[str, Any], path: tuple[str, ...], operation: str) -> list[dict[str, Any]]:
    """Extract ``node`` objects from a ``{edges: [{node: ...}]}`` connection."""
    connection = _walk(data, path, operation)
    if connection is None:
        return []
    if not isinstance(connection, dict):
        raise MalformedResponse("connection is not an object", operation)
    edges = connection.get("edges")
    if edges is None:
        return []
    if not isinstance(edges, list):
        raise MalformedResponse("edges is not a list", operation)
    nodes = []
    for edge in edges:
        node = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(node, dict):
            raise MalformedResponse("edge without node object", operation)
        nodes.append(node)
    return nodes


def _build_all(
    nodes: list[Any],
    build: Callable[[dict[str, Any]], _T],
    operation: str,
    skip: type[ValueError] | None = None,
) -> list[_T]:
    """Build every node; errors of type *skip* drop that node, any other ValueError fails the list."""
    items = []
    for node in nodes:
        if not isinstance(node, dict):
            raise MalformedResponse("list entry is not an object", operation)
        try:
            items.append(build(node))
        except ValueError as exc:
            if skip is not None and isinstance(exc, skip):
                _log.info("node_skipped", operation=operation, node_id=node.get("id"), reason=str(exc))
                continue
            raise MalformedResponse(str(exc), operation) from exc
    return items
