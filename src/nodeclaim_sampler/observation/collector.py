"""List Kubernetes nodes and Karpenter NodeClaims for classification."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Iterator

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from nodeclaim_sampler.observation.models import Condition, Machine, NodeClaim, Taint

logger = logging.getLogger(__name__)

NODECLAIM_GROUP = "karpenter.sh"
NODECLAIM_VERSION = "v1"
NODECLAIM_PLURAL = "nodeclaims"

DEFAULT_PAGE_SIZE = 500
DEFAULT_REQUEST_TIMEOUT = 30.0


class ResourceKind(str, Enum):
    """Resource collections the sampler lists each cycle."""

    NODE = "nodes"
    NODECLAIM = "nodeclaims"


class ResourceStoreError(Exception):
    """Listing a resource collection failed; the caller may retry."""

    def __init__(self, kind: ResourceKind, reason: str) -> None:
        super().__init__(f"failed to list {kind.value}: {reason}")
        self.kind = kind
        self.reason = reason


class ListCancelled(ResourceStoreError):
    """Listing stopped early because the cancellation signal was set."""


def _load_kube_config(kubeconfig_path: str | None, context: str | None) -> client.Configuration:
    """Load in-cluster or kubeconfig-based configuration."""
    try:
        config.load_incluster_config()
        return client.Configuration.get_default_copy()
    except config.ConfigException:
        pass
    kwargs: dict[str, Any] = {}
    if kubeconfig_path:
        kwargs["config_file"] = str(kubeconfig_path)
    if context:
        kwargs["context"] = context
    config.load_kube_config(**kwargs)
    return client.Configuration.get_default_copy()


def build_machine(node: Any) -> Machine:
    """Build Machine from V1Node."""
    metadata = node.metadata
    conditions = [
        Condition(type=c.type or "", status=c.status or "")
        for c in getattr(node.status, "conditions", None) or []
    ]
    taints = [
        Taint(key=t.key or "", value=getattr(t, "value", None), effect=getattr(t, "effect", None))
        for t in getattr(node.spec, "taints", None) or []
    ]
    return Machine(
        name=getattr(metadata, "name", None) or "",
        conditions=conditions,
        taints=taints,
        deletion_timestamp=getattr(metadata, "deletion_timestamp", None),
    )


def build_nodeclaim(obj: dict[str, Any]) -> NodeClaim:
    """Build NodeClaim from the custom object dict returned by the API."""
    metadata = obj.get("metadata") or {}
    status = obj.get("status") or {}
    conditions = [
        Condition(type=str(c.get("type", "")), status=str(c.get("status", "")))
        for c in status.get("conditions") or []
    ]
    return NodeClaim(
        name=metadata.get("name") or "",
        conditions=conditions,
        # RFC 3339 string; pydantic parses it
        deletion_timestamp=metadata.get("deletionTimestamp"),
    )


class ClusterResourceStore:
    """Lists nodes and NodeClaims from a Kubernetes cluster."""

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.page_size = page_size
        self.request_timeout = request_timeout
        cfg = _load_kube_config(kubeconfig, context)
        api_client = client.ApiClient(cfg)
        self._core = client.CoreV1Api(api_client)
        self._custom = client.CustomObjectsApi(api_client)

    def list(
        self,
        kind: ResourceKind,
        cancel_event: threading.Event | None = None,
    ) -> list[Machine] | list[NodeClaim]:
        """List every item of the given kind, across all pages.

        Raises:
            ListCancelled: If ``cancel_event`` is set before the last page arrives.
            ResourceStoreError: If any page cannot be fetched or parsed.
        """
        try:
            if kind is ResourceKind.NODE:
                pages = self._pages(kind, self._list_node_page, cancel_event)
                return [build_machine(n) for n in pages]
            pages = self._pages(kind, self._list_nodeclaim_page, cancel_event)
            return [build_nodeclaim(o) for o in pages]
        except ApiException as e:
            logger.debug("List %s failed: %s", kind.value, e.reason)
            raise ResourceStoreError(kind, str(e.reason)) from e
        except (HTTPError, ValueError) as e:
            logger.debug("List %s failed: %s", kind.value, e)
            raise ResourceStoreError(kind, str(e)) from e

    def _pages(
        self,
        kind: ResourceKind,
        fetch: Callable[[str | None], tuple[list[Any], str | None]],
        cancel_event: threading.Event | None,
    ) -> Iterator[Any]:
        """Yield items page by page, stopping once ``cancel_event`` is set."""
        token: str | None = None
        while True:
            items, token = fetch(token)
            yield from items
            if not token:
                return
            if cancel_event is not None and cancel_event.is_set():
                raise ListCancelled(kind, "shutdown requested")

    def _list_node_page(self, token: str | None) -> tuple[list[Any], str | None]:
        """Fetch one page of V1Node objects and its continue token."""
        kwargs: dict[str, Any] = {"limit": self.page_size, "_request_timeout": self.request_timeout}
        if token:
            kwargs["_continue"] = token
        page = self._core.list_node(**kwargs)
        return list(page.items or []), getattr(page.metadata, "_continue", None)

    def _list_nodeclaim_page(self, token: str | None) -> tuple[list[Any], str | None]:
        """Fetch one page of NodeClaim dicts and its continue token."""
        kwargs: dict[str, Any] = {"limit": self.page_size, "_request_timeout": self.request_timeout}
        if token:
            kwargs["_continue"] = token
        page = self._custom.list_cluster_custom_object(
            NODECLAIM_GROUP,
            NODECLAIM_VERSION,
            NODECLAIM_PLURAL,
            **kwargs,
        )
        return list(page.get("items") or []), (page.get("metadata") or {}).get("continue")
