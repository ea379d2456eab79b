"""Tests for observation/collector.py."""

import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import MaxRetryError

from nodeclaim_sampler.observation import ClusterResourceStore, ListCancelled, ResourceKind, ResourceStoreError
from nodeclaim_sampler.observation.collector import build_machine, build_nodeclaim


def v1_node(name, conditions=None, taints=None, deleted_at=None):
    return client.V1Node(
        metadata=client.V1ObjectMeta(name=name, deletion_timestamp=deleted_at),
        spec=client.V1NodeSpec(
            taints=[client.V1Taint(key=k, effect="NoSchedule") for k in (taints or [])] or None
        ),
        status=client.V1NodeStatus(
            conditions=[client.V1NodeCondition(type=t, status=s) for t, s in (conditions or {}).items()] or None
        ),
    )


def nodeclaim_obj(name, conditions=None, deletion_timestamp=None):
    metadata = {"name": name}
    if deletion_timestamp:
        metadata["deletionTimestamp"] = deletion_timestamp
    return {
        "apiVersion": "karpenter.sh/v1",
        "kind": "NodeClaim",
        "metadata": metadata,
        "status": {"conditions": [{"type": t, "status": s} for t, s in (conditions or {}).items()]},
    }


@pytest.fixture
def store():
    with patch("nodeclaim_sampler.observation.collector._load_kube_config", return_value=client.Configuration()):
        s = ClusterResourceStore(page_size=2, request_timeout=7)
    s._core = MagicMock()
    s._custom = MagicMock()
    return s


class TestBuilders:
    def test_build_machine(self):
        deleted = datetime(2024, 5, 1, tzinfo=timezone.utc)
        machine = build_machine(
            v1_node("n1", {"Ready": "True"}, ["karpenter.sh/disrupted"], deleted_at=deleted)
        )
        assert machine.name == "n1"
        assert machine.condition("Ready").is_true
        assert [t.key for t in machine.taints] == ["karpenter.sh/disrupted"]
        assert machine.deletion_timestamp == deleted

    def test_build_machine_without_status_or_spec(self):
        machine = build_machine(client.V1Node(metadata=client.V1ObjectMeta(name="bare")))
        assert machine.conditions == []
        assert machine.taints == []
        assert machine.deletion_timestamp is None

    def test_build_nodeclaim_parses_deletion_timestamp(self):
        claim = build_nodeclaim(
            nodeclaim_obj("c1", {"Launched": "True"}, deletion_timestamp="2024-05-01T12:00:00Z")
        )
        assert claim.name == "c1"
        assert claim.condition("Launched").is_true
        assert claim.deletion_timestamp == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)

    def test_build_nodeclaim_without_status(self):
        claim = build_nodeclaim({"metadata": {"name": "fresh"}})
        assert claim.conditions == []
        assert claim.deletion_timestamp is None


class TestClusterResourceStore:
    def test_lists_nodes_across_pages(self, store):
        store._core.list_node.side_effect = [
            client.V1NodeList(items=[v1_node("a"), v1_node("b")], metadata=client.V1ListMeta(_continue="tok")),
            client.V1NodeList(items=[v1_node("c")], metadata=client.V1ListMeta()),
        ]
        machines = store.list(ResourceKind.NODE)
        assert [m.name for m in machines] == ["a", "b", "c"]
        first, second = store._core.list_node.call_args_list
        assert first.kwargs == {"limit": 2, "_request_timeout": 7}
        assert second.kwargs["_continue"] == "tok"

    def test_lists_nodeclaims_across_pages(self, store):
        store._custom.list_cluster_custom_object.side_effect = [
            {"items": [nodeclaim_obj("x"), nodeclaim_obj("y")], "metadata": {"continue": "next"}},
            {"items": [nodeclaim_obj("z")], "metadata": {}},
        ]
        claims = store.list(ResourceKind.NODECLAIM)
        assert [c.name for c in claims] == ["x", "y", "z"]
        first = store._custom.list_cluster_custom_object.call_args_list[0]
        assert first.args == ("karpenter.sh", "v1", "nodeclaims")

    def test_empty_list(self, store):
        store._custom.list_cluster_custom_object.return_value = {"items": [], "metadata": {}}
        assert store.list(ResourceKind.NODECLAIM) == []

    def test_api_exception_is_transient_error(self, store):
        store._core.list_node.side_effect = ApiException(status=503, reason="Service Unavailable")
        with pytest.raises(ResourceStoreError) as excinfo:
            store.list(ResourceKind.NODE)
        assert excinfo.value.kind is ResourceKind.NODE
        assert "Service Unavailable" in str(excinfo.value)

    def test_connection_error_is_transient_error(self, store):
        store._custom.list_cluster_custom_object.side_effect = MaxRetryError(None, "/apis", "refused")
        with pytest.raises(ResourceStoreError):
            store.list(ResourceKind.NODECLAIM)

    def test_malformed_nodeclaim_is_transient_error(self, store):
        store._custom.list_cluster_custom_object.return_value = {
            "items": [nodeclaim_obj("bad", deletion_timestamp="not-a-time")],
            "metadata": {},
        }
        with pytest.raises(ResourceStoreError):
            store.list(ResourceKind.NODECLAIM)

    def test_stops_paging_once_cancelled(self, store):
        event = threading.Event()

        def first_page_then_cancel(**kwargs):
            event.set()
            return client.V1NodeList(items=[v1_node("a")], metadata=client.V1ListMeta(_continue="more"))

        store._core.list_node.side_effect = first_page_then_cancel
        with pytest.raises(ListCancelled) as excinfo:
            store.list(ResourceKind.NODE, cancel_event=event)
        assert store._core.list_node.call_count == 1
        assert excinfo.value.kind is ResourceKind.NODE

    def test_last_page_completes_even_if_cancelled(self, store):
        event = threading.Event()
        event.set()
        store._custom.list_cluster_custom_object.return_value = {"items": [nodeclaim_obj("x")], "metadata": {}}
        assert [c.name for c in store.list(ResourceKind.NODECLAIM, cancel_event=event)] == ["x"]
