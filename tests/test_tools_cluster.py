"""Tests for the cluster and node tool handlers."""

import pytest
from jsonschema import Draft202012Validator

from elastic_mcp.server import build_server
from elastic_mcp.tools.cluster import _nodes_path

from conftest import result_json, result_text

HEALTH = {
    "cluster_name": "test-cluster",
    "status": "yellow",
    "number_of_nodes": 3,
    "number_of_data_nodes": 2,
    "active_primary_shards": 10,
    "active_shards": 18,
    "relocating_shards": 0,
    "initializing_shards": 0,
    "unassigned_shards": 2,
    "active_shards_percent_as_number": 90.0,
    "number_of_pending_tasks": 0,
}


class TestClusterHealth:
    @pytest.mark.asyncio
    async def test_summary(self, cluster, client):
        cluster.routes[("GET", "/_cluster/health")] = HEALTH
        data = result_json(await build_server(client).call_tool("cluster_health", {}))

        assert data["summary"] == "Cluster 'test-cluster' is YELLOW"
        assert data["nodes"] == {"total": 3, "data": 2}
        assert data["shards"]["unassigned"] == 2
        assert cluster.last.url.params["level"] == "cluster"

    @pytest.mark.asyncio
    async def test_unrecognised_status_reported_red(self, cluster, client):
        cluster.routes[("GET", "/_cluster/health")] = dict(HEALTH, status="red")
        data = result_json(await build_server(client).call_tool("cluster_health", {}))
        assert data["summary"].endswith("is RED")

    @pytest.mark.asyncio
    async def test_wait_params_forwarded(self, cluster, client):
        cluster.routes[("GET", "/_cluster/health")] = HEALTH
        await build_server(client).call_tool("cluster_health", {"wait_for_status": "green", "timeout": "30s"})
        params = cluster.last.url.params
        assert params["wait_for_status"] == "green"
        assert params["timeout"] == "30s"

    @pytest.mark.asyncio
    async def test_failure(self, client):
        result = await build_server(client).call_tool("cluster_health", {})
        assert result_text(result) == "Failed to get cluster health: Resource not found"


class TestClusterReads:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool,path", [
        ("cluster_stats", "/_cluster/stats"),
        ("cluster_info", "/"),
        ("pending_tasks", "/_cluster/pending_tasks"),
        ("get_shards", "/_cat/shards"),
    ])
    async def test_passthrough(self, cluster, client, tool, path):
        cluster.routes[("GET", path)] = {"tool": tool}
        result = await build_server(client).call_tool(tool, {})
        assert result_json(result) == {"tool": tool}

    @pytest.mark.asyncio
    async def test_shards_for_index(self, cluster, client):
        cluster.routes[("GET", "/_cat/shards/logs")] = []
        await build_server(client).call_tool("get_shards", {"index": "logs"})
        assert cluster.last.url.params["format"] == "json"


class TestNodes:
    def test_nodes_path(self):
        assert _nodes_path(None, None, stats=False) == "/_nodes"
        assert _nodes_path("n1", ["jvm", "os"], stats=False) == "/_nodes/n1/jvm,os"
        assert _nodes_path(None, ["fs"], stats=True) == "/_nodes/stats/fs"
        assert _nodes_path("n1", None, stats=True) == "/_nodes/n1/stats"

    @pytest.mark.asyncio
    async def test_nodes_stats(self, cluster, client):
        cluster.routes[("GET", "/_nodes/stats/jvm")] = {"nodes": {}}
        result = await build_server(client).call_tool("nodes_stats", {"metric": ["jvm"]})
        assert result_json(result) == {"nodes": {}}

    @pytest.mark.asyncio
    async def test_unknown_metric_rejected(self, client):
        result = await build_server(client).call_tool("nodes_info", {"metric": ["gpu"]})
        assert result["isError"] is True


class TestAllocationExplain:
    @pytest.mark.asyncio
    async def test_without_target_uses_get(self, cluster, client):
        cluster.routes[("GET", "/_cluster/allocation/explain")] = {"index": "logs"}
        await build_server(client).call_tool("allocation_explain", {})
        assert cluster.last.method == "GET"

    @pytest.mark.asyncio
    async def test_with_target_posts_body(self, cluster, client):
        cluster.routes[("POST", "/_cluster/allocation/explain")] = {"index": "logs"}
        await build_server(client).call_tool("allocation_explain", {"index": "logs", "shard": 0, "primary": True})
        assert cluster.last_json() == {"index": "logs", "shard": 0, "primary": True}


class TestCatalogue:
    def test_every_tool_registered_once(self, client):
        names = build_server(client).tool_names
        assert len(names) == 37
        assert len(set(names)) == 37

    def test_schemas_are_valid(self, client):
        for tool in build_server(client).list_tools()["tools"]:
            Draft202012Validator.check_schema(tool["inputSchema"])
            assert tool["inputSchema"]["type"] == "object"
            assert tool["description"]
