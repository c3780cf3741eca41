from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..client import ElasticClient, Failure
from ..mcp import ToolSpec
from ..util.results import ToolResult, error_result, json_result

_EMPTY: Dict[str, Any] = {"type": "object", "properties": {}, "additionalProperties": False}

NODES_INFO_METRICS = [
    "settings", "os", "process", "jvm", "thread_pool",
    "transport", "http", "plugins", "ingest", "indices",
]
NODES_STATS_METRICS = [
    "indices", "os", "process", "jvm", "thread_pool",
    "fs", "transport", "http", "breaker", "script",
]


def _nodes_path(node_id: Optional[str], metrics: Optional[List[str]], *, stats: bool) -> str:
    path = "/_nodes"
    if node_id:
        path += f"/{node_id}"
    if stats:
        path += "/stats"
    if metrics:
        path += "/" + ",".join(metrics)
    return path


def _health_summary(health: Dict[str, Any]) -> Dict[str, Any]:
    status = health.get("status")
    label = str(status).upper() if status in ("green", "yellow") else "RED"
    return {
        "summary": f"Cluster '{health.get('cluster_name')}' is {label}",
        "cluster_name": health.get("cluster_name"),
        "status": status,
        "nodes": {
            "total": health.get("number_of_nodes"),
            "data": health.get("number_of_data_nodes"),
        },
        "shards": {
            "active": health.get("active_shards"),
            "primary": health.get("active_primary_shards"),
            "relocating": health.get("relocating_shards"),
            "initializing": health.get("initializing_shards"),
            "unassigned": health.get("unassigned_shards"),
        },
        "active_shards_percent": health.get("active_shards_percent_as_number"),
        "pending_tasks": health.get("number_of_pending_tasks"),
    }


def build_tools(client: ElasticClient) -> List[ToolSpec]:
    async def cluster_health(args: Dict[str, Any]) -> ToolResult:
        params = {k: args[k] for k in ("level", "wait_for_status", "timeout") if args.get(k)}
        outcome = await client.get("/_cluster/health", params)
        if isinstance(outcome, Failure):
            return error_result("Failed to get cluster health", outcome)
        health = outcome.data if isinstance(outcome.data, dict) else {}
        return json_result(_health_summary(health))

    async def cluster_stats(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get("/_cluster/stats")
        if isinstance(outcome, Failure):
            return error_result("Failed to get cluster stats", outcome)
        return json_result(outcome.data)

    async def cluster_info(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.info()
        if isinstance(outcome, Failure):
            return error_result("Failed to get cluster info", outcome)
        return json_result(outcome.data)

    async def nodes_info(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get(_nodes_path(args.get("node_id"), args.get("metric"), stats=False))
        if isinstance(outcome, Failure):
            return error_result("Failed to get nodes info", outcome)
        return json_result(outcome.data)

    async def nodes_stats(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get(_nodes_path(args.get("node_id"), args.get("metric"), stats=True))
        if isinstance(outcome, Failure):
            return error_result("Failed to get node stats", outcome)
        return json_result(outcome.data)

    async def pending_tasks(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get("/_cluster/pending_tasks")
        if isinstance(outcome, Failure):
            return error_result("Failed to get pending tasks", outcome)
        return json_result(outcome.data)

    async def allocation_explain(args: Dict[str, Any]) -> ToolResult:
        # without a target the cluster explains the first unassigned shard
        if args:
            outcome = await client.post("/_cluster/allocation/explain", dict(args))
        else:
            outcome = await client.get("/_cluster/allocation/explain")
        if isinstance(outcome, Failure):
            return error_result("Failed to explain allocation", outcome)
        return json_result(outcome.data)

    async def get_shards(args: Dict[str, Any]) -> ToolResult:
        path = f"/_cat/shards/{args['index']}" if args.get("index") else "/_cat/shards"
        outcome = await client.get(path, {"format": "json"})
        if isinstance(outcome, Failure):
            return error_result("Failed to get shards", outcome)
        return json_result(outcome.data)

    return [
        ToolSpec("cluster_health", "Cluster Health", "Get the health status of the Elasticsearch cluster including node counts, shard status, and overall health.", CLUSTER_HEALTH_SCHEMA, cluster_health),
        ToolSpec("cluster_stats", "Cluster Stats", "Get comprehensive cluster statistics including indices, nodes, and resource usage.", _EMPTY, cluster_stats),
        ToolSpec("cluster_info", "Cluster Info", "Get basic cluster information including version and build details.", _EMPTY, cluster_info),
        ToolSpec("nodes_info", "Nodes Info", "Get information about cluster nodes including roles, JVM settings, and plugins.", _nodes_schema(NODES_INFO_METRICS, "Specific node ID (omit for all nodes)", "Specific metrics to retrieve"), nodes_info),
        ToolSpec("nodes_stats", "Nodes Stats", "Get statistics for cluster nodes including CPU, memory, disk, and index operations.", _nodes_schema(NODES_STATS_METRICS, "Specific node ID", "Specific metrics"), nodes_stats),
        ToolSpec("pending_tasks", "Pending Tasks", "Get a list of pending cluster-level tasks.", _EMPTY, pending_tasks),
        ToolSpec("allocation_explain", "Allocation Explain", "Explain why a shard is unassigned or why it remains on its current node.", ALLOCATION_EXPLAIN_SCHEMA, allocation_explain),
        ToolSpec("get_shards", "Get Shards", "Get detailed shard allocation information.", GET_SHARDS_SCHEMA, get_shards),
    ]


def _nodes_schema(metrics: List[str], node_desc: str, metric_desc: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "node_id": {"type": "string", "description": node_desc},
            "metric": {
                "type": "array",
                "items": {"type": "string", "enum": metrics},
                "description": metric_desc,
            },
        },
        "additionalProperties": False,
    }


CLUSTER_HEALTH_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "level": {"type": "string", "enum": ["cluster", "indices", "shards"], "default": "cluster", "description": "Level of detail"},
        "wait_for_status": {"type": "string", "enum": ["green", "yellow", "red"], "description": "Wait for cluster to reach this status"},
        "timeout": {"type": "string", "description": 'Timeout to wait (e.g., "30s")'},
    },
    "additionalProperties": False,
}

ALLOCATION_EXPLAIN_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "index": {"type": "string", "description": "Index name"},
        "shard": {"type": "integer", "minimum": 0, "description": "Shard number"},
        "primary": {"type": "boolean", "description": "Whether to explain primary (true) or replica (false)"},
    },
    "additionalProperties": False,
}

GET_SHARDS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "index": {"type": "string", "description": "Index pattern to filter"},
    },
    "additionalProperties": False,
}
