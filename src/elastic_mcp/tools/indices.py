from __future__ import annotations

from typing import Any, Dict, List

from ..client import ElasticClient, Failure
from ..mcp import ToolSpec
from ..util.results import ToolResult, error_result, error_text, json_result, text_result

CAT_INDICES_COLUMNS = "health,status,index,uuid,pri,rep,docs.count,docs.deleted,store.size,pri.store.size"


def _index_row(idx: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "index": idx.get("index"),
        "health": idx.get("health"),
        "status": idx.get("status"),
        "docs": idx.get("docs.count"),
        "size": idx.get("store.size"),
        "primary_shards": idx.get("pri"),
        "replicas": idx.get("rep"),
    }


def build_tools(client: ElasticClient) -> List[ToolSpec]:
    async def list_indices(args: Dict[str, Any]) -> ToolResult:
        params: Dict[str, Any] = {"format": "json", "h": CAT_INDICES_COLUMNS}
        if args.get("health"):
            params["health"] = args["health"]
        if args.get("include_hidden"):
            params["expand_wildcards"] = "all"
        path = f"/_cat/indices/{args['pattern']}" if args.get("pattern") else "/_cat/indices"
        outcome = await client.get(path, params)
        if isinstance(outcome, Failure):
            return error_result("Failed to list indices", outcome)
        rows = outcome.data if isinstance(outcome.data, list) else []
        return json_result({"count": len(rows), "indices": [_index_row(r) for r in rows]})

    async def get_index(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get(f"/{args['index']}")
        if isinstance(outcome, Failure):
            return error_result("Index not found", outcome)
        return json_result(outcome.data)

    async def get_mappings(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.get(f"/{args['index']}/_mapping")
        if isinstance(outcome, Failure):
            return error_result("Failed to get mappings", outcome)
        return json_result(outcome.data)

    async def get_settings(args: Dict[str, Any]) -> ToolResult:
        params = {"include_defaults": True} if args.get("include_defaults") else None
        outcome = await client.get(f"/{args['index']}/_settings", params)
        if isinstance(outcome, Failure):
            return error_result("Failed to get settings", outcome)
        return json_result(outcome.data)

    async def create_index(args: Dict[str, Any]) -> ToolResult:
        index = args["index"]
        body = {k: v for k, v in args.items() if k in ("settings", "mappings", "aliases")}
        outcome = await client.put(f"/{index}", body or None)
        if isinstance(outcome, Failure):
            return error_result("Failed to create index", outcome)
        return text_result(f"Index '{index}' created successfully")

    async def delete_index(args: Dict[str, Any]) -> ToolResult:
        if args.get("confirm") is not True:
            return error_text("Deletion not confirmed. Set confirm: true to delete.")
        outcome = await client.delete(f"/{args['index']}")
        if isinstance(outcome, Failure):
            return error_result("Failed to delete index", outcome)
        return text_result(f"Index '{args['index']}' deleted successfully")

    async def refresh_index(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.post(f"/{args['index']}/_refresh")
        if isinstance(outcome, Failure):
            return error_result("Failed to refresh index", outcome)
        return text_result(f"Index '{args['index']}' refreshed successfully")

    async def get_index_stats(args: Dict[str, Any]) -> ToolResult:
        path = f"/{args['index']}/_stats" if args.get("index") else "/_stats"
        outcome = await client.get(path)
        if isinstance(outcome, Failure):
            return error_result("Failed to get stats", outcome)
        return json_result(outcome.data)

    async def get_aliases(args: Dict[str, Any]) -> ToolResult:
        path = f"/{args['index']}/_alias" if args.get("index") else "/_alias"
        if args.get("alias"):
            path += f"/{args['alias']}"
        outcome = await client.get(path)
        if isinstance(outcome, Failure):
            return error_result("Failed to get aliases", outcome)
        return json_result(outcome.data)

    return [
        ToolSpec("list_indices", "List Indices", "List all indices in the cluster with their health, status, and document counts.", LIST_INDICES_SCHEMA, list_indices),
        ToolSpec("get_index", "Get Index", "Get detailed information about a specific index including settings and mappings.", _index_only("Index name"), get_index),
        ToolSpec("get_mappings", "Get Mappings", "Get the field mappings for an index.", _index_only("Index name or pattern"), get_mappings),
        ToolSpec("get_settings", "Get Settings", "Get the settings for an index.", GET_SETTINGS_SCHEMA, get_settings),
        ToolSpec("create_index", "Create Index", "Create a new index with optional settings, mappings, and aliases.", CREATE_INDEX_SCHEMA, create_index),
        ToolSpec("delete_index", "Delete Index", "Delete an index. WARNING: This permanently deletes all data in the index.", DELETE_INDEX_SCHEMA, delete_index),
        ToolSpec("refresh_index", "Refresh Index", "Refresh an index to make recent changes available for search.", _index_only("Index name or pattern"), refresh_index),
        ToolSpec("get_index_stats", "Index Stats", "Get statistics for one or more indices including document counts, storage, and operations.", INDEX_STATS_SCHEMA, get_index_stats),
        ToolSpec("get_aliases", "Get Aliases", "Get index aliases.", GET_ALIASES_SCHEMA, get_aliases),
    ]


def _index_only(description: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "required": ["index"],
        "properties": {"index": {"type": "string", "description": description}},
        "additionalProperties": False,
    }


LIST_INDICES_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "pattern": {"type": "string", "description": 'Index pattern to filter (e.g., "logs-*")'},
        "health": {"type": "string", "enum": ["green", "yellow", "red"], "description": "Filter by health status"},
        "include_hidden": {"type": "boolean", "default": False, "description": "Include hidden indices (starting with .)"},
    },
    "additionalProperties": False,
}

GET_SETTINGS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["index"],
    "properties": {
        "index": {"type": "string", "description": "Index name or pattern"},
        "include_defaults": {"type": "boolean", "default": False, "description": "Include default settings"},
    },
    "additionalProperties": False,
}

CREATE_INDEX_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["index"],
    "properties": {
        "index": {"type": "string", "description": "Index name"},
        "settings": {
            "type": "object",
            "description": "Index settings",
            "properties": {
                "number_of_shards": {"type": "integer", "minimum": 1},
                "number_of_replicas": {"type": "integer", "minimum": 0},
            },
        },
        "mappings": {
            "type": "object",
            "description": "Field mappings",
            "properties": {"properties": {"type": "object"}},
        },
        "aliases": {
            "type": "object",
            "description": "Index aliases",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "filter": {"type": "object"},
                    "routing": {"type": "string"},
                },
            },
        },
    },
    "additionalProperties": False,
}

DELETE_INDEX_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["index", "confirm"],
    "properties": {
        "index": {"type": "string", "description": "Index name to delete"},
        "confirm": {"type": "boolean", "description": "Must be true to confirm deletion"},
    },
    "additionalProperties": False,
}

INDEX_STATS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "index": {"type": "string", "description": "Index name or pattern (omit for all indices)"},
    },
    "additionalProperties": False,
}

GET_ALIASES_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "index": {"type": "string", "description": "Index name or pattern"},
        "alias": {"type": "string", "description": "Alias name"},
    },
    "additionalProperties": False,
}
