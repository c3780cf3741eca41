from __future__ import annotations

from typing import Any, Dict, List
from urllib.parse import quote

from ..client import ElasticClient, Failure
from ..mcp import ToolSpec
from ..util.results import ToolResult, error_result, json_result, text_result

_SOURCE_FILTER: Dict[str, Any] = {
    "anyOf": [
        {"type": "boolean"},
        {"type": "array", "items": {"type": "string"}},
    ]
}


def _search_body(args: Dict[str, Any]) -> Dict[str, Any]:
    body: Dict[str, Any] = {"size": args["size"], "from": args["from"]}
    if "query" in args:
        body["query"] = args["query"]
    if args.get("sort"):
        body["sort"] = args["sort"]
    if "_source" in args:
        body["_source"] = args["_source"]
    if args.get("aggs"):
        body["aggs"] = args["aggs"]
    return body


def _summarize_hits(data: Dict[str, Any]) -> Dict[str, Any]:
    hits = data.get("hits") or {}
    total = hits.get("total")
    hit_list = hits.get("hits") or []
    total_value = total.get("value") if isinstance(total, dict) else total
    return {
        "summary": f"Found {total_value} results (showing {len(hit_list)})",
        "took_ms": data.get("took"),
        "timed_out": data.get("timed_out"),
        "total": total,
        "hits": [
            {
                "_id": h.get("_id"),
                "_index": h.get("_index"),
                "_score": h.get("_score"),
                "_source": h.get("_source"),
            }
            for h in hit_list
        ],
        "aggregations": data.get("aggregations"),
    }


def _msearch_docs(searches: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # header line then body line per search
    docs: List[Dict[str, Any]] = []
    for s in searches:
        docs.append({"index": s["index"]})
        docs.append({"query": s["query"] if "query" in s else {"match_all": {}}, "size": s.get("size", 10)})
    return docs


def build_tools(client: ElasticClient) -> List[ToolSpec]:
    async def search(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.post(f"/{args['index']}/_search", _search_body(args))
        if isinstance(outcome, Failure):
            return error_result("Search failed", outcome)
        data = outcome.data if isinstance(outcome.data, dict) else {}
        return json_result(_summarize_hits(data))

    async def esql_query(args: Dict[str, Any]) -> ToolResult:
        fmt = args["format"]
        outcome = await client.post("/_query", {"query": args["query"]}, {"format": fmt})
        if isinstance(outcome, Failure):
            return error_result("ES|QL query failed", outcome)
        data = outcome.data
        # csv/txt come back as plain text wrapped by the client
        if fmt != "json" and isinstance(data, dict) and set(data) == {"raw"}:
            return text_result(data["raw"])
        return json_result(data)

    async def get_document(args: Dict[str, Any]) -> ToolResult:
        params: Dict[str, Any] = {}
        source = args.get("_source")
        if source is not None:
            params["_source"] = ",".join(source) if isinstance(source, list) else source
        path = f"/{args['index']}/_doc/{quote(args['id'], safe='')}"
        outcome = await client.get(path, params)
        if isinstance(outcome, Failure):
            return error_result("Document not found or error", outcome)
        return json_result(outcome.data)

    async def count(args: Dict[str, Any]) -> ToolResult:
        body = {"query": args["query"]} if "query" in args else None
        outcome = await client.post(f"/{args['index']}/_count", body)
        if isinstance(outcome, Failure):
            return error_result("Count failed", outcome)
        data = outcome.data if isinstance(outcome.data, dict) else {}
        return text_result(f"Document count: {data.get('count')}")

    async def msearch(args: Dict[str, Any]) -> ToolResult:
        outcome = await client.post_ndjson("/_msearch", _msearch_docs(args["searches"]))
        if isinstance(outcome, Failure):
            return error_result("Multi-search failed", outcome)
        return json_result(outcome.data)

    return [
        ToolSpec(
            name="search",
            title="Search",
            description="Execute a search query using Elasticsearch Query DSL. Supports full-text search, filters, aggregations, and sorting.",
            input_schema=SEARCH_SCHEMA,
            handler=search,
        ),
        ToolSpec(
            name="esql_query",
            title="ES|QL Query",
            description="Execute an ES|QL query for data analysis. ES|QL is a piped query language for filtering, transforming, and aggregating data.",
            input_schema=ESQL_SCHEMA,
            handler=esql_query,
        ),
        ToolSpec(
            name="get_document",
            title="Get Document",
            description="Retrieve a specific document by its ID from an index.",
            input_schema=GET_DOCUMENT_SCHEMA,
            handler=get_document,
        ),
        ToolSpec(
            name="count",
            title="Count Documents",
            description="Count documents in an index that match a query.",
            input_schema=COUNT_SCHEMA,
            handler=count,
        ),
        ToolSpec(
            name="msearch",
            title="Multi-Search",
            description="Execute multiple search queries in a single request for efficiency.",
            input_schema=MSEARCH_SCHEMA,
            handler=msearch,
        ),
    ]


SEARCH_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["index"],
    "properties": {
        "index": {"type": "string", "description": 'Index name or pattern (e.g., "logs-*")'},
        "query": {"type": "object", "description": "Elasticsearch Query DSL object"},
        "size": {"type": "integer", "minimum": 0, "maximum": 10000, "default": 10, "description": "Number of results to return"},
        "from": {"type": "integer", "minimum": 0, "default": 0, "description": "Offset for pagination"},
        "sort": {"type": "array", "items": {"type": "object"}, "description": "Sort criteria"},
        "_source": {**_SOURCE_FILTER, "description": "Fields to include/exclude"},
        "aggs": {"type": "object", "description": "Aggregations"},
    },
    "additionalProperties": False,
}

ESQL_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["query"],
    "properties": {
        "query": {"type": "string", "description": "ES|QL query string"},
        "format": {"type": "string", "enum": ["json", "csv", "txt"], "default": "json", "description": "Response format"},
    },
    "additionalProperties": False,
}

GET_DOCUMENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["index", "id"],
    "properties": {
        "index": {"type": "string", "description": "Index name"},
        "id": {"type": "string", "description": "Document ID"},
        "_source": {**_SOURCE_FILTER, "description": "Fields to include"},
    },
    "additionalProperties": False,
}

COUNT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["index"],
    "properties": {
        "index": {"type": "string", "description": "Index name or pattern"},
        "query": {"type": "object", "description": "Optional Query DSL to filter documents"},
    },
    "additionalProperties": False,
}

MSEARCH_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["searches"],
    "properties": {
        "searches": {
            "type": "array",
            "minItems": 1,
            "description": "Array of search requests",
            "items": {
                "type": "object",
                "required": ["index"],
                "properties": {
                    "index": {"type": "string", "description": "Index name"},
                    "query": {"type": "object"},
                    "size": {"type": "integer", "minimum": 0},
                },
                "additionalProperties": False,
            },
        }
    },
    "additionalProperties": False,
}
