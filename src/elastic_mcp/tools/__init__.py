from __future__ import annotations

from typing import List

from ..client import ElasticClient
from ..mcp import ToolSpec
from . import cluster, indices, search, security

TOOL_MODULES = (search, security, indices, cluster)


def build_all(client: ElasticClient) -> List[ToolSpec]:
    specs: List[ToolSpec] = []
    for module in TOOL_MODULES:
        specs.extend(module.build_tools(client))
    return specs
