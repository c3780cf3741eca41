from __future__ import annotations

import json
from typing import Any, Dict

from ..client import Failure

ToolResult = Dict[str, Any]


def text_result(text: str) -> ToolResult:
    return {"content": [{"type": "text", "text": text}]}


def json_result(data: Any) -> ToolResult:
    return text_result(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def error_text(text: str) -> ToolResult:
    return {"content": [{"type": "text", "text": text}], "isError": True}


def error_result(label: str, failure: Failure) -> ToolResult:
    """Render a Failure as `<label>: <reason>` with the error flag set."""
    return error_text(f"{label}: {failure.reason}")
