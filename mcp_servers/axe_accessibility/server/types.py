"""
Type definitions for MCP server responses and handlers.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config import A11yConfig


@dataclass(slots=True)
class ToolContent:
    """Single content item in tool response."""

    type: str
    text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(slots=True)
class ToolResult:
    """Result of a tool execution."""

    content: list[ToolContent] = field(default_factory=list)
    # Raw payload kept for in-process callers and tests; not part of the wire format.
    data: Any | None = None

    @classmethod
    def json(cls, data: Any) -> ToolResult:
        """Single text item holding the payload as indented JSON."""
        text = json.dumps(data, indent=2, ensure_ascii=False)
        return cls(content=[ToolContent(type="text", text=text)], data=data)

    def to_content_list(self) -> list[dict[str, Any]]:
        return [c.to_dict() for c in self.content]


HandlerFunc = Callable[["A11yConfig", dict[str, Any]], ToolResult]
