"""Uniform descriptor + handler interface contributed by every capability group."""

from __future__ import annotations

__all__ = [
    'NoParams',
    'ToolDefinition',
    'ToolHandler',
    'ToolParams',
]

import dataclasses
import typing
from collections.abc import Awaitable, Callable, Mapping

import mcp.types
import pydantic

if typing.TYPE_CHECKING:
    from browser_devtools.context import ToolContext
    from browser_devtools.response import ToolResponse


class ToolParams(pydantic.BaseModel):
    """Base for tool parameter models. Unknown arguments are rejected."""

    model_config = pydantic.ConfigDict(
        extra='forbid',
        frozen=True,
    )


class NoParams(ToolParams):
    """Tools that take no arguments."""


type ToolHandler[P: ToolParams] = Callable[[P, ToolResponse, ToolContext], Awaitable[None]]


@dataclasses.dataclass(frozen=True, slots=True)
class ToolDefinition[P: ToolParams]:
    """One remotely callable tool.

    The handler reports success by returning and failure by raising; all output
    goes through the ``ToolResponse`` it is given.
    """

    name: str
    description: str
    params: type[P]
    handler: ToolHandler[P]
    annotations: mcp.types.ToolAnnotations | None = None

    @property
    def input_schema(self) -> dict[str, typing.Any]:
        return self.params.model_json_schema()

    def parse_params(self, arguments: Mapping[str, typing.Any] | None) -> P:
        return self.params.model_validate(dict(arguments or {}))

    def to_mcp_tool(self) -> mcp.types.Tool:
        return mcp.types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
            annotations=self.annotations,
        )
