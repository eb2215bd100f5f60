"""
MCP server exposing cryptographically secure random value tools.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent, ToolAnnotations
from pydantic import BaseModel, Field

import secure_random
from secure_random import INT64_MAX, INT64_MIN, RandomGenerationError, bound_from_optional

logger = logging.getLogger(__name__)

SERVER_NAME = "random-number-mcp"
SERVER_VERSION = "0.1.0"

mcp = FastMCP(
    name=SERVER_NAME,
    instructions=(
        "Use the random_int, random_float and random_ascii tools to get "
        "cryptographically secure random integers, floating-point numbers "
        "and printable ASCII strings."
    ),
)

READ_ONLY = ToolAnnotations(readOnlyHint=True)

Int64Arg = Annotated[
    int | None,
    Field(ge=INT64_MIN, le=INT64_MAX, description="Signed 64-bit integer bound."),
]
FloatArg = Annotated[float | None, Field(description="Finite double-precision bound.")]
IncludeArg = Annotated[bool, Field(description="Whether the bound itself may be returned.")]


class RandomIntResponse(BaseModel):
    value: int


class RandomFloatResponse(BaseModel):
    value: float


class RandomAsciiResponse(BaseModel):
    value: str


def _value_result(text: str, value: Any) -> CallToolResult:
    """Report ``value`` both as plain text and as structured content."""
    return CallToolResult(
        content=[TextContent(type="text", text=text)],
        structuredContent={"value": value},
    )


@mcp.tool(
    annotations=READ_ONLY,
    description=(
        "Returns a cryptographically secure random integer. "
        "Optional arguments: min, max, includeMin, includeMax."
    ),
)
async def random_int(
    min: Int64Arg = None,
    max: Int64Arg = None,
    includeMin: IncludeArg = True,
    includeMax: IncludeArg = True,
) -> Annotated[CallToolResult, RandomIntResponse]:
    logger.info(
        "random_int request: min=%s max=%s includeMin=%s includeMax=%s",
        min,
        max,
        includeMin,
        includeMax,
    )
    try:
        value = secure_random.random_int(
            bound_from_optional(min),
            bound_from_optional(max),
            include_min=includeMin,
            include_max=includeMax,
        )
    except RandomGenerationError as exc:
        logger.warning("random_int rejected: %s", exc)
        raise

    logger.info("random_int result: %d", value)
    return _value_result(str(value), value)


@mcp.tool(
    annotations=READ_ONLY,
    description=(
        "Returns a cryptographically secure random floating-point number. "
        "Optional arguments: min, max, includeMin, includeMax."
    ),
)
async def random_float(
    min: FloatArg = None,
    max: FloatArg = None,
    includeMin: IncludeArg = True,
    includeMax: IncludeArg = True,
) -> Annotated[CallToolResult, RandomFloatResponse]:
    logger.info(
        "random_float request: min=%r max=%r includeMin=%s includeMax=%s",
        min,
        max,
        includeMin,
        includeMax,
    )
    try:
        value = secure_random.random_float(
            bound_from_optional(min),
            bound_from_optional(max),
            include_min=includeMin,
            include_max=includeMax,
        )
    except RandomGenerationError as exc:
        logger.warning("random_float rejected: %s", exc)
        raise

    logger.info("random_float result: %r", value)
    # repr() is the shortest text that parses back to the same double.
    return _value_result(repr(value), value)


@mcp.tool(
    annotations=READ_ONLY,
    description=(
        "Returns a cryptographically secure random ASCII string. "
        "Required argument: length."
    ),
)
async def random_ascii(
    length: Annotated[int, Field(description="Number of printable ASCII characters.")],
) -> Annotated[CallToolResult, RandomAsciiResponse]:
    logger.info("random_ascii request: length=%s", length)
    try:
        value = secure_random.random_ascii(length)
    except RandomGenerationError as exc:
        logger.warning("random_ascii rejected: %s", exc)
        raise

    logger.info("random_ascii produced %d characters", len(value))
    return _value_result(value, value)
