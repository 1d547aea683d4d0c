"""Adapters between host applications and the diffs service."""

from mr_diffs.adapters.endpoint import (
    DIFF_VIEW_COOKIE,
    DiffsEndpoint,
    EndpointResponse,
    parse_positive_int,
    render_result,
)

__all__ = [
    "DIFF_VIEW_COOKIE",
    "DiffsEndpoint",
    "EndpointResponse",
    "parse_positive_int",
    "render_result",
]
