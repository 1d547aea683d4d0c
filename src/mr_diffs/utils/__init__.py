"""Utilities for generating and rendering diffs."""

from mr_diffs.utils.diff_generator import (
    LineDiffEngine,
    generate_hunks,
    is_binary_content,
    render_submodule_hunk,
    render_unified_diff,
)

__all__ = [
    "LineDiffEngine",
    "generate_hunks",
    "is_binary_content",
    "render_submodule_hunk",
    "render_unified_diff",
]
