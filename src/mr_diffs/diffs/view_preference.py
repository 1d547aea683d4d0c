"""Normalization of the requested diff view mode."""

from typing import Optional

from mr_diffs.models import DiffViewMode

_VIEW_MODES = {mode.value: mode for mode in DiffViewMode}


def normalize_view(requested) -> Optional[DiffViewMode]:
    """Map a requested view to a DiffViewMode.

    Only the exact strings "inline" and "parallel" are accepted; anything else
    returns None, meaning nothing should be persisted.
    """
    if not isinstance(requested, str):
        return None
    return _VIEW_MODES.get(requested)
