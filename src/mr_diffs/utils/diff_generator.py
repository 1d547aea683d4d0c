"""Utilities for generating and rendering line diffs."""

import difflib
from typing import Optional

from mr_diffs.models import BlobDiff, DiffFileRecord, DiffLine, Hunk, LineType

DEFAULT_CONTEXT_LINES = 3

# Same sniffing window git uses for its binary heuristic
BINARY_SNIFF_BYTES = 8000

SUBPROJECT_COMMIT_PREFIX = "Subproject commit"
NO_NEWLINE_MARKER = "\\ No newline at end of file"


def is_binary_content(content: bytes) -> bool:
    """Return True if content looks binary (NUL byte near the start)."""
    return b"\0" in content[:BINARY_SNIFF_BYTES]


def _unified_range(start: int, stop: int) -> tuple[int, int]:
    """Convert a zero-based slice into a unified-diff (start, count) pair."""
    length = stop - start
    beginning = start + 1
    if not length:
        # Empty ranges point at the line before the change
        beginning -= 1
    return beginning, length


def _split_lines(content: str) -> list[str]:
    """Split on "\\n" only, keeping each line's ending.

    The last element has no "\\n" when the content lacks a final newline.
    """
    lines = [line + "\n" for line in content.split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def _diff_line(line_type: LineType, raw: str, old_line=None, new_line=None) -> DiffLine:
    return DiffLine(
        type=line_type,
        text=raw[:-1] if raw.endswith("\n") else raw,
        old_line=old_line,
        new_line=new_line,
        missing_newline=not raw.endswith("\n"),
    )


def generate_hunks(
    original_content: str,
    modified_content: str,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> list[Hunk]:
    """Split the line diff of two texts into hunks.

    Lines are compared with their endings, so CRLF conversions and a dropped
    final newline show up as changes.

    Args:
        original_content: File content on the base side ("" if absent).
        modified_content: File content on the head side ("" if absent).
        context_lines: Unchanged lines kept around each change.

    Returns:
        Ordered list of Hunk objects. Empty list if there are no line changes.
    """
    if original_content == modified_content:
        return []

    original_lines = _split_lines(original_content)
    modified_lines = _split_lines(modified_content)
    matcher = difflib.SequenceMatcher(None, original_lines, modified_lines, autojunk=False)

    hunks = []
    for group in matcher.get_grouped_opcodes(context_lines):
        first, last = group[0], group[-1]
        old_start, old_count = _unified_range(first[1], last[2])
        new_start, new_count = _unified_range(first[3], last[4])

        lines: list[DiffLine] = []
        for tag, i1, i2, j1, j2 in group:
            if tag == "equal":
                for offset, raw in enumerate(original_lines[i1:i2]):
                    lines.append(_diff_line(
                        LineType.CONTEXT, raw, old_line=i1 + offset + 1, new_line=j1 + offset + 1,
                    ))
                continue
            if tag in ("replace", "delete"):
                for offset, raw in enumerate(original_lines[i1:i2]):
                    lines.append(_diff_line(LineType.DELETION, raw, old_line=i1 + offset + 1))
            if tag in ("replace", "insert"):
                for offset, raw in enumerate(modified_lines[j1:j2]):
                    lines.append(_diff_line(LineType.ADDITION, raw, new_line=j1 + offset + 1))

        hunks.append(Hunk(
            old_start_line=old_start,
            old_line_count=old_count,
            new_start_line=new_start,
            new_line_count=new_count,
            lines=tuple(lines),
        ))

    return hunks


def render_submodule_hunk(
    path: str,
    old_commit_id: Optional[str],
    new_commit_id: Optional[str],
) -> Hunk:
    """Render a submodule pointer change as readable "Subproject commit" lines.

    The pointer itself is an opaque commit id, so the hunk shows one line per
    side that has a pointer instead of a text diff of the id.
    """
    lines = []
    if old_commit_id is not None:
        lines.append(DiffLine(
            type=LineType.DELETION,
            text=f"{SUBPROJECT_COMMIT_PREFIX} {old_commit_id}",
            old_line=1,
        ))
    if new_commit_id is not None:
        lines.append(DiffLine(
            type=LineType.ADDITION,
            text=f"{SUBPROJECT_COMMIT_PREFIX} {new_commit_id}",
            new_line=1,
        ))
    old_count = 1 if old_commit_id is not None else 0
    new_count = 1 if new_commit_id is not None else 0
    return Hunk(
        old_start_line=old_count,
        old_line_count=old_count,
        new_start_line=new_count,
        new_line_count=new_count,
        lines=tuple(lines),
    )


def render_unified_diff(record: DiffFileRecord) -> str:
    """Render a file record as a git-compatible unified diff.

    Returns:
        Unified diff string with a/ b/ prefixes. Empty string if nothing changed.
    """
    from_file = f"a/{record.old_path}" if record.old_path is not None else "/dev/null"
    to_file = f"b/{record.new_path}" if record.new_path is not None else "/dev/null"

    if record.is_binary:
        return f"Binary files {from_file} and {to_file} differ"
    if not record.hunks:
        return ""

    diff_lines = [f"--- {from_file}", f"+++ {to_file}"]
    for hunk in record.hunks:
        diff_lines.append(hunk.header)
        for line in hunk.lines:
            diff_lines.append(f"{line.prefix}{line.text}")
            if line.missing_newline:
                diff_lines.append(NO_NEWLINE_MARKER)
    return "\n".join(diff_lines)


class LineDiffEngine:
    """Default blob diff engine: reads blobs from a store and diffs their lines."""

    def __init__(self, store, context_lines: int = DEFAULT_CONTEXT_LINES):
        """Initialize the engine.

        Args:
            store: Object store exposing read_blob(blob_id) -> bytes.
            context_lines: Unchanged lines kept around each change.
        """
        self.store = store
        self.context_lines = context_lines

    def _read(self, blob_id: Optional[str]) -> bytes:
        if blob_id is None:
            return b""
        return self.store.read_blob(blob_id)

    def diff(self, old_blob_id: Optional[str], new_blob_id: Optional[str]) -> BlobDiff:
        if old_blob_id is not None and old_blob_id == new_blob_id:
            return BlobDiff()

        old_content = self._read(old_blob_id)
        new_content = self._read(new_blob_id)
        if is_binary_content(old_content) or is_binary_content(new_content):
            return BlobDiff(is_binary=True)

        hunks = generate_hunks(
            old_content.decode("utf-8", errors="replace"),
            new_content.decode("utf-8", errors="replace"),
            context_lines=self.context_lines,
        )
        return BlobDiff(hunks=tuple(hunks))
