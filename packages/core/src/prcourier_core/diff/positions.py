"""Unified-diff parsing into per-file coordinate tables.

GitHub's review API anchors a comment by ``position``: a counter that runs
through the diff body of a file. This module walks the full PR diff once
and records, for every added line, the new-file line number and the
coordinate the forge expects for it.

Position semantics: the counter restarts at every hunk header and at every
context line, so only offsets within the most recent run of additions are
addressable. Removed lines neither advance the counter nor the new-file
line number. This matches what the posting tool has always sent; whether
GitHub really resets on context lines still needs checking against the
live API (its docs describe a counter that keeps growing through a hunk).

The parse is tolerant: binary markers, rename notices, ``index`` lines and
anything else that does not fit are skipped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable

from prcourier_core.models import PositionIndex

logger = logging.getLogger(__name__)

_FILE_HEADER_PREFIX = "diff --git a/"
_NEW_PATH_SEPARATOR_RE = re.compile(r" b/")
_HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)(?:,\d+)? @@")

# (new_line, position) -> coordinate stored in the index
CoordinateFn = Callable[[int, int], int]


def _position_coordinate(new_line: int, position: int) -> int:
    return position


def _line_coordinate(new_line: int, position: int) -> int:
    return new_line


def _header_path(line: str) -> str | None:
    """Return the new path named by a ``diff --git a/<old> b/<new>`` line.

    Paths may themselves contain `` b/``, so every split point is tried and
    the one where old and new path agree wins. Renames fall back to the
    first split; the ``+++ b/`` line that follows corrects the key when
    that guess is wrong.
    """
    if not line.startswith(_FILE_HEADER_PREFIX):
        return None
    rest = line[len(_FILE_HEADER_PREFIX) :]
    splits = [m.start() for m in _NEW_PATH_SEPARATOR_RE.finditer(rest)]
    for i in splits:
        if rest[:i] == rest[i + 3 :]:
            return rest[i + 3 :]
    if splits and rest[splits[0] + 3 :]:
        return rest[splits[0] + 3 :]
    return None


def _build_index(diff_text: str, coordinate: CoordinateFn) -> PositionIndex:
    index: PositionIndex = {}
    current: dict[int, int] | None = None
    current_path: str | None = None
    created = False
    position = 0
    new_line = 0
    in_hunk = False

    # Only "\n" ends a diff line; str.splitlines() would also break on form
    # feeds and unicode separators inside line content.
    for line in diff_text.split("\n"):
        if line.endswith("\r"):
            line = line[:-1]

        if line.startswith("diff --git"):
            current_path = _header_path(line)
            position = 0
            new_line = 0
            in_hunk = False
            if current_path is not None:
                created = current_path not in index
                current = index.setdefault(current_path, {})
            else:
                logger.debug("Unrecognised file header, ignoring block: %s", line)
                current = None
            continue

        if line.startswith("+++"):
            if current is not None and not in_hunk and line.startswith("+++ b/"):
                new_path = line[len("+++ b/") :]
                if new_path and new_path != current_path:
                    logger.debug("File header named %s, using %s from +++ line", current_path, new_path)
                    if created and not current:
                        del index[current_path]
                    created = new_path not in index
                    current_path = new_path
                    current = index.setdefault(new_path, {})
            continue

        if line.startswith("---"):
            continue

        if line.startswith("@@"):
            match = _HUNK_HEADER_RE.match(line)
            if match and current is not None:
                new_line = int(match.group(1)) - 1
                position = 0
                in_hunk = True
            continue

        if not in_hunk or current is None:
            continue

        if line.startswith("+"):
            position += 1
            new_line += 1
            current[new_line] = coordinate(new_line, position)
        elif line.startswith("-"):
            continue  # not part of the new file
        elif line.startswith("\\"):
            continue  # "\ No newline at end of file"
        else:
            new_line += 1
            position = 0

    return index


def build_position_index(diff_text: str) -> PositionIndex:
    """Map every added line of every file to its GitHub review ``position``."""
    return _build_index(diff_text, _position_coordinate)


def build_line_index(diff_text: str) -> PositionIndex:
    """Map every added line to itself, for forges that anchor on new-file line numbers."""
    return _build_index(diff_text, _line_coordinate)


_BUILDERS: dict[str, Callable[[str], PositionIndex]] = {
    "position": build_position_index,
    "line": build_line_index,
}


def get_index_builder(coordinate: str) -> Callable[[str], PositionIndex]:
    try:
        return _BUILDERS[coordinate]
    except KeyError:
        raise ValueError(f"Unknown coordinate system: {coordinate!r}. Choose 'position' or 'line'.")


def assemble_diff_text(files: Iterable) -> str:
    """Rebuild unified-diff text from per-file patches.

    ``files`` are objects with ``filename``, ``previous_filename`` and
    ``patch`` attributes, as returned by GitHub's "list pull request files"
    endpoint. Each patch is only the hunk body, so a ``diff --git`` header is
    prepended to make the text parseable as one multi-file diff. Files
    without a patch (binary, too large) still get a header and no hunks.
    """
    chunks = []
    for f in files:
        new_path = f.filename
        old_path = getattr(f, "previous_filename", None) or new_path
        chunks.append(f"diff --git a/{old_path} b/{new_path}")
        chunks.append(f"--- a/{old_path}")
        chunks.append(f"+++ b/{new_path}")
        patch = getattr(f, "patch", None)
        if patch:
            chunks.append(patch.rstrip("\n"))
    return "\n".join(chunks) + ("\n" if chunks else "")
