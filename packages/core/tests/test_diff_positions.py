"""Tests for diff position indexing, critical for correct GitHub comment placement."""

from types import SimpleNamespace

import pytest

from prcourier_core.diff.positions import (
    assemble_diff_text,
    build_line_index,
    build_position_index,
    get_index_builder,
)

SINGLE_HUNK = """\
diff --git a/src/app.py b/src/app.py
index 1111111..2222222 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,3 +1,4 @@
 first
+added one
-removed
+added two
"""


def test_context_added_removed_added():
    """Context resets position; the removed line between the two additions does not."""
    index = build_position_index(SINGLE_HUNK)
    # " first" -> new line 1, position reset to 0
    # "+added one" -> new line 2, position 1
    # "-removed" -> nothing advances
    # "+added two" -> new line 3, position 2
    assert index == {"src/app.py": {2: 1, 3: 2}}


def test_context_line_resets_position():
    diff = """\
diff --git a/a.py b/a.py
@@ -1,4 +1,6 @@
+one
+two
 context
+three
"""
    index = build_position_index(diff)
    assert index["a.py"] == {1: 1, 2: 2, 4: 1}


def test_hunk_header_resets_position_and_line():
    diff = """\
diff --git a/a.py b/a.py
@@ -1,2 +1,3 @@
+one
+two
@@ -20,2 +21,3 @@
+three
"""
    index = build_position_index(diff)
    assert index["a.py"] == {1: 1, 2: 2, 21: 1}


def test_context_and_removed_lines_are_never_keyed():
    diff = """\
diff --git a/a.py b/a.py
@@ -5,3 +5,2 @@
 keep
-gone
 keep too
"""
    index = build_position_index(diff)
    assert index == {"a.py": {}}


def test_multiple_files_are_indexed_separately():
    diff = """\
diff --git a/a.py b/a.py
--- a/a.py
+++ b/a.py
@@ -1,1 +1,2 @@
 x
+y
diff --git a/b.py b/b.py
--- a/b.py
+++ b/b.py
@@ -10,1 +10,2 @@
+z
 w
"""
    index = build_position_index(diff)
    assert index == {"a.py": {2: 1}, "b.py": {10: 1}}


def test_new_file_block_resets_hunk_state():
    """Lines after a new file header but before its first hunk are not attributed anywhere."""
    diff = """\
diff --git a/a.py b/a.py
@@ -1,1 +1,2 @@
+a
diff --git a/b.py b/b.py
+not in a hunk
"""
    index = build_position_index(diff)
    assert index == {"a.py": {1: 1}, "b.py": {}}


def test_rename_uses_new_path():
    diff = """\
diff --git a/old/name.py b/new/name.py
similarity index 90%
rename from old/name.py
rename to new/name.py
@@ -1,1 +1,2 @@
 x
+y
"""
    assert build_position_index(diff) == {"new/name.py": {2: 1}}


def test_path_containing_b_directory():
    diff = "diff --git a/lib/b/x.py b/lib/b/x.py\n@@ -1,1 +1,1 @@\n+x\n"
    assert build_position_index(diff) == {"lib/b/x.py": {1: 1}}


def test_hunk_header_without_lengths():
    diff = "diff --git a/one.txt b/one.txt\n@@ -0,0 +1 @@\n+only line\n"
    assert build_position_index(diff) == {"one.txt": {1: 1}}


def test_hunk_header_outside_file_block_is_ignored():
    diff = "@@ -1,1 +1,2 @@\n+orphan\n"
    assert build_position_index(diff) == {}


def test_malformed_hunk_header_does_not_raise():
    diff = "diff --git a/a.py b/a.py\n@@ bad header @@\n+line one\n"
    assert build_position_index(diff) == {"a.py": {}}


def test_binary_file_markers_are_tolerated():
    diff = """\
diff --git a/logo.png b/logo.png
index 1111111..2222222 100644
Binary files a/logo.png and b/logo.png differ
diff --git a/a.py b/a.py
@@ -1,1 +1,2 @@
 x
+y
"""
    assert build_position_index(diff) == {"logo.png": {}, "a.py": {2: 1}}


def test_no_newline_marker_does_not_advance_line():
    diff = """\
diff --git a/a.py b/a.py
@@ -1,1 +1,2 @@
+one
\\ No newline at end of file
+two
"""
    assert build_position_index(diff)["a.py"] == {1: 1, 2: 2}


def test_form_feed_in_context_line_is_one_line():
    diff = "diff --git a/a.py b/a.py\n@@ -1,1 +1,2 @@\n \x0c\n+added\n"
    assert build_position_index(diff) == {"a.py": {2: 1}}


def test_unicode_line_separator_in_added_line_is_one_line():
    diff = "diff --git a/a.js b/a.js\n@@ -1,1 +1,3 @@\n+s = '\u2028'\n+next\n x\n"
    assert build_position_index(diff) == {"a.js": {1: 1, 2: 2}}


def test_crlf_line_endings():
    diff = "diff --git a/a.py b/a.py\r\n@@ -1,1 +1,2 @@\r\n x\r\n+y\r\n"
    assert build_position_index(diff) == {"a.py": {2: 1}}


def test_header_with_b_segment_in_unchanged_path():
    diff = "diff --git a/x b/y.py b/x b/y.py\n@@ -1,1 +1,1 @@\n+x\n"
    assert build_position_index(diff) == {"x b/y.py": {1: 1}}


def test_plus_plus_plus_line_names_renamed_path():
    diff = """\
diff --git a/old b/x b/new.py
--- a/old b/x
+++ b/new.py
@@ -1,1 +1,2 @@
 x
+y
"""
    assert build_position_index(diff) == {"new.py": {2: 1}}


def test_empty_diff():
    assert build_position_index("") == {}


def test_parsing_is_idempotent():
    assert build_position_index(SINGLE_HUNK) == build_position_index(SINGLE_HUNK)


def test_line_index_maps_lines_to_themselves():
    assert build_line_index(SINGLE_HUNK) == {"src/app.py": {2: 2, 3: 3}}


class TestGetIndexBuilder:
    def test_position(self):
        assert get_index_builder("position") is build_position_index

    def test_line(self):
        assert get_index_builder("line") is build_line_index

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown coordinate system"):
            get_index_builder("offset")


class TestAssembleDiffText:
    def test_builds_parseable_multi_file_diff(self):
        files = [
            SimpleNamespace(filename="a.py", previous_filename=None, patch="@@ -1,1 +1,2 @@\n x\n+y"),
            SimpleNamespace(filename="b.py", previous_filename="old_b.py", patch="@@ -3,1 +3,2 @@\n+z\n w"),
        ]
        text = assemble_diff_text(files)
        assert "diff --git a/old_b.py b/b.py" in text
        assert build_position_index(text) == {"a.py": {2: 1}, "b.py": {3: 1}}

    def test_file_without_patch_gets_header_only(self):
        files = [SimpleNamespace(filename="logo.png", previous_filename=None, patch=None)]
        text = assemble_diff_text(files)
        assert text.startswith("diff --git a/logo.png b/logo.png")
        assert build_position_index(text) == {"logo.png": {}}

    def test_no_files(self):
        assert assemble_diff_text([]) == ""

    def test_filename_containing_b_segment_keeps_its_findings(self):
        files = [SimpleNamespace(filename="x b/y.py", previous_filename=None, patch="@@ -1,1 +1,2 @@\n x\n+y")]
        assert build_position_index(assemble_diff_text(files)) == {"x b/y.py": {2: 1}}
