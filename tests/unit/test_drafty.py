from __future__ import annotations

import pytest

from pushcore.drafty import DraftyRenderer
from pushcore.push.errors import ContentRenderError


def _render(content) -> str:
  return DraftyRenderer().to_plain_text(content)


def test_plain_string_is_returned_unchanged():
  assert _render("Hello, world") == "Hello, world"


def test_none_renders_empty():
  assert _render(None) == ""


def test_inline_styles_are_marked_up():
  doc = {"txt": "this is bold and italic", "fmt": [{"at": 8, "len": 4, "tp": "ST"}, {"at": 17, "len": 6, "tp": "EM"}]}
  assert _render(doc) == "this is *bold* and _italic_"


def test_nested_styles_render_inside_out():
  doc = {"txt": "strong emphasis", "fmt": [{"at": 0, "len": 15, "tp": "ST"}, {"at": 7, "len": 8, "tp": "EM"}]}
  assert _render(doc) == "*strong _emphasis_*"


def test_line_break_replaces_nothing_and_inserts_newline():
  doc = {"txt": "line oneline two", "fmt": [{"at": 8, "len": 0, "tp": "BR"}]}
  assert _render(doc) == "line one\nline two"


def test_link_entity_renders_with_url():
  doc = {"txt": "see docs", "fmt": [{"at": 4, "len": 4, "key": 0}], "ent": [{"tp": "LN", "data": {"url": "https://example.com"}}]}
  assert _render(doc) == "see [docs](https://example.com)"


def test_mention_keeps_text():
  doc = {"txt": "hi @bob", "fmt": [{"at": 3, "len": 4}], "ent": [{"tp": "MN", "data": {"val": "usrBob"}}]}
  assert _render(doc) == "hi @bob"


def test_attachment_is_appended():
  doc = {"txt": "photo", "fmt": [{"at": -1, "len": 0, "key": 0}], "ent": [{"tp": "IM", "data": {"name": "cat.jpg"}}]}
  assert _render(doc) == "photo [IMAGE 'cat.jpg']"


def test_attachment_only_message():
  doc = {"fmt": [{"at": -1, "key": 0}], "ent": [{"tp": "EX", "data": {"name": "report.pdf"}}]}
  assert _render(doc) == "[FILE 'report.pdf']"


def test_offsets_count_code_points():
  doc = {"txt": "привет мир", "fmt": [{"at": 7, "len": 3, "tp": "ST"}]}
  assert _render(doc) == "привет *мир*"


def test_span_out_of_bounds_fails():
  with pytest.raises(ContentRenderError):
    _render({"txt": "short", "fmt": [{"at": 3, "len": 10, "tp": "ST"}]})


def test_missing_entity_fails():
  with pytest.raises(ContentRenderError):
    _render({"txt": "link", "fmt": [{"at": 0, "len": 4, "key": 2}], "ent": []})


def test_unsupported_content_type_fails():
  with pytest.raises(ContentRenderError):
    _render(12345)
