"""Plain-text rendering of Drafty rich message content.

A Drafty document is either a plain string or a mapping with:

* ``txt``: the text, indexed by code point;
* ``fmt``: spans ``{"at": int, "len": int, "tp": str}`` or ``{"at", "len", "key"}``
  where ``key`` indexes ``ent``; ``at == -1`` marks an attachment with no text;
* ``ent``: entities ``{"tp": str, "data": {...}}`` such as links, mentions and images.

The plain-text form keeps inline styles as lightweight markup so a short preview
still reads naturally in a notification.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from pushcore.push.errors import ContentRenderError


class ContentRenderer(Protocol):
  """Contract for turning rich message content into plain text."""

  def to_plain_text(self, content: Any) -> str:
    """Render content; raise ContentRenderError when it is malformed."""


@dataclass(frozen=True)
class _Span:
  start: int
  end: int
  tp: str
  data: dict[str, Any] = field(default_factory=dict)


_WRAPPERS = {"ST": "*", "EM": "_", "DL": "~", "CO": "`"}


class DraftyRenderer:
  """Render Drafty documents to plain text."""

  def to_plain_text(self, content: Any) -> str:
    if content is None:
      return ""
    if isinstance(content, str):
      return content
    if not isinstance(content, dict):
      raise ContentRenderError(f"Unsupported content type: {type(content).__name__}")

    text = content.get("txt") or ""
    if not isinstance(text, str):
      raise ContentRenderError("Drafty 'txt' must be a string")

    spans, attachments = _parse_spans(content, len(text))
    rendered = _render_nodes(text, 0, len(text), _build_tree(spans))
    for attachment in attachments:
      decorated = _decorate(attachment, "")
      if decorated:
        rendered = f"{rendered} {decorated}" if rendered else decorated
    return rendered


def _parse_spans(content: dict[str, Any], text_len: int) -> tuple[list[_Span], list[_Span]]:
  fmt = content.get("fmt") or []
  ent = content.get("ent") or []
  if not isinstance(fmt, list) or not isinstance(ent, list):
    raise ContentRenderError("Drafty 'fmt' and 'ent' must be lists")

  spans: list[_Span] = []
  attachments: list[_Span] = []
  for item in fmt:
    if not isinstance(item, dict):
      raise ContentRenderError("Drafty format entries must be objects")

    at = item.get("at", 0)
    length = item.get("len", 0)
    if not isinstance(at, int) or not isinstance(length, int) or length < 0:
      raise ContentRenderError(f"Invalid Drafty span at={at!r} len={length!r}")

    tp = item.get("tp") or ""
    data: dict[str, Any] = {}
    if not tp:
      # No inline style: the span refers to an entity.
      key = item.get("key", 0)
      if not isinstance(key, int) or key < 0 or key >= len(ent):
        raise ContentRenderError(f"Drafty entity key out of range: {key!r}")
      entity = ent[key]
      if not isinstance(entity, dict):
        raise ContentRenderError("Drafty entities must be objects")
      tp = entity.get("tp") or ""
      data = entity.get("data") or {}
      if not isinstance(data, dict):
        raise ContentRenderError("Drafty entity data must be an object")

    if at == -1:
      attachments.append(_Span(start=text_len, end=text_len, tp=tp, data=data))
      continue
    if at < 0 or at + length > text_len:
      raise ContentRenderError(f"Drafty span out of bounds: at={at} len={length} text_len={text_len}")
    spans.append(_Span(start=at, end=at + length, tp=tp, data=data))

  # Outer spans first so children nest under the span that encloses them.
  spans.sort(key=lambda span: (span.start, -(span.end - span.start)))
  return spans, attachments


def _build_tree(spans: list[_Span]) -> list[tuple[_Span, list]]:
  tree: list[tuple[_Span, list]] = []
  i = 0
  while i < len(spans):
    parent = spans[i]
    children = []
    j = i + 1
    while j < len(spans) and spans[j].start < parent.end:
      # Spans crossing the parent's end are dropped.
      if spans[j].end <= parent.end:
        children.append(spans[j])
      j += 1
    tree.append((parent, _build_tree(children)))
    i = j
  return tree


def _render_nodes(text: str, start: int, end: int, nodes: list[tuple[_Span, list]]) -> str:
  parts: list[str] = []
  pos = start
  for span, children in nodes:
    parts.append(text[pos : span.start])
    inner = _render_nodes(text, span.start, span.end, children)
    parts.append(_decorate(span, inner))
    pos = span.end
  parts.append(text[pos:end])
  return "".join(parts)


def _decorate(span: _Span, inner: str) -> str:
  tp = span.tp.upper()
  wrapper = _WRAPPERS.get(tp)
  if wrapper is not None:
    return f"{wrapper}{inner}{wrapper}"
  if tp == "BR":
    return "\n"
  if tp == "LN":
    url = span.data.get("url") or ""
    return f"[{inner}]({url})" if url else inner
  if tp == "IM":
    return f"[IMAGE '{span.data.get('name') or ''}']"
  if tp == "EX":
    return f"[FILE '{span.data.get('name') or ''}']"
  # MN, HT and unknown styles keep their text unchanged.
  return inner
