"""Reasoning/document extraction from a growing LLM output buffer.

``extract`` is a pure function of the whole buffer and is re-run on every
delta. Priority:

1. ``<thinking>`` / ``<reasoning>`` regions become the reasoning text.
2. A closed ``<code>`` region is the document.
3. Otherwise a fallback ladder over the buffer with reasoning regions
   removed: doctype span, ``<html>`` span, fenced ``html`` block, generic
   fenced block holding HTML, then a line scan that closes unterminated
   ``<body>``/``<html>`` tags so a partial page still renders.

Rescanning the full buffer is quadratic over a stream, which is fine for
pages of tens of KB.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

THINKING_RE = re.compile(r"<thinking>(.*?)</thinking>", re.IGNORECASE | re.DOTALL)
REASONING_RE = re.compile(r"<reasoning>(.*?)</reasoning>", re.IGNORECASE | re.DOTALL)
CODE_RE = re.compile(r"<code>(.*?)</code>", re.IGNORECASE | re.DOTALL)

DOCTYPE_SPAN_RE = re.compile(r"<!DOCTYPE html>.*?</html>", re.IGNORECASE | re.DOTALL)
HTML_SPAN_RE = re.compile(r"<html.*?</html>", re.IGNORECASE | re.DOTALL)
FENCED_HTML_RE = re.compile(r"```html(.*?)```", re.IGNORECASE | re.DOTALL)
FENCED_ANY_RE = re.compile(r"```(.*?)```", re.DOTALL)

THINKING_LABEL = "🤔 **Thinking**"
REASONING_LABEL = "💡 **Reasoning**"
EXPLANATION_LABEL = "💭 **AI Explanation**"

# Short lines that look like page text leaking out of markup
_HTML_FRAGMENT_PATTERNS = (
    re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+$"),
    re.compile(r"^\d+[MK]? views"),
    re.compile(r"^Sign In$|^Search$|^Home$", re.IGNORECASE),
    re.compile(r"thumbnail|avatar|icon", re.IGNORECASE),
    re.compile(r"^[A-Z][a-z]+$"),
)


class MatchSource(str, Enum):
    """Which rule produced the document text."""

    TAGGED = "tagged"
    DOCTYPE = "doctype"
    HTML_TAG = "html_tag"
    FENCED_HTML = "fenced_html"
    FENCED_GENERIC = "fenced_generic"
    LINE_SCAN = "line_scan"
    NONE = "none"


@dataclass(frozen=True)
class Extraction:
    reasoning: str | None
    document: str
    source: MatchSource


def extract_reasoning(buffer: str) -> str | None:
    thinking = THINKING_RE.search(buffer)
    reasoning = REASONING_RE.search(buffer)

    combined = ""
    if thinking:
        combined += f"{THINKING_LABEL}\n{thinking.group(1).strip()}\n\n"
    if reasoning:
        combined += f"{REASONING_LABEL}\n{reasoning.group(1).strip()}"
    return combined or None


def strip_reasoning(buffer: str) -> str:
    cleaned = THINKING_RE.sub("", buffer)
    cleaned = REASONING_RE.sub("", cleaned)
    return cleaned.strip()


def _starts_document(line: str) -> bool:
    return (
        line.startswith("<!DOCTYPE")
        or line.startswith("<html")
        or (line.startswith("<") and "html" in line and ">" in line)
    )


def _scan_lines(content: str) -> str:
    lines = content.split("\n")

    start = next((i for i, line in enumerate(lines) if _starts_document(line.strip())), -1)
    if start < 0:
        return ""

    html_lines = lines[start:]
    end = len(html_lines)
    found_end = False
    for i in range(len(html_lines) - 1, -1, -1):
        if "</html>" in html_lines[i]:
            end = i + 1
            found_end = True
            break

    document = "\n".join(html_lines[:end])
    if not found_end and document.strip():
        if "<body" in document and "</body>" not in document:
            document += "\n</body>"
        if ("<html" in document or "<!DOCTYPE" in document) and "</html>" not in document:
            document += "\n</html>"
    return document


def extract_document(buffer: str) -> tuple[str, MatchSource]:
    """Run the fallback ladder; ``("", NONE)`` means not enough structure yet."""
    content = strip_reasoning(buffer)

    match = DOCTYPE_SPAN_RE.search(content)
    if match:
        return match.group(0), MatchSource.DOCTYPE

    match = HTML_SPAN_RE.search(content)
    if match:
        return match.group(0), MatchSource.HTML_TAG

    match = FENCED_HTML_RE.search(content)
    if match:
        return match.group(1).strip(), MatchSource.FENCED_HTML

    match = FENCED_ANY_RE.search(content)
    if match:
        block = match.group(1).strip()
        if "<!DOCTYPE html>" in block or "<html" in block:
            return block, MatchSource.FENCED_GENERIC

    document = _scan_lines(content)
    if document:
        return document, MatchSource.LINE_SCAN
    return "", MatchSource.NONE


def extract(buffer: str) -> Extraction:
    reasoning = extract_reasoning(buffer)

    code = CODE_RE.search(buffer)
    if code:
        return Extraction(reasoning, code.group(1).strip(), MatchSource.TAGGED)

    document, source = extract_document(buffer)
    return Extraction(reasoning, document, source)


def is_substantially_complete(document: str, min_length: int = 100) -> bool:
    """Whether a document is worth rendering in place of the current one."""
    return len(document) > min_length and "</html>" in document


def is_html_fragment(text: str) -> bool:
    stripped = text.strip()
    return any(pattern.search(stripped) for pattern in _HTML_FRAGMENT_PATTERNS)


def extract_explanation(buffer: str) -> str | None:
    """Collect prose written before the HTML when no tags were used."""
    collected: list[str] = []
    for line in buffer.split("\n"):
        stripped = line.strip()

        if (
            stripped.startswith("<!DOCTYPE")
            or stripped.startswith("<html")
            or (stripped.startswith("<") and ">" in stripped)
        ):
            break

        if (
            stripped
            and not stripped.startswith("<")
            and not stripped.startswith("```")
            and "DOCTYPE" not in stripped
            and len(stripped) > 5
            and not is_html_fragment(stripped)
        ):
            collected.append(stripped)

    if not collected:
        return None
    return f"{EXPLANATION_LABEL}\n" + "\n".join(collected)


@dataclass
class ExtractionState:
    """Per-generation accumulator, discarded when the stream ends."""

    buffer: str = ""
    reasoning: str | None = None
    document: str = ""
    source: MatchSource = MatchSource.NONE
    min_render_length: int = 100
    _rendered: str = field(default="", repr=False)

    def feed(self, delta: str) -> Extraction:
        self.buffer += delta
        result = extract(self.buffer)
        if result.reasoning:
            self.reasoning = result.reasoning
        self.document = result.document
        self.source = result.source
        return result

    @property
    def renderable(self) -> bool:
        return is_substantially_complete(self.document, self.min_render_length)

    def take_render(self) -> str | None:
        """Return the document when it is renderable and changed since last call."""
        if not self.renderable or self.document == self._rendered:
            return None
        self._rendered = self.document
        return self.document

    def finalize(self) -> str | None:
        """Final reasoning text, falling back to untagged explanation."""
        if self.reasoning is None and self.buffer:
            self.reasoning = extract_explanation(self.buffer)
        return self.reasoning
