import pytest

from fractal.services.extraction import (
    ExtractionState,
    MatchSource,
    extract,
    extract_explanation,
    is_html_fragment,
    is_substantially_complete,
)

FULL_DOC = "<!DOCTYPE html><html><head><title>T</title></head><body>Hi</body></html>"


@pytest.mark.unit
class TestExtract:
    def test_thinking_with_unterminated_html_gets_closing_tags(self):
        result = extract("<thinking>X</thinking>\n<html><body><p>hi")

        assert "X" in result.reasoning
        assert result.reasoning.startswith("🤔 **Thinking**\nX")
        assert result.document == "<html><body><p>hi\n</body>\n</html>"
        assert result.document.endswith("</body>\n</html>")
        assert result.source is MatchSource.LINE_SCAN

    def test_closed_code_region_ignores_stray_html(self):
        buffer = "<html><body>stray\n<code>\n  <p>real</p>\n</code>\n<body>more"

        result = extract(buffer)

        assert result.document == "<p>real</p>"
        assert result.source is MatchSource.TAGGED

    def test_thinking_and_reasoning_are_combined(self):
        result = extract("<THINKING> a </THINKING><reasoning>\nb\n</reasoning>")

        assert result.reasoning == "🤔 **Thinking**\na\n\n💡 **Reasoning**\nb"

    def test_first_match_wins(self):
        result = extract("<code>one</code><code>two</code>")
        assert result.document == "one"

    def test_unclosed_tags_are_not_reasoning(self):
        result = extract("<thinking>still going")
        assert result.reasoning is None

    def test_doctype_span(self):
        result = extract(f"Here you go:\n{FULL_DOC}\nEnjoy!")

        assert result.document == FULL_DOC
        assert result.source is MatchSource.DOCTYPE

    def test_html_span_without_doctype(self):
        result = extract('Sure <html lang="en"><body>x</body></html> done')

        assert result.document == '<html lang="en"><body>x</body></html>'
        assert result.source is MatchSource.HTML_TAG

    def test_fenced_html_block(self):
        result = extract("```html\n<div>partial page</div>\n```")

        assert result.document == "<div>partial page</div>"
        assert result.source is MatchSource.FENCED_HTML

    def test_generic_fence_needs_html_marker(self):
        with_marker = extract("```\n<html><body>ok\n```")
        without_marker = extract("```\nprint('hi')\n```")

        # The fence is not closed html, so the span rules do not apply
        assert with_marker.document == "<html><body>ok"
        assert with_marker.source is MatchSource.FENCED_GENERIC
        assert without_marker.document == ""
        assert without_marker.source is MatchSource.NONE

    def test_html_span_is_case_insensitive(self):
        buffer = "Intro text\n<HTML>\n<body>\n</body>\n</HTML>\ntrailing"

        result = extract(buffer)

        assert result.source is MatchSource.HTML_TAG
        assert result.document == "<HTML>\n<body>\n</body>\n</HTML>"

    def test_line_scan_stops_at_last_closing_line(self):
        buffer = "<!DOCTYPE html PUBLIC>\n<body>x</body>\n</html>\nafter"

        result = extract(buffer)

        assert result.source is MatchSource.LINE_SCAN
        assert result.document == "<!DOCTYPE html PUBLIC>\n<body>x</body>\n</html>"

    def test_nothing_structural_yet(self):
        result = extract("I will now design")

        assert result.document == ""
        assert result.source is MatchSource.NONE

    def test_is_idempotent(self):
        buffer = "<thinking>t</thinking><code><html></html></code>"
        assert extract(buffer) == extract(buffer)


@pytest.mark.unit
def test_substantially_complete_gate():
    long_doc = "<html>" + "x" * 100 + "</html>"

    assert is_substantially_complete(long_doc)
    assert not is_substantially_complete("<html></html>")
    assert not is_substantially_complete("<html>" + "x" * 200)
    assert is_substantially_complete("<html>x</html>", min_length=5)


@pytest.mark.unit
class TestExplanation:
    def test_collects_prose_before_html(self):
        buffer = (
            "Here is a recreation of the site.\n"
            "Home\n"
            "```html\n"
            "<!DOCTYPE html>\n"
            "<html>\n"
        )

        assert extract_explanation(buffer) == "💭 **AI Explanation**\nHere is a recreation of the site."

    def test_none_when_only_markup(self):
        assert extract_explanation("<html><body></body></html>") is None

    def test_html_fragment_patterns(self):
        assert is_html_fragment("Video Title")
        assert is_html_fragment("1M views")
        assert is_html_fragment("Sign In")
        assert is_html_fragment("channel avatar")
        assert is_html_fragment("YouTube")
        assert not is_html_fragment("This page recreates the landing page.")


@pytest.mark.unit
class TestExtractionState:
    def test_feed_accumulates_and_keeps_reasoning(self):
        state = ExtractionState()
        state.feed("<thinking>plan</thinking>")
        state.feed("<code><!DOCTYPE html><html>")

        assert state.reasoning == "🤔 **Thinking**\nplan\n\n"
        assert state.source is MatchSource.LINE_SCAN
        assert state.document == "<code><!DOCTYPE html><html>\n</html>"

        state.feed("<body>done</body></html></code>")
        assert state.source is MatchSource.TAGGED
        assert state.document == "<!DOCTYPE html><html><body>done</body></html>"

    def test_take_render_only_returns_changed_complete_documents(self):
        state = ExtractionState(min_render_length=10)
        state.feed("<code><html><body>hello world</body></html></code>")

        first = state.take_render()
        assert first == "<html><body>hello world</body></html>"
        assert state.take_render() is None

    def test_finalize_falls_back_to_explanation(self):
        state = ExtractionState()
        state.feed("A modern landing page for the company.\n<html><body></body></html>")

        assert state.finalize() == "💭 **AI Explanation**\nA modern landing page for the company."
