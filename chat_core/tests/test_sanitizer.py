import pytest

from chat_core.rendering import ContentSanitizer, render, sanitize


SAMPLES = [
    "Wow!!!!!!",
    "a\n\n\n\n\nb",
    "a\n\n\x00\nb",
    "he\x07llo\u200b world\ufeff",
    "```````python\nprint(1)\n````````",
    "~~~~~~ strike ~~",
    "Really?????? Yes.......",
    "  \n\n  padded text \t\n\n\n",
    "line\r\n\r\n\r\n\r\nnext",
    "好的！！！！！真的吗？？？？",
    "",
]


@pytest.mark.parametrize("raw", SAMPLES)
def test_sanitize_is_idempotent(raw):
    once = sanitize(raw)
    assert sanitize(once) == once


def test_six_exclamation_marks_collapse_to_three():
    out = sanitize("Great" + "!" * 6)
    assert out == "Great!!!"
    assert "!!!!" not in out


def test_three_terminal_marks_are_kept():
    assert sanitize("Wait...") == "Wait..."
    assert sanitize("What???") == "What???"


def test_excess_newlines_collapse_to_paragraph_break():
    assert sanitize("a\n\n\n\n\nb") == "a\n\nb"
    assert sanitize("a\r\n\r\n\r\nb") == "a\n\nb"


def test_control_and_format_characters_are_stripped():
    assert sanitize("he\x07llo\u200b\ufeff") == "hello"
    assert sanitize("col1\tcol2") == "col1\tcol2"


def test_stripping_cannot_leave_newline_runs():
    assert sanitize("a\n\n\x00\nb") == "a\n\nb"


def test_fence_markers_collapse_to_three():
    assert sanitize("````python\nx = 1\n````") == "```python\nx = 1\n```"
    assert sanitize("~~~~~") == "~~~"


def test_symbols_survive():
    assert sanitize("a < b && c > d | e = $5 + 2^3") == "a < b && c > d | e = $5 + 2^3"


def test_trims_surrounding_whitespace():
    assert sanitize("  \n hi \n\t") == "hi"


def test_render_drops_script_tags():
    html = ContentSanitizer().process("<script>alert('x')</script>\n\nhello **world**")
    assert "<script" not in html
    assert "</script>" not in html
    assert "<strong>world</strong>" in html


def test_render_only_keeps_allow_listed_tags_and_attributes():
    raw = (
        '<div onclick="evil()">box</div>\n\n'
        '<a href="https://example.com" onclick="evil()" style="color:red">site</a>\n\n'
        "![pic](https://example.com/x.png)\n\n"
        '<iframe src="https://evil.example"></iframe>'
    )
    html = ContentSanitizer().process(raw)
    for forbidden in ("<div", "onclick", "style=", "<img", "<iframe"):
        assert forbidden not in html
    assert "box" in html


def test_links_are_forced_to_open_in_new_tab():
    html = render('[docs](https://example.com/docs) and <a href="https://a.example" rel="opener">raw</a>')
    assert html.count('target="_blank"') == 2
    assert html.count('rel="noopener noreferrer"') == 2
    assert 'rel="opener"' not in html


def test_javascript_urls_are_removed():
    html = render("[click](javascript:evil)")
    assert "javascript:" not in html


def test_render_supports_lightweight_markup():
    raw = "# Title\n\n> quoted\n\n- one\n- two\n\n1. first\n\n`inline`\n\n```\nblock\n```\n\n---\n\n*em*"
    html = ContentSanitizer().process(raw)
    for tag in ("<h1>", "<blockquote>", "<ul>", "<ol>", "<li>", "<code>", "<pre>", "<hr", "<em>"):
        assert tag in html


def test_render_empty_text():
    assert render("") == ""
