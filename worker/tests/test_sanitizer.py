import re

import pytest

from redline.services.sanitizer import sanitize

SELECTOR_BRACE_RE = re.compile(r"\.[A-Za-z_][\w\-]*\s*\{[^{}]*\}")

SAMPLES = [
    "",
    "plain text",
    '<p style="color: red">Hello</p>',
    "<style>.doc-normal { font-size: 11pt; }</style><p>Body</p>",
    "<STYLE type='text/css'>p { margin: 0 }</STYLE>Text",
    "/* leftover */<p>After comment</p>",
    ".doc-heading1 { font-weight: bold; } Heading text",
    "p.doc-normal{font-family:Calibri;font-size:11pt} Clause 1",
    'body { margin: 0; } <span class="diff-addition extra">added</span>',
    '<span class="bg-green-100 diff-deletion">gone</span>',
    '<div class="document-content"><p class="doc-normal">x</p></div>',
    'le="color: red">Tail of a cut tag',
    "Text that ends in a cut <span cla",
    "</strong></em>Orphans first",
    "Content<strong>",
    "<style>.a { color: red; }",
    'stystyle="x"le="y" nested',
    'Line<br>',
    '<p>The Company shall notify holders {Notice: 10 days} of changes.</p>',
    '<p>Set class=A for <b>Series A</b> holders, lifestyle=modern</p>',
    '<stylesheet>x</stylesheet> end',
    '<p>.a { content: ">" }</p>',
    '<p data-style="x">Say "hi"<!-- note --></p>',
]


class TestSanitizer:
    def test_removes_style_blocks(self):
        result = sanitize("<style>.doc-normal { font-size: 11pt; }</style><p>Body</p>")
        assert result == "<p>Body</p>"

    def test_removes_inline_styles(self):
        assert sanitize('<p style="color: red">Hello</p>') == "<p>Hello</p>"

    def test_removes_css_comments(self):
        assert sanitize("/* leftover */<p>After</p>") == "<p>After</p>"

    def test_removes_css_rule_text(self):
        result = sanitize(".doc-heading1 { font-weight: bold; } Heading text")
        assert result.strip() == "Heading text"

    def test_removes_element_rule_text(self):
        result = sanitize("p.doc-normal{font-family:Calibri;font-size:11pt} Clause 1")
        assert result.strip() == "Clause 1"

    def test_keeps_marker_classes_only(self):
        result = sanitize('<span class="bg-green-100 diff-addition">added</span>')
        assert result == '<span class="diff-addition">added</span>'

    def test_drops_other_classes(self):
        result = sanitize('<div class="document-content"><p class="doc-normal">x</p></div>')
        assert result == "<div><p>x</p></div>"

    def test_removes_leading_tag_tail(self):
        assert sanitize('le="color: red">Tail') == "Tail"

    def test_removes_trailing_partial_tag(self):
        assert sanitize("Text that ends in a cut <span cla") == "Text that ends in a cut "

    def test_removes_orphan_closing_tags_at_start(self):
        assert sanitize("</strong></em>Orphans first") == "Orphans first"

    def test_removes_unclosed_trailing_tag(self):
        assert sanitize("Content<strong>") == "Content"

    def test_keeps_trailing_line_break(self):
        assert sanitize("Line<br>") == "Line<br>"

    def test_keeps_regular_braces_in_prose(self):
        assert sanitize("<p>Use {placeholder} here</p>") == "<p>Use {placeholder} here</p>"

    def test_keeps_diff_output(self):
        html = '<strong>Hi<span class="diff-addition"> there</span></strong>'
        assert sanitize(html) == html

    @pytest.mark.parametrize("html", SAMPLES)
    def test_idempotent(self, html):
        once = sanitize(html)
        assert sanitize(once) == once

    @pytest.mark.parametrize("html", SAMPLES)
    def test_no_css_leakage(self, html):
        result = sanitize(html)
        assert "<style" not in result.lower()
        assert 'style="' not in result
        assert SELECTOR_BRACE_RE.search(result) is None


class TestSanitizerLeavesProseAlone:
    def test_braces_in_legal_text(self):
        html = "<p>The Company shall notify holders {Notice: 10 days} of changes.</p>"
        assert sanitize(html) == html

    def test_class_and_style_words_in_text(self):
        html = "<p>Set class=A for <b>Series A</b> holders, lifestyle=modern</p>"
        assert sanitize(html) == html

    def test_quoted_style_text_is_escaped(self):
        result = sanitize('<p>Write style="bold" here</p>')
        assert result == "<p>Write style=&quot;bold&quot; here</p>"

    def test_style_prefixed_tags(self):
        assert sanitize("<stylesheet>x</stylesheet> end") == " end"

    def test_rule_body_with_angle_bracket(self):
        assert sanitize('<p>Intro</p><p>.a { content: ">" }</p>') == "<p>Intro</p>"

    def test_multiline_rule(self):
        assert sanitize("p {\n  margin: 0;\n} Clause 2").strip() == "Clause 2"

    def test_html_comments(self):
        assert sanitize("<p>a<!-- note -->b</p>") == "<p>ab</p>"
