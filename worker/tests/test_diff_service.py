import pytest

from redline.services.diff_service import (
    NO_DIFFERENCES_HTML,
    FormattingMap,
    HtmlDiffService,
    balance_tags,
    project_html,
)


@pytest.fixture
def diff_service():
    return HtmlDiffService()


class TestProjection:
    def test_block_tags_become_paragraph_breaks(self):
        projected = project_html("<p>First</p><p>Second<br>line</p>")
        assert projected.text == "First\n\nSecond\nline"

    def test_formatting_tags_are_mapped_by_offset(self):
        projected = project_html("<p>Say <strong>hi</strong> now</p>")

        assert projected.text == "Say hi now"
        assert projected.formats.at(4) == ["<strong>"]
        assert projected.formats.at(6) == ["</strong>"]

    def test_attributes_are_dropped(self):
        projected = project_html('<p><span style="color: red" class="x">hi</span></p>')
        assert projected.formats.at(0) == ["<span>"]

    def test_entities_are_decoded(self):
        assert project_html("<p>a &lt; b &amp; c</p>").text == "a < b & c"

    def test_style_contents_are_skipped(self):
        projected = project_html("<style>.doc { color: red; }</style><p>Body</p>")
        assert projected.text == "Body"

    def test_unknown_tags_are_dropped(self):
        assert project_html('<div class="document-content"><pre>x</pre></div>').text == "x"

    def test_unclosed_tags_close_at_the_end(self):
        projected = project_html("<p>Open <strong>bold")

        assert projected.text == "Open bold"
        assert projected.formats.at(5) == ["<strong>"]
        assert projected.formats.at(9) == ["</strong>"]

    def test_comments_are_not_text(self):
        assert project_html("<p>a<!-- note -->b</p>").text == "ab"


class TestFormattingMap:
    def test_between_is_half_open(self):
        formats = FormattingMap()
        formats.add(0, "<b>")
        formats.add(3, "</b>")
        formats.add(3, "<i>")

        assert formats.between(0, 3) == [(0, "<b>")]
        assert formats.between(3, 4) == [(3, "</b>"), (3, "<i>")]
        assert len(formats) == 3


class TestBalanceTags:
    def test_drops_stray_closing_tags(self):
        assert balance_tags("a</b>c") == "ac"

    def test_closes_open_tags(self):
        assert balance_tags("<strong>a<em>b") == "<strong>a<em>b</em></strong>"

    def test_void_tags_untouched(self):
        assert balance_tags("a<br>b") == "a<br>b"


class TestHtmlDiffService:
    def test_identical_documents(self, diff_service):
        text = "<p>Same text</p>"
        assert diff_service.diff(text, text) == NO_DIFFERENCES_HTML

    def test_identical_plain_text(self, diff_service):
        assert diff_service.diff("Same", "Same") == NO_DIFFERENCES_HTML

    def test_pure_addition(self, diff_service):
        assert diff_service.diff("", "hello") == '<p><span class="diff-addition">hello</span></p>'

    def test_pure_deletion(self, diff_service):
        assert diff_service.diff("hello", "") == '<p><span class="diff-deletion">hello</span></p>'

    def test_plain_text_paragraphs(self, diff_service):
        result = diff_service.diff("First.\n\nSecond.", "First.\n\nSecond!")

        assert result == (
            "<p>First.</p>"
            '<p>Second<span class="diff-deletion">.</span>'
            '<span class="diff-addition">!</span></p>'
        )

    def test_plain_text_is_escaped(self, diff_service):
        result = diff_service.diff("a < b", "a < c")
        assert "a &lt; " in result
        assert "a < " not in result

    def test_format_preservation(self, diff_service):
        result = diff_service.diff(
            "<p><strong>Hi</strong></p>",
            "<p><strong>Hi there</strong></p>",
        )

        assert result == '<strong>Hi<span class="diff-addition"> there</span></strong>'

    def test_deleted_paragraph(self, diff_service):
        result = diff_service.diff(
            "<p>Keep this clause.</p><p>Remove me.</p>",
            "<p>Keep this clause.</p>",
        )

        assert result.startswith("Keep this clause.")
        assert '<span class="diff-deletion"><br><br>Remove me.</span>' in result

    def test_entities_survive(self, diff_service):
        result = diff_service.diff("<p>a &lt; b</p>", "<p>a &lt; c</p>")

        assert result.startswith("a &lt; ")
        assert '<span class="diff-deletion">b</span>' in result
        assert '<span class="diff-addition">c</span>' in result

    def test_headings_are_kept(self, diff_service):
        result = diff_service.diff(
            "<h1>Title</h1><p>Body</p>",
            "<h1>Title</h1><p>Body text</p>",
        )

        assert "<h1>Title</h1>" in result
        assert result.endswith('Body<span class="diff-addition"> text</span>')

    def test_table_cell_change(self, diff_service):
        result = diff_service.diff(
            "<table><tr><td>A</td><td>B</td></tr></table>",
            "<table><tr><td>A</td><td>C</td></tr></table>",
        )

        assert (
            '<td><span class="diff-deletion">B</span><span class="diff-addition">C</span></td>'
            in result
        )
        assert result.count("<td>") == 2
        assert result.count("</td>") == 2
        assert result.endswith("</table>")

    def test_css_in_source_is_not_diffed(self, diff_service):
        result = diff_service.diff(
            "<style>.x { color: red; }</style><p>Hello</p>",
            "<p>Hello world</p>",
        )

        assert "color" not in result
        assert result == 'Hello<span class="diff-addition"> world</span>'

    def test_mixed_markup_and_text(self, diff_service):
        result = diff_service.diff("<pre>foo</pre>", "<pre>foobar</pre>")
        assert result == 'foo<span class="diff-addition">bar</span>'

    def test_error_becomes_panel(self, diff_service, monkeypatch):
        def explode(*args):
            raise RuntimeError("boom")

        monkeypatch.setattr(diff_service, "_render_text_diff", explode)
        result = diff_service.diff("a", "b")

        assert "Error generating document comparison" in result
        assert "boom" in result

    def test_project(self, diff_service):
        assert diff_service.project("<p>One</p><p>Two</p>") == "One\n\nTwo"
        assert diff_service.project("plain") == "plain"
