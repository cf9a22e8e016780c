import bisect
import difflib
import html
import logging
import re
from dataclasses import dataclass, field

from bs4.element import NavigableString, PreformattedString, Tag

from redline.services.markup import parse_fragment, render_fragment

logger = logging.getLogger(__name__)

ADDITION_CLASS = "diff-addition"
DELETION_CLASS = "diff-deletion"

NO_DIFFERENCES_HTML = "<p>No differences found between the two versions.</p>"

BLOCK_TAGS = {"p", "div", "blockquote", "pre", "ul", "ol", "li"}
FORMAT_TAGS = {"strong", "em", "u", "b", "i", "span", "h1", "h2", "h3", "table", "tr", "td", "th"}
LINE_AFTER_TAGS = {"h1", "h2", "h3", "table"}
SPACE_AFTER_TAGS = {"tr", "td", "th"}
SKIP_CONTENT_TAGS = {"style", "script", "head", "title"}

PARAGRAPH_SPLIT_RE = re.compile(r"\n{2,}")


def has_markup(text: str) -> bool:
    return parse_fragment(text).find() is not None


def balance_tags(fragment: str) -> str:
    """Drop stray closing tags and close whatever is left open."""
    return render_fragment(parse_fragment(fragment))


def render_error_panel(message: str) -> str:
    return (
        '<div class="comparison-error">'
        "<h3>Error generating document comparison</h3>"
        f"<p>{html.escape(message, quote=False)}</p>"
        "</div>"
    )


class FormattingMap:
    """Formatting tags keyed by the plain-text offset they occur at.

    Kept as two parallel sorted lists so range lookups are a bisect away.
    Several tags may share an offset; their document order is preserved.
    """

    def __init__(self) -> None:
        self._offsets: list[int] = []
        self._tags: list[str] = []

    def __len__(self) -> int:
        return len(self._offsets)

    def add(self, offset: int, tag: str) -> None:
        index = bisect.bisect_right(self._offsets, offset)
        self._offsets.insert(index, offset)
        self._tags.insert(index, tag)

    def at(self, offset: int) -> list[str]:
        lo = bisect.bisect_left(self._offsets, offset)
        hi = bisect.bisect_right(self._offsets, offset)
        return self._tags[lo:hi]

    def between(self, start: int, end: int) -> list[tuple[int, str]]:
        """Tags with ``start <= offset < end``."""
        lo = bisect.bisect_left(self._offsets, start)
        hi = bisect.bisect_left(self._offsets, end)
        return list(zip(self._offsets[lo:hi], self._tags[lo:hi]))

    def clamp(self, limit: int) -> None:
        self._offsets = [min(offset, limit) for offset in self._offsets]


@dataclass
class ProjectedText:
    text: str
    formats: FormattingMap = field(default_factory=FormattingMap)


class _Projector:
    def __init__(self) -> None:
        self.parts: list[str] = []
        self.length = 0
        self.trailing_newlines = 0
        self.formats = FormattingMap()

    def append(self, chunk: str) -> None:
        if not chunk:
            return
        self.parts.append(chunk)
        self.length += len(chunk)
        stripped = chunk.rstrip("\n")
        if stripped:
            self.trailing_newlines = len(chunk) - len(stripped)
        else:
            self.trailing_newlines += len(chunk)

    def append_text(self, segment: str) -> None:
        if self.trailing_newlines >= 2 and not segment.strip():
            return
        self.append(segment)

    def paragraph_break(self) -> None:
        if self.length and self.trailing_newlines < 2:
            self.append("\n" * (2 - self.trailing_newlines))

    def result(self) -> ProjectedText:
        text = "".join(self.parts).rstrip("\n")
        self.formats.clamp(len(text))
        return ProjectedText(text=text, formats=self.formats)


def project_html(markup: str) -> ProjectedText:
    """Split HTML into plain text plus the formatting map needed to rebuild it."""
    projector = _Projector()
    _project_children(parse_fragment(markup), projector)
    return projector.result()


def _project_children(node: Tag, projector: _Projector) -> None:
    for child in node.children:
        if isinstance(child, Tag):
            _project_tag(child, projector)
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            projector.append_text(str(child))


def _project_tag(tag: Tag, projector: _Projector) -> None:
    name = tag.name.lower()

    if name in SKIP_CONTENT_TAGS:
        return
    if name == "br":
        projector.append("\n")
    elif name in BLOCK_TAGS:
        projector.paragraph_break()
        _project_children(tag, projector)
        projector.paragraph_break()
    elif name in FORMAT_TAGS:
        projector.formats.add(projector.length, f"<{name}>")
        _project_children(tag, projector)
        projector.formats.add(projector.length, f"</{name}>")
        if name in LINE_AFTER_TAGS:
            projector.append("\n")
        elif name in SPACE_AFTER_TAGS:
            projector.append(" ")
    else:
        _project_children(tag, projector)


class HtmlDiffService:
    def diff(self, old_html: str, new_html: str) -> str:
        """Merge two documents into one HTML fragment with changes marked."""
        if old_html == new_html:
            return NO_DIFFERENCES_HTML

        try:
            if has_markup(old_html) or has_markup(new_html):
                return self._render_html_diff(project_html(old_html), project_html(new_html))
            return self._render_text_diff(old_html, new_html)
        except Exception as e:
            logger.exception("Error generating document diff")
            return render_error_panel(
                str(e) or "An unknown error occurred while comparing documents"
            )

    def project(self, content: str) -> str:
        """Plain-text view of a document, as used for diffing."""
        if has_markup(content):
            return project_html(content).text
        return content

    def _render_html_diff(self, old: ProjectedText, new: ProjectedText) -> str:
        matcher = difflib.SequenceMatcher(None, old.text, new.text, autojunk=False)
        out: list[str] = []

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            match tag:
                case "equal":
                    self._render_equal(out, old, new, i1, j1, i2 - i1)
                case "delete":
                    self._render_run(out, old, i1, i2, DELETION_CLASS)
                case "insert":
                    self._render_run(out, new, j1, j2, ADDITION_CLASS)
                case "replace":
                    # both sides usually open the same block here; emit it once
                    out.extend(new.formats.at(j1) or old.formats.at(i1))
                    self._render_run(out, old, i1, i2, DELETION_CLASS, skip_start=True)
                    self._render_run(out, new, j1, j2, ADDITION_CLASS, skip_start=True)

        closing = new.formats.at(len(new.text)) or old.formats.at(len(old.text))
        out.extend(closing)
        return balance_tags("".join(out))

    def _render_run(
        self,
        out: list[str],
        side: ProjectedText,
        start: int,
        end: int,
        css_class: str,
        skip_start: bool = False,
    ) -> None:
        # tags go between marker spans, never inside them
        cursor = start
        first = start + 1 if skip_start else start
        for offset, tag in side.formats.between(first, end):
            if offset > cursor:
                out.append(self._wrap(side.text[cursor:offset], css_class))
                cursor = offset
            out.append(tag)
        if cursor < end:
            out.append(self._wrap(side.text[cursor:end], css_class))

    def _render_equal(
        self, out: list[str], old: ProjectedText, new: ProjectedText, i1: int, j1: int, size: int
    ) -> None:
        positions = {offset - j1 for offset, _ in new.formats.between(j1, j1 + size)}
        positions.update(offset - i1 for offset, _ in old.formats.between(i1, i1 + size))

        cursor = 0
        for position in sorted(positions):
            if position > cursor:
                out.append(self._wrap(new.text[j1 + cursor:j1 + position], None))
                cursor = position
            out.extend(new.formats.at(j1 + position) or old.formats.at(i1 + position))
        if cursor < size:
            out.append(self._wrap(new.text[j1 + cursor:j1 + size], None))

    def _render_text_diff(self, old: str, new: str) -> str:
        matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)
        paragraphs: list[list[str]] = [[]]

        def emit(chunk: str, css_class: str | None) -> None:
            for index, part in enumerate(PARAGRAPH_SPLIT_RE.split(chunk)):
                if index:
                    paragraphs.append([])
                if part:
                    paragraphs[-1].append(self._wrap(part, css_class))

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            match tag:
                case "equal":
                    emit(new[j1:j2], None)
                case "delete":
                    emit(old[i1:i2], DELETION_CLASS)
                case "insert":
                    emit(new[j1:j2], ADDITION_CLASS)
                case "replace":
                    emit(old[i1:i2], DELETION_CLASS)
                    emit(new[j1:j2], ADDITION_CLASS)

        return "".join(f"<p>{''.join(parts)}</p>" for parts in paragraphs if parts)

    def _wrap(self, chunk: str, css_class: str | None) -> str:
        escaped = html.escape(chunk, quote=False).replace("\n", "<br>")
        if css_class is None:
            return escaped
        return f'<span class="{css_class}">{escaped}</span>'
