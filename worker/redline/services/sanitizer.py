"""Strip CSS and broken markup from rendered comparison HTML.

Converted documents and earlier rendering steps can leave style blocks,
inline styles or half-cut tags in the diff; a browser then shows them as
literal text. The fragment is parsed with BeautifulSoup, cleaned by the
passes below in a fixed order and serialized again. This repeats until the
output stops changing, so ``sanitize(sanitize(x)) == sanitize(x)``.

Attribute passes only ever touch parsed tags and the CSS passes only touch
text nodes, so document prose that happens to look like ``class=`` or
``{Notice: 10 days}`` is left alone. Text quotes are written as ``&quot;``,
which keeps a literal ``style="`` out of the output.
"""

import logging
import re

from bs4 import BeautifulSoup, Comment
from bs4.dammit import EntitySubstitution
from bs4.element import Tag
from bs4.formatter import HTMLFormatter

from redline.services.diff_service import ADDITION_CLASS, DELETION_CLASS
from redline.services.markup import parse_fragment, render_fragment

logger = logging.getLogger(__name__)

ALLOWED_CLASSES = (ADDITION_CLASS, DELETION_CLASS)
VOID_TAGS = ["br", "hr", "img", "wbr"]
TABLE_TAGS = {"table", "thead", "tbody", "tr", "td", "th"}
MAX_ROUNDS = 10

CSS_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

_CSS_ELEMENT = (
    r"(?:html|body|div|p|span|a|h[1-6]|table|thead|tbody|tr|td|th"
    r"|ul|ol|li|strong|em|b|i|u|blockquote|pre)"
)
_QUALIFIERS = r"(?:[.#:][\w\-]+)*"
_COMPOUND = r"(?:[.#@][A-Za-z_][\w\-]*|\b" + _CSS_ELEMENT + r"\b)" + _QUALIFIERS
# selector tails stay on one line
_TAIL = r"(?:(?:[ \t]*[,>+~][ \t]*|[ \t]+)" + _COMPOUND + r"){0,8}"

CLASS_RULE_RE = re.compile(r"[.#@][A-Za-z_][\w\-]*" + _QUALIFIERS + _TAIL + r"\s*\{[^{}]*\}")
ELEMENT_RULE_RE = re.compile(
    r"\b" + _CSS_ELEMENT + r"\b" + _QUALIFIERS + _TAIL + r"\s*\{\s*[a-z][a-z\-]*\s*:[^{}]*\}"
)

LEADING_FRAGMENT_RE = re.compile(r"^[^<>\n]*[\"'=][^<>\n]*>")
TRAILING_FRAGMENT_RE = re.compile(r"<[A-Za-z/][^<>]*$")


def _escape_text(value: str) -> str:
    return EntitySubstitution.substitute_xml(value).replace('"', "&quot;")


OUTPUT_FORMATTER = HTMLFormatter(
    entity_substitution=_escape_text,
    void_element_close_prefix=None,
)


def _strip_cut_tags(markup: str) -> str:
    markup = LEADING_FRAGMENT_RE.sub("", markup)
    return TRAILING_FRAGMENT_RE.sub("", markup)


def _strip_style_elements(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(lambda tag: tag.name.lower().startswith("style")):
        if not tag.decomposed:
            tag.decompose()


def _strip_comments(soup: BeautifulSoup) -> None:
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()


def _strip_style_attributes(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(True):
        for name in [name for name in tag.attrs if "style" in name.lower()]:
            del tag[name]


def _strip_css_text(soup: BeautifulSoup) -> None:
    for text in soup.find_all(string=True):
        cleaned = CSS_COMMENT_RE.sub("", str(text))
        cleaned = ELEMENT_RULE_RE.sub("", cleaned)
        cleaned = CLASS_RULE_RE.sub("", cleaned)
        if cleaned == text:
            continue
        if cleaned:
            text.replace_with(cleaned)
        else:
            text.extract()


def _collapse_classes(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(class_=True):
        classes = tag["class"]
        if isinstance(classes, str):
            classes = classes.split()
        kept = [name for name in classes if name in ALLOWED_CLASSES]
        if kept:
            tag["class"] = kept
        else:
            del tag["class"]


def _strip_trailing_open_tags(soup: BeautifulSoup) -> None:
    # the parser closes unterminated tags at the end; empty ones carried nothing
    node = soup
    while node.contents:
        last = node.contents[-1]
        if not isinstance(last, Tag) or last.name in VOID_TAGS:
            return
        if last.name in TABLE_TAGS or last.get_text().strip() or last.find(VOID_TAGS):
            node = last
            continue
        last.decompose()
        node = soup


PASSES = (
    _strip_style_elements,
    _strip_comments,
    _strip_style_attributes,
    _strip_css_text,
    _collapse_classes,
    _strip_trailing_open_tags,
)


def _sanitize_once(markup: str) -> str:
    soup = parse_fragment(_strip_cut_tags(markup))
    for apply_pass in PASSES:
        apply_pass(soup)
    return render_fragment(soup, OUTPUT_FORMATTER)


def sanitize(markup: str) -> str:
    """Leave only markup that renders; addition/deletion markers survive."""
    for rounds in range(1, MAX_ROUNDS + 1):
        cleaned = _sanitize_once(markup)
        if cleaned == markup:
            break
        markup = cleaned
    else:
        logger.warning("Sanitizer output still changing after %d rounds", MAX_ROUNDS)
        return markup

    if rounds > 2:
        logger.debug("Sanitizer needed %d rounds to settle", rounds)
    return markup
