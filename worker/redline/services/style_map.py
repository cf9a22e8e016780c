from dataclasses import dataclass

BODY_FONT = "font-family: Calibri, Arial, sans-serif; font-size: 11pt"
HEADING_FONT = "font-family: 'Times New Roman', serif; font-weight: bold"


@dataclass(frozen=True)
class StyleRule:
    """Maps a Word style (mammoth matcher) to an HTML element with defaults.

    ``css_class`` is what mammoth writes into the converted HTML; ``css`` is the
    default formatting later attached to every element carrying that class.
    """

    match: str
    element: str
    css_class: str | None = None
    css: str = ""
    fresh: bool = True

    def to_mammoth(self) -> str:
        target = self.element
        if self.css_class:
            target += f".{self.css_class}"
        if self.fresh:
            target += ":fresh"
        return f"{self.match} => {target}"


# Order matters: mammoth uses the first rule that matches, so the generic
# paragraph fallback comes last.
DEFAULT_STYLE_RULES: tuple[StyleRule, ...] = (
    StyleRule("p[style-name='Heading 1']", "h1", "doc-heading1", f"{HEADING_FONT}; font-size: 16pt; margin: 0 0 12pt 0"),
    StyleRule("p[style-name='Heading 2']", "h2", "doc-heading2", f"{HEADING_FONT}; font-size: 14pt; margin: 16pt 0 10pt 0"),
    StyleRule("p[style-name='Heading 3']", "h3", "doc-heading3", f"{HEADING_FONT}; font-size: 12pt; margin: 12pt 0 8pt 0"),
    StyleRule("p[style-name='Title']", "h1", "doc-title", f"{HEADING_FONT}; font-size: 20pt; text-align: center; margin: 0 0 16pt 0"),
    StyleRule("p[style-name='Subtitle']", "h2", "doc-subtitle", f"{HEADING_FONT}; font-size: 14pt; font-style: italic; text-align: center"),
    StyleRule("p[style-name='Normal']", "p", "doc-normal", f"{BODY_FONT}; margin: 0 0 10pt 0"),
    StyleRule("p[style-name='Body Text']", "p", "doc-body-text", f"{BODY_FONT}; line-height: 1.5; margin: 0 0 10pt 0"),
    StyleRule("p[style-name='Table Paragraph']", "p", "doc-table-paragraph", f"{BODY_FONT}; margin: 0"),
    StyleRule("p[style-name='Caption']", "p", "doc-caption", f"{BODY_FONT}; font-size: 9pt; font-style: italic"),
    StyleRule("p[style-name='Intense Quote']", "blockquote", "doc-intense-quote", f"{BODY_FONT}; font-style: italic; font-weight: bold; margin: 10pt 36pt"),
    StyleRule("p[style-name='Quote']", "blockquote", "doc-quote", f"{BODY_FONT}; font-style: italic; margin: 10pt 36pt"),
    StyleRule("p[style-name='List Paragraph']", "p", "doc-list-paragraph", f"{BODY_FONT}; margin: 0 0 0 36pt"),
    StyleRule("p:unordered-list(1)", "ul > li", "doc-list-item", BODY_FONT),
    StyleRule("p:unordered-list(2)", "ul > li > ul > li", "doc-list-item-2", BODY_FONT),
    StyleRule("p:ordered-list(1)", "ol > li", "doc-list-item", BODY_FONT),
    StyleRule("p:ordered-list(2)", "ol > li > ol > li", "doc-list-item-2", BODY_FONT),
    StyleRule("r[style-name='Strong']", "strong", fresh=False),
    StyleRule("r[style-name='Emphasis']", "em", fresh=False),
    StyleRule("r[style-name='Intense Emphasis']", "em", "doc-intense-emphasis", "font-weight: bold", fresh=False),
    StyleRule("r[style-name='Book Title']", "span", "doc-book-title", "font-style: italic; font-weight: bold", fresh=False),
    StyleRule("b", "strong", fresh=False),
    StyleRule("i", "em", fresh=False),
    StyleRule("u", "u", fresh=False),
    StyleRule("table", "table", "doc-table", "border-collapse: collapse; width: 100%; margin: 0 0 10pt 0", fresh=False),
    StyleRule("p", "p", "doc-paragraph", f"{BODY_FONT}; margin: 0 0 10pt 0"),
)

# mammoth has no matchers for rows and cells, so they get defaults by tag name.
TABLE_ELEMENT_CSS: dict[str, str] = {
    "tr": "border-bottom: 1px solid #e2e8f0",
    "td": f"{BODY_FONT}; border: 1px solid #cbd5e1; padding: 4pt 6pt; vertical-align: top",
    "th": f"{BODY_FONT}; border: 1px solid #cbd5e1; padding: 4pt 6pt; font-weight: bold",
}


def build_style_map(rules: tuple[StyleRule, ...]) -> str:
    return "\n".join(rule.to_mammoth() for rule in rules)


def class_defaults(rules: tuple[StyleRule, ...]) -> dict[str, str]:
    defaults: dict[str, str] = {}
    for rule in rules:
        if rule.css_class and rule.css:
            defaults.setdefault(rule.css_class, rule.css)
    return defaults
