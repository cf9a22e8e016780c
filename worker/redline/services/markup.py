from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

HTML_PARSER = "html.parser"

# minimal escaping, and void elements written as <br> rather than <br/>
FRAGMENT_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)


def parse_fragment(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, HTML_PARSER)


def render_fragment(soup: BeautifulSoup, formatter: HTMLFormatter = FRAGMENT_FORMATTER) -> str:
    return soup.decode(formatter=formatter)
