#!/usr/bin/env python3
"""
slidedown.py - Build navigable slide decks from a single markdown document.

The markdown is converted to HTML (fenced code blocks are syntax highlighted
with Pygments), the resulting flat run of block elements is cut into slides at
every horizontal rule, and each slide gets a layout tag inferred from the tags
it contains:

    # Title                     -> title-only
    # Title / ## Subtitle       -> title-subtitle
    anything else               -> default

Slides are mounted as ``<div id="slide-N" class="slide">`` containers and
wired to the navigation state machine in ``slide_nav``.

Usage:
    python tools/slidedown.py <deck.md | deck.html | URL> [-o output.html]

If output path is not specified, uses the input filename with .html extension
(``<name>.slides.html`` when the input is already HTML).
"""

import argparse
import sys
import warnings
from dataclasses import dataclass
from enum import Enum
from html import escape
from pathlib import Path
from typing import Iterable, Optional, Protocol, Union
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup, Tag
from markdown_it import MarkdownIt
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from slide_nav import (
    NEXT_CLICK_ZONE,
    PREVIOUS_CLICK_ZONE,
    Event,
    EventType,
    Navigator,
    Page,
    bind_navigation,
    follow_fragment,
    parse_condition,
    when_ready,
)

# ── Deck conventions ─────────────────────────────────────────────────────────
SLIDE_ID_PREFIX = "slide-"
SEPARATOR_TAG = "hr"
FORMAT_HTML = "html"
FORMAT_MARKDOWN = "markdown"
HTML_EXTENSIONS = {"htm", "html"}
FETCH_TIMEOUT = 10  # seconds
DEFAULT_PYGMENTS_STYLE = "default"

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <title></title>
    <meta http-equiv="Content-Type" content="text/html; charset=UTF-8"/>
    <style type="text/css"></style>
  </head>
  <body></body>
</html>
"""

BASE_CSS = """
body { margin: 0; font-family: 'Droid Serif', serif; background: #222; }
h1, h2, h3 { font-family: 'Yanone Kaffeesatz', sans-serif; font-weight: normal; }
.slide {
  box-sizing: border-box;
  width: 100vw;
  height: 56.25vw;
  margin: 0 auto 2vw;
  padding: 3vw 5vw;
  overflow: hidden;
  background: #fff;
}
.slide .content[data-layout="title-only"],
.slide .content[data-layout="title-subtitle"] {
  display: flex;
  flex-direction: column;
  justify-content: center;
  height: 100%;
  text-align: center;
}
.slide.current { outline: 4px solid #0078d4; }
.slide pre { font-family: 'Ubuntu Mono', monospace; padding: 1em; background: #f6f8fa; }
@media print {
  body { background: none; }
  .slide { page-break-after: always; margin: 0; outline: none; }
}
"""


# ── Layout classification ────────────────────────────────────────────────────


class Layout(str, Enum):
    TITLE_ONLY = "title-only"
    TITLE_SUBTITLE = "title-subtitle"
    DEFAULT = "default"


_LAYOUT_SIGNATURES = {
    "h1": Layout.TITLE_ONLY,
    "h1,h2": Layout.TITLE_SUBTITLE,
}


def classify_layout(tag_names: Iterable[str]) -> Layout:
    """Map an ordered sequence of tag names to a slide layout."""
    key = ",".join(name.lower() for name in tag_names)
    return _LAYOUT_SIGNATURES.get(key, Layout.DEFAULT)


# ── Segmentation ─────────────────────────────────────────────────────────────


@dataclass
class Slide:
    """One slide: the block elements between two horizontal rules."""

    number: int
    elements: list[Tag]

    @property
    def slide_id(self) -> str:
        return f"{SLIDE_ID_PREFIX}{self.number}"

    @property
    def tag_names(self) -> list[str]:
        return [element.name for element in self.elements]

    @property
    def layout(self) -> Layout:
        return classify_layout(self.tag_names)


def create_slide(parts: list[Tag], number: int) -> Slide:
    return Slide(number=number, elements=list(parts))


def is_separator(element: Tag) -> bool:
    return (element.name or "").lower() == SEPARATOR_TAG


def segment_slides(elements: Iterable[Tag]) -> list[Slide]:
    """Group a flat run of block elements into slides split at ``<hr>``.

    The rules themselves are dropped, and groups with nothing in them (a
    leading rule, two rules in a row, a trailing rule) never become slides.
    """
    slides: list[Slide] = []
    parts: list[Tag] = []

    for element in elements:
        if is_separator(element):
            if parts:
                slides.append(create_slide(parts, len(slides) + 1))
            parts = []
            continue
        parts.append(element)

    if parts:
        slides.append(create_slide(parts, len(slides) + 1))

    return slides


# ── HTML and markdown conversion ─────────────────────────────────────────────


def parse_html(html: str) -> list[Tag]:
    """Top-level elements of an HTML fragment, in document order.

    Parsed as a fragment, so leading <style>, <script> or <meta> stay in
    place instead of being hoisted into a document head.  Bare text between
    elements is not a block element and is skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    return [child for child in soup.children if isinstance(child, Tag)]


class CodeRenderer(Protocol):
    def render_code_block(self, code: str, lang: str) -> Optional[str]:
        """HTML for a fenced block, or None to use the default rendering."""


class PlainCodeRenderer:
    """Leaves every fenced block to markdown-it's own escaped rendering."""

    def render_code_block(self, code: str, lang: str) -> Optional[str]:
        return None


class HighlightCodeRenderer:
    """Highlights fenced blocks that declare a language.

    The highlighted markup is trusted and goes out as-is inside
    ``<pre class="{lang}">``.  Languages Pygments does not know are rendered
    as escaped plain text in the same wrapper.
    """

    def __init__(self, formatter: Optional[HtmlFormatter] = None):
        self.formatter = formatter or HtmlFormatter(nowrap=True)

    def lexer_for(self, lang: str):
        try:
            return get_lexer_by_name(lang)
        except ClassNotFound:
            return TextLexer()

    def render_code_block(self, code: str, lang: str) -> Optional[str]:
        if not lang:
            return None
        html = highlight(code, self.lexer_for(lang), self.formatter)
        return f'<pre class="{escape(lang)}">{html}</pre>\n'


def fence_language(info: str) -> str:
    """First word of a fence info string (```python title=x -> python)."""
    words = info.strip().split(maxsplit=1)
    return words[0] if words else ""


def create_markdown(code_renderer: Optional[CodeRenderer] = None) -> MarkdownIt:
    """A markdown-it parser whose fenced code goes through ``code_renderer``."""
    renderer = code_renderer if code_renderer is not None else HighlightCodeRenderer()
    md = MarkdownIt("commonmark", {"html": True}).enable("table").enable("strikethrough")
    default_fence = md.renderer.rules["fence"]

    def render_fence(tokens, idx, options, env):
        token = tokens[idx]
        html = renderer.render_code_block(token.content, fence_language(token.info))
        if html is None:
            return default_fence(tokens, idx, options, env)
        return html

    md.renderer.rules["fence"] = render_fence
    return md


def render_markdown(markdown: str, code_renderer: Optional[CodeRenderer] = None) -> str:
    return create_markdown(code_renderer).render(markdown)


# ── Source loading ───────────────────────────────────────────────────────────


def is_url(source: str) -> bool:
    return urlparse(source).scheme in ("http", "https")


def infer_format(source: str) -> str:
    """``html`` for .htm/.html sources, ``markdown`` for everything else."""
    path = urlparse(source).path if is_url(source) else source
    extension = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    return FORMAT_HTML if extension in HTML_EXTENSIONS else FORMAT_MARKDOWN


def fetch_source(
    url: str, session: Optional[requests.Session] = None, timeout: float = FETCH_TIMEOUT
) -> Optional[str]:
    """GET ``url`` and return its body, or None (with a warning) on failure."""
    http = session or requests
    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        warnings.warn(f"Could not fetch {url}: {e}")
        return None
    return response.text


# ── Rendering ────────────────────────────────────────────────────────────────


def render_slide(document: BeautifulSoup, slide: Slide) -> Tag:
    """Build the container for ``slide``; its elements move into it."""
    element = document.new_tag("div", attrs={"id": slide.slide_id, "class": "slide"})
    content = document.new_tag("div", attrs={"class": "content", "data-layout": slide.layout.value})
    for part in slide.elements:
        content.append(part)
    element.append(content)
    return element


class SlideShow:
    """Renders a deck into a page and keeps the navigator that drives it.

    Rendering waits for the page to finish loading, mounts every slide in
    document order, and only then attaches the input handlers, so no
    navigation event ever sees a partially rendered deck.
    """

    def __init__(
        self,
        page: Optional[Page] = None,
        target: Union[str, Tag] = "body",
        code_renderer: Optional[CodeRenderer] = None,
        next_click: str = NEXT_CLICK_ZONE,
        previous_click: str = PREVIOUS_CLICK_ZONE,
    ):
        # Bad click zones fail here, before anything is rendered
        parse_condition(next_click)
        parse_condition(previous_click)

        self.page = page or Page()
        self.target = target
        self.code_renderer = code_renderer
        self.next_click = next_click
        self.previous_click = previous_click
        self.slides: list[Slide] = []
        self.navigator: Optional[Navigator] = None
        self.warnings: list[str] = []

    def to(self, target: Union[str, Tag]) -> "SlideShow":
        self.target = target
        return self

    def destination(self) -> Tag:
        if not isinstance(self.target, str):
            return self.target
        destination = self.page.document.select_one(self.target)
        if destination is None:
            raise ValueError(f"Mount point not found: {self.target}")
        return destination

    def append(self, element: Tag):
        self.destination().append(element)

    def from_elements(self, elements: Iterable[Tag]) -> "SlideShow":
        elements = list(elements)

        def render():
            self.slides = segment_slides(elements)
            if not self.slides:
                warnings.warn("No slides found in source.")

            containers = []
            for slide in self.slides:
                container = render_slide(self.page.document, slide)
                self.append(container)
                containers.append(container)

            self.navigator = Navigator(containers, self.page)
            bind_navigation(self.page, self.navigator, self.next_click, self.previous_click)

            fragment = self.page.location_hash
            if fragment and self.slides and not self.navigator.has_slide(fragment):
                self.warnings.append(f"No slide matches {fragment}; starting at the first.")
            self.navigator.focus(fragment)
            follow_fragment(self.page, self.navigator)

        when_ready(self.page, render)
        return self

    def from_html(self, html: str) -> "SlideShow":
        return self.from_elements(parse_html(html))

    def from_markdown(self, markdown: str) -> "SlideShow":
        return self.from_html(render_markdown(markdown, self.code_renderer))

    def from_source(self, text: str, fmt: str) -> "SlideShow":
        if fmt == FORMAT_HTML:
            return self.from_html(text)
        return self.from_markdown(text)

    def from_url(self, url: str, session: Optional[requests.Session] = None) -> "SlideShow":
        fmt = infer_format(url)

        def on_fetched(event: Event):
            self.page.remove_listener(EventType.FETCH_COMPLETE, on_fetched)
            self.from_source(event.body or "", fmt)

        self.page.add_listener(EventType.FETCH_COMPLETE, on_fetched)
        body = fetch_source(url, session)
        self.page.dispatch(Event(EventType.FETCH_COMPLETE, body=body or ""))
        return self


def from_elements(elements: Iterable[Tag], **options) -> SlideShow:
    return SlideShow(**options).from_elements(elements)


def from_html(html: str, **options) -> SlideShow:
    return SlideShow(**options).from_html(html)


def from_markdown(markdown: str, **options) -> SlideShow:
    return SlideShow(**options).from_markdown(markdown)


def from_url(url: str, session: Optional[requests.Session] = None, **options) -> SlideShow:
    return SlideShow(**options).from_url(url, session)


# ── Deck page ────────────────────────────────────────────────────────────────


def build_page(title: str, style: str = DEFAULT_PYGMENTS_STYLE, location_hash: str = "") -> Page:
    """An empty deck page carrying the base and Pygments stylesheets.

    Raises ``pygments.util.ClassNotFound`` for an unknown style name.
    """
    highlight_css = HtmlFormatter(style=style).get_style_defs(".slide pre")
    document = BeautifulSoup(PAGE_TEMPLATE, "lxml")
    document.title.string = title
    document.style.string = BASE_CSS + highlight_css + "\n"
    return Page(document, location_hash=location_hash)


def source_path(source: str) -> Path:
    """Local path for ``source``; URLs map to their last path segment."""
    if is_url(source):
        return Path(Path(urlparse(source).path).name or "index")
    return Path(source)


def default_output_path(source: str) -> Path:
    path = source_path(source)
    if infer_format(source) == FORMAT_HTML:
        return path.with_name(f"{path.stem}.slides.html")
    return path.with_suffix(".html")


def main(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(
        description="Render a markdown (or HTML) document into a slide deck page."
    )
    parser.add_argument("input", help="Input markdown/HTML file path or http(s) URL")
    parser.add_argument(
        "-o", "--output", help="Output HTML file path (default: same name as input)"
    )
    parser.add_argument("--title", help="Page title (default: input file name)")
    parser.add_argument(
        "--fragment", default="", help="Slide id to open on, e.g. slide-3 (default: first)"
    )
    parser.add_argument(
        "--style",
        default=DEFAULT_PYGMENTS_STYLE,
        help=f"Pygments style for code blocks (default: {DEFAULT_PYGMENTS_STYLE})",
    )

    args = parser.parse_args(argv)

    source = args.input
    remote = is_url(source)
    if not remote and not Path(source).exists():
        print(f"Error: Input file not found: {source}", file=sys.stderr)
        sys.exit(1)

    output_path = Path(args.output) if args.output else default_output_path(source)
    title = args.title or source_path(source).stem

    print(f"Converting: {source}")
    print(f"Output: {output_path}")

    try:
        page = build_page(title, args.style, args.fragment)
    except ClassNotFound:
        print(f"Error: Unknown Pygments style: {args.style}", file=sys.stderr)
        sys.exit(1)

    show = SlideShow(page)
    if remote:
        show.from_url(source)
    else:
        try:
            text = Path(source).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: Could not read {source}: {e}", file=sys.stderr)
            sys.exit(1)
        show.from_source(text, infer_format(source))

    try:
        output_path.write_text(str(page.document), encoding="utf-8")
    except OSError as e:
        print(f"Error: Could not write {output_path}: {e}", file=sys.stderr)
        sys.exit(1)

    if show.warnings:
        print(f"\nWarnings ({len(show.warnings)}):", file=sys.stderr)
        for w in show.warnings:
            print(f"  - {w}", file=sys.stderr)

    print(f"Done! Created {output_path} ({len(show.slides)} slides)")


if __name__ == "__main__":
    main()
