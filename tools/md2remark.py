#!/usr/bin/env python3
"""
md2remark.py - Wrap a markdown file in a remark.js slideshow page.

The markdown is copied verbatim into the page's ``<textarea id="source">``;
remark.js (loaded from remarkjs.com) does all of the rendering in the browser.

Usage:
    python tools/md2remark.py <markdown file>

The page is written next to the input with the ``.md`` suffix replaced by
``.html``.
"""

import argparse
import re
import sys
from html import escape
from pathlib import Path
from typing import Union

# ── remark.js options ────────────────────────────────────────────────────────
DEFAULT_RATIO = "16:9"
DEFAULT_HIGHLIGHT_STYLE = "github"
REMARK_SCRIPT_URL = "https://remarkjs.com/downloads/remark-latest.min.js"

HEADER = """
<!DOCTYPE html>
<html>
  <head>
    <title>{title}</title>
    <meta http-equiv="Content-Type" content="text/html; charset=UTF-8"/>
    <style type="text/css">
      @import url(https://fonts.googleapis.com/css?family=Yanone+Kaffeesatz);
      @import url(https://fonts.googleapis.com/css?family=Droid+Serif:400,700,400italic);
      @import url(https://fonts.googleapis.com/css?family=Ubuntu+Mono:400,700,400italic);

      body {{ font-family: 'Droid Serif'; }}
      h1, h2, h3 {{
        font-family: 'Yanone Kaffeesatz';
        font-weight: normal;
      }}
      .remark-code, .remark-inline-code {{ font-family: 'Ubuntu Mono'; }}
      .hljs-github table, th, td {{
        vertical-align: bottom;
        padding: 10px;
      }}
      .hljs-github th {{
        text-align: left;
        border-bottom: 4px solid black;
      }}
      .hljs-github tr:nth-child(even) {{
        background-color: #f2f2f2;
      }}
    </style>
  </head>
  <body>
    <textarea id="source">

class: center, middle

"""

FOOTER = """
    </textarea>
    <script src="{script_url}" type="text/javascript">
    </script>
    <script type="text/javascript">
      var slideshow = remark.create({{
        ratio: '{ratio}',
        highlightStyle: '{highlight_style}'
      }});
    </script>
  </body>
</html>
"""

_MD_SUFFIX = re.compile(r"\.md$")


def output_path_for(md_file: str) -> str:
    """``deck.md`` -> ``deck.html``; other names are returned unchanged."""
    return _MD_SUFFIX.sub(".html", md_file)


def title_for(md_file: str) -> str:
    return _MD_SUFFIX.sub("", Path(md_file).name)


def render_page(
    markdown: Union[str, bytes],
    title: str,
    ratio: str = DEFAULT_RATIO,
    highlight_style: str = DEFAULT_HIGHLIGHT_STYLE,
) -> Union[str, bytes]:
    """The complete remark page; ``markdown`` is embedded untouched.

    Given bytes, the boilerplate is UTF-8 encoded around them and bytes come
    back, so line endings and non-UTF-8 text survive exactly.
    """
    header = HEADER.format(title=escape(title))
    footer = FOOTER.format(
        script_url=REMARK_SCRIPT_URL, ratio=ratio, highlight_style=highlight_style
    )
    if isinstance(markdown, bytes):
        return header.encode("utf-8") + markdown + footer.encode("utf-8")
    return header + markdown + footer


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="remark", description="Wrap a markdown file in a remark.js slideshow page."
    )
    parser.add_argument("md_file", metavar="markdown-file", help="Input markdown file path")
    parser.add_argument(
        "--ratio", default=DEFAULT_RATIO, help=f"Slide aspect ratio (default: {DEFAULT_RATIO})"
    )
    parser.add_argument(
        "--highlight-style",
        default=DEFAULT_HIGHLIGHT_STYLE,
        help=f"remark highlight.js style (default: {DEFAULT_HIGHLIGHT_STYLE})",
    )

    args = parser.parse_args(argv)

    md_file = args.md_file
    out_file = output_path_for(md_file)

    # Read before writing: without a .md suffix the output is the input file
    try:
        markdown = Path(md_file).read_bytes()
    except OSError:
        print(f"unable to open {md_file}", file=sys.stderr)
        sys.exit(1)

    if out_file == md_file:
        print(f"Warning: {md_file} has no .md suffix; overwriting it in place", file=sys.stderr)

    page = render_page(markdown, title_for(md_file), args.ratio, args.highlight_style)
    try:
        Path(out_file).write_bytes(page)
    except OSError:
        print(f"unable to write to {out_file}", file=sys.stderr)
        sys.exit(1)

    print(f"convert to remark, result in {out_file}")


if __name__ == "__main__":
    main()
