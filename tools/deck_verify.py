#!/usr/bin/env python3
"""
Slide Deck Consistency Verifier

Checks every slide container in a rendered slidedown page: slides that
ended up empty, layout tags that disagree with what the slide's elements
imply, code blocks labelled with a language Pygments cannot highlight,
duplicate slide ids and gaps in the slide numbering.

Usage:
    python tools/deck_verify.py path/to/deck.html
    python tools/deck_verify.py path/to/directory/  # checks all .html files
    python tools/deck_verify.py a.html b.html --verbose
"""

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

from bs4 import BeautifulSoup, Tag
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from slidedown import SLIDE_ID_PREFIX, classify_layout

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class SlideIssue:
    """A single problem found on a slide."""

    slide_num: int
    kind: str  # EMPTY, LAYOUT, LANGUAGE, DUPLICATE-ID, NUMBERING
    detail: str


@dataclass
class SlideReport:
    """Verification report for a single slide."""

    slide_num: int
    slide_id: str
    layout: str
    element_tags: list[str] = field(default_factory=list)
    issues: list[SlideIssue] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return len(self.issues) > 0


@dataclass
class DeckReport:
    """Verification report for an entire deck."""

    path: str
    total_slides: int
    slides: list[SlideReport] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return sum(len(s.issues) for s in self.slides)

    @property
    def slides_with_issues(self) -> int:
        return sum(1 for s in self.slides if s.has_issues)

    def layout_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for s in self.slides:
            counts[s.layout] = counts.get(s.layout, 0) + 1
        return counts


# ---------------------------------------------------------------------------
# Slide checks
# ---------------------------------------------------------------------------


def _content_of(slide_div: Tag) -> Tag:
    content = slide_div.find("div", class_="content", recursive=False)
    return content if content is not None else slide_div


def _is_known_language(lang: str) -> bool:
    try:
        get_lexer_by_name(lang)
    except ClassNotFound:
        return False
    return True


def verify_slide(slide_div: Tag, slide_num: int) -> SlideReport:
    """Check one ``div.slide`` container."""
    content = _content_of(slide_div)
    tags = [child.name for child in content.children if isinstance(child, Tag)]
    layout = content.get("data-layout", "")

    report = SlideReport(
        slide_num=slide_num,
        slide_id=slide_div.get("id", ""),
        layout=layout,
        element_tags=tags,
    )

    if not tags:
        report.issues.append(SlideIssue(slide_num, "EMPTY", "slide has no content"))

    expected = classify_layout(tags).value
    if not layout:
        report.issues.append(
            SlideIssue(slide_num, "LAYOUT", f"missing data-layout (expected {expected})")
        )
    elif layout != expected:
        report.issues.append(
            SlideIssue(
                slide_num,
                "LAYOUT",
                f"data-layout={layout} but {','.join(tags) or 'no elements'} implies {expected}",
            )
        )

    for pre in content.find_all("pre", class_=True):
        classes = pre.get("class") or []
        if not classes:
            continue
        lang = classes[0]
        if not _is_known_language(lang):
            report.issues.append(
                SlideIssue(slide_num, "LANGUAGE", f"no highlighter for language '{lang}'")
            )

    expected_id = f"{SLIDE_ID_PREFIX}{slide_num}"
    if report.slide_id != expected_id:
        report.issues.append(
            SlideIssue(
                slide_num, "NUMBERING", f"id '{report.slide_id}' at position {expected_id}"
            )
        )

    return report


def verify_html(html: str, path: str = "<string>") -> DeckReport:
    """Verify all slides in a rendered deck page."""
    soup = BeautifulSoup(html, "lxml")
    slides = soup.find_all("div", class_="slide")

    report = DeckReport(path=path, total_slides=len(slides))
    seen: dict[str, int] = {}

    for i, slide_div in enumerate(slides):
        slide_report = verify_slide(slide_div, i + 1)
        slide_id = slide_report.slide_id
        if slide_id and slide_id in seen:
            slide_report.issues.append(
                SlideIssue(
                    i + 1, "DUPLICATE-ID", f"id '{slide_id}' already used by slide {seen[slide_id]}"
                )
            )
        seen.setdefault(slide_id, i + 1)
        report.slides.append(slide_report)

    return report


def verify_deck(path: str) -> DeckReport:
    return verify_html(Path(path).read_text(encoding="utf-8"), path)


# ---------------------------------------------------------------------------
# Report formatting
# ---------------------------------------------------------------------------


def _slide_label(sr: SlideReport) -> str:
    return sr.slide_id or f"#{sr.slide_num}"


def format_report(report: DeckReport, verbose: bool = False) -> str:
    """One summary line for the deck, then one line per issue.

    With ``verbose`` the clean slides are listed too, with their layout and
    element tags.
    """
    if report.total_slides == 0:
        return f"{report.path}: no div.slide containers found"

    layouts = ", ".join(f"{k} {v}" for k, v in sorted(report.layout_counts().items()))
    if report.total_issues:
        status = f"{report.total_issues} issue(s) on {report.slides_with_issues} slide(s)"
    else:
        status = "clean"
    lines = [f"{report.path}: {report.total_slides} slides [{layouts}] - {status}"]

    for sr in report.slides:
        if verbose and not sr.has_issues:
            tags = ",".join(sr.element_tags)
            lines.append(f"  {_slide_label(sr):<10} {'ok':<12} {sr.layout} ({tags})")
        for issue in sr.issues:
            lines.append(f"  {_slide_label(sr):<10} {issue.kind:<12} {issue.detail}")

    return "\n".join(lines)


def collect_pages(paths: list[str]) -> list[Path]:
    pages: list[Path] = []
    for name in paths:
        path = Path(name)
        pages.extend(sorted(path.glob("*.html")) if path.is_dir() else [path])
    return pages


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="deck-verify", description="Check rendered slidedown pages for deck problems."
    )
    parser.add_argument("paths", nargs="+", help="Deck HTML files or directories of them")
    parser.add_argument("--verbose", action="store_true", help="Also list clean slides")

    args = parser.parse_args(argv)

    pages = collect_pages(args.paths)
    if not pages:
        print(f"Error: No .html files found in {', '.join(args.paths)}", file=sys.stderr)
        sys.exit(1)

    reports = []
    for page in pages:
        try:
            report = verify_deck(str(page))
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: Could not read {page}: {e}", file=sys.stderr)
            sys.exit(1)
        print(format_report(report, args.verbose))
        reports.append(report)

    total_slides = sum(r.total_slides for r in reports)
    total_issues = sum(r.total_issues for r in reports)
    print(f"\n{len(reports)} deck(s), {total_slides} slides, {total_issues} issue(s)")

    if total_issues:
        sys.exit(1)


if __name__ == "__main__":
    main()
