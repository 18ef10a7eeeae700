"""
Tests for tools/deck_verify.py

Covers:
  - Clean decks produced by slidedown
  - Each issue kind (empty, layout, language, duplicate id, numbering)
  - Report formatting and the CLI exit status
"""

import pytest

from deck_verify import format_report, main, verify_deck, verify_html
from slidedown import from_markdown

DECK_MD = """# Title

## Subtitle

---

```python
x = 1
```

---

# Bye
"""


def slide(number, inner, layout="default", slide_id=None):
    slide_id = slide_id or f"slide-{number}"
    return (
        f'<div id="{slide_id}" class="slide">'
        f'<div class="content" data-layout="{layout}">{inner}</div></div>'
    )


def page(*slides):
    return f"<html><body>{''.join(slides)}</body></html>"


def kinds(report):
    return [issue.kind for s in report.slides for issue in s.issues]


class TestVerifyHtml:
    def test_rendered_deck_is_clean(self):
        show = from_markdown(DECK_MD)
        report = verify_html(str(show.page.document))
        assert report.total_slides == 3
        assert report.total_issues == 0
        assert report.layout_counts() == {"title-subtitle": 1, "default": 1, "title-only": 1}

    def test_empty_slide(self):
        report = verify_html(page(slide(1, "")))
        assert kinds(report) == ["EMPTY"]

    def test_layout_mismatch(self):
        report = verify_html(page(slide(1, "<h1>A</h1>", layout="default")))
        assert kinds(report) == ["LAYOUT"]
        assert "implies title-only" in report.slides[0].issues[0].detail

    def test_missing_layout(self):
        html = page('<div id="slide-1" class="slide"><div class="content"><p>x</p></div></div>')
        assert kinds(verify_html(html)) == ["LAYOUT"]

    def test_unknown_language(self):
        report = verify_html(page(slide(1, '<pre class="nosuchlang">x</pre>')))
        assert kinds(report) == ["LANGUAGE"]

    def test_known_language(self):
        report = verify_html(page(slide(1, '<pre class="python">x</pre>')))
        assert report.total_issues == 0

    def test_duplicate_and_numbering(self):
        report = verify_html(page(slide(1, "<p>a</p>"), slide(2, "<p>b</p>", slide_id="slide-1")))
        assert sorted(kinds(report)) == ["DUPLICATE-ID", "NUMBERING"]
        assert report.slides_with_issues == 1

    def test_no_slides(self):
        report = verify_html("<html><body><p>nothing</p></body></html>")
        assert report.total_slides == 0
        assert "no div.slide containers found" in format_report(report)

    def test_empty_class_on_pre(self):
        report = verify_html(page(slide(1, '<pre class="">x</pre>')))
        assert report.total_issues == 0


class TestFormatReport:
    def test_clean(self):
        report = verify_html(page(slide(1, "<p>a</p>")), path="talk.html")
        text = format_report(report)
        assert text == "talk.html: 1 slides [default 1] - clean"

    def test_verbose_lists_clean_slides(self):
        report = verify_html(page(slide(1, "<p>a</p>")), path="talk.html")
        lines = format_report(report, verbose=True).splitlines()
        assert len(lines) == 2
        assert "slide-1" in lines[1]
        assert "ok" in lines[1]
        assert "default (p)" in lines[1]

    def test_issues(self):
        report = verify_html(page(slide(1, "<h1>A</h1>")), path="talk.html")
        lines = format_report(report).splitlines()
        assert lines[0].endswith("1 issue(s) on 1 slide(s)")
        assert "LAYOUT" in lines[1]
        assert lines[1].lstrip().startswith("slide-1")


class TestMain:
    def test_clean_directory(self, tmp_path, capsys):
        (tmp_path / "a.html").write_text(str(from_markdown(DECK_MD).page.document), encoding="utf-8")
        main([str(tmp_path)])
        assert "1 deck(s), 3 slides, 0 issue(s)" in capsys.readouterr().out

    def test_several_files(self, tmp_path, capsys):
        for name in ("a.html", "b.html"):
            (tmp_path / name).write_text(page(slide(1, "<p>a</p>")), encoding="utf-8")
        main([str(tmp_path / "a.html"), str(tmp_path / "b.html")])
        assert "2 deck(s), 2 slides, 0 issue(s)" in capsys.readouterr().out

    def test_issues_exit_nonzero(self, tmp_path):
        path = tmp_path / "bad.html"
        path.write_text(page(slide(1, "")), encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main([str(path)])
        assert exc.value.code == 1

    def test_usage(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code != 0
        assert "usage" in capsys.readouterr().err.lower()

    def test_empty_directory(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(tmp_path)])
        assert exc.value.code == 1
        assert "No .html files found" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(tmp_path / "missing.html")])
        assert exc.value.code == 1
        assert "Could not read" in capsys.readouterr().err

    def test_verify_deck_reads_file(self, tmp_path):
        path = tmp_path / "deck.html"
        path.write_text(page(slide(1, "<p>a</p>")), encoding="utf-8")
        assert verify_deck(str(path)).total_slides == 1
