import pytest

from ptybuf.htmlformat import LINE_LIMIT, format_buffer_html, render_html


def test_document_frame():
    html = render_html([])
    assert html.startswith("<!DOCTYPE html><html>")
    assert html.endswith("</table></body></html>")
    assert "<tr>" not in html


def test_words_become_cells():
    html = render_html(["a b\tc\n"])
    assert "<td>a</td>\n" in html
    assert "<td>b</td>\n" in html
    assert html.count("<td>") == 3
    assert html.count("<tr>") == 1


def test_repeated_separators_give_no_empty_cells():
    html = render_html(["one  \t two"])
    assert html.count("<td>") == 2
    assert "<td></td>" not in html


def test_one_row_per_line():
    lines = ["first line\n", "second\n", "third\n"]
    html = render_html(lines)
    assert html.count("<tr>") == len(lines)
    assert html.count("</tr>") == len(lines)


def test_long_line_is_split_into_rows():
    html = render_html(["x" * (LINE_LIMIT + 10) + "\n"])
    assert html.count("<tr>") == 2
    assert "<td>" + "x" * LINE_LIMIT + "</td>" in html


def test_format_buffer_html_round_trip(tmp_path):
    source = tmp_path / "buf.txt"
    source.write_text("ls -l\ntotal 0\n", encoding="utf-8")
    dest = tmp_path / "out.html"
    assert format_buffer_html(source, dest) == str(dest)
    written = dest.read_text(encoding="utf-8")
    assert written == render_html(["ls -l\n", "total 0\n"])
    assert written.count("<tr>") == 2


def test_format_buffer_html_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        format_buffer_html(tmp_path / "missing.txt", tmp_path / "out.html")