import logging

import pytest

from lotto_pdf import extract
from lotto_pdf.config import GameConfig
from lotto_pdf.extract import extract_tokens, split_word
from lotto_pdf.models import RawToken
from lotto_pdf.pipeline import parse_tokens

HEIGHT = 800.0


def word(text, x0=100.0, bottom=100.0, char_width=5.0, with_chars=True):
    w = {
        "text": text,
        "x0": x0,
        "x1": x0 + char_width * len(text),
        "bottom": bottom,
    }
    if with_chars:
        w["chars"] = [
            {"text": ch, "x0": x0 + i * char_width, "bottom": bottom}
            for i, ch in enumerate(text)
        ]
    return w


def test_plain_word_is_one_token_in_user_space():
    assert split_word(word("12"), HEIGHT, 2) == [RawToken("12", 100.0, 700.0, 2)]


def test_dashed_run_is_split_at_digit_boundaries():
    tokens = split_word(word("21- 26- 30"), HEIGHT, 1)
    assert [t.text for t in tokens] == ["21", "26", "30"]
    assert [t.x for t in tokens] == [100.0, 120.0, 140.0]
    assert all(t.y == 700.0 for t in tokens)


def test_dashed_run_without_char_boxes_uses_even_widths():
    tokens = split_word(word("5-17-", with_chars=False), HEIGHT, 1)
    assert [t.text for t in tokens] == ["5", "17"]
    assert [t.x for t in tokens] == [100.0, 110.0]


def test_dashed_date_is_not_split():
    tokens = split_word(word("12-05-20"), HEIGHT, 1)
    assert [t.text for t in tokens] == ["12-05-20"]


def test_blank_separated_row_is_split_into_runs():
    tokens = split_word(word("2/8/26 EVENING 4 8 11 34 35"), HEIGHT, 1)
    assert [t.text for t in tokens] == ["2/8/26", "EVENING", "4", "8", "11", "34", "35"]
    assert [t.x for t in tokens] == [100.0, 135.0, 175.0, 185.0, 195.0, 210.0, 225.0]
    assert all(t.y == 700.0 for t in tokens)


def test_blank_separated_row_keeps_spelled_out_date_whole():
    tokens = split_word(word("Feb 7, 2026 4 8 11"), HEIGHT, 1)
    assert [t.text for t in tokens] == ["Feb 7, 2026", "4", "8", "11"]
    assert tokens[0].x == 100.0


def test_phrases_without_number_runs_stay_whole():
    for text in ("Page 1 of 2", "LOTTO DP", "Feb 7, 2026", "LATE NIGHT"):
        assert [t.text for t in split_word(word(text), HEIGHT, 1)] == [text]


class FakePage:
    def __init__(self, words, height=HEIGHT, broken=False):
        self.words = words
        self.height = height
        self.broken = broken
        self.options = None

    def extract_words(self, **options):
        if self.broken:
            raise ValueError("bad font metrics")
        self.options = options
        return self.words


class FakePdf:
    def __init__(self, pages):
        self.pages = pages

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def fake_open(monkeypatch):
    opened = []

    def install(pages):
        def _open(source):
            opened.append(source)
            return FakePdf(pages)
        monkeypatch.setattr(extract.pdfplumber, "open", _open)
        return opened

    return install


def test_extract_tokens_numbers_pages_and_skips_blank_words(fake_open):
    page1 = FakePage([word("02/07/26", x0=50.0), word("  "), word("21- 26", x0=120.0)])
    page2 = FakePage([word("E", x0=110.0, bottom=200.0)])
    fake_open([page1, page2])

    tokens = extract_tokens("history.pdf")

    assert [(t.text, t.page) for t in tokens] == [
        ("02/07/26", 1), ("21", 1), ("26", 1), ("E", 2),
    ]
    assert tokens[-1].y == 600.0
    assert page1.options["keep_blank_chars"] is True
    assert page1.options["return_chars"] is True


def test_extract_tokens_wraps_bytes(fake_open):
    opened = fake_open([FakePage([word("7")])])
    extract_tokens(b"%PDF-1.4 fake")
    assert opened[0].read() == b"%PDF-1.4 fake"


def test_failing_page_is_skipped_and_logged(fake_open, caplog):
    fake_open([FakePage([word("1")]), FakePage([], broken=True), FakePage([word("2")])])

    with caplog.at_level(logging.WARNING, logger="lotto_pdf.extract"):
        tokens = extract_tokens("history.pdf")

    assert [(t.text, t.page) for t in tokens] == [("1", 1), ("2", 3)]
    assert "Skipping page 2" in caplog.text


def test_rows_printed_as_single_runs_still_parse(fake_open):
    game = GameConfig.from_dict("test-five", {"name": "Test Five", "numbers_count": 5, "number_range": (1, 36)})
    lines = [
        "01/07/2024 04 08 11 34 35",
        "01/04/2024 02 13 21 30 36",
        "01/01/2024 01 09 17 25 33",
    ]
    fake_open([FakePage([word(text, bottom=100.0 + 14 * i, char_width=6.0)
                         for i, text in enumerate(lines)])])

    records = parse_tokens(extract_tokens("history.pdf"), game)

    assert [(r.date.isoformat(), r.values) for r in records] == [
        ("2024-01-01", (1, 9, 17, 25, 33)),
        ("2024-01-04", (2, 13, 21, 30, 36)),
        ("2024-01-07", (4, 8, 11, 34, 35)),
    ]
