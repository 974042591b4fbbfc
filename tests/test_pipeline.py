from dataclasses import replace
from datetime import date

import pytest

from lotto_pdf.config import GameConfig, get_game
from lotto_pdf.errors import NoRowsError
from lotto_pdf.merge import merge_key
from lotto_pdf.models import RawToken
from lotto_pdf.pipeline import ParseTrace, parse_tokens
from tests.layouts import banner, draw_dates, row_values, session_rows, table_rows

FIVE = GameConfig.from_dict("test-five", {"name": "Test Five", "numbers_count": 5, "number_range": (1, 36)})


def test_single_pane_rows_sorted_by_date_with_print_order_values():
    dates = draw_dates(10)
    top_first = list(reversed(dates))
    values = [row_values(i, 5) for i in range(10)]
    tokens = banner(1) + table_rows(top_first, values)

    records = parse_tokens(tokens, FIVE)

    assert len(records) == 10
    assert [r.date for r in records] == dates
    expected = dict(zip(top_first, values))
    for r in records:
        assert list(r.values) == expected[r.date]
        assert r.session is None
        assert r.tag is None


def test_two_sessions_share_one_date():
    game = get_game("fantasy-5")
    days = draw_dates(3, start=date(2026, 2, 6), step=1)
    midday = [row_values(i, 5) for i in range(3)]
    evening = [row_values(i, 5, salt=5) for i in range(3)]
    tokens = banner(1) + session_rows(days, midday, evening)

    records = parse_tokens(tokens, game)

    assert len(records) == 6
    assert [(r.date, r.session) for r in records] == [
        (d, s) for d in days for s in ("midday", "evening")
    ]
    for i, day in enumerate(days):
        by_session = {r.session: r for r in records if r.date == day}
        assert list(by_session["midday"].values) == midday[i]
        assert list(by_session["evening"].values) == evening[i]


def _two_pane_page(game, left_tag, right_tag, n=4):
    dates = draw_dates(n)
    left = [row_values(i, 6, high=50) for i in range(n)]
    right = [row_values(i, 6, high=50, salt=3) for i in range(n)]
    tokens = table_rows(dates, left, x_date=40.0, x_values=100.0, tags=[left_tag] * n, x_tag=260.0)
    tokens += table_rows(dates, right, x_date=340.0, x_values=400.0, tags=[right_tag] * n, x_tag=560.0)
    return dates, left, right, banner(1) + tokens


def test_two_panes_keep_their_own_values_and_tags():
    game = get_game("powerball-double-play")
    dates, left, right, tokens = _two_pane_page(game, "POWERBALL", "POWERBALL DP")

    records = parse_tokens(tokens, game)

    assert len(records) == 2 * len(dates)
    primary = {r.date: list(r.values) for r in records if r.tag == "POWERBALL"}
    double = {r.date: list(r.values) for r in records if r.tag == "POWERBALL DP"}
    assert primary == dict(zip(dates, left))
    assert double == dict(zip(dates, right))


def test_two_panes_collapse_to_primary_when_tag_is_not_part_of_the_key():
    game = get_game("florida-lotto")
    dates, left, _, tokens = _two_pane_page(game, "LOTTO", "LOTTO DP")

    records = parse_tokens(tokens, game)

    assert [r.date for r in records] == dates
    assert all(r.tag == "LOTTO" for r in records)
    assert [list(r.values) for r in records] == left


def test_row_with_value_outside_tolerance_is_dropped():
    dates = draw_dates(6)
    values = [row_values(i, 5) for i in range(6)]
    tokens = table_rows(dates, values, pitch=20.0)
    # third value of row 2 drifts 10 units off its baseline (tolerance is 7)
    idx = next(i for i, t in enumerate(tokens)
               if t.x == 120.0 + 2 * 25.0 and t.y == 700.0 - 2 * 20.0)
    t = tokens[idx]
    tokens[idx] = RawToken(t.text, t.x, t.y + 10.0, t.page)

    records = parse_tokens(tokens, FIVE)

    assert len(records) == 5
    assert dates[2] not in {r.date for r in records}
    assert all(len(r.values) == 5 for r in records)


def _lotto_page(page, rows):
    dates = [d for d, _, _ in rows]
    values = [v for _, v, _ in rows]
    tags = [t for _, _, t in rows]
    return table_rows(dates, values, page=page, x_values=100.0, tags=tags, x_tag=300.0)


def test_duplicate_date_across_pages_keeps_higher_priority_tag():
    game = get_game("florida-lotto")
    d1, d2 = date(2024, 3, 2), date(2024, 3, 6)
    a, b, c = [1, 2, 3, 4, 5, 6], [10, 20, 30, 40, 50, 53], [7, 8, 9, 11, 12, 13]
    tokens = _lotto_page(1, [(d2, c, "LOTTO"), (d1, a, "LOTTO DP")])
    tokens += _lotto_page(2, [(d1, b, "LOTTO")])

    records = parse_tokens(tokens, game)

    assert [r.date for r in records] == [d1, d2]
    assert records[0].tag == "LOTTO"
    assert list(records[0].values) == b


def test_duplicate_date_keeps_first_record_when_incoming_ranks_lower():
    game = get_game("florida-lotto")
    d1 = date(2024, 3, 2)
    a, b = [1, 2, 3, 4, 5, 6], [10, 20, 30, 40, 50, 53]
    tokens = _lotto_page(1, [(d1, a, None)])
    tokens += _lotto_page(2, [(d1, b, "LOTTO DP")])

    records = parse_tokens(tokens, game)

    assert len(records) == 1
    assert records[0].tag is None
    assert list(records[0].values) == a


def test_zero_rows_raises_with_token_table():
    tokens = banner(1) + [
        RawToken("Draw Date", 50.0, 720.0, 1),
        RawToken("Winning Numbers", 150.0, 720.0, 1),
        RawToken("2024", 300.0, 700.0, 1),
        RawToken("99", 320.0, 700.0, 1),
    ]
    traces = []

    with pytest.raises(NoRowsError) as excinfo:
        parse_tokens(tokens, FIVE, on_trace=traces.append)

    trace = excinfo.value.trace
    assert isinstance(trace, ParseTrace)
    assert traces == [trace]
    rows = trace.token_rows()
    assert {r["text"] for r in rows} == {"Draw Date", "Winning Numbers", "2024", "99"}
    assert {r["kind"] for r in rows} == {"noise"}


def test_dates_without_values_is_fatal_too():
    tokens = table_rows(draw_dates(4), [[] for _ in range(4)])
    with pytest.raises(NoRowsError):
        parse_tokens(tokens, FIVE)


def test_empty_document_is_fatal():
    with pytest.raises(NoRowsError):
        parse_tokens([], FIVE)


def test_trace_reports_every_page():
    dates = draw_dates(6)
    tokens = table_rows(dates[:3], [row_values(i, 5) for i in range(3)], page=1)
    tokens += table_rows(dates[3:], [row_values(i, 5) for i in range(3, 6)], page=2)
    traces = []

    parse_tokens(tokens, FIVE, on_trace=traces.append)

    pages = traces[0].pages
    assert [p.page for p in pages] == [1, 2]
    assert [p.rows for p in pages] == [3, 3]
    assert all(p.panes == 1 for p in pages)
    assert "rows=3" in pages[0].summary()


def test_arity_and_merge_key_invariants():
    game = get_game("fantasy-5")
    days = draw_dates(5, step=1)
    midday = [row_values(i, 5) for i in range(5)]
    evening = [row_values(i, 5, salt=2) for i in range(5)]
    page1 = session_rows(days, midday, evening, page=1)
    # a reprint of the same draws on page 2
    page2 = session_rows(days, midday, evening, page=2)

    records = parse_tokens(page1 + page2, game)

    assert all(len(r.values) == game.numbers_count for r in records)
    keys = [merge_key(r, game) for r in records]
    assert len(keys) == len(set(keys)) == 10


def test_same_tokens_give_identical_output():
    dates = draw_dates(8)
    tokens = []
    for page in (1, 2, 3):
        tokens += table_rows(dates, [row_values(i, 5, salt=page) for i in range(8)], page=page)

    first = parse_tokens(tokens, FIVE)
    second = parse_tokens(tokens, FIVE)
    threaded = parse_tokens(tokens, FIVE, max_workers=3)

    assert first == second == threaded
    assert [r.to_dict() for r in first] == [r.to_dict() for r in threaded]


def test_wider_tolerance_never_loses_rows():
    dates = draw_dates(16)
    tokens = table_rows(dates, [row_values(i, 5) for i in range(16)], pitch=40.0)
    jittered = []
    for t in tokens:
        if t.x == 170.0:
            row = round((700.0 - t.y) / 40.0)
            t = RawToken(t.text, t.x, t.y - (row % 8) * 2.5, t.page)
        jittered.append(t)

    counts = []
    for fraction in (0.05, 0.1, 0.15, 0.2, 0.3, 0.4, 0.5):
        game = replace(FIVE, heuristics=FIVE.heuristics.with_overrides(
            tolerance_fraction=fraction, tolerance_min=0.0, tolerance_max=100.0))
        counts.append(len(parse_tokens(jittered, game)))

    assert counts == sorted(counts)
    assert counts[0] < counts[-1] == 16


def test_header_session_layout():
    game = get_game("cash-pop")
    headers = ["MORNING", "MATINEE", "AFTERNOON", "EVENING", "LATE NIGHT"]
    dates = draw_dates(3)
    values = [[(i + j) % 15 + 1 for j in range(5)] for i in range(3)]

    page1 = [RawToken(h, 150.0 + 60.0 * j, 720.0, 1) for j, h in enumerate(headers)]
    page1 += table_rows(dates, values, x_values=150.0, col_gap=60.0)
    # the header row is not repeated on later pages
    more = draw_dates(2, start=date(2024, 2, 1))
    page2 = table_rows(more, [[1, 2, 3, 4, 5], [6, 7, 8, 9, 10]], page=2, x_values=150.0, col_gap=60.0)

    records = parse_tokens(page1 + page2, game)

    assert len(records) == 5 * 5
    sessions = list(game.sessions)
    first_day = [r for r in records if r.date == dates[0]]
    assert [r.session for r in first_day] == sessions
    assert [r.values for r in first_day] == [(v,) for v in values[0]]
    last_day = [r for r in records if r.date == more[1]]
    assert [r.values[0] for r in last_day] == [6, 7, 8, 9, 10]
