#!/usr/bin/env python3
"""
Parse a Florida Lottery "Winning Numbers History" PDF and convert to JSON/CSV.
Works for every game in lotto_pdf.config.GAMES (Lotto, Fantasy 5, Cash Pop,
Cash4Life, Powerball Double Play, Pick 2-5).

    python scripts/parse_pdf.py fantasy-5 --pdf ~/Downloads/ff.pdf
    python scripts/parse_pdf.py florida-lotto --csv
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lotto_pdf.config import DATA_DIR, DEBUG, GAMES, get_game
from lotto_pdf.errors import LottoPdfError, NoRowsError
from lotto_pdf.export import write_csv, write_json, write_token_dump
from lotto_pdf.merge import series_records
from lotto_pdf.pipeline import parse_tokens
from lotto_pdf.extract import extract_tokens
from lotto_pdf.source import load_pdf_bytes

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def run(args) -> int:
    game = get_game(args.game)
    out_dir = args.out_dir

    print("=" * 50)
    print(f"{game.name} PDF Parser")
    print("=" * 50)

    pdf_bytes = load_pdf_bytes(game, local_path=args.pdf, url=args.url)
    print(f"Loaded {len(pdf_bytes):,} bytes")

    traces = []
    try:
        draws = parse_tokens(extract_tokens(pdf_bytes), game, on_trace=traces.append,
                             max_workers=args.workers)
    except NoRowsError as e:
        print(f"  {e}")
        if e.trace is not None:
            dump = os.path.join(out_dir, f"{game.state}_{game.game_id}_debug_tokens.csv")
            write_token_dump(e.trace.token_rows(), dump)
            print(f"  Wrote debug tokens to: {dump}")
        return 1

    if args.debug_tokens and traces:
        write_token_dump(traces[0].token_rows(), args.debug_tokens)
        print(f"  Wrote debug tokens to: {args.debug_tokens}")

    draws = series_records(draws, game)
    if args.tag:
        draws = [d for d in draws if d.tag == args.tag]
    print(f"  Found {len(draws)} draws")

    output_file = os.path.join(out_dir, f"{game.state}_{game.game_id}.json")
    write_json(draws, game, output_file)
    print(f"  Saved to: {output_file}")

    if args.csv:
        if game.has_sessions:
            for session in game.sessions:
                path = os.path.join(out_dir, f"{game.game_id}_{session}.csv")
                n = write_csv(draws, game, path, session=session)
                print(f"  Wrote {n} {session} rows to: {path}")
        else:
            path = os.path.join(out_dir, f"{game.game_id}.csv")
            n = write_csv(draws, game, path)
            print(f"  Wrote {n} rows to: {path}")

    if draws:
        latest = draws[-1]
        when = f" {latest.session}" if latest.session else ""
        print(f"  Latest: {latest.date.isoformat()}{when} - {list(latest.values)}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Parse a lottery results PDF")
    parser.add_argument("game", help=f"Game id or name ({', '.join(GAMES)})")
    parser.add_argument("--pdf", help="Local PDF path (skips download)")
    parser.add_argument("--url", help="Explicit PDF URL (skips discovery)")
    parser.add_argument("--out-dir", default=DATA_DIR, help="Output directory")
    parser.add_argument("--csv", action="store_true", help="Also write canonical CSV files")
    parser.add_argument("--tag", help="Keep only draws with this tag (e.g. 'POWERBALL DP')")
    parser.add_argument("--debug-tokens", help="Write the classified token table to this CSV")
    parser.add_argument("--workers", type=int, default=1, help="Pages processed in parallel")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or DEBUG) else logging.INFO,
        format=LOG_FORMAT,
    )

    try:
        code = run(args)
    except LottoPdfError as e:
        print(f"Error: {e}")
        code = 1
    print("=" * 50)
    sys.exit(code)


if __name__ == "__main__":
    main()
