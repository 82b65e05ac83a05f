"""Command-line access to a snapshot-backed shot ledger.

    python -m ledger.cli --snapshot ledger.sqlite import shots.csv --game "Lions vs Bears" --date 2024-03-01
    python -m ledger.cli games
    python -m ledger.cli correct 17 --set shooter="Anna K" --turnover
    python -m ledger.cli metrics "Anna K"
"""

from __future__ import annotations

import argparse
import json
import logging

import pandas as pd

from analytics.player_metrics import player_metrics, team_baseline
from constants import JOURNAL_FILE, SNAPSHOT_FILE
from ledger.errors import LedgerError
from ledger.persistence import FileSnapshotUploader, MutationJournal
from ledger.store import ALL_GAMES, LedgerStore

logger = logging.getLogger(__name__)


def _parse_assignments(pairs: list[str]) -> dict[str, str]:
    fields = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise SystemExit(f"--set expects FIELD=VALUE, got {pair!r}")
        name, value = pair.split("=", 1)
        fields[name.strip()] = value
    return fields


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Floorball shot ledger")
    parser.add_argument("--snapshot", default=SNAPSHOT_FILE, help="SQLite snapshot file to load and upload to")
    parser.add_argument("--journal", default=None, help=f"Optional mutation journal (e.g. {JOURNAL_FILE})")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import a shot CSV into a game")
    imp.add_argument("csv")
    imp.add_argument("--game", required=True)
    imp.add_argument("--date", required=True)
    imp.add_argument("--team1")
    imp.add_argument("--team2")

    sub.add_parser("games", help="List games with shot counts")

    correct = sub.add_parser("correct", help="Save correction fields for a shot")
    correct.add_argument("shot_id", type=int)
    correct.add_argument("--set", action="append", default=[], metavar="FIELD=VALUE")
    correct.add_argument("--turnover", action="store_true")

    for name, help_text in (
        ("uncorrect", "Delete a shot's correction overlay"),
        ("hide", "Hide a shot from every view"),
        ("unhide", "Show a hidden shot again"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("shot_id", type=int)

    alias = sub.add_parser("alias", help="Set (or clear with an empty string) a game's display alias")
    alias.add_argument("game_id", type=int)
    alias.add_argument("alias")

    metrics = sub.add_parser("metrics", help="Player metrics against the team baseline")
    metrics.add_argument("player")
    metrics.add_argument("--game", default=ALL_GAMES)
    return parser


def run(args: argparse.Namespace, store: LedgerStore) -> dict:
    if args.command == "import":
        df = pd.read_csv(args.csv, dtype=str, keep_default_na=False)
        result = store.import_shots(args.game, args.date, df, team1=args.team1, team2=args.team2)
        return result.as_dict()
    if args.command == "games":
        return {"games": store.list_games()}
    if args.command == "correct":
        fields = _parse_assignments(args.set)
        if args.turnover:
            fields["is_turnover"] = True
        return {"correction": store.save_correction(args.shot_id, fields)}
    if args.command == "uncorrect":
        return {"deleted": store.delete_correction(args.shot_id)}
    if args.command == "hide":
        store.hide_shot(args.shot_id)
        return {"hidden": args.shot_id}
    if args.command == "unhide":
        store.unhide_shot(args.shot_id)
        return {"unhidden": args.shot_id}
    if args.command == "alias":
        store.set_game_alias(args.game_id, args.alias)
        return {"game": store.get_game(args.game_id)}
    if args.command == "metrics":
        shots = store.resolved_shots(args.game)
        metrics = player_metrics(args.player, shots)
        return {
            "player": metrics.as_dict() if metrics is not None else None,
            "team_baseline": team_baseline(shots),
        }
    raise SystemExit(f"unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    journal = MutationJournal(args.journal) if args.journal else None
    try:
        store = LedgerStore.open(FileSnapshotUploader(args.snapshot), journal=journal)
    except LedgerError as exc:
        logger.error("Could not open ledger: %s", exc)
        return 2

    try:
        payload = run(args, store)
    except LedgerError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    finally:
        if store.upload_pending:
            logger.warning("Snapshot upload still pending for %s", args.snapshot)
        store.close()

    print(json.dumps(payload, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
