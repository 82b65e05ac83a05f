import json

import pandas as pd

from ledger.cli import build_parser, main

ROWS = [
    {
        "Date": "2024-03-01",
        "Team 1": "Lions",
        "Team 2": "Bears",
        "Time": time,
        "Shooting Team": "Lions",
        "Result": result,
        "Type": "Direct",
        "xG": 0.2,
        "xGOT": 0.3,
        "Shooter": "Anna",
        "Passer": "",
        "Distance": 6,
        "Angle": 25,
        "T1LW": "Anna",
        "T1G": "Gina",
        "T2G": "Hugo",
    }
    for time, result in ((10, "Goal"), (20, "Saved"))
]


def _run(capsys, *argv):
    code = main(list(argv))
    out = capsys.readouterr().out
    return code, (json.loads(out) if out.strip() else None)


def test_parser_requires_a_command():
    parser = build_parser()
    args = parser.parse_args(["hide", "3"])
    assert args.command == "hide"
    assert args.shot_id == 3


def test_import_correct_and_metrics(tmp_path, capsys):
    csv_path = tmp_path / "shots.csv"
    pd.DataFrame(ROWS).to_csv(csv_path, index=False)
    snapshot = str(tmp_path / "ledger.sqlite")
    journal = str(tmp_path / "ledger.jsonl")

    code, payload = _run(
        capsys, "--snapshot", snapshot, "--journal", journal, "import", str(csv_path), "--game", "Opener", "--date", "2024-03-01"
    )
    assert code == 0
    assert payload["inserted_count"] == 2
    assert payload["outcome"] == "imported"

    code, payload = _run(capsys, "--snapshot", snapshot, "import", str(csv_path), "--game", "Opener", "--date", "2024-03-01")
    assert payload["outcome"] == "all_duplicates"

    code, payload = _run(capsys, "--snapshot", snapshot, "games")
    assert [g["shot_count"] for g in payload["games"]] == [2]

    code, payload = _run(capsys, "--snapshot", snapshot, "correct", "2", "--set", "result=Goal", "--turnover")
    assert code == 0
    assert payload["correction"]["result"] == "Goal"
    assert payload["correction"]["is_turnover"] is True

    code, payload = _run(capsys, "--snapshot", snapshot, "metrics", "Anna")
    assert payload["player"]["goals"] == 2
    assert payload["team_baseline"]["goals"] == 2.0

    code, payload = _run(capsys, "--snapshot", snapshot, "hide", "1")
    code, payload = _run(capsys, "--snapshot", snapshot, "metrics", "Anna")
    assert payload["player"]["shots"] == 1

    code, payload = _run(capsys, "--snapshot", snapshot, "alias", "1", "Season opener")
    assert payload["game"]["display_name"] == "Season opener"


def test_errors_return_nonzero(tmp_path, capsys):
    snapshot = str(tmp_path / "ledger.sqlite")
    code, payload = _run(capsys, "--snapshot", snapshot, "uncorrect", "99")
    assert code == 1
    assert payload is None

    code, payload = _run(capsys, "--snapshot", snapshot, "correct", "1", "--set", "speed=9")
    assert code == 1
