import unittest

import pandas as pd

from analytics.goalkeeper import (
    QUADRANT_ACCEPTABLE_GOAL,
    QUADRANT_HERO_SAVE,
    QUADRANT_LOW_XG_GOAL,
    QUADRANT_ROUTINE_SAVE,
    goalkeeper_list,
    goalkeeper_summary,
    quadrant_counts,
    save_quadrant,
    shot_type_category,
    type_breakdown,
)


def _shot(game_id, shooting_team, result, xg, shot_type="Direct"):
    return {
        "game_id": game_id,
        "team1": "Lions",
        "team2": "Bears",
        "shooting_team": shooting_team,
        "result": result,
        "type": shot_type,
        "xg": xg,
        "t1g": "Gina",
        "t2g": "Hugo",
    }


def _shots():
    return pd.DataFrame(
        [
            _shot(1, "Bears", "Saved", 0.4),
            _shot(1, "Bears", "Saved", 0.2, "Turnover | One-timer"),
            _shot(1, "Bears", "Goal", 0.35),
            _shot(1, "Bears", "Goal", 0.05, "Rebound"),
            _shot(1, "Bears", "Goal", 0.2),
            _shot(1, "Bears", "Missed", 0.5),
            _shot(2, "Lions", "Saved", 0.1),
        ]
    )


class GoalkeeperTests(unittest.TestCase):
    def test_summary(self):
        summary = goalkeeper_summary("Gina", _shots())
        self.assertEqual(summary.shots_faced, 5)
        self.assertEqual(summary.saves, 2)
        self.assertEqual(summary.goals_against, 3)
        self.assertEqual(summary.save_pct, 40.0)
        self.assertLessEqual(summary.save_pct_ci_low, summary.save_pct)
        self.assertGreaterEqual(summary.save_pct_ci_high, summary.save_pct)
        self.assertEqual(summary.reliability, "low")
        self.assertAlmostEqual(summary.xg_against, 1.2)
        self.assertAlmostEqual(summary.goals_saved_above_expected, -1.8)
        self.assertEqual(summary.games, 1)

    def test_summary_is_reproducible(self):
        self.assertEqual(goalkeeper_summary("Gina", _shots()), goalkeeper_summary("Gina", _shots()))

    def test_unknown_goalkeeper(self):
        self.assertIsNone(goalkeeper_summary("Nobody", _shots()))

    def test_quadrants(self):
        counts = quadrant_counts(_shots(), "Gina")
        self.assertEqual(
            counts,
            {
                QUADRANT_HERO_SAVE: 1,
                QUADRANT_ROUTINE_SAVE: 1,
                QUADRANT_ACCEPTABLE_GOAL: 1,
                QUADRANT_LOW_XG_GOAL: 1,
            },
        )
        self.assertIsNone(save_quadrant(0.2, "Goal"))
        self.assertIsNone(save_quadrant(0.5, "Missed"))

    def test_goalkeeper_list(self):
        keepers = goalkeeper_list(_shots())
        self.assertEqual(keepers["goalkeeper"].tolist(), ["Gina", "Hugo"])
        self.assertEqual(keepers["shots_faced"].tolist(), [5, 1])

    def test_type_breakdown(self):
        breakdown = type_breakdown(_shots(), "Gina").set_index("category")
        self.assertEqual(breakdown.loc["Direct", "Goal"], 2)
        self.assertEqual(breakdown.loc["Direct", "Saved"], 1)
        self.assertEqual(breakdown.loc["One-timer Turnover", "Saved"], 1)
        self.assertEqual(breakdown.loc["Rebound", "Total"], 1)
        self.assertEqual(int(breakdown["Total"].sum()), 5)


def test_shot_type_category():
    assert shot_type_category("Direct") == "Direct"
    assert shot_type_category("Turnover | Direct") == "Direct Turnover"
    assert shot_type_category("Turnover | One-timer") == "One-timer Turnover"
    assert shot_type_category("Rebound") == "Rebound"
    assert shot_type_category("Wraparound") == "Other"
    assert shot_type_category(None) == "Other"
