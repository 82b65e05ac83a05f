import math
import unittest

import numpy as np
import pandas as pd

from analytics.distributions import compare_to_baseline, xg_bin_edges, xg_histogram
from analytics.geometry import mirror_points, project_shot
from analytics.spatial_binning import (
    PANE_AGAINST,
    PANE_FULL,
    PANE_OWN,
    BinningContext,
    binned_heatmap,
    hex_radius,
    hexbin_assign,
    league_average,
    scale_baseline_to_peak,
)


def _shot(x, y, result="Saved", shooting_team="Lions", shooter="A", xg=0.1, **slots):
    shot = {
        "team1": "Lions",
        "team2": "Bears",
        "shooting_team": shooting_team,
        "shooter": shooter,
        "result": result,
        "xg": xg,
        "x_graph": x,
        "y_graph": y,
    }
    shot.update(slots)
    return shot


class GeometryTests(unittest.TestCase):
    def test_project_shot(self):
        straight = project_shot(0, 0)
        self.assertAlmostEqual(straight["x_m"], 10.0)
        self.assertAlmostEqual(straight["y_m"], 3.5)
        self.assertAlmostEqual(straight["x_graph"], 300.0)
        self.assertAlmostEqual(straight["y_graph"], 105.0)

        ahead = project_shot(5, 90)
        self.assertAlmostEqual(ahead["x_m"], 10.0)
        self.assertAlmostEqual(ahead["y_m"], 8.5)

    def test_mirroring(self):
        x = np.array([100.0, 100.0])
        y = np.array([200.0, 200.0])
        vx, vy = mirror_points(x, y, np.array([True, False]), 600, 1200)
        self.assertEqual(vx.tolist(), [100.0, 500.0])
        self.assertEqual(vy.tolist(), [200.0, 1000.0])

        vx, vy = mirror_points(x, y, np.array([True, False]), 300, 600)
        self.assertEqual(vx.tolist(), [50.0, 250.0])
        self.assertEqual(vy.tolist(), [100.0, 500.0])


class HexbinTests(unittest.TestCase):
    def test_radius_scales_with_field_width(self):
        self.assertEqual(hex_radius(600), 28)
        self.assertEqual(hex_radius(300), 14)
        self.assertEqual(hex_radius(600, split=True), 20)

    def test_cell_centres(self):
        radius = 10.0
        dx = 2 * radius * math.sin(math.pi / 3)
        dy = 1.5 * radius
        col, row, cx, cy = hexbin_assign([0.0, dx / 2, dx], [0.0, dy, 0.0], radius)
        self.assertEqual(row.tolist(), [0, 1, 0])
        self.assertEqual(col.tolist(), [0, 0, 1])
        np.testing.assert_allclose(cx, [0.0, dx / 2, dx])
        np.testing.assert_allclose(cy, [0.0, dy, 0.0])

    def test_points_go_to_nearest_centre(self):
        radius = 12.0
        dx = 2 * radius * math.sin(math.pi / 3)
        dy = 1.5 * radius
        rng = np.random.default_rng(7)
        x = rng.uniform(0, 600, size=2000)
        y = rng.uniform(0, 1200, size=2000)
        col, row, cx, cy = hexbin_assign(x, y, radius)
        assigned = np.hypot(x - cx, y - cy)

        best = np.full(x.shape, np.inf)
        for d_row in range(-2, 3):
            for d_col in range(-2, 3):
                r = row + d_row
                c = col + d_col
                centre_x = (c + np.mod(r, 2) / 2.0) * dx
                centre_y = r * dy
                best = np.minimum(best, np.hypot(x - centre_x, y - centre_y))
        np.testing.assert_allclose(assigned, best, atol=1e-9)
        self.assertTrue((assigned <= radius + 1e-9).all())

    def test_invalid_radius(self):
        with self.assertRaises(ValueError):
            hexbin_assign([0.0], [0.0], 0)


class BinnedHeatmapTests(unittest.TestCase):
    def test_full_field_cells(self):
        shots = [
            _shot(291, 84, "Goal", xg=0.4),
            _shot(292, 85, "Saved", xg=0.2),
            _shot(300, 600, "Missed", xg=0.05),
        ]
        cells = binned_heatmap(shots, 600, 1200)
        self.assertEqual(len(cells), 2)
        self.assertEqual(set(cells["Pane"]), {PANE_FULL})

        busy = cells[cells["Shots"] == 2].iloc[0]
        self.assertEqual(busy["Goals"], 1)
        self.assertAlmostEqual(busy["SuccessRate"], 0.5)
        self.assertAlmostEqual(busy["MinXG"], 0.2)
        self.assertAlmostEqual(busy["AvgXG"], 0.3)
        self.assertAlmostEqual(busy["MaxXG"], 0.4)
        self.assertAlmostEqual(busy["SizeFactor"], 1.2)

        quiet = cells[cells["Shots"] == 1].iloc[0]
        self.assertAlmostEqual(quiet["SizeFactor"], 0.3 + 0.9 * 0.5 ** 0.8)

    def test_away_shots_are_mirrored_before_binning(self):
        cells = binned_heatmap([_shot(300, 105, shooting_team="Bears")], 600, 1200)
        self.assertGreater(cells["CellY"].iloc[0], 1000)

    def test_possession_and_invalid_coordinates_are_skipped(self):
        context = BinningContext()
        shots = [
            _shot(300, 105),
            _shot(300, 105, "Possession lost"),
            _shot(np.nan, 105),
            _shot(-5, 105),
        ]
        cells = binned_heatmap(shots, 600, 1200, context=context)
        self.assertEqual(int(cells["Shots"].sum()), 1)
        diag = context.as_dict()[PANE_FULL]
        self.assertEqual(diag["skipped_possession"], 1)
        self.assertEqual(diag["skipped_invalid"], 2)
        self.assertEqual(diag["binned_shots"], 1)

    def test_split_panes_use_separate_halves(self):
        shots = [
            _shot(300, 105, "Goal", shooter="A", t1lw="A"),
            _shot(300, 105, "Saved", shooting_team="Bears", shooter="X", t1lw="A"),
            _shot(300, 105, "Saved", shooting_team="Bears", shooter="X", t1lw="B"),
        ]
        context = BinningContext()
        cells = binned_heatmap(shots, 600, 1200, focus_entity="A", context=context)

        own = cells[cells["Pane"] == PANE_OWN]
        against = cells[cells["Pane"] == PANE_AGAINST]
        self.assertEqual(int(own["Shots"].sum()), 1)
        self.assertEqual(int(against["Shots"].sum()), 1)
        self.assertTrue((own["CellY"] < 600).all())
        self.assertTrue((against["CellY"] > 600).all())
        self.assertEqual(set(context.panes), {PANE_OWN, PANE_AGAINST})
        self.assertEqual(context.panes[PANE_OWN].radius, 20)

    def test_empty_input(self):
        cells = binned_heatmap([], 600, 1200)
        self.assertTrue(cells.empty)
        self.assertIn("SuccessRate", cells.columns)


def test_scale_baseline_to_peak():
    np.testing.assert_allclose(scale_baseline_to_peak([2, 4, 1], [1, 2, 0]), [1.0, 2.0, 0.5])
    np.testing.assert_allclose(scale_baseline_to_peak([0, 0], [3, 1]), [0.0, 0.0])


def test_league_average():
    shots = [_shot(1, 1, "Goal"), _shot(1, 1, "Saved"), _shot(1, 1, "Missed"), _shot(1, 1, "Blocked")]
    assert league_average(shots) == 0.25
    assert league_average([]) == 0.0


def test_xg_histogram_bins_and_stacks():
    shots = pd.DataFrame(
        [
            {"xg": 0.02, "result": "Goal"},
            {"xg": 0.05, "result": "Blocked"},
            {"xg": 0.07, "result": "Saved"},
            {"xg": 0.6, "result": "Missed"},
            {"xg": 0.7, "result": "Goal"},
        ]
    )
    hist = xg_histogram(shots)
    assert len(hist) == len(xg_bin_edges()) - 1 == 12
    assert hist.loc[0, "Goal"] == 1
    assert hist.loc[1, "Total"] == 2
    assert hist.loc[1, "Blocked"] == 1
    assert hist.loc[11, "Missed"] == 1
    assert int(hist["Total"].sum()) == 4


def test_compare_to_baseline_matches_peaks():
    everything = pd.DataFrame([{"xg": 0.01, "result": "Goal"}] * 4 + [{"xg": 0.2, "result": "Saved"}] * 2)
    subset = everything.iloc[[0, 4]]
    compared = compare_to_baseline(xg_histogram(subset), xg_histogram(everything))
    assert compared["Baseline"].max() == compared["Total"].max() == 1
    assert compared.loc[0, "Baseline"] == 1.0
    assert compared.loc[4, "Baseline"] == 0.5
