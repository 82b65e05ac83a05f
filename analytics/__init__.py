"""Analytics helpers package."""

from analytics.attribution import (
    attribute_goalkeepers,
    goalkeeper_for_shot,
    on_field_differentials,
    on_field_mask,
    prepare_shots,
    regular_goalkeeper,
)
from analytics.distributions import compare_to_baseline, xg_histogram
from analytics.goalkeeper import goalkeeper_list, goalkeeper_summary, shot_type_category
from analytics.player_metrics import PlayerMetrics, player_metrics, rank_player, team_baseline, team_metrics
from analytics.spatial_binning import BinningContext, binned_heatmap, scale_baseline_to_peak
from analytics.uncertainty import RateEstimate, binomial_rate_estimate, deterministic_seed, reliability_from_sample_size

__all__ = [
    "prepare_shots",
    "on_field_mask",
    "on_field_differentials",
    "regular_goalkeeper",
    "goalkeeper_for_shot",
    "attribute_goalkeepers",
    "xg_histogram",
    "compare_to_baseline",
    "BinningContext",
    "binned_heatmap",
    "scale_baseline_to_peak",
    "PlayerMetrics",
    "player_metrics",
    "team_baseline",
    "rank_player",
    "team_metrics",
    "goalkeeper_list",
    "goalkeeper_summary",
    "shot_type_category",
    "RateEstimate",
    "binomial_rate_estimate",
    "deterministic_seed",
    "reliability_from_sample_size",
]
