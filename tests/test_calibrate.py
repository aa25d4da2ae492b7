import os

import numpy as np

from bot2048.calibrate import (GameResult, format_summary, overlap_ratio, play_game,
                               run_calibration, save_results, separation_flags, summarize)
from bot2048.tiers import select_tier
from bot2048.visual import PATTERN, parse_log

from helpers import StepClock


def result(level, score, won=False, max_tile=256, seed=1):
    return GameResult(level=level, seed=seed, score=score, max_tile=max_tile, won=won,
                      moves=10, mean_move_ms=1.0, p95_move_ms=2.0)


def test_play_game_is_reproducible():
    a = play_game(1, 1, max_moves=40, clock=StepClock(0.002))
    b = play_game(1, 1, max_moves=40, clock=StepClock(0.002))
    assert (a.score, a.max_tile, a.moves) == (b.score, b.max_tile, b.moves)
    assert 0 < a.moves <= 40
    assert a.max_tile & (a.max_tile - 1) == 0
    assert not a.won


def test_summarize_and_ceiling_share():
    games = [result(3, s) for s in (100, 200, 300, 2000)]
    s = summarize(3, games)
    assert s.mean == 650
    assert s.median == 250
    assert s.win_rate == 0
    # ceiling 820 + span 700
    assert s.over_ceiling == 0.25
    assert s.max_tile_dist == {256: 1.0}
    assert summarize(10, [result(10, 50_000, won=True, max_tile=4096)]).over_ceiling is None


def test_overlap_and_separation():
    assert overlap_ratio(0, 10, 5, 15) == 0.5
    assert overlap_ratio(0, 10, 20, 30) == 0
    weak = summarize(2, [result(2, 900), result(2, 1000)])
    strong = summarize(3, [result(3, 400), result(3, 500)])
    flags = separation_flags(weak, strong)
    assert "non-monotonic mean score" in flags
    assert any(f.startswith("win-rate collision") for f in flags)
    good = summarize(4, [result(4, 5000, won=True), result(4, 6000, won=True)])
    assert separation_flags(strong, good) == []


def test_summary_lines_round_trip_through_plot_parser(tmp_path):
    s = summarize(4, [result(4, 1000), result(4, 1500)])
    lines = format_summary(s)
    assert PATTERN.match(lines[0])
    log = tmp_path / "cal.log"
    log.write_text("\n".join(["header"] + lines) + "\n", encoding="utf-8")
    rows = parse_log(str(log))
    assert rows == [(4, 1250.0, 1250.0, 1125.0, 1375.0, 0.0)]


def test_run_calibration_small(tmp_path):
    lines = []
    summaries, results = run_calibration(1, max_level=2, max_moves=15, clock=StepClock(0.002),
                                         logger=lines.append, progress=False)
    assert [s.level for s in summaries] == [1, 2]
    assert len(results) == 2
    assert "Neighbor-level separation checks" in lines
    assert any(l.startswith("L1->L2:") for l in lines)

    out = tmp_path / "cal" / "res.npz"
    save_results(str(out), summaries, results)
    data = np.load(out)
    assert data["level"].tolist() == [1, 2]
    assert data["summary_mean"].shape == (2,)


def test_debug_frames_are_rendered(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    g = play_game(2, 3, max_moves=3, clock=StepClock(0.002), timestamp="t")
    frames = os.listdir(tmp_path / "logs" / "t")
    assert len(frames) == g.moves + 1


def test_capped_tier_ends_far_below_top_tier():
    cfg = select_tier(1)
    band = cfg.score_ceil + cfg.ceil_span
    weak = [play_game(1, seed, max_moves=300, clock=StepClock(0.002)) for seed in (1, 2, 3)]
    strong = [play_game(10, seed, max_moves=300, clock=StepClock(0.01)) for seed in (1, 2)]
    # doom ramps to certainty past the band, so level 1 cannot drift far beyond it
    assert all(g.score < 6 * band for g in weak)
    assert max(g.score for g in weak) < min(g.score for g in strong)
