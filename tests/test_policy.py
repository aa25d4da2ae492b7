from dataclasses import replace

import numpy as np
import pytest

from bot2048.evaluate import evaluate
from bot2048.expectimax import best_move, legal_outcomes
from bot2048.game import apply_move, legal_moves
from bot2048.policy import choose_move, fallback_move, pick, softmax_probs
from bot2048.tiers import apply_ceiling, select_tier
from bot2048.utils import make_rng

from helpers import CHECKER, LATEGAME, MIDGAME, StepClock, const_rand, grid

SPARSE = [
    [0, 0, 0, 0],
    [0, 2, 0, 0],
    [0, 0, 0, 0],
    [0, 0, 4, 0],
]


def flat(rows):
    return [v for row in rows for v in row]


def one_ply(b, score):
    return [evaluate(r.board, score + r.score_delta) for r in legal_outcomes(b).values()]


def test_stuck_board_returns_sentinel_at_every_level():
    for level in range(1, 11):
        assert choose_move(flat(CHECKER), 0, level, seed=1) == "left"


@pytest.mark.parametrize("level", range(1, 11))
def test_choice_is_always_legal(level):
    for rows in (SPARSE, MIDGAME, LATEGAME):
        b = grid(rows)
        legal = legal_moves(b)
        for seed in (1, 2, 3):
            for score in (0, 50_000):
                d = choose_move(flat(rows), score, level, seed=seed, clock=StepClock(0.002))
                assert d in legal
                assert apply_move(b, d).moved


@pytest.mark.parametrize("level", [1, 5, 8, 10])
def test_seeded_calls_repeat(level):
    a = choose_move(flat(LATEGAME), 4000, level, seed=99, clock=StepClock(0.002))
    b = choose_move(flat(LATEGAME), 4000, level, seed=99, clock=StepClock(0.002))
    assert a == b


def test_array_and_flat_input_agree():
    a = choose_move(flat(MIDGAME), 700, 6, seed=4, clock=StepClock(0.002))
    b = choose_move(grid(MIDGAME), 700, 6, seed=4, clock=StepClock(0.002))
    assert a == b


def test_flat_numpy_board_is_accepted():
    expected = choose_move(flat(MIDGAME), 700, 6, seed=4, clock=StepClock(0.002))
    d = choose_move(np.array(flat(MIDGAME)), 700, 6, seed=4, clock=StepClock(0.002))
    assert d == expected
    with pytest.raises(ValueError):
        choose_move(np.array([2] * 15), 0, 6)
    with pytest.raises(ValueError):
        choose_move(np.array([-2] + [0] * 15), 0, 6)


def test_bad_board_is_rejected():
    with pytest.raises(ValueError):
        choose_move([2] * 15, 0, 5)


def test_softmax_is_stable_and_sharpens():
    v = np.array([1000.0, 999.0, 0.0])
    p = softmax_probs(v, 1.0)
    assert p.sum() == pytest.approx(1.0)
    assert p[0] > p[1] > p[2]
    cold = softmax_probs(v, 1e-9)
    assert cold[0] == pytest.approx(1.0)


def test_doom_picks_worst_move():
    cfg = replace(select_tier(4), doom_prob=1.0, eval_noise=0)
    b = grid(MIDGAME)
    evs = one_ply(b, 0)
    worst = list(legal_outcomes(b))[int(np.argmin(evs))]
    for seed in range(5):
        assert pick(b, 0, cfg, make_rng(seed).random, StepClock(0.002)) == worst


def test_cold_greedy_tier_follows_one_ply_best():
    cfg = replace(select_tier(3), epsilon=0.0, temp=1e-9, eval_noise=0)
    b = grid(LATEGAME)
    outs = legal_outcomes(b)
    evs = dict(zip(outs, one_ply(b, 0)))
    for seed in range(5):
        d = pick(b, 0, cfg, make_rng(seed).random, StepClock(0.002))
        assert evs[d] == max(evs.values())


def test_epsilon_one_explores_every_legal_move():
    cfg = replace(select_tier(3), epsilon=1.0)
    b = grid(MIDGAME)
    seen = {pick(b, 0, cfg, make_rng(seed).random, StepClock(0.002)) for seed in range(60)}
    assert seen == set(legal_moves(b))


def test_strong_tiers_blend_to_engine_best():
    cfg = select_tier(8)
    b = grid(LATEGAME)
    best, _ = best_move(b, 3000, cfg, const_rand(0.0), StepClock(0.002))
    assert pick(b, 3000, cfg, const_rand(0.0), StepClock(0.002)) == best


def test_fallback_move():
    assert fallback_move(grid(CHECKER), const_rand(0.99)) == "left"
    lone = grid([[0, 2, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])
    assert fallback_move(lone, const_rand(0.2)) == "left"
    corner = grid([[2, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])
    assert fallback_move(corner, const_rand(0.99)) == "right"
    assert fallback_move(corner, const_rand(0.1)) == "right"


def test_past_ceiling_entry_point_plays_the_worst_move():
    cfg = select_tier(1)
    score = cfg.score_ceil + cfg.ceil_span + 1000
    assert apply_ceiling(cfg, score).doom_prob == 1.0
    b = grid(MIDGAME)
    evs = one_ply(b, score)
    worst = list(legal_outcomes(b))[int(np.argmin(evs))]
    # rand 0.5 cancels evaluation noise and still triggers doom
    assert choose_move(flat(MIDGAME), score, 1, rand=const_rand(0.5), clock=StepClock(0.002)) == worst
    for seed in range(4):
        eff = apply_ceiling(cfg, score)
        expected = pick(b, score, eff, make_rng(seed).random, StepClock(0.002))
        assert choose_move(flat(MIDGAME), score, 1, seed=seed, clock=StepClock(0.002)) == expected
