from __future__ import annotations
import argparse
import numpy as np
from typing import Optional, Sequence, Union
from .config import BEST_BLEND_LEVEL, BEST_BLEND_PROB, DIRECTIONS, FALLBACK_TAKE_PROB, MIN_TEMP, SENTINEL
from .evaluate import evaluate
from .expectimax import best_move, legal_outcomes
from .game import apply_move, legal_moves
from .tiers import TierConfig, apply_ceiling, select_tier, tier_name
from .utils import Clock, RandomSource, as_board, make_rng, parse_board

BoardLike = Union[np.ndarray, Sequence[int]]

def softmax_probs(values: np.ndarray, temp: float) -> np.ndarray:
	z = np.exp((values - values.max()) / max(MIN_TEMP, temp))
	return z / z.sum()

def pick(board: np.ndarray, score: float, cfg: TierConfig, rand: RandomSource,
		clock: Optional[Clock] = None) -> str:
	"""Turn the engine's recommendation into a tier-flavoured move.

	Order matters: doom (past the ceiling) short-circuits everything, then
	epsilon-random replaces the softmax sample, then strong tiers snap back
	to the engine's best most of the time.
	"""
	outcomes = legal_outcomes(board)
	if not outcomes:
		return SENTINEL
	legal = list(outcomes)
	best, _ = best_move(board, score, cfg, rand, clock)
	evs = np.array([evaluate(res.board, score + res.score_delta, cfg.eval_noise, rand) for res in outcomes.values()])
	probs = softmax_probs(evs, cfg.temp)
	cum = np.cumsum(probs)
	idx = int(np.searchsorted(cum, rand() * cum[-1]))
	soft = legal[min(idx, len(legal) - 1)]

	if cfg.doom_prob and rand() < cfg.doom_prob:
		return legal[int(np.argmin(evs))]

	mixed = legal[int(rand() * len(legal))] if rand() < cfg.epsilon else soft
	if cfg.level >= BEST_BLEND_LEVEL:
		return best if rand() < BEST_BLEND_PROB else mixed
	return mixed

def choose_move(board: BoardLike, score: float, level: int, seed: Optional[int] = None,
		clock: Optional[Clock] = None, rand: Optional[RandomSource] = None) -> str:
	"""Entry point: row-major board, running score and level 1-10 -> direction.

	Always answers; with nothing legal the answer is the sentinel and the
	caller decides the game is over. A seed (and a deterministic clock)
	makes the answer reproducible.
	"""
	b = as_board(board)
	cfg = apply_ceiling(select_tier(level), score)
	if rand is None:
		rand = make_rng(seed).random
	legal = legal_moves(b)
	if not legal:
		return SENTINEL
	d = pick(b, score, cfg, rand, clock)
	if apply_move(b, d).moved:
		return d
	return legal[0]

def fallback_move(board: np.ndarray, rand: RandomSource) -> str:
	"""Cheap legality-filtered pick for when the engine cannot answer in time."""
	legal = legal_moves(board)
	for d in DIRECTIONS:
		if d in legal and rand() < FALLBACK_TAKE_PROB:
			return d
	return legal[0] if legal else SENTINEL

def main():
	ap = argparse.ArgumentParser(description="Pick one 2048 move at a given difficulty level")
	ap.add_argument('--board', type=str, required=True, help='16 comma/semicolon-separated ints (row-major)')
	ap.add_argument('--score', type=int, default=0)
	ap.add_argument('--level', type=int, default=10, help='difficulty 1-10 (clamped)')
	ap.add_argument('--seed', type=int, default=None, help='RNG seed for reproducibility')
	args = ap.parse_args()

	if args.score < 0:
		raise ValueError('--score must be non-negative')
	board = parse_board(args.board)
	d = choose_move(board, args.score, args.level, seed=args.seed)
	print(f"level {args.level} ({tier_name(args.level)}): {d}")
	if not legal_moves(board):
		print("no legal move: game over")

if __name__ == '__main__':
	main()
