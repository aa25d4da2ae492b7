from __future__ import annotations
import argparse, os, time
import numpy as np
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from tqdm import trange
from typing import Callable, Dict, List, Optional, Tuple
from .config import MAX_MOVES
from .game import GameState
from .policy import choose_move
from .tiers import MAX_LEVEL, MIN_LEVEL, PLAN, select_tier, tier_name
from .utils import Clock, make_rng, print_board

# neighbour-level separation thresholds
MAX_IQR_OVERLAP = 0.35
MIN_WIN_DELTA = 0.08

@dataclass
class GameResult:
	level: int
	seed: int
	score: int
	max_tile: int
	won: bool
	moves: int
	mean_move_ms: float
	p95_move_ms: float

@dataclass
class LevelSummary:
	level: int
	games: int
	mean: float
	median: float
	p25: float
	p75: float
	win_rate: float
	max_tile_dist: Dict[int, float] = field(default_factory=dict)
	move_mean: float = 0.0
	move_median: float = 0.0
	move_p95: float = 0.0
	# share of games ending above ceil + span; None for tiers without a ceiling
	over_ceiling: Optional[float] = None

def env_seed(level: int, seed: int) -> int:
	return seed * 9719 + level * 17

def move_seed(seed: int, move_index: int) -> int:
	return (seed + 1) * 100_000 + move_index

def play_game(level: int, seed: int, max_moves: int = MAX_MOVES, clock: Optional[Clock] = None,
		timestamp: Optional[str] = None) -> GameResult:
	"""Play one seeded game at `level` until no move is left or the cap is hit.

	With `timestamp` set, every position is rendered under logs/<timestamp>/.
	"""
	env = make_rng(env_seed(level, seed))
	st = GameState.new_game(env.random)
	move_ms: List[float] = []
	if timestamp is not None:
		print_board(st.board, timestamp, 0)
	while st.moves < max_moves and not st.game_over():
		t0 = time.perf_counter()
		d = choose_move(st.board, st.score, level, seed=move_seed(seed, st.moves), clock=clock)
		move_ms.append((time.perf_counter() - t0) * 1000.0)
		if d not in st.legal():
			break
		st.apply(d)
		st.spawn(env.random)
		if timestamp is not None:
			print_board(st.board, timestamp, st.moves)
	return GameResult(
		level=level,
		seed=seed,
		score=int(st.score),
		max_tile=st.max_tile(),
		won=st.won(),
		moves=st.moves,
		mean_move_ms=float(np.mean(move_ms)) if move_ms else 0.0,
		p95_move_ms=float(np.quantile(move_ms, 0.95)) if move_ms else 0.0,
	)

def summarize(level: int, games: List[GameResult]) -> LevelSummary:
	assert games, "need at least one game to summarize"
	scores = np.array([g.score for g in games], dtype=np.float64)
	tiles = Counter(g.max_tile for g in games)
	cfg = select_tier(level)
	over = None
	if cfg.has_ceiling:
		cap = cfg.score_ceil + (cfg.ceil_span or 0)
		over = float(np.mean(scores > cap))
	return LevelSummary(
		level=level,
		games=len(games),
		mean=float(scores.mean()),
		median=float(np.quantile(scores, 0.5)),
		p25=float(np.quantile(scores, 0.25)),
		p75=float(np.quantile(scores, 0.75)),
		win_rate=sum(g.won for g in games) / len(games),
		max_tile_dist={t: n / len(games) for t, n in sorted(tiles.items())},
		move_mean=float(np.mean([g.mean_move_ms for g in games])),
		move_median=float(np.quantile([g.mean_move_ms for g in games], 0.5)),
		move_p95=float(np.quantile([g.p95_move_ms for g in games], 0.95)),
		over_ceiling=over,
	)

def overlap_ratio(a0: float, a1: float, b0: float, b1: float) -> float:
	overlap = max(0.0, min(a1, b1) - max(a0, b0))
	span = max(a1 - a0, b1 - b0, 1.0)
	return overlap / span

def separation_flags(a: LevelSummary, b: LevelSummary) -> List[str]:
	"""Problems between neighbouring levels `a` (weaker) and `b` (stronger)."""
	flags = []
	overlap = overlap_ratio(a.p25, a.p75, b.p25, b.p75)
	if not b.mean > a.mean:
		flags.append("non-monotonic mean score")
	if not b.win_rate >= a.win_rate:
		flags.append("non-monotonic win-rate")
	if overlap > MAX_IQR_OVERLAP:
		flags.append(f"score-band overlap {overlap * 100:.1f}%")
	if abs(b.win_rate - a.win_rate) < MIN_WIN_DELTA:
		flags.append(f"win-rate collision Δ={(b.win_rate - a.win_rate) * 100:.1f}pp")
	return flags

def format_summary(s: LevelSummary) -> List[str]:
	dist = ", ".join(f"{t}:{p * 100:.1f}%" for t, p in s.max_tile_dist.items())
	lines = [
		f"L{s.level}: score mean={s.mean:.1f}, median={s.median:.1f}, IQR=[{s.p25:.1f}, {s.p75:.1f}], winRate2048={s.win_rate * 100:.1f}%",
		f"    maxTile: {dist}",
		f"    move ms: mean={s.move_mean:.2f}, median={s.move_median:.2f}, p95={s.move_p95:.2f}",
	]
	if s.over_ceiling is not None:
		lines.append(f"    above ceiling band: {s.over_ceiling * 100:.1f}%")
	return lines

def run_calibration(games_per_level: int, max_level: int = MAX_LEVEL, max_moves: int = MAX_MOVES,
		clock: Optional[Clock] = None, logger: Optional[Callable[[str], None]] = None,
		progress: bool = True, debug: bool = False) -> Tuple[List[LevelSummary], List[GameResult]]:
	log = logger or print
	summaries: List[LevelSummary] = []
	results: List[GameResult] = []
	for level in range(MIN_LEVEL, min(MAX_LEVEL, max_level) + 1):
		games = []
		for i in trange(games_per_level, desc=f"L{level} {tier_name(level)}", disable=not progress):
			stamp = None
			if debug:
				stamp = f"{datetime.now().strftime('%Y%m%d.%H%M%S')}-L{level}-g{i + 1}"
			games.append(play_game(level, i + 1, max_moves, clock=clock, timestamp=stamp))
		s = summarize(level, games)
		summaries.append(s)
		results.extend(games)
		for line in format_summary(s):
			log(line)

	log("")
	log("Neighbor-level separation checks")
	for a, b in zip(summaries, summaries[1:]):
		flags = separation_flags(a, b)
		overlap = overlap_ratio(a.p25, a.p75, b.p25, b.p75)
		status = "FLAG" if flags else "OK"
		log(f"L{a.level}->L{b.level}: {status} | overlap={overlap * 100:.1f}%, meanΔ={b.mean - a.mean:.1f}, winΔ={(b.win_rate - a.win_rate) * 100:.1f}pp")
		if flags:
			log(f"    {'; '.join(flags)}")
	return summaries, results

def save_results(path: str, summaries: List[LevelSummary], results: List[GameResult]):
	out_dir = os.path.dirname(path)
	if out_dir:
		os.makedirs(out_dir, exist_ok=True)
	np.savez_compressed(
		path,
		level=np.array([g.level for g in results], dtype=np.int32),
		seed=np.array([g.seed for g in results], dtype=np.int32),
		score=np.array([g.score for g in results], dtype=np.int64),
		max_tile=np.array([g.max_tile for g in results], dtype=np.int64),
		won=np.array([g.won for g in results], dtype=np.bool_),
		moves=np.array([g.moves for g in results], dtype=np.int32),
		summary_level=np.array([s.level for s in summaries], dtype=np.int32),
		summary_mean=np.array([s.mean for s in summaries], dtype=np.float64),
		summary_p25=np.array([s.p25 for s in summaries], dtype=np.float64),
		summary_p75=np.array([s.p75 for s in summaries], dtype=np.float64),
		summary_win=np.array([s.win_rate for s in summaries], dtype=np.float64),
	)

def main():
	ap = argparse.ArgumentParser(description="Calibrate the ten difficulty levels with seeded self-play")
	ap.add_argument('--games', type=int, default=16, help='games per level')
	ap.add_argument('--max-level', type=int, default=MAX_LEVEL)
	ap.add_argument('--max-moves', type=int, default=MAX_MOVES, help='per-game move cap')
	ap.add_argument('--log', type=str, default=None, help='append every report line to this file')
	ap.add_argument('--out', type=str, default=None, help='save per-game results to this .npz')
	ap.add_argument('--debug', action='store_true', help='render every position under logs/')
	args = ap.parse_args()

	if args.games < 1:
		raise ValueError('--games must be at least 1')
	if not MIN_LEVEL <= args.max_level <= MAX_LEVEL:
		raise ValueError(f'--max-level must be within [{MIN_LEVEL}, {MAX_LEVEL}]')

	log_f = None
	if args.log is not None:
		log_dir = os.path.dirname(args.log)
		if log_dir:
			os.makedirs(log_dir, exist_ok=True)
		log_f = open(args.log, "a", encoding="utf-8")
	def logger(msg: str):
		print(msg)
		if log_f:
			log_f.write(msg + "\n"); log_f.flush()

	try:
		logger(f"Bot calibration ({args.games} games / level, levels {MIN_LEVEL}-{args.max_level}, maxMoves {args.max_moves})")
		for cfg in PLAN[:args.max_level]:
			logger(f"  plan L{cfg.level}: depth={cfg.base_depth}+{cfg.boost} timeMs={cfg.time_ms} eps={cfg.epsilon} temp={cfg.temp} noise={cfg.eval_noise} ceil={cfg.score_ceil} doomMax={cfg.doom_max}")
		summaries, results = run_calibration(args.games, args.max_level, args.max_moves, logger=logger, debug=args.debug)
		if args.out:
			save_results(args.out, summaries, results)
			logger(f"Saved {len(results)} games to {args.out}")
	finally:
		if log_f:
			log_f.close()

if __name__ == '__main__':
	main()
