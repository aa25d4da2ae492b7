from __future__ import annotations
import math
import time
import numpy as np
from typing import Dict, List, Optional, Tuple
from .config import BOARD_SIZE, DIRECTIONS, MOVE_PRIO, NEIGHBORS, SENTINEL, SPAWN_4_PROB, EDGE_BONUS, CORNER_BONUS
from .evaluate import evaluate
from .game import MoveOutcome, apply_move
from .tiers import TierConfig
from .utils import Clock, RandomSource, canonical_key, empty_cells, in_bounds, log2_tile, with_tile

Cell = Tuple[int, int]

def legal_outcomes(board: np.ndarray) -> Dict[str, MoveOutcome]:
	# insertion order follows direction priority
	out = {}
	for d in DIRECTIONS:
		res = apply_move(board, d)
		if res.moved:
			out[d] = res
	return out

def order_moves(outcomes: Dict[str, MoveOutcome], score: float, noise: float, rand: RandomSource) -> List[str]:
	q = {d: evaluate(res.board, score + res.score_delta, noise, rand) for d, res in outcomes.items()}
	return sorted(outcomes, key=lambda d: (-q[d], MOVE_PRIO[d]))

def chance_risk(board: np.ndarray, cell: Cell) -> float:
	"""How much a spawn at `cell` matters: heavy neighbours, edges and corners."""
	r, c = cell
	s = 0.0
	for dr, dc in NEIGHBORS:
		rr, cc = r + dr, c + dc
		if in_bounds(rr, cc) and board[rr, cc]:
			s += log2_tile(int(board[rr, cc]))
	last = BOARD_SIZE - 1
	on_row_edge = r in (0, last)
	on_col_edge = c in (0, last)
	if on_row_edge or on_col_edge:
		s += EDGE_BONUS
	if on_row_edge and on_col_edge:
		s += CORNER_BONUS
	return s

def top_k_cells(board: np.ndarray, empties: List[Cell], k: int) -> List[Cell]:
	if len(empties) <= k:
		return empties
	return sorted(empties, key=lambda rc: (-chance_risk(board, rc), rc[0], rc[1]))[:k]

class TranspositionTable:
	"""Chance-node values for one search, folded over board rotations.

	An entry answers a query only if it was searched at least as deep.
	"""
	def __init__(self):
		self._table: Dict[Tuple[int, ...], Tuple[int, float]] = {}

	def __len__(self):
		return len(self._table)

	def get(self, board: np.ndarray, depth: int) -> Optional[float]:
		hit = self._table.get(canonical_key(board))
		if hit is not None and hit[0] >= depth:
			return hit[1]
		return None

	def put(self, board: np.ndarray, depth: int, value: float):
		key = canonical_key(board)
		hit = self._table.get(key)
		if hit is None or hit[0] <= depth:
			self._table[key] = (depth, value)

class Expectimax:
	def __init__(self, cfg: TierConfig, rand: RandomSource, clock: Optional[Clock] = None):
		self.cfg = cfg
		self.rand = rand
		self.clock = clock or time.perf_counter
		self.deadline = math.inf
		self.table: Optional[TranspositionTable] = None
		self.completed_depth = -1

	def run(self, board: np.ndarray, score: float) -> Tuple[str, float]:
		"""Iterative-deepening expectimax from the tier's base depth up to base+boost.

		Returns the direction of the deepest iteration that produced one, with
		its value. Falls back to the one-ply ordering when no iteration got
		that far, and to the sentinel when nothing is legal.
		"""
		cfg = self.cfg
		self.deadline = self.clock() + cfg.time_ms / 1000.0
		self.table = TranspositionTable() if cfg.cache else None
		self.completed_depth = -1
		outcomes = legal_outcomes(board)
		if not outcomes:
			return SENTINEL, evaluate(board, score)
		first = order_moves(outcomes, score, cfg.eval_noise, self.rand)[0]
		res = outcomes[first]
		best_dir, best_val = first, evaluate(res.board, score + res.score_delta)
		for depth in range(cfg.base_depth, cfg.max_depth + 1):
			val, d = self._max_node(board, score, depth)
			if d is not None:
				best_dir, best_val = d, val
			if self._expired():
				break
			self.completed_depth = depth
		return best_dir, best_val

	def _expired(self) -> bool:
		return self.clock() > self.deadline

	def _max_node(self, board: np.ndarray, score: float, depth: int) -> Tuple[float, Optional[str]]:
		cfg = self.cfg
		outcomes = legal_outcomes(board)
		if depth == 0 or not outcomes or self._expired():
			return evaluate(board, score, cfg.eval_noise, self.rand), None
		best, best_dir = -math.inf, None
		for d in order_moves(outcomes, score, cfg.eval_noise, self.rand):
			res = outcomes[d]
			val = self._chance_node(res.board, score + res.score_delta, depth - 1)
			if val > best:
				best, best_dir = val, d
			if self._expired():
				break
		return best, best_dir

	def _chance_node(self, board: np.ndarray, score: float, depth: int) -> float:
		cfg = self.cfg
		if self.table is not None:
			hit = self.table.get(board, depth)
			if hit is not None:
				return hit
		empties = empty_cells(board)
		if depth == 0 or not empties or self._expired():
			return evaluate(board, score, cfg.eval_noise, self.rand)
		if cfg.full_chance:
			cells = empties
		else:
			cells = top_k_cells(board, empties, max(1, min(cfg.sample, len(empties))))
		acc, n = 0.0, 0
		interrupted = False
		for r, c in cells:
			v2, _ = self._max_node(with_tile(board, r, c, 2), score, depth)
			v4, _ = self._max_node(with_tile(board, r, c, 4), score, depth)
			acc += (1 - SPAWN_4_PROB) * v2 + SPAWN_4_PROB * v4
			n += 1
			if self._expired():
				interrupted = True
				break
		ev = acc / n
		if self.table is not None and not interrupted:
			self.table.put(board, depth, ev)
		return ev

def best_move(board: np.ndarray, score: float, cfg: TierConfig, rand: RandomSource,
		clock: Optional[Clock] = None) -> Tuple[str, float]:
	return Expectimax(cfg, rand, clock).run(board, score)
