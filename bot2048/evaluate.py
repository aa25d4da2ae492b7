from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import List, Optional
from .config import (BOARD_SIZE, POS_TABLE, POS_SCALE, MONO_SCALE, SMOOTH_SCALE,
	CORNER_PRIMARY, CORNER_OTHER, CORNER_MISS, LATE_SCORE_CUTOFF)
from .utils import RandomSource, log2_tile

Grid = List[List[int]]

@dataclass
class EvalWeights:
	empty: float = 280.0
	mono: float = 1.0
	smooth: float = 1.0
	pos: float = 1.0
	corner: float = 1.0
	max_tile: float = 1.0
	score: float = 0.1

def _grid(board) -> Grid:
	return board.tolist() if isinstance(board, np.ndarray) else board

def empties(g: Grid) -> int:
	return sum(1 for row in g for v in row if v == 0)

def positional(g: Grid) -> float:
	s = 0.0
	for r in range(BOARD_SIZE):
		for c in range(BOARD_SIZE):
			v = g[r][c]
			if v:
				s += POS_TABLE[r][c] * log2_tile(v)
	return s * POS_SCALE

def line_monotonicity(line: List[int]) -> int:
	xs = [log2_tile(v) for v in line if v]
	if len(xs) < 2:
		return 0
	inc = dec = 0
	for a, b in zip(xs, xs[1:]):
		if b >= a:
			inc += 1
		if b <= a:
			dec += 1
	return max(inc, dec)

def monotonicity(g: Grid) -> float:
	m = sum(line_monotonicity(row) for row in g)
	m += sum(line_monotonicity([g[r][c] for r in range(BOARD_SIZE)]) for c in range(BOARD_SIZE))
	return m * MONO_SCALE

def smoothness(g: Grid) -> float:
	# non-positive; rougher boards score lower
	d = 0.0
	for r in range(BOARD_SIZE):
		for c in range(BOARD_SIZE):
			v = g[r][c]
			if not v:
				continue
			lv = log2_tile(v)
			if r + 1 < BOARD_SIZE and g[r + 1][c]:
				d += abs(lv - log2_tile(g[r + 1][c]))
			if c + 1 < BOARD_SIZE and g[r][c + 1]:
				d += abs(lv - log2_tile(g[r][c + 1]))
	return -d * SMOOTH_SCALE

def corner_lock(g: Grid) -> float:
	last = BOARD_SIZE - 1
	mx = max(max(row) for row in g)
	lg = log2_tile(mx or 2)
	if g[0][0] == mx:
		return CORNER_PRIMARY * lg
	if mx in (g[0][last], g[last][0], g[last][last]):
		return CORNER_OTHER * lg
	return -CORNER_MISS * lg

def phase_weights(g: Grid, score: float, smooth: Optional[float] = None) -> EvalWeights:
	"""Blend weights for the game phase.

	Early (many empties or small max tile) leans on open cells; mid favours
	structure slightly; late leans hard on structure, punishes roughness in
	two escalating steps and stops chasing raw score past the cutoff.
	"""
	n_empty = empties(g)
	mx = max(max(row) for row in g)
	roughness = max(0.0, -(smoothness(g) if smooth is None else smooth))
	w = EvalWeights()
	if n_empty >= 8 or mx <= 64:
		w.empty = 330.0
		w.smooth = 0.85
		w.mono = 0.9
		w.pos = 0.9
		w.corner = 0.9
		return w
	if n_empty >= 4 or mx <= 512:
		w.empty = 285.0
		w.mono = 1.18
		w.pos = 1.16
		w.corner = 1.1
		w.max_tile = 1.05
		return w
	w.empty = 210.0
	w.mono = 1.28
	w.pos = 1.22
	w.corner = 1.65
	w.max_tile = 1.12
	w.score = 0.08 if score > LATE_SCORE_CUTOFF else 0.1
	w.smooth = 2.1 if roughness > 13 else 1.65 if roughness > 8 else 1.35
	return w

def evaluate(board, score: float, noise: float = 0.0, rand: Optional[RandomSource] = None) -> float:
	g = _grid(board)
	smooth = smoothness(g)
	w = phase_weights(g, score, smooth)
	value = (empties(g) * w.empty
		+ monotonicity(g) * w.mono
		+ smooth * w.smooth
		+ positional(g) * w.pos
		+ corner_lock(g) * w.corner
		+ max(max(row) for row in g) * w.max_tile
		+ score * w.score)
	if noise:
		assert rand is not None, "noise needs a random source"
		value += (rand() - 0.5) * noise
	return value
