from __future__ import annotations
import numpy as np
from dataclasses import dataclass, field
from typing import List, Tuple
from .config import BOARD_SIZE, DIRECTIONS, LEFT, RIGHT, UP, SPAWN_4_PROB, START_TILES, WIN_TILE
from .utils import RandomSource, empty_cells, max_tile

@dataclass
class MoveOutcome:
	board: np.ndarray
	moved: bool
	score_delta: int = 0
	merged: List[Tuple[int, int]] = field(default_factory=list)

def compact_and_merge(line: List[int]) -> Tuple[List[int], int, List[int]]:
	"""Slide one line towards index 0.

	Returns the new line, the score gained and the indices (in the output)
	of the tiles created by a merge. A tile takes part in at most one merge.
	"""
	tiles = [v for v in line if v]
	out: List[int] = []
	merges: List[int] = []
	gained = 0
	i = 0
	while i < len(tiles):
		if i + 1 < len(tiles) and tiles[i] == tiles[i + 1]:
			v = tiles[i] * 2
			out.append(v)
			gained += v
			merges.append(len(out) - 1)
			i += 2
		else:
			out.append(tiles[i])
			i += 1
	out.extend([0] * (len(line) - len(out)))
	return out, gained, merges

def apply_move(board: np.ndarray, direction: str) -> MoveOutcome:
	assert direction in DIRECTIONS, f"unknown direction {direction!r}"
	n = BOARD_SIZE
	nxt = board.copy()
	gained = 0
	merged: List[Tuple[int, int]] = []
	horizontal = direction in (LEFT, RIGHT)
	forward = direction in (LEFT, UP)
	for k in range(n):
		line = (nxt[k, :] if horizontal else nxt[:, k]).tolist()
		raw = line if forward else line[::-1]
		out, g, merges = compact_and_merge(raw)
		fin = out if forward else out[::-1]
		if horizontal:
			nxt[k, :] = fin
		else:
			nxt[:, k] = fin
		gained += g
		for i in merges:
			pos = i if forward else n - 1 - i
			merged.append((k, pos) if horizontal else (pos, k))
	moved = not np.array_equal(nxt, board)
	return MoveOutcome(board=nxt, moved=moved, score_delta=gained, merged=merged)

def legal_moves(board: np.ndarray) -> List[str]:
	return [d for d in DIRECTIONS if apply_move(board, d).moved]

def has_legal_move(board: np.ndarray) -> bool:
	return any(apply_move(board, d).moved for d in DIRECTIONS)

class GameState:
	def __init__(self, board: np.ndarray | None = None, score: int = 0):
		self.board = np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=np.int64) if board is None else board.copy()
		self.score = score
		self.moves = 0
		self.merges = 0

	@classmethod
	def new_game(cls, rand: RandomSource) -> 'GameState':
		st = cls()
		for _ in range(START_TILES):
			st.spawn(rand)
		return st

	def clone(self) -> 'GameState':
		st = GameState(self.board, self.score)
		st.moves = self.moves
		st.merges = self.merges
		return st

	def spawn(self, rand: RandomSource):
		empties = empty_cells(self.board)
		if not empties:
			return None
		r, c = empties[int(rand() * len(empties))]
		self.board[r, c] = 4 if rand() < SPAWN_4_PROB else 2
		return (r, c)

	def apply(self, direction: str) -> MoveOutcome:
		res = apply_move(self.board, direction)
		assert res.moved, "illegal move for current state"
		self.board = res.board
		self.score += res.score_delta
		self.merges += len(res.merged)
		self.moves += 1
		return res

	def legal(self) -> List[str]:
		return legal_moves(self.board)

	def game_over(self) -> bool:
		return not has_legal_move(self.board)

	def max_tile(self) -> int:
		return max_tile(self.board)

	def won(self) -> bool:
		return self.max_tile() >= WIN_TILE

	def flat(self) -> List[int]:
		return self.board.flatten().tolist()
