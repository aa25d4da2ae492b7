from __future__ import annotations
import cv2, math, os
import numpy as np
from typing import Callable, List, Optional, Sequence, Tuple
from .config import BOARD_SIZE, NUM_CELLS

RandomSource = Callable[[], float]
Clock = Callable[[], float]

# log2 lookup for every tile a 4x4 board can hold
_LOG2 = {0: 0.0, **{1 << k: float(k) for k in range(1, 18)}}

def in_bounds(r: int, c: int) -> bool:
	return 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE


def log2_tile(v: int) -> float:
	lg = _LOG2.get(v)
	return lg if lg is not None else math.log2(v)


def board_from_flat(flat: Sequence[int]) -> np.ndarray:
	vals = [int(x) for x in flat]
	if len(vals) != NUM_CELLS:
		raise ValueError(f"board must contain exactly {NUM_CELLS} integers (row-major), got {len(vals)}")
	if any(v < 0 for v in vals):
		raise ValueError("tile values must be non-negative")
	return np.array(vals, dtype=np.int64).reshape(BOARD_SIZE, BOARD_SIZE)


def as_board(board) -> np.ndarray:
	# a 4x4 array passes through; anything else is read as a row-major flat board
	if isinstance(board, np.ndarray) and board.shape == (BOARD_SIZE, BOARD_SIZE):
		return board
	return board_from_flat(np.ravel(board).tolist())


def parse_board(s: str) -> np.ndarray:
	# "2,0,4,...;..." -> 4x4 board
	return board_from_flat([x.strip() for x in s.replace(";", ",").split(",") if x.strip()])


def empty_cells(board: np.ndarray) -> List[Tuple[int, int]]:
	rows, cols = np.nonzero(board == 0)
	return list(zip(rows.tolist(), cols.tolist()))


def max_tile(board: np.ndarray) -> int:
	return int(board.max())


def with_tile(board: np.ndarray, r: int, c: int, v: int) -> np.ndarray:
	nb = board.copy()
	nb[r, c] = v
	return nb


def rotations(board: np.ndarray) -> List[np.ndarray]:
	# the four 90-degree images, no reflections
	return [np.rot90(board, k=-k) for k in range(4)]


def canonical_key(board: np.ndarray) -> Tuple[int, ...]:
	return min(tuple(b.flatten().tolist()) for b in rotations(board))


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
	# unseeded -> ambient entropy; seeded -> fully reproducible
	return np.random.default_rng(None if seed is None else int(seed) & 0xFFFFFFFF)


def tile_color(v: int) -> Tuple[int, int, int]:
	if v == 0:
		return (180, 193, 205)
	lg = min(log2_tile(v), 11.0) / 11.0
	# BGR, pale cream to deep orange
	return (int(218 - 160 * lg), int(228 - 110 * lg), int(238 - 10 * lg))


def print_board(board, timestamp, frame, silence=True):
	# 4*4 board by cv2
	cell_size = 100
	board_size = BOARD_SIZE * cell_size
	img = np.full((board_size + 4, board_size + 4, 3), 160, dtype=np.uint8)

	for r in range(BOARD_SIZE):
		for c in range(BOARD_SIZE):
			v = int(board[r][c])
			x1, y1 = c * cell_size + 6, r * cell_size + 6
			x2, y2 = (c + 1) * cell_size - 6, (r + 1) * cell_size - 6
			cv2.rectangle(img, (x1, y1), (x2, y2), tile_color(v), -1)
			if v:
				text = str(v)
				scale = 1.1 if len(text) <= 2 else 0.9 if len(text) == 3 else 0.7
				(tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, 2)
				cx = c * cell_size + (cell_size - tw) // 2
				cy = r * cell_size + (cell_size + th) // 2
				cv2.putText(img, text, (cx, cy), cv2.FONT_HERSHEY_SIMPLEX, scale, (50, 60, 70), 2, cv2.LINE_AA)

	if silence:
		save_dir = os.path.join('logs/', timestamp)
		os.makedirs(save_dir, exist_ok=True)
		save_path = os.path.join(save_dir, 'board' + str(frame) + '.png')
		cv2.imwrite(save_path, img)
		return save_path
	cv2.imshow("2048 Board", img)
	cv2.waitKey(0)
	cv2.destroyAllWindows()
	return None
