from __future__ import annotations
import concurrent.futures
from typing import Callable, Optional
from .policy import BoardLike, choose_move, fallback_move
from .utils import RandomSource, as_board, make_rng

class MoveService:
	"""Runs the engine off the caller's thread with an external timeout.

	The engine keeps its own deadline; this only guards the caller. When the
	answer does not arrive in time the caller gets `fallback_move` instead.
	"""

	def __init__(
		self,
		timeout: float = 2.0,
		executor: Optional[concurrent.futures.ThreadPoolExecutor] = None,
		rand: Optional[RandomSource] = None,
		engine: Callable[..., str] = choose_move,
		logger: Optional[Callable[[str], None]] = None,
	):
		self.timeout = timeout
		self._own_executor = executor is None
		self._executor = executor or concurrent.futures.ThreadPoolExecutor(max_workers=1)
		self._rand = rand or make_rng().random
		self._engine = engine
		self._log = logger or (lambda msg: None)
		self.fallbacks = 0

	def ask(self, board: BoardLike, score: float, level: int, seed: Optional[int] = None) -> str:
		b = as_board(board)
		future = self._executor.submit(self._engine, b, score, level, seed)
		try:
			return future.result(timeout=self.timeout)
		except concurrent.futures.TimeoutError:
			future.cancel()
			self.fallbacks += 1
			self._log(f"engine timed out after {self.timeout:.2f}s (level {level}); using fallback move")
			return fallback_move(b, self._rand)

	def close(self):
		if self._own_executor:
			self._executor.shutdown(wait=False)

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc, tb):
		self.close()
