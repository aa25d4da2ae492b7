from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional, Tuple
from .config import (RAMP_EPSILON, RAMP_TEMP, RAMP_NOISE, EPSILON_CAP,
	DEFAULT_CEIL_SPAN, DEFAULT_DOOM_MAX)

MIN_LEVEL, MAX_LEVEL = 1, 10

@dataclass(frozen=True)
class TierConfig:
	level: int
	base_depth: int
	boost: int
	time_ms: float
	sample: int
	epsilon: float
	temp: float
	eval_noise: float
	cache: bool = True
	full_chance: bool = False
	score_ceil: Optional[int] = None
	ceil_span: Optional[int] = None
	doom_max: Optional[float] = None
	# only non-zero once the ceiling ramp kicks in
	doom_prob: float = 0.0

	@property
	def max_depth(self) -> int:
		return self.base_depth + self.boost

	@property
	def has_ceiling(self) -> bool:
		return self.score_ceil is not None

# one row per level; strength rises with level
PLAN: Tuple[TierConfig, ...] = (
	TierConfig(1, 0, 0, 8, 3, 0.64, 2.9, 78, cache=False, score_ceil=80, ceil_span=260, doom_max=1.0),
	TierConfig(2, 1, 0, 11, 5, 0.46, 2.35, 56, cache=False, score_ceil=420, ceil_span=520, doom_max=0.95),
	TierConfig(3, 1, 0, 15, 7, 0.33, 2.0, 40, score_ceil=820, ceil_span=700, doom_max=0.86),
	TierConfig(4, 2, 0, 21, 9, 0.23, 1.72, 28, score_ceil=1450, ceil_span=860, doom_max=0.74),
	TierConfig(5, 2, 1, 32, 11, 0.16, 1.45, 19, score_ceil=2300, ceil_span=1100, doom_max=0.62),
	TierConfig(6, 3, 1, 50, 13, 0.1, 1.28, 13, score_ceil=3200, ceil_span=1300, doom_max=0.52),
	TierConfig(7, 3, 2, 74, 16, 0.06, 1.18, 9, score_ceil=4300, ceil_span=1550, doom_max=0.4),
	TierConfig(8, 4, 1, 112, 19, 0.03, 1.1, 6, score_ceil=5600, ceil_span=1900, doom_max=0.28),
	TierConfig(9, 4, 2, 160, 24, 0.015, 1.05, 3, score_ceil=7600, ceil_span=2300, doom_max=0.16),
	TierConfig(10, 5, 2, 900, 999, 0.0, 1.0, 0, full_chance=True),
)

TIER_NAMES = (
	"Goldfish", "Pigeon", "Rookie", "Apprentice", "Tactician",
	"Planner", "Strategist", "Master", "Oracle", "Unbeatable",
)

def clamp(x: float, lo: float = 0.0, hi: float = 1.0) -> float:
	return max(lo, min(hi, x))

def clamp_level(level) -> int:
	return int(clamp(int(level), MIN_LEVEL, MAX_LEVEL))

def select_tier(level) -> TierConfig:
	return PLAN[clamp_level(level) - 1]

def tier_name(level) -> str:
	return TIER_NAMES[clamp_level(level) - 1]

def ceiling_progress(cfg: TierConfig, score: float) -> float:
	"""k in [0, 1]: how far past the ceiling the score is, 0 when below it."""
	if cfg.score_ceil is None:
		return 0.0
	over = score - cfg.score_ceil
	if over <= 0:
		return 0.0
	span = cfg.ceil_span if cfg.ceil_span is not None else DEFAULT_CEIL_SPAN
	return clamp(over / span)

def apply_ceiling(cfg: TierConfig, score: float) -> TierConfig:
	if cfg.score_ceil is None or score <= cfg.score_ceil:
		return cfg
	k = ceiling_progress(cfg, score)
	doom_max = cfg.doom_max if cfg.doom_max is not None else DEFAULT_DOOM_MAX
	return replace(
		cfg,
		epsilon=clamp(cfg.epsilon + RAMP_EPSILON * k, 0.0, EPSILON_CAP),
		temp=cfg.temp + RAMP_TEMP * k,
		eval_noise=cfg.eval_noise + RAMP_NOISE * k,
		doom_max=doom_max,
		doom_prob=doom_max * k,
	)
