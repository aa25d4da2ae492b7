BOARD_SIZE = 4
NUM_CELLS = BOARD_SIZE * BOARD_SIZE

# directions in tie-break priority order (favours the top-left corner)
LEFT, UP, RIGHT, DOWN = "left", "up", "right", "down"
DIRECTIONS = (LEFT, UP, RIGHT, DOWN)
MOVE_PRIO = {LEFT: 0, UP: 1, RIGHT: 2, DOWN: 3}
SENTINEL = LEFT  # returned when nothing is legal

NEIGHBORS = [(-1, 0), (1, 0), (0, -1), (0, 1)]

# tile spawns
SPAWN_4_PROB = 0.1
START_TILES = 2
WIN_TILE = 2048

# evaluator
POS_TABLE = (
	(7.0, 6.3, 5.6, 4.9),
	(6.4, 5.7, 5.0, 4.2),
	(5.8, 5.1, 4.4, 3.6),
	(6.6, 5.9, 5.2, 3.0),
)
POS_SCALE = 36
MONO_SCALE = 48
SMOOTH_SCALE = 0.5
CORNER_PRIMARY = 6
CORNER_OTHER = 2
CORNER_MISS = 8
LATE_SCORE_CUTOFF = 12000

# chance-node risk scoring
EDGE_BONUS = 0.8
CORNER_BONUS = 0.7

# ceiling ramp increments at k = 1
RAMP_EPSILON = 0.55
RAMP_TEMP = 1.6
RAMP_NOISE = 50
EPSILON_CAP = 0.98
DEFAULT_CEIL_SPAN = 800
DEFAULT_DOOM_MAX = 0.5

# policy
MIN_TEMP = 1e-6
BEST_BLEND_LEVEL = 8
BEST_BLEND_PROB = 0.88
FALLBACK_TAKE_PROB = 0.7

# calibration
MAX_MOVES = 6000  # safety cap
