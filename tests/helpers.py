import numpy as np


class StepClock:
    """Deterministic clock: every read advances time by `step` seconds."""

    def __init__(self, step=0.001, start=0.0):
        self.step = step
        self.t = start
        self.reads = 0

    def __call__(self):
        now = self.t
        self.t += self.step
        self.reads += 1
        return now


class FrozenClock:
    def __call__(self):
        return 0.0


def const_rand(x):
    return lambda: x


def grid(rows):
    return np.array(rows, dtype=np.int64)


CHECKER = [
    [2, 4, 2, 4],
    [4, 2, 4, 2],
    [2, 4, 2, 4],
    [4, 2, 4, 2],
]

MIDGAME = [
    [256, 64, 16, 4],
    [128, 32, 8, 2],
    [4, 8, 0, 0],
    [2, 0, 0, 2],
]

LATEGAME = [
    [1024, 512, 256, 128],
    [16, 32, 64, 64],
    [8, 4, 2, 4],
    [2, 0, 4, 2],
]
