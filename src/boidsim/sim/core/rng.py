from __future__ import annotations

import random
from typing import Optional


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)
        self._draws = 0

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def draws(self) -> int:
        return self._draws

    def reset(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            self._seed = seed
        self._random.seed(self._seed)
        self._draws = 0

    def next_float(self) -> float:
        self._draws += 1
        return self._random.random()

    def sample_unit_tuple(self, arity: int) -> tuple[float, ...]:
        return tuple(self.next_float() for _ in range(arity))
