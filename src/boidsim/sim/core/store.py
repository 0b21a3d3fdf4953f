from __future__ import annotations

from typing import Iterable, List

from pygame.math import Vector2


class AgentStore:
    """Parallel per-agent arrays; an agent is its index."""

    __slots__ = ("positions", "velocities", "headings")

    def __init__(self, count: int = 0) -> None:
        self.positions: List[Vector2] = [Vector2() for _ in range(count)]
        self.velocities: List[Vector2] = [Vector2() for _ in range(count)]
        self.headings: List[float] = [0.0] * count

    def __len__(self) -> int:
        return len(self.positions)

    @classmethod
    def from_states(cls, states: Iterable[tuple[Vector2, Vector2]]) -> "AgentStore":
        store = cls()
        for position, velocity in states:
            store.positions.append(Vector2(position))
            store.velocities.append(Vector2(velocity))
            store.headings.append(0.0)
        return store

    def set_agent(self, index: int, position: Vector2, velocity: Vector2, heading: float = 0.0) -> None:
        self.positions[index].update(position)
        self.velocities[index].update(velocity)
        self.headings[index] = heading


class NeighborAccumulators:
    __slots__ = (
        "separation_sums",
        "alignment_sums",
        "alignment_counts",
        "cohesion_sums",
        "cohesion_counts",
    )

    def __init__(self, count: int = 0) -> None:
        self.separation_sums: List[Vector2] = [Vector2() for _ in range(count)]
        self.alignment_sums: List[Vector2] = [Vector2() for _ in range(count)]
        self.alignment_counts: List[int] = [0] * count
        self.cohesion_sums: List[Vector2] = [Vector2() for _ in range(count)]
        self.cohesion_counts: List[int] = [0] * count

    def __len__(self) -> int:
        return len(self.separation_sums)

    def resize(self, count: int) -> None:
        if count == len(self):
            return
        self.separation_sums = [Vector2() for _ in range(count)]
        self.alignment_sums = [Vector2() for _ in range(count)]
        self.alignment_counts = [0] * count
        self.cohesion_sums = [Vector2() for _ in range(count)]
        self.cohesion_counts = [0] * count

    def clear(self) -> None:
        for index in range(len(self.separation_sums)):
            self.separation_sums[index].update(0.0, 0.0)
            self.alignment_sums[index].update(0.0, 0.0)
            self.alignment_counts[index] = 0
            self.cohesion_sums[index].update(0.0, 0.0)
            self.cohesion_counts[index] = 0
