"""Collision-resistant id generation, injected into the engine."""

import itertools
import uuid


class IdGenerator:
    """Produces ids like ``turn-00003-9f1c2a7b4d5e``.

    The counter is per instance, so two engines never share state.
    """

    def __init__(self, random_suffix: bool = True) -> None:
        self._counter = itertools.count(1)
        self._random_suffix = random_suffix

    def next_id(self, prefix: str) -> str:
        n = next(self._counter)
        if not self._random_suffix:
            return f"{prefix}-{n:05d}"
        return f"{prefix}-{n:05d}-{uuid.uuid4().hex[:12]}"
