from __future__ import annotations

import random
from typing import Collection, List, Optional, Sequence

from block_puzzle_pro.game.pieces import BlockShape


class RollingBag:
    """Shuffled draw pile over the shape library.

    Every shape appears once per pass; the pile is reshuffled when empty.
    Draws skip names listed in `avoid` (typically the previous hand) while
    an alternative remains in the pile.
    """

    def __init__(self, shapes: Sequence[BlockShape], rng: Optional[random.Random] = None) -> None:
        if not shapes:
            raise ValueError("RollingBag needs at least one shape")
        self.shapes = list(shapes)
        self.rng = rng or random.Random()
        self._pile: List[BlockShape] = []
        self.last_drawn: Optional[BlockShape] = None

    def _refill(self) -> None:
        self._pile = list(self.shapes)
        self.rng.shuffle(self._pile)

    def __len__(self) -> int:
        return len(self._pile)

    def reset(self) -> None:
        self._pile = []
        self.last_drawn = None

    def draw(self, avoid: Collection[str] = (), prefer_small: bool = False) -> BlockShape:
        """Take one shape from the pile.

        With `prefer_small`, shapes are picked with weight 1 / cells**2
        instead of in pile order.
        """
        if not self._pile:
            self._refill()
        avoid = set(avoid)
        if self.last_drawn is not None:
            avoid.add(self.last_drawn.name)
        candidates = [i for i, shape in enumerate(self._pile) if shape.name not in avoid]
        if not candidates:
            # Everything left was just seen; start a fresh pass
            self._refill()
            candidates = [i for i, shape in enumerate(self._pile) if shape.name not in avoid]
            if not candidates:
                candidates = list(range(len(self._pile)))

        if prefer_small:
            weights = [1.0 / float(self._pile[i].cell_count ** 2) for i in candidates]
            index = self.rng.choices(candidates, weights=weights, k=1)[0]
        else:
            index = candidates[0]
        shape = self._pile.pop(index)
        self.last_drawn = shape
        return shape
