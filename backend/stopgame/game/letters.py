from __future__ import annotations

import random

# H, K, W, Y and Z are left out: too few words start with them.
LETTERS: tuple[str, ...] = tuple("ABCDEFGIJLMNOPQRSTUVX")


def pick_letter(rng: random.Random | None = None) -> str:
    return (rng or random).choice(LETTERS)
