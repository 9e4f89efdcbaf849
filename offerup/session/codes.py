"""
Join codes for games.

Codes are six characters from an alphabet without look-alikes
(no 0/O, 1/I/L) so they can be read out across a table.
"""

from __future__ import annotations
import random
import re


CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6

_CODE_PATTERN = re.compile(f"^[{CODE_ALPHABET}]{{{CODE_LENGTH}}}$")


def generate_game_code(rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    return "".join(rng.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def is_valid_game_code(code: str | None) -> bool:
    if not code:
        return False
    return bool(_CODE_PATTERN.match(code))
