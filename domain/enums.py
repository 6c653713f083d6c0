"""
Domain enums for TakeEatEasy.
Contains all enumeration types used across the domain models.
"""

import enum


class Mood(enum.IntEnum):
    """How the user felt before or after a meal.

    UNSET is the stored sentinel for "no mood recorded"; it never reaches
    domain models, where absence is ``None``.
    """

    UNSET = 0
    AWFUL = 1
    BAD = 2
    NEUTRAL = 3
    GOOD = 4
    GREAT = 5


class TagRanking(str, enum.Enum):
    """Ranking key for popular tags"""

    LENGTH = "length"
    FREQUENCY = "frequency"
