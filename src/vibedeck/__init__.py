"""vibedeck: spaced-repetition review sessions for interview prep."""

from vibedeck.consts import VERSION

__version__ = VERSION
