"""Exception hierarchy for vibedeck.

The scheduling and queue core never raises these for bad persisted data;
they exist for content loading and for interface helpers that need a
specific kind of current item.
"""


class VibedeckError(Exception):
    """Base class for all vibedeck errors."""


class ContentError(VibedeckError):
    """Problem or MCQ content could not be parsed."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class SessionEmptyError(VibedeckError):
    """An action needs a current item but the filtered set is empty."""


class WrongItemKindError(VibedeckError):
    """The current item is not of the kind the action expects."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Current item is a {actual}, expected a {expected}")
