"""
Scoreboard exceptions
"""


class ScoreboardError(Exception):
    """Base class for scoreboard failures"""


class StoreError(ScoreboardError):
    """Row store call failed (network, service or unknown record)"""


class NotFoundError(ScoreboardError):
    """Referenced round or candidate is not in the session cache"""


class LastRoundError(ScoreboardError):
    """Attempt to delete the only remaining round"""

    def __init__(self, message: str = "Cannot delete the last round"):
        super().__init__(message)


class ConfirmationRequired(ScoreboardError):
    """Destructive action issued without confirmation"""


class InvalidTransition(ScoreboardError):
    """View state transition not allowed from the current mode"""
