class LunaplanError(Exception):
    """Base exception for lunaplan errors."""


class BackendError(LunaplanError):
    """Raised when a position backend fails or is unavailable."""


class CalculationCancelled(LunaplanError):
    """Raised when a multi-night calculation is cancelled between nights."""
