"""
exceptions.py — Error taxonomy for satellite paddy verification.

    VerificationError            ← catch-all base
    ├── InvalidGeometry          ← malformed boundary ring (fatal)
    ├── NoContributingImagery    ← a sensor returned zero scenes (non-fatal)
    ├── ConfigurationError       ← missing / inconsistent thresholds (fatal)
    └── ProviderError            ← statistics provider failed outright
"""


class VerificationError(Exception):
    """Base exception for the verification engine."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class InvalidGeometry(VerificationError):
    """Raised when a field boundary is not a closed ring of >= 3 distinct vertices."""


class NoContributingImagery(VerificationError):
    """
    Raised by a statistics provider when no scene from a sensor falls inside
    the verification window. The verifier catches it and continues with
    all-zero statistics.
    """

    def __init__(self, sensor: str, start: str = "", end: str = "") -> None:
        window = f" between {start} and {end}" if start and end else ""
        super().__init__(f"No {sensor} scenes found{window}")
        self.sensor: str = sensor


class ConfigurationError(VerificationError):
    """Raised when the threshold configuration cannot be loaded or is inconsistent."""


class ProviderError(VerificationError):
    """Raised when the external statistics provider fails (auth, quota, timeout)."""
