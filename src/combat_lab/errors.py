class CombatLabError(Exception):
    """Base error for combat-lab domain exceptions."""


class ConfigurationError(CombatLabError):
    """Raised when a combat, batch or calibration configuration is invalid."""


class UnknownStatError(ConfigurationError):
    """Raised when a stat key does not name a numeric StatBlock field."""
