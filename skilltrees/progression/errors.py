"""
Progression error types.

- ConfigurationError: malformed catalog or configuration, raised at load time
- ProtocolError: an engine operation called in a state that does not allow it
- SaveDataError: save data that cannot be restored
"""


class ProgressionError(Exception):
    """Base class for skill tree errors."""


class ConfigurationError(ProgressionError, ValueError):
    """Invalid catalog definition or configuration value."""


class ProtocolError(ProgressionError, RuntimeError):
    """Operation called out of order or on an incompatible state."""


class SaveDataError(ProgressionError, ValueError):
    """Save data references something that cannot be reconstructed."""
