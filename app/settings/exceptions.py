class SettingsException(Exception):
    """Base exception for settings application."""


class SystemSettingNotFoundException(SettingsException):
    """Raised when a system setting key does not exist."""


class InvalidSettingValueException(SettingsException):
    """Raised when a value cannot be stored or parsed with the setting's type."""
