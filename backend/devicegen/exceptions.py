"""Exception hierarchy for the generation pipeline.

Messages are worded so the keyword-based classifier in error_handler.py
maps each exception onto the intended error type.
"""


class DeviceGenError(Exception):
    """Base class for all generator errors."""


class ConfigSourceError(DeviceGenError):
    """Raised when the configuration source cannot be reached or answers badly."""


class DeviceNotFoundError(ConfigSourceError):
    """Raised when the configuration source does not know a device id."""

    def __init__(self, device_id: str):
        super().__init__(f"Device not found: {device_id}")
        self.device_id = device_id


class InvalidDeviceConfigError(DeviceGenError):
    """Raised when a device configuration payload fails validation."""


class UnsupportedDeviceClassError(DeviceGenError):
    """Raised when no family strategy is registered for a device class."""

    def __init__(self, device_class: str, supported: list):
        super().__init__(
            f"Unsupported device class: {device_class}. "
            f"Currently supported: {', '.join(supported)}"
        )
        self.device_class = device_class


class TemplateRenderError(DeviceGenError):
    """Raised when a structure cannot be rendered into component source."""


class OutputWriteError(DeviceGenError):
    """Raised when a generated file cannot be written."""


class ManifestReadError(OutputWriteError):
    """Raised when an existing manifest cannot be parsed and must not be overwritten."""
