from __future__ import annotations


class GlowFaceError(Exception):
    """Base class for all glowface errors."""


class GeometryError(GlowFaceError):
    """Landmark input too small or malformed to build a mask polygon."""


class DetectorUnavailable(GlowFaceError):
    """An optional detector could not be initialized."""


class DeviceAcquisitionError(GlowFaceError):
    """The camera could not be opened or delivered no frames."""


class ModelLoadError(GlowFaceError):
    """The required face detector failed to load."""


class ValidationError(GlowFaceError):
    """An imported preset payload violated the export schema.

    `reason` is a stable machine-readable code; the message is for humans.
    """

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


__all__ = [
    "GlowFaceError",
    "GeometryError",
    "DetectorUnavailable",
    "DeviceAcquisitionError",
    "ModelLoadError",
    "ValidationError",
]
