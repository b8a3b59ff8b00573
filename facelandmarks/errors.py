from __future__ import annotations


class FaceLandmarksError(Exception):
    """Base class for errors raised by facelandmarks."""


class ModelNotConfiguredError(FaceLandmarksError, RuntimeError):
    def __init__(self, message: str = "A landmarks model file is not set!"):
        super().__init__(message)


class UnsupportedImageError(FaceLandmarksError, ValueError):
    pass


class DeserializationError(FaceLandmarksError, ValueError):
    pass


class FeatureNotAvailableError(FaceLandmarksError, NotImplementedError):
    def __init__(self, message: str = "Method is not implemented! No sequence codec is configured."):
        super().__init__(message)


class FrameIndexError(FaceLandmarksError, IndexError):
    pass


__all__ = [
    "FaceLandmarksError",
    "ModelNotConfiguredError",
    "UnsupportedImageError",
    "DeserializationError",
    "FeatureNotAvailableError",
    "FrameIndexError",
]
