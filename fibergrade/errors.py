# fibergrade/errors.py
from __future__ import annotations


class FiberGradeError(Exception):
    """Base class for errors surfaced to the user by the entry scripts."""


class ModelLoadError(FiberGradeError):
    pass


class InferenceError(FiberGradeError):
    pass


class ConfigError(FiberGradeError):
    pass
