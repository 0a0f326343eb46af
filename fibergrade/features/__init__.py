# fibergrade/features/__init__.py

from .color_features import ImageFeatureExtractor

__all__ = [
    "ImageFeatureExtractor",
]
