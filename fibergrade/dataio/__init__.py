# fibergrade/dataio/__init__.py
from .dataset import FiberDataset, Sample

__all__ = ["FiberDataset", "Sample"]
