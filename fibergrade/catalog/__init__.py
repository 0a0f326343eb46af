# fibergrade/catalog/__init__.py
from .grades import (
    ABACA,
    PINA,
    FIBER_TYPES,
    UNKNOWN_GRADE,
    AnalysisResult,
    GradeDetails,
    GradeItem,
    analyze,
    get_fiber_details,
    list_grades,
)
from .gallery import GradeGallery

__all__ = [
    "ABACA",
    "PINA",
    "FIBER_TYPES",
    "UNKNOWN_GRADE",
    "AnalysisResult",
    "GradeDetails",
    "GradeItem",
    "GradeGallery",
    "analyze",
    "get_fiber_details",
    "list_grades",
]
