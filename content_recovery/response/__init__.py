"""
Response processing: text normalization and structural extraction

The schema coercer lives in ``content_recovery.response.coercer``; it depends
on the schema package, which in turn builds extractor shape hints, so it is
not re-exported here.
"""

from .extractor import (
    Extraction,
    ExtractionTier,
    ShapeHint,
    StructuralExtractor,
    extract,
)
from .normalizer import (
    NormalizationResult,
    is_json,
    normalize,
    normalize_with_report,
    strip_fences,
)

__all__ = [
    # Extraction
    "StructuralExtractor",
    "Extraction",
    "ExtractionTier",
    "ShapeHint",
    "extract",
    # Normalization
    "NormalizationResult",
    "normalize",
    "normalize_with_report",
    "strip_fences",
    "is_json",
]
