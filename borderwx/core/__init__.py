"""
Core domain models and pure functions for BorderWX.

This module contains the domain models and the normalization engine
(geometry resolution, severity unification, unit harmonization)
that are independent of feed retrieval and presentation concerns.
"""

from .models import (
    BoundingBox,
    CanonicalAlert,
    InvalidPointError,
    MultiPolygonGeometry,
    PointGeometry,
    PolygonGeometry,
    RawAlert,
    UnifiedSeverity,
    Zone,
    make_point,
)
from .geometry import resolve_alert_geometry
from .severity import apply_unified_severity, compare_severity, UNIFIED_SEVERITY
from .normalize import normalize_alert, normalize_alerts

__all__ = [
    "BoundingBox", "CanonicalAlert", "InvalidPointError", "MultiPolygonGeometry",
    "PointGeometry", "PolygonGeometry", "RawAlert", "UnifiedSeverity", "Zone",
    "make_point", "resolve_alert_geometry", "apply_unified_severity",
    "compare_severity", "UNIFIED_SEVERITY", "normalize_alert", "normalize_alerts",
]
