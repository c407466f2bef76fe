"""
Spatial overlap between submissions and prohibited zones.
"""

from landclaim.overlap.engine import OverlapEngine
from landclaim.overlap.models import OverlapPreview, OverlapResult

__all__ = ["OverlapEngine", "OverlapPreview", "OverlapResult"]
