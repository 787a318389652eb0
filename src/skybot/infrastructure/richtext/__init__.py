"""Facet detection."""

from .detector import RegexFacetDetector
from .provider import IFacetDetector, RichText

__all__ = ["IFacetDetector", "RegexFacetDetector", "RichText"]
