"""Facet detector protocol."""

from dataclasses import dataclass, field
from typing import Protocol

from skybot.domain.entities.facet import Facet


@dataclass
class RichText:
    """Text together with the facets found in it."""

    text: str
    facets: list[Facet] = field(default_factory=list)


class IFacetDetector(Protocol):
    """Protocol for facet detectors."""

    async def detect(self, text: str) -> RichText:
        """
        Find mentions, links and tags in a text body.

        Args:
            text: The post text

        Returns:
            RichText with the (possibly normalized) text and its facets
        """
        ...
