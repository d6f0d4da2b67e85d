"""Interfaces of the enrichment signal lookups.

Implementations may raise on upstream failure; the enricher treats any
exception or timeout as "no signal" for that lookup.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from trendscope.trender.models import SocialItem, VideoItem


class VideoLookup(ABC):

    @abstractmethod
    async def search(self, label: str) -> List[VideoItem]:
        """Videos related to a topic label, bounded in count."""
        pass

    async def aclose(self) -> None:
        pass


class SocialLookup(ABC):

    @abstractmethod
    async def search(self, label: str) -> List[SocialItem]:
        """Social posts related to a topic label, bounded in count."""
        pass

    async def aclose(self) -> None:
        pass


class InterestLookup(ABC):

    @abstractmethod
    async def interest(self, label: str, region: str) -> Optional[int]:
        """Latest search interest, 0-100, or None when there is no data."""
        pass

    async def aclose(self) -> None:
        pass
