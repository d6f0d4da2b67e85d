"""Enrichment signal lookups (video, social, search interest)."""

from .base import InterestLookup, SocialLookup, VideoLookup
from .interest import GoogleTrendsInterestLookup, latest_interest, parse_trends_json
from .social import RedditSocialLookup
from .video import YouTubeVideoLookup

__all__ = [
    'VideoLookup',
    'SocialLookup',
    'InterestLookup',
    'YouTubeVideoLookup',
    'RedditSocialLookup',
    'GoogleTrendsInterestLookup',
    'latest_interest',
    'parse_trends_json',
]
