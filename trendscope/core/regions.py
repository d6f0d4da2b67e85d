"""Region table: Google News locale per region and the list of tracked regions."""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from trendscope.core.logging import get_logger
from trendscope.core.settings import get_settings

logger = get_logger(__name__)


@dataclass(frozen=True)
class Region:
    """Locale parameters used when querying feeds for a region."""
    code: str
    language: str
    tracked: bool = True

    @property
    def hl(self) -> str:
        return f"{self.language}-{self.code}"

    @property
    def ceid(self) -> str:
        return f"{self.code}:{self.language}"


DEFAULT_REGIONS: Dict[str, Region] = {
    'US': Region('US', 'en'),
    'JP': Region('JP', 'ja'),
    'KR': Region('KR', 'ko'),
    'CN': Region('CN', 'zh'),
    'TW': Region('TW', 'zh'),
    'GB': Region('GB', 'en', tracked=False),
    'IN': Region('IN', 'en', tracked=False),
    'BR': Region('BR', 'pt', tracked=False),
    'FR': Region('FR', 'fr', tracked=False),
    'DE': Region('DE', 'de', tracked=False),
}


def load_regions(path: Optional[str] = None) -> Dict[str, Region]:
    """
    Load the region table from YAML.

    Expected format::

        regions:
          - code: US
            language: en
          - code: GB
            language: en
            tracked: false

    Falls back to the built-in table when the file is missing or invalid.
    """
    config_path = Path(path or get_settings().regions_config_path)

    if not config_path.exists():
        logger.debug(f"Regions config not found: {config_path}, using defaults")
        return dict(DEFAULT_REGIONS)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        regions = {}
        for rec in config.get('regions', []):
            code = str(rec['code']).upper()
            regions[code] = Region(
                code=code,
                language=rec.get('language', 'en'),
                tracked=bool(rec.get('tracked', True)),
            )

        if not regions:
            logger.warning(f"No regions defined in {config_path}, using defaults")
            return dict(DEFAULT_REGIONS)

        return regions

    except (yaml.YAMLError, KeyError, TypeError, AttributeError) as e:
        logger.error(f"Error loading regions config {config_path}: {e}")
        return dict(DEFAULT_REGIONS)


@lru_cache()
def get_regions() -> Dict[str, Region]:
    """Cached region table."""
    return load_regions()


def get_region(code: str) -> Region:
    """Resolve a region code; unknown codes get an English locale."""
    code = (code or get_settings().default_region).upper()
    return get_regions().get(code) or Region(code, 'en', tracked=False)


def tracked_regions() -> List[str]:
    """Region codes refreshed by the pre-warm scheduler."""
    return [code for code, region in get_regions().items() if region.tracked]
