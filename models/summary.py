from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Tuple

from models.site import format_timestamp
from models.technology import Category


@dataclass(frozen=True)
class RatioStat:
    count: int
    percentage: int

    def to_dict(self) -> Dict[str, int]:
        return {"count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class TechStat:
    """How many sites in a batch use one technology."""
    name: str
    count: int
    percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class MissingStat:
    """How many sites in a batch lack one checklist item."""
    name: str
    missing_on: int
    percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "missing_on": self.missing_on, "percentage": self.percentage}


@dataclass(frozen=True)
class BatchSummary:
    """Cross-site statistics for one batch.

    ``technologies`` holds every detected (category, technology) pair;
    ``common_technologies`` keeps only those above the majority threshold.
    Stat lists are ordered by descending count, then name.
    """
    batch_id: str
    analyzed_at: datetime
    total_sites: int
    responsive_design: RatioStat
    ssl_enabled: RatioStat
    http2: RatioStat
    technologies: Mapping[Category, Tuple[TechStat, ...]]
    common_technologies: Mapping[Category, Tuple[TechStat, ...]]
    missing_security_headers: Tuple[MissingStat, ...] = ()
    missing_files: Tuple[MissingStat, ...] = ()
    missing_meta_tags: Tuple[MissingStat, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "analyzed_at": format_timestamp(self.analyzed_at),
            "total_sites": self.total_sites,
            "statistics": {
                "responsive_design": self.responsive_design.to_dict(),
                "ssl_enabled": self.ssl_enabled.to_dict(),
                "http2": self.http2.to_dict(),
            },
            "common_technologies": {
                category.value: _stat_list(self.common_technologies.get(category, ()))
                for category in Category
            },
            "common_missing_features": {
                "security_headers": _stat_list(self.missing_security_headers),
                "files": _stat_list(self.missing_files),
                "meta_tags": _stat_list(self.missing_meta_tags),
            },
        }


def _stat_list(stats) -> List[Dict[str, Any]]:
    return [stat.to_dict() for stat in stats]
