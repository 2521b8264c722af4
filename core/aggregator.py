"""Batch aggregation module for rolling per-site records into statistics.

This module folds a collection of SiteRecords into a BatchSummary: how many
sites use each technology, which technologies a strict majority of sites
share, how often each best-practice item is missing, and the responsive /
SSL / HTTP/2 ratios. Percentages are truncated, never rounded.
"""
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from core.errors import EmptyBatchError
from models.site import SiteRecord, utc_now
from models.summary import BatchSummary, MissingStat, RatioStat, TechStat
from models.technology import Category
import logging

logger = logging.getLogger(__name__)

BATCH_ID_FORMAT = "%Y%m%d_%H%M%S"
HTTP2_VERSION = "HTTP/2"


def percentage(count: int, total: int) -> int:
    """Integer percentage, truncated: floor(count * 100 / total)."""
    return count * 100 // total


def is_common(count: int, total: int) -> bool:
    """Strict majority using integer division: 5 of 10 is not common, 6 of 10 is."""
    return count > total // 2


def _ordered(counts: Counter) -> List[Tuple[str, int]]:
    # Descending count, ties broken by name ascending
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


class BatchAggregator:
    """Aggregates site records into batch statistics."""

    @staticmethod
    def summarize(
        records: Sequence[SiteRecord],
        batch_id: Optional[str] = None,
        analyzed_at: Optional[datetime] = None,
    ) -> BatchSummary:
        """
        Build the batch summary for a full set of site records.

        Args:
            records: Every record of the batch, degraded ones included
            batch_id: Identifier for the batch (defaults to the timestamp)
            analyzed_at: Summary timestamp (defaults to now, UTC)

        Returns:
            BatchSummary computed from scratch over ``records``

        Raises:
            EmptyBatchError: if ``records`` is empty
        """
        records = list(records)
        if not records:
            raise EmptyBatchError("Cannot summarize an empty batch: percentages are undefined")

        total = len(records)
        analyzed_at = analyzed_at or utc_now()
        batch_id = batch_id or analyzed_at.strftime(BATCH_ID_FORMAT)

        technologies = BatchAggregator.technology_stats(records)
        common = {
            category: tuple(stat for stat in stats if is_common(stat.count, total))
            for category, stats in technologies.items()
        }

        summary = BatchSummary(
            batch_id=batch_id,
            analyzed_at=analyzed_at,
            total_sites=total,
            responsive_design=BatchAggregator.ratio(records, lambda r: r.meta.responsive),
            ssl_enabled=BatchAggregator.ratio(records, lambda r: r.meta.ssl_enabled),
            http2=BatchAggregator.ratio(records, lambda r: r.meta.http_version == HTTP2_VERSION),
            technologies=technologies,
            common_technologies=common,
            missing_security_headers=BatchAggregator.missing_stats(r.missing.security for r in records),
            missing_files=BatchAggregator.missing_stats(r.missing.files for r in records),
            missing_meta_tags=BatchAggregator.missing_stats(r.missing.meta_tags for r in records),
        )

        logger.debug(
            f"Summarized {total} sites: "
            f"{sum(len(stats) for stats in technologies.values())} technologies, "
            f"{sum(len(stats) for stats in common.values())} common"
        )
        return summary

    @staticmethod
    def technology_stats(records: Sequence[SiteRecord]) -> Dict[Category, Tuple[TechStat, ...]]:
        """Count, per category, the records each technology appears in."""
        total = len(records)
        counts: Dict[Category, Counter] = {category: Counter() for category in Category}
        for record in records:
            # A record contributes at most once per (category, technology)
            for category, name in set(record.technologies.pairs()):
                counts[category][name] += 1

        return {
            category: tuple(
                TechStat(name=name, count=count, percentage=percentage(count, total))
                for name, count in _ordered(counts[category])
            )
            for category in Category
        }

    @staticmethod
    def missing_stats(per_record_items: Iterable[Iterable[str]]) -> Tuple[MissingStat, ...]:
        """Count how many records miss each item. No majority filter is applied."""
        counts: Counter = Counter()
        total = 0
        for items in per_record_items:
            total += 1
            counts.update(set(items))
        if total == 0:
            return ()
        return tuple(
            MissingStat(name=name, missing_on=count, percentage=percentage(count, total))
            for name, count in _ordered(counts)
        )

    @staticmethod
    def ratio(records: Sequence[SiteRecord], predicate) -> RatioStat:
        count = sum(1 for record in records if predicate(record))
        return RatioStat(count=count, percentage=percentage(count, len(records)))


def summarize(
    records: Sequence[SiteRecord],
    batch_id: Optional[str] = None,
    analyzed_at: Optional[datetime] = None,
) -> BatchSummary:
    """Roll site records up into a BatchSummary; raises EmptyBatchError on no records."""
    return BatchAggregator.summarize(records, batch_id=batch_id, analyzed_at=analyzed_at)
