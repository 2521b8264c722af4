"""Assemble per-site records from detection, absence checks and page metadata."""
import json
import logging
from datetime import datetime
from typing import Mapping, Optional

from core.absence import AbsenceChecker, get_checker
from core.detector import SignatureDetector, get_detector
from core.page_meta import extract_page_meta
from models.site import SiteRecord, utc_now

logger = logging.getLogger(__name__)


class RecordBuilder:
    def __init__(self, detector: Optional[SignatureDetector] = None, checker: Optional[AbsenceChecker] = None):
        self.detector = detector or get_detector()
        self.checker = checker or get_checker()

    def build(
        self,
        url: str,
        headers: str,
        body: str,
        file_probes: Mapping[str, bool],
        analyzed_at: Optional[datetime] = None,
        fetch_failed: bool = False,
    ) -> SiteRecord:
        return SiteRecord(
            url=url,
            analyzed_at=analyzed_at or utc_now(),
            technologies=self.detector.detect(headers, body),
            meta=extract_page_meta(url, headers, body),
            missing=self.checker.check(headers, body, file_probes),
            fetch_failed=fetch_failed,
        )

    def degraded(self, url: str, analyzed_at: Optional[datetime] = None) -> SiteRecord:
        """Record for a site that could not be fetched.

        No technologies are detected and every checklist item is reported
        missing, so the site still counts towards batch totals.
        """
        logger.debug(f"Building degraded record for {url}")
        return self.build(url, "", "", self.checker.all_probes_failed(), analyzed_at=analyzed_at, fetch_failed=True)


def build_site_record(
    url: str,
    headers: str,
    body: str,
    file_probes: Mapping[str, bool],
    analyzed_at: Optional[datetime] = None,
) -> SiteRecord:
    """Analyse one fetched page with the bundled rules and checklists."""
    return RecordBuilder().build(url, headers, body, file_probes, analyzed_at=analyzed_at)


def record_to_json(record: SiteRecord) -> str:
    return json.dumps(record.to_dict(), indent=2, ensure_ascii=False)
