import asyncio
import logging
from typing import List, Optional, Sequence

from core.absence import AbsenceChecker
from core.cache import ProbeCache
from core.context import ScanContext
from core.detector import SignatureDetector
from core.errors import FetchError
from core.record_builder import RecordBuilder
from fetch.http_client import fetch_page, normalize_url, origin_of, probe_exists
from models.site import SiteRecord

DEFAULT_JOBS = 3
MIN_JOBS = 1
MAX_JOBS = 10


def clamp_jobs(jobs: int) -> int:
    return max(MIN_JOBS, min(MAX_JOBS, jobs))


def read_url_list(path: str) -> List[str]:
    """Read one URL per line, skipping blank lines and # comments."""
    urls = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            urls.append(line)
    return urls


class Engine:
    def __init__(
        self,
        detector: Optional[SignatureDetector] = None,
        checker: Optional[AbsenceChecker] = None,
        cache: Optional[ProbeCache] = None,
    ):
        """Initialize the engine with the signature rules and checklists.

        Args:
            detector: Signature detector (defaults to the bundled rule set)
            checker: Absence checker (defaults to the bundled checklists)
            cache: Probe result cache (defaults to the process-wide cache)
        """
        self.logger = logging.getLogger(__name__)
        self.builder = RecordBuilder(detector, checker)
        self.checker = self.builder.checker
        self.cache = cache
        self.logger.info(f"Loaded {len(self.builder.detector.rules)} technology signatures")

    async def scan_url(self, url: str) -> ScanContext:
        """Fetch a page and probe its well-known files.

        A failed fetch is not an error here: the returned context is empty,
        flagged ``fetch_failed`` and reports every probe as absent.
        """
        url = normalize_url(url)
        self.logger.debug(f"Fetching {url}")
        try:
            page = await fetch_page(url)
        except FetchError as e:
            self.logger.warning(f"{e}; recording degraded result")
            return ScanContext(
                url=url,
                headers="",
                html="",
                file_probes=self.checker.all_probes_failed(),
                fetch_failed=True,
            )
        self.logger.debug(f"HTTP {page.status_code} {url}, {len(page.body)} bytes of HTML")

        origin = origin_of(url)
        probes = self.checker.checklists.files
        self.logger.debug(f"Probing {len(probes)} well-known files on {origin}")
        results = await asyncio.gather(
            *(probe_exists(f"{origin}{probe.path}", cache=self.cache) for probe in probes)
        )
        file_probes = {probe.name: exists for probe, exists in zip(probes, results)}

        return ScanContext(
            url=url,
            headers=page.headers,
            html=page.body,
            file_probes=file_probes,
            status_code=page.status_code,
        )

    def analyze_context(self, context: ScanContext) -> SiteRecord:
        return self.builder.build(
            context.url,
            context.headers,
            context.html,
            context.file_probes,
            fetch_failed=context.fetch_failed,
        )

    async def analyze_url(self, url: str) -> SiteRecord:
        context = await self.scan_url(url)
        # Signature searches are CPU bound; keep them off the event loop
        return await asyncio.to_thread(self.analyze_context, context)

    async def analyze_batch(self, urls: Sequence[str], jobs: int = DEFAULT_JOBS) -> List[SiteRecord]:
        """Analyse many URLs, at most ``jobs`` at a time, keeping input order.

        Every URL yields a record; sites that fail are recorded degraded so
        they still count towards batch totals.
        """
        total = len(urls)
        semaphore = asyncio.Semaphore(clamp_jobs(jobs))

        async def run_one(index: int, url: str) -> SiteRecord:
            async with semaphore:
                self.logger.info(f"[{index}/{total}] Analyzing: {url}")
                try:
                    record = await self.analyze_url(url)
                except Exception as e:
                    self.logger.error(f"Analysis failed for {url}: {e}", exc_info=True)
                    return self.builder.degraded(normalize_url(url))
                status = "Failed" if record.fetch_failed else "Completed"
                self.logger.info(f"[{index}/{total}] {status}: {url}")
                return record

        records = await asyncio.gather(*(run_one(i, url) for i, url in enumerate(urls, 1)))
        return list(records)
