"""Report best-practice items a page is missing."""
import logging
from typing import Dict, List, Mapping, Optional

import regex

from core.checklist_loader import Checklists, load_checklists
from models.site import MissingReport

logger = logging.getLogger(__name__)


class AbsenceChecker:
    """Compares a page against the security header, file and meta tag checklists.

    Performs no I/O: file existence is supplied by the caller as probe results.
    """

    def __init__(self, checklists: Optional[Checklists] = None):
        self.checklists = checklists if checklists is not None else load_checklists()
        self._meta_patterns = [
            (check.name, regex.compile(check.pattern, regex.IGNORECASE))
            for check in self.checklists.meta_tags
        ]

    def missing_security_headers(self, headers: str) -> List[str]:
        lowered = (headers or "").lower()
        return [name for name in self.checklists.security_headers if name.lower() not in lowered]

    def missing_files(self, file_probes: Mapping[str, bool]) -> List[str]:
        """Names of probes that came back False, in checklist order.

        Probe names outside the checklist are reported after it, in the
        caller's order. Names absent from ``file_probes`` were not checked and
        are not reported.
        """
        ordered = [probe.name for probe in self.checklists.files]
        ordered.extend(name for name in file_probes if name not in ordered)
        return [name for name in ordered if name in file_probes and not file_probes[name]]

    def missing_meta_tags(self, body: str) -> List[str]:
        body = body or ""
        return [name for name, pattern in self._meta_patterns if not pattern.search(body)]

    def check(self, headers: str, body: str, file_probes: Mapping[str, bool]) -> MissingReport:
        report = MissingReport(
            security=tuple(self.missing_security_headers(headers)),
            files=tuple(self.missing_files(file_probes or {})),
            meta_tags=tuple(self.missing_meta_tags(body)),
        )
        logger.debug(
            f"Missing: {len(report.security)} security headers, "
            f"{len(report.files)} files, {len(report.meta_tags)} meta tags"
        )
        return report

    def all_probes_failed(self) -> Dict[str, bool]:
        """Probe results for a site that could not be reached."""
        return {probe.name: False for probe in self.checklists.files}


_default_checker: Optional[AbsenceChecker] = None


def get_checker() -> AbsenceChecker:
    global _default_checker
    if _default_checker is None:
        _default_checker = AbsenceChecker()
    return _default_checker


def check_missing(headers: str, body: str, file_probes: Mapping[str, bool]) -> MissingReport:
    """Compute the MissingReport for one page using the bundled checklists."""
    return get_checker().check(headers, body, file_probes)
