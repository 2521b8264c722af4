"""Signature matching: classify one page into technology categories.

Every signature is a pure function of the header and body text, so the base
pass is order independent. Category overrides run afterwards, in declared
order, and are the only place where one category's result depends on
another's.
"""
import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

import regex

from models.detection import Detection, Evidence
from models.site import TechProfile
from models.technology import CategoryOverride, EvidenceRule, Technology
from rules.rules_loader import load_overrides, load_rules

# Hard timeout per pattern search to prevent catastrophic backtracking
REGEX_TIMEOUT_SECONDS = 0.8
# Warn on slow regex evaluation to surface problematic patterns
PATTERN_SLOW_THRESHOLD_SECONDS = 0.5

logger = logging.getLogger(__name__)


class SignatureDetector:
    def __init__(self, rules: Optional[List[Technology]] = None, overrides: Optional[List[CategoryOverride]] = None):
        self.rules = rules if rules is not None else load_rules()
        self.overrides = overrides if overrides is not None else load_overrides()
        # Compiled once; read-only afterwards so instances can be shared
        self._patterns: Dict[str, "regex.Pattern"] = {}
        for tech in self.rules:
            for rule in tech.evidence_rules:
                self._compile(rule.pattern)
        for override in self.overrides:
            self._compile(override.condition.pattern)
        logger.debug(f"SignatureDetector ready: {len(self.rules)} signatures, {len(self.overrides)} overrides")

    def _compile(self, pattern: str) -> None:
        if pattern not in self._patterns:
            self._patterns[pattern] = regex.compile(pattern, regex.IGNORECASE)

    def _search(self, rule: EvidenceRule, headers: str, body: str) -> Optional[str]:
        """Return the matched text if the rule fires on its source, else None."""
        if rule.source == "header":
            texts = (headers,)
        elif rule.source == "html":
            texts = (body,)
        else:
            texts = (headers, body)

        compiled = self._patterns[rule.pattern]
        for text in texts:
            if not text:
                continue
            start = time.perf_counter()
            try:
                match = compiled.search(text, timeout=REGEX_TIMEOUT_SECONDS)
            except TimeoutError:
                logger.warning(f"Pattern timeout after {REGEX_TIMEOUT_SECONDS}s: {rule.pattern[:50]}")
                continue
            duration = time.perf_counter() - start
            if duration > PATTERN_SLOW_THRESHOLD_SECONDS:
                logger.warning(f"Slow pattern {rule.pattern[:50]} took {duration:.2f}s")
            if match:
                return match.group(0)
        return None

    def match(self, headers: str, body: str) -> List[Detection]:
        """Evaluate every signature; one Detection per technology that fires."""
        detections: List[Detection] = []
        for tech in self.rules:
            evidence: Optional[Evidence] = None
            if tech.match == "all":
                for rule in tech.evidence_rules:
                    value = self._search(rule, headers, body)
                    if value is None:
                        evidence = None
                        break
                    if evidence is None:
                        evidence = Evidence(source=rule.source, pattern=rule.pattern, value=value)
            else:
                for rule in tech.evidence_rules:
                    value = self._search(rule, headers, body)
                    if value is not None:
                        evidence = Evidence(source=rule.source, pattern=rule.pattern, value=value)
                        break

            if evidence is not None:
                logger.debug(f"Matched {tech.name} ({tech.category.value}) on {evidence.source}: {evidence.value!r}")
                detections.append(Detection(name=tech.name, category=tech.category, evidence=evidence))
        return detections

    def apply_overrides(self, detections: List[Detection], headers: str, body: str) -> List[Detection]:
        """Suppress or redirect detections according to the override list."""
        for override in self.overrides:
            targeted = [d for d in detections if d.category == override.category and d.name == override.name]
            if not targeted:
                continue
            value = self._search(override.condition, headers, body)
            if value is None:
                continue

            detections = [d for d in detections if d not in targeted]
            if override.redirect_category is not None:
                detections.append(
                    Detection(
                        name=override.redirect_name or override.name,
                        category=override.redirect_category,
                        evidence=Evidence(source=override.condition.source, pattern=override.condition.pattern, value=value),
                    )
                )
                logger.debug(
                    f"Override moved {override.name} from {override.category.value} "
                    f"to {override.redirect_category.value}"
                )
            else:
                logger.debug(f"Override suppressed {override.name} in {override.category.value}")
        return detections

    def detect(self, headers: str, body: str) -> TechProfile:
        headers = headers or ""
        body = body or ""
        if not headers and not body:
            return TechProfile.empty()

        detections = self.apply_overrides(self.match(headers, body), headers, body)

        detected: Dict = defaultdict(list)
        for d in detections:
            detected[d.category].append(d.name)
        profile = TechProfile.from_detected(detected)
        logger.debug(f"Detected {sum(1 for _ in profile.pairs())} technologies")
        return profile


_default_detector: Optional[SignatureDetector] = None


def get_detector() -> SignatureDetector:
    """Get the shared detector built from the bundled rule set."""
    global _default_detector
    if _default_detector is None:
        _default_detector = SignatureDetector()
    return _default_detector


def detect(headers: str, body: str) -> TechProfile:
    """Classify a page's technologies using the bundled rule set."""
    return get_detector().detect(headers, body)
