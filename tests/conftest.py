import os
import sys
from datetime import datetime, timezone

import pytest

# Ensure project root is on sys.path for imports like `core.*`
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from core.absence import AbsenceChecker  # noqa: E402
from core.detector import SignatureDetector  # noqa: E402
from models.site import MissingReport, PageMeta, SiteRecord, TechProfile  # noqa: E402

FIXED_TIME = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)

FULL_HEAD = """
<html>
<head>
  <title>Example Site</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <meta name="description" content="An example page">
  <link rel="canonical" href="https://example.com/">
  <meta property="og:title" content="Example">
  <meta name="twitter:card" content="summary">
  <meta name="theme-color" content="#ffffff">
</head>
<body></body>
</html>
"""

SECURE_HEADERS = """HTTP/2 200
strict-transport-security: max-age=63072000
content-security-policy: default-src 'self'
x-content-type-options: nosniff
x-frame-options: DENY
referrer-policy: no-referrer
permissions-policy: geolocation=()
"""


@pytest.fixture(scope="session")
def detector():
    return SignatureDetector()


@pytest.fixture(scope="session")
def checker():
    return AbsenceChecker()


def make_record(
    url="https://example.com",
    technologies=None,
    responsive=False,
    ssl_enabled=True,
    http_version="HTTP/1.1",
    missing=None,
    fetch_failed=False,
):
    """Build a SiteRecord directly, bypassing detection."""
    return SiteRecord(
        url=url,
        analyzed_at=FIXED_TIME,
        technologies=TechProfile.from_detected(technologies or {}),
        meta=PageMeta(
            title="",
            description="",
            responsive=responsive,
            http_version=http_version,
            ssl_enabled=ssl_enabled,
        ),
        missing=missing or MissingReport(),
        fetch_failed=fetch_failed,
    )
