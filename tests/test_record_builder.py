import json

from conftest import FIXED_TIME, FULL_HEAD, SECURE_HEADERS
from core.record_builder import RecordBuilder, build_site_record, record_to_json
from models.technology import Category


def test_build_site_record_with_bundled_rules():
    body = FULL_HEAD.replace("</head>", '<script src="/wp-includes/js/jquery/jquery.min.js"></script></head>')
    probes = {"robots.txt": True, "sitemap.xml": False}

    record = build_site_record("https://example.com", SECURE_HEADERS, body, probes, analyzed_at=FIXED_TIME)

    assert record.url == "https://example.com"
    assert record.analyzed_at == FIXED_TIME
    assert record.technologies[Category.CMS] == ("WordPress",)
    assert "jQuery" in record.technologies[Category.JAVASCRIPT_LIBRARIES]
    assert record.meta.title == "Example Site"
    assert record.meta.http_version == "HTTP/2"
    assert record.missing.security == ()
    assert record.missing.files == ("sitemap.xml",)
    assert record.missing.meta_tags == ()
    assert not record.fetch_failed


def test_degraded_record_reports_everything_missing(detector, checker):
    record = RecordBuilder(detector, checker).degraded("https://down.example", analyzed_at=FIXED_TIME)

    assert record.fetch_failed
    assert record.technologies.is_empty()
    assert record.missing.files == tuple(p.name for p in checker.checklists.files)
    assert record.missing.security == checker.checklists.security_headers


def test_record_to_json_layout():
    record = build_site_record("http://example.com", "", '<title>A "quoted" title</title>', {}, analyzed_at=FIXED_TIME)

    data = json.loads(record_to_json(record))

    assert list(data.keys()) == ["url", "analyzed_at", "technologies", "meta", "missing"]
    assert data["analyzed_at"] == "2024-05-01T12:30:00Z"
    assert data["meta"]["title"] == 'A "quoted" title'
    assert data["meta"]["ssl_enabled"] is False
    assert "fetch_failed" not in data
