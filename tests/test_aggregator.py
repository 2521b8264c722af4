import pytest

from conftest import FIXED_TIME, make_record
from core.aggregator import BatchAggregator, is_common, percentage, summarize
from core.errors import EmptyBatchError, EmptyInputError
from core.record_builder import RecordBuilder
from models.site import MissingReport
from models.technology import Category


def _records_with(name, category, hits, total):
    return [
        make_record(url=f"https://site{i}.example", technologies={category: [name]} if i < hits else {})
        for i in range(total)
    ]


def test_percentage_truncates():
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 66
    assert percentage(3, 3) == 100


def test_majority_uses_integer_half():
    assert not is_common(5, 10)
    assert is_common(6, 10)
    assert is_common(2, 3)
    assert not is_common(1, 3)
    assert is_common(1, 1)


def test_half_of_sites_is_not_common():
    summary = summarize(_records_with("React", Category.JAVASCRIPT_FRAMEWORKS, 5, 10), analyzed_at=FIXED_TIME)

    assert summary.common_technologies[Category.JAVASCRIPT_FRAMEWORKS] == ()
    stat = summary.technologies[Category.JAVASCRIPT_FRAMEWORKS][0]
    assert (stat.name, stat.count, stat.percentage) == ("React", 5, 50)


def test_majority_of_sites_is_common():
    summary = summarize(_records_with("React", Category.JAVASCRIPT_FRAMEWORKS, 6, 10), analyzed_at=FIXED_TIME)

    common = summary.common_technologies[Category.JAVASCRIPT_FRAMEWORKS]
    assert len(common) == 1
    assert (common[0].name, common[0].count, common[0].percentage) == ("React", 6, 60)


def test_missing_everywhere_is_reported_at_full_percentage():
    records = [
        make_record(url=f"https://s{i}.example", missing=MissingReport(security=("Content-Security-Policy",)))
        for i in range(4)
    ]

    summary = summarize(records, analyzed_at=FIXED_TIME)

    stat = summary.missing_security_headers[0]
    assert (stat.name, stat.missing_on, stat.percentage) == ("Content-Security-Policy", 4, 100)


def test_missing_items_have_no_majority_filter():
    records = [
        make_record(url="https://a.example", missing=MissingReport(files=("humans.txt",))),
        make_record(url="https://b.example"),
        make_record(url="https://c.example"),
    ]

    summary = summarize(records, analyzed_at=FIXED_TIME)

    assert [(s.name, s.missing_on, s.percentage) for s in summary.missing_files] == [("humans.txt", 1, 33)]


def test_responsive_ratio():
    records = [
        make_record(url="https://a.example", responsive=True),
        make_record(url="https://b.example", responsive=False),
    ]

    summary = summarize(records, analyzed_at=FIXED_TIME)

    assert summary.responsive_design.count == 1
    assert summary.responsive_design.percentage == 50


def test_http2_counts_exact_version_only():
    records = [
        make_record(url="https://a.example", http_version="HTTP/2"),
        make_record(url="https://b.example", http_version="HTTP/2.0"),
        make_record(url="https://c.example", http_version="HTTP/1.1"),
        make_record(url="https://d.example", http_version=""),
    ]

    summary = summarize(records, analyzed_at=FIXED_TIME)

    assert summary.http2.count == 1
    assert summary.http2.percentage == 25


def test_empty_batch_raises():
    with pytest.raises(EmptyBatchError):
        summarize([])
    with pytest.raises(EmptyInputError):
        BatchAggregator.summarize(iter(()))


def test_ties_are_ordered_by_name():
    records = [
        make_record(url="https://a.example", technologies={Category.ANALYTICS: ["Matomo", "Google Analytics"]}),
        make_record(url="https://b.example", technologies={Category.ANALYTICS: ["Matomo", "Google Analytics", "Hotjar"]}),
        make_record(url="https://c.example", technologies={Category.ANALYTICS: ["Hotjar"]}),
        make_record(url="https://d.example", technologies={Category.ANALYTICS: ["Matomo"]}),
    ]

    summary = summarize(records, analyzed_at=FIXED_TIME)

    names = [(s.name, s.count) for s in summary.technologies[Category.ANALYTICS]]
    assert names == [("Matomo", 3), ("Google Analytics", 2), ("Hotjar", 2)]
    assert [s.name for s in summary.common_technologies[Category.ANALYTICS]] == ["Matomo"]


def test_technology_in_two_categories_counts_in_each():
    records = [
        make_record(
            url=f"https://s{i}.example",
            technologies={Category.CDN: ["Fastly"], Category.CACHING: ["Fastly"]},
        )
        for i in range(2)
    ]

    summary = summarize(records, analyzed_at=FIXED_TIME)

    assert summary.common_technologies[Category.CDN][0].count == 2
    assert summary.common_technologies[Category.CACHING][0].count == 2


def test_degraded_records_count_towards_totals():
    builder = RecordBuilder()
    healthy = make_record(url="https://ok.example", technologies={Category.CDN: ["Cloudflare"]})
    degraded = builder.degraded("https://down.example", analyzed_at=FIXED_TIME)

    summary = summarize([healthy, degraded], analyzed_at=FIXED_TIME)

    assert summary.total_sites == 2
    assert summary.technologies[Category.CDN][0].percentage == 50
    # 1 of 2 is not a strict majority
    assert summary.common_technologies[Category.CDN] == ()
    robots = [s for s in summary.missing_files if s.name == "robots.txt"][0]
    assert robots.missing_on == 1


def test_batch_id_defaults_to_timestamp():
    summary = summarize([make_record()], analyzed_at=FIXED_TIME)
    assert summary.batch_id == "20240501_123000"


def test_summary_to_dict_shape():
    records = [
        make_record(
            url="https://a.example",
            technologies={Category.CMS: ["WordPress"]},
            responsive=True,
            http_version="HTTP/2",
            missing=MissingReport(meta_tags=("theme-color",)),
        )
    ]

    data = summarize(records, batch_id="batch1", analyzed_at=FIXED_TIME).to_dict()

    assert data["batch_id"] == "batch1"
    assert data["analyzed_at"] == "2024-05-01T12:30:00Z"
    assert data["total_sites"] == 1
    assert data["statistics"] == {
        "responsive_design": {"count": 1, "percentage": 100},
        "ssl_enabled": {"count": 1, "percentage": 100},
        "http2": {"count": 1, "percentage": 100},
    }
    assert list(data["common_technologies"].keys()) == [c.value for c in Category]
    assert data["common_technologies"]["cms"] == [{"name": "WordPress", "count": 1, "percentage": 100}]
    assert data["common_technologies"]["cdn"] == []
    assert data["common_missing_features"] == {
        "security_headers": [],
        "files": [],
        "meta_tags": [{"name": "theme-color", "missing_on": 1, "percentage": 100}],
    }
