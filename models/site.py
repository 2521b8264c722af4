from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Tuple, Union

from models.technology import Category

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as UTC ISO-8601 with a trailing Z."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@dataclass(frozen=True)
class TechProfile:
    """Technologies detected on one page, keyed by category.

    Every category is present. Names keep first-detection order but carry set
    semantics: a name appears at most once per category.
    """
    technologies: Mapping[Category, Tuple[str, ...]]

    @classmethod
    def from_detected(cls, detected: Mapping[Category, Iterable[str]]) -> "TechProfile":
        technologies: Dict[Category, Tuple[str, ...]] = {}
        for category in Category:
            names = detected.get(category, ())
            # dict.fromkeys keeps order while dropping repeats
            technologies[category] = tuple(dict.fromkeys(names))
        return cls(technologies=technologies)

    @classmethod
    def empty(cls) -> "TechProfile":
        return cls.from_detected({})

    def __getitem__(self, category: Union[Category, str]) -> Tuple[str, ...]:
        if isinstance(category, str):
            category = Category(category)
        return self.technologies.get(category, ())

    def pairs(self) -> Iterable[Tuple[Category, str]]:
        """Yield every (category, technology) pair."""
        for category in Category:
            for name in self[category]:
                yield category, name

    def is_empty(self) -> bool:
        return not any(self[category] for category in Category)

    def to_dict(self) -> Dict[str, list]:
        return {category.value: list(self[category]) for category in Category}


@dataclass(frozen=True)
class MissingReport:
    """Best-practice items absent from a page. Empty means nothing missing."""
    security: Tuple[str, ...] = ()
    files: Tuple[str, ...] = ()
    meta_tags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, list]:
        return {
            "security": list(self.security),
            "files": list(self.files),
            "meta_tags": list(self.meta_tags),
        }


@dataclass(frozen=True)
class PageMeta:
    title: str = ""
    description: str = ""
    responsive: bool = False
    http_version: str = ""
    ssl_enabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "responsive": self.responsive,
            "http_version": self.http_version,
            "ssl_enabled": self.ssl_enabled,
        }


@dataclass(frozen=True)
class SiteRecord:
    """Analysis result for one URL at one point in time."""
    url: str
    analyzed_at: datetime
    technologies: TechProfile
    meta: PageMeta
    missing: MissingReport
    # Set when the page could not be fetched; not part of the JSON output
    fetch_failed: bool = field(default=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "analyzed_at": format_timestamp(self.analyzed_at),
            "technologies": self.technologies.to_dict(),
            "meta": self.meta.to_dict(),
            "missing": self.missing.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SiteRecord":
        """Rebuild a record from its JSON form.

        Unknown categories are ignored so records written by newer rule sets
        still load.
        """
        known = {category.value for category in Category}
        raw_technologies = data.get("technologies") or {}
        detected = {
            Category(key): names
            for key, names in raw_technologies.items()
            if key in known and names
        }
        meta = data.get("meta") or {}
        missing = data.get("missing") or {}
        return cls(
            url=data["url"],
            analyzed_at=parse_timestamp(data["analyzed_at"]),
            technologies=TechProfile.from_detected(detected),
            meta=PageMeta(
                title=meta.get("title") or "",
                description=meta.get("description") or "",
                responsive=bool(meta.get("responsive", False)),
                http_version=meta.get("http_version") or "",
                ssl_enabled=bool(meta.get("ssl_enabled", False)),
            ),
            missing=MissingReport(
                security=tuple(missing.get("security") or ()),
                files=tuple(missing.get("files") or ()),
                meta_tags=tuple(missing.get("meta_tags") or ()),
            ),
        )
