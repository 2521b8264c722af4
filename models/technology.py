from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Category(Enum):
    """Closed set of technology categories, in report order."""
    CMS = "cms"
    JAVASCRIPT_FRAMEWORKS = "javascript_frameworks"
    JAVASCRIPT_LIBRARIES = "javascript_libraries"
    UI_FRAMEWORKS = "ui_frameworks"
    WEB_FRAMEWORKS = "web_frameworks"
    PROGRAMMING_LANGUAGES = "programming_languages"
    ANALYTICS = "analytics"
    TAG_MANAGERS = "tag_managers"
    CDN = "cdn"
    CACHING = "caching"
    REVERSE_PROXIES = "reverse_proxies"
    FONT_SCRIPTS = "font_scripts"
    SECURITY = "security"
    COOKIE_COMPLIANCE = "cookie_compliance"
    RUM = "rum"
    PERFORMANCE = "performance"
    HOSTING = "hosting"
    MISCELLANEOUS = "miscellaneous"


# Where an evidence rule looks: raw header text, HTML body, or either one
EVIDENCE_SOURCES = ("header", "html", "any")


@dataclass(frozen=True)
class EvidenceRule:
    """Defines a rule for detecting a technology."""
    source: str  # 'header', 'html' or 'any'
    pattern: str  # case-insensitive regex, evaluated line by line


@dataclass(frozen=True)
class Technology:
    """Represents a technology and its detection rules."""
    name: str
    category: Category
    evidence_rules: List[EvidenceRule] = field(default_factory=list)
    match: str = "any"  # 'any': one rule is enough, 'all': every rule must fire


@dataclass(frozen=True)
class CategoryOverride:
    """Suppresses a detection when a condition holds, optionally moving it.

    Applied after the base detection pass. When ``name`` was detected under
    ``category`` and ``condition`` matches the page, the entry is removed and,
    if ``redirect_category`` is set, ``redirect_name`` is added there instead.
    """
    category: Category
    name: str
    condition: EvidenceRule
    redirect_category: Optional[Category] = None
    redirect_name: Optional[str] = None
