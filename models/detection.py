from dataclasses import dataclass
from typing import Optional

from models.technology import Category


@dataclass(frozen=True)
class Evidence:
    """Represents a piece of evidence for a technology detection."""
    source: str
    pattern: Optional[str] = None
    value: Optional[str] = None  # the matched text


@dataclass(frozen=True)
class Detection:
    """Represents a detected technology."""
    name: str
    category: Category
    evidence: Evidence
