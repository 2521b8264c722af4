from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class ScanContext:
    url: str
    headers: str  # raw header block, one "Name: value" per line after the status line
    html: str
    file_probes: Dict[str, bool] = field(default_factory=dict)  # e.g. {"robots.txt": True}

    status_code: Optional[int] = None
    # The page could not be fetched; headers and html are empty
    fetch_failed: bool = False
