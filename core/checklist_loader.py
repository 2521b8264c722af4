"""Utility module for loading the best-practice checklists from YAML."""
import os
import yaml
import regex
from dataclasses import dataclass
from typing import Any, Dict, Tuple
from core.errors import RuleLoadError
from rules.rules_loader import RULES_DIR

CHECKLISTS_FILE = "checklists.yaml"


@dataclass(frozen=True)
class FileProbe:
    """A well-known file, probed relative to the site origin."""
    name: str
    path: str


@dataclass(frozen=True)
class MetaTagCheck:
    name: str
    pattern: str


@dataclass(frozen=True)
class Checklists:
    security_headers: Tuple[str, ...]
    files: Tuple[FileProbe, ...]
    meta_tags: Tuple[MetaTagCheck, ...]


def load_config(config_file: str) -> Dict[str, Any]:
    """
    Load configuration from a YAML file.

    Args:
        config_file: Path to the YAML configuration file

    Returns:
        Dictionary containing the configuration data
    """
    if not os.path.exists(config_file):
        raise RuleLoadError(f"Checklist file not found: {config_file}")

    with open(config_file, 'r', encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def load_checklists(rules_dir: str = RULES_DIR) -> Checklists:
    """
    Load the security header, well-known file and meta tag checklists.

    Args:
        rules_dir: Directory where checklists.yaml is located

    Returns:
        Checklists with every section present, in file order
    """
    config = load_config(os.path.join(rules_dir, CHECKLISTS_FILE))

    headers = tuple(str(name) for name in config.get("security_headers", []))

    files = []
    for item in config.get("files", []):
        if not isinstance(item, dict) or "name" not in item or "path" not in item:
            raise RuleLoadError(f"{CHECKLISTS_FILE}: file probe needs 'name' and 'path': {item!r}")
        path = str(item["path"])
        files.append(FileProbe(name=str(item["name"]), path=path if path.startswith("/") else f"/{path}"))

    meta_tags = []
    for item in config.get("meta_tags", []):
        if not isinstance(item, dict) or "name" not in item or "pattern" not in item:
            raise RuleLoadError(f"{CHECKLISTS_FILE}: meta tag check needs 'name' and 'pattern': {item!r}")
        try:
            regex.compile(item["pattern"], regex.IGNORECASE)
        except regex.error as e:
            raise RuleLoadError(f"{CHECKLISTS_FILE}: invalid pattern for {item['name']!r}: {e}") from None
        meta_tags.append(MetaTagCheck(name=str(item["name"]), pattern=str(item["pattern"])))

    return Checklists(security_headers=headers, files=tuple(files), meta_tags=tuple(meta_tags))
