import os
import logging
import yaml
import regex
from typing import List, Dict, Any, Optional
from core.errors import RuleLoadError
from models.technology import Category, CategoryOverride, EvidenceRule, Technology, EVIDENCE_SOURCES

RULES_DIR = os.path.dirname(os.path.abspath(__file__))
SIGNATURES_FILE = "signatures.yaml"
OVERRIDES_FILE = "overrides.yaml"

logger = logging.getLogger(__name__)


def _read_yaml_list(filepath: str) -> List[Dict[str, Any]]:
    with open(filepath, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not data:
        return []
    if not isinstance(data, list):
        raise RuleLoadError(f"{filepath}: expected a list of entries, got {type(data).__name__}")
    return data


def _parse_category(value: Any, where: str) -> Category:
    try:
        return Category(value)
    except ValueError:
        raise RuleLoadError(f"{where}: unknown category {value!r}") from None


def _parse_evidence(item: Any, where: str) -> EvidenceRule:
    if not isinstance(item, dict) or "source" not in item or "pattern" not in item:
        raise RuleLoadError(f"{where}: evidence needs 'source' and 'pattern': {item!r}")
    source = item["source"]
    if source not in EVIDENCE_SOURCES:
        raise RuleLoadError(f"{where}: unknown evidence source {source!r}")
    pattern = str(item["pattern"])
    try:
        regex.compile(pattern, regex.IGNORECASE)
    except regex.error as e:
        raise RuleLoadError(f"{where}: invalid pattern {pattern!r}: {e}") from None
    return EvidenceRule(source=source, pattern=pattern)


def load_rules(rules_dir: str = RULES_DIR, filename: str = SIGNATURES_FILE) -> List[Technology]:
    """
    Loads technology signatures from a YAML file.

    Raises RuleLoadError on the first invalid entry so a broken rule set is
    caught at startup rather than silently skipped.
    """
    filepath = os.path.join(rules_dir, filename)
    technologies: List[Technology] = []
    for index, rule_data in enumerate(_read_yaml_list(filepath)):
        where = f"{filename}[{index}]"
        if not isinstance(rule_data, dict) or not all(k in rule_data for k in ["name", "category", "evidence"]):
            raise RuleLoadError(f"{where}: rule needs 'name', 'category' and 'evidence': {rule_data!r}")

        match = rule_data.get("match", "any")
        if match not in ("any", "all"):
            raise RuleLoadError(f"{where}: match must be 'any' or 'all', got {match!r}")

        evidence_rules = [_parse_evidence(item, where) for item in rule_data["evidence"] or []]
        if not evidence_rules:
            raise RuleLoadError(f"{where}: {rule_data['name']} has no evidence rules")

        technologies.append(
            Technology(
                name=str(rule_data["name"]),
                category=_parse_category(rule_data["category"], where),
                evidence_rules=evidence_rules,
                match=match,
            )
        )
    logger.debug(f"Loaded {len(technologies)} signatures from {filepath}")
    return technologies


def load_overrides(rules_dir: str = RULES_DIR, filename: str = OVERRIDES_FILE) -> List[CategoryOverride]:
    """Loads the ordered category override list."""
    filepath = os.path.join(rules_dir, filename)
    if not os.path.exists(filepath):
        return []

    overrides: List[CategoryOverride] = []
    for index, data in enumerate(_read_yaml_list(filepath)):
        where = f"{filename}[{index}]"
        if not isinstance(data, dict) or not all(k in data for k in ["category", "name", "when"]):
            raise RuleLoadError(f"{where}: override needs 'category', 'name' and 'when': {data!r}")

        redirect: Optional[Dict[str, Any]] = data.get("redirect")
        redirect_category = None
        redirect_name = None
        if redirect:
            redirect_category = _parse_category(redirect.get("category"), where)
            redirect_name = str(redirect.get("name") or data["name"])

        overrides.append(
            CategoryOverride(
                category=_parse_category(data["category"], where),
                name=str(data["name"]),
                condition=_parse_evidence(data["when"], where),
                redirect_category=redirect_category,
                redirect_name=redirect_name,
            )
        )
    logger.debug(f"Loaded {len(overrides)} category overrides from {filepath}")
    return overrides


# Example usage (for testing)
if __name__ == "__main__":
    loaded_technologies = load_rules()
    print(f"Loaded {len(loaded_technologies)} technologies.")
    for tech in loaded_technologies:
        print(f"  - {tech.name} ({tech.category.value})")
        for rule in tech.evidence_rules:
            print(f"    - Evidence: source={rule.source}, pattern={rule.pattern}")
