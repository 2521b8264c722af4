import pytest

from core.checklist_loader import load_checklists
from core.errors import RuleLoadError
from rules.rules_loader import load_overrides, load_rules
from models.technology import Category


def _write(tmp_path, name, content):
    (tmp_path / name).write_text(content, encoding="utf-8")
    return str(tmp_path)


def test_bundled_rules_load():
    technologies = load_rules()

    assert len(technologies) > 50
    names = {(t.category, t.name) for t in technologies}
    assert (Category.CMS, "WordPress") in names
    assert (Category.CDN, "Fastly") in names
    assert (Category.CACHING, "Fastly") in names

    pages = [t for t in technologies if t.name == "Cloudflare Pages"]
    assert pages and pages[0].match == "all"


def test_bundled_overrides_load():
    overrides = load_overrides()

    new_relic = overrides[0]
    assert (new_relic.category, new_relic.name) == (Category.PERFORMANCE, "New Relic")
    assert (new_relic.redirect_category, new_relic.redirect_name) == (Category.RUM, "New Relic Browser")

    http2 = overrides[1]
    assert http2.name == "HTTP/2"
    assert http2.redirect_category is None


def test_rules_default_match_is_any(tmp_path):
    rules_dir = _write(tmp_path, "signatures.yaml", """
- name: Foo
  category: cms
  evidence:
    - source: html
      pattern: 'foo'
""")

    technologies = load_rules(rules_dir)

    assert len(technologies) == 1
    assert technologies[0].match == "any"
    assert technologies[0].evidence_rules[0].source == "html"


def test_empty_rules_file(tmp_path):
    assert load_rules(_write(tmp_path, "signatures.yaml", "")) == []


@pytest.mark.parametrize("content", [
    "- name: Foo\n  category: not_a_category\n  evidence:\n    - {source: html, pattern: foo}\n",
    "- name: Foo\n  category: cms\n  evidence:\n    - {source: cookie, pattern: foo}\n",
    "- name: Foo\n  category: cms\n  evidence:\n    - {source: html, pattern: 'foo('}\n",
    "- name: Foo\n  category: cms\n  match: some\n  evidence:\n    - {source: html, pattern: foo}\n",
    "- name: Foo\n  category: cms\n  evidence: []\n",
    "- name: Foo\n  evidence:\n    - {source: html, pattern: foo}\n",
    "name: Foo\n",
])
def test_invalid_rules_raise(tmp_path, content):
    with pytest.raises(RuleLoadError):
        load_rules(_write(tmp_path, "signatures.yaml", content))


def test_missing_overrides_file_is_empty(tmp_path):
    assert load_overrides(str(tmp_path)) == []


def test_override_redirect_name_defaults_to_overridden_name(tmp_path):
    rules_dir = _write(tmp_path, "overrides.yaml", """
- category: performance
  name: Foo
  when: {source: html, pattern: bar}
  redirect:
    category: rum
""")

    override = load_overrides(rules_dir)[0]

    assert override.redirect_category == Category.RUM
    assert override.redirect_name == "Foo"


def test_missing_checklist_file_raises(tmp_path):
    with pytest.raises(RuleLoadError):
        load_checklists(str(tmp_path))


def test_checklist_paths_are_rooted(tmp_path):
    rules_dir = _write(tmp_path, "checklists.yaml", """
security_headers: [X-Frame-Options]
files:
  - {name: ads.txt, path: ads.txt}
meta_tags: []
""")

    checklists = load_checklists(rules_dir)

    assert checklists.security_headers == ("X-Frame-Options",)
    assert checklists.files[0].path == "/ads.txt"
    assert checklists.meta_tags == ()
