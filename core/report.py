"""Plain-text rendering of a batch summary."""
from typing import List, Sequence

from models.summary import BatchSummary, MissingStat

RULE = "=" * 39


def _missing_section(title: str, stats: Sequence[MissingStat], total: int, empty_line: str) -> List[str]:
    lines = [f"{title}:", ""]
    if stats:
        for stat in stats:
            lines.append(f"  x {stat.name} - Missing on {stat.missing_on}/{total} sites ({stat.percentage}%)")
    else:
        lines.append(f"  + {empty_line}")
    lines.append("")
    return lines


def render_text_report(summary: BatchSummary) -> str:
    """Human-readable batch summary, as written to summary_report.txt."""
    total = summary.total_sites
    lines = [RULE, " Batch Analysis Summary", RULE, "", f"Total sites analyzed: {total}", ""]

    lines.extend(["Common Technologies (>50% of sites):", ""])
    common = [
        (category, stat)
        for category, stats in summary.common_technologies.items()
        for stat in stats
    ]
    common.sort(key=lambda item: (-item[1].count, item[1].name))
    for category, stat in common:
        lines.append(f"  + {stat.name} ({category.value}) - {stat.count}/{total} sites ({stat.percentage}%)")
    lines.append("")

    lines.extend(_missing_section(
        "Common Missing Security Headers", summary.missing_security_headers, total,
        "No missing security headers detected",
    ))
    lines.extend(_missing_section(
        "Common Missing Files", summary.missing_files, total,
        "No missing files detected",
    ))
    lines.extend(_missing_section(
        "Common Missing Meta Tags", summary.missing_meta_tags, total,
        "No missing meta tags detected",
    ))

    lines.extend([
        "Additional Statistics:",
        "",
        f"  Responsive design: {summary.responsive_design.count}/{total} sites ({summary.responsive_design.percentage}%)",
        f"  SSL enabled: {summary.ssl_enabled.count}/{total} sites ({summary.ssl_enabled.percentage}%)",
        f"  HTTP/2: {summary.http2.count}/{total} sites ({summary.http2.percentage}%)",
        "",
        RULE,
    ])
    return "\n".join(lines) + "\n"
