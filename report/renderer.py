"""
Report renderer: generate text/Markdown/CSV/JSON/HTML views of a processed snapshot.
HTML uses the Jinja2 template report/templates/snapshot.html.j2.
Every renderer accepts either a ProcessedSnapshot or its to_dict() form (as stored in the cache).
"""

import csv
import io
import json
import os
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader, select_autoescape

from snapshot.models import ProcessedSnapshot

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')
HTML_TEMPLATE = 'snapshot.html.j2'

INSIGHT_SECTIONS = (
    ('key_trends', 'Key trends'),
    ('areas_of_concern', 'Areas of concern'),
    ('recommendations', 'Recommendations'),
    ('achievements', 'Achievements'),
)


def _as_dict(snapshot: Any) -> Dict[str, Any]:
    if isinstance(snapshot, ProcessedSnapshot):
        return snapshot.to_dict()
    if isinstance(snapshot, dict):
        return snapshot
    return ProcessedSnapshot().to_dict()


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _items(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def render_text(snapshot: Any) -> str:
    """Render a plain-text summary."""
    data = _as_dict(snapshot)
    health = _section(data, 'program_health')
    lines = [
        f"Active contributors: {data.get('active_contributors', 0)}",
        f"Total contributions: {data.get('total_contributions', 0)}",
        f"Weekly change: {data.get('weekly_change', 0)}%",
        f"NPS: {health.get('nps_score', 0)}",
        f"Engagement rate: {health.get('engagement_rate', 0)}%",
        f"Active tech partners: {health.get('active_tech_partners', 0)}",
    ]
    for p in _items(data, 'top_performers'):
        lines.append(f"  {p.get('name')}: {p.get('total_issues')} issues, engagement {p.get('avg_engagement')}")
    for item in _items(data, 'action_items'):
        lines.append(f"[{item.get('type')}] {item.get('title')}: {item.get('description')}")
    return "\n".join(lines)


def _markdown_table(headers: List[str], rows: List[List[Any]]) -> List[str]:
    out = ["| " + " | ".join(headers) + " |", "|" + "---|" * len(headers)]
    for row in rows:
        out.append("| " + " | ".join(str(c) for c in row) + " |")
    return out


def render_markdown(snapshot: Any) -> str:
    """Render a Markdown report with program health, partners, top performers and action items."""
    data = _as_dict(snapshot)
    health = _section(data, 'program_health')
    highlights = _section(data, 'key_highlights')
    md = ["# Engagement Summary\n"]
    md.append(f"- Active contributors: **{data.get('active_contributors', 0)}**")
    md.append(f"- Total contributions: **{data.get('total_contributions', 0)}**")
    md.append(f"- Weekly change: **{data.get('weekly_change', 0)}%**")
    md.append(f"- NPS: **{health.get('nps_score', 0)}**")
    md.append(f"- Engagement rate: **{health.get('engagement_rate', 0)}%**")
    md.append(f"- Active tech partners: **{health.get('active_tech_partners', 0)}**")
    if highlights:
        md.append("\n## Highlights\n")
        md.extend(f"- {v}" for v in highlights.values())

    partners = _items(data, 'tech_partners')
    if partners:
        md.append("\n## Tech Partners\n")
        md.extend(_markdown_table(
            ['Partner', 'Issues', 'Contributors', 'Issues/Contributor'],
            [[p.get('partner'), p.get('total_issues'), p.get('active_contributors'), p.get('avg_issues_per_contributor')] for p in partners],
        ))

    performers = _items(data, 'top_performers')
    if performers:
        md.append("\n## Top Performers\n")
        md.extend(_markdown_table(
            ['Name', 'Issues', 'Avg engagement'],
            [[p.get('name'), p.get('total_issues'), p.get('avg_engagement')] for p in performers],
        ))

    actions = _items(data, 'action_items')
    if actions:
        md.append("\n## Action Items\n")
        for a in actions:
            md.append(f"- **{a.get('title')}** ({a.get('type')}): {a.get('description')}. _{a.get('action')}_")

    insights = _section(data, 'insights')
    for key, title in INSIGHT_SECTIONS:
        entries = insights.get(key) or []
        if entries:
            md.append(f"\n## {title}\n")
            md.extend(f"- {e}" for e in entries)
    return "\n".join(md)


def render_csv(snapshot: Any) -> str:
    """Long-form CSV: one (section, name, metric, value) row per figure."""
    data = _as_dict(snapshot)
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(['section', 'name', 'metric', 'value'])
    for key in ('active_contributors', 'total_contributions', 'weekly_change'):
        writer.writerow(['summary', '', key, data.get(key, 0)])
    for key, value in _section(data, 'program_health').items():
        writer.writerow(['program_health', '', key, value])
    for t in _items(data, 'engagement_trends'):
        for key in ('high', 'medium', 'low', 'total'):
            writer.writerow(['engagement_trends', t.get('week'), key, t.get(key)])
    for p in _items(data, 'tech_partners'):
        for key in ('total_issues', 'active_contributors', 'avg_issues_per_contributor'):
            writer.writerow(['tech_partners', p.get('partner'), key, p.get(key)])
    for p in _items(data, 'top_performers'):
        writer.writerow(['top_performers', p.get('name'), 'total_issues', p.get('total_issues')])
        writer.writerow(['top_performers', p.get('name'), 'avg_engagement', p.get('avg_engagement')])
    for key, value in _section(data, 'feedback_sentiment').items():
        writer.writerow(['feedback_sentiment', '', key, value])
    return output.getvalue()


def render_json(snapshot: Any) -> str:
    """Export the full snapshot as JSON."""
    return json.dumps(_as_dict(snapshot), indent=2)


def _environment() -> Environment:
    return Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(['html', 'xml', 'j2']))


def render_html(snapshot: Any, title: str = 'Engagement Report', generated_at: str = None, cohort: str = None) -> str:
    data = _as_dict(snapshot)
    tmpl = _environment().get_template(HTML_TEMPLATE)
    return tmpl.render(
        title=title,
        snapshot=data,
        health=_section(data, 'program_health'),
        highlights=_section(data, 'key_highlights'),
        insights=_section(data, 'insights'),
        insight_sections=INSIGHT_SECTIONS,
        generated_at=generated_at,
        cohort=cohort,
    )


def render(snapshot: Any = None, fmt: str = 'text', generated_at: str = None, cohort: str = None) -> str:
    """Main render function; unknown formats fall back to plain text."""
    fmt_l = (fmt or 'text').lower()
    if fmt_l in ('md', 'markdown'):
        return render_markdown(snapshot)
    if fmt_l == 'csv':
        return render_csv(snapshot)
    if fmt_l in ('html', 'htm'):
        return render_html(snapshot, generated_at=generated_at, cohort=cohort)
    if fmt_l in ('json', 'js'):
        return render_json(snapshot)
    return render_text(snapshot)
