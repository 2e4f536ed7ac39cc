"""Personalized assessment report rendering (self-contained HTML)."""

import logging
from datetime import datetime

from jinja2 import Environment, PackageLoader, select_autoescape

from growth_iq.services.report_template import DEFAULT_TEMPLATE, HEX_COLOR
from growth_iq.services.scoring import CATEGORY_LABELS, insight_level
from growth_iq.services.tiers import normalize_level_key, recommendations_for

logger = logging.getLogger(__name__)

NOT_PROVIDED = "Not provided"


def _finalize(value):
    # None must never reach the document as the literal text "None"
    return '' if value is None else value


env = Environment(
    loader=PackageLoader('growth_iq', 'templates'),
    autoescape=select_autoescape(['html']),
    finalize=_finalize,
    trim_blocks=True,
    lstrip_blocks=True,
)


def parse_date(value):
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def format_report_date(value):
    parsed = parse_date(value)
    if not parsed:
        return "N/A"
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


SAFE_URL_SCHEMES = ('http:', 'https:', 'mailto:', 'tel:')


def safe_url(value):
    """Links and images only point at web, mail or phone targets; anything else renders empty."""
    value = (value or '').strip() if isinstance(value, str) else ''
    if not value:
        return ''
    if ':' in value.split('/', 1)[0] and not value.lower().startswith(SAFE_URL_SCHEMES):
        return ''
    return value


def _or_not_provided(value):
    value = (value or '').strip() if isinstance(value, str) else value
    return value if value else NOT_PROVIDED


def select_band(section, percentage):
    """The scoring band (low/medium/high) whose [min, max] contains percentage."""
    criteria = section.get('scoringCriteria') or {}
    for band in ('low', 'medium', 'high'):
        rng = criteria.get(band) or {}
        try:
            if int(rng.get('min')) <= percentage <= int(rng.get('max')):
                return rng
        except (TypeError, ValueError):
            continue
    # Stored templates are validated; this only covers hand-built dicts
    return criteria.get(insight_level(percentage)) or {}


def top_category_label(category_scores, strongest=True):
    """Highest (or lowest) scoring category; ties keep the stored order."""
    best = None
    for cat in category_scores or []:
        pct = cat.get('percentage', 0)
        if best is None or (pct > best.get('percentage', 0) if strongest else pct < best.get('percentage', 0)):
            best = cat
    if not best:
        return "N/A"
    return CATEGORY_LABELS.get(best.get('category'), best.get('category') or "N/A")


def build_context(submission, template):
    """Everything the report templates need, derived only from the two inputs."""
    branding = dict(DEFAULT_TEMPLATE['branding'])
    branding.update({k: v for k, v in (template.get('branding') or {}).items() if v})
    for color_key in ('primaryColor', 'secondaryColor'):
        if not HEX_COLOR.match(str(branding.get(color_key))):
            branding[color_key] = DEFAULT_TEMPLATE['branding'][color_key]
    for url_key in ('logoUrl', 'website'):
        branding[url_key] = safe_url(branding.get(url_key))

    score_map = {}
    for cat in submission.get('categoryScores') or []:
        score_map[cat.get('category')] = cat.get('percentage') or 0

    sections = []
    detailed = [s for s in (template.get('detailedSections') or []) if s.get('enabled')]
    for section in sorted(detailed, key=lambda s: s.get('order') or 0):
        pct = max(0, min(100, int(score_map.get(section.get('category'), 0))))
        band = select_band(section, pct)
        sections.append({
            'title': section.get('title'),
            'description': section.get('description'),
            'score': pct,
            'band_label': band.get('label'),
            'band_description': band.get('description'),
        })

    recommendations = template.get('recommendations') or {}
    cta = dict(template.get('callToAction') or {})
    cta['buttonUrl'] = safe_url(cta.get('buttonUrl'))
    level = submission.get('scoreLevel') or ''
    level_key = normalize_level_key(level)
    completed = submission.get('completedAt') or submission.get('createdAt')
    completed_on = parse_date(completed)

    return {
        'submission': submission,
        'respondent': {
            'name': _or_not_provided(submission.get('respondentName')),
            'company': _or_not_provided(submission.get('respondentCompany')),
            'email': _or_not_provided(submission.get('respondentEmail')),
            'phone': _or_not_provided(submission.get('respondentPhone')),
        },
        'prepared_for': submission.get('respondentName') or "Business Owner",
        'report_date': format_report_date(completed),
        'year': completed_on.year if completed_on else '',
        'branding': branding,
        'executive': template.get('executiveSummary') or {},
        'key_strength': top_category_label(submission.get('categoryScores'), strongest=True),
        'development_area': top_category_label(submission.get('categoryScores'), strongest=False),
        'level': level,
        'level_class': level_key.lower(),
        'sections': sections,
        'recommendations': recommendations,
        'recommendation_items': recommendations_for(level_key, recommendations.get('byScoreLevel')),
        'cta': cta,
    }


def render(submission, template):
    """
    Render the full report. Same inputs, same bytes: dates come from the
    submission, never the clock.
    """
    context = build_context(submission, template)
    return env.get_template('reports/assessment_report.html').render(**context)


def render_print_html(submission, template):
    """Reduced markup (headings, paragraphs, lists) for the PDF writer."""
    context = build_context(submission, template)
    return env.get_template('reports/assessment_report_pdf.html').render(**context)
