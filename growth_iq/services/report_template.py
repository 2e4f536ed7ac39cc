"""Report template store: built-in default, validation, resolution and saving."""

import copy
import logging
import re

from growth_iq.errors import TemplateValidationError
from growth_iq.services.scoring import CATEGORIES
from growth_iq.services.tiers import DEFAULT_RECOMMENDATIONS, TIER_KEYS

logger = logging.getLogger(__name__)

BANDS = ('low', 'medium', 'high')
METADATA_KEYS = ('id', 'name', 'isActive', 'createdAt', 'updatedAt')
HEX_COLOR = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}$')


def _section(category, order, title, description, bands):
    (low_label, low_desc), (mid_label, mid_desc), (high_label, high_desc) = bands
    return {
        'id': category,
        'title': title,
        'enabled': True,
        'order': order,
        'category': category,
        'description': description,
        'scoringCriteria': {
            'low': {'min': 0, 'max': 39, 'label': low_label, 'description': low_desc},
            'medium': {'min': 40, 'max': 69, 'label': mid_label, 'description': mid_desc},
            'high': {'min': 70, 'max': 100, 'label': high_label, 'description': high_desc},
        },
    }


DEFAULT_TEMPLATE = {
    'name': "Default Template",
    'isActive': True,
    'executiveSummary': {
        'enabled': True,
        'title': "Executive Summary",
        'showOverallScore': True,
        'showKeyStrengths': True,
        'showDevelopmentAreas': True,
        'customIntroText': (
            "Thank you for completing the Legacy Growth IQ Assessment. This comprehensive report analyzes your "
            "business's readiness for sustainable growth and legacy building."
        ),
    },
    'detailedSections': [
        _section('vision', 1, "Vision & Values Alignment",
                 "Evaluates how well your organization's current practices align with its stated mission and future goals.",
                 [("Needs Attention", "Your vision may not be clearly defined or communicated across the organization."),
                  ("Developing", "You have a vision but it may not be fully integrated into daily operations."),
                  ("Strong", "Your vision is clear, communicated, and drives organizational decisions.")]),
        _section('independence', 2, "Business Independence",
                 "Assesses your business's ability to operate without your constant involvement.",
                 [("Owner-Dependent", "The business relies heavily on your daily involvement for key operations."),
                  ("Transitioning", "Some systems exist but you're still essential for many decisions."),
                  ("Self-Sustaining", "The business can operate effectively without your constant presence.")]),
        _section('leadership', 3, "Leadership & Team Development",
                 "Evaluates how the organization invests in its people and leverages talent effectively.",
                 [("Limited", "Leadership capacity is concentrated and team development is minimal."),
                  ("Growing", "Some leadership development exists but more investment is needed."),
                  ("Robust", "Strong leadership team with clear development pathways.")]),
        _section('operations', 4, "Systems & Operations",
                 "Assessment of documented processes, data usage, and operational efficiency.",
                 [("Informal", "Most processes exist only in people's heads with minimal documentation."),
                  ("Partial", "Some documentation exists but gaps remain in critical areas."),
                  ("Systematic", "Well-documented processes that enable consistent execution.")]),
        _section('succession', 5, "Succession Planning",
                 "Analysis of your readiness for ownership transition or exit.",
                 [("Unprepared", "No succession plan exists, leaving the business vulnerable."),
                  ("In Progress", "Some planning has begun but key elements are missing."),
                  ("Prepared", "Clear succession strategy with identified successors and timeline.")]),
        _section('legacy', 6, "Legacy Readiness",
                 "Evaluation of your business's ability to create lasting impact beyond your tenure.",
                 [("At Risk", "The business's legacy is uncertain without significant changes."),
                  ("Building", "Foundation exists but more work needed to secure your legacy."),
                  ("Secured", "Your business is positioned to create lasting impact.")]),
    ],
    'recommendations': {
        'enabled': True,
        'title': "Recommendations & Action Plan",
        'showPrioritizedInitiatives': True,
        'showImplementationGuidance': True,
        'showExpectedOutcomes': True,
        'byScoreLevel': copy.deepcopy(DEFAULT_RECOMMENDATIONS),
    },
    'callToAction': {
        'enabled': True,
        'title': "Ready to Build Your Legacy?",
        'description': ("Schedule a free 30-minute strategy call to discuss your results and create a personalized "
                        "action plan for your business."),
        'buttonText': "Schedule Your Free Call",
        'buttonUrl': "https://legacy83business.com/schedule-a-call",
    },
    'branding': {
        'logoUrl': "/legacy83Logo.webp",
        'primaryColor': "#D97706",
        'secondaryColor': "#1E293B",
        'companyName': "Legacy 83 Business Inc",
        'contactEmail': "info@legacy83business.com",
        'contactPhone': "(513) 335-1978",
        'website': "https://legacy83business.com",
    },
    'emailSettings': {
        'subject': "Your Legacy Growth IQ Assessment Results",
        'fromName': "Legacy 83 Business",
        'replyTo': "info@legacy83business.com",
        'introText': ("Thank you for completing the Legacy Growth IQ Assessment! Attached is your personalized "
                      "report with insights and recommendations for building a sustainable business legacy."),
        'signatureText': "Best regards,\nThe Legacy 83 Team",
    },
}


def default_template():
    """A private copy of the built-in template; callers may mutate it freely."""
    return copy.deepcopy(DEFAULT_TEMPLATE)


def merge_over_default(document):
    """Shallow merge: each top-level key of the custom document replaces the default's."""
    if not isinstance(document, dict):
        raise TemplateValidationError("Template document must be an object")
    merged = default_template()
    merged.update(copy.deepcopy(document))
    return merged


def _as_int(value, section_id, band, bound):
    if isinstance(value, bool):
        raise TemplateValidationError(
            f"Section '{section_id}' band '{band}' has a non-numeric {bound}", section=section_id, band=band)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise TemplateValidationError(
            f"Section '{section_id}' band '{band}' has a non-numeric {bound}", section=section_id, band=band)


def validate_section_bands(section):
    """low/medium/high must partition 0..100: low.max+1 == medium.min, medium.max+1 == high.min."""
    section_id = section.get('id') or section.get('category') or '?'
    criteria = section.get('scoringCriteria')
    if not isinstance(criteria, dict):
        raise TemplateValidationError(f"Section '{section_id}' has no scoring criteria", section=section_id)

    expected_min = 0
    for band in BANDS:
        rng = criteria.get(band)
        if not isinstance(rng, dict):
            raise TemplateValidationError(
                f"Section '{section_id}' is missing the '{band}' band", section=section_id, band=band)
        lo = _as_int(rng.get('min'), section_id, band, 'min')
        hi = _as_int(rng.get('max'), section_id, band, 'max')
        if lo != expected_min:
            raise TemplateValidationError(
                f"Section '{section_id}' band '{band}' starts at {lo}, expected {expected_min} "
                f"(bands must cover 0-100 without gaps or overlaps)", section=section_id, band=band)
        if hi < lo:
            raise TemplateValidationError(
                f"Section '{section_id}' band '{band}' has max {hi} below min {lo}", section=section_id, band=band)
        expected_min = hi + 1

    if expected_min != 101:
        raise TemplateValidationError(
            f"Section '{section_id}' band 'high' ends at {expected_min - 1}, expected 100",
            section=section_id, band='high')


def validate_template(document):
    """
    Structural checks for a (merged) template document. Raises
    TemplateValidationError naming the offending section/band.
    """
    sections = document.get('detailedSections')
    if not isinstance(sections, list):
        raise TemplateValidationError("detailedSections must be a list")

    seen = set()
    for section in sections:
        if not isinstance(section, dict):
            raise TemplateValidationError("Each detailed section must be an object")
        section_id = section.get('id') or section.get('category')
        category = section.get('category')
        if category not in CATEGORIES:
            raise TemplateValidationError(
                f"Section '{section_id}' is bound to unknown category '{category}'", section=section_id)
        if section_id in seen:
            raise TemplateValidationError(f"Duplicate section '{section_id}'", section=section_id)
        seen.add(section_id)
        validate_section_bands(section)

    recommendations = document.get('recommendations') or {}
    by_level = recommendations.get('byScoreLevel') or {}
    if not isinstance(by_level, dict):
        raise TemplateValidationError("recommendations.byScoreLevel must be an object")
    for key, items in by_level.items():
        if key not in TIER_KEYS:
            raise TemplateValidationError(f"Unknown recommendation tier '{key}'")
        if not isinstance(items, list) or not [i for i in items if i]:
            raise TemplateValidationError(f"Recommendation tier '{key}' must list at least one action")

    branding = document.get('branding') or {}
    for color_key in ('primaryColor', 'secondaryColor'):
        color = branding.get(color_key)
        if color and not HEX_COLOR.match(str(color)):
            raise TemplateValidationError(f"branding.{color_key} must be a hex colour, got '{color}'")


def fetch_active_document():
    """The active stored template document, or None."""
    from growth_iq.models import ReportTemplate

    record = ReportTemplate.query.filter_by(is_active=True).order_by(ReportTemplate.updated_at.desc()).first()
    return record.to_dict() if record else None


def resolve(fetch=fetch_active_document):
    """
    The template to render reports with. Never raises: any failure
    (nothing stored, malformed data, store unavailable, invalid bands)
    falls back to the built-in default.
    """
    try:
        document = fetch()
        if not document:
            return default_template()
        merged = merge_over_default(document)
        validate_template(merged)
        return merged
    except Exception as e:
        logger.warning(f"Report template resolution failed, using default: {e}")
        return default_template()


def _strip_metadata(document):
    return {k: v for k, v in document.items() if k not in METADATA_KEYS}


def save_template(document, name=None, activate=True, template_id=None):
    """
    Validate and persist a template. With ``activate`` every other template
    is deactivated so at most one is active. Raises TemplateValidationError
    before touching the store.
    """
    from growth_iq.models import db, ReportTemplate

    validate_template(merge_over_default(document))

    record = None
    if template_id:
        record = db.session.get(ReportTemplate, template_id)
    if record is None:
        record = ReportTemplate()
        db.session.add(record)

    record.name = name or document.get('name') or record.name or 'Custom Template'
    record.document = _strip_metadata(copy.deepcopy(document))
    record.is_active = bool(activate)

    try:
        db.session.flush()
        if activate:
            ReportTemplate.query.filter(ReportTemplate.id != record.id).update({'is_active': False})
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Report template {record.id} saved (active={record.is_active})")
    return record


def activate_template(template_id):
    from growth_iq.models import db, ReportTemplate

    record = db.session.get(ReportTemplate, template_id)
    if record is None:
        return None
    validate_template(merge_over_default(record.document or {}))
    ReportTemplate.query.filter(ReportTemplate.id != record.id).update({'is_active': False})
    record.is_active = True
    db.session.commit()
    return record


def list_templates():
    from growth_iq.models import ReportTemplate

    return ReportTemplate.query.order_by(ReportTemplate.updated_at.desc()).all()


def get_template(template_id):
    from growth_iq.models import db, ReportTemplate

    return db.session.get(ReportTemplate, template_id)
