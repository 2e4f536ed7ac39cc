import copy

import pytest

from growth_iq.errors import TemplateValidationError
from growth_iq.models import ReportTemplate
from growth_iq.services import report_template
from growth_iq.services.report_template import (
    DEFAULT_TEMPLATE, default_template, merge_over_default, resolve, validate_section_bands, validate_template,
)


def _section(doc, section_id):
    return next(s for s in doc['detailedSections'] if s['id'] == section_id)


def test_default_template_is_valid():
    validate_template(default_template())


def test_default_template_has_six_sections_in_order():
    doc = default_template()
    assert [s['category'] for s in doc['detailedSections']] == [
        'vision', 'independence', 'leadership', 'operations', 'succession', 'legacy']
    assert sorted(doc['recommendations']['byScoreLevel']) == ['critical', 'developing', 'legacyReady', 'vulnerable']
    assert all(len(v) == 5 for v in doc['recommendations']['byScoreLevel'].values())


def test_default_template_copy_is_private():
    doc = default_template()
    doc['branding']['companyName'] = "Changed"
    assert DEFAULT_TEMPLATE['branding']['companyName'] != "Changed"


def test_gap_between_bands_names_section():
    doc = default_template()
    _section(doc, 'vision')['scoringCriteria']['medium']['min'] = 41
    with pytest.raises(TemplateValidationError) as exc:
        validate_template(doc)
    assert exc.value.section == 'vision'
    assert exc.value.band == 'medium'
    assert 'vision' in str(exc.value)


def test_overlapping_bands_rejected():
    section = copy.deepcopy(DEFAULT_TEMPLATE['detailedSections'][0])
    section['scoringCriteria']['high']['min'] = 65
    with pytest.raises(TemplateValidationError):
        validate_section_bands(section)


def test_high_band_must_reach_100():
    section = copy.deepcopy(DEFAULT_TEMPLATE['detailedSections'][0])
    section['scoringCriteria']['high']['max'] = 99
    with pytest.raises(TemplateValidationError) as exc:
        validate_section_bands(section)
    assert exc.value.band == 'high'


def test_missing_band_rejected():
    section = copy.deepcopy(DEFAULT_TEMPLATE['detailedSections'][0])
    del section['scoringCriteria']['low']
    with pytest.raises(TemplateValidationError):
        validate_section_bands(section)


def test_unknown_category_rejected():
    doc = default_template()
    doc['detailedSections'][0]['category'] = 'marketing'
    with pytest.raises(TemplateValidationError):
        validate_template(doc)


def test_empty_recommendation_tier_rejected():
    doc = default_template()
    doc['recommendations']['byScoreLevel']['critical'] = []
    with pytest.raises(TemplateValidationError):
        validate_template(doc)


def test_bad_colour_rejected():
    doc = default_template()
    doc['branding']['primaryColor'] = 'red; background: url(x)'
    with pytest.raises(TemplateValidationError):
        validate_template(doc)


def test_merge_is_shallow():
    merged = merge_over_default({'branding': {'companyName': "Other Co"}})
    assert merged['branding'] == {'companyName': "Other Co"}
    assert merged['detailedSections'] == DEFAULT_TEMPLATE['detailedSections']


# ============================================================================
# RESOLUTION
# ============================================================================

def test_resolve_without_stored_template_returns_default():
    assert resolve(fetch=lambda: None) == DEFAULT_TEMPLATE


def test_resolve_survives_store_failure():
    def broken():
        raise RuntimeError("store unavailable")
    assert resolve(fetch=broken) == DEFAULT_TEMPLATE


def test_resolve_survives_malformed_document():
    assert resolve(fetch=lambda: "not a document") == DEFAULT_TEMPLATE


def test_resolve_rejects_invalid_bands():
    doc = default_template()
    _section(doc, 'legacy')['scoringCriteria']['low']['max'] = 50
    assert resolve(fetch=lambda: doc) == DEFAULT_TEMPLATE


def test_resolve_uses_stored_overrides():
    resolved = resolve(fetch=lambda: {'callToAction': {'enabled': False}})
    assert resolved['callToAction'] == {'enabled': False}
    assert resolved['branding'] == DEFAULT_TEMPLATE['branding']


# ============================================================================
# STORE
# ============================================================================

def test_save_and_resolve_active_template(app):
    record = report_template.save_template({'branding': dict(DEFAULT_TEMPLATE['branding'], companyName="New Co")},
                                           name="Spring")
    assert record.is_active
    assert resolve()['branding']['companyName'] == "New Co"


def test_only_one_template_active(app):
    first = report_template.save_template({}, name="First")
    second = report_template.save_template({}, name="Second")
    assert ReportTemplate.query.filter_by(is_active=True).count() == 1
    assert report_template.get_template(first.id).is_active is False
    assert report_template.get_template(second.id).is_active is True

    report_template.activate_template(first.id)
    assert ReportTemplate.query.filter_by(is_active=True).one().id == first.id


def test_invalid_template_is_not_saved(app):
    doc = default_template()
    _section(doc, 'vision')['scoringCriteria']['medium']['min'] = 41
    with pytest.raises(TemplateValidationError):
        report_template.save_template(doc)
    assert ReportTemplate.query.count() == 0
    assert len(report_template.list_templates()) == 0
