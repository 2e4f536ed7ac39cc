import pytest

from growth_iq.services.tiers import (
    DEFAULT_RECOMMENDATIONS, TIERS, classify, normalize_level_key, recommendations_for, validate_tier_bands,
)


def test_every_percentage_maps_to_exactly_one_tier():
    for pct in range(0, 101):
        matches = [t for t in TIERS if t.min <= pct <= t.max]
        assert len(matches) == 1
        assert classify(pct).key == matches[0].key


@pytest.mark.parametrize('pct,level', [
    (0, "Critical"), (24, "Critical"),
    (25, "Vulnerable"), (49, "Vulnerable"),
    (50, "Developing"), (60, "Developing"), (74, "Developing"),
    (75, "Legacy-Ready"), (100, "Legacy-Ready"),
])
def test_band_boundaries(pct, level):
    assert classify(pct).level == level


def test_out_of_range_is_clamped():
    assert classify(-10).level == "Critical"
    assert classify(150).level == "Legacy-Ready"


def test_urgency_follows_tier():
    assert [t.urgency for t in TIERS] == ['critical', 'high', 'moderate', 'low']


def test_recommendations_never_empty():
    for pct in (0, 30, 60, 90):
        assert classify(pct).recommendations


def test_recommendations_from_template_mapping():
    tier = classify(90, {'legacyReady': ["Write the book"]})
    assert tier.recommendations == ["Write the book"]


def test_recommendations_fall_back_to_developing():
    mapping = {'developing': ["Fallback action"], 'critical': []}
    assert recommendations_for('critical', mapping) == ["Fallback action"]
    assert recommendations_for('vulnerable', mapping) == ["Fallback action"]


def test_recommendations_fall_back_to_builtin():
    assert recommendations_for('critical', {}) == DEFAULT_RECOMMENDATIONS['critical']
    assert recommendations_for('unknown', None) == DEFAULT_RECOMMENDATIONS['developing']


@pytest.mark.parametrize('label,key', [
    ("Legacy-Ready", 'legacyReady'),
    ("legacy ready", 'legacyReady'),
    ("LEGACY_READY", 'legacyReady'),
    ("Critical", 'critical'),
    ("Developing", 'developing'),
    ("", ''),
    (None, ''),
])
def test_normalize_level_key(label, key):
    assert normalize_level_key(label) == key


def test_validate_tier_bands_rejects_gap():
    from dataclasses import replace
    broken = list(TIERS)
    broken[1] = replace(broken[1], min=26)
    with pytest.raises(ValueError):
        validate_tier_bands(broken)


def test_tier_to_dict():
    data = classify(60).to_dict()
    assert data['key'] == 'developing'
    assert data['ctaText']
    assert data['urgency'] == 'moderate'
