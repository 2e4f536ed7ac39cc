"""Scoring engine for the Legacy Growth IQ assessment.

Turns a respondent's raw answers (``questionNumber -> 1..5``) into category
subscores and an aggregate percentage. Pure: no database, no Flask.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

MAX_SCALE_VALUE = 5
MIN_SCALE_VALUE = 1

# Canonical order: output order and tie-break order for strength/weakness
CATEGORIES = ['independence', 'vision', 'leadership', 'operations', 'succession', 'legacy']

CATEGORY_LABELS = {
    'independence': "Business Independence",
    'vision': "Strategic Vision",
    'leadership': "Leadership & Team",
    'operations': "Systems & Operations",
    'succession': "Succession Planning",
    'legacy': "Legacy Readiness",
}

CATEGORY_INSIGHTS = {
    'independence': {
        'low': "Your business is heavily dependent on your daily involvement. This is your most critical area to address.",
        'medium': "You've made some progress toward independence, but you're still essential to daily operations.",
        'high': "Your business can function well without your constant presence. This is a strong foundation.",
    },
    'vision': {
        'low': "You lack a clear, documented vision for your business and personal future. This makes strategic decisions difficult.",
        'medium': "You have some vision, but it may not be fully developed or aligned with your personal goals.",
        'high': "You have a clear vision that guides your decisions and aligns with your personal aspirations.",
    },
    'leadership': {
        'low': "Your team lacks the capability or authority to lead without you. This is a significant bottleneck.",
        'medium': "Your team has some leadership capacity, but still relies heavily on your direction.",
        'high': "You've built a capable leadership team that can make decisions and drive results independently.",
    },
    'operations': {
        'low': "Your business lacks documented systems and processes. Knowledge lives in your head, not in the business.",
        'medium': "You have some documentation, but many processes are still informal or owner-dependent.",
        'high': "Your operations are well-documented and could be followed by others to run the business.",
    },
    'succession': {
        'low': "You have no succession plan in place. Your exit options are limited and unclear.",
        'medium': "You've thought about succession but lack a concrete plan with timelines and candidates.",
        'high': "You have a clear succession strategy with identified successors and a realistic timeline.",
    },
    'legacy': {
        'low': "Your business would struggle to continue creating impact without you. Your legacy is at risk.",
        'medium': "You've taken some steps toward legacy, but more work is needed to ensure continuity.",
        'high': "You've built a business designed to outlast you and continue creating value for stakeholders.",
    },
}


@dataclass
class CategoryScore:
    category: str
    label: str
    score: int
    max_score: int
    percentage: int
    insight: str = ''

    def snapshot(self) -> Dict[str, Any]:
        """Fields persisted on a submission."""
        return {
            'category': self.category,
            'score': self.score,
            'maxScore': self.max_score,
            'percentage': self.percentage,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.snapshot()
        data.update({'label': self.label, 'insight': self.insight})
        return data


@dataclass
class ScoreResult:
    total_score: int
    max_score: int
    percentage: int
    category_scores: List[CategoryScore] = field(default_factory=list)
    top_strength: Optional[CategoryScore] = None
    top_weakness: Optional[CategoryScore] = None

    @property
    def priority_areas(self) -> List[CategoryScore]:
        """Categories from weakest to strongest (stable, so ties keep canonical order)."""
        return sorted(self.category_scores, key=lambda c: c.percentage)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalScore': self.total_score,
            'maxScore': self.max_score,
            'percentage': self.percentage,
            'categoryScores': [c.to_dict() for c in self.category_scores],
            'topStrength': self.top_strength.to_dict() if self.top_strength else None,
            'topWeakness': self.top_weakness.to_dict() if self.top_weakness else None,
        }


def percent_of(value: int, maximum: int) -> int:
    """round(value / maximum * 100), half-up, clamped to 0..100. 0 when maximum is 0."""
    if maximum <= 0:
        return 0
    value = max(0, value)
    pct = (200 * value + maximum) // (2 * maximum)
    return max(0, min(100, pct))


def insight_level(percentage: int) -> str:
    if percentage < 40:
        return 'low'
    elif percentage < 70:
        return 'medium'
    return 'high'


def _answer_value(raw) -> int:
    # Malformed answers count as unanswered
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return 0
    return max(0, min(MAX_SCALE_VALUE, value))


def normalize_answers(answers: Optional[Mapping[Any, Any]]) -> Dict[int, int]:
    """Integer-keyed copy of an answer set. JSON round-trips turn keys into strings."""
    normalized = {}
    for key, raw in (answers or {}).items():
        try:
            number = int(key)
        except (TypeError, ValueError):
            continue
        normalized[number] = _answer_value(raw)
    return normalized


def score(answers: Optional[Mapping[Any, Any]], question_bank: Iterable[Mapping[str, Any]]) -> ScoreResult:
    """
    Score an answer set against the active question bank.

    Args:
        answers: questionNumber -> response value. Missing or malformed
            responses count as 0.
        question_bank: active questions as mappings with ``questionNumber``
            and ``category`` (see ``QuizQuestion.to_dict``).

    Returns:
        ScoreResult with category subscores in canonical order. Categories
        without questions are left out.
    """
    values = normalize_answers(answers)

    grouped: Dict[str, List[int]] = {}
    for question in question_bank:
        category = question['category']
        grouped.setdefault(category, []).append(values.get(int(question['questionNumber']), 0))

    ordered = [c for c in CATEGORIES if c in grouped]
    ordered += [c for c in grouped if c not in CATEGORIES]

    category_scores = []
    for category in ordered:
        responses = grouped[category]
        max_score = len(responses) * MAX_SCALE_VALUE
        if max_score == 0:
            continue
        cat_score = sum(responses)
        pct = percent_of(cat_score, max_score)
        insights = CATEGORY_INSIGHTS.get(category, {})
        category_scores.append(CategoryScore(
            category=category,
            label=CATEGORY_LABELS.get(category, category.title()),
            score=cat_score,
            max_score=max_score,
            percentage=pct,
            insight=insights.get(insight_level(pct), ''),
        ))

    total = sum(c.score for c in category_scores)
    maximum = sum(c.max_score for c in category_scores)

    top_strength = None
    top_weakness = None
    for cat in category_scores:
        if top_strength is None or cat.percentage > top_strength.percentage:
            top_strength = cat
        if top_weakness is None or cat.percentage < top_weakness.percentage:
            top_weakness = cat

    return ScoreResult(
        total_score=total,
        max_score=maximum,
        percentage=percent_of(total, maximum),
        category_scores=category_scores,
        top_strength=top_strength,
        top_weakness=top_weakness,
    )
