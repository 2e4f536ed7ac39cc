"""Readiness tiers for an aggregate assessment percentage."""

from __future__ import annotations
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

URGENCY_LEVELS = ('low', 'moderate', 'high', 'critical')

DEFAULT_RECOMMENDATIONS = {
    'critical': [
        "Immediately document your most critical processes and client relationships",
        "Identify and begin developing at least one key person who could step up",
        "Create a basic emergency operations plan",
        "Schedule a strategy session to assess your biggest vulnerabilities",
        "Consider what would happen to your family if something happened to you tomorrow",
    ],
    'vulnerable': [
        "Develop a clear 3-year vision and share it with your team",
        "Create standard operating procedures for your top 10 recurring tasks",
        "Build a leadership team or identify high-potential employees to develop",
        "Get a professional business valuation to understand your starting point",
        "Implement weekly strategic planning time (work ON the business)",
    ],
    'developing': [
        "Refine your succession plan with specific timelines and candidates",
        "Strengthen your leadership team's decision-making authority",
        "Document and optimize your remaining owner-dependent processes",
        "Align your business strategy with your personal wealth and freedom goals",
        "Consider what 'legacy' truly means to you beyond financial value",
    ],
    'legacyReady': [
        "Optimize your business for maximum value before any transition",
        "Mentor your successor(s) and gradually transfer more responsibility",
        "Document your leadership philosophy and company culture for posterity",
        "Consider your broader legacy: community impact, industry influence, family wealth",
        "Enjoy the freedom you've earned while staying engaged strategically",
    ],
}

FALLBACK_KEY = 'developing'


@dataclass(frozen=True)
class Tier:
    key: str
    level: str
    min: int
    max: int
    urgency: str
    title: str
    summary: str
    description: str
    cta_text: str
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'level': self.level,
            'min': self.min,
            'max': self.max,
            'urgency': self.urgency,
            'title': self.title,
            'summary': self.summary,
            'description': self.description,
            'ctaText': self.cta_text,
            'recommendations': list(self.recommendations),
        }


TIERS = (
    Tier(
        key='critical', level="Critical", min=0, max=24, urgency='critical',
        title="Your Business is at Risk",
        summary="Your business is heavily dependent on you and lacks the foundation for long-term sustainability.",
        description=(
            "Based on your responses, your business would face significant challenges if you were unable to lead it. "
            "You're likely working IN the business rather than ON it, and there's little infrastructure in place for "
            "continuity. This is common among entrepreneurs who have built successful businesses through sheer "
            "effort, but it's also a ticking time bomb for your legacy."
        ),
        cta_text="Get Emergency Planning Help",
        recommendations=DEFAULT_RECOMMENDATIONS['critical'],
    ),
    Tier(
        key='vulnerable', level="Vulnerable", min=25, max=49, urgency='high',
        title="Foundation Gaps Exist",
        summary=("You've started building some structure, but significant gaps remain in your business's ability "
                 "to thrive without you."),
        description=(
            "Your business has some elements of sustainability, but you're still the linchpin. You may have a vision "
            "but lack the systems, team, or succession plan to make it reality. Many business owners stay stuck at "
            "this level for years, working hard but never quite achieving the freedom they deserve."
        ),
        cta_text="Start Building Your Foundation",
        recommendations=DEFAULT_RECOMMENDATIONS['vulnerable'],
    ),
    Tier(
        key='developing', level="Developing", min=50, max=74, urgency='moderate',
        title="Making Progress",
        summary=("You're on the right track with some solid foundations, but there's room to strengthen your "
                 "legacy infrastructure."),
        description=(
            "You've done meaningful work to build a more sustainable business. You likely have some systems, a "
            "capable team, and at least a rough idea of your exit strategy. However, there are still areas where "
            "you're the bottleneck or where your plans need more development. The good news: you're closer to "
            "legacy-ready than most business owners."
        ),
        cta_text="Accelerate Your Progress",
        recommendations=DEFAULT_RECOMMENDATIONS['developing'],
    ),
    Tier(
        key='legacyReady', level="Legacy-Ready", min=75, max=100, urgency='low',
        title="Built to Last",
        summary=("Congratulations! Your business has strong foundations for sustainability and legacy. Now it's "
                 "about optimization and execution."),
        description=(
            "You've built something remarkable: a business that can thrive beyond your daily involvement. You have "
            "vision, systems, leadership, and succession planning in place. Your focus now should be on "
            "fine-tuning, maximizing value, and ensuring your legacy unfolds exactly as you envision."
        ),
        cta_text="Maximize Your Legacy",
        recommendations=DEFAULT_RECOMMENDATIONS['legacyReady'],
    ),
)

TIER_KEYS = [t.key for t in TIERS]


def normalize_level_key(level: Optional[str]) -> str:
    """
    Map a stored level label to its template key.

    "Legacy-Ready", "legacy ready", "legacy_ready" and "legacyReady" all map
    to "legacyReady"; "Critical" maps to "critical". Unknown labels come back
    lower-cased and stripped of separators.
    """
    if not level:
        return ''
    compact = re.sub(r'[-\s_]', '', str(level)).lower()
    for key in TIER_KEYS:
        if key.lower() == compact:
            return key
    return compact


def validate_tier_bands(bands: Sequence[Tier]) -> None:
    """Four bands, sorted, covering 0..100 with no gap and no overlap."""
    if len(bands) != 4:
        raise ValueError(f"Expected 4 tiers, got {len(bands)}")
    expected_min = 0
    for band in bands:
        if band.urgency not in URGENCY_LEVELS:
            raise ValueError(f"Tier '{band.key}' has unknown urgency '{band.urgency}'")
        if band.min != expected_min or band.max < band.min:
            raise ValueError(f"Tier '{band.key}' range [{band.min},{band.max}] breaks the 0..100 partition")
        expected_min = band.max + 1
    if expected_min != 101:
        raise ValueError("Tiers do not reach 100")


def recommendations_for(key: str, by_level: Optional[Mapping[str, Sequence[str]]] = None) -> List[str]:
    """Per-tier list from a template, falling back to 'developing', then to the built-in list."""
    by_level = by_level or {}
    for candidate in (key, FALLBACK_KEY):
        items = [r for r in (by_level.get(candidate) or []) if r]
        if items:
            return items
    return list(DEFAULT_RECOMMENDATIONS.get(key) or DEFAULT_RECOMMENDATIONS[FALLBACK_KEY])


def classify(percentage: int, recommendations_by_level: Optional[Mapping[str, Sequence[str]]] = None) -> Tier:
    """Tier for an aggregate percentage. Total over every integer; out-of-range input is clamped."""
    pct = max(0, min(100, int(percentage)))
    for tier in TIERS:
        if tier.min <= pct <= tier.max:
            return replace(tier, recommendations=recommendations_for(tier.key, recommendations_by_level))
    # unreachable while TIERS partitions 0..100
    raise ValueError(f"No tier for {percentage}")


validate_tier_bands(TIERS)
