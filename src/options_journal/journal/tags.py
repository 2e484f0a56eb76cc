"""Mistake tag vocabulary.

Ships the default catalogue of mistake tags, maps free-text variants onto
their canonical hyphenated form and merges the catalogue with whatever
labels a user has actually typed into their trades.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from options_journal.core.enums import TagCategory
from options_journal.core.models import MistakeTag, parse_labels

DEFAULT_MISTAKE_TAGS: tuple[MistakeTag, ...] = (
    # Entry
    MistakeTag(tag_name="fomo-entry", category=TagCategory.ENTRY, description="Fear of missing out entry"),
    MistakeTag(tag_name="impulse-entry", category=TagCategory.ENTRY, description="Impulsive entry without setup"),
    MistakeTag(tag_name="chasing-breakout", category=TagCategory.ENTRY, description="Chasing after breakout"),
    MistakeTag(tag_name="early-entry", category=TagCategory.ENTRY, description="Entered too early"),
    MistakeTag(tag_name="late-entry", category=TagCategory.ENTRY, description="Entered too late"),
    MistakeTag(tag_name="no-setup", category=TagCategory.ENTRY, description="No clear setup"),
    # Exit
    MistakeTag(tag_name="early-exit", category=TagCategory.EXIT, description="Exited too early"),
    MistakeTag(tag_name="late-exit", category=TagCategory.EXIT, description="Exited too late"),
    MistakeTag(tag_name="no-stop-loss", category=TagCategory.EXIT, description="No stop loss"),
    MistakeTag(tag_name="moved-stop-loss", category=TagCategory.EXIT, description="Moved stop loss"),
    MistakeTag(tag_name="panic-exit", category=TagCategory.EXIT, description="Panic exit"),
    # Position management
    MistakeTag(tag_name="poor-position-size", category=TagCategory.POSITION, description="Wrong position size"),
    MistakeTag(tag_name="over-leveraged", category=TagCategory.POSITION, description="Too much leverage"),
    MistakeTag(tag_name="averaging-down", category=TagCategory.POSITION, description="Averaged down"),
    # Psychology
    MistakeTag(tag_name="fear-driven", category=TagCategory.PSYCHOLOGY, description="Fear-based decision"),
    MistakeTag(tag_name="greed-driven", category=TagCategory.PSYCHOLOGY, description="Greed-based decision"),
    MistakeTag(tag_name="revenge-trade", category=TagCategory.PSYCHOLOGY, description="Revenge trading"),
    MistakeTag(tag_name="overconfident", category=TagCategory.PSYCHOLOGY, description="Overconfidence"),
    MistakeTag(tag_name="tilted", category=TagCategory.PSYCHOLOGY, description="Emotional/tilted"),
    MistakeTag(tag_name="impatient", category=TagCategory.PSYCHOLOGY, description="Impatient"),
    # Planning
    MistakeTag(tag_name="ignored-plan", category=TagCategory.PLAN, description="Ignored trading plan"),
    MistakeTag(tag_name="no-plan", category=TagCategory.PLAN, description="No trading plan"),
    MistakeTag(tag_name="changed-plan", category=TagCategory.PLAN, description="Changed plan mid-trade"),
    # Risk
    MistakeTag(tag_name="poor-risk-reward", category=TagCategory.RISK, description="Poor risk/reward"),
    MistakeTag(tag_name="high-risk", category=TagCategory.RISK, description="Risk too high"),
    MistakeTag(tag_name="no-risk-calculation", category=TagCategory.RISK, description="No risk calculation"),
)

# Finer-grained tags added by the full catalogue population
EXTENDED_MISTAKE_TAGS: tuple[MistakeTag, ...] = DEFAULT_MISTAKE_TAGS + (
    MistakeTag(tag_name="no-setup-entry", category=TagCategory.ENTRY, description="Entry without proper setup"),
    MistakeTag(tag_name="poor-entry-level", category=TagCategory.ENTRY, description="Entered near resistance/support level"),
    MistakeTag(tag_name="poor-entry-timing", category=TagCategory.ENTRY, description="Entry timing too early/late"),
    MistakeTag(tag_name="contrarian-entry", category=TagCategory.ENTRY, description="Entry against the trend"),
    MistakeTag(tag_name="poor-target", category=TagCategory.EXIT, description="Target too small/large for setup"),
    MistakeTag(tag_name="emotional-exit", category=TagCategory.EXIT, description="Exited based on emotions/panic"),
    MistakeTag(tag_name="averaging-mistake", category=TagCategory.POSITION, description="Averaged down/up incorrectly"),
    MistakeTag(tag_name="poor-stop-placement", category=TagCategory.POSITION, description="Stop too tight/wide for volatility"),
    MistakeTag(tag_name="revenge-trading", category=TagCategory.PSYCHOLOGY, description="Trading to recover losses"),
    MistakeTag(tag_name="changed-plan-mid-trade", category=TagCategory.PLAN, description="Changed plan during trade"),
    MistakeTag(tag_name="rushed-decision", category=TagCategory.PLAN, description="Made rushed trading decision"),
    MistakeTag(tag_name="poor-risk-sizing", category=TagCategory.RISK, description="Risk too high/low for account"),
    MistakeTag(tag_name="violated-risk-rules", category=TagCategory.RISK, description="Violated risk management rules"),
)

# Free-text spellings seen in older trades -> canonical tag
TAG_VARIANTS: dict[str, str] = {
    "early exit": "early-exit",
    "late exit": "late-exit",
    "no setup entry": "no-setup-entry",
    "poor entry level": "poor-entry-level",
    "poor entry timing": "poor-entry-timing",
    "no stop loss": "no-stop-loss",
    "poor position size": "poor-position-size",
    "poor stop placement": "poor-stop-placement",
    "fear driven": "fear-driven",
    "greed driven": "greed-driven",
    "revenge mode": "revenge-trading",
    "ignored plan": "ignored-plan",
    "no plan": "no-plan",
    "rushed decision": "rushed-decision",
    "poor risk sizing": "poor-risk-sizing",
    "no risk calculation": "no-risk-calculation",
    "violated risk rules": "violated-risk-rules",
}

_VARIANT_PATTERNS = [
    (re.compile(rf"\b{re.escape(variant)}\b"), canonical)
    for variant, canonical in TAG_VARIANTS.items()
]


def canonicalize(label: str) -> str:
    """Rewrite known variant spellings inside ``label`` (already lower-cased)."""
    for pattern, canonical in _VARIANT_PATTERNS:
        label = pattern.sub(canonical, label)
    return label


def normalize_labels(labels: str | Iterable[str] | None) -> list[str]:
    """Trim, lower-case and canonicalise labels, then drop duplicates."""
    return parse_labels(canonicalize(label) for label in parse_labels(labels))


def merge_tags(
    predefined: Sequence[MistakeTag], used_labels: Iterable[str],
) -> list[MistakeTag]:
    """Catalogue tags plus any used label missing from it, sorted by name.

    Labels that only exist in trades are reported with the ``custom``
    category.
    """
    merged = {tag.tag_name: tag for tag in predefined}
    for label in parse_labels(used_labels):
        if label not in merged:
            merged[label] = MistakeTag(
                tag_name=label,
                category=TagCategory.CUSTOM,
                description="User-created tag",
            )
    return sorted(merged.values(), key=lambda tag: tag.tag_name)
