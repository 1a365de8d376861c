"""
Tiered building-name extraction from listing text.

Strategy:
  - For each area, expand phrasing templates over the area's aliases into
    compiled regexes, grouped into priority tiers (lower = stronger):
      0  explicit locatives ("located at X", "in X") and curated idioms
      1  property-type locatives ("studio in X"), X as subject ("X offers a")
      2  X followed by a place qualifier, possessive/descriptive forms
      3  bare alias anywhere (landmark buildings excluded)
      5  bare landmark aliases, last resort
  - Every rule scans the whole text; each occurrence is checked against the
    text just before it for view/proximity/comparison phrasing.
  - The lowest-priority surviving occurrence wins. A later occurrence only
    replaces the current best on a strictly lower priority number.
  - The winning span must normalize to a canonical building; otherwise the
    result is empty. Free text is never returned as a building name.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

from listing_geo.config import MatchingConfig, get_settings
from listing_geo.gazetteer import GeographicArea, LocationRegistry, alias_key, default_registry
from listing_geo.models import Confidence, ExtractionResult

logger = logging.getLogger(__name__)


# ── Tiers ─────────────────────────────────────────────────────────────

TIER_EXPLICIT = 0
TIER_QUALIFIED = 1
TIER_DESCRIPTIVE = 2
TIER_BARE = 3
TIER_LANDMARK = 5

TIER_CONFIDENCE: Mapping[int, Confidence] = MappingProxyType({
    TIER_EXPLICIT: Confidence.HIGH,
    TIER_QUALIFIED: Confidence.HIGH,
    TIER_DESCRIPTIVE: Confidence.MEDIUM,
    TIER_BARE: Confidence.MEDIUM,
    TIER_LANDMARK: Confidence.LOW,
})

# ── Phrasing vocabulary ───────────────────────────────────────────────

LOCATIVE_VERBS = ("located", "situated", "residing", "based", "positioned")
LOCATION_PREPOSITIONS = ("at", "in", "within", "inside")
PROPERTY_TYPES = (
    "apartment", "unit", "flat", "penthouse", "studio",
    "home", "residence", "property", "accommodation",
)
SUBJECT_VERBS = ("is", "was", "features", "provides", "offers", "boasts", "includes")
POSSESSIVE_INDICATORS = ("the", "our", "their", "this", "these")
DESCRIPTIVE_NOUNS = ("residents", "facilities", "apartments", "units")

# Aliases shorter than this are too generic for the "located at" alternation
LONG_ALIAS_MIN_LEN = 7

# Phrases that place a building in view, nearby, or in a comparison rather
# than saying the listing is inside it
EXCLUSION_PHRASES: tuple[str, ...] = (
    # View / proximity
    r"views?\s+(?:of|over|to|towards|across|onto|on)",
    r"overlooking(?:\s+the)?",
    r"facing(?:\s+the)?",
    r"close\s+(?:proximity\s+)?to",
    r"near(?:by)?(?:\s+to)?(?:\s+the)?",
    r"walking\s+distance\s+(?:to|from)",
    r"minutes?\s+(?:from|to|away|walk)",
    r"proximity\s+to",
    r"access\s+to",
    r"next\s+to",
    r"opposite",
    r"across\s+from",
    r"short\s+(?:walk|drive|distance)\s+(?:to|from)",
    # Tourism / activity
    r"perfect\s+for\s+visiting",
    r"explore",
    r"visit",
    r"iconic",
    # Comparison / metaphor
    r"like\s+(?:a|an|the)",
    r"similar\s+to",
    r"reminiscent\s+of",
    r"(?:a|an|your|the)\s+\w+\s+dream",
    r"as\s+(?:good|nice|beautiful|luxurious)\s+as",
)

_CLAUSE_BREAK = re.compile(r"[.!?;\n]")


def alias_pattern(alias: str) -> str:
    """Regex for an alias that tolerates any run of whitespace between words."""
    return r"\s+".join(re.escape(word) for word in alias.split())


def compile_exclusions(max_gap_words: Optional[int]) -> tuple[re.Pattern, ...]:
    """
    Each phrase must lead into the occurrence: at most ``max_gap_words``
    words may sit between the phrase and the end of the window. With
    ``None`` a phrase anywhere in the window counts.
    """
    gap = "" if max_gap_words is None else rf"\s*(?:\S+\s+){{0,{max_gap_words}}}\W*\Z"
    return tuple(re.compile(rf"\b(?:{p})\b{gap}", re.IGNORECASE) for p in EXCLUSION_PHRASES)


# ── Rule & candidate types ────────────────────────────────────────────

@dataclass(frozen=True)
class PatternRule:
    regex: re.Pattern
    priority: int
    template: str
    # Alias the rule is built around; None for idioms and multi-alias rules
    alias_key: Optional[str] = None

    @property
    def confidence(self) -> Confidence:
        return TIER_CONFIDENCE[self.priority]


@dataclass(frozen=True)
class MatchCandidate:
    text: str
    confidence: Confidence
    priority: int
    position: int
    excluded: bool = False
    template: str = ""


def select_best(candidates: Iterable[MatchCandidate]) -> Optional[MatchCandidate]:
    """
    Keep the first non-excluded candidate with the lowest priority number.
    Equal priority never overrides an earlier candidate.
    """
    best: Optional[MatchCandidate] = None
    for c in candidates:
        if c.excluded:
            continue
        if best is None or c.priority < best.priority:
            best = c
    return best


def build_rules(area: GeographicArea, aliases: list[str]) -> tuple[PatternRule, ...]:
    """Expand the phrasing templates over an area's aliases (longest alias first)."""
    if not aliases:
        return ()

    flags = re.IGNORECASE
    rules: list[PatternRule] = []

    def add(pattern: str, priority: int, template: str, alias: Optional[str] = None) -> None:
        rules.append(PatternRule(
            regex=re.compile(pattern, flags),
            priority=priority,
            template=template,
            alias_key=alias_key(alias) if alias else None,
        ))

    landmark_keys = {
        alias_key(a)
        for b in area.buildings if b.name in area.landmarks
        for a in b.aliases
    }

    # ── Tier 0: explicit location statements ──────────────────────────
    for idiom in area.idioms:
        add(idiom, TIER_EXPLICIT, "idiom")

    long_aliases = [a for a in aliases if len(a) >= LONG_ALIAS_MIN_LEN]
    if long_aliases:
        verbs = "|".join(LOCATIVE_VERBS)
        names = "|".join(alias_pattern(a) for a in long_aliases)
        add(
            rf"\b(?:{verbs})\s+(?:at|in|within)\s+(?:the\s+)?"
            rf"(?:residences\s+of\s+(?:the\s+)?)?(?:luxurious\s+)?({names})\b",
            TIER_EXPLICIT, "located_at",
        )

    for prep in LOCATION_PREPOSITIONS:
        for a in aliases:
            add(rf"\b{prep}\s+({alias_pattern(a)})\b", TIER_EXPLICIT, f"{prep}_building", a)

    # ── Tier 1: property type + location, building as subject ─────────
    for prop_type in PROPERTY_TYPES:
        for prep in LOCATION_PREPOSITIONS:
            for a in aliases:
                add(
                    rf"\b{prop_type}\s+{prep}\s+(?:the\s+)?({alias_pattern(a)})\b",
                    TIER_QUALIFIED, f"{prop_type}_{prep}", a,
                )

    for verb in SUBJECT_VERBS:
        for a in aliases:
            add(rf"\b({alias_pattern(a)})\s+{verb}\s+(?:a|an|the)\b", TIER_QUALIFIED, f"subject_{verb}", a)

    # ── Tier 2: place qualifier suffix, possessive/descriptive ─────────
    if area.qualifiers:
        quals = "|".join(alias_pattern(q) for q in area.qualifiers)
        for a in aliases:
            add(rf"\b({alias_pattern(a)})\s*[-–—,]\s*(?:{quals})\b", TIER_DESCRIPTIVE, "qualified", a)

    nouns = "|".join(DESCRIPTIVE_NOUNS)
    for indicator in POSSESSIVE_INDICATORS:
        for a in aliases:
            add(
                rf"\b{indicator}\s+({alias_pattern(a)})(?:['’]s\b|\s+(?:{nouns})\b)",
                TIER_DESCRIPTIVE, f"possessive_{indicator}", a,
            )

    # ── Tier 3: bare alias ─────────────────────────────────────────────
    for a in aliases:
        if alias_key(a) not in landmark_keys:
            add(rf"\b({alias_pattern(a)})\b", TIER_BARE, "bare", a)

    # ── Tier 5: landmarks, last resort ─────────────────────────────────
    for a in aliases:
        if alias_key(a) in landmark_keys:
            add(rf"\b({alias_pattern(a)})\b", TIER_LANDMARK, "landmark", a)

    rules.sort(key=lambda r: r.priority)
    return tuple(rules)


# ── Extractor ─────────────────────────────────────────────────────────

class TextExtractor:
    """
    Building-name extractor bound to one registry.

    Rule sets for every area are compiled in the constructor, so an
    instance can be shared freely once built.
    """

    def __init__(self, registry: LocationRegistry, config: Optional[MatchingConfig] = None):
        self.registry = registry
        self.config = config or get_settings().matching
        self._exclusions = compile_exclusions(self.config.exclusion_max_gap_words)
        # Landmarks are mostly mentioned as scenery, so any phrase in the window counts
        self._landmark_exclusions = compile_exclusions(None)
        self._rules: Mapping[str, tuple[PatternRule, ...]] = MappingProxyType({
            area.key: build_rules(area, registry.aliases_for_area(area.key))
            for area in registry.areas
        })
        logger.debug(
            "Compiled extraction rules: %s",
            {key: len(rules) for key, rules in self._rules.items()},
        )

    def rules_for_area(self, area: Optional[str]) -> tuple[PatternRule, ...]:
        if area is None:
            return ()
        return self._rules.get(area, ())

    def in_exclusion_context(self, text: str, position: int, landmark: bool = False) -> bool:
        """True if the text leading up to ``position`` frames it as a view/proximity/comparison."""
        start = max(position - self.config.exclusion_window, 0)
        window = text[start:position]
        breaks = list(_CLAUSE_BREAK.finditer(window))
        if breaks:
            window = window[breaks[-1].end():]
        patterns = self._landmark_exclusions if landmark else self._exclusions
        return any(p.search(window) for p in patterns)

    def _scan(self, text: str, area: str) -> Iterator[MatchCandidate]:
        folded = alias_key(text)
        for rule in self.rules_for_area(area):
            # Skip alias-specific rules whose alias never appears
            if rule.alias_key is not None and rule.alias_key not in folded:
                continue
            for m in rule.regex.finditer(text):
                span = m.group(1)
                if not span:
                    continue
                yield MatchCandidate(
                    text=span.strip(),
                    confidence=rule.confidence,
                    priority=rule.priority,
                    position=m.start(),
                    excluded=self.in_exclusion_context(
                        text, m.start(), landmark=rule.priority == TIER_LANDMARK
                    ),
                    template=rule.template,
                )

    def find_candidates(self, text: Optional[str], area: Optional[str]) -> list[MatchCandidate]:
        """Every occurrence found by every rule, excluded ones included, in rule order."""
        if not text or area is None:
            return []
        return list(self._scan(text, area))

    def extract(self, text: Optional[str], area: Optional[str]) -> ExtractionResult:
        """Best building in ``text`` for ``area`` as (display name, confidence), or empty."""
        if not text or not text.strip() or area is None:
            return ExtractionResult()
        if not self.registry.aliases_for_area(area):
            return ExtractionResult()

        candidates = self.find_candidates(text, area)
        best = select_best(candidates)
        if len(candidates) > 3:
            _log_candidates(candidates, best)
        if best is None:
            return ExtractionResult()

        canonical = self.registry.normalize(best.text, area)
        if canonical is None:
            logger.debug("Match %r did not normalize in %s", best.text, area)
            return ExtractionResult()

        return ExtractionResult(
            building=self.registry.format_full_name(canonical, area),
            confidence=best.confidence,
        )


def _log_candidates(candidates: list[MatchCandidate], best: Optional[MatchCandidate]) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug("Found %d potential matches (showing top 5)", len(candidates))
    for c in sorted(candidates, key=lambda c: c.priority)[:5]:
        if c.excluded:
            status = "EXCLUDED"
        elif c is best:
            status = "SELECTED"
        else:
            status = "SKIPPED"
        logger.debug("  %-8s %s (priority %d, %s)", status, c.text, c.priority, c.template)


@lru_cache(maxsize=1)
def get_extractor() -> TextExtractor:
    return TextExtractor(default_registry())
