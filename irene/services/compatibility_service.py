"""
Irene — Compatibility scoring engine.

Turns two profile snapshots into a bounded 0-100 compatibility score and up
to three human-readable reasons.  Five independent factor scorers each return
a normalised value in [0, 1]; the orchestrator multiplies each by its point
budget, sums, and clamps:

  Personality   40  weighted Big-Five blend            (missing -> 0.5)
  Interests     25  level-weighted overlap + bonus      (empty   -> 0.3)
  Geography     15  same place / same region / elsewhere (unknown -> 0.5)
  Demographics  15  age gap + mutual gender preference  (unknown -> 0.5)
  Activity       5  recency of both users               (unknown -> 0.3)

The engine is pure: no I/O, no logging, no randomness.  The only clock input
is ``as_of``, which callers pass explicitly for reproducible results.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from irene.schemas.match import MAX_REASONS, CompatibilityResult, FactorBreakdown
from irene.schemas.profile import Interest, PersonalityProfile, ProfileSnapshot


@dataclass(frozen=True)
class ScoringWeights:
    """Point budget per factor.  The five budgets sum to 100."""

    personality: float = 40.0
    interests: float = 25.0
    geography: float = 15.0
    demographics: float = 15.0
    activity: float = 5.0

    @classmethod
    def from_settings(cls, settings) -> "ScoringWeights":
        return cls(
            personality=settings.PERSONALITY_POINTS,
            interests=settings.INTEREST_POINTS,
            geography=settings.GEOGRAPHY_POINTS,
            demographics=settings.DEMOGRAPHIC_POINTS,
            activity=settings.ACTIVITY_POINTS,
        )


class CompatibilityScorer:
    """Score the fit between two users.

    Every factor scorer tolerates absent optional fields by substituting a
    neutral default, so :pymeth:`score` never raises for a well-typed
    snapshot.
    """

    # ── Personality ─────────────────────────────────────────────────
    TRAIT_WEIGHTS: dict[str, float] = {
        "extraversion": 0.20,
        "agreeableness": 0.30,
        "conscientiousness": 0.20,
        "neuroticism": 0.15,
        "openness": 0.15,
    }
    PERSONALITY_DEFAULT: float = 0.5
    PERSONALITY_NOTABLE: float = 0.75

    # ── Interests ───────────────────────────────────────────────────
    INTEREST_DEFAULT: float = 0.3
    SHARED_BONUS_CAP: float = 0.5
    MAX_NAMED_INTERESTS: int = 2

    # ── Geography ───────────────────────────────────────────────────
    GEO_SAME_PLACE: float = 1.0
    GEO_SAME_REGION: float = 0.7
    GEO_ELSEWHERE: float = 0.3
    GEO_UNKNOWN: float = 0.5

    # ── Demographics ────────────────────────────────────────────────
    DEMOGRAPHIC_BASE: float = 0.5
    AGE_GAP_LIMIT: float = 15.0
    CLOSE_AGE_GAP: int = 3
    MUTUAL_PREFERENCE_BOOST: float = 1.2
    PREFERENCE_MISMATCH_PENALTY: float = 0.1

    SEEKING_GENDERS: dict[str, Optional[frozenset[str]]] = {
        "everyone": None,
        "men": frozenset({"man", "male"}),
        "women": frozenset({"woman", "female"}),
        "non-binary": frozenset({"non-binary"}),
    }

    # ── Activity (hours since last active) -> value ─────────────────
    ACTIVITY_TIERS: list[tuple[float, float]] = [
        (24.0, 1.0),
        (72.0, 0.8),
        (168.0, 0.6),
    ]
    ACTIVITY_DEFAULT: float = 0.3

    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self.weights = weights or ScoringWeights()

    # ── Public API ──────────────────────────────────────────────────

    def score(
        self,
        profile_a: ProfileSnapshot,
        profile_b: ProfileSnapshot,
        *,
        as_of: datetime | None = None,
    ) -> CompatibilityResult:
        """Compute the compatibility of two snapshots.

        Parameters
        ----------
        profile_a, profile_b : ProfileSnapshot
            Read-only views of the two users.
        as_of : datetime, optional
            Reference time for the activity factor.  Defaults to the current
            UTC time; pass it explicitly for reproducible output.

        Returns
        -------
        CompatibilityResult
            ``score`` clamped to [0, 100], at most three ``reasons`` in
            factor order, and the per-factor ``breakdown`` in points.
        """
        now = _as_utc(as_of) if as_of is not None else datetime.now(timezone.utc)
        w = self.weights

        demographics = self._score_demographics(profile_a, profile_b)
        personality = self._score_personality(profile_a.personality, profile_b.personality)
        interests = self._score_interests(profile_a.interests, profile_b.interests)
        geography = self._score_geography(profile_a.location, profile_b.location)
        activity = self._score_activity(
            profile_a.last_active_at, profile_b.last_active_at, now
        )

        breakdown = FactorBreakdown(
            personality=round(personality * w.personality, 4),
            interests=round(interests * w.interests, 4),
            geography=round(geography * w.geography, 4),
            demographics=round(demographics * w.demographics, 4),
            activity=round(activity * w.activity, 4),
        )
        total = min(max(breakdown.total, 0.0), 100.0)

        candidates = [
            self._demographic_reason(profile_a, profile_b, demographics),
            self._personality_reason(profile_a.personality, profile_b.personality, personality),
            self._interest_reason(profile_a.interests, profile_b.interests),
            self._geography_reason(profile_a.location, profile_b.location, geography),
            self._activity_reason(activity),
        ]
        reasons = [r for r in candidates if r is not None][:MAX_REASONS]

        return CompatibilityResult(
            score=round(total, 2),
            reasons=reasons,
            breakdown=breakdown,
        )

    # ── Factor scorers (each returns a value in [0, 1]) ─────────────

    def _score_personality(
        self,
        p1: PersonalityProfile | None,
        p2: PersonalityProfile | None,
    ) -> float:
        """Weighted Big-Five blend.

        Extraversion and conscientiousness reward similar levels, agreeableness
        rewards a high shared mean, neuroticism rewards a low shared mean and
        openness rewards similar levels.
        """
        if p1 is None or p2 is None:
            return self.PERSONALITY_DEFAULT

        tw = self.TRAIT_WEIGHTS
        value = 0.0
        value += tw["extraversion"] * (1 - min(abs(p1.extraversion - p2.extraversion) / 2, 1))
        value += tw["agreeableness"] * (((p1.agreeableness + p2.agreeableness) / 2) / 5)
        value += tw["conscientiousness"] * (
            1 - abs(p1.conscientiousness - p2.conscientiousness) / 5
        )
        value += tw["neuroticism"] * (1 - ((p1.neuroticism + p2.neuroticism) / 2) / 5)
        value += tw["openness"] * (1 - abs(p1.openness - p2.openness) / 5)
        return _unit(value)

    def _score_interests(
        self, interests_a: list[Interest], interests_b: list[Interest]
    ) -> float:
        """Level-weighted overlap plus a bonus for the shared fraction.

        Each shared interest contributes ``min(la, lb) * (1 - |la - lb| / 5)``.
        That matched weight is compared with the mean level mass of the
        interests only one side holds, so adding a shared interest can only
        raise the ratio.  A real overlap never scores below the no-data
        baseline.
        """
        if not interests_a or not interests_b:
            return self.INTEREST_DEFAULT

        levels_a = _levels_by_key(interests_a)
        levels_b = _levels_by_key(interests_b)
        shared = levels_a.keys() & levels_b.keys()

        matched = sum(
            min(levels_a[k], levels_b[k]) * (1 - abs(levels_a[k] - levels_b[k]) / 5)
            for k in shared
        )
        unshared_a = sum(v for k, v in levels_a.items() if k not in shared)
        unshared_b = sum(v for k, v in levels_b.items() if k not in shared)

        denominator = matched + (unshared_a + unshared_b) / 2
        level_ratio = matched / denominator if denominator > 0 else 0.0
        shared_bonus = min(
            len(shared) / max(len(levels_a), len(levels_b)), self.SHARED_BONUS_CAP
        )

        value = min(1.0, level_ratio + shared_bonus)
        if shared:
            value = max(value, self.INTEREST_DEFAULT)
        return value

    def _score_geography(self, location_a: str | None, location_b: str | None) -> float:
        parts_a = _location_parts(location_a)
        parts_b = _location_parts(location_b)
        if not parts_a or not parts_b:
            return self.GEO_UNKNOWN
        if parts_a == parts_b:
            return self.GEO_SAME_PLACE
        if len(parts_a) > 1 and len(parts_b) > 1 and parts_a[-1] == parts_b[-1]:
            return self.GEO_SAME_REGION
        return self.GEO_ELSEWHERE

    def _score_demographics(
        self, profile_a: ProfileSnapshot, profile_b: ProfileSnapshot
    ) -> float:
        """Age closeness blended with a two-way gender-preference check.

        Each direction is only evaluated when the seeker's preference and the
        other user's gender are both known.  Any failing direction discounts
        the factor to a tenth; two passing directions boost it.
        """
        value = self.DEMOGRAPHIC_BASE

        if profile_a.age is not None and profile_b.age is not None:
            gap = abs(profile_a.age - profile_b.age)
            age_fit = max(0.0, 1 - gap / self.AGE_GAP_LIMIT)
            value = value * 0.5 + age_fit * 0.5

        a_seeks_b = self._seeks(profile_a.seeking_gender, profile_b.gender)
        b_seeks_a = self._seeks(profile_b.seeking_gender, profile_a.gender)

        if a_seeks_b is False or b_seeks_a is False:
            value *= self.PREFERENCE_MISMATCH_PENALTY
        elif a_seeks_b and b_seeks_a:
            value = min(1.0, value * self.MUTUAL_PREFERENCE_BOOST)

        return _unit(value)

    def _score_activity(
        self,
        last_active_a: datetime | None,
        last_active_b: datetime | None,
        now: datetime,
    ) -> float:
        if last_active_a is None or last_active_b is None:
            return self.ACTIVITY_DEFAULT

        hours_a = _hours_since(last_active_a, now)
        hours_b = _hours_since(last_active_b, now)
        for limit, value in self.ACTIVITY_TIERS:
            if hours_a < limit and hours_b < limit:
                return value
        return self.ACTIVITY_DEFAULT

    # ── Reasons ─────────────────────────────────────────────────────

    def _demographic_reason(
        self, profile_a: ProfileSnapshot, profile_b: ProfileSnapshot, value: float
    ) -> str | None:
        if profile_a.age is None or profile_b.age is None:
            return None
        if abs(profile_a.age - profile_b.age) <= self.CLOSE_AGE_GAP and value >= 0.5:
            return "You're close in age"
        return None

    def _personality_reason(
        self,
        p1: PersonalityProfile | None,
        p2: PersonalityProfile | None,
        value: float,
    ) -> str | None:
        if p1 is None or p2 is None or value < self.PERSONALITY_NOTABLE:
            return None

        if (p1.neuroticism + p2.neuroticism) / 2 < 2.5:
            return "You both handle stress well"
        if (
            abs(p1.agreeableness - p2.agreeableness) < 0.8
            and (p1.agreeableness + p2.agreeableness) / 2 > 3.5
        ):
            return "You're both caring and empathetic"
        if p1.openness > 4 and p2.openness > 4:
            return "You're both creative and adventurous"
        if (
            abs(p1.conscientiousness - p2.conscientiousness) < 1
            and (p1.conscientiousness + p2.conscientiousness) / 2 > 3.5
        ):
            return "You're both organized and goal-oriented"
        if abs(p1.extraversion - p2.extraversion) < 1:
            if (p1.extraversion + p2.extraversion) / 2 > 3.5:
                return "You're both outgoing and social"
            return "You both appreciate quieter moments"
        return "Your personalities complement each other"

    def _interest_reason(
        self, interests_a: list[Interest], interests_b: list[Interest]
    ) -> str | None:
        levels_b = _levels_by_key(interests_b)
        shared: dict[str, tuple[int, str]] = {}
        for interest in interests_a:
            if interest.key in levels_b and interest.key not in shared:
                shared[interest.key] = (
                    min(interest.level, levels_b[interest.key]),
                    interest.name.strip(),
                )
        if not shared:
            return None

        ranked = sorted(shared.items(), key=lambda kv: (-kv[1][0], kv[0]))
        names = [name for _key, (_level, name) in ranked[: self.MAX_NAMED_INTERESTS]]
        return f"You both enjoy {' and '.join(names)}"

    def _geography_reason(
        self, location_a: str | None, location_b: str | None, value: float
    ) -> str | None:
        if value >= self.GEO_SAME_PLACE:
            return "You're in the same area"
        if value >= self.GEO_SAME_REGION and location_a:
            parts = [p.strip() for p in location_a.split(",") if p.strip()]
            if parts:
                return f"You're both in {parts[-1]}"
        return None

    def _activity_reason(self, value: float) -> str | None:
        if value >= self.ACTIVITY_TIERS[0][1]:
            return "You're both active right now"
        return None

    # ── Internal helpers ────────────────────────────────────────────

    def _seeks(self, seeking: str | None, gender: str | None) -> bool | None:
        """Whether ``seeking`` accepts ``gender``; ``None`` when either is unknown."""
        seeking_key = (seeking or "").strip().lower()
        gender_key = (gender or "").strip().lower()
        if not seeking_key or not gender_key:
            return None
        if seeking_key in self.SEEKING_GENDERS:
            accepted = self.SEEKING_GENDERS[seeking_key]
            return accepted is None or gender_key in accepted
        return seeking_key == gender_key


def _unit(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _hours_since(moment: datetime, now: datetime) -> float:
    hours = (now - _as_utc(moment)).total_seconds() / 3600
    return max(hours, 0.0)


def _levels_by_key(interests: list[Interest]) -> dict[str, int]:
    """Map normalised interest name -> level; the first occurrence wins."""
    levels: dict[str, int] = {}
    for interest in interests:
        levels.setdefault(interest.key, interest.level)
    return levels


def _location_parts(location: str | None) -> list[str]:
    if not location:
        return []
    return [part for part in (p.strip().lower() for p in location.split(",")) if part]
