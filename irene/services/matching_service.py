"""
Irene — Match generation, discovery feed & mutual-match resolution

Sits between callers and the pure CompatibilityScorer:

  rank_candidates  — score a user against a candidate pool, filter by the
                     minimum compatibility, sort, truncate
  generate_matches — turn ranked candidates into pending match records
  build_feed       — rank everyone for the discovery feed with a small random
                     diversity bonus on a separate display score, memoised in
                     a bounded TTL cache
  record_action    — apply a like/pass and resolve mutual matches

The scorer stays deterministic; all randomness and caching live here.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Iterable

import structlog
from cachetools import TTLCache

from irene.config import get_settings
from irene.schemas.match import MatchAction, MatchRecord, MatchStatus, RankedCandidate
from irene.schemas.profile import ProfileSnapshot
from irene.services.compatibility_service import CompatibilityScorer, ScoringWeights

logger = structlog.get_logger("irene.matching_service")


class MatchingService:
    """Batch matching and feed ranking on top of :class:`CompatibilityScorer`.

    Dependencies are injected at construction so that the service can be
    tested with a fixed scorer or a seeded random source.
    """

    def __init__(
        self,
        scorer: CompatibilityScorer | None = None,
        rng: random.Random | None = None,
    ) -> None:
        settings = get_settings()

        self.scorer = scorer or CompatibilityScorer(ScoringWeights.from_settings(settings))
        self.rng = rng or random.Random(settings.DIVERSITY_SEED)

        self.min_compatibility: float = settings.MIN_COMPATIBILITY
        self.match_limit: int = settings.MATCH_LIMIT
        self.diversity_bonus_max: float = settings.DIVERSITY_BONUS_MAX

        self._feed_cache: TTLCache = TTLCache(
            maxsize=settings.FEED_CACHE_SIZE,
            ttl=settings.FEED_CACHE_TTL_SECONDS,
        )

        logger.info(
            "matching_service_initialised",
            min_compatibility=self.min_compatibility,
            match_limit=self.match_limit,
            diversity_bonus_max=self.diversity_bonus_max,
        )

    # ── Public API ────────────────────────────────────────────────────────

    def rank_candidates(
        self,
        user: ProfileSnapshot,
        candidates: Iterable[ProfileSnapshot],
        *,
        min_compatibility: float | None = None,
        limit: int | None = None,
        exclude_ids: Iterable[str] = (),
        as_of: datetime | None = None,
    ) -> list[RankedCandidate]:
        """Score ``user`` against every candidate and keep the best.

        Parameters
        ----------
        user:
            Snapshot of the user matches are generated for.
        candidates:
            Candidate pool.  The user themself and ``exclude_ids`` are skipped.
        min_compatibility:
            Minimum score to keep; defaults to ``MIN_COMPATIBILITY``.
        limit:
            Maximum number of results; defaults to ``MATCH_LIMIT``.
        as_of:
            Reference time shared by every score in the batch.

        Returns
        -------
        list[RankedCandidate]
            Sorted by score descending, ties broken by candidate id.
        """
        threshold = self.min_compatibility if min_compatibility is None else min_compatibility
        max_results = self._resolve_limit(limit)
        now = as_of or datetime.now(timezone.utc)

        log = logger.bind(user_id=user.user_id)
        ranked = self._score_pool(user, candidates, exclude_ids, now)
        kept = [c for c in ranked if c.score >= threshold]
        kept.sort(key=lambda c: (-c.score, c.user_id or ""))

        log.info(
            "rank_candidates_complete",
            scored=len(ranked),
            above_threshold=len(kept),
            threshold=threshold,
            limit=max_results,
        )
        return kept[:max_results]

    def generate_matches(
        self,
        user: ProfileSnapshot,
        candidates: Iterable[ProfileSnapshot],
        *,
        min_compatibility: float | None = None,
        limit: int | None = None,
        exclude_ids: Iterable[str] = (),
        as_of: datetime | None = None,
    ) -> list[MatchRecord]:
        """Rank candidates and emit a pending match record for each survivor."""
        if not user.user_id:
            raise ValueError("Cannot generate match records for a user without a user_id.")

        ranked = self.rank_candidates(
            user,
            candidates,
            min_compatibility=min_compatibility,
            limit=limit,
            exclude_ids=exclude_ids,
            as_of=as_of,
        )

        records = [
            MatchRecord(
                user1_id=user.user_id,
                user2_id=candidate.user_id,
                compatibility_score=candidate.score,
                ai_match_reason="; ".join(candidate.reasons),
            )
            for candidate in ranked
            if candidate.user_id
        ]

        logger.info(
            "generate_matches_complete",
            user_id=user.user_id,
            match_count=len(records),
        )
        return records

    def build_feed(
        self,
        user: ProfileSnapshot,
        candidates: Iterable[ProfileSnapshot],
        *,
        limit: int | None = None,
        exclude_ids: Iterable[str] = (),
        as_of: datetime | None = None,
        use_cache: bool = True,
    ) -> list[RankedCandidate]:
        """Rank the discovery feed with a diversity bonus.

        Every candidate is kept regardless of score.  A uniform bonus in
        ``[0, DIVERSITY_BONUS_MAX)`` is added to ``display_score`` only, so
        the same users do not always surface first while ``score`` remains
        the scorer's deterministic output.
        """
        candidates = list(candidates)
        exclude_ids = tuple(exclude_ids)
        max_results = self._resolve_limit(limit)

        # Anonymous candidates cannot be told apart by id, so such pools skip the cache.
        cache_key = None
        cacheable = bool(user.user_id) and all(c.user_id for c in candidates)
        if use_cache and cacheable:
            cache_key = (
                user.user_id,
                tuple(sorted(c.user_id for c in candidates)),
                tuple(sorted(exclude_ids)),
                max_results,
                as_of.isoformat() if as_of else None,
            )
            cached = self._feed_cache.get(cache_key)
            if cached is not None:
                logger.debug("feed_cache_hit", user_id=user.user_id)
                return list(cached)

        now = as_of or datetime.now(timezone.utc)
        ranked = self._score_pool(user, candidates, exclude_ids, now)

        jittered = [
            c.model_copy(
                update={
                    "display_score": round(
                        c.score + self.rng.random() * self.diversity_bonus_max, 2
                    )
                }
            )
            for c in ranked
        ]
        jittered.sort(key=lambda c: (-c.display_score, c.user_id or ""))
        feed = jittered[:max_results]

        if cache_key is not None:
            self._feed_cache[cache_key] = tuple(feed)

        logger.info(
            "build_feed_complete",
            user_id=user.user_id,
            scored=len(ranked),
            returned=len(feed),
        )
        return feed

    def record_action(
        self,
        record: MatchRecord,
        actor_id: str,
        action: MatchAction | str,
    ) -> MatchRecord:
        """Apply one side's like/pass and resolve the match status.

        Any pass ends the match; two likes make it mutual.
        """
        action = MatchAction(action)
        if action is MatchAction.PENDING:
            raise ValueError("Action must be 'like' or 'pass'.")

        if actor_id == record.user1_id:
            updated = record.model_copy(update={"user1_action": action})
        elif actor_id == record.user2_id:
            updated = record.model_copy(update={"user2_action": action})
        else:
            raise ValueError(f"User {actor_id} is not part of this match.")

        status = self._resolve_status(updated.user1_action, updated.user2_action)
        changes: dict = {"match_status": status}
        if status is not MatchStatus.MATCHED:
            changes["matched_at"] = None
        elif record.matched_at is None:
            changes["matched_at"] = datetime.now(timezone.utc)
        updated = updated.model_copy(update=changes)

        logger.info(
            "match_action_recorded",
            user1_id=record.user1_id,
            user2_id=record.user2_id,
            actor_id=actor_id,
            action=action.value,
            status=status.value,
        )
        return updated

    def invalidate_feed_cache(self) -> None:
        self._feed_cache.clear()

    # ── Internal helpers ──────────────────────────────────────────────────

    def _resolve_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.match_limit
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}.")
        return limit

    def _score_pool(
        self,
        user: ProfileSnapshot,
        candidates: Iterable[ProfileSnapshot],
        exclude_ids: Iterable[str],
        now: datetime,
    ) -> list[RankedCandidate]:
        excluded = set(exclude_ids)
        if user.user_id:
            excluded.add(user.user_id)

        ranked: list[RankedCandidate] = []
        for candidate in candidates:
            if candidate.user_id and candidate.user_id in excluded:
                continue
            result = self.scorer.score(user, candidate, as_of=now)
            ranked.append(
                RankedCandidate(
                    user_id=candidate.user_id,
                    score=result.score,
                    display_score=result.score,
                    reasons=result.reasons,
                    breakdown=result.breakdown,
                )
            )
        return ranked

    @staticmethod
    def _resolve_status(action_1: MatchAction, action_2: MatchAction) -> MatchStatus:
        if MatchAction.PASS in (action_1, action_2):
            return MatchStatus.PASSED
        if action_1 is MatchAction.LIKE and action_2 is MatchAction.LIKE:
            return MatchStatus.MATCHED
        if MatchAction.LIKE in (action_1, action_2):
            return MatchStatus.LIKED
        return MatchStatus.PENDING
