"""Unit tests for CompatibilityScorer — factor scorers, reasons and totals."""
import random
import pytest
from datetime import datetime, timedelta
from pydantic import ValidationError

from irene.schemas.match import MAX_REASONS
from irene.schemas.profile import Interest, PersonalityProfile, ProfileSnapshot
from irene.services.compatibility_service import CompatibilityScorer, ScoringWeights


def _traits(e=3.0, a=3.0, c=3.0, n=3.0, o=3.0):
    return PersonalityProfile(
        extraversion=e, agreeableness=a, conscientiousness=c, neuroticism=n, openness=o
    )


def _interests(*pairs):
    return [Interest(name=name, level=level) for name, level in pairs]


class TestPersonalityFactor:
    """Tests for the weighted Big-Five blend."""

    def test_missing_personality_defaults_to_half(self, scorer):
        assert scorer._score_personality(None, _traits()) == 0.5
        assert scorer._score_personality(_traits(), None) == 0.5
        assert scorer._score_personality(None, None) == 0.5

    def test_identical_neutral_profiles(self, scorer):
        """0.2 + 0.3*0.6 + 0.2 + 0.15*0.4 + 0.15 = 0.79."""
        assert scorer._score_personality(_traits(), _traits()) == pytest.approx(0.79)

    def test_ideal_pair(self, scorer):
        """High agreeableness, low neuroticism, identical elsewhere."""
        p = _traits(e=5, a=5, c=5, n=1, o=5)
        assert scorer._score_personality(p, p) == pytest.approx(0.97)

    def test_extraversion_gap_saturates(self, scorer):
        close = scorer._score_personality(_traits(e=3), _traits(e=3))
        far = scorer._score_personality(_traits(e=1), _traits(e=5))
        assert close - far == pytest.approx(0.2)

    def test_out_of_range_traits_are_clamped(self):
        p = PersonalityProfile(
            extraversion=9, agreeableness=0, conscientiousness=3, neuroticism=-2, openness=5.5
        )
        assert p.extraversion == 5.0
        assert p.agreeableness == 1.0
        assert p.neuroticism == 1.0
        assert p.openness == 5.0

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_traits_rejected(self, bad):
        with pytest.raises(ValidationError):
            PersonalityProfile(
                extraversion=bad, agreeableness=3, conscientiousness=3, neuroticism=3, openness=3
            )


class TestInterestFactor:
    """Tests for level-weighted interest overlap."""

    def test_empty_list_defaults(self, scorer):
        assert scorer._score_interests([], _interests(("music", 4))) == 0.3
        assert scorer._score_interests(_interests(("music", 4)), []) == 0.3
        assert scorer._score_interests([], []) == 0.3

    def test_disjoint_interests_score_zero(self, scorer):
        value = scorer._score_interests(_interests(("music", 4)), _interests(("chess", 4)))
        assert value == 0.0

    def test_identical_interests_max(self, scorer):
        value = scorer._score_interests(_interests(("music", 4)), _interests(("music", 4)))
        assert value == 1.0

    def test_partial_overlap(self, scorer):
        """matched=2, unshared mass=15/2 -> 2/9.5, plus bonus 1/4."""
        a = _interests(("music", 2), ("golf", 5), ("chess", 5), ("art", 5))
        b = _interests(("music", 2))
        assert scorer._score_interests(a, b) == pytest.approx(2 / 9.5 + 0.25)

    def test_real_overlap_never_below_baseline(self, scorer):
        a = _interests(("music", 1), *[(f"topic{i}", 5) for i in range(9)])
        b = _interests(("music", 5))
        assert scorer._score_interests(a, b) == 0.3

    def test_names_compared_case_insensitively(self, scorer):
        value = scorer._score_interests(
            _interests(("Music", 4)), _interests(("  music ", 4))
        )
        assert value == 1.0

    def test_levels_are_clamped(self):
        assert Interest(name="music", level=9).level == 5
        assert Interest(name="music", level=0).level == 1


class TestGeographyFactor:
    """Tests for location matching."""

    def test_same_place_after_normalisation(self, scorer):
        assert scorer._score_geography("Nairobi, Kenya", "nairobi ,  KENYA") == 1.0

    def test_same_region(self, scorer):
        assert scorer._score_geography("Nairobi, Kenya", "Mombasa, Kenya") == 0.7

    def test_different_region(self, scorer):
        assert scorer._score_geography("Nairobi, Kenya", "Lagos, Nigeria") == 0.3

    def test_single_segment_cities_differ(self, scorer):
        assert scorer._score_geography("Nairobi", "Mombasa") == 0.3

    def test_unknown_location(self, scorer):
        assert scorer._score_geography(None, "Nairobi, Kenya") == 0.5
        assert scorer._score_geography("", "Nairobi, Kenya") == 0.5
        assert scorer._score_geography(" , ", "Nairobi, Kenya") == 0.5


class TestDemographicFactor:
    """Tests for age closeness and mutual gender preference."""

    def test_unknown_everything_is_neutral(self, scorer):
        assert scorer._score_demographics(ProfileSnapshot(), ProfileSnapshot()) == 0.5

    def test_same_age(self, scorer):
        value = scorer._score_demographics(ProfileSnapshot(age=28), ProfileSnapshot(age=28))
        assert value == pytest.approx(0.75)

    def test_age_gap_bottoms_out(self, scorer):
        at_limit = scorer._score_demographics(ProfileSnapshot(age=25), ProfileSnapshot(age=40))
        beyond = scorer._score_demographics(ProfileSnapshot(age=25), ProfileSnapshot(age=60))
        assert at_limit == pytest.approx(0.25)
        assert beyond == pytest.approx(0.25)

    def test_mutual_preference_boost(self, scorer):
        a = ProfileSnapshot(age=28, gender="Man", seeking_gender="Women")
        b = ProfileSnapshot(age=28, gender="Woman", seeking_gender="Men")
        assert scorer._score_demographics(a, b) == pytest.approx(0.9)

    def test_one_sided_mismatch_vetoes(self, scorer):
        """a wants women, b is a man: factor drops to a tenth."""
        a = ProfileSnapshot(age=28, gender="Woman", seeking_gender="Women")
        b = ProfileSnapshot(age=28, gender="Man", seeking_gender="Everyone")
        assert scorer._score_demographics(a, b) == pytest.approx(0.075)

    def test_veto_applies_without_other_direction(self, scorer):
        a = ProfileSnapshot(age=28, seeking_gender="Women")
        b = ProfileSnapshot(age=28, gender="Man")
        assert scorer._score_demographics(a, b) == pytest.approx(0.075)

    def test_single_known_direction_does_not_boost(self, scorer):
        a = ProfileSnapshot(age=28, seeking_gender="Women")
        b = ProfileSnapshot(age=28, gender="Woman")
        assert scorer._score_demographics(a, b) == pytest.approx(0.75)

    def test_everyone_and_case_insensitive_labels(self, scorer):
        a = ProfileSnapshot(gender="non-binary", seeking_gender="EVERYONE")
        b = ProfileSnapshot(gender="woman", seeking_gender="Non-Binary")
        assert scorer._score_demographics(a, b) == pytest.approx(0.6)

    @pytest.mark.parametrize("gender, seeking", [("Man", "   "), ("  ", "Women"), ("", "Women")])
    def test_blank_labels_count_as_unknown(self, scorer, gender, seeking):
        a = ProfileSnapshot(age=28, seeking_gender=seeking)
        b = ProfileSnapshot(age=28, gender=gender)
        assert scorer._score_demographics(a, b) == pytest.approx(0.75)

    def test_negative_age_is_clamped(self):
        assert ProfileSnapshot(age=-5).age == 0


class TestActivityFactor:
    """Tests for recency of both users."""

    @pytest.mark.parametrize(
        "hours_a, hours_b, expected",
        [
            (1, 23, 1.0),
            (1, 48, 0.8),
            (70, 100, 0.6),
            (1, 200, 0.3),
        ],
    )
    def test_tiers(self, scorer, as_of, hours_a, hours_b, expected):
        value = scorer._score_activity(
            as_of - timedelta(hours=hours_a), as_of - timedelta(hours=hours_b), as_of
        )
        assert value == expected

    def test_unknown_is_low(self, scorer, as_of):
        assert scorer._score_activity(None, as_of, as_of) == 0.3

    def test_future_timestamps_count_as_now(self, scorer, as_of):
        value = scorer._score_activity(as_of + timedelta(hours=5), as_of, as_of)
        assert value == 1.0

    def test_naive_timestamps_treated_as_utc(self, scorer, as_of):
        naive = datetime(2026, 10, 19, 11, 0)
        assert scorer._score_activity(naive, naive, as_of) == 1.0


class TestReasons:
    """Tests for reason generation and truncation."""

    def test_no_reasons_without_data(self, scorer, empty_profile, as_of):
        result = scorer.score(empty_profile, empty_profile, as_of=as_of)
        assert result.reasons == []

    def test_reasons_capped_and_ordered(self, scorer, as_of):
        profile = ProfileSnapshot(
            age=30,
            location="Lagos, Nigeria",
            gender="Woman",
            seeking_gender="Women",
            last_active_at=as_of,
            personality=_traits(n=1.5),
            interests=_interests(("dance", 5)),
        )
        result = scorer.score(profile, profile, as_of=as_of)
        assert len(result.reasons) == MAX_REASONS
        assert result.reasons == [
            "You're close in age",
            "You both handle stress well",
            "You both enjoy dance",
        ]

    def test_names_top_two_shared_interests(self, scorer):
        a = _interests(("hiking", 4), ("cooking", 3), ("chess", 5))
        b = _interests(("chess", 2), ("cooking", 5), ("hiking", 4))
        assert scorer._interest_reason(a, b) == "You both enjoy hiking and cooking"

    def test_region_reason(self, scorer, as_of):
        a = ProfileSnapshot(location="Nairobi, Kenya")
        b = ProfileSnapshot(location="Mombasa, Kenya")
        result = scorer.score(a, b, as_of=as_of)
        assert result.reasons == ["You're both in Kenya"]

    def test_region_reason_ignores_trailing_comma(self, scorer, as_of):
        a = ProfileSnapshot(location="Nairobi, Kenya,")
        b = ProfileSnapshot(location="Mombasa, Kenya")
        assert scorer.score(a, b, as_of=as_of).reasons == ["You're both in Kenya"]
        assert scorer.score(b, a, as_of=as_of).reasons == ["You're both in Kenya"]

    def test_personality_reason_needs_notable_score(self, scorer, as_of):
        a = ProfileSnapshot(personality=_traits(e=1, a=1, c=1, n=5, o=1))
        b = ProfileSnapshot(personality=_traits(e=5, a=1, c=5, n=5, o=5))
        result = scorer.score(a, b, as_of=as_of)
        assert result.reasons == []

    def test_close_age_suppressed_by_preference_veto(self, scorer, as_of):
        a = ProfileSnapshot(age=28, gender="Man", seeking_gender="Men")
        b = ProfileSnapshot(age=28, gender="Woman", seeking_gender="Women")
        result = scorer.score(a, b, as_of=as_of)
        assert "You're close in age" not in result.reasons


class TestScore:
    """Tests for the orchestrated score."""

    def test_identical_twins_score_high(self, scorer, twin_profile, as_of):
        result = scorer.score(twin_profile, twin_profile, as_of=as_of)
        # 31.6 + 25 + 15 + 11.25 + 5
        assert result.score == pytest.approx(87.85)
        assert result.score >= 80
        assert any("music" in r or "same area" in r for r in result.reasons)

    def test_incompatible_seeking_is_materially_lower(self, scorer, twin_profile, as_of):
        twins = scorer.score(twin_profile, twin_profile, as_of=as_of)
        a = twin_profile.model_copy(update={"gender": "Man", "seeking_gender": "Men"})
        b = twin_profile.model_copy(update={"gender": "Woman", "seeking_gender": "Women"})
        result = scorer.score(a, b, as_of=as_of)
        assert result.breakdown.demographics == pytest.approx(1.125)
        assert result.score <= twins.score - 9

    def test_no_optional_data_sums_defaults(self, scorer, empty_profile, as_of):
        result = scorer.score(empty_profile, empty_profile, as_of=as_of)
        # 20 + 7.5 + 7.5 + 7.5 + 1.5
        assert result.score == pytest.approx(44.0)
        assert result.breakdown.personality == pytest.approx(20.0)

    def test_missing_personality_contributes_exactly_default(
        self, scorer, make_profile, as_of
    ):
        a = make_profile(personality=None)
        b = make_profile(personality=None)
        result = scorer.score(a, b, as_of=as_of)
        assert result.breakdown.personality == pytest.approx(20.0)

    def test_deterministic(self, scorer, make_profile, as_of):
        a, b = make_profile(), make_profile(age=44, location="Lagos, Nigeria")
        assert scorer.score(a, b, as_of=as_of) == scorer.score(a, b, as_of=as_of)

    def test_symmetric(self, scorer, make_profile, as_of):
        a = make_profile(interests=_interests(("music", 5), ("art", 2)))
        b = make_profile(
            age=36,
            location="Mombasa, Kenya",
            gender="Man",
            seeking_gender="Women",
            personality=_traits(e=2, a=4.5, c=2, n=3.5, o=1.5),
        )
        ab = scorer.score(a, b, as_of=as_of)
        ba = scorer.score(b, a, as_of=as_of)
        assert ab.score == pytest.approx(ba.score, abs=0.01)

    def test_custom_weights(self, twin_profile, as_of):
        scorer = CompatibilityScorer(
            ScoringWeights(personality=100, interests=0, geography=0, demographics=0, activity=0)
        )
        result = scorer.score(twin_profile, twin_profile, as_of=as_of)
        assert result.score == pytest.approx(79.0)

    def test_bounds_over_random_profiles(self, scorer, as_of):
        rng = random.Random(1234)
        names = ["music", "hiking", "art", "chess", "travel", "cooking"]

        def random_profile():
            return ProfileSnapshot(
                age=rng.choice([None, rng.randint(18, 80)]),
                location=rng.choice([None, "Nairobi, Kenya", "Lagos, Nigeria", "Mombasa, Kenya"]),
                gender=rng.choice([None, "Man", "Woman"]),
                seeking_gender=rng.choice([None, "Men", "Women", "Everyone"]),
                last_active_at=rng.choice([None, as_of - timedelta(hours=rng.randint(0, 500))]),
                personality=rng.choice(
                    [None, _traits(*(rng.uniform(1, 5) for _ in range(5)))]
                ),
                interests=_interests(
                    *((n, rng.randint(1, 5)) for n in rng.sample(names, rng.randint(0, 4)))
                ),
            )

        for _ in range(200):
            result = scorer.score(random_profile(), random_profile(), as_of=as_of)
            assert 0.0 <= result.score <= 100.0
            assert len(result.reasons) <= MAX_REASONS

    @pytest.mark.parametrize(
        "base_a, base_b",
        [
            ([], []),
            ([("chess", 3)], []),
            ([("chess", 3)], [("golf", 2)]),
            ([("x", 5), ("z", 5)], [("x", 1)]),
            ([("music", 4)], [("music", 4)]),
            ([("a", 1), ("b", 5), ("c", 5), ("d", 5)], [("a", 1), ("e", 5)]),
        ],
    )
    def test_adding_shared_interest_never_lowers_score(
        self, scorer, make_profile, as_of, base_a, base_b
    ):
        for level_a in range(1, 6):
            for level_b in range(1, 6):
                a = make_profile(interests=_interests(*base_a))
                b = make_profile(interests=_interests(*base_b))
                before = scorer.score(a, b, as_of=as_of).score

                a_more = a.model_copy(update={"interests": a.interests + _interests(("y", level_a))})
                b_more = b.model_copy(update={"interests": b.interests + _interests(("y", level_b))})
                after = scorer.score(a_more, b_more, as_of=as_of).score

                assert after >= before, (base_a, base_b, level_a, level_b)
