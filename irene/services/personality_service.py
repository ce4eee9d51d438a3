"""
Irene — Big-Five personality assessment

Scores the ten-item onboarding questionnaire (two Likert items per trait,
answered 1-5) into the ``PersonalityProfile`` consumed by the compatibility
engine, and renders a short plain-language summary of the result.
"""

from __future__ import annotations

import structlog

from irene.schemas.personality import AssessmentQuestion
from irene.schemas.profile import PersonalityProfile

logger = structlog.get_logger("irene.personality_service")


class AssessmentError(ValueError):
    """Raised when questionnaire answers are incomplete or out of range."""


class PersonalityService:
    """Questionnaire definition, scoring and insight generation."""

    TRAITS: list[str] = [
        "extraversion",
        "agreeableness",
        "conscientiousness",
        "neuroticism",
        "openness",
    ]

    QUESTIONS: list[AssessmentQuestion] = [
        AssessmentQuestion(id="extraversion_1", text="I am the life of the party", trait="extraversion"),
        AssessmentQuestion(id="agreeableness_1", text="I feel others' emotions", trait="agreeableness"),
        AssessmentQuestion(id="conscientiousness_1", text="I get chores done right away", trait="conscientiousness"),
        AssessmentQuestion(id="neuroticism_1", text="I have frequent mood swings", trait="neuroticism"),
        AssessmentQuestion(id="openness_1", text="I have a vivid imagination", trait="openness"),
        AssessmentQuestion(id="extraversion_2", text="I start conversations with strangers", trait="extraversion"),
        AssessmentQuestion(id="agreeableness_2", text="I am interested in people", trait="agreeableness"),
        AssessmentQuestion(id="conscientiousness_2", text="I like order and routine", trait="conscientiousness"),
        AssessmentQuestion(id="neuroticism_2", text="I get stressed out easily", trait="neuroticism"),
        AssessmentQuestion(id="openness_2", text="I enjoy trying new things", trait="openness"),
    ]

    MIN_ANSWER: int = 1
    MAX_ANSWER: int = 5
    INSIGHT_THRESHOLD: float = 3.5

    # No insight for neuroticism.
    TRAIT_INSIGHTS: dict[str, str] = {
        "extraversion": "You're naturally outgoing and energized by social interactions",
        "agreeableness": "You have a caring, empathetic nature",
        "conscientiousness": "You're organized and goal-oriented",
        "openness": "You're creative and open to new experiences",
    }

    def score_assessment(self, answers: dict[str, int]) -> PersonalityProfile:
        """Average each trait's two answers into a Big-Five profile.

        Raises
        ------
        AssessmentError
            If any question is unanswered or an answer falls outside 1-5.
        """
        missing = [q.id for q in self.QUESTIONS if q.id not in answers]
        if missing:
            logger.warning("assessment_incomplete", missing=missing)
            raise AssessmentError(f"Missing answers for: {', '.join(missing)}")

        out_of_range = [
            q.id
            for q in self.QUESTIONS
            if not self.MIN_ANSWER <= answers[q.id] <= self.MAX_ANSWER
        ]
        if out_of_range:
            logger.warning("assessment_out_of_range", items=out_of_range)
            raise AssessmentError(
                f"Answers must be between {self.MIN_ANSWER} and {self.MAX_ANSWER}: "
                f"{', '.join(out_of_range)}"
            )

        by_trait: dict[str, list[int]] = {trait: [] for trait in self.TRAITS}
        for question in self.QUESTIONS:
            by_trait[question.trait].append(answers[question.id])

        scores = {trait: sum(values) / len(values) for trait, values in by_trait.items()}
        logger.info("assessment_scored", **scores)
        return PersonalityProfile(**scores)

    def generate_insights(self, profile: PersonalityProfile) -> str:
        insights = [
            sentence
            for trait, sentence in self.TRAIT_INSIGHTS.items()
            if getattr(profile, trait) > self.INSIGHT_THRESHOLD
        ]
        if not insights:
            return ""
        return ". ".join(insights) + "."
