"""Rule-based marine risk and fishing-suitability scoring.

Every rule is evaluated independently. A triggered risk rule proposes a
level and the result is the highest level proposed, so the order in which
rules run never downgrades an assessment.
"""

import logging

from typing import List, Optional, Tuple

from app.core.levels import RiskLevel
from app.schemas.weather import (
    ConditionInputs,
    Factor,
    FishingConditions,
    FishingRating,
    Recommendation,
    SafetyAssessment,
    WeatherCondition,
)

logger = logging.getLogger(__name__)
LOG_MSG = "Service:"

# risk thresholds
HIGH_WIND_KMH = 35.0
MODERATE_WIND_KMH = 25.0
HIGH_WAVE_M = 3.0
MODERATE_WAVE_M = 2.0
HEAVY_RAIN_MM = 20.0
LOW_VISIBILITY_KM = 1.0

# fishing score thresholds
WATER_TEMP_SAFE_RANGE = (15.0, 32.0)
WATER_TEMP_OPTIMAL_RANGE = (22.0, 28.0)
ROUGH_SEA_M = 2.0
HEAVY_PRECIPITATION_MM = 10.0
CALM_WIND_KMH = 15.0

RATING_BANDS = (
    (80, FishingRating.EXCELLENT),
    (60, FishingRating.GOOD),
    (40, FishingRating.FAIR),
    (20, FishingRating.POOR),
)


def _exceeds(value: Optional[float], threshold: float) -> bool:
    return value is not None and value > threshold


class RiskAssessor:

    @staticmethod
    def assess_risk(inputs: ConditionInputs) -> Tuple[RiskLevel, List[Factor]]:
        proposals = [RiskLevel.LOW]
        factors = []

        # wind
        if _exceeds(inputs.wind_speed_kmh, HIGH_WIND_KMH):
            proposals.append(RiskLevel.HIGH)
            factors.append(Factor(name="High Winds", impact="NEGATIVE", severity="HIGH"))
        elif _exceeds(inputs.wind_speed_kmh, MODERATE_WIND_KMH):
            proposals.append(RiskLevel.MEDIUM)
            factors.append(
                Factor(name="Moderate Winds", impact="NEGATIVE", severity="MEDIUM")
            )

        # waves
        if _exceeds(inputs.wave_height_m, HIGH_WAVE_M):
            proposals.append(RiskLevel.HIGH)
            factors.append(Factor(name="High Waves", impact="NEGATIVE", severity="HIGH"))
        elif _exceeds(inputs.wave_height_m, MODERATE_WAVE_M):
            proposals.append(RiskLevel.MEDIUM)
            factors.append(
                Factor(name="Moderate Waves", impact="NEGATIVE", severity="MEDIUM")
            )

        # storms
        if inputs.condition == WeatherCondition.THUNDERSTORM:
            proposals.append(RiskLevel.CRITICAL)
            factors.append(Factor(name="Thunderstorm", impact="NEGATIVE", severity="HIGH"))
        elif inputs.condition == WeatherCondition.RAIN and _exceeds(
            inputs.precipitation_mm, HEAVY_RAIN_MM
        ):
            proposals.append(RiskLevel.MEDIUM)
            factors.append(Factor(name="Heavy Rain", impact="NEGATIVE", severity="MEDIUM"))

        # visibility
        if inputs.visibility_km is not None and inputs.visibility_km < LOW_VISIBILITY_KM:
            proposals.append(RiskLevel.MEDIUM)
            factors.append(
                Factor(name="Low Visibility", impact="NEGATIVE", severity="MEDIUM")
            )

        return RiskLevel.highest(proposals), factors

    @staticmethod
    def score_fishing(inputs: ConditionInputs) -> FishingConditions:
        score = 100
        factors = []
        water_temp = inputs.water_temperature_c

        if water_temp is not None and not (
            WATER_TEMP_SAFE_RANGE[0] <= water_temp <= WATER_TEMP_SAFE_RANGE[1]
        ):
            score -= 20
            factors.append(
                Factor(name="Extreme Water Temperature", impact="NEGATIVE", severity="HIGH")
            )

        if _exceeds(inputs.wind_speed_kmh, MODERATE_WIND_KMH):
            score -= 25
            factors.append(Factor(name="High Winds", impact="NEGATIVE", severity="HIGH"))

        if _exceeds(inputs.wave_height_m, ROUGH_SEA_M):
            score -= 20
            factors.append(Factor(name="Rough Seas", impact="NEGATIVE", severity="HIGH"))

        if _exceeds(inputs.precipitation_mm, HEAVY_PRECIPITATION_MM):
            score -= 15
            factors.append(
                Factor(name="Heavy Precipitation", impact="NEGATIVE", severity="MEDIUM")
            )

        if inputs.condition == WeatherCondition.THUNDERSTORM:
            score -= 40
            factors.append(
                Factor(name="Storm Conditions", impact="NEGATIVE", severity="HIGH")
            )

        # positive factors
        if water_temp is not None and (
            WATER_TEMP_OPTIMAL_RANGE[0] <= water_temp <= WATER_TEMP_OPTIMAL_RANGE[1]
        ):
            score += 10
            factors.append(
                Factor(name="Optimal Water Temperature", impact="POSITIVE", severity="MEDIUM")
            )

        if inputs.wind_speed_kmh <= CALM_WIND_KMH:
            score += 5
            factors.append(Factor(name="Calm Winds", impact="POSITIVE", severity="LOW"))

        score = max(0, min(100, score))

        return FishingConditions(
            score=score, rating=RiskAssessor.rate(score), factors=factors
        )

    @staticmethod
    def rate(score: int) -> FishingRating:
        for floor, rating in RATING_BANDS:
            if score >= floor:
                return rating
        return FishingRating.DANGEROUS

    @staticmethod
    def recommend(risk_level: RiskLevel, fishing_score: int) -> Recommendation:
        if risk_level == RiskLevel.CRITICAL:
            return Recommendation.AVOID_AREA
        if risk_level == RiskLevel.HIGH:
            return Recommendation.RETURN_TO_SHORE
        if fishing_score >= 70:
            return Recommendation.SAFE_TO_FISH
        if fishing_score >= 40:
            return Recommendation.EXERCISE_CAUTION
        return Recommendation.MONITOR_CONDITIONS

    def assess(self, inputs: ConditionInputs) -> SafetyAssessment:
        risk_level, risk_factors = self.assess_risk(inputs)
        fishing = self.score_fishing(inputs)

        logger.debug(
            f"{LOG_MSG} assessed risk={risk_level.name} fishing_score={fishing.score}"
        )

        return SafetyAssessment(
            risk_level=risk_level,
            risk_factors=risk_factors,
            fishing_conditions=fishing,
            recommendations=[self.recommend(risk_level, fishing.score)],
        )


risk_assessor = RiskAssessor()
