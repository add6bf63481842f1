from app.core.levels import RiskLevel
from app.schemas.weather import (
    ConditionInputs,
    FishingRating,
    Recommendation,
    WeatherCondition,
)
from app.services.risk_assessor import risk_assessor


def test_calm_warm_day_is_excellent():
    inputs = ConditionInputs(
        wind_speed_kmh=10,
        condition=WeatherCondition.CLEAR,
        water_temperature_c=25,
        wave_height_m=0.5,
    )

    assessment = risk_assessor.assess(inputs)

    assert assessment.risk_level == RiskLevel.LOW
    assert assessment.fishing_conditions.score == 100
    assert assessment.fishing_conditions.rating == FishingRating.EXCELLENT
    assert assessment.recommendations == [Recommendation.SAFE_TO_FISH]
    names = [f.name for f in assessment.fishing_conditions.factors]
    assert names == ["Optimal Water Temperature", "Calm Winds"]


def test_thunderstorm_is_critical():
    inputs = ConditionInputs(
        wind_speed_kmh=20, condition=WeatherCondition.THUNDERSTORM
    )

    assessment = risk_assessor.assess(inputs)

    assert assessment.risk_level == RiskLevel.CRITICAL
    assert assessment.recommendations == [Recommendation.AVOID_AREA]
    assert assessment.fishing_conditions.score == 60


def test_highest_rule_wins_regardless_of_order():
    # low visibility proposes MEDIUM after waves proposed HIGH
    inputs = ConditionInputs(
        wind_speed_kmh=30,
        condition=WeatherCondition.FOG,
        wave_height_m=3.5,
        visibility_km=0.5,
    )

    level, factors = risk_assessor.assess_risk(inputs)

    assert level == RiskLevel.HIGH
    assert {f.name for f in factors} == {"Moderate Winds", "High Waves", "Low Visibility"}


def test_heavy_rain_only_counts_when_raining():
    raining = ConditionInputs(
        wind_speed_kmh=5, condition=WeatherCondition.RAIN, precipitation_mm=25
    )
    cloudy = ConditionInputs(
        wind_speed_kmh=5, condition=WeatherCondition.CLOUDS, precipitation_mm=25
    )

    assert risk_assessor.assess_risk(raining)[0] == RiskLevel.MEDIUM
    assert risk_assessor.assess_risk(cloudy)[0] == RiskLevel.LOW


def test_score_is_clamped_and_rated():
    inputs = ConditionInputs(
        wind_speed_kmh=60,
        condition=WeatherCondition.THUNDERSTORM,
        wave_height_m=4,
        precipitation_mm=30,
        water_temperature_c=35,
    )

    fishing = risk_assessor.score_fishing(inputs)

    assert fishing.score == 0
    assert fishing.rating == FishingRating.DANGEROUS


def test_rating_bands():
    assert risk_assessor.rate(80) == FishingRating.EXCELLENT
    assert risk_assessor.rate(79) == FishingRating.GOOD
    assert risk_assessor.rate(40) == FishingRating.FAIR
    assert risk_assessor.rate(20) == FishingRating.POOR
    assert risk_assessor.rate(19) == FishingRating.DANGEROUS


def test_recommendations():
    assert risk_assessor.recommend(RiskLevel.HIGH, 90) == Recommendation.RETURN_TO_SHORE
    assert risk_assessor.recommend(RiskLevel.LOW, 70) == Recommendation.SAFE_TO_FISH
    assert risk_assessor.recommend(RiskLevel.MEDIUM, 50) == Recommendation.EXERCISE_CAUTION
    assert risk_assessor.recommend(RiskLevel.LOW, 10) == Recommendation.MONITOR_CONDITIONS


def test_level_lattice():
    assert RiskLevel.highest([RiskLevel.MEDIUM, RiskLevel.LOW]) == RiskLevel.MEDIUM
    assert RiskLevel.highest([]) == RiskLevel.LOW
    assert RiskLevel.parse("high") == RiskLevel.HIGH
    assert RiskLevel.parse(4) == RiskLevel.CRITICAL


def test_risk_never_drops_as_wind_rises():
    speeds = [0, 10, 25, 25.1, 30, 35, 35.1, 50, 80]
    levels = [
        risk_assessor.assess_risk(
            ConditionInputs(
                wind_speed_kmh=speed,
                condition=WeatherCondition.CLOUDS,
                wave_height_m=1.0,
                visibility_km=10,
            )
        )[0]
        for speed in speeds
    ]

    assert levels == sorted(levels)
    assert dict(zip(speeds, levels)) == {
        0: RiskLevel.LOW,
        10: RiskLevel.LOW,
        25: RiskLevel.LOW,
        25.1: RiskLevel.MEDIUM,
        30: RiskLevel.MEDIUM,
        35: RiskLevel.MEDIUM,
        35.1: RiskLevel.HIGH,
        50: RiskLevel.HIGH,
        80: RiskLevel.HIGH,
    }
