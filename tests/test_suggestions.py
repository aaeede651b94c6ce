# tests/test_suggestions.py
import random
from datetime import datetime

from backend.lib.consumption_core.models import TemporalContext, Tier
from backend.lib.consumption_core.suggestions import (
    GENERAL_TIPS,
    MESSAGES,
    NIGHT_TIPS,
    SuggestionGenerator,
    WINTER_TIPS,
    WEEKEND_TIPS,
    is_night,
    temporal_context,
    tip_pool,
)
from conftest import ScriptedRandom

NEUTRAL = TemporalContext(is_summer=False, is_winter=False, is_night=False, is_weekend=False)


def test_temporal_context_summer_weekday_afternoon():
    # Tuesday
    context = temporal_context(datetime(2025, 7, 15, 14, 0))
    assert context == TemporalContext(is_summer=True, is_winter=False, is_night=False, is_weekend=False)


def test_temporal_context_winter_weekend_night():
    # Saturday
    context = temporal_context(datetime(2025, 12, 27, 22, 30))
    assert context == TemporalContext(is_summer=False, is_winter=True, is_night=True, is_weekend=True)


def test_spring_and_autumn_are_neither_season():
    for month in (4, 5, 10, 11):
        context = temporal_context(datetime(2025, month, 8, 12, 0))
        assert not context.is_summer
        assert not context.is_winter


def test_night_boundaries():
    assert is_night(datetime(2025, 4, 10, 6, 59))
    assert not is_night(datetime(2025, 4, 10, 7, 0))
    assert not is_night(datetime(2025, 4, 10, 19, 59))
    assert is_night(datetime(2025, 4, 10, 20, 0))


def test_tip_pool_grows_with_context():
    assert tip_pool(NEUTRAL) == GENERAL_TIPS
    context = TemporalContext(is_summer=False, is_winter=True, is_night=True, is_weekend=True)
    pool = tip_pool(context)
    assert len(pool) == len(GENERAL_TIPS) + len(WINTER_TIPS) + len(NIGHT_TIPS) + len(WEEKEND_TIPS)
    assert set(WEEKEND_TIPS) <= set(pool)


def test_message_pools():
    assert len(MESSAGES[Tier.CRITICAL]) == 5
    assert len(MESSAGES[Tier.WARNING]) == 5
    assert len(MESSAGES[Tier.EXCELLENT]) == 3
    assert len(GENERAL_TIPS) == 4


def test_should_suggest():
    generator = SuggestionGenerator(ScriptedRandom(randoms=[0.2, 0.5]))
    assert generator.should_suggest(Tier.CRITICAL)
    assert generator.should_suggest(Tier.WARNING)
    assert generator.should_suggest(Tier.EXCELLENT)
    assert not generator.should_suggest(Tier.EXCELLENT)


def test_description_interpolates_average():
    # second warning template mentions the average
    generator = SuggestionGenerator(ScriptedRandom(randoms=[0.9], choice_index=1))
    suggestion = generator.suggest("d1", Tier.WARNING, 2.6149, NEUTRAL)
    assert "2.61 kWh" in suggestion.description
    assert "Tip:" not in suggestion.description


def test_tip_is_appended_after_blank_line():
    generator = SuggestionGenerator(ScriptedRandom(randoms=[0.1], choice_index=0))
    suggestion = generator.suggest("d1", Tier.CRITICAL, 3.3, NEUTRAL)
    short, description = MESSAGES[Tier.CRITICAL][0]
    assert suggestion.short_message == short
    assert suggestion.description == f"{description}\n\nTip: {GENERAL_TIPS[0]}"


def test_suggestion_fields():
    context = temporal_context(datetime(2025, 12, 27, 22, 30))
    suggestion = SuggestionGenerator(random.Random(1), id_factory=lambda: "s-1").suggest(
        "d1", Tier.EXCELLENT, 1.25, context
    )
    assert suggestion.device_id == "d1"
    assert suggestion.tier == Tier.EXCELLENT
    assert suggestion.related_reading == 1.25
    assert suggestion.read is False
    assert suggestion.context == context
    assert suggestion.suggestion_id == "s-1"

    item = suggestion.to_item()
    assert item["tier"] == "excellent"
    assert item["context"] == {"is_summer": False, "is_winter": True, "is_night": True, "is_weekend": True}


def test_about_seventy_percent_carry_a_tip():
    generator = SuggestionGenerator(random.Random(2024))
    total = 10_000
    with_tip = sum(
        "Tip:" in generator.suggest("d1", Tier.WARNING, 2.5, NEUTRAL).description
        for _ in range(total)
    )
    assert abs(with_tip / total - 0.7) < 0.02
