"""Tests for six-taste aggregation and the balance helpers."""
import pytest

from nutriplan_app.core.errors import DIVISION_GUARD_WARNING
from nutriplan_app.recommenders.taste.aggregator import TasteProfileAggregator, balance_score
from nutriplan_app.recommenders.taste.utils import recommend_thermal_balance, suggest_foods_for_balance
from nutriplan_app.schemas.enums import Archetype, BalanceCategory, Dosha, DoshaImpact, Season, TasteAxis, ThermalEffect
from nutriplan_app.schemas.models import AttributeVector, TasteProfile, WeightedVector

from conftest import make_vector


@pytest.fixture
def aggregator():
    return TasteProfileAggregator()


class TestSingleItem:
    def test_percentages_and_balance(self, aggregator, item_a):
        composite = aggregator.aggregate_items([item_a])
        assert composite.percentages == TasteProfile(sweet=60, bitter=20, astringent=20)
        assert composite.balance_score == 17
        assert composite.mean_absolute_deviation == 13.33
        assert composite.balance_category is BalanceCategory.IMBALANCED

    def test_dominant_and_deficient(self, aggregator, item_a):
        composite = aggregator.aggregate_items([item_a])
        assert composite.dominant == (TasteAxis.SWEET,)
        assert composite.deficient == (TasteAxis.SOUR, TasteAxis.SALTY, TasteAxis.PUNGENT)

    def test_suggestions(self, aggregator, item_a):
        composite = aggregator.aggregate_items([item_a])
        assert any(s.startswith("Excessive sweet") for s in composite.suggestions)
        assert not any("restructuring" in s for s in composite.suggestions)

    def test_ideal_profile_scores_100(self):
        assert balance_score([30, 15, 10, 15, 20, 10]) == 100


class TestMeal:
    def test_equal_weights(self, aggregator, item_a, item_b):
        composite = aggregator.aggregate_items([item_a, item_b])
        assert composite.percentages == TasteProfile(sweet=30, sour=10, pungent=40, bitter=10, astringent=10)
        assert composite.balance_score == 42
        assert composite.thermal is ThermalEffect.HEATING
        assert composite.thermal_intensity == 3.0
        assert composite.dosha_effect.pitta == 0.3
        assert composite.dosha_effect.vata == -0.1
        assert composite.dosha_effect.kapha == -0.3
        assert composite.dosha_impact[Dosha.PITTA] is DoshaImpact.NEUTRAL
        assert composite.total_weight == 2.0

    def test_quantities_shift_the_profile(self, aggregator, item_a, item_b):
        composite = aggregator.aggregate_items([item_a, item_b], [3, 1])
        assert composite.percentages.sweet == 45.0
        assert composite.thermal is ThermalEffect.COOLING

    def test_quantities_must_match(self, aggregator, item_a, item_b):
        with pytest.raises(ValueError):
            aggregator.aggregate_items([item_a, item_b], [1])

    def test_negative_quantity_rejected(self, aggregator, item_a):
        with pytest.raises(ValueError):
            aggregator.aggregate([(item_a.attributes, -1)])

    def test_accepts_weighted_vectors(self, aggregator, item_a):
        from_pairs = aggregator.aggregate([(item_a.attributes, 2)])
        from_weighted = aggregator.aggregate([WeightedVector(vector=item_a.attributes, quantity=2)])
        assert from_pairs == from_weighted

    def test_analyze_meal_by_id(self, aggregator, sample_kb):
        composite = aggregator.analyze_meal(sample_kb, ["moong-dal-kitchari", "spiced-buttermilk"])
        assert not composite.empty
        assert sum(composite.percentages.as_dict().values()) == pytest.approx(100, abs=0.5)


class TestEmptyProfile:
    @pytest.mark.parametrize("entries", [
        [],
        [(AttributeVector(), 1)],
        [(make_vector(sweet=50), 0)],
    ])
    def test_zero_total(self, aggregator, entries):
        composite = aggregator.aggregate(entries)
        assert composite.empty
        assert composite.balance_score == 0
        assert composite.balance_category is BalanceCategory.SEVERELY_IMBALANCED
        assert composite.deficient == tuple(TasteAxis)
        assert composite.dominant == ()
        assert composite.warnings == (DIVISION_GUARD_WARNING,)


class TestBalancingHelpers:
    def test_balancing_foods_supply_deficient_tastes(self, aggregator, sample_kb, item_a):
        composite = aggregator.aggregate_items([item_a])
        foods = suggest_foods_for_balance(composite, sample_kb)
        assert foods
        deficient = set(composite.deficient)
        for item in foods:
            tastes = item.attributes.tastes
            assert any(tastes.get(axis) / tastes.total * 100 > 30 for axis in deficient)

    def test_balancing_foods_limit(self, aggregator, sample_kb, item_a):
        composite = aggregator.aggregate_items([item_a])
        assert len(suggest_foods_for_balance(composite, sample_kb, limit=1)) == 1

    def test_cooling_meal_in_winter_needs_heat(self, aggregator, item_a):
        composite = aggregator.aggregate_items([item_a])
        advice = recommend_thermal_balance(composite, Season.WINTER, Archetype.VATA)
        assert advice.add_heating
        assert not advice.add_cooling

    def test_heating_meal_for_pitta_needs_cooling(self, aggregator, item_b):
        composite = aggregator.aggregate_items([item_b])
        advice = recommend_thermal_balance(composite, Season.SUMMER, Archetype.PITTA)
        assert advice.add_cooling
        assert not advice.add_heating
        assert len(advice.suggestions) == 1
