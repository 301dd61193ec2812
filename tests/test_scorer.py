"""Tests for compatibility scoring."""
import pytest

from nutriplan_app.core.errors import ProfileSchemaError
from nutriplan_app.recommenders.compatibility.scorer import (
    CompatibilityScorer,
    constitutional_fit,
    seasonal_suitability,
    subject_goals,
)
from nutriplan_app.schemas.enums import Archetype, DoshaImpact, Season, ThermalEffect
from nutriplan_app.schemas.models import ScoringContext, SubjectProfile, WeightedVector

from conftest import make_item

ZERO_EFFECT = {"vata": 0.0, "pitta": 0.0, "kapha": 0.0}


@pytest.fixture
def scorer():
    return CompatibilityScorer()


def _neutral_item(**fields):
    return make_item("neutral-item", thermal="neutral", dosha=ZERO_EFFECT, **fields)


class TestConstitutionalFit:
    def test_cooling_item_for_pitta(self, item_a):
        score, impact, scalar = constitutional_fit(item_a.attributes.dosha_effect, Archetype.PITTA)
        assert (score, impact, scalar) == (92, DoshaImpact.DECREASE, -2.2)

    def test_heating_item_for_pitta(self, item_b):
        score, impact, _ = constitutional_fit(item_b.attributes.dosha_effect, Archetype.PITTA)
        assert score == 2
        assert impact is DoshaImpact.INCREASE

    def test_balanced_all_uses_mean(self, item_a):
        score, impact, scalar = constitutional_fit(item_a.attributes.dosha_effect, Archetype.BALANCED_ALL)
        assert scalar == -0.4
        assert impact is DoshaImpact.NEUTRAL
        assert score == 54

    def test_composite_archetype_rounds_half_up(self, item_a):
        score, impact, scalar = constitutional_fit(item_a.attributes.dosha_effect, Archetype.VATA_PITTA)
        assert scalar == -1.25
        assert impact is DoshaImpact.NEUTRAL
        assert score == 63


class TestSeasonalSuitability:
    def test_cooling_for_pitta(self):
        assert seasonal_suitability(ThermalEffect.COOLING, Archetype.PITTA) == {
            Season.SPRING: 80, Season.SUMMER: 100, Season.MONSOON: 90,
            Season.AUTUMN: 100, Season.WINTER: 70,
        }

    def test_heating_for_pitta(self):
        assert seasonal_suitability(ThermalEffect.HEATING, Archetype.PITTA) == {
            Season.SPRING: 30, Season.SUMMER: 0, Season.MONSOON: 50,
            Season.AUTUMN: 20, Season.WINTER: 70,
        }

    def test_scores_stay_in_range(self):
        for archetype in Archetype:
            for thermal in ThermalEffect:
                values = seasonal_suitability(thermal, archetype).values()
                assert all(0 <= v <= 100 for v in values)


class TestScoreItem:
    def test_cooling_item_in_summer(self, scorer, pitta_profile, item_a, summer_context):
        score = scorer.score_item(pitta_profile, item_a, summer_context)
        assert score.constitutional == 92
        assert score.seasonal == 100
        assert score.constitutional_thermal == 100
        assert score.aggregate == 100
        assert score.season is Season.SUMMER

    def test_heating_item_in_summer(self, scorer, pitta_profile, item_b, summer_context):
        score = scorer.score_item(pitta_profile, item_b, summer_context)
        assert score.constitutional == 2
        assert score.seasonal == 0
        assert score.constitutional_thermal == 20
        assert score.aggregate == 0
        messages = [entry.message for entry in score.rationale]
        assert "High heating intensity may aggravate Pitta" in messages

    def test_aggregate_is_base_plus_deltas(self, scorer, pitta_profile, item_b):
        score = scorer.score_item(pitta_profile, item_b, ScoringContext(season=Season.WINTER))
        assert score.aggregate == max(0, min(100, 50 + sum(score.deltas.values())))
        assert score.seasonal == 70

    def test_accepts_raw_profile(self, scorer, item_a, summer_context):
        score = scorer.score_item({"archetype": "pitta"}, item_a, summer_context)
        assert score.constitutional == 92

    def test_missing_archetype(self, scorer, item_a):
        with pytest.raises(ProfileSchemaError):
            scorer.score_item({"goals": ["calming"]}, item_a)

    def test_invalid_archetype(self, scorer, item_a):
        with pytest.raises(ProfileSchemaError):
            scorer.score_item({"archetype": "fire"}, item_a)

    def test_out_of_season_note(self, scorer, pitta_profile, summer_context):
        item = make_item("winter-stew", seasons=["winter"])
        score = scorer.score_item(pitta_profile, item, summer_context)
        assert any(entry.axis == "season" for entry in score.rationale)


class TestGoalsAndDigestion:
    @pytest.fixture
    def kapha_winter(self):
        return ScoringContext(season=Season.WINTER)

    def test_neutral_baseline(self, scorer, kapha_winter):
        profile = SubjectProfile(archetype="kapha")
        assert scorer.score_item(profile, _neutral_item(), kapha_winter).aggregate == 70

    @pytest.mark.parametrize("goals,expected", [
        (["immunity"], 80),
        (["immunity", "energy"], 90),
        (["immunity", "energy", "digestion"], 100),
        (["immunity", "energy", "digestion", "sleep"], 100),
    ])
    def test_goal_matches(self, scorer, kapha_winter, goals, expected):
        profile = SubjectProfile(archetype="kapha", goals=goals)
        item = _neutral_item(benefits=["Immunity", "energy boost", "digestion", "sleep"])
        score = scorer.score_item(profile, item, kapha_winter)
        assert score.aggregate == expected
        assert score.goal == min(10 * len(goals), 30)

    def test_high_stress_adds_calming(self, kapha_winter):
        profile = SubjectProfile(archetype="kapha", stress_level=8)
        assert "calming" in subject_goals(profile)
        score = CompatibilityScorer().score_item(profile, _neutral_item(benefits=["calming"]), kapha_winter)
        assert score.goal_matches == ("calming",)

    def test_weak_digestion_prefers_easy(self, scorer, kapha_winter):
        profile = SubjectProfile(archetype="kapha", digestive_strength="weak")
        easy = scorer.score_item(profile, _neutral_item(digestibility="easy"), kapha_winter)
        heavy = scorer.score_item(profile, _neutral_item(digestibility="heavy"), kapha_winter)
        assert easy.digestibility == 15
        assert heavy.digestibility == 0
        assert easy.aggregate == heavy.aggregate + 15


class TestMealScoring:
    def test_balance_delta_with_companions(self, scorer, pitta_profile, item_a, item_b):
        context = ScoringContext(season=Season.WINTER,
                                 companions=(WeightedVector(vector=item_a.attributes),))
        score = scorer.score_item(pitta_profile, item_b, context)
        assert score.balance == 6
        assert score.deltas["balance"] == 6

    def test_no_companions_no_balance_delta(self, scorer, pitta_profile, item_b):
        score = scorer.score_item(pitta_profile, item_b, ScoringContext(season=Season.WINTER))
        assert score.balance == 0

    def test_score_meal(self, scorer, pitta_profile, item_a, item_b, summer_context):
        score = scorer.score_meal(pitta_profile, [item_a, item_b], summer_context)
        assert score.constitutional == 47
        assert score.constitutional_impact is DoshaImpact.NEUTRAL

    def test_deterministic(self, scorer, pitta_profile, item_a, summer_context):
        first = scorer.score_item(pitta_profile, item_a, summer_context)
        second = scorer.score_item(pitta_profile, item_a, summer_context)
        assert first.model_dump_json() == second.model_dump_json()
