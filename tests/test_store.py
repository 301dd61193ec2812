"""Tests for knowledge base loading, validation and queries."""
import pytest

from nutriplan_app.core.errors import ItemNotFound
from nutriplan_app.knowledge.loader import load_knowledge_base, load_records
from nutriplan_app.knowledge.store import KnowledgeBase, item_from_record
from nutriplan_app.schemas.enums import IngredientRole, Season, ThermalEffect


def _record(item_id, **extra):
    record = {
        "id": item_id,
        "name": item_id.title(),
        "category": "Snack",
        "tastes": {"sweet": 50, "astringent": 50},
    }
    record.update(extra)
    return record


class TestSampleKnowledgeBase:
    def test_loads_every_item(self, sample_kb):
        assert len(sample_kb) == 18
        assert sample_kb.quarantine == ()

    def test_items_are_resolved(self, sample_kb):
        assert all(item.attributes.is_resolved for item in sample_kb)

    def test_categories(self, sample_kb):
        assert sample_kb.categories() == ["beverage", "breakfast", "main-course", "snack"]

    def test_get_and_missing(self, sample_kb):
        assert sample_kb.get("moong-dal-kitchari").category == "main-course"
        assert "moong-dal-kitchari" in sample_kb
        with pytest.raises(ItemNotFound) as exc_info:
            sample_kb.get("pizza")
        assert exc_info.value.item_id == "pizza"
        assert sample_kb.find("pizza") is None

    def test_ingredient_strings_are_parsed(self, sample_kb):
        item = sample_kb.get("moong-dal-kitchari")
        assert item.ingredients
        assert all(ing.name for ing in item.ingredients)
        assert any(ing.role is IngredientRole.SPICE for ing in item.ingredients)


class TestRecords:
    def test_flat_record(self):
        item = item_from_record({
            "id": 7, "name": "Cucumber Raita", "category": "Side Dish",
            "sweet": 40, "sour": 30, "astringent": 30, "thermal_effect": "Cooling",
            "seasons": "Summer; Spring", "calories": "120",
        })
        assert item.id == "7"
        assert item.category == "side-dish"
        assert item.attributes.thermal is ThermalEffect.COOLING
        assert item.seasons == ("summer", "spring")
        assert item.in_season(Season.SUMMER)
        assert not item.in_season(Season.WINTER)
        assert item.nutrients == {"calories": 120.0}

    def test_no_seasons_means_all_year(self):
        item = item_from_record(_record("plain"))
        assert all(item.in_season(season) for season in Season)

    def test_negative_taste_rejected(self):
        with pytest.raises(ValueError):
            item_from_record(_record("bad", tastes={"sweet": -5}))

    def test_unknown_thermal_rejected(self):
        with pytest.raises(ValueError):
            item_from_record(_record("bad", thermal="lukewarm"))

    def test_non_mapping_rejected(self):
        with pytest.raises(ValueError):
            item_from_record("not a record")


class TestQuarantine:
    def test_malformed_records_are_quarantined(self):
        kb = KnowledgeBase.from_records([
            _record("good"),
            _record("bad", tastes={"sweet": -1}),
            {"name": "No Id", "tastes": {"sweet": 10}},
        ])
        assert kb.ids == ["good"]
        report = kb.quarantine_report()
        assert report["loaded"] == 1
        assert report["quarantined"] == 2
        assert report["entries"][0]["item_id"] == "bad"
        assert report["entries"][0]["kind"] == "malformed-attribute-vector"

    def test_unknown_vector_keys_are_quarantined(self):
        kb = KnowledgeBase.from_records([
            _record("taste-typo", tastes={"sweet": 20, "pungnet": 80}),
            _record("dosha-typo", dosha_effect={"vata": -1, "vatta": 1}),
            _record("good"),
        ])
        assert kb.ids == ["good"]
        reasons = {entry.item_id: entry.reason for entry in kb.quarantine}
        assert "pungnet" in reasons["taste-typo"]
        assert "vatta" in reasons["dosha-typo"]
        assert all(entry.kind == "malformed-attribute-vector" for entry in kb.quarantine)

    def test_duplicate_ids_keep_first(self):
        kb = KnowledgeBase.from_records([_record("dup", name="First"), _record("dup", name="Second")])
        assert kb.get("dup").name == "First"
        assert kb.quarantine[0].kind == "duplicate-id"

    def test_constructor_rejects_duplicates(self):
        item = item_from_record(_record("x"))
        with pytest.raises(ValueError):
            KnowledgeBase([item, item])


class TestQuery:
    def test_query_is_restartable(self, sample_kb):
        snacks = sample_kb.query(lambda item: item.category == "snack")
        assert snacks.count() == 5
        assert snacks.to_list() == snacks.to_list()
        assert snacks.first().category == "snack"

    def test_where_chains(self, sample_kb):
        query = sample_kb.query().where(lambda item: item.category == "snack") \
            .where(lambda item: item.attributes.thermal is ThermalEffect.COOLING)
        assert all(item.category == "snack" for item in query)


class TestCsvLoading:
    def test_csv_rows(self, tmp_path):
        path = tmp_path / "items.csv"
        path.write_text(
            "id,Name,Category,sweet,sour,salty,pungent,bitter,astringent,Thermal Effect,seasons,ingredients,Energy (kcal)\n"
            'lassi,Sweet Lassi,Beverage,70,20,0,0,0,10,cooling,summer,"Yogurt, 1, cup, main; Sugar, 1, tbsp",180\n'
            "jeera-water,Jeera Water,Beverage,0,0,0,70,10,20,,,,\n",
            encoding="utf-8",
        )
        records = load_records(path)
        assert len(records) == 2
        kb = load_knowledge_base(path)
        assert len(kb) == 2
        lassi = kb.get("lassi")
        assert lassi.attributes.thermal is ThermalEffect.COOLING
        assert [ing.name for ing in lassi.ingredients] == ["Yogurt", "Sugar"]
        assert lassi.ingredients[1].unit == "tbsp"
        assert lassi.nutrients["calories"] == 180.0
        jeera = kb.get("jeera-water")
        assert jeera.seasons == ()
        assert jeera.ingredients == ()
        assert jeera.attributes.thermal is ThermalEffect.HEATING

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "items.xml"
        path.write_text("<items/>", encoding="utf-8")
        with pytest.raises(ValueError):
            load_records(path)
