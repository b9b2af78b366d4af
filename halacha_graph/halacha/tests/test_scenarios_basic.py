"""
Scenario tests for blood relations and married women.
"""
from __future__ import annotations

import pytest

from halacha_graph.scenario import ScenarioBuilder


@pytest.fixture
def three_generations():
    """Avraham and Sarah; their son Yitzchak married to Rivka; Yitzchak's children Esav and Dina."""
    builder = ScenarioBuilder("Three generations")
    builder.add_person("Avraham", "male")
    builder.add_person("Sarah", "female")
    builder.marry("Avraham", "Sarah")
    builder.add_child("Avraham", "Sarah", "Yitzchak", "male")
    builder.add_child("Avraham", "Sarah", "Milkah", "female")
    builder.add_person("Rivka", "female")
    builder.marry("Yitzchak", "Rivka")
    builder.add_child("Yitzchak", "Rivka", "Esav", "male")
    builder.add_child("Yitzchak", "Rivka", "Dina", "female")
    return builder


class TestBloodRelations:
    """Tests for the close relatives forbidden by blood."""

    @pytest.mark.parametrize("man, woman, rule_id", [
        ("esav", "rivka", "ervah-mother"),
        ("yitzchak", "dina", "ervah-daughter"),
        ("esav", "dina", "ervah-sister"),
        ("esav", "milkah", "ervah-fathers-sister"),
        ("yitzchak", "milkah", "ervah-sister"),
    ])
    def test_forbidden_relative(self, status_engine, three_generations, default_profile, man, woman, rule_id):
        engine = status_engine(three_generations)
        status = engine.compute_status(man, woman, 0, default_profile)
        assert rule_id in [applied.rule_id for applied in status.all_statuses]
        assert status.primary_category.id == "ervah-doraita"
        assert not engine.is_marriage_permitted(man, woman, 0, default_profile)

    def test_grandmother_is_secondary(self, status_engine, three_generations, default_profile):
        engine = status_engine(three_generations)
        status = engine.compute_status("esav", "sarah", 0, default_profile)
        assert [applied.rule_id for applied in status.all_statuses] == ["ervah-aishes-ish", "shniyah-grandmother"]
        assert status.all_statuses[1].category.id == "shniyah"

    def test_granddaughter(self, status_engine, three_generations, default_profile):
        status = status_engine(three_generations).compute_status("avraham", "dina", 0, default_profile)
        by_rule = {applied.rule_id: applied for applied in status.all_statuses}
        assert by_rule["shniyah-granddaughter"].path.description.en == "Son's daughter"
        assert by_rule["ervah-wifes-granddaughter"].path.description.en == "Wife's son's daughter"
        assert status.primary_status.rule_id == "ervah-wifes-granddaughter"

    def test_brother_and_sister_in_either_order(self, status_engine, three_generations, default_profile):
        engine = status_engine(three_generations)
        assert engine.compute_status("dina", "esav", 0, default_profile) is engine.compute_status("esav", "dina", 0, default_profile)
        assert engine.get_primary_category("dina", "esav", 0, default_profile).id == "ervah-doraita"

    def test_cousins_are_permitted(self, status_engine, default_profile):
        builder = ScenarioBuilder("Cousins")
        builder.add_person("Avraham", "male")
        builder.add_sibling("Avraham", "Haran", "male")
        builder.add_child("Avraham", None, "Yitzchak", "male")
        builder.add_child("Haran", None, "Milkah", "female")
        engine = status_engine(builder)

        assert engine.compute_status("yitzchak", "milkah", 0, default_profile).all_statuses == []
        assert engine.is_marriage_permitted("yitzchak", "milkah", 0, default_profile)


class TestMarriedWoman:
    """Tests for a married woman and other men."""

    @pytest.fixture
    def couple(self):
        builder = ScenarioBuilder("Couple")
        builder.add_person("Reuven", "male")
        builder.add_person("Rochel", "female")
        builder.add_person("Yehuda", "male")
        builder.marry("Reuven", "Rochel")
        return builder

    def test_married_woman(self, status_engine, couple, default_profile):
        engine = status_engine(couple)
        status = engine.compute_status("yehuda", "rochel", 0, default_profile)
        assert [applied.rule_id for applied in status.all_statuses] == ["ervah-aishes-ish"]
        assert status.primary_status.explanation
        assert not engine.is_marriage_permitted("yehuda", "rochel", 0, default_profile)

    def test_betrothed_woman(self, status_engine, default_profile):
        builder = ScenarioBuilder("Betrothal")
        builder.add_person("Reuven", "male")
        builder.add_person("Rochel", "female")
        builder.add_person("Yehuda", "male")
        builder.erusin("Reuven", "Rochel")
        assert status_engine(builder).has_status("yehuda", "rochel", "ervah-doraita", 0, default_profile)

    def test_widow(self, status_engine, couple, default_profile):
        couple.next_slice("Widowhood")
        couple.die("Reuven")
        engine = status_engine(couple)
        assert engine.compute_status("yehuda", "rochel", 1, default_profile).primary_status is None
        assert engine.is_marriage_permitted("yehuda", "rochel", 1, default_profile)

    def test_divorcee(self, status_engine, couple, default_profile):
        couple.next_slice("Divorce")
        couple.divorce("Reuven", "Rochel")
        engine = status_engine(couple)
        assert engine.has_status("yehuda", "rochel", "ervah-doraita", 0, default_profile)
        assert not engine.has_status("yehuda", "rochel", "ervah-doraita", 1, default_profile)
        assert engine.is_marriage_permitted("yehuda", "rochel", 1, default_profile)
        assert engine.compute_status("reuven", "rochel", 1, default_profile).all_statuses == []
