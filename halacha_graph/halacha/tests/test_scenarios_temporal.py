"""
Scenario tests for prohibitions that change, or persist, as the family changes.
"""
from __future__ import annotations

from halacha_graph.scenario import ScenarioBuilder


def _rule_ids(status):
    return [applied.rule_id for applied in status.all_statuses]


def _wife_with_sister() -> ScenarioBuilder:
    builder = ScenarioBuilder("Wife's sister")
    builder.add_person("Yaakov", "male")
    builder.add_person("Leah", "female")
    builder.add_sibling("Leah", "Rochel", "female")
    builder.marry("Yaakov", "Leah")
    return builder


def _in_laws() -> ScenarioBuilder:
    builder = ScenarioBuilder("In-laws")
    builder.add_person("Lavan", "male")
    builder.add_person("Adah", "female")
    builder.marry("Lavan", "Adah")
    builder.add_child("Lavan", "Adah", "Leah", "female")
    builder.add_person("Yaakov", "male")
    builder.marry("Yaakov", "Leah")
    return builder


class TestWifesSister:
    """The wife's sister is forbidden only while the wife is his wife."""

    def test_during_marriage(self, status_engine, default_profile):
        engine = status_engine(_wife_with_sister())
        assert _rule_ids(engine.compute_status("yaakov", "rochel", 0, default_profile)) == ["ervah-wifes-sister"]
        assert not engine.is_marriage_permitted("yaakov", "rochel", 0, default_profile)

    def test_after_divorce(self, status_engine, default_profile):
        builder = _wife_with_sister()
        builder.next_slice("Divorce")
        builder.divorce("Yaakov", "Leah")
        engine = status_engine(builder)
        assert engine.is_marriage_permitted("yaakov", "rochel", 1, default_profile)

    def test_after_wifes_death(self, status_engine, default_profile):
        builder = _wife_with_sister()
        builder.next_slice("Leah dies")
        builder.die("Leah")
        engine = status_engine(builder)
        assert engine.compute_status("yaakov", "rochel", 1, default_profile).all_statuses == []
        assert not engine.is_marriage_permitted("yaakov", "rochel", 0, default_profile)


class TestPermanentRelationsByMarriage:
    """Relations created by a marriage outlive it."""

    def test_mother_in_law_after_divorce(self, status_engine, default_profile):
        builder = _in_laws()
        builder.next_slice("Divorce")
        builder.divorce("Yaakov", "Leah")
        engine = status_engine(builder)

        assert "ervah-mother-in-law" in _rule_ids(engine.compute_status("yaakov", "adah", 0, default_profile))
        status = engine.compute_status("yaakov", "adah", 1, default_profile)
        assert "ervah-mother-in-law" in _rule_ids(status)
        assert not engine.is_marriage_permitted("yaakov", "adah", 1, default_profile)

    def test_mother_in_law_after_widowhood(self, status_engine, default_profile):
        builder = _in_laws()
        builder.next_slice("Deaths")
        builder.die("Leah")
        builder.die("Lavan")
        engine = status_engine(builder)

        assert _rule_ids(engine.compute_status("yaakov", "adah", 1, default_profile)) == ["ervah-mother-in-law"]

    def test_daughter_in_law_after_sons_death(self, status_engine, default_profile):
        builder = ScenarioBuilder("Daughter-in-law")
        builder.add_person("Yehuda", "male")
        builder.add_child("Yehuda", None, "Er", "male")
        builder.add_person("Tamar", "female")
        builder.marry("Er", "Tamar")
        builder.next_slice("Er dies")
        builder.die("Er")
        engine = status_engine(builder)

        status = engine.compute_status("tamar", "yehuda", 1, default_profile)
        assert _rule_ids(status) == ["ervah-daughter-in-law"]
        assert status.primary_status.path.description.en == "Son's wife"
        assert status.zikah_info is None

    def test_fathers_wife_after_fathers_death(self, status_engine, default_profile):
        builder = ScenarioBuilder("Stepmother")
        builder.add_person("Yaakov", "male")
        builder.add_person("Leah", "female")
        builder.marry("Yaakov", "Leah")
        builder.add_child("Yaakov", "Leah", "Reuven", "male")
        builder.add_person("Bilhah", "female")
        builder.marry("Yaakov", "Bilhah")
        builder.next_slice("Yaakov dies")
        builder.die("Yaakov")
        engine = status_engine(builder)

        assert _rule_ids(engine.compute_status("reuven", "bilhah", 1, default_profile)) == ["ervah-fathers-wife"]
        assert engine.zikah_between("reuven", "bilhah", 1) is None

    def test_stepdaughter_after_divorce(self, status_engine, default_profile):
        builder = _in_laws()
        builder.add_child("Adah", None, "Peninah", "female")
        builder.next_slice("Divorce")
        builder.divorce("Lavan", "Adah")
        engine = status_engine(builder)

        assert "ervah-stepdaughter" in _rule_ids(engine.compute_status("lavan", "peninah", 1, default_profile))
