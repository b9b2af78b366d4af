"""
Scenario tests for a brother's wife through marriage, widowhood and the
levirate bond.
"""
from __future__ import annotations

from halacha_graph.halacha.model import ZikahStatus
from halacha_graph.scenario import ScenarioBuilder


def _rule_ids(status):
    return [applied.rule_id for applied in status.all_statuses]


class TestDuringMarriage:
    """Reuven is alive and married to Rochel."""

    def test_forbidden_as_married_woman_and_brothers_wife(self, status_engine, brothers_family, default_profile):
        engine = status_engine(brothers_family())
        status = engine.compute_status("shimon", "rochel", 0, default_profile)

        assert set(_rule_ids(status)) == {"ervah-aishes-ish", "ervah-brothers-wife"}
        assert status.primary_category.id == "ervah-doraita"
        assert status.zikah_info is None
        assert not engine.is_marriage_permitted("shimon", "rochel", 0, default_profile)

    def test_husband_and_wife(self, status_engine, brothers_family, default_profile):
        engine = status_engine(brothers_family())
        status = engine.compute_status("rochel", "reuven", 0, default_profile)
        assert _rule_ids(status) == ["wife-current"]
        assert engine.is_marriage_permitted("reuven", "rochel", 0, default_profile)


class TestChildlessDeath:
    """Reuven dies without children."""

    def test_bond_lifts_prohibition(self, status_engine, childless_widow, default_profile):
        engine = status_engine(childless_widow())
        status = engine.compute_status("shimon", "rochel", 1, default_profile)

        assert _rule_ids(status) == ["ervah-brothers-wife", "zikah-active"]
        assert status.zikah_info.is_active
        assert status.zikah_info.deceased_id == "reuven"
        assert engine.is_marriage_permitted("shimon", "rochel", 1, default_profile)
        assert engine.is_marriage_permitted("rochel", "shimon", 1, default_profile)

    def test_brothers_wife_path_is_reported(self, status_engine, childless_widow, default_profile):
        status = status_engine(childless_widow()).compute_status("shimon", "rochel", 1, default_profile)
        applied = status.primary_status
        assert applied.path.person_ids == ["reuven", "rochel"]
        assert applied.path.description.en == "Brother's wife"
        assert applied.sources == ["Vayikra 18:16"]
        assert applied.source == "Vayikra 18:16"

    def test_unrelated_man_is_permitted(self, status_engine, childless_widow, default_profile):
        builder = childless_widow()
        builder.add_person("Yehuda", "male")
        engine = status_engine(builder)
        assert engine.compute_status("yehuda", "rochel", 1, default_profile).all_statuses == []
        assert engine.is_marriage_permitted("yehuda", "rochel", 1, default_profile)


class TestDeathWithChildren:
    """Reuven leaves a living son."""

    def test_brothers_wife_stays_forbidden(self, status_engine, brothers_family, default_profile):
        builder = brothers_family()
        builder.add_child("Reuven", "Rochel", "Chanoch", "male")
        builder.next_slice()
        builder.die("Reuven")
        engine = status_engine(builder)

        status = engine.compute_status("shimon", "rochel", 1, default_profile)
        assert _rule_ids(status) == ["ervah-brothers-wife"]
        assert status.zikah_info is None
        assert not engine.is_marriage_permitted("shimon", "rochel", 1, default_profile)


class TestLaterBrother:
    """A brother born after Reuven's death never enters the bond."""

    def test_late_brother_is_forbidden(self, status_engine, childless_widow, default_profile):
        builder = childless_widow()
        builder.next_slice("Levi born")
        builder.add_sibling("Reuven", "Levi", "male")
        engine = status_engine(builder)

        assert not engine.is_marriage_permitted("levi", "rochel", 2, default_profile)
        assert engine.zikah_between("levi", "rochel", 2) is None
        assert engine.is_marriage_permitted("shimon", "rochel", 2, default_profile)


class TestBondResolution:
    """Yibum and chalitzah end the bond for every brother."""

    def test_after_yibum(self, status_engine, childless_widow, default_profile):
        builder = childless_widow(("Shimon", "Levi"))
        builder.next_slice("Yibum")
        builder.yibum("Shimon", "Rochel")
        engine = status_engine(builder)

        yavam = engine.compute_status("shimon", "rochel", 2, default_profile)
        assert yavam.has_category("mutar")
        assert "ervah-aishes-ish" not in _rule_ids(yavam)
        assert yavam.zikah_info.status == ZikahStatus.AFTER_YIBUM
        assert not yavam.zikah_info.is_active

        other = engine.compute_status("levi", "rochel", 2, default_profile)
        assert "ervah-aishes-ish" in _rule_ids(other)
        assert not engine.is_marriage_permitted("levi", "rochel", 2, default_profile)

    def test_after_chalitzah(self, status_engine, childless_widow, default_profile):
        builder = childless_widow(("Shimon", "Levi"))
        builder.next_slice("Chalitzah")
        builder.chalitzah("Levi", "Rochel")
        engine = status_engine(builder)

        for brother in ("shimon", "levi"):
            status = engine.compute_status(brother, "rochel", 2, default_profile)
            assert _rule_ids(status) == ["ervah-brothers-wife"]
            assert status.zikah_info.status == ZikahStatus.AFTER_CHALITZAH
            assert not engine.is_marriage_permitted(brother, "rochel", 2, default_profile)

    def test_after_maamar(self, status_engine, childless_widow, default_profile):
        builder = childless_widow()
        builder.next_slice("Maamar")
        builder.erusin("Shimon", "Rochel")
        engine = status_engine(builder)

        status = engine.compute_status("shimon", "rochel", 2, default_profile)
        assert status.zikah_info.status == ZikahStatus.AFTER_MAAMAR
        assert status.zikah_info.maamar_by == "shimon"
        assert engine.is_marriage_permitted("shimon", "rochel", 2, default_profile)


class TestExcludedBrother:
    """A brother married to the widow's sister is not bound to her."""

    def test_wifes_sister_excludes_brother(self, status_engine, default_profile):
        builder = ScenarioBuilder("Two sisters")
        builder.add_person("Reuven", "male")
        builder.add_sibling("Reuven", "Shimon", "male")
        builder.add_sibling("Reuven", "Levi", "male")
        builder.add_person("Rochel", "female")
        builder.add_sibling("Rochel", "Leah", "female")
        builder.marry("Reuven", "Rochel")
        builder.marry("Shimon", "Leah")
        builder.next_slice("Reuven dies")
        builder.die("Reuven")
        engine = status_engine(builder)

        assert [person.id for person in engine.get_yevamim_for("rochel", 1)] == ["levi"]
        assert engine.is_forbidden_relation("shimon", "rochel", 1)
        assert not engine.is_forbidden_relation("levi", "rochel", 1)

        shimon = engine.compute_status("shimon", "rochel", 1, default_profile)
        assert "ervah-wifes-sister" in _rule_ids(shimon)
        assert "zikah-active" not in _rule_ids(shimon)
        assert not engine.is_marriage_permitted("shimon", "rochel", 1, default_profile)
        assert engine.is_marriage_permitted("levi", "rochel", 1, default_profile)
