"""
Levirate bond (zikah) tracking.

A bond forms when a married man dies without living children while he has
brothers alive at the moment of his death. It binds his widow to each
eligible brother until one of them performs yibum (levirate marriage) or
chalitzah (release), which resolves it for all of them.

The tracker scans the whole timeline once, lazily, and caches the records
until ``refresh()``. It does not know rule semantics: whether a brother is
in an independently forbidden relation with the widow is answered by a
predicate supplied by the caller.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, List, Optional

from halacha_graph.events import EventRef, PersonDied, RelationshipAdded, RelationshipUpdated
from halacha_graph.halacha.model import ZikahInfo, ZikahStatus
from halacha_graph.query_engine import GraphQueryEngine
from halacha_graph.relationship import RelationshipType, parse_relationship_type

logger = logging.getLogger(__name__)

# (brother_id, widow_id, slice_index) -> True if the brother is excluded
ForbiddenRelationPredicate = Callable[[str, str, int], bool]

_RESOLUTIONS = {
    RelationshipType.YIBUM: ZikahStatus.AFTER_YIBUM,
    RelationshipType.CHALITZAH: ZikahStatus.AFTER_CHALITZAH,
}


@dataclass
class ZikahRecord:
    """
    One bond, arising from one marriage ended by the husband's death.

    Attributes:
        widow_id: The widow.
        deceased_id: The late husband.
        marriage_edge_id: Marriage the bond arose from.
        brother_ids: Brothers eligible at the moment of death.
        created_at: The husband's death event.
        status: Current (final) status after the whole timeline.
        resolved_at: Event of the yibum or chalitzah, if any.
        resolution: Resolving edge type value.
        resolved_by: Brother who resolved the bond.
        maamar_at: Event of a betrothal by an eligible brother, if any.
        maamar_by: Brother who performed it.
    """
    widow_id: str
    deceased_id: str
    marriage_edge_id: str
    brother_ids: List[str]
    created_at: EventRef
    status: ZikahStatus = ZikahStatus.AWAITING
    resolved_at: Optional[EventRef] = None
    resolution: Optional[str] = None
    resolved_by: Optional[str] = None
    maamar_at: Optional[EventRef] = None
    maamar_by: Optional[str] = None

    @property
    def created_at_index(self) -> int:
        return self.created_at.slice_index

    def links(self, x: str, y: str) -> bool:
        return (x == self.widow_id and y in self.brother_ids) or (y == self.widow_id and x in self.brother_ids)

    def exists_at(self, index: int) -> bool:
        return self.created_at.slice_index <= index

    def is_open_at(self, index: int) -> bool:
        return self.exists_at(index) and (self.resolved_at is None or self.resolved_at.slice_index > index)

    def status_at(self, index: int) -> ZikahStatus:
        if self.resolved_at is not None and self.resolved_at.slice_index <= index:
            return self.status
        if self.maamar_at is not None and self.maamar_at.slice_index <= index:
            return ZikahStatus.AFTER_MAAMAR
        return ZikahStatus.AWAITING


class ZikahTracker:
    """
    Builds and queries zikah records for a graph.

    Attributes:
        engine: Query engine over the graph.
        forbidden_relation: Predicate excluding brothers forbidden to the widow.
    """

    def __init__(self, engine: GraphQueryEngine, forbidden_relation: Optional[ForbiddenRelationPredicate] = None):
        self.engine = engine
        self.forbidden_relation = forbidden_relation
        self._records: Optional[List[ZikahRecord]] = None

    def set_forbidden_relation_checker(self, predicate: Optional[ForbiddenRelationPredicate]) -> None:
        self.forbidden_relation = predicate
        self._records = None

    @property
    def records(self) -> List[ZikahRecord]:
        if self._records is None:
            self._records = self._scan()
        return self._records

    def refresh(self, engine: Optional[GraphQueryEngine] = None) -> None:
        """Drop the cached scan; optionally rebind to a rebuilt query engine."""
        if engine is not None:
            self.engine = engine
        self._records = None

    # ------------------------------------------------------------------
    # Timeline scan
    # ------------------------------------------------------------------

    def _scan(self) -> List[ZikahRecord]:
        records: List[ZikahRecord] = []
        for ref, event in self.engine.graph.timeline():
            if isinstance(event, PersonDied):
                records.extend(self._records_for_death(event.person_id, ref))
            elif isinstance(event, RelationshipAdded):
                edge = self.engine.graph.relationship(event.edge_id)
                if edge is not None:
                    self._apply_act(records, edge.type, edge.source_id, edge.target_id, ref)
            elif isinstance(event, RelationshipUpdated):
                if "type" not in event.changes:
                    continue
                new_type = parse_relationship_type(event.changes["type"], f"update of edge {event.edge_id}")
                edge = self.engine.relationship_state_when(event.edge_id, ref)
                if new_type is not None and edge is not None:
                    self._apply_act(records, new_type, edge.source_id, edge.target_id, ref)
        logger.info(f"Zikah scan found {len(records)} record(s)")
        return records

    def _records_for_death(self, deceased_id: str, death: EventRef) -> List[ZikahRecord]:
        deceased = self.engine.graph.person(deceased_id)
        if deceased is None or not deceased.is_male:
            return []

        marriages = self.engine.marriages_when(deceased_id, death)
        if not marriages:
            return []
        if self.engine.had_living_children_when(deceased_id, death):
            logger.debug(f"{deceased_id} left living children; no zikah")
            return []

        brothers = [
            brother.id for brother in self.engine.brothers_of(deceased_id, death.slice_index)
            if self.engine.was_alive_when(brother.id, death)
        ]

        records = []
        for marriage in marriages:
            widow_id = marriage.other_party(deceased_id)
            if not self.engine.was_alive_when(widow_id, death):
                continue
            eligible = [
                brother_id for brother_id in brothers
                if not (self.forbidden_relation and self.forbidden_relation(brother_id, widow_id, death.slice_index))
            ]
            if not eligible:
                logger.debug(f"No eligible brothers of {deceased_id} for {widow_id}")
                continue
            record = ZikahRecord(
                widow_id=widow_id,
                deceased_id=deceased_id,
                marriage_edge_id=marriage.id,
                brother_ids=eligible,
                created_at=death,
            )
            logger.info(f"Zikah formed at {death}: {widow_id} bound to {eligible}")
            records.append(record)
        return records

    def _apply_act(self, records: List[ZikahRecord], edge_type: RelationshipType, x: str, y: str, ref: EventRef) -> None:
        if edge_type not in _RESOLUTIONS and edge_type != RelationshipType.ERUSIN:
            return
        for record in records:
            if record.resolved_at is not None or record.created_at >= ref or not record.links(x, y):
                continue
            brother_id = y if x == record.widow_id else x
            if edge_type == RelationshipType.ERUSIN:
                if record.maamar_at is None:
                    record.status = ZikahStatus.AFTER_MAAMAR
                    record.maamar_at = ref
                    record.maamar_by = brother_id
                    logger.info(f"Maamar at {ref}: {brother_id} with {record.widow_id}")
                continue
            record.status = _RESOLUTIONS[edge_type]
            record.resolved_at = ref
            record.resolution = edge_type.value
            record.resolved_by = brother_id
            logger.info(f"Zikah of {record.widow_id} resolved by {edge_type.value} with {brother_id} at {ref}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _info(self, record: ZikahRecord, index: int, counterpart: Optional[str] = None) -> ZikahInfo:
        living = [b for b in record.brother_ids if self.engine.is_alive(b, index)]
        active = record.is_open_at(index) and self.engine.is_alive(record.widow_id, index) and bool(living)
        if counterpart is not None and counterpart != record.widow_id:
            active = active and counterpart in living
        resolved = record.resolved_at is not None and record.resolved_at.slice_index <= index
        return ZikahInfo(
            is_active=active,
            widow_id=record.widow_id,
            deceased_id=record.deceased_id,
            bound_to=living,
            status=record.status_at(index),
            originating_marriage_id=record.marriage_edge_id,
            created_at_index=record.created_at_index,
            resolved_at_index=record.resolved_at.slice_index if resolved else None,
            resolution=record.resolution if resolved else None,
            resolved_by=record.resolved_by if resolved else None,
            maamar_by=record.maamar_by if record.status_at(index) == ZikahStatus.AFTER_MAAMAR else None,
        )

    def zikah_between(self, x: str, y: str, index: int) -> Optional[ZikahInfo]:
        """
        The bond linking a widow and a brother, as seen at ``index``.

        Returns:
            ZikahInfo for the latest record linking the pair that exists by
            ``index``, or None.
        """
        for record in reversed(self.records):
            if record.exists_at(index) and record.links(x, y):
                brother = y if x == record.widow_id else x
                return self._info(record, index, counterpart=brother)
        return None

    def zikah_info(self, widow_id: str, index: int) -> Optional[ZikahInfo]:
        """Latest bond of a widow existing by ``index``."""
        for record in reversed(self.records):
            if record.exists_at(index) and record.widow_id == widow_id:
                return self._info(record, index)
        return None

    def has_active_zikah(self, x: str, y: str, index: int) -> bool:
        info = self.zikah_between(x, y, index)
        return info is not None and info.is_active

    def active_records(self, index: int) -> List[ZikahRecord]:
        return [record for record in self.records if self._info(record, index).is_active]

    def yevamos_at(self, index: int) -> List[str]:
        """Widows under an active bond at ``index``."""
        widows: List[str] = []
        for record in self.active_records(index):
            if record.widow_id not in widows:
                widows.append(record.widow_id)
        return widows

    def yevamim_for(self, widow_id: str, index: int) -> List[str]:
        """Living brothers a widow is bound to at ``index``."""
        brothers: List[str] = []
        for record in self.active_records(index):
            if record.widow_id == widow_id:
                brothers.extend(b for b in self._info(record, index).bound_to if b not in brothers)
        return brothers

    def is_yevama(self, person_id: str, index: int) -> bool:
        return person_id in self.yevamos_at(index)

    def is_yavam(self, person_id: str, index: int) -> bool:
        return any(
            person_id in self._info(record, index).bound_to
            for record in self.active_records(index)
        )
