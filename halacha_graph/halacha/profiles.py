"""Opinion profile helpers."""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Optional

from halacha_graph.halacha.model import OpinionProfile
from halacha_graph.halacha.registry import HalachicRegistry


def create_default_opinion_profile(registry: HalachicRegistry, profile_id: str = "default") -> OpinionProfile:
    """Select each dispute's default opinion, or its first opinion when none is declared."""
    selections: Dict[str, str] = {}
    for machlokas in registry.machlokos:
        opinion = machlokas.default_opinion
        if opinion is not None:
            selections[machlokas.id] = opinion.id
    return OpinionProfile(id=profile_id, name="Default", selections=selections)


def profile_with(profile: OpinionProfile, machlokas_id: str, opinion_id: str, profile_id: Optional[str] = None) -> OpinionProfile:
    """A copy of ``profile`` with one selection changed."""
    return profile_with_selections(profile, {machlokas_id: opinion_id}, profile_id)


def profile_with_selections(
    profile: OpinionProfile, selections: Dict[str, str], profile_id: Optional[str] = None
) -> OpinionProfile:
    merged = dict(profile.selections)
    merged.update(selections)
    return replace(profile, id=profile_id or profile.id, selections=merged)
