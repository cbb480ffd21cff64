"""Raw-to-normalized feed row transform.

This module renames raw columns, rewrites the entity type, and rescales
the score. It is a pure, total function over string inputs.
"""

from __future__ import annotations

from core.constants import DEFAULT_FIELD_VALUE
from core.feed_profile import FeedProfile
from core.types import NormalizedRecord, RawRecord
from transforms.score_scaling import scale_score


def transform_record(raw_record: RawRecord, profile: FeedProfile) -> NormalizedRecord:
    """Map one raw record onto the normalized schema.

    Args:
        raw_record: Raw field values keyed by raw column name.
        profile: Field mapping, scale factor, and rewrite rules.

    Returns:
        Normalized record keyed in field mapping order. Unknown raw
        fields are dropped; missing ones take their defaults.
    """
    normalized: NormalizedRecord = {}
    for raw_name, normalized_name in profile.field_mapping.pairs:
        value = raw_record.get(raw_name, DEFAULT_FIELD_VALUE)
        if normalized_name == profile.score_field:
            value = scale_score(value or profile.score_default, profile.scale_factor)
        elif normalized_name == profile.entity_type_field:
            value = rewrite_entity_type(value, profile)
        normalized[normalized_name] = value
    return normalized


def rewrite_entity_type(value: str, profile: FeedProfile) -> str:
    """Replace the entity type on exact match only; no case folding."""
    if value == profile.entity_type_source:
        return profile.entity_type_target
    return value
