"""Typed feed profile parsing.

A feed profile names the raw-to-normalized column mapping, the score
scale factor, and the entity type rewrite for one feed. The default
profile describes the production discussion feed; YAML profiles let
alternate schemas reuse the same pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Sequence, cast

import yaml

from core.constants import (
    DEFAULT_SCORE_SCALE_FACTOR,
    DEFAULT_SCORE_VALUE,
    ENTITY_TYPE_FIELD_NAME,
    ENTITY_TYPE_SOURCE_VALUE,
    ENTITY_TYPE_TARGET_VALUE,
    KEY_FIELD_NAME,
    NORMALIZED_FIELD_NAMES,
    RAW_FIELD_NAMES,
    SCORE_FIELD_NAME,
    SUPPORTED_PROFILE_VERSION,
)
from core.errors import FeedProfileError
from core.types import FieldMapping

_ROOT_KEYS = {"version", "scale_factor", "key_field", "entity_type", "score", "fields"}
_ENTITY_TYPE_KEYS = {"field", "from", "to"}
_SCORE_KEYS = {"field", "default"}


@dataclass(frozen=True)
class FeedProfile:
    """Validated normalization profile for one feed.

    Attributes:
        field_mapping: Ordered raw-to-normalized column mapping.
        scale_factor: Multiplier applied to the score column.
        key_field: Normalized column used as the snapshot identity key.
        entity_type_field: Normalized column subject to the rewrite rule.
        entity_type_source: Exact raw value that is rewritten.
        entity_type_target: Replacement value.
        score_field: Normalized column holding the numeric score.
        score_default: Raw score used when the column is absent or empty.
    """

    field_mapping: FieldMapping
    scale_factor: float = DEFAULT_SCORE_SCALE_FACTOR
    key_field: str = KEY_FIELD_NAME
    entity_type_field: str = ENTITY_TYPE_FIELD_NAME
    entity_type_source: str = ENTITY_TYPE_SOURCE_VALUE
    entity_type_target: str = ENTITY_TYPE_TARGET_VALUE
    score_field: str = SCORE_FIELD_NAME
    score_default: str = DEFAULT_SCORE_VALUE


def default_field_mapping() -> FieldMapping:
    """Return the production discussion feed column mapping."""
    return FieldMapping(pairs=tuple(zip(RAW_FIELD_NAMES, NORMALIZED_FIELD_NAMES)))


def default_feed_profile(scale_factor: float = DEFAULT_SCORE_SCALE_FACTOR) -> FeedProfile:
    """Return the production discussion feed profile.

    Args:
        scale_factor: Score multiplier to apply.

    Returns:
        Default feed profile.
    """
    return FeedProfile(field_mapping=default_field_mapping(), scale_factor=scale_factor)


def load_feed_profile(
    profile_path: str,
    default_scale_factor: float = DEFAULT_SCORE_SCALE_FACTOR,
) -> FeedProfile:
    """Load and validate a YAML feed profile from disk.

    Args:
        profile_path: File path to YAML profile.
        default_scale_factor: Scale factor used when the profile omits one.

    Returns:
        Fully validated feed profile.

    Raises:
        FeedProfileError: If file is invalid or schema checks fail.
    """
    payload = _load_yaml_payload(profile_path)
    root_mapping = _expect_mapping(payload, "feed profile root")
    _validate_keys(root_mapping, _ROOT_KEYS, "feed profile root")
    _parse_version(root_mapping)
    field_mapping = _parse_fields(root_mapping)
    entity_type = _expect_mapping(root_mapping.get("entity_type", {}), "feed profile entity_type")
    _validate_keys(entity_type, _ENTITY_TYPE_KEYS, "feed profile entity_type")
    score = _expect_mapping(root_mapping.get("score", {}), "feed profile score")
    _validate_keys(score, _SCORE_KEYS, "feed profile score")
    profile = FeedProfile(
        field_mapping=field_mapping,
        scale_factor=_parse_scale_factor(root_mapping, default_scale_factor),
        key_field=_optional_string(root_mapping, "key_field", KEY_FIELD_NAME),
        entity_type_field=_optional_string(entity_type, "field", ENTITY_TYPE_FIELD_NAME),
        entity_type_source=_optional_string(entity_type, "from", ENTITY_TYPE_SOURCE_VALUE),
        entity_type_target=_optional_string(entity_type, "to", ENTITY_TYPE_TARGET_VALUE),
        score_field=_optional_string(score, "field", SCORE_FIELD_NAME),
        score_default=_optional_string(score, "default", DEFAULT_SCORE_VALUE),
    )
    _validate_profile_fields(profile)
    return profile


def _load_yaml_payload(profile_path: str) -> object:
    profile_file = Path(profile_path).expanduser().resolve()
    if not profile_file.exists():
        raise FeedProfileError(
            f"Feed profile does not exist at {profile_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(profile_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise FeedProfileError(
            f"Failed to read feed profile at {profile_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise FeedProfileError(
            f"Failed to parse YAML feed profile at {profile_file}: {error}. Fix YAML syntax."
        ) from error
    if payload is None:
        raise FeedProfileError(
            f"Feed profile at {profile_file} is empty. Define 'version' and 'fields'."
        )
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise FeedProfileError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise FeedProfileError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise FeedProfileError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def _validate_keys(mapping: Mapping[str, object], allowed: set[str], context: str) -> None:
    unknown_keys = sorted(mapping.keys() - allowed)
    if unknown_keys:
        raise FeedProfileError(
            f"Unsupported keys in {context}: {', '.join(unknown_keys)}. "
            f"Allowed keys: {', '.join(sorted(allowed))}."
        )


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if not isinstance(raw_version, int) or isinstance(raw_version, bool):
        raise FeedProfileError("Feed profile field 'version' must be an integer. Set version: 1.")
    if raw_version != SUPPORTED_PROFILE_VERSION:
        raise FeedProfileError(f"Unsupported feed profile version {raw_version}. Use version: 1.")
    return raw_version


def _parse_fields(root_mapping: Mapping[str, object]) -> FieldMapping:
    raw_fields = root_mapping.get("fields")
    if raw_fields is None:
        return default_field_mapping()
    rows = _expect_sequence(raw_fields, "feed profile fields")
    if len(rows) == 0:
        raise FeedProfileError("Feed profile field 'fields' must include at least one column.")
    pairs = []
    for index, row in enumerate(rows):
        context = f"feed profile field #{index + 1}"
        row_mapping = _expect_mapping(row, context)
        _validate_keys(row_mapping, {"raw", "normalized"}, context)
        raw_name = row_mapping.get("raw")
        normalized_name = row_mapping.get("normalized")
        if not isinstance(raw_name, str) or not isinstance(normalized_name, str):
            raise FeedProfileError(
                f"Invalid {context}: 'raw' and 'normalized' must both be strings."
            )
        pairs.append((raw_name, normalized_name))
    normalized_names = [normalized for _, normalized in pairs]
    if len(set(normalized_names)) != len(normalized_names):
        raise FeedProfileError(
            "Feed profile maps two columns to the same normalized name. "
            "Give every normalized column a unique name."
        )
    return FieldMapping(pairs=tuple(pairs))


def _parse_scale_factor(root_mapping: Mapping[str, object], default: float) -> float:
    raw_value = root_mapping.get("scale_factor", default)
    if isinstance(raw_value, bool) or not isinstance(raw_value, (int, float)):
        raise FeedProfileError(
            "Feed profile field 'scale_factor' must be a number, "
            f"got {type(raw_value).__name__}."
        )
    return float(raw_value)


def _optional_string(mapping: Mapping[str, object], key: str, default: str) -> str:
    value = mapping.get(key, default)
    if not isinstance(value, str):
        raise FeedProfileError(
            f"Feed profile field '{key}' must be a string, got {type(value).__name__}."
        )
    return value


def _validate_profile_fields(profile: FeedProfile) -> None:
    normalized_names = profile.field_mapping.normalized_names
    referenced_fields = (
        ("key_field", profile.key_field),
        ("entity_type.field", profile.entity_type_field),
        ("score.field", profile.score_field),
    )
    for setting, column in referenced_fields:
        if column not in normalized_names:
            raise FeedProfileError(
                f"Feed profile {setting} '{column}' is not a normalized column. "
                f"Use one of: {', '.join(normalized_names)}."
            )


def resolve_feed_profile(
    profile_path: str | None,
    default_scale_factor: float,
    scale_override: float | None = None,
) -> FeedProfile:
    """Resolve the effective profile for one invocation.

    Args:
        profile_path: Optional YAML profile path; default profile when omitted.
        default_scale_factor: Scale factor used when the profile omits one.
        scale_override: Explicit scale factor taking precedence over both.

    Returns:
        Effective feed profile.
    """
    if profile_path:
        profile = load_feed_profile(profile_path, default_scale_factor)
    else:
        profile = default_feed_profile(default_scale_factor)
    if scale_override is not None:
        profile = replace(profile, scale_factor=scale_override)
    return profile
