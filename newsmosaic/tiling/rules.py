"""Tiling rules loading, validation and partial overrides.

The default rules document ships next to this module and is parsed once
per process. Overrides are deep-merged over a base document and the
result is validated again, so a malformed override fails the same way a
malformed document does.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from newsmosaic.models.schemas import TilingRules

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "tiling_rules.json"


class RulesConfigError(Exception):
    """Raised when a tiling rules document is missing, unreadable or invalid."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        if source:
            message = f"{message} (source: {source})"
        super().__init__(message)


def _read_document(path: Path) -> dict:
    """Read a JSON rules document from disk."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise RulesConfigError("Tiling rules document not found", source=str(path))
    except json.JSONDecodeError as e:
        raise RulesConfigError(f"Tiling rules document is not valid JSON: {e}", source=str(path))
    except OSError as e:
        raise RulesConfigError(f"Cannot read tiling rules document: {e}", source=str(path))

    if not isinstance(data, dict):
        raise RulesConfigError("Tiling rules document must be a JSON object", source=str(path))
    return data


def parse_tiling_rules(data: Mapping[str, Any], source: Optional[str] = None) -> TilingRules:
    """Validate a raw rules mapping.

    Args:
        data: Rules document with camelCase or snake_case keys.
        source: Where the document came from, for error messages.

    Returns:
        Immutable TilingRules.

    Raises:
        RulesConfigError: If the document does not match the schema.
    """
    try:
        return TilingRules.model_validate(dict(data))
    except ValidationError as e:
        raise RulesConfigError(f"Invalid tiling rules: {e}", source=source) from e


@lru_cache(maxsize=1)
def _load_default_rules() -> TilingRules:
    rules = parse_tiling_rules(_read_document(DEFAULT_RULES_PATH), source=str(DEFAULT_RULES_PATH))
    logger.info(
        f"Loaded tiling rules: {len(rules.tile_shapes)} shapes, "
        f"fallback={rules.placement_rules.fallback_strategy.value}"
    )
    return rules


def load_tiling_rules(path: Optional[Union[str, Path]] = None) -> TilingRules:
    """Load tiling rules.

    The packaged default document is parsed once and shared; an explicit
    path is read on every call.

    Raises:
        RulesConfigError: If the document is missing or malformed.
    """
    if not path:
        return _load_default_rules()

    path = Path(path).expanduser()
    rules = parse_tiling_rules(_read_document(path), source=str(path))
    logger.info(f"Loaded tiling rules from {path}: {len(rules.tile_shapes)} shapes")
    return rules


def _to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _normalize(value: Any) -> Any:
    """Convert models to plain documents and mapping keys to camelCase."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, Mapping):
        return {_to_camel(str(k)): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [
            v.model_dump(mode="json", by_alias=True) if isinstance(v, BaseModel) else v
            for v in value
        ]
    return value


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict:
    """Merge ``override`` into a copy of ``base``.

    Nested mappings merge key by key; any other value (lists included)
    replaces the base value wholesale.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def merge_rules(
    base: TilingRules,
    override: Optional[Mapping[str, Any]] = None,
) -> TilingRules:
    """Apply a partial override to a rules document.

    Args:
        base: Rules to start from.
        override: Subset of the rules document. Keys may be camelCase or
            snake_case; values may be plain data or model instances.

    Returns:
        New validated TilingRules. ``base`` is returned as-is when there
        is nothing to merge.

    Raises:
        RulesConfigError: If the merged document is invalid.
    """
    if not override:
        return base

    merged = deep_merge(base.to_document(), _normalize(override))
    return parse_tiling_rules(merged, source="override")
