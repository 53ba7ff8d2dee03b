"""
Block (de)serialization.

Reads block dictionaries as written by authoring tools, accepting both the
snake_case field names used here and the camelCase keys of stored JSON.
"""
import json
from enum import Enum
from typing import Any, Mapping, Optional, TypeVar

from ..types import BlockId, MessageRole
from .base import ConfigurationError, Renderable
from .history import HistoryBlock, HistoryRole
from .plain import PlainBlock
from .toggle import ToggleBlock, ToggleType

E = TypeVar("E", bound=Enum)

BLOCK_TYPES: dict[str, type[Renderable]] = {
    PlainBlock.block_type: PlainBlock,
    HistoryBlock.block_type: HistoryBlock,
    ToggleBlock.block_type: ToggleBlock,
}

# Older block files call per-turn history projection "split"
HISTORY_ROLE_ALIASES: dict[str, str] = {
    "split": HistoryRole.MESSAGE.value,
}


def _get(data: Mapping[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if snake in data:
        return data[snake]
    return data.get(camel, default)


def _enum(enum_type: type[E], value: Any, field_name: str) -> E:
    try:
        return enum_type(value)
    except ValueError:
        valid = ", ".join(member.value for member in enum_type)
        raise ConfigurationError(
            f"Invalid {field_name}: {value!r} (expected one of: {valid})", field=field_name
        ) from None


def block_from_dict(data: Mapping[str, Any]) -> Renderable:
    """Create a block from a dictionary.

    Args:
        data: Dictionary with a ``type`` tag (plain, history or toggle),
            ``name``, ``role``, ``template`` and variant-specific fields.

    Returns:
        The constructed block.

    Raises:
        ConfigurationError: If the type, a role or a required field is invalid.

    Example:
        block = block_from_dict({
            "type": "toggle",
            "name": "mood",
            "role": "system",
            "template": "Mood: {{ toggle_value }}",
            "toggleType": "single",
            "id": "2f6c1b1e-5a3e-4a53-9d7e-0c8d2b1f9a10",
        })
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError("Block must be a dictionary")

    block_type = data.get("type", PlainBlock.block_type)
    if block_type not in BLOCK_TYPES:
        valid = ", ".join(BLOCK_TYPES)
        raise ConfigurationError(
            f"Unknown block type: {block_type!r} (expected one of: {valid})", field="type"
        )

    for required in ("name", "role", "template"):
        if required not in data:
            raise ConfigurationError(f"Missing required field: '{required}'", field=required)

    common: dict[str, Any] = {
        "name": data["name"],
        "role": _enum(MessageRole, data["role"], "role"),
        "template": data["template"],
        "is_delete_unnecessary_characters": bool(
            _get(data, "is_delete_unnecessary_characters", "isDeleteUnnecessaryCharacters", False)
        ),
    }

    if block_type == HistoryBlock.block_type:
        history_role = _get(data, "history_role", "historyRole", HistoryRole.MESSAGE.value)
        if isinstance(history_role, str):
            history_role = HISTORY_ROLE_ALIASES.get(history_role, history_role)
        return HistoryBlock(
            **common,
            history_role=_enum(HistoryRole, history_role, "history_role"),
            start=data.get("start"),
            end=data.get("end"),
            count_from_end=bool(_get(data, "count_from_end", "countFromEnd", False)),
        )

    if block_type == ToggleBlock.block_type:
        block_id: Optional[str] = data.get("id")
        return ToggleBlock(
            **common,
            toggle_type=_enum(
                ToggleType,
                _get(data, "toggle_type", "toggleType", ToggleType.SINGLE.value),
                "toggle_type",
            ),
            id=BlockId(str(block_id)) if block_id else BlockId.generate(),
        )

    return PlainBlock(**common)


def blocks_from_json(text: str) -> list[Renderable]:
    """Parse a JSON array (or a single object) of block dictionaries.

    Raises:
        ConfigurationError: If the JSON is malformed or a block is invalid.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})"
        ) from e

    if isinstance(data, Mapping):
        data = [data]
    if not isinstance(data, list):
        raise ConfigurationError("Blocks JSON must be an object or an array of objects")
    return [block_from_dict(item) for item in data]
