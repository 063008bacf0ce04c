"""Mapping helpers between function declarations/calls and the chat tools schema."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..content import FunctionCallPart
from ..errors import AdapterError
from ..response import FunctionCall

LOGGER = logging.getLogger(__name__)

EMPTY_PARAMETERS: Mapping[str, Any] = {"type": "object", "properties": {}}


@dataclass(frozen=True, slots=True)
class FunctionDeclaration:
    """A callable tool advertised to the model."""

    name: str
    description: str | None = None
    parameters: dict[str, Any] | None = field(default=None)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            msg = "function declaration name must be a non-empty string"
            raise AdapterError(msg)
        if self.description is not None and not isinstance(self.description, str):
            msg = "function declaration description must be a string when provided"
            raise AdapterError(msg)
        if self.parameters is not None:
            if not isinstance(self.parameters, Mapping):
                msg = "function declaration parameters must be a mapping"
                raise AdapterError(msg)
            object.__setattr__(self, "parameters", _normalize_schema(dict(self.parameters)))

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "FunctionDeclaration":
        parameters = _first_present(
            payload, "parameters", "parametersJsonSchema", "parameters_json_schema"
        )
        if parameters is not None:
            parameters = _coerce_mapping(parameters, path="functionDeclaration.parameters")
        return cls(
            name=payload.get("name") or "",
            description=payload.get("description"),
            parameters=parameters,
        )

    def to_openai(self) -> dict[str, Any]:
        function_payload: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            function_payload["description"] = self.description
        function_payload["parameters"] = (
            dict(self.parameters) if self.parameters is not None else dict(EMPTY_PARAMETERS)
        )
        return {"type": "function", "function": function_payload}


def tools_to_openai(tools: Sequence[Any] | None) -> list[dict[str, Any]] | None:
    """Flatten tool wrappers and bare declarations into chat ``tools`` entries.

    Returns ``None`` when nothing is declared so callers can omit the field.
    """

    if not tools:
        return None
    if isinstance(tools, (str, bytes, bytearray)) or not isinstance(tools, Sequence):
        msg = "tools must be provided as a sequence"
        raise AdapterError(msg)

    converted: list[dict[str, Any]] = []
    for index, tool in enumerate(tools):
        if isinstance(tool, FunctionDeclaration):
            converted.append(tool.to_openai())
            continue

        mapping = _coerce_mapping(tool, path=f"tools[{index}]")

        declarations = _first_present(mapping, "functionDeclarations", "function_declarations")
        if declarations is not None:
            for position, declaration in enumerate(declarations):
                if not isinstance(declaration, FunctionDeclaration):
                    declaration = FunctionDeclaration.from_mapping(
                        _coerce_mapping(declaration, path=f"tools[{index}].functionDeclarations[{position}]")
                    )
                converted.append(declaration.to_openai())
            continue

        if mapping.get("type") == "function" and isinstance(mapping.get("function"), Mapping):
            converted.append(dict(mapping))
            continue

        if mapping.get("name"):
            converted.append(FunctionDeclaration.from_mapping(mapping).to_openai())
            continue

        LOGGER.warning("skipping tools[%s]: no function declarations found", index)

    return converted or None


def function_call_to_openai(part: FunctionCallPart) -> dict[str, Any]:
    """Convert a function-call part into a chat ``tool_calls`` entry."""

    return {
        "id": part.id or synthesize_call_id(),
        "type": "function",
        "function": {
            "name": part.name,
            "arguments": json.dumps(part.args or {}, ensure_ascii=False),
        },
    }


def normalize_tool_calls(tool_calls: Sequence[Any] | None) -> tuple[FunctionCall, ...]:
    """Convert completed chat tool calls into :class:`FunctionCall` objects."""

    if not tool_calls:
        return ()

    normalized: list[FunctionCall] = []
    for index, item in enumerate(tool_calls):
        mapping = _coerce_mapping(item, path=f"tool_calls[{index}]")
        if mapping.get("type", "function") != "function":
            continue

        function_mapping = _coerce_mapping(mapping.get("function") or {}, path=f"tool_calls[{index}].function")
        name = function_mapping.get("name")
        if not name:
            continue

        normalized.append(
            FunctionCall(
                name=name,
                args=parse_tool_arguments(function_mapping.get("arguments")),
                id=mapping.get("id"),
            )
        )

    return tuple(normalized)


def parse_tool_arguments(raw: Any) -> dict[str, Any]:
    """Decode tool-call arguments, yielding ``{}`` for anything but a JSON object."""

    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if not isinstance(raw, str):
        LOGGER.debug("ignoring non-string tool arguments of type %s", type(raw).__name__)
        return {}

    try:
        parsed = json.loads(raw or "{}")
    except json.JSONDecodeError:
        LOGGER.debug("malformed tool arguments treated as empty: %r", raw)
        return {}

    if not isinstance(parsed, dict):
        LOGGER.debug("tool arguments decoded to %s, expected an object", type(parsed).__name__)
        return {}
    return parsed


def synthesize_call_id() -> str:
    return f"call_{uuid.uuid4().hex}"


def _normalize_schema(value: Any) -> Any:
    # Gemini schemas spell types in upper case ("OBJECT"); JSON Schema wants lower case.
    if isinstance(value, Mapping):
        normalized: dict[str, Any] = {}
        for key, inner in value.items():
            if inner is None:
                continue
            if key == "type" and isinstance(inner, str):
                normalized[key] = inner.lower()
            else:
                normalized[key] = _normalize_schema(inner)
        return normalized

    if isinstance(value, list):
        return [_normalize_schema(inner) for inner in value]

    return value


def _first_present(mapping: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def _coerce_mapping(value: Any, *, path: str) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value

    if hasattr(value, "model_dump"):
        dumped = value.model_dump(exclude_none=True)
        if isinstance(dumped, Mapping):
            return dumped

    msg = f"{path} must be a mapping"
    raise AdapterError(msg)
