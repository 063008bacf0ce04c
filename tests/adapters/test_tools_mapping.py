from __future__ import annotations

import pytest

from qwen_bridge.core import AdapterError
from qwen_bridge.core.adapters.toolbridge import (
    FunctionDeclaration,
    normalize_tool_calls,
    parse_tool_arguments,
    tools_to_openai,
)

_WEATHER_PARAMETERS = {
    "type": "OBJECT",
    "properties": {
        "city": {"type": "STRING", "description": "City name"},
        "days": {"type": "INTEGER"},
    },
    "required": ["city"],
}


def test_wrapped_declarations_are_flattened() -> None:
    tools = [
        {
            "functionDeclarations": [
                {"name": "get_weather", "description": "Weather", "parameters": _WEATHER_PARAMETERS},
                {"name": "get_time"},
            ]
        },
        {"function_declarations": [{"name": "noop", "description": "Nothing"}]},
    ]

    converted = tools_to_openai(tools)

    assert [tool["function"]["name"] for tool in converted] == ["get_weather", "get_time", "noop"]
    assert converted[0]["function"]["parameters"] == {
        "type": "object",
        "properties": {
            "city": {"type": "string", "description": "City name"},
            "days": {"type": "integer"},
        },
        "required": ["city"],
    }
    assert converted[1]["function"] == {
        "name": "get_time",
        "parameters": {"type": "object", "properties": {}},
    }


def test_bare_declaration_is_accepted() -> None:
    converted = tools_to_openai([{"name": "search", "description": "Search the web"}])

    assert converted == [
        {
            "type": "function",
            "function": {
                "name": "search",
                "description": "Search the web",
                "parameters": {"type": "object", "properties": {}},
            },
        }
    ]


def test_chat_format_tools_pass_through() -> None:
    tool = {"type": "function", "function": {"name": "calc", "parameters": {"type": "object", "properties": {}}}}

    assert tools_to_openai([tool]) == [tool]


def test_declaration_instances_are_accepted() -> None:
    declaration = FunctionDeclaration(name="echo", parameters={"type": "object", "properties": {"text": {"type": "string"}}})

    [converted] = tools_to_openai([declaration])

    assert converted["function"]["parameters"]["properties"] == {"text": {"type": "string"}}


def test_empty_tools_are_omitted() -> None:
    assert tools_to_openai(None) is None
    assert tools_to_openai([]) is None
    assert tools_to_openai([{"googleSearch": {}}]) is None


def test_declaration_requires_name() -> None:
    with pytest.raises(AdapterError):
        FunctionDeclaration(name="")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('{"a": [1, 2]}', {"a": [1, 2]}),
        ("", {}),
        (None, {}),
        ("{broken", {}),
        ("[1, 2]", {}),
        ({"already": "parsed"}, {"already": "parsed"}),
    ],
)
def test_parse_tool_arguments_is_lenient(raw: object, expected: dict[str, object]) -> None:
    assert parse_tool_arguments(raw) == expected


def test_normalize_tool_calls_skips_nameless_and_non_function_entries() -> None:
    calls = normalize_tool_calls(
        [
            {"id": "a", "type": "function", "function": {"name": "keep", "arguments": '{"k": 1}'}},
            {"id": "b", "type": "retrieval", "function": {"name": "skip"}},
            {"id": "c", "type": "function", "function": {"arguments": "{}"}},
        ]
    )

    assert [(call.id, call.name, call.args) for call in calls] == [("a", "keep", {"k": 1})]
