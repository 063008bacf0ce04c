from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from qwen_bridge.core import (
    FinishReason,
    FunctionCallPart,
    GenerateContentConfig,
    GenerateContentParameters,
    TextPart,
    TransportError,
    UnsupportedOperationError,
)
from qwen_bridge.core.adapters.qwen import QwenAdapter, create_chat_completion

from tests.fixtures import openai_fake


def _generate(adapter: QwenAdapter, request: object):
    return asyncio.run(adapter.generate_content(request))


def test_text_completion_maps_to_single_candidate() -> None:
    client = openai_fake.build_client(openai_fake.completion("All systems nominal."))
    adapter = QwenAdapter(client)

    response = _generate(adapter, {"contents": "Status?"})

    [candidate] = response.candidates
    assert candidate.content.parts == (TextPart(text="All systems nominal."),)
    assert candidate.finish_reason is FinishReason.STOP
    assert candidate.content.role.value == "model"
    assert response.text == "All systems nominal."
    assert response.function_calls is None


def test_tool_call_completion_maps_to_function_call_part() -> None:
    tool_calls = [
        {
            "id": "call_foo",
            "type": "function",
            "function": {"name": "foo", "arguments": '{"x":1}'},
        }
    ]
    client = openai_fake.build_client(openai_fake.completion(None, finish_reason="tool_calls", tool_calls=tool_calls))
    adapter = QwenAdapter(client)

    response = _generate(adapter, {"contents": "call foo"})

    [candidate] = response.candidates
    assert candidate.content.parts == (FunctionCallPart(name="foo", args={"x": 1}, id="call_foo"),)
    assert candidate.finish_reason is FinishReason.OTHER
    [call] = response.function_calls
    assert (call.name, call.args, call.id) == ("foo", {"x": 1}, "call_foo")


def test_malformed_tool_arguments_are_lenient() -> None:
    tool_calls = [{"id": "c", "type": "function", "function": {"name": "foo", "arguments": "{not json"}}]
    client = openai_fake.build_client(openai_fake.completion("", tool_calls=tool_calls))
    adapter = QwenAdapter(client)

    response = _generate(adapter, {"contents": "call foo"})

    [call] = response.function_calls
    assert call.args == {}


@pytest.mark.parametrize(
    ("reason", "expected"),
    [
        ("stop", FinishReason.STOP),
        ("length", FinishReason.MAX_TOKENS),
        ("content_filter", FinishReason.SAFETY),
        ("tool_calls", FinishReason.OTHER),
        (None, None),
    ],
)
def test_finish_reason_mapping(reason: str | None, expected: FinishReason | None) -> None:
    client = openai_fake.build_client(openai_fake.completion("ok", finish_reason=reason))
    adapter = QwenAdapter(client)

    response = _generate(adapter, {"contents": "hi"})

    assert response.candidates[0].finish_reason is expected


def test_usage_passes_through_with_zero_defaults() -> None:
    client = openai_fake.build_client(openai_fake.completion("ok", usage={"prompt_tokens": 3}))
    adapter = QwenAdapter(client)

    response = _generate(adapter, {"contents": "hi"})

    usage = response.usage_metadata
    assert (usage.prompt_token_count, usage.candidates_token_count, usage.total_token_count) == (3, 0, 0)


def test_payload_carries_model_options_and_tools() -> None:
    client = openai_fake.build_client(openai_fake.completion("ok"))
    adapter = QwenAdapter(client)

    request = GenerateContentParameters(
        model="qwen-max-latest",
        contents="What's the weather?",
        config=GenerateContentConfig(
            temperature=0.2,
            max_output_tokens=256,
            tools=[{"functionDeclarations": [{"name": "get_weather", "description": "Weather"}]}],
        ),
    )
    _generate(adapter, request)

    [call] = client.completions.calls
    assert call == {
        "model": "qwen-max-latest",
        "messages": [{"role": "user", "content": "What's the weather?"}],
        "stream": False,
        "temperature": 0.2,
        "max_tokens": 256,
        "tools": [
            {
                "type": "function",
                "function": {
                    "name": "get_weather",
                    "description": "Weather",
                    "parameters": {"type": "object", "properties": {}},
                },
            }
        ],
        "tool_choice": "auto",
    }


def test_payload_defaults_model_and_omits_unset_options() -> None:
    client = openai_fake.build_client(openai_fake.completion("ok"))
    adapter = QwenAdapter(client)

    _generate(adapter, {"contents": "hi"})

    [call] = client.completions.calls
    assert call == {
        "model": "qwen-plus",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": False,
    }


def test_transport_errors_are_wrapped_with_prefix() -> None:
    client = openai_fake.build_client(error=TimeoutError("upstream timed out"))
    adapter = QwenAdapter(client)

    with pytest.raises(TransportError) as excinfo:
        _generate(adapter, {"contents": "hi"})

    message = str(excinfo.value)
    assert message.startswith("通义千问API调用失败 (Qwen API call failed)")
    assert "upstream timed out" in message
    assert isinstance(excinfo.value.__cause__, TimeoutError)


def test_sync_clients_are_supported() -> None:
    calls: list[dict[str, object]] = []

    def create(**kwargs: object) -> dict[str, object]:
        calls.append(kwargs)
        return openai_fake.completion("sync")

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

    result = asyncio.run(create_chat_completion(client, {"model": "qwen-plus"}))

    assert result["choices"][0]["message"]["content"] == "sync"
    assert calls == [{"model": "qwen-plus"}]


def test_count_tokens_uses_ceiling_of_quarter_length() -> None:
    adapter = QwenAdapter(openai_fake.build_client())

    forty = asyncio.run(adapter.count_tokens({"contents": "a" * 40}))
    forty_one = asyncio.run(adapter.count_tokens({"contents": "a" * 41}))

    assert forty.total_tokens == 10
    assert forty_one.total_tokens == 11


def test_count_tokens_joins_turns_with_spaces() -> None:
    adapter = QwenAdapter(openai_fake.build_client())
    contents = [
        {"role": "user", "parts": [{"text": "abc"}]},
        {"role": "model", "parts": [{"text": "de"}]},
    ]

    result = asyncio.run(adapter.count_tokens({"contents": contents}))

    # "abc de" has six characters
    assert result.total_tokens == 2


@pytest.mark.parametrize("contents", ["text", None, [{"text": "a"}]])
def test_embed_content_is_unsupported(contents: object) -> None:
    client = openai_fake.build_client()
    adapter = QwenAdapter(client)

    with pytest.raises(UnsupportedOperationError) as excinfo:
        asyncio.run(adapter.embed_content({"contents": contents}))

    assert "通义千问暂不支持嵌入功能" in str(excinfo.value)
    assert client.completions.calls == []


def test_adapter_builds_default_client_from_settings() -> None:
    adapter = QwenAdapter(api_key="sk-test", base_url="http://localhost:8000/v1")

    assert adapter.settings.api_key == "sk-test"
    assert adapter.settings.base_url == "http://localhost:8000/v1"
    assert str(adapter._client.base_url).startswith("http://localhost:8000/v1")


def test_sdk_completion_objects_are_translated() -> None:
    tool_calls = [
        {
            "id": "call_foo",
            "type": "function",
            "function": {"name": "foo", "arguments": '{"x": 1}'},
        }
    ]
    completion = openai_fake.sdk_completion(
        "Calling foo.",
        finish_reason="tool_calls",
        tool_calls=tool_calls,
        usage={"prompt_tokens": 4, "completion_tokens": 6, "total_tokens": 10},
    )
    adapter = QwenAdapter(openai_fake.build_client(completion))

    response = _generate(adapter, {"contents": "call foo"})

    [candidate] = response.candidates
    assert candidate.content.parts == (
        TextPart(text="Calling foo."),
        FunctionCallPart(name="foo", args={"x": 1}, id="call_foo"),
    )
    assert candidate.finish_reason is FinishReason.OTHER
    [call] = response.function_calls
    assert (call.name, call.args, call.id) == ("foo", {"x": 1}, "call_foo")
    assert response.usage_metadata.total_token_count == 10
