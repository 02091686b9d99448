import asyncio
import json

import httpx
import pytest

from resu.config import Settings
from resu.exceptions import ExternalServiceFailed
from resu.services.completion import OllamaCompletionClient, estimate_cost

CONFIG = Settings(
    model_fast="tiny",
    model_smart="big",
    cost_per_1k_prompt_tokens=0.5,
    cost_per_1k_completion_tokens=1.0,
)


def make_client(handler) -> OllamaCompletionClient:
    return OllamaCompletionClient(
        base_url="http://ollama.test/",
        timeout=5,
        config=CONFIG,
        transport=httpx.MockTransport(handler),
    )


def test_complete_sends_chat_request_and_reports_usage():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "model": "big",
                "message": {"role": "assistant", "content": '{"ok": true}'},
                "prompt_eval_count": 1000,
                "eval_count": 500,
            },
        )

    result = asyncio.run(
        make_client(handler).complete(
            "smart", "system", "user", structured_output=True, temperature=0.3
        )
    )

    assert seen["url"] == "http://ollama.test/api/chat"
    assert seen["body"]["model"] == "big"
    assert seen["body"]["format"] == "json"
    assert seen["body"]["options"] == {"temperature": 0.3}
    assert seen["body"]["messages"][0] == {"role": "system", "content": "system"}
    assert result.text == '{"ok": true}'
    assert result.total_tokens == 1500
    assert result.cost_estimate == pytest.approx(1.0)


def test_fast_tier_without_json_format():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"message": {"content": "hello"}})

    result = asyncio.run(make_client(handler).complete("fast", "s", "u"))
    assert seen["body"]["model"] == "tiny"
    assert "format" not in seen["body"]
    assert "options" not in seen["body"]
    assert result.model_id == "tiny"
    assert result.total_tokens == 0


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="model not loaded"),
        httpx.Response(200, json={"message": {"content": "   "}}),
        httpx.Response(200, text="not json"),
    ],
)
def test_failures_raise_external_service_failed(response):
    with pytest.raises(ExternalServiceFailed):
        asyncio.run(make_client(lambda request: response).complete("fast", "s", "u"))


def test_estimate_cost():
    assert estimate_cost(2000, 1000, CONFIG) == pytest.approx(2.0)
    assert estimate_cost(2000, 1000, Settings()) == 0.0


def test_unknown_tier_is_rejected():
    with pytest.raises(ValueError):
        CONFIG.model_for_tier("huge")
