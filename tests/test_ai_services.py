import asyncio
import json

import httpx
import pytest

from sentence_studio.main import app
from sentence_studio.services.ai_service import AIService, AIServiceError, get_ai_service
from sentence_studio.services.translate_service import TranslateService, TranslationError, get_translate_service


def run(coro):
    return asyncio.run(coro)


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def deepseek_env(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
    monkeypatch.setenv("DEEPSEEK_API_URL", "https://deepseek.test/v1/chat/completions")


@pytest.fixture
def deepl_env(monkeypatch):
    monkeypatch.setenv("DEEPL_AUTH_KEY", "deepl-test")
    monkeypatch.setenv("DEEPL_API_URL", "https://deepl.test/v2/translate")


def test_analyze_sends_sentence_to_deepseek(deepseek_env):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion("Subject + verb"))

    service = AIService(client=mock_client(handler))
    result = run(service.analyze("I have been waiting.", "analyze"))

    assert result == "Subject + verb"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "deepseek-chat"
    assert "I have been waiting." in seen["body"]["messages"][-1]["content"]


def test_advice_uses_default_level(deepseek_env):
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion("ok"))

    run(AIService(client=mock_client(handler)).analyze("Hi there", "advice"))

    assert "intermediate" in seen["body"]["messages"][-1]["content"]


def test_chat_puts_context_before_message(deepseek_env):
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion("Sure"))

    run(AIService(client=mock_client(handler)).chat("Explain it", context="Break a leg"))

    messages = seen["body"]["messages"]
    assert messages[0]["role"] == "system"
    assert "Break a leg" in messages[1]["content"]
    assert messages[-1]["content"] == "Explain it"


def test_unknown_action_is_rejected(deepseek_env):
    with pytest.raises(ValueError):
        run(AIService(client=mock_client(lambda r: httpx.Response(200))).analyze("Hi", "summarize"))


def test_missing_key_is_an_error(monkeypatch):
    monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)

    with pytest.raises(AIServiceError):
        run(AIService().chat("Hello"))


@pytest.mark.parametrize("response", [
    httpx.Response(500, text="boom"),
    httpx.Response(200, json={"choices": []}),
    httpx.Response(200, json={"choices": [{}]}),
    httpx.Response(200, json={"choices": [{"message": {}}]}),
    httpx.Response(200, json={"choices": [{"message": {"content": None}}]}),
    httpx.Response(200, json={"choices": ["oops"]}),
    httpx.Response(200, json=["not", "an", "object"]),
    httpx.Response(200, text="not json"),
])
def test_bad_upstream_answers_are_errors(deepseek_env, response):
    with pytest.raises(AIServiceError):
        run(AIService(client=mock_client(lambda r: response)).chat("Hello"))


def test_network_failure_is_an_error(deepseek_env):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(AIServiceError):
        run(AIService(client=mock_client(handler)).chat("Hello"))


def test_translate_to_chinese(deepl_env):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"translations": [
            {"detected_source_language": "EN", "text": "你好"}]})

    result = run(TranslateService(client=mock_client(handler)).translate("Hello", "zh"))

    assert result == {"translation": "你好", "detected_lang": "en"}
    assert seen["auth"] == "DeepL-Auth-Key deepl-test"
    assert seen["body"]["target_lang"] == "ZH"
    assert seen["body"]["source_lang"] == "EN"


def test_translate_to_english_uses_regional_code(deepl_env):
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"translations": [{"text": "Hello"}]})

    result = run(TranslateService(client=mock_client(handler)).translate("你好", "en"))

    assert seen["body"]["target_lang"] == "EN-US"
    assert result["detected_lang"] is None


def test_translate_upstream_error(deepl_env):
    with pytest.raises(TranslationError):
        run(TranslateService(client=mock_client(lambda r: httpx.Response(456))).translate("Hi", "zh"))


class StubAI:
    def __init__(self, answer="fine", error=None):
        self.answer = answer
        self.error = error

    async def analyze(self, sentence, action, user_level=None):
        if self.error:
            raise self.error
        return self.answer

    async def chat(self, message, context=None):
        if self.error:
            raise self.error
        return self.answer


def test_analyze_route(client):
    app.dependency_overrides[get_ai_service] = lambda: StubAI("Present perfect")

    response = client.post("/api/ai/analyze", json={"sentence": " I have eaten. "})

    assert response.status_code == 200
    assert response.json() == {"success": True, "result": "Present perfect", "action": "analyze",
                               "sentence": "I have eaten."}


def test_analyze_route_unknown_action(client):
    app.dependency_overrides[get_ai_service] = lambda: StubAI()

    response = client.post("/api/ai/analyze", json={"sentence": "Hi", "action": "summarize"})

    assert response.status_code == 400


def test_analyze_route_empty_sentence(client):
    app.dependency_overrides[get_ai_service] = lambda: StubAI()

    response = client.post("/api/ai/analyze", json={"sentence": "   "})

    assert response.status_code == 400


def test_chat_route_upstream_failure(client):
    app.dependency_overrides[get_ai_service] = lambda: StubAI(error=AIServiceError("AI service unavailable"))

    response = client.post("/api/ai/chat", json={"message": "Hello"})

    assert response.status_code == 502


def test_chat_route_malformed_upstream_answer(client, deepseek_env):
    upstream = mock_client(lambda r: httpx.Response(200, json={"choices": [{"message": {}}]}))
    app.dependency_overrides[get_ai_service] = lambda: AIService(client=upstream)

    response = client.post("/api/ai/chat", json={"message": "Hello"})

    assert response.status_code == 502
    assert response.json()["detail"] == "AI service returned no answer"


def test_translate_route_rejects_other_languages(client):
    response = client.post("/api/translate", json={"text": "Hola", "target_lang": "es"})

    assert response.status_code == 422


def test_translate_route(client):
    class StubTranslate:
        async def translate(self, text, target_lang):
            return {"translation": f"<{text}>", "detected_lang": "en"}

    app.dependency_overrides[get_translate_service] = StubTranslate

    response = client.post("/api/translate", json={"text": " Hello ", "target_lang": "zh"})

    assert response.status_code == 200
    assert response.json() == {"translation": "<Hello>", "detected_lang": "en"}
