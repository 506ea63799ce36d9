"""
Testes do cliente Gemini.
Roda com: python -m pytest tests/test_gemini_client.py -v

Sem rede: o backend e simulado com httpx.MockTransport.
"""

import asyncio
import json
import sys
from pathlib import Path

import httpx
import pytest

# Setup paths
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

# Carregar .env
from dotenv import load_dotenv
load_dotenv(ROOT / ".env")


def _gemini_body(*texts):
    return {
        "candidates": [{"content": {"role": "model", "parts": [{"text": t} for t in texts]}}],
        "usageMetadata": {"promptTokenCount": 120, "candidatesTokenCount": 40},
    }


def _client(handler, api_key="chave-teste"):
    from src.core.gemini_client import GeminiClient
    return GeminiClient(api_key=api_key, model="gemini-teste", timeout=5,
                        transport=httpx.MockTransport(handler))


def _failure(handler, api_key="chave-teste"):
    from src.core.gemini_client import GenerationFailure
    with pytest.raises(GenerationFailure) as exc:
        asyncio.run(_client(handler, api_key).generate("prompt"))
    return exc.value


# ============================================================
# TestGenerate
# ============================================================

class TestGenerate:
    def test_sucesso(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json=_gemini_body('{"widgets": []}'))

        text = asyncio.run(_client(handler).generate("minha pergunta"))
        assert text == '{"widgets": []}'

        req = seen["request"]
        assert req.method == "POST"
        assert req.url.path.endswith("/models/gemini-teste:generateContent")
        assert req.headers["x-goog-api-key"] == "chave-teste"
        body = json.loads(req.content)
        assert body["contents"][0]["parts"][0]["text"] == "minha pergunta"
        assert body["generationConfig"]["responseMimeType"] == "application/json"

    def test_partes_concatenadas(self):
        handler = lambda request: httpx.Response(200, json=_gemini_body('{"widgets":', ' []}'))
        assert asyncio.run(_client(handler).generate("p")) == '{"widgets": []}'

    def test_sem_chave(self):
        def handler(request):
            raise AssertionError("nao deveria chamar a API")
        assert _failure(handler, api_key="").reason == "sem_chave"

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("lento", request=request)
        assert _failure(handler).reason == "timeout"

    def test_resposta_lenta_vira_timeout(self):
        from src.core.gemini_client import GeminiClient, GenerationFailure

        async def handler(request):
            await asyncio.sleep(2)
            return httpx.Response(200, json=_gemini_body("{}"))

        client = GeminiClient(api_key="chave-teste", model="gemini-teste", timeout=0.05,
                              transport=httpx.MockTransport(handler))
        with pytest.raises(GenerationFailure) as exc:
            asyncio.run(client.generate("prompt"))
        assert exc.value.reason == "timeout"

    def test_quota(self):
        handler = lambda request: httpx.Response(429, json={"error": {"code": 429}})
        assert _failure(handler).reason == "quota"

    def test_http_500(self):
        handler = lambda request: httpx.Response(500, text="erro interno")
        err = _failure(handler)
        assert err.reason == "http"
        assert "500" in err.detail

    def test_conexao(self):
        def handler(request):
            raise httpx.ConnectError("recusada", request=request)
        assert _failure(handler).reason == "conexao"

    def test_corpo_nao_json(self):
        handler = lambda request: httpx.Response(200, text="<html>")
        assert _failure(handler).reason == "resposta_invalida"

    def test_sem_candidatos(self):
        handler = lambda request: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})
        err = _failure(handler)
        assert err.reason == "resposta_vazia"
        assert err.detail == "SAFETY"


# ============================================================
# TestHealth
# ============================================================

class TestHealth:
    def test_sem_chave(self):
        health = asyncio.run(_client(lambda r: httpx.Response(200), api_key="").check_health())
        assert health["status"] == "error"
        assert health["key_configured"] is False

    def test_ok(self):
        health = asyncio.run(_client(lambda r: httpx.Response(200, json={"name": "models/x"})).check_health())
        assert health["status"] == "ok"
        assert health["model"] == "gemini-teste"

    def test_modelo_inexistente(self):
        health = asyncio.run(_client(lambda r: httpx.Response(404)).check_health())
        assert health["status"] == "error"
        assert "404" in health["error"]
