"""
Analise IA - Cliente Gemini (API REST generateContent).

Recebe o prompt ja montado e devolve o texto cru do modelo.
Qualquer falha do backend (sem chave, timeout, quota, HTTP, conexao,
resposta vazia) vira GenerationFailure com um `reason` fixo, para o log
separar "modelo indisponivel" de "modelo respondeu errado".

Uso:
    from src.core.gemini_client import GeminiClient, GenerationFailure

    client = GeminiClient()
    texto = await client.generate(prompt)
"""

import asyncio
import time
import httpx

from src.core.config import (
    GEMINI_API_KEY, GEMINI_MODEL, GEMINI_TIMEOUT, GEMINI_TEMPERATURE,
    GEMINI_MAX_OUTPUT_TOKENS, GEMINI_API_URL,
)
from src.core.utils import trunc


class GenerationFailure(Exception):
    """Falha ao obter resposta do modelo generativo."""

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


class GeminiClient:
    """
    Cliente assincrono para o Gemini.

    Configuracao vem do .env (src.core.config) e nao muda depois de criado.
    `transport` permite injetar um httpx.MockTransport nos testes.
    """

    def __init__(self, api_key: str = None, model: str = None, timeout: float = None,
                 transport: httpx.AsyncBaseTransport = None):
        self.api_key = GEMINI_API_KEY if api_key is None else api_key
        self.model = model or GEMINI_MODEL
        self.timeout = timeout or GEMINI_TIMEOUT
        self.base_url = GEMINI_API_URL
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict:
        return {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

    async def generate(self, prompt: str) -> str:
        """
        Envia o prompt e retorna o texto gerado.

        Raises:
            GenerationFailure: reason em sem_chave, timeout, quota, http,
                               conexao, resposta_invalida, resposta_vazia.
        """
        if not self.api_key:
            raise GenerationFailure("sem_chave", "GEMINI_API_KEY nao configurada")

        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": GEMINI_TEMPERATURE,
                "maxOutputTokens": GEMINI_MAX_OUTPUT_TOKENS,
                "responseMimeType": "application/json",
            },
        }
        url = f"{self.base_url}/models/{self.model}:generateContent"

        t0 = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await asyncio.wait_for(
                    client.post(url, headers=self._headers(), json=payload), self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError):
            print(f"[GEMINI] Timeout ({self.timeout:.0f}s)")
            raise GenerationFailure("timeout", f"sem resposta em {self.timeout:.0f}s")
        except httpx.HTTPError as e:
            print(f"[GEMINI] Erro de conexao: {e}")
            raise GenerationFailure("conexao", str(e))

        elapsed = time.time() - t0

        if response.status_code == 429:
            print(f"[GEMINI] Quota excedida ({elapsed:.1f}s): {trunc(response.text, 200)}")
            raise GenerationFailure("quota", "limite de requisicoes do Gemini atingido")

        if response.status_code != 200:
            print(f"[GEMINI] HTTP {response.status_code}: {trunc(response.text, 200)} ({elapsed:.1f}s)")
            raise GenerationFailure("http", f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise GenerationFailure("resposta_invalida", f"corpo nao-JSON: '{trunc(response.text, 100)}'")

        text = _candidate_text(data)
        if not text:
            block = (data.get("promptFeedback") or {}).get("blockReason", "")
            print(f"[GEMINI] Resposta sem texto ({elapsed:.1f}s) block={block or '-'}")
            raise GenerationFailure("resposta_vazia", block or "nenhum candidato retornado")

        usage = data.get("usageMetadata", {})
        print(f"[GEMINI] OK {self.model} | {elapsed:.1f}s | "
              f"{usage.get('promptTokenCount', 0)}+{usage.get('candidatesTokenCount', 0)} tokens")
        return text

    async def check_health(self) -> dict:
        """
        Verifica se a chave esta configurada e se o modelo responde.

        Returns:
            dict com status, model e error (se houver)
        """
        info = {"model": self.model, "key_configured": self.configured}
        if not self.configured:
            return {**info, "status": "error", "error": "GEMINI_API_KEY nao configurada"}

        try:
            async with httpx.AsyncClient(timeout=10, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/models/{self.model}", headers=self._headers())
                response.raise_for_status()
            return {**info, "status": "ok"}
        except httpx.HTTPStatusError as e:
            return {**info, "status": "error", "error": f"HTTP {e.response.status_code}"}
        except httpx.HTTPError as e:
            return {**info, "status": "error", "error": str(e) or type(e).__name__}

    def __repr__(self):
        return f"GeminiClient(model={self.model}, configured={self.configured})"


def _candidate_text(data: dict) -> str:
    """Concatena as partes de texto do primeiro candidato."""
    candidates = data.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()
