"""
Analise IA - Gateway das fontes de dados.

Acesso uniforme e assincrono as quatro colecoes do sistema:
leads (API do app) e parceiros, produtos, pedidos (proxy Sankhya).

Cada chamada e independente (cliente HTTP proprio, sem estado compartilhado)
e nunca levanta excecao: timeout, erro de transporte, status nao-2xx ou
JSON invalido viram um SourceFailure, que so o agregador consome.
Sem retry nesta camada.
"""

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from src.core.config import APP_URL, SOURCE_TIMEOUT, SOURCE_PAGE_SIZE


# ============================================================
# DATA CLASSES
# ============================================================

@dataclass(frozen=True)
class DataSource:
    """Uma colecao consultavel."""
    name: str                       # slot no AnalysisContext
    path: str                       # endpoint relativo ao APP_URL
    list_field: Optional[str] = None  # campo com a lista quando a resposta e objeto
    paged: bool = False             # envia page/pageSize
    scope: Optional[str] = None     # "cookie" | "query": como o usuario e enviado


@dataclass
class SourceFailure:
    """Marcador de falha de uma fonte. Nunca chega ao chamador do pipeline."""
    source: str
    reason: str


# Ordem fixa: o agregador junta os resultados por posicao
SOURCES = (
    DataSource("leads", "/api/leads", scope="cookie"),
    DataSource("parceiros", "/api/sankhya/parceiros", list_field="parceiros", paged=True),
    DataSource("produtos", "/api/sankhya/produtos", list_field="produtos", paged=True),
    DataSource("pedidos", "/api/sankhya/pedidos/listar", scope="query"),
)

SOURCES_BY_NAME = {s.name: s for s in SOURCES}


# ============================================================
# GATEWAY
# ============================================================

class SourceGateway:
    """
    Busca uma fonte por vez, escopada pelo usuario.

    Usage:
        gateway = SourceGateway()
        payload = await gateway.fetch(SOURCES_BY_NAME["leads"], user_id)
        if isinstance(payload, SourceFailure): ...
    """

    def __init__(self, base_url: str = None, timeout: float = None,
                 page_size: int = None, transport: httpx.AsyncBaseTransport = None):
        self.base_url = (base_url or APP_URL).rstrip("/")
        self.timeout = timeout or SOURCE_TIMEOUT
        self.page_size = page_size or SOURCE_PAGE_SIZE
        self._transport = transport

    def build_request(self, source: DataSource, identity: int) -> dict:
        """Monta url, params e headers da chamada (sem I/O)."""
        params = {}
        headers = {}
        if source.paged:
            params["page"] = 1
            params["pageSize"] = self.page_size
        if source.scope == "cookie":
            headers["Cookie"] = f"user={json.dumps({'id': identity})}"
        elif source.scope == "query":
            params["userId"] = identity
        return {"url": f"{self.base_url}{source.path}", "params": params, "headers": headers}

    async def fetch(self, source, identity: int) -> Any:
        """Retorna o JSON decodificado da fonte (DataSource ou nome), ou SourceFailure."""
        if isinstance(source, str):
            if source not in SOURCES_BY_NAME:
                return SourceFailure(source, "fonte desconhecida")
            source = SOURCES_BY_NAME[source]
        req = self.build_request(source, identity)
        t0 = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                # timeout do httpx e por fase; wait_for limita a chamada inteira
                response = await asyncio.wait_for(
                    client.get(req["url"], params=req["params"], headers=req["headers"]),
                    self.timeout,
                )
            if response.status_code < 200 or response.status_code >= 300:
                return SourceFailure(source.name, f"HTTP {response.status_code}")
            payload = response.json()
        except (httpx.TimeoutException, asyncio.TimeoutError):
            return SourceFailure(source.name, f"timeout ({self.timeout:.0f}s)")
        except httpx.HTTPError as e:
            return SourceFailure(source.name, f"transporte: {type(e).__name__}: {e}")
        except ValueError as e:
            return SourceFailure(source.name, f"JSON invalido: {e}")
        except Exception as e:
            return SourceFailure(source.name, f"erro: {type(e).__name__}: {e}")

        print(f"[FONTES] {source.name}: HTTP {response.status_code} ({time.time() - t0:.2f}s)")
        return payload
