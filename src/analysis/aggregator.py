"""
Analise IA - Agregador de dados.

Dispara as quatro fontes em paralelo (asyncio.gather) e junta por posicao.
Cada fonte tem seu proprio dominio de falha: se uma cair, o slot dela vira
lista vazia e as outras seguem. A agregacao nunca falha; com as quatro fora
do ar o modelo recebe quatro listas vazias e ainda responde algo.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from src.analysis.sources import SOURCES, DataSource, SourceFailure, SourceGateway


# Chaves que ja vimos embrulhando listas quando a API muda o formato
_WRAPPER_KEYS = ("data", "items", "rows", "results")


# ============================================================
# DATA CLASSES
# ============================================================

@dataclass
class AnalysisContext:
    """Dados do sistema para uma pergunta. Criado por request, nunca reaproveitado."""
    leads: list = field(default_factory=list)
    parceiros: list = field(default_factory=list)
    produtos: list = field(default_factory=list)
    pedidos: list = field(default_factory=list)
    falhas: dict = field(default_factory=dict)  # {fonte: motivo}, so para log/health

    def slots(self) -> dict:
        return {
            "leads": self.leads,
            "parceiros": self.parceiros,
            "produtos": self.produtos,
            "pedidos": self.pedidos,
        }


# ============================================================
# COERCAO
# ============================================================

def coerce_records(source: DataSource, payload: Any) -> list:
    """
    Extrai a lista de registros do payload da fonte.

    Aceita lista pura ou objeto com a lista em `source.list_field`
    (ou numa das chaves de _WRAPPER_KEYS). Qualquer outro formato vira [].
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        keys = ((source.list_field,) if source.list_field else ()) + _WRAPPER_KEYS
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    print(f"[FONTES] {source.name}: formato inesperado ({type(payload).__name__}), usando lista vazia")
    return []


# ============================================================
# AGREGACAO
# ============================================================

async def _fetch_slot(gateway: SourceGateway, source: DataSource, identity: int):
    payload = await gateway.fetch(source, identity)
    if isinstance(payload, SourceFailure):
        return payload
    return coerce_records(source, payload)


async def aggregate(identity: int, gateway: SourceGateway = None) -> AnalysisContext:
    """Busca as quatro fontes em paralelo com fallback por fonte."""
    gateway = gateway or SourceGateway()
    t0 = time.time()

    results = await asyncio.gather(
        *(_fetch_slot(gateway, source, identity) for source in SOURCES),
        return_exceptions=True,
    )

    slots = {}
    falhas = {}
    for source, result in zip(SOURCES, results):
        if isinstance(result, SourceFailure):
            falhas[source.name] = result.reason
            slots[source.name] = []
        elif isinstance(result, BaseException):
            falhas[source.name] = f"{type(result).__name__}: {result}"
            slots[source.name] = []
        else:
            slots[source.name] = result

    for name, reason in falhas.items():
        print(f"[FONTES] {name} falhou, seguindo sem dados: {reason}")

    counts = " | ".join(f"{name}={len(rows)}" for name, rows in slots.items())
    print(f"[FONTES] user={identity} {counts} ({time.time() - t0:.2f}s, {len(falhas)} falha(s))")

    return AnalysisContext(falhas=falhas, **slots)
