"""
Analise IA - Extrator/validador da resposta do modelo.

Texto livre do modelo -> AnalysisResult tipado. Politica:
  - texto que nao e JSON: erro visivel (widgets vazios), nunca excecao
  - JSON com estrutura parcialmente errada: descarta so o widget ruim

Wrappers de markdown reconhecidos ficam em FENCE_PATTERNS. Para aceitar
um formato novo, adicionar o padrao la; o parse nao muda.
"""

import json
import re
from typing import Optional

from pydantic import BaseModel

from src.analysis.widgets import (
    EXPLANATION, WidgetError, UnknownWidgetKind, validate_widget, default_explanation,
)
from src.core.utils import trunc


# ============================================================
# RESULTADO
# ============================================================

class AnalysisResult(BaseModel):
    """Sucesso: {widgets}. Falha: {error, widgets: []}."""
    widgets: list = []
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "AnalysisResult":
        return cls(widgets=[], error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_response(self) -> dict:
        if self.error is None:
            return {"widgets": self.widgets}
        return {"error": self.error, "widgets": self.widgets}


# ============================================================
# FENCES
# ============================================================

# (nome, regex). O conteudo interno fica no grupo "body".
FENCE_PATTERNS = [
    ("json", re.compile(r"^```[ \t]*json(?![A-Za-z0-9_+-])[ \t]*\r?\n?(?P<body>.*?)\r?\n?[ \t]*```$", re.DOTALL | re.IGNORECASE)),
    ("rotulado", re.compile(r"^```[ \t]*[A-Za-z0-9_+-]+[ \t]*\r?\n(?P<body>.*?)\r?\n?[ \t]*```$", re.DOTALL)),
    ("simples", re.compile(r"^```[ \t]*\r?\n?(?P<body>.*?)\r?\n?[ \t]*```$", re.DOTALL)),
]


def strip_fences(text: str) -> str:
    """Remove o wrapper ```json ... ``` (ou ``` ... ```) se houver. Idempotente."""
    text = text.strip()
    for _name, pattern in FENCE_PATTERNS:
        m = pattern.match(text)
        if m:
            return m.group("body").strip()
    return text


# ============================================================
# EXTRACAO
# ============================================================

def _order_explanation_first(widgets: list) -> list:
    """Garante explicacao na primeira posicao (move a primeira ou cria uma)."""
    for i, w in enumerate(widgets):
        if w["tipo"] == EXPLANATION:
            if i > 0:
                print(f"[EXTRATOR] Explicacao na posicao {i}, movida para o topo")
                widgets = [w] + widgets[:i] + widgets[i + 1:]
            return widgets
    print("[EXTRATOR] Resposta sem explicacao, usando explicacao padrao")
    return [default_explanation(len(widgets))] + widgets


def extract(raw_text: str) -> AnalysisResult:
    """Texto cru do modelo -> AnalysisResult validado."""
    text = strip_fences(raw_text or "")
    if not text:
        return AnalysisResult.failure("Resposta vazia do modelo")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        print(f"[EXTRATOR] JSON invalido ({e.msg}, pos {e.pos}): {trunc(text, 100)}")
        return AnalysisResult.failure("Resposta do modelo nao e um JSON valido")

    if not isinstance(parsed, dict) or not isinstance(parsed.get("widgets"), list):
        print(f"[EXTRATOR] JSON sem lista 'widgets': {trunc(text, 100)}")
        return AnalysisResult.failure("Resposta do modelo sem a lista de widgets")

    widgets = []
    for i, raw in enumerate(parsed["widgets"]):
        try:
            widgets.append(validate_widget(raw))
        except UnknownWidgetKind as e:
            print(f"[EXTRATOR] Widget {i} descartado: tipo desconhecido '{e.tipo}'")
        except WidgetError as e:
            print(f"[EXTRATOR] Widget {i} ({e.tipo}) descartado: {e.motivo}")

    if not widgets:
        return AnalysisResult.failure("Nenhum widget valido na resposta do modelo")

    dropped = len(parsed["widgets"]) - len(widgets)
    widgets = _order_explanation_first(widgets)
    print(f"[EXTRATOR] {len(widgets)} widget(s) OK"
          + (f", {dropped} descartado(s)" if dropped else ""))
    return AnalysisResult(widgets=widgets)
