"""
Analise IA - Schema dos widgets.

Formato que o front ja consome:
    {"tipo": "grafico_linha", "titulo": "...", "dados": {...}, "metadados": {...}}

Cada tipo tem um model pydantic para `dados`. Campos extras passam adiante
(o front ignora o que nao conhece); campos obrigatorios e tamanhos de listas
paralelas sao checados.
"""

import math
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from src.core.utils import slugify


Number = Union[int, float]

EXPLANATION = "explicacao"


# ============================================================
# ERROS
# ============================================================

class WidgetError(ValueError):
    """Widget descartado na validacao."""

    def __init__(self, tipo, motivo: str):
        self.tipo = tipo
        self.motivo = motivo
        super().__init__(f"{tipo}: {motivo}")


class UnknownWidgetKind(WidgetError):
    def __init__(self, tipo):
        super().__init__(tipo, "tipo desconhecido")


class InvalidWidget(WidgetError):
    pass


# ============================================================
# PAYLOADS
# ============================================================

class _Dados(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True, allow_inf_nan=False)


class ExplicacaoDados(_Dados):
    texto: str


class CardDados(_Dados):
    valor: str
    variacao: Optional[str] = None
    subtitulo: Optional[str] = None


class SerieDados(_Dados):
    """labels + values paralelos (barras, linha, area, pizza)."""
    labels: list[str]
    values: list[Number]

    @model_validator(mode="after")
    def _mesmo_tamanho(self):
        if len(self.labels) != len(self.values):
            raise ValueError(f"labels ({len(self.labels)}) e values ({len(self.values)}) com tamanhos diferentes")
        return self


class RadarDados(SerieDados):
    @model_validator(mode="after")
    def _escala(self):
        fora = [v for v in self.values if v < 0 or v > 100]
        if fora:
            raise ValueError(f"values fora de 0-100: {fora[:3]}")
        return self


class Ponto(_Dados):
    x: Number
    y: Number
    nome: str


class ScatterDados(_Dados):
    pontos: list[Ponto]
    labelX: str
    labelY: str


class TabelaDados(_Dados):
    colunas: list[str]
    linhas: list[list[Any]]

    @model_validator(mode="after")
    def _linhas_completas(self):
        n = len(self.colunas)
        ruins = [i for i, linha in enumerate(self.linhas) if len(linha) != n]
        if ruins:
            raise ValueError(f"linhas {ruins[:5]} nao tem {n} colunas")
        return self


class Metadados(BaseModel):
    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    formatoMonetario: Optional[bool] = None


class WidgetSpec(BaseModel):
    """Envelope comum. `dados` e validado pelo model do tipo."""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    tipo: str
    titulo: Optional[str] = ""
    dados: dict
    metadados: Optional[Metadados] = None


# ============================================================
# REGISTRO DE TIPOS
# ============================================================

PAYLOAD_MODELS = {
    "explicacao": ExplicacaoDados,
    "card": CardDados,
    "grafico_barras": SerieDados,
    "grafico_linha": SerieDados,
    "grafico_area": SerieDados,
    "grafico_pizza": SerieDados,
    "grafico_scatter": ScatterDados,
    "grafico_radar": RadarDados,
    "tabela": TabelaDados,
}

# Nomes alternativos que o modelo as vezes devolve (ja em slug)
KIND_ALIASES = {
    "explanation": "explicacao",
    "explicacao_da_analise": "explicacao",
    "cartao": "card",
    "metric": "card",
    "bar_chart": "grafico_barras",
    "grafico_barra": "grafico_barras",
    "grafico_de_barras": "grafico_barras",
    "line_chart": "grafico_linha",
    "grafico_linhas": "grafico_linha",
    "grafico_de_linha": "grafico_linha",
    "area_chart": "grafico_area",
    "grafico_de_area": "grafico_area",
    "pie_chart": "grafico_pizza",
    "grafico_de_pizza": "grafico_pizza",
    "scatter_chart": "grafico_scatter",
    "grafico_dispersao": "grafico_scatter",
    "radar_chart": "grafico_radar",
    "table": "tabela",
}


def resolve_kind(raw) -> Optional[str]:
    """Nome canonico do tipo ("Gráfico-Linha" -> "grafico_linha"), ou None."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    slug = slugify(raw)
    if slug in PAYLOAD_MODELS:
        return slug
    return KIND_ALIASES.get(slug)


def _resumo(e: ValidationError) -> str:
    erros = []
    for err in e.errors()[:3]:
        loc = ".".join(str(p) for p in err.get("loc", ()))
        erros.append(f"{loc}: {err.get('msg', '')}" if loc else err.get("msg", ""))
    return "; ".join(erros)


def _nao_finitos(valor: Any, caminho: str = "") -> list:
    """Caminhos com NaN/Infinity (JSON aceita na leitura, mas nao serializa de volta)."""
    if isinstance(valor, float):
        return [] if math.isfinite(valor) else [caminho or "."]
    if isinstance(valor, dict):
        return [c for k, v in valor.items() for c in _nao_finitos(v, f"{caminho}.{k}" if caminho else str(k))]
    if isinstance(valor, list):
        return [c for i, v in enumerate(valor) for c in _nao_finitos(v, f"{caminho}.{i}")]
    return []


def validate_widget(raw: Any) -> dict:
    """
    Valida e normaliza um widget vindo do modelo.

    Returns:
        dict pronto para o front (tipo canonico, dados validados)

    Raises:
        UnknownWidgetKind: tipo fora do registro
        InvalidWidget: estrutura ou dados invalidos para o tipo
    """
    if not isinstance(raw, dict):
        raise InvalidWidget(None, f"widget nao e objeto ({type(raw).__name__})")

    tipo = resolve_kind(raw.get("tipo"))
    if tipo is None:
        raise UnknownWidgetKind(raw.get("tipo"))

    try:
        envelope = WidgetSpec.model_validate({**raw, "tipo": tipo})
        dados = PAYLOAD_MODELS[tipo].model_validate(envelope.dados)
    except ValidationError as e:
        raise InvalidWidget(tipo, _resumo(e))

    widget = envelope.model_dump(exclude_none=True)
    widget["titulo"] = envelope.titulo or ""
    widget["dados"] = dados.model_dump(exclude_unset=True)

    ruins = _nao_finitos(widget)
    if ruins:
        raise InvalidWidget(tipo, f"valores nao finitos em {ruins[:3]}")
    return widget


def default_explanation(n_widgets: int) -> dict:
    """Explicacao generica quando o modelo nao manda nenhuma."""
    return {
        "tipo": EXPLANATION,
        "titulo": "Análise Realizada",
        "dados": {"texto": f"Análise gerada a partir dos dados do sistema ({n_widgets} visualização(ões))."},
    }
