"""
Analise IA - Montagem do prompt.

compose() e uma funcao pura: mesmo contexto + mesma pergunta = mesmo texto.
O texto tem duas partes:
  1. SYSTEM_PROMPT: o contrato de resposta (tipos de widget, campos, regras)
  2. Dados do sistema: cada fonte cortada nos primeiros N registros, + pergunta

O extrator assume que o modelo devolve SO o JSON. A instrucao aparece no
contrato e de novo no fim do prompt.
"""

import json

from src.analysis.aggregator import AnalysisContext
from src.core.config import PROMPT_MAX_RECORDS


PROTOCOL_VERSION = "widgets-v1"


# ============================================================
# SYSTEM PROMPT - contrato de resposta
# ============================================================

SYSTEM_PROMPT = """Você é o Assistente de Análise de Dados do sistema comercial. Você gera visualizações (widgets) a partir dos dados de leads, parceiros/clientes, produtos e pedidos.

Protocolo de resposta: """ + PROTOCOL_VERSION + """

## FORMATO OBRIGATÓRIO

Responda com UM objeto JSON válido, neste formato:

{
  "widgets": [
    {
      "tipo": "explicacao",
      "titulo": "Análise Realizada",
      "dados": {"texto": "Analisei as vendas dos últimos 6 meses. O faturamento cresceu 15% no período."}
    },
    {
      "tipo": "card",
      "titulo": "Total de Vendas",
      "dados": {"valor": "R$ 150.000,00", "variacao": "+15%", "subtitulo": "vs mês anterior"}
    },
    {
      "tipo": "grafico_linha",
      "titulo": "Vendas por Mês",
      "dados": {"labels": ["Jan", "Fev", "Mar", "Abr", "Mai", "Jun"], "values": [25000, 28000, 32000, 30000, 35000, 40000]},
      "metadados": {"formatoMonetario": true}
    }
  ]
}

## TIPOS DE WIDGET

1. explicacao - OBRIGATÓRIO e SEMPRE o primeiro. Diz o que foi analisado.
   - dados.texto: texto da explicação
2. card - métrica principal
   - dados.valor: texto (monetário no formato "R$ 150.000,00")
   - dados.variacao: opcional, ex: "+15%", "-5%"
   - dados.subtitulo: opcional, contexto
3. grafico_barras - comparações
   - dados.labels: lista de rótulos | dados.values: lista de números (mesmo tamanho)
4. grafico_linha - tendência no tempo (meses, dias, anos)
   - dados.labels: períodos | dados.values: números (mesmo tamanho)
5. grafico_area - volume ao longo do tempo
   - dados.labels: períodos | dados.values: números (mesmo tamanho)
6. grafico_pizza - distribuição
   - dados.labels: categorias | dados.values: números (mesmo tamanho)
7. grafico_scatter - correlação entre duas variáveis
   - dados.pontos: lista de {"x": número, "y": número, "nome": texto}
   - dados.labelX: rótulo do eixo X | dados.labelY: rótulo do eixo Y
8. grafico_radar - várias métricas lado a lado
   - dados.labels: dimensões | dados.values: números de 0 a 100 (mesmo tamanho)
9. tabela - detalhes
   - dados.colunas: nomes das colunas
   - dados.linhas: lista de linhas; cada linha com o MESMO número de itens que colunas

Em grafico_barras, grafico_linha e grafico_area, quando os valores forem monetários (vendas, receita, preço), inclua "metadados": {"formatoMonetario": true}.

## REGRAS

1. O primeiro widget é SEMPRE "explicacao".
2. Ordem: explicação → métricas (cards) → gráficos → tabelas de detalhe.
3. Use SOMENTE os dados fornecidos. Não invente números.
4. Dados temporais: grafico_linha ou grafico_area. Correlação: grafico_scatter. Comparar várias métricas: grafico_radar.
5. Valores monetários em cards: "R$ 150.000,00".
6. Escolha os widgets que respondem a pergunta. Priorize insights acionáveis.
7. Responda APENAS o JSON. Sem markdown, sem ```, sem texto antes ou depois."""


# ============================================================
# DADOS
# ============================================================

_SECTIONS = (
    ("leads", "LEADS"),
    ("parceiros", "PARCEIROS/CLIENTES"),
    ("produtos", "PRODUTOS"),
    ("pedidos", "PEDIDOS"),
)

CLOSING_INSTRUCTION = (
    "IMPORTANTE: Retorne APENAS o JSON estruturado com os widgets. "
    "Não adicione texto explicativo antes ou depois do JSON."
)


def _dump(records: list) -> str:
    return json.dumps(records, ensure_ascii=False, indent=2, default=str)


def build_data_excerpt(context: AnalysisContext, question: str, max_records: int = None) -> str:
    """Serializa os slots (prefixo de max_records cada) + pergunta do usuario."""
    limit = max(0, PROMPT_MAX_RECORDS if max_records is None else max_records)
    slots = context.slots()

    parts = ["DADOS DO SISTEMA:"]
    for key, label in _SECTIONS:
        records = slots[key]
        shown = records[:limit]
        header = f"{label} ({len(records)} total"
        if len(shown) < len(records):
            header += f", mostrando os primeiros {len(shown)}"
        parts.append(f"\n{header}):\n{_dump(shown)}")

    parts.append(f"\nPERGUNTA DO USUÁRIO:\n{question}")
    parts.append(f"\n{CLOSING_INSTRUCTION}")
    return "\n".join(parts)


def compose(context: AnalysisContext, question: str, max_records: int = None) -> str:
    """Prompt completo: contrato de resposta + dados + pergunta."""
    return f"{SYSTEM_PROMPT}\n\n{build_data_excerpt(context, question, max_records)}"
