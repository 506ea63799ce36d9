"""
Analise IA - Pipeline de analise.

Pergunta -> widgets:
  1. aggregate()  busca leads, parceiros, produtos e pedidos em paralelo
  2. compose()    monta o prompt (contrato + dados + pergunta)
  3. generate()   chama o Gemini
  4. extract()    limpa, parseia e valida os widgets

run() nunca levanta excecao. Toda falha vira AnalysisResult com `error`
preenchido e `widgets` vazio.
"""

import time
from dataclasses import dataclass

from src.analysis.aggregator import aggregate
from src.analysis.extractor import AnalysisResult, extract
from src.analysis.prompt import compose
from src.analysis.sources import SourceGateway
from src.core.gemini_client import GeminiClient, GenerationFailure
from src.core.utils import trunc


ANONYMOUS = 0

GENERATION_ERRORS = {
    "sem_chave": "Serviço de IA não configurado",
    "timeout": "O serviço de IA demorou demais para responder",
    "quota": "Limite de uso do serviço de IA atingido, tente novamente em instantes",
}
DEFAULT_GENERATION_ERROR = "Erro ao processar análise: serviço de IA indisponível"


@dataclass
class AnalysisRequest:
    """Pergunta do usuario + identidade (so usada para escopar as fontes)."""
    question: str
    identity: int = ANONYMOUS


async def run(request: AnalysisRequest, gateway: SourceGateway = None,
              client: GeminiClient = None) -> AnalysisResult:
    """Executa o pipeline completo. Sempre retorna AnalysisResult."""
    t0 = time.time()
    print(f"[ANALISE] user={request.identity} pergunta='{trunc(request.question, 80)}'")

    try:
        context = await aggregate(request.identity, gateway)
        prompt = compose(context, request.question)
        print(f"[ANALISE] Prompt montado ({len(prompt)} chars)")

        client = client or GeminiClient()
        raw_text = await client.generate(prompt)
        result = extract(raw_text)

    except GenerationFailure as e:
        print(f"[ANALISE] Falha na geracao [{e.reason}]: {e.detail} ({time.time() - t0:.1f}s)")
        return AnalysisResult.failure(GENERATION_ERRORS.get(e.reason, DEFAULT_GENERATION_ERROR))

    except Exception as e:
        print(f"[ANALISE] Erro inesperado: {type(e).__name__}: {e} ({time.time() - t0:.1f}s)")
        return AnalysisResult.failure("Erro ao processar análise")

    if result.ok:
        print(f"[ANALISE] OK {len(result.widgets)} widget(s) ({time.time() - t0:.1f}s)")
    else:
        print(f"[ANALISE] Resposta invalida do modelo: {result.error} ({time.time() - t0:.1f}s)")
    return result
