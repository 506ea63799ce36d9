"""
Analise IA - API Web
Recebe a pergunta do usuario e devolve widgets de visualizacao gerados pelo Gemini.

Uso:
    python -m src.api.app
    ou
    uvicorn src.api.app:app --reload --port 8080
"""

import json
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import AliasChoices, BaseModel, Field, field_validator
from dotenv import load_dotenv

# Setup paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv(PROJECT_ROOT / ".env")

from src.analysis.pipeline import ANONYMOUS, AnalysisRequest, run
from src.analysis.prompt import PROTOCOL_VERSION
from src.analysis.sources import SourceGateway
from src.core.config import API_PORT, PROMPT_MAX_RECORDS, SOURCE_TIMEOUT
from src.core.gemini_client import GeminiClient

# ============================================================
# APP
# ============================================================

app = FastAPI(
    title="Analise IA",
    description="Analise de dados comerciais em linguagem natural com widgets gerados por IA",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Estado global (somente leitura depois do startup)
gateway = SourceGateway()
gemini = GeminiClient()

# ============================================================
# IDENTIDADE (cookie de sessao do app)
# ============================================================

def resolve_identity(raw_cookie: Optional[str]) -> int:
    """Le o id do cookie `user` ({"id": 123}). Ausente ou invalido = anonimo."""
    if not raw_cookie:
        return ANONYMOUS
    try:
        user = json.loads(unquote(raw_cookie))
        return int(user["id"])
    except (ValueError, TypeError, KeyError, OverflowError) as e:
        print(f"[API] Cookie 'user' invalido ({type(e).__name__}), seguindo como anonimo")
        return ANONYMOUS

# ============================================================
# STARTUP
# ============================================================

@app.on_event("startup")
async def startup():
    print(f"[OK] Fontes de dados: {gateway.base_url} (timeout {SOURCE_TIMEOUT:.0f}s)")
    print(f"[OK] Prompt: protocolo {PROTOCOL_VERSION}, ate {PROMPT_MAX_RECORDS} registros por fonte")
    if gemini.configured:
        print(f"[OK] Gemini configurado ({gemini.model}, timeout {gemini.timeout:.0f}s)")
    else:
        print("[!] GEMINI_API_KEY nao configurada. Analises vao retornar erro.")
    print("[OK] Analise IA API pronta!")

# ============================================================
# MODELS
# ============================================================

class AnaliseRequest(BaseModel):
    prompt: str = Field(validation_alias=AliasChoices("prompt", "question"))

    @field_validator("prompt")
    @classmethod
    def _nao_vazio(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("pergunta vazia")
        return v.strip()

# ============================================================
# ROUTES
# ============================================================

@app.post("/api/gemini/analise")
async def analise(request: Request):
    """Pergunta em linguagem natural -> {widgets} ou {error, widgets: []}."""
    try:
        body = await request.json()
        req = AnaliseRequest.model_validate(body)
    except ValueError as e:
        print(f"[API] Corpo invalido: {str(e)[:200]}")
        return JSONResponse({"error": "Requisicao invalida: informe o campo 'prompt'", "widgets": []},
                            status_code=400)

    identity = resolve_identity(request.cookies.get("user"))
    result = await run(AnalysisRequest(question=req.prompt, identity=identity),
                       gateway=gateway, client=gemini)

    # Erro de geracao nao e erro de transporte: sempre 200
    return JSONResponse(result.to_response(), status_code=200)


@app.get("/api/health")
async def health():
    """Status da configuracao e do Gemini."""
    gemini_health = await gemini.check_health()
    return {
        "status": "ok" if gemini_health["status"] == "ok" else "degraded",
        "app_url": gateway.base_url,
        "protocol": PROTOCOL_VERSION,
        "prompt_max_records": PROMPT_MAX_RECORDS,
        "gemini": gemini_health,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("src.api.app:app", host="0.0.0.0", port=API_PORT, reload=False)
