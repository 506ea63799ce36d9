"""
Analise IA - Script de inicializacao
Confere a configuracao e inicia o servidor FastAPI.

Uso:
    python start.py
"""

import httpx
import uvicorn

from src.core.config import APP_URL, API_PORT, GEMINI_API_KEY, GEMINI_MODEL


def check_gemini():
    """Verifica se a chave do Gemini foi configurada."""
    if GEMINI_API_KEY:
        print(f"[OK] Gemini configurado ({GEMINI_MODEL})")
        return True
    print("[AVISO] GEMINI_API_KEY nao configurada no .env!")
    print("[AVISO] As analises vao retornar erro ate a chave ser configurada.")
    print("[AVISO] Continuando mesmo assim...\n")
    return False


def check_app():
    """Verifica se a API de dados (leads/Sankhya) responde."""
    try:
        r = httpx.get(f"{APP_URL}/api/leads", timeout=5)
        print(f"[OK] API de dados respondendo em {APP_URL} (HTTP {r.status_code})")
        return True
    except httpx.HTTPError:
        print(f"[AVISO] API de dados nao responde em {APP_URL}")
        print("[AVISO] As analises vao seguir com fontes vazias.\n")
        return False


def main():
    print("\n--- Analise IA ---\n")

    # 1. Verificar configuracao
    check_gemini()
    check_app()

    # 2. Iniciar FastAPI (bloqueia aqui)
    try:
        uvicorn.run(
            "src.api.app:app",
            host="0.0.0.0",
            port=API_PORT,
            reload=False,
            log_level="info",
        )
    except KeyboardInterrupt:
        pass
    finally:
        print("\n[OK] Servidor encerrado.")


if __name__ == "__main__":
    main()
