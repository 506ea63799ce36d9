"""
Analise IA - Configuracao centralizada.
Todas as variaveis de ambiente e constantes em um unico lugar.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# ============================================================
# PATHS
# ============================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
load_dotenv(PROJECT_ROOT / ".env")

# ============================================================
# FONTES DE DADOS (API do app: leads + Sankhya)
# ============================================================

APP_URL = os.getenv("APP_URL", os.getenv("NEXT_PUBLIC_APP_URL", "http://localhost:5000")).rstrip("/")
SOURCE_TIMEOUT = float(os.getenv("SOURCE_TIMEOUT", "10"))
SOURCE_PAGE_SIZE = int(os.getenv("SOURCE_PAGE_SIZE", "100"))

# ============================================================
# PROMPT
# ============================================================

# Registros por fonte enviados ao modelo (prefixo, na ordem recebida).
# Nao validado contra o limite real de entrada do modelo: ajustar via .env.
PROMPT_MAX_RECORDS = int(os.getenv("PROMPT_MAX_RECORDS", "50"))

# ============================================================
# LLM - Google Gemini
# ============================================================

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_TIMEOUT = float(os.getenv("GEMINI_TIMEOUT", "60"))
GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", "0.2"))
GEMINI_MAX_OUTPUT_TOKENS = int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "8192"))
GEMINI_API_URL = os.getenv("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta").rstrip("/")

# ============================================================
# API
# ============================================================

API_PORT = int(os.getenv("API_PORT", "8080"))
