"""
Analise IA - Funcoes utilitarias compartilhadas.
Normalizacao de texto e previews para log.
"""

import re


# ============================================================
# TEXT NORMALIZATION
# ============================================================

def normalize(text: str) -> str:
    """Remove acentos e normaliza texto para minusculo."""
    replacements = {
        'á': 'a', 'à': 'a', 'ã': 'a', 'â': 'a',
        'é': 'e', 'è': 'e', 'ê': 'e',
        'í': 'i', 'ì': 'i', 'î': 'i',
        'ó': 'o', 'ò': 'o', 'õ': 'o', 'ô': 'o',
        'ú': 'u', 'ù': 'u', 'û': 'u',
        'ç': 'c',
    }
    t = text.lower().strip()
    for old, new in replacements.items():
        t = t.replace(old, new)
    return t


def slugify(text: str) -> str:
    """Normaliza e troca separadores por '_' ("Gráfico-Linha" -> "grafico_linha")."""
    return re.sub(r'[^a-z0-9]+', '_', normalize(text)).strip('_')


# ============================================================
# LOG PREVIEW
# ============================================================

def trunc(text, max_len=40) -> str:
    """Trunca texto para caber numa linha de log."""
    if not text:
        return ""
    s = " ".join(str(text).split())
    return s[:max_len] + "..." if len(s) > max_len else s
