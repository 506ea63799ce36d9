"""
Testes do extrator/validador de widgets.
Roda com: python -m pytest tests/test_extractor.py -v
"""

import json
import sys
from pathlib import Path

# Setup paths
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

# Carregar .env
from dotenv import load_dotenv
load_dotenv(ROOT / ".env")


EXPLICACAO = {"tipo": "explicacao", "titulo": "Análise", "dados": {"texto": "Vendas dos últimos 6 meses."}}
LINHA = {
    "tipo": "grafico_linha",
    "titulo": "Vendas por Mês",
    "dados": {"labels": ["Jan", "Fev", "Mar"], "values": [100, 200, 300]},
    "metadados": {"formatoMonetario": True},
}
TABELA = {
    "tipo": "tabela",
    "titulo": "Top clientes",
    "dados": {"colunas": ["Cliente", "Total"], "linhas": [["ACME", 10], ["Beta", 5]]},
}


def _raw(*widgets) -> str:
    return json.dumps({"widgets": list(widgets)}, ensure_ascii=False)


# ============================================================
# TestStripFences
# ============================================================

class TestStripFences:
    def test_fence_json(self):
        from src.analysis.extractor import strip_fences
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_fence_sem_rotulo(self):
        from src.analysis.extractor import strip_fences
        assert strip_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_fence_outro_rotulo(self):
        from src.analysis.extractor import strip_fences
        assert strip_fences('```javascript\n{"a": 1}\n```') == '{"a": 1}'

    def test_fence_json_maiusculo(self):
        from src.analysis.extractor import strip_fences
        assert strip_fences('```JSON\n{"a": 1}\n```') == '{"a": 1}'

    def test_fence_uma_linha(self):
        from src.analysis.extractor import strip_fences
        assert strip_fences('```{"a": 1}```') == '{"a": 1}'

    def test_sem_fence_inalterado(self):
        from src.analysis.extractor import strip_fences
        assert strip_fences('  {"a": 1}\n') == '{"a": 1}'

    def test_idempotente(self):
        from src.analysis.extractor import strip_fences
        once = strip_fences('```json\n{"a": 1}\n```')
        assert strip_fences(once) == once

    def test_conteudo_interno_preservado(self):
        from src.analysis.extractor import strip_fences
        body = '{"texto": "use ``` para codigo\\nlinha 2"}'
        assert strip_fences(f"```json\n{body}\n```") == body

    def test_padroes_enumerados(self):
        from src.analysis.extractor import FENCE_PATTERNS
        names = [name for name, _ in FENCE_PATTERNS]
        assert names == ["json", "rotulado", "simples"]


# ============================================================
# TestExtract
# ============================================================

class TestExtract:
    def test_json_valido(self):
        from src.analysis.extractor import extract
        r = extract(_raw(EXPLICACAO, LINHA))
        assert r.ok
        assert r.widgets == [EXPLICACAO, LINHA]

    def test_fenced_igual_a_sem_fence(self):
        from src.analysis.extractor import extract
        raw = _raw(EXPLICACAO, LINHA, TABELA)
        fenced = extract(f"```json\n{raw}\n```")
        plain = extract(raw)
        assert fenced == plain
        assert fenced.to_response() == {"widgets": [EXPLICACAO, LINHA, TABELA]}

    def test_texto_livre_vira_erro(self):
        from src.analysis.extractor import extract
        r = extract("Sorry, I cannot answer.")
        assert r.error
        assert r.widgets == []
        assert r.to_response() == {"error": r.error, "widgets": []}

    def test_string_vazia(self):
        from src.analysis.extractor import extract
        r = extract("")
        assert r.error and r.widgets == []

    def test_none(self):
        from src.analysis.extractor import extract
        r = extract(None)
        assert r.error and r.widgets == []

    def test_json_sem_widgets(self):
        from src.analysis.extractor import extract
        r = extract('{"resposta": "ok"}')
        assert r.error and r.widgets == []

    def test_widgets_nao_lista(self):
        from src.analysis.extractor import extract
        r = extract('{"widgets": {"tipo": "card"}}')
        assert r.error and r.widgets == []

    def test_json_lista_na_raiz(self):
        from src.analysis.extractor import extract
        r = extract(json.dumps([EXPLICACAO]))
        assert r.error and r.widgets == []

    def test_tipo_desconhecido_descartado(self):
        from src.analysis.extractor import extract
        mapa = {"tipo": "mapa_calor", "titulo": "X", "dados": {"z": [1]}}
        r = extract(_raw(EXPLICACAO, mapa, LINHA))
        assert r.ok
        assert [w["tipo"] for w in r.widgets] == ["explicacao", "grafico_linha"]

    def test_tabela_linha_incompleta_descartada(self):
        from src.analysis.extractor import extract
        ruim = {"tipo": "tabela", "titulo": "T",
                "dados": {"colunas": ["A", "B"], "linhas": [["x", 1], ["y"]]}}
        r = extract(_raw(EXPLICACAO, ruim, TABELA))
        assert [w["titulo"] for w in r.widgets] == ["Análise", "Top clientes"]

    def test_tabela_descartada_e_deterministico(self):
        from src.analysis.extractor import extract
        ruim = {"tipo": "tabela", "titulo": "T",
                "dados": {"colunas": ["A"], "linhas": [["x", "sobra"]]}}
        raw = _raw(EXPLICACAO, ruim)
        assert extract(raw) == extract(raw)
        assert len(extract(raw).widgets) == 1

    def test_labels_values_tamanhos_diferentes(self):
        from src.analysis.extractor import extract
        ruim = {"tipo": "grafico_barras", "titulo": "B",
                "dados": {"labels": ["a", "b", "c"], "values": [1, 2]}}
        r = extract(_raw(EXPLICACAO, ruim))
        assert [w["tipo"] for w in r.widgets] == ["explicacao"]

    def test_radar_fora_da_escala(self):
        from src.analysis.extractor import extract
        radar = {"tipo": "grafico_radar", "titulo": "R",
                 "dados": {"labels": ["a", "b"], "values": [50, 150]}}
        r = extract(_raw(EXPLICACAO, radar))
        assert len(r.widgets) == 1

    def test_nan_em_values_descartado(self):
        from src.analysis.extractor import extract
        texto = ('{"widgets": [' + json.dumps(EXPLICACAO, ensure_ascii=False) + ', '
                 '{"tipo": "grafico_linha", "titulo": "L", "dados": {"labels": ["a"], "values": [NaN]}}]}')
        r = extract(texto)
        assert r.ok
        assert [w["tipo"] for w in r.widgets] == ["explicacao"]
        json.dumps(r.to_response(), allow_nan=False)

    def test_nan_no_radar_descartado(self):
        from src.analysis.extractor import extract
        texto = ('{"widgets": [' + json.dumps(EXPLICACAO, ensure_ascii=False) + ', '
                 '{"tipo": "grafico_radar", "titulo": "R", "dados": {"labels": ["a", "b"], "values": [50, NaN]}}]}')
        r = extract(texto)
        assert len(r.widgets) == 1

    def test_infinity_em_celula_de_tabela_descartado(self):
        from src.analysis.extractor import extract
        texto = ('{"widgets": [' + json.dumps(EXPLICACAO, ensure_ascii=False) + ', '
                 '{"tipo": "tabela", "titulo": "T", "dados": {"colunas": ["A", "B"], "linhas": [["x", Infinity]]}}, '
                 '{"tipo": "card", "titulo": "C", "dados": {"valor": "1", "extra": -Infinity}}]}')
        r = extract(texto)
        assert [w["tipo"] for w in r.widgets] == ["explicacao"]
        json.dumps(r.to_response(), allow_nan=False)

    def test_explicacao_movida_para_o_topo(self):
        from src.analysis.extractor import extract
        r = extract(_raw(LINHA, TABELA, EXPLICACAO))
        assert [w["tipo"] for w in r.widgets] == ["explicacao", "grafico_linha", "tabela"]

    def test_sem_explicacao_ganha_padrao(self):
        from src.analysis.extractor import extract
        r = extract(_raw(LINHA))
        assert r.ok
        assert r.widgets[0]["tipo"] == "explicacao"
        assert r.widgets[0]["dados"]["texto"]
        assert r.widgets[1] == LINHA

    def test_todos_invalidos_vira_erro(self):
        from src.analysis.extractor import extract
        r = extract(_raw({"tipo": "mapa"}, {"tipo": "card", "dados": {}}, "texto"))
        assert r.error and r.widgets == []

    def test_lista_widgets_vazia(self):
        from src.analysis.extractor import extract
        r = extract('{"widgets": []}')
        assert r.error and r.widgets == []

    def test_alias_de_tipo_normalizado(self):
        from src.analysis.extractor import extract
        w = {"tipo": "Gráfico-Linha", "titulo": "L", "dados": {"labels": ["a"], "values": [1]}}
        r = extract(_raw({**EXPLICACAO, "tipo": "explanation"}, w))
        assert [x["tipo"] for x in r.widgets] == ["explicacao", "grafico_linha"]


# ============================================================
# TestValidateWidget
# ============================================================

class TestValidateWidget:
    def test_card_valor_numerico_vira_texto(self):
        from src.analysis.widgets import validate_widget
        w = validate_widget({"tipo": "card", "titulo": "Total", "dados": {"valor": 150000}})
        assert w["dados"] == {"valor": "150000"}

    def test_card_opcionais(self):
        from src.analysis.widgets import validate_widget
        dados = {"valor": "R$ 150.000,00", "variacao": "+15%", "subtitulo": "vs mês anterior"}
        w = validate_widget({"tipo": "card", "titulo": "Total", "dados": dados})
        assert w["dados"] == dados

    def test_scatter_valido(self):
        from src.analysis.widgets import validate_widget
        dados = {"pontos": [{"x": 1, "y": 2.5, "nome": "P1"}], "labelX": "Preço", "labelY": "Qtd"}
        w = validate_widget({"tipo": "grafico_scatter", "titulo": "S", "dados": dados})
        assert w["dados"] == dados

    def test_scatter_ponto_sem_y(self):
        import pytest
        from src.analysis.widgets import validate_widget, InvalidWidget
        dados = {"pontos": [{"x": 1, "nome": "P1"}], "labelX": "a", "labelY": "b"}
        with pytest.raises(InvalidWidget):
            validate_widget({"tipo": "grafico_scatter", "titulo": "S", "dados": dados})

    def test_tipo_desconhecido(self):
        import pytest
        from src.analysis.widgets import validate_widget, UnknownWidgetKind
        with pytest.raises(UnknownWidgetKind):
            validate_widget({"tipo": "gauge", "dados": {}})

    def test_sem_dados(self):
        import pytest
        from src.analysis.widgets import validate_widget, InvalidWidget
        with pytest.raises(InvalidWidget):
            validate_widget({"tipo": "explicacao", "titulo": "x"})

    def test_campos_extras_preservados(self):
        from src.analysis.widgets import validate_widget
        w = validate_widget({"tipo": "grafico_pizza", "titulo": "P", "largura": 2,
                             "dados": {"labels": ["a"], "values": [1], "cores": ["#fff"]}})
        assert w["largura"] == 2
        assert w["dados"]["cores"] == ["#fff"]

    def test_resolve_kind(self):
        from src.analysis.widgets import resolve_kind
        assert resolve_kind("tabela") == "tabela"
        assert resolve_kind("TABLE") == "tabela"
        assert resolve_kind("bar-chart") == "grafico_barras"
        assert resolve_kind("gráfico_pizza") == "grafico_pizza"
        assert resolve_kind("heatmap") is None
        assert resolve_kind(None) is None
        assert resolve_kind(3) is None
