#  Copyright (c) 2026 Fleer
#  Permission is hereby granted, free of charge, to any person obtaining a copy
#  of this software and associated documentation files (the "Software"), to deal
#  in the Software without restriction, including without limitation the rights
#  to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
#  copies of the Software, and to permit persons to whom the Software is
#  furnished to do so, subject to the following conditions:
#
#  The above copyright notice and this permission notice shall be included in all
#  copies or substantial portions of the Software.

"""Configuração padrão das séries avaliadas.

Os esquemas aqui servem a dois usos: popular a tabela
`configuracao_series_disciplinas` na primeira inicialização e servir de
último recurso quando uma série não tem configuração cadastrada.
"""

# Acertos mínimos para N1, N2, N3 e N4
FAIXAS_NIVEL_PADRAO = [1, 4, 8, 12]
FAIXAS_NIVEL_MAT_5 = [1, 6, 11, 16]

QTD_ITENS_PRODUCAO = 8

# (disciplina, questao_inicio, questao_fim)
ESQUEMA_ANOS_INICIAIS = [('LP', 1, 14), ('MAT', 15, 28)]
ESQUEMA_QUINTO_ANO = [('LP', 1, 14), ('MAT', 15, 34)]
ESQUEMA_ANOS_FINAIS = [('LP', 1, 20), ('CH', 21, 30), ('MAT', 31, 50), ('CN', 51, 60)]

SERIES_ANOS_INICIAIS = ['2', '3', '5']
SERIES_ANOS_FINAIS = ['6', '7', '8', '9']

# Última série considerada "anos iniciais" (com níveis e produção textual)
ULTIMA_SERIE_ANOS_INICIAIS = 5


def esquema_por_serie(serie_num: int | None) -> list[tuple[str, int, int]]:
    """Escolhe o esquema de questões fixo pela faixa da série.

    Args:
        serie_num (int | None): Número da série. None usa o esquema dos anos finais.

    Returns:
        list[tuple[str, int, int]]: Faixas (disciplina, início, fim) em ordem.
    """
    if serie_num is None:
        return ESQUEMA_ANOS_FINAIS
    if serie_num <= 3:
        return ESQUEMA_ANOS_INICIAIS
    if serie_num <= 5:
        return ESQUEMA_QUINTO_ANO
    return ESQUEMA_ANOS_FINAIS


def faixas_nivel_para(serie_num: int | None, disciplina: str) -> list[int] | None:
    """Faixas de nível de LP/MAT nos anos iniciais; None nas demais combinações."""
    if serie_num is None or serie_num > ULTIMA_SERIE_ANOS_INICIAIS:
        return None
    if disciplina == 'MAT' and serie_num >= 4:
        return list(FAIXAS_NIVEL_MAT_5)
    if disciplina in ('LP', 'MAT'):
        return list(FAIXAS_NIVEL_PADRAO)
    return None


def linhas_configuracao_padrao() -> list[dict]:
    """Linhas usadas para popular a tabela de configuração das séries.

    Returns:
        list[dict]: Uma linha por (série, disciplina), inclusive PROD nos anos iniciais.
    """
    linhas = []
    for serie in SERIES_ANOS_INICIAIS + SERIES_ANOS_FINAIS:
        numero = int(serie)
        for disciplina, inicio, fim in esquema_por_serie(numero):
            linhas.append({
                'serie': serie,
                'disciplina': disciplina,
                'questao_inicio': inicio,
                'questao_fim': fim,
                'qtd_questoes': fim - inicio + 1,
                'valor_questao': 1.0,
                'compoe_media': True,
                'faixas_nivel': faixas_nivel_para(numero, disciplina),
                'ativo': True,
            })
        if numero <= ULTIMA_SERIE_ANOS_INICIAIS:
            linhas.append({
                'serie': serie,
                'disciplina': 'PROD',
                'questao_inicio': None,
                'questao_fim': None,
                'qtd_questoes': QTD_ITENS_PRODUCAO,
                'valor_questao': 1.0,
                'compoe_media': True,
                'faixas_nivel': None,
                'ativo': True,
            })
    return linhas
