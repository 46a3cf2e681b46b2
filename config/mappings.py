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

"""Mapeamentos e constantes para a leitura das planilhas de resultados.

Os cabeçalhos são comparados já normalizados (maiúsculas, sem acentos e com
espaços colapsados; ver `Sanitizer.limpar_texto`). Aceitar uma nova
convenção de planilha é acrescentar um alias aqui, sem mexer no código.
"""

import re

# Mapeamento das colunas esperadas na planilha e seus possíveis aliases
COLUNA_ALIAS = {
    'escola': ['ESCOLA', 'NOME ESCOLA', 'NOME DA ESCOLA', 'UNIDADE ESCOLAR'],
    'aluno': ['ALUNO', 'NOME ALUNO', 'NOME DO ALUNO', 'ESTUDANTE', 'NOME'],
    'turma': ['TURMA', 'COD TURMA', 'CODIGO TURMA', 'CODIGO DA TURMA'],
    'serie': ['ANO/SERIE', 'ANO / SERIE', 'SERIE/ANO', 'SERIE / ANO', 'SERIE', 'ANO SERIE', 'ANO_SERIE',
              'ANO ESCOLAR', 'ETAPA'],
    'pf': ['P/F', 'P F', 'PF'],
    'falta': ['FALTA', 'FALTAS', 'FALTOU'],
    'presenca': ['PRESENCA', 'PRESENTE'],
    'nota_producao': ['PRODUCAO', 'NOTA PRODUCAO', 'NOTA_PRODUCAO', 'NOTA-PRODUCAO', 'PRODUCAO TEXTUAL'],
    'nota_lp': ['NOTA-LP', 'NOTA_LP', 'NOTA LP'],
    'nota_mat': ['NOTA-MAT', 'NOTA_MAT', 'NOTA MAT'],
    'nota_ch': ['NOTA-CH', 'NOTA_CH', 'NOTA CH'],
    'nota_cn': ['NOTA-CN', 'NOTA_CN', 'NOTA CN'],
    'media': ['MED_ALUNO', 'MED ALUNO', 'MEDIA', 'MEDIA ALUNO'],
}
"""dict: Nome interno do campo -> cabeçalhos aceitos na planilha."""

# Só o nome da escola e do aluno são obrigatórios em cada linha
COLUNAS_OBRIGATORIAS = ['escola', 'aluno']

# Cabeçalhos que costumam trazer o ano letivo e nunca a série
CABECALHOS_ANO_LETIVO = {'ANO', 'ANO LETIVO', 'ANO_LETIVO', 'ANO-LETIVO', 'EXERCICIO'}

# Campos cujo alias pode aparecer dentro de um cabeçalho maior (ex. "NOME COMPLETO DO ALUNO")
CAMPOS_BUSCA_PARCIAL = ['escola', 'aluno', 'turma', 'serie']

# Q1, Q 01, Q_7 ...
PADRAO_QUESTAO = re.compile(r"^Q[\s_]*0*(\d+)$")

# ITEM_1, ITEM 1, ITEM1, I1 (itens da produção textual)
PADRAO_ITEM_PRODUCAO = re.compile(r"^(?:ITEM[\s_-]*|I)0*(\d+)$")

MAX_ITENS_PRODUCAO = 8

# Vocabulário de presença por convenção de coluna. Chaves já normalizadas.
VOCABULARIO_PRESENCA = {
    'pf': {
        'P': 'P', 'PRESENTE': 'P',
        'F': 'F', 'FALTOU': 'F', 'AUSENTE': 'F',
    },
    'falta': {
        'F': 'F', 'X': 'F', 'FALTOU': 'F', 'AUSENTE': 'F', 'SIM': 'F', '1': 'F', 'S': 'F',
    },
    'presenca': {
        'P': 'P', 'PRESENTE': 'P', 'SIM': 'P', '1': 'P', 'S': 'P',
        'F': 'F', 'FALTOU': 'F', 'AUSENTE': 'F', 'NAO': 'F', '0': 'F', 'N': 'F',
    },
}
"""dict: Para cada coluna de presença, token -> 'P' ou 'F'."""

# Valor assumido quando a coluna tem dado mas o token não está no vocabulário
PRESENCA_TOKEN_DESCONHECIDO = {
    'pf': None,
    'falta': 'P',
    'presenca': None,
}

# Ordem de consulta das colunas de presença
ORDEM_COLUNAS_PRESENCA = ['pf', 'falta', 'presenca']

PRESENCA_SEM_DADOS = '-'

# Conteúdos de célula que contam como resposta correta
VALORES_ACERTO = {'1', 'X'}

# Inferência de série pela maior questão respondida
SERIE_POR_MAIOR_QUESTAO = [(28, '2'), (34, '5')]
SERIE_QUESTOES_ACIMA = '8'

AREAS_CONHECIMENTO = {
    'LP': 'Língua Portuguesa',
    'MAT': 'Matemática',
    'CH': 'Ciências Humanas',
    'CN': 'Ciências da Natureza',
}
