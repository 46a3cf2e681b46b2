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

import logging
from typing import Dict, Optional

from database.config import REGRA_NIVEL_ALUNO
from models.resultado_consolidado_model import ResultadoConsolidadoModel
from services.consolidacao import CalculadoraConsolidacao
from services.series_config import ResolvedorConfigSerie

logger = logging.getLogger(__name__)

CAMPOS_NIVEL = ('nivel_lp', 'nivel_mat', 'nivel_prod', 'nivel_aluno')


def recalcular_niveis(session_factory=None, ano_letivo: Optional[str] = None,
                      regra_nivel: str = REGRA_NIVEL_ALUNO) -> Dict[str, int]:
    """
    Recalcula os níveis dos resultados consolidados já gravados.

    Usa os acertos e a nota de produção guardados e as faixas atuais da
    configuração de séries; nada é relido das planilhas. Só alunos presentes
    dos anos iniciais têm níveis, e só as linhas cujo nível mudou são gravadas.

    Args:
        session_factory: Fábrica de sessões.
        ano_letivo (str, optional): Limita o recálculo a um ano letivo.
        regra_nivel (str): Regra do nível geral ('media' ou 'maioria').

    Returns:
        dict: {"avaliados": linhas dos anos iniciais lidas, "atualizados": linhas alteradas}.
    """
    resolvedor = ResolvedorConfigSerie(session_factory=session_factory)
    resolvedor.carregar()
    calculadora = CalculadoraConsolidacao(regra_nivel)
    model = ResultadoConsolidadoModel(session_factory)

    avaliados = 0
    atualizacoes = []
    for resultado in model.presentes(ano_letivo):
        configuracao = resolvedor.resolver(resultado.serie)
        if not configuracao.anos_iniciais:
            continue
        avaliados += 1
        novos = calculadora.niveis(configuracao, resultado.total_acertos_lp, resultado.total_acertos_mat,
                                   resultado.nota_producao)
        if any(getattr(resultado, campo) != novos[campo] for campo in CAMPOS_NIVEL):
            atualizacoes.append({"id": resultado.id, **novos})

    model.atualizar_niveis(atualizacoes)
    logger.info("Recálculo de níveis%s: %d resultados avaliados, %d atualizados.",
                f" ({ano_letivo})" if ano_letivo else "", avaliados, len(atualizacoes))
    return {"avaliados": avaliados, "atualizados": len(atualizacoes)}
