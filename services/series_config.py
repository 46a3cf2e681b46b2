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
import re
from typing import Dict, Optional

from config.series_padrao import (
    esquema_por_serie, faixas_nivel_para, QTD_ITENS_PRODUCAO, ULTIMA_SERIE_ANOS_INICIAIS
)
from database.schemas import ConfiguracaoSerie, FaixaDisciplina
from models.configuracao_serie_model import ConfiguracaoSerieModel
from utilities.sanitizer import Sanitizer

logger = logging.getLogger(__name__)

ANO_MINIMO = 2000
ANO_MAXIMO = 2100


class ConfiguracaoInvalidaError(ValueError):
    """A configuração cadastrada de uma série é inconsistente (faixas sobrepostas ou invertidas)."""


def parece_ano(numero: int) -> bool:
    """True se o número é um ano letivo (2000 a 2100) e não uma série."""
    return ANO_MINIMO <= numero <= ANO_MAXIMO


def normalizar_serie(texto) -> Optional[str]:
    """
    Reduz o texto da série aos dígitos ("5º Ano" -> "5", "05" -> "5").

    Args:
        texto: Série como veio da planilha.

    Returns:
        Optional[str]: Número da série, ou None se vazio ou se for um ano.
    """
    digitos = Sanitizer.extrair_digitos(texto)
    if not digitos:
        return None
    numero = int(digitos)
    if parece_ano(numero):
        return None
    return str(numero)


def _numeros_no_texto(texto) -> list[str]:
    """Grupos numéricos do texto que não são anos, na ordem em que aparecem."""
    numeros = []
    for grupo in re.findall(r"\d+", Sanitizer.texto_celula(texto)):
        numero = int(grupo)
        if not parece_ano(numero):
            numeros.append(str(numero))
    return numeros


class ResolvedorConfigSerie:
    """Resolve a configuração de questões por disciplina para uma série.

    Uma instância pertence a um único job: carrega toda a configuração ativa
    na primeira resolução e memoriza o resultado por texto de série.

    Ordem de resolução:
        1. dígitos do texto (descartando anos);
        2. primeiro número do texto que tenha configuração;
        3. esquema fixo pela faixa da série, com aviso no log.
    """

    def __init__(self, model: ConfiguracaoSerieModel | None = None, session_factory=None):
        self.model = model or ConfiguracaoSerieModel(session_factory)
        self._por_serie: Dict[str, ConfiguracaoSerie] | None = None
        self._cache: Dict[str, ConfiguracaoSerie] = {}

    def carregar(self) -> Dict[str, ConfiguracaoSerie]:
        """Lê a configuração ativa e valida as faixas de cada série.

        Returns:
            Dict[str, ConfiguracaoSerie]: Série normalizada -> configuração.

        Raises:
            ConfiguracaoInvalidaError: Se houver faixas sobrepostas ou invertidas.
        """
        agrupado: Dict[str, list] = {}
        for linha in self.model.listar_ativas():
            serie = normalizar_serie(linha.serie)
            if serie is None:
                logger.warning("Configuração ignorada: série '%s' não é um número de série.", linha.serie)
                continue
            agrupado.setdefault(serie, []).append(linha)

        self._por_serie = {serie: self._montar(serie, linhas) for serie, linhas in agrupado.items()}
        logger.debug("Configuração carregada para as séries %s.", sorted(self._por_serie))
        return self._por_serie

    @staticmethod
    def _montar(serie: str, linhas) -> ConfiguracaoSerie:
        faixas = []
        producao = None
        for linha in linhas:
            faixa = FaixaDisciplina(
                disciplina=linha.disciplina,
                questao_inicio=linha.questao_inicio,
                questao_fim=linha.questao_fim,
                qtd_questoes=linha.qtd_questoes,
                valor_questao=linha.valor_questao if linha.valor_questao is not None else 1.0,
                compoe_media=bool(linha.compoe_media),
                faixas_nivel=tuple(linha.faixas_nivel) if linha.faixas_nivel else None,
            )
            if linha.disciplina == "PROD":
                producao = faixa
                continue
            if faixa.questao_inicio is None or faixa.questao_fim is None or faixa.questao_inicio > faixa.questao_fim:
                raise ConfiguracaoInvalidaError(
                    f"Série {serie}, {faixa.disciplina}: faixa inválida "
                    f"({faixa.questao_inicio}-{faixa.questao_fim})."
                )
            faixas.append(faixa)

        faixas.sort(key=lambda f: f.questao_inicio)
        for anterior, atual in zip(faixas, faixas[1:]):
            if atual.questao_inicio <= anterior.questao_fim:
                raise ConfiguracaoInvalidaError(
                    f"Série {serie}: {anterior.disciplina} ({anterior.questao_inicio}-{anterior.questao_fim}) "
                    f"sobrepõe {atual.disciplina} ({atual.questao_inicio}-{atual.questao_fim})."
                )
        return ConfiguracaoSerie(serie=serie, faixas=tuple(faixas), producao=producao, padrao=False)

    def resolver(self, serie_texto) -> ConfiguracaoSerie:
        """
        Configuração para o texto de série informado.

        Args:
            serie_texto: Ex. "5º Ano", "5", "05". Vazio ou None usa o esquema fixo.

        Returns:
            ConfiguracaoSerie: Configuração cadastrada ou, na falta dela, o
            esquema fixo com `padrao=True`.
        """
        chave = Sanitizer.texto_celula(serie_texto)
        if chave in self._cache:
            return self._cache[chave]
        if self._por_serie is None:
            self.carregar()

        normalizada = normalizar_serie(chave)
        configuracao = self._por_serie.get(normalizada) if normalizada else None

        candidatos = _numeros_no_texto(chave)
        if configuracao is None:
            for numero in candidatos:
                if numero in self._por_serie:
                    configuracao = self._por_serie[numero]
                    break

        if configuracao is None:
            serie_num = int(candidatos[0]) if candidatos else (int(normalizada) if normalizada else None)
            configuracao = self.esquema_fixo(serie_num)
            logger.warning(
                "Série '%s' sem configuração cadastrada; usando o esquema padrão da série %s.",
                chave, configuracao.serie or "desconhecida"
            )

        self._cache[chave] = configuracao
        return configuracao

    @staticmethod
    def esquema_fixo(serie_num: Optional[int]) -> ConfiguracaoSerie:
        """Esquema de último recurso para a faixa da série."""
        faixas = tuple(
            FaixaDisciplina(
                disciplina=disciplina,
                questao_inicio=inicio,
                questao_fim=fim,
                qtd_questoes=fim - inicio + 1,
                faixas_nivel=tuple(faixas_nivel_para(serie_num, disciplina) or ()) or None,
            )
            for disciplina, inicio, fim in esquema_por_serie(serie_num)
        )
        producao = None
        if serie_num is not None and serie_num <= ULTIMA_SERIE_ANOS_INICIAIS:
            producao = FaixaDisciplina("PROD", None, None, QTD_ITENS_PRODUCAO)
        serie = str(serie_num) if serie_num is not None else None
        return ConfiguracaoSerie(serie=serie, faixas=faixas, producao=producao, padrao=True)
