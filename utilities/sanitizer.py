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
import re
import unicodedata
import pandas as pd
from typing import Any, Optional


class Sanitizer:
    """Classe utilitária estática para limpeza dos valores lidos da planilha."""

    @staticmethod
    def vazio(valor: Any) -> bool:
        """Indica se a célula está vazia (None, NaN ou só espaços)."""
        if valor is None:
            return True
        try:
            if pd.isna(valor):
                return True
        except (TypeError, ValueError):
            return False
        return str(valor).strip() == ""

    @staticmethod
    def texto_celula(valor: Any) -> str:
        """
        Converte uma célula em texto, sem espaços nas pontas.
        Números inteiros lidos como float (ex: 5.0) voltam a ser "5".

        Args:
            valor (Any): Valor da célula.

        Returns:
            str: Texto da célula ou "" se vazia.
        """
        if Sanitizer.vazio(valor):
            return ""
        if isinstance(valor, float) and valor.is_integer():
            return str(int(valor))
        return str(valor).strip()

    @staticmethod
    def limpar_texto(texto: Any) -> str:
        """
        Normaliza texto removendo acentos, colapsando espaços e convertendo
        para maiúsculas. Usado em cabeçalhos e tokens de presença.

        Args:
            texto (Any): Texto de entrada.

        Returns:
            str: Texto limpo e em maiúsculas.
        """
        txt = Sanitizer.texto_celula(texto)
        if not txt:
            return ""

        # Normalização unicode (remove acentos e cedilha)
        txt = unicodedata.normalize("NFD", txt)
        txt = "".join(c for c in txt if unicodedata.category(c) != "Mn")
        txt = re.sub(r"\s+", " ", txt)
        return txt.upper()

    @staticmethod
    def normalizar_nome(texto: Any) -> str:
        """
        Chave de identidade de escolas e alunos: maiúsculas, sem espaços
        nas pontas e com espaços internos colapsados. Acentos são mantidos.

        Args:
            texto (Any): Nome como veio da planilha.

        Returns:
            str: Nome normalizado.
        """
        txt = Sanitizer.texto_celula(texto)
        return re.sub(r"\s+", " ", txt).upper()

    @staticmethod
    def extrair_digitos(texto: Any) -> str:
        """Devolve apenas os dígitos do texto ("5º Ano" -> "5")."""
        return re.sub(r"\D", "", Sanitizer.texto_celula(texto))

    @staticmethod
    def limpar_nota(valor: Any) -> Optional[float]:
        """
        Converte um valor da planilha em float, aceitando vírgula decimal.

        Args:
            valor (Any): Valor de entrada (str, float, int).

        Returns:
            Optional[float]: Valor numérico ou None se vazio ou inválido.
        """
        s_val = Sanitizer.texto_celula(valor).replace(',', '.')
        if s_val in ["-", "", "nan", "None"]:
            return None
        try:
            return float(s_val)
        except ValueError:
            return None
