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

import ulid


def generar_uid() -> str:
    """
    Gera um identificador ULID, ordenável lexicograficamente pela criação.

    Returns:
        str: Cadeia ULID de 26 caracteres.
    """
    return str(ulid.new())


def gerar_codigo_aluno(numero: int) -> str:
    """
    Monta o código sintético de um aluno novo (ALU0001, ALU0002, ...).

    Args:
        numero (int): Número sequencial do aluno.

    Returns:
        str: Código no formato ALU seguido de ao menos quatro dígitos.
    """
    return f"ALU{numero:04d}"
