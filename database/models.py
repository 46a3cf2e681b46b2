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

from sqlalchemy import (
    Column, String, Float, ForeignKey, JSON, DateTime,
    UniqueConstraint, Enum, Integer, Boolean, Text, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database.conexion import Base
from utilities.uid import generar_uid


STATUS_IMPORTACAO = ("processando", "pausado", "cancelado", "concluido", "erro")


# ---------------- CADASTROS ----------------

class Escola(Base):
    """Escola participante da avaliação."""
    __tablename__ = "escolas"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)
    nome = Column(String(255), nullable=False)
    nome_normalizado = Column(String(255), nullable=False, unique=True)
    codigo = Column(String(50), nullable=True)

    turmas = relationship("Turma", back_populates="escola")
    alunos = relationship("Aluno", back_populates="escola")


class Turma(Base):
    """Turma de uma escola em um ano letivo."""
    __tablename__ = "turmas"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)
    codigo = Column(String(50), nullable=False)
    escola_id = Column(
        String(26),
        ForeignKey("escolas.id", ondelete="CASCADE"),
        nullable=False
    )
    serie = Column(String(20), nullable=True)
    ano_letivo = Column(String(4), nullable=False)

    escola = relationship("Escola", back_populates="turmas")

    __table_args__ = (
        UniqueConstraint("codigo", "escola_id", "ano_letivo", name="uq_turma_escola_ano"),
    )


class Aluno(Base):
    """Aluno identificado pelo nome normalizado dentro da escola e do ano letivo."""
    __tablename__ = "alunos"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)
    codigo = Column(String(20), nullable=False)
    nome = Column(String(255), nullable=False)
    nome_normalizado = Column(String(255), nullable=False)
    escola_id = Column(
        String(26),
        ForeignKey("escolas.id", ondelete="CASCADE"),
        nullable=False
    )
    turma_id = Column(
        String(26),
        ForeignKey("turmas.id", ondelete="SET NULL"),
        nullable=True
    )
    serie = Column(String(20), nullable=True)
    ano_letivo = Column(String(4), nullable=False)

    escola = relationship("Escola", back_populates="alunos")

    __table_args__ = (
        UniqueConstraint("nome_normalizado", "escola_id", "ano_letivo", name="uq_aluno_escola_ano"),
    )


# ---------------- CONFIGURAÇÃO ----------------

class ConfiguracaoSerieDisciplina(Base):
    """Faixa de questões de uma disciplina para uma série.

    A disciplina PROD (produção textual) não tem faixa de questões; nela
    `qtd_questoes` guarda a quantidade de itens avaliados.
    """
    __tablename__ = "configuracao_series_disciplinas"

    id = Column(String(26), primary_key=True, default=generar_uid)
    serie = Column(String(10), nullable=False, index=True)
    disciplina = Column(
        Enum("LP", "MAT", "CH", "CN", "PROD", name="disciplina_avaliacao"),
        nullable=False
    )
    questao_inicio = Column(Integer, nullable=True)
    questao_fim = Column(Integer, nullable=True)
    qtd_questoes = Column(Integer, nullable=False)
    valor_questao = Column(Float, default=1.0, nullable=False)
    compoe_media = Column(Boolean, default=True, nullable=False)
    # Acertos mínimos para N1..N4 (somente LP/MAT dos anos iniciais)
    faixas_nivel = Column(JSON, nullable=True)
    ativo = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("serie", "disciplina", name="uq_serie_disciplina"),
    )


# ---------------- IMPORTAÇÃO ----------------

class Importacao(Base):
    """Job de importação de uma planilha, com estado e contadores de progresso."""
    __tablename__ = "importacoes"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)
    nome_arquivo = Column(String(255), nullable=False)
    caminho_arquivo = Column(String(500), nullable=True)
    ano_letivo = Column(String(4), nullable=False)
    total_linhas = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default="processando", nullable=False)

    proxima_linha = Column(Integer, default=0, nullable=False)
    linhas_processadas = Column(Integer, default=0, nullable=False)
    linhas_com_erro = Column(Integer, default=0, nullable=False)

    escolas_criadas = Column(Integer, default=0, nullable=False)
    escolas_existentes = Column(Integer, default=0, nullable=False)
    turmas_criadas = Column(Integer, default=0, nullable=False)
    turmas_existentes = Column(Integer, default=0, nullable=False)
    alunos_criados = Column(Integer, default=0, nullable=False)
    alunos_existentes = Column(Integer, default=0, nullable=False)
    questoes_importadas = Column(Integer, default=0, nullable=False)

    erros = Column(JSON, nullable=True)
    total_erros = Column(Integer, default=0, nullable=False)
    mensagem_erro = Column(Text, nullable=True)

    criado_em = Column(DateTime(timezone=True), server_default=func.now())
    iniciado_em = Column(DateTime(timezone=True), nullable=True)
    atualizado_em = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    concluido_em = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('processando', 'pausado', 'cancelado', 'concluido', 'erro')",
            name="ck_importacao_status"
        ),
    )


# ---------------- RESULTADOS ----------------

class ResultadoProva(Base):
    """Resposta de um aluno a uma questão, uma linha por (aluno, questão, ano letivo)."""
    __tablename__ = "resultados_provas"

    id = Column(String(26), primary_key=True, default=generar_uid)
    escola_id = Column(String(26), ForeignKey("escolas.id", ondelete="CASCADE"), nullable=False)
    turma_id = Column(String(26), ForeignKey("turmas.id", ondelete="SET NULL"), nullable=True)
    aluno_id = Column(String(26), ForeignKey("alunos.id", ondelete="CASCADE"), nullable=False)
    aluno_codigo = Column(String(20), nullable=True)
    aluno_nome = Column(String(255), nullable=True)

    questao_codigo = Column(String(10), nullable=False)
    questao_numero = Column(Integer, nullable=False)
    resposta_aluno = Column(String(20), nullable=True)
    acertou = Column(Boolean, default=False, nullable=False)
    nota = Column(Float, default=0.0, nullable=False)
    disciplina = Column(String(10), nullable=False)
    area_conhecimento = Column(String(100), nullable=True)

    serie = Column(String(10), nullable=True)
    turma = Column(String(50), nullable=True)
    presenca = Column(String(1), nullable=False)
    ano_letivo = Column(String(4), nullable=False)

    criado_em = Column(DateTime(timezone=True), server_default=func.now())
    atualizado_em = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("aluno_id", "questao_codigo", "ano_letivo", name="uq_resultado_aluno_questao_ano"),
    )


class ResultadoConsolidado(Base):
    """Resumo anual de um aluno: acertos, notas, médias e níveis."""
    __tablename__ = "resultados_consolidados"

    id = Column(String(26), primary_key=True, default=generar_uid)
    aluno_id = Column(String(26), ForeignKey("alunos.id", ondelete="CASCADE"), nullable=False)
    escola_id = Column(String(26), ForeignKey("escolas.id", ondelete="CASCADE"), nullable=False)
    turma_id = Column(String(26), ForeignKey("turmas.id", ondelete="SET NULL"), nullable=True)
    ano_letivo = Column(String(4), nullable=False)
    serie = Column(String(10), nullable=True)
    origem_serie = Column(String(10), nullable=True)
    configuracao_padrao = Column(Boolean, default=False, nullable=False)
    presenca = Column(String(1), nullable=False)

    total_acertos_lp = Column(Integer, nullable=True)
    total_acertos_mat = Column(Integer, nullable=True)
    total_acertos_ch = Column(Integer, nullable=True)
    total_acertos_cn = Column(Integer, nullable=True)

    nota_lp = Column(Float, nullable=True)
    nota_mat = Column(Float, nullable=True)
    nota_ch = Column(Float, nullable=True)
    nota_cn = Column(Float, nullable=True)
    nota_producao = Column(Float, nullable=True)
    media_aluno = Column(Float, nullable=True)

    item_producao_1 = Column(Integer, nullable=True)
    item_producao_2 = Column(Integer, nullable=True)
    item_producao_3 = Column(Integer, nullable=True)
    item_producao_4 = Column(Integer, nullable=True)
    item_producao_5 = Column(Integer, nullable=True)
    item_producao_6 = Column(Integer, nullable=True)
    item_producao_7 = Column(Integer, nullable=True)
    item_producao_8 = Column(Integer, nullable=True)

    nivel_lp = Column(String(2), nullable=True)
    nivel_mat = Column(String(2), nullable=True)
    nivel_prod = Column(String(2), nullable=True)
    nivel_aluno = Column(String(2), nullable=True)

    total_questoes_respondidas = Column(Integer, nullable=True)
    total_questoes_esperadas = Column(Integer, nullable=True)

    criado_em = Column(DateTime(timezone=True), server_default=func.now())
    atualizado_em = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("aluno_id", "ano_letivo", name="uq_consolidado_aluno_ano"),
    )
