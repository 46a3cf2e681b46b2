#  Copyright (c) 2026 Fleer
from dataclasses import dataclass, field
from typing import List, Optional, Dict

from config.series_padrao import ULTIMA_SERIE_ANOS_INICIAIS


@dataclass(frozen=True)
class FaixaDisciplina:
    """Faixa de questões de uma disciplina dentro da prova de uma série."""
    disciplina: str
    questao_inicio: Optional[int]
    questao_fim: Optional[int]
    qtd_questoes: int
    valor_questao: float = 1.0
    compoe_media: bool = True
    faixas_nivel: Optional[tuple] = None

    def contem(self, numero: int) -> bool:
        if self.questao_inicio is None or self.questao_fim is None:
            return False
        return self.questao_inicio <= numero <= self.questao_fim


@dataclass(frozen=True)
class ConfiguracaoSerie:
    """
    Configuração resolvida para uma série.
    `faixas` traz só as disciplinas objetivas, ordenadas pela questão inicial;
    a produção textual (PROD) fica em `producao`.
    """
    serie: Optional[str]
    faixas: tuple
    producao: Optional[FaixaDisciplina] = None
    padrao: bool = False  # True quando veio do esquema fixo de último recurso

    @property
    def numero(self) -> Optional[int]:
        return int(self.serie) if self.serie and self.serie.isdigit() else None

    @property
    def anos_iniciais(self) -> bool:
        return self.numero is not None and self.numero <= ULTIMA_SERIE_ANOS_INICIAIS

    def faixa(self, disciplina: str) -> Optional[FaixaDisciplina]:
        for f in self.faixas:
            if f.disciplina == disciplina:
                return f
        return None

    @property
    def total_questoes(self) -> int:
        return sum(f.qtd_questoes for f in self.faixas)


@dataclass
class RespostaQuestao:
    """Resposta de um aluno a uma questão, já com a disciplina resolvida."""
    numero: int
    resposta: Optional[str]
    acertou: bool
    nota: float
    disciplina: str

    @property
    def codigo(self) -> str:
        return f"Q{self.numero}"


@dataclass
class LinhaNormalizada:
    """
    Uma linha da planilha convertida para a forma canônica.
    Contém a identidade do aluno, a série resolvida (e a regra que a resolveu),
    a presença e as respostas por questão.
    """
    indice: int
    escola_nome: str
    aluno_nome: str
    turma_codigo: str
    serie: Optional[str]
    origem_serie: Optional[str]  # 'coluna', 'turma' ou 'questoes'
    presenca: str                # 'P', 'F' ou '-'
    configuracao: ConfiguracaoSerie
    respostas: List[RespostaQuestao] = field(default_factory=list)
    acertos: Dict[str, int] = field(default_factory=dict)
    itens_producao: List[Optional[int]] = field(default_factory=list)
    nota_producao: Optional[float] = None
    notas_planilha: Dict[str, Optional[float]] = field(default_factory=dict)

    @property
    def fila(self) -> int:
        """Número da linha como aparece na planilha (o cabeçalho é a linha 1)."""
        return self.indice + 2


@dataclass
class ResultadoCalculado:
    """Campos calculados do resultado consolidado de um aluno."""
    presenca: str
    total_acertos_lp: Optional[int] = None
    total_acertos_mat: Optional[int] = None
    total_acertos_ch: Optional[int] = None
    total_acertos_cn: Optional[int] = None
    nota_lp: Optional[float] = None
    nota_mat: Optional[float] = None
    nota_ch: Optional[float] = None
    nota_cn: Optional[float] = None
    nota_producao: Optional[float] = None
    media_aluno: Optional[float] = None
    item_producao_1: Optional[int] = None
    item_producao_2: Optional[int] = None
    item_producao_3: Optional[int] = None
    item_producao_4: Optional[int] = None
    item_producao_5: Optional[int] = None
    item_producao_6: Optional[int] = None
    item_producao_7: Optional[int] = None
    item_producao_8: Optional[int] = None
    nivel_lp: Optional[str] = None
    nivel_mat: Optional[str] = None
    nivel_prod: Optional[str] = None
    nivel_aluno: Optional[str] = None
    total_questoes_respondidas: Optional[int] = None
    total_questoes_esperadas: Optional[int] = None


@dataclass
class ResumoImportacao:
    """Contadores de uma importação, espelhados em `importacoes` a cada checkpoint."""
    linhas_processadas: int = 0
    linhas_com_erro: int = 0
    escolas_criadas: int = 0
    escolas_existentes: int = 0
    turmas_criadas: int = 0
    turmas_existentes: int = 0
    alunos_criados: int = 0
    alunos_existentes: int = 0
    questoes_importadas: int = 0
    erros: List[str] = field(default_factory=list)
    total_erros: int = 0

    def registrar_erro(self, mensagem: str, limite: int):
        """Conta o erro e guarda a mensagem enquanto a lista não atingir o limite."""
        self.total_erros += 1
        if len(self.erros) < limite:
            self.erros.append(mensagem)

    def erros_para_gravar(self) -> List[str]:
        """Lista de erros com o marcador "+N" quando houve mais que o limite."""
        excedentes = self.total_erros - len(self.erros)
        if excedentes > 0:
            return self.erros + [f"... e mais {excedentes} erro(s)"]
        return list(self.erros)

    @classmethod
    def de_importacao(cls, importacao) -> "ResumoImportacao":
        """Reconstrói os contadores de um job gravado, para retomá-lo."""
        erros = [e for e in (importacao.erros or []) if not e.startswith("... e mais ")]
        return cls(
            linhas_processadas=importacao.linhas_processadas or 0,
            linhas_com_erro=importacao.linhas_com_erro or 0,
            escolas_criadas=importacao.escolas_criadas or 0,
            escolas_existentes=importacao.escolas_existentes or 0,
            turmas_criadas=importacao.turmas_criadas or 0,
            turmas_existentes=importacao.turmas_existentes or 0,
            alunos_criados=importacao.alunos_criados or 0,
            alunos_existentes=importacao.alunos_existentes or 0,
            questoes_importadas=importacao.questoes_importadas or 0,
            erros=erros,
            total_erros=importacao.total_erros or 0,
        )
