#  Copyright (c) 2026 Fleer
import logging
from dataclasses import asdict
from typing import Dict, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError

from config.mappings import AREAS_CONHECIMENTO
from database.config import TAMANHO_LOTE
from database.conexion import SessionLocal
from database.schemas import LinhaNormalizada, ResultadoCalculado, ResumoImportacao
from models.aluno_model import AlunoModel
from models.escola_model import EscolaModel
from models.resultado_consolidado_model import ResultadoConsolidadoModel
from models.resultado_prova_model import ResultadoProvaModel
from models.turma_model import TurmaModel
from utilities.sanitizer import Sanitizer
from utilities.uid import generar_uid, gerar_codigo_aluno

logger = logging.getLogger(__name__)


class ErroGravacaoLote(Exception):
    """Falha ao gravar um lote. Encerra o job com status 'erro'."""


class ContextoImportacao:
    """
    Caches de escolas, turmas e alunos de um único job.

    Os caches são carregados do banco no início do job e atualizados a cada
    cadastro novo; nunca são compartilhados entre jobs. Os cadastros usam
    upsert pela chave única, então dois jobs simultâneos convergem para o
    mesmo registro.
    """

    def __init__(self, ano_letivo: str, resumo: ResumoImportacao, session_factory=None):
        self.ano_letivo = ano_letivo
        self.resumo = resumo
        self.model_escola = EscolaModel(session_factory)
        self.model_turma = TurmaModel(session_factory)
        self.model_aluno = AlunoModel(session_factory)

        self.escolas: Dict[str, str] = {}
        self.turmas: Dict[Tuple[str, str], str] = {}
        self.alunos: Dict[Tuple[str, str], Tuple[str, str]] = {}
        self._ultimo_codigo = 0

        # Entidades já contadas neste job (criadas ou existentes)
        self._vistos = set()

    def carregar_caches(self):
        """Pré-carrega os cadastros do ano letivo."""
        self.escolas = self.model_escola.mapa_por_nome()
        self.turmas = self.model_turma.mapa_do_ano(self.ano_letivo)
        self.alunos = self.model_aluno.mapa_do_ano(self.ano_letivo)
        self._ultimo_codigo = self.model_aluno.maior_numero_codigo()
        logger.debug("Caches carregados: %d escolas, %d turmas, %d alunos.",
                     len(self.escolas), len(self.turmas), len(self.alunos))

    def _contar(self, tipo: str, chave, criado: bool):
        if (tipo, chave) in self._vistos:
            return
        self._vistos.add((tipo, chave))
        campo = f"{tipo}_criadas" if tipo in ("escolas", "turmas") else f"{tipo}_criados"
        if not criado:
            campo = f"{tipo}_existentes"
        setattr(self.resumo, campo, getattr(self.resumo, campo) + 1)

    def resolver_escola(self, nome: str) -> str:
        """Id da escola pelo nome normalizado, criando-a se necessário."""
        chave = Sanitizer.normalizar_nome(nome)
        escola_id = self.escolas.get(chave)
        criada = False
        if escola_id is None:
            escola_id, criada = self.model_escola.garantir_escola(nome.strip(), chave)
            self.escolas[chave] = escola_id
        self._contar("escolas", escola_id, criada)
        return escola_id

    def resolver_turma(self, codigo: str, escola_id: str, serie) -> str | None:
        """Id da turma, criando-a se necessário. Sem código, o aluno fica sem turma."""
        if not codigo:
            return None
        chave = (codigo, escola_id)
        turma_id = self.turmas.get(chave)
        criada = False
        if turma_id is None:
            turma_id, criada = self.model_turma.garantir_turma(codigo, escola_id, serie, self.ano_letivo)
            self.turmas[chave] = turma_id
        self._contar("turmas", turma_id, criada)
        return turma_id

    def resolver_aluno(self, nome: str, escola_id: str, turma_id, serie) -> Tuple[str, str]:
        """
        Id e código do aluno pela chave (nome normalizado, escola, ano letivo).

        Returns:
            Tuple[str, str]: (id, codigo).
        """
        chave = (Sanitizer.normalizar_nome(nome), escola_id)
        encontrado = self.alunos.get(chave)
        criado = False
        if encontrado is None:
            self._ultimo_codigo += 1
            codigo = gerar_codigo_aluno(self._ultimo_codigo)
            aluno_id, criado = self.model_aluno.garantir_aluno({
                "codigo": codigo,
                "nome": nome.strip(),
                "nome_normalizado": chave[0],
                "escola_id": escola_id,
                "turma_id": turma_id,
                "serie": serie,
                "ano_letivo": self.ano_letivo,
            })
            if not criado:
                # Outro job cadastrou o aluno entre a carga do cache e agora
                codigo = self.model_aluno.codigo_de(aluno_id)
            encontrado = (aluno_id, codigo)
            self.alunos[chave] = encontrado
        self._contar("alunos", encontrado[0], criado)
        return encontrado


class GravadorLotes:
    """
    Buffer de resultados por questão e consolidados, gravado em lotes.

    Cada descarga grava tudo o que está no buffer numa única transação: os
    upserts multi-linha de `resultados_provas` e os de
    `resultados_consolidados` dos mesmos alunos. Ou o lote inteiro entra, ou
    nada entra.
    """

    def __init__(self, ano_letivo: str, session_factory=None, tamanho_lote: int = TAMANHO_LOTE):
        self.ano_letivo = ano_letivo
        self.session_factory = session_factory or SessionLocal
        self.tamanho_lote = tamanho_lote
        self._resultados: Dict[tuple, dict] = {}
        self._consolidados: Dict[tuple, dict] = {}
        # alunos com consolidado já gravado nesta execução
        self.alunos_gravados: Set[str] = set()

    @property
    def pendentes(self) -> int:
        return len(self._resultados)

    @property
    def cheio(self) -> bool:
        return len(self._resultados) >= self.tamanho_lote

    @property
    def vazio(self) -> bool:
        return not self._resultados and not self._consolidados

    def adicionar(self, linha: LinhaNormalizada, resultado: ResultadoCalculado,
                  escola_id: str, turma_id, aluno_id: str, aluno_codigo: str):
        """
        Enfileira as respostas e o consolidado de uma linha.
        Chaves repetidas no mesmo lote ficam com o último valor.
        """
        for resposta in linha.respostas:
            chave = (aluno_id, resposta.codigo, self.ano_letivo)
            self._resultados[chave] = {
                "id": generar_uid(),
                "escola_id": escola_id,
                "turma_id": turma_id,
                "aluno_id": aluno_id,
                "aluno_codigo": aluno_codigo,
                "aluno_nome": linha.aluno_nome,
                "questao_codigo": resposta.codigo,
                "questao_numero": resposta.numero,
                "resposta_aluno": resposta.resposta,
                "acertou": resposta.acertou,
                "nota": resposta.nota,
                "disciplina": resposta.disciplina,
                "area_conhecimento": AREAS_CONHECIMENTO.get(resposta.disciplina),
                "serie": linha.serie,
                "turma": linha.turma_codigo or None,
                "presenca": linha.presenca,
                "ano_letivo": self.ano_letivo,
            }

        self._consolidados[(aluno_id, self.ano_letivo)] = {
            "id": generar_uid(),
            "aluno_id": aluno_id,
            "escola_id": escola_id,
            "turma_id": turma_id,
            "ano_letivo": self.ano_letivo,
            "serie": linha.serie,
            "origem_serie": linha.origem_serie,
            "configuracao_padrao": linha.configuracao.padrao,
            **asdict(resultado),
        }

    def descarregar(self) -> int:
        """
        Grava o buffer numa transação e o esvazia.

        Returns:
            int: Quantidade de resultados por questão gravados.

        Raises:
            ErroGravacaoLote: Se o banco recusar o lote. Nada do lote fica gravado.
        """
        if self.vazio:
            return 0
        resultados = list(self._resultados.values())
        consolidados = list(self._consolidados.values())
        session = self.session_factory()
        try:
            ResultadoProvaModel.gravar_lote(session, resultados)
            ResultadoConsolidadoModel.gravar_lote(session, consolidados)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise ErroGravacaoLote(f"Falha ao gravar lote de {len(resultados)} resultados: {e}") from e
        finally:
            session.close()

        self.alunos_gravados.update(aluno_id for aluno_id, _ano in self._consolidados)
        self._resultados.clear()
        self._consolidados.clear()
        logger.debug("Lote gravado: %d resultados, %d consolidados.", len(resultados), len(consolidados))
        return len(resultados)
