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

from sqlalchemy.sql import func

from database.base_model import BaseCRUDModel
from database.models import Importacao
from database.schemas import ResumoImportacao
from utilities.uid import generar_uid


class ImportacaoModel(BaseCRUDModel):
    """Modelo do registro persistido de cada job de importação.

    Toda mudança de status é um UPDATE condicionado ao status atual, de forma
    que a thread do job e a interface nunca sobrescrevem a decisão uma da outra.
    """
    model = Importacao

    def criar(self, nome_arquivo: str, caminho_arquivo: str | None, ano_letivo: str, total_linhas: int,
              importacao_id: str | None = None):
        """Cria o job já em "processando".

        Returns:
            Importacao: O registro criado.
        """
        return self.create({
            "id": importacao_id or generar_uid(),
            "nome_arquivo": nome_arquivo,
            "caminho_arquivo": caminho_arquivo,
            "ano_letivo": ano_letivo,
            "total_linhas": total_linhas,
            "status": "processando",
            "erros": [],
            "iniciado_em": func.now(),
        })

    def status_de(self, importacao_id: str):
        """Status gravado do job, ou None se ele não existir."""
        with self._get_session() as session:
            return session.query(Importacao.status).filter(Importacao.id == importacao_id).scalar()

    def trocar_status(self, importacao_id: str, origens, destino: str, **campos) -> bool:
        """Muda o status somente se o atual estiver em `origens`.

        Args:
            importacao_id (str): Id do job.
            origens (Iterable[str]): Status a partir dos quais a troca é aceita.
            destino (str): Novo status.
            **campos: Outras colunas gravadas no mesmo UPDATE.

        Returns:
            bool: True se a linha foi alterada.
        """
        valores = {"status": destino, "atualizado_em": func.now(), **campos}
        with self._get_session() as session:
            alteradas = (
                session.query(Importacao)
                .filter(Importacao.id == importacao_id, Importacao.status.in_(list(origens)))
                .update(valores, synchronize_session=False)
            )
            session.commit()
        return alteradas == 1

    def gravar_progresso(self, importacao_id: str, resumo: ResumoImportacao, proxima_linha: int) -> str | None:
        """Grava todos os contadores num único UPDATE e relê o status.

        Returns:
            str | None: Status após a gravação (pode ter sido alterado pela interface).
        """
        valores = {
            "proxima_linha": proxima_linha,
            "linhas_processadas": resumo.linhas_processadas,
            "linhas_com_erro": resumo.linhas_com_erro,
            "escolas_criadas": resumo.escolas_criadas,
            "escolas_existentes": resumo.escolas_existentes,
            "turmas_criadas": resumo.turmas_criadas,
            "turmas_existentes": resumo.turmas_existentes,
            "alunos_criados": resumo.alunos_criados,
            "alunos_existentes": resumo.alunos_existentes,
            "questoes_importadas": resumo.questoes_importadas,
            "erros": resumo.erros_para_gravar(),
            "total_erros": resumo.total_erros,
            "atualizado_em": func.now(),
        }
        with self._get_session() as session:
            session.query(Importacao).filter(Importacao.id == importacao_id).update(
                valores, synchronize_session=False
            )
            status = session.query(Importacao.status).filter(Importacao.id == importacao_id).scalar()
            session.commit()
        return status

    def listar(self, limite: int = 50):
        """Jobs mais recentes primeiro (o ULID desempata criações no mesmo segundo)."""
        with self._get_session() as session:
            return (
                session.query(Importacao)
                .order_by(Importacao.criado_em.desc(), Importacao.id.desc())
                .limit(limite)
                .all()
            )

    def interrompidas(self):
        """Jobs que ficaram ativos quando o processo anterior terminou."""
        with self._get_session() as session:
            return (
                session.query(Importacao)
                .filter(Importacao.status.in_(["processando", "pausado"]))
                .order_by(Importacao.criado_em)
                .all()
            )

    def cancelar_ativas(self) -> list[str]:
        """Cancela todos os jobs em "processando" ou "pausado".

        Cada job passa pela mesma troca condicionada de `trocar_status`: um job
        que terminou no meio do caminho mantém o status final.

        Returns:
            list[str]: Ids efetivamente cancelados.
        """
        with self._get_session() as session:
            ativos = [i for (i,) in session.query(Importacao.id)
                      .filter(Importacao.status.in_(["processando", "pausado"]))]
        return [
            importacao_id for importacao_id in ativos
            if self.trocar_status(importacao_id, ["processando", "pausado"], "cancelado", concluido_em=func.now())
        ]
