"""Atestado service — medical certificate submission and evaluation."""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from sqlalchemy.orm import Session, selectinload

from academico.core.exceptions import ResourceNotFoundError, ValidationError
from academico.models.aluno import Aluno
from academico.models.atestado import AtestadoAula, AtestadoMedico, StatusAtestado
from academico.models.aula import Aula
from academico.models.curso import TurmaAluno
from academico.models.professor import Professor
from academico.services.crud_service import crud_service, to_dict
from academico.services.file_service import file_service

logger = logging.getLogger("academico")


class AtestadoService:
    """Manages medical certificates and the attendance they justify."""

    @staticmethod
    def _validar_envio(
        db: Session,
        id_aluno: int,
        aulas_afetadas: List[int],
        id_turma: Optional[int],
    ) -> None:
        if not db.query(Aluno).filter(Aluno.id_aluno == id_aluno).first():
            raise ResourceNotFoundError("Aluno não encontrado")

        if id_turma:
            matriculado = (
                db.query(TurmaAluno)
                .filter(TurmaAluno.id_aluno == id_aluno, TurmaAluno.id_turma == id_turma)
                .first()
            )
            if not matriculado:
                raise ValidationError("Aluno não pertence à turma selecionada")

        for id_aula in aulas_afetadas:
            query = db.query(Aula).filter(Aula.id_aula == id_aula)
            if id_turma:
                query = query.filter(Aula.id_turma == id_turma)
            if not query.first():
                raise ValidationError(
                    f"Aula {id_aula} não encontrada ou não pertence à turma selecionada"
                )

    @staticmethod
    async def enviar(
        db: Session,
        arquivo: UploadFile,
        id_aluno: int,
        data_inicio: date,
        data_fim: date,
        motivo: str,
        aulas_afetadas: List[int],
        observacoes: Optional[str] = None,
        id_turma: Optional[int] = None,
    ) -> AtestadoMedico:
        """Store the certificate file and create the atestado with its aulas."""
        if data_fim < data_inicio:
            raise ValidationError("Data final deve ser igual ou posterior à data inicial")
        if not aulas_afetadas:
            raise ValidationError("Selecione pelo menos uma aula")
        AtestadoService._validar_envio(db, id_aluno, aulas_afetadas, id_turma)

        key = await file_service.upload(arquivo, f"atestados/{id_aluno}")
        try:
            atestado = AtestadoMedico(
                id_aluno=id_aluno,
                data_inicio=data_inicio,
                data_fim=data_fim,
                motivo=motivo.strip(),
                arquivo_path=key,
                observacoes=observacoes or None,
                status=StatusAtestado.Pendente,
            )
            db.add(atestado)
            db.flush()
            for id_aula in dict.fromkeys(aulas_afetadas):
                db.add(AtestadoAula(id_atestado=atestado.id_atestado, id_aula=id_aula))
            db.commit()
        except Exception:
            db.rollback()
            file_service.delete_object(key)
            raise
        db.refresh(atestado)
        logger.info("Atestado %s enviado pelo aluno %s", atestado.id_atestado, id_aluno)
        return atestado

    @staticmethod
    def listar(
        db: Session,
        id_aluno: Optional[int] = None,
        status: Optional[StatusAtestado] = None,
    ) -> List[Dict[str, Any]]:
        """Certificates, newest first, each with the aulas it covers."""
        query = db.query(AtestadoMedico).options(
            selectinload(AtestadoMedico.aulas_justificadas).selectinload(AtestadoAula.aula),
        )
        if id_aluno is not None:
            query = query.filter(AtestadoMedico.id_aluno == id_aluno)
        if status is not None:
            query = query.filter(AtestadoMedico.status == status)
        out = []
        for atestado in query.order_by(
            AtestadoMedico.data_envio.desc(), AtestadoMedico.id_atestado.desc()
        ):
            item = to_dict(atestado)
            item["aulas_justificadas"] = [
                to_dict(aa, ("aula",)) for aa in atestado.aulas_justificadas
            ]
            out.append(item)
        return out

    @staticmethod
    def avaliar(
        db: Session,
        id_atestado: int,
        status: StatusAtestado,
        avaliado_por: str,
        justificativa_rejeicao: Optional[str] = None,
    ) -> AtestadoMedico:
        """Approve or reject a pending certificate.

        Approval marks the student present, with a justification, in every
        covered aula and flags each covered aula as applied. Everything is
        committed together.
        """
        if status not in (StatusAtestado.Aprovado, StatusAtestado.Rejeitado):
            raise ValidationError("Status deve ser Aprovado ou Rejeitado")
        if status == StatusAtestado.Rejeitado and not (justificativa_rejeicao or "").strip():
            raise ValidationError("Justificativa é obrigatória para rejeitar um atestado")

        atestado = (
            db.query(AtestadoMedico)
            .options(selectinload(AtestadoMedico.aulas_justificadas))
            .filter(AtestadoMedico.id_atestado == id_atestado)
            .first()
        )
        if not atestado:
            raise ResourceNotFoundError("Atestado não encontrado")
        if atestado.status != StatusAtestado.Pendente:
            raise ValidationError("Atestado já foi avaliado")

        avaliador = db.query(Professor).filter(Professor.id_professor == avaliado_por).first()
        presencas = crud_service.repository("presencas")
        agora = datetime.utcnow()
        try:
            atestado.status = status
            atestado.avaliado_por = avaliado_por
            atestado.data_avaliacao = agora
            atestado.justificativa_rejeicao = (
                justificativa_rejeicao if status == StatusAtestado.Rejeitado else None
            )

            if status == StatusAtestado.Aprovado:
                justificativa = f"Atestado médico aprovado - {atestado.motivo}"
                for coberta in atestado.aulas_justificadas:
                    criterio = {"id_aula": coberta.id_aula, "id_aluno": atestado.id_aluno}
                    presenca = presencas.find_first(db, criterio)
                    if presenca is None:
                        presencas.create(db, {
                            **criterio,
                            "id_professor": avaliador.id_professor if avaliador else None,
                            "presente": True,
                            "justificativa": justificativa,
                        })
                    else:
                        presencas.update(db, presenca, {
                            "presente": True, "justificativa": justificativa,
                        })
                    coberta.aplicado = True
                    coberta.data_aplicacao = agora
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(atestado)
        logger.info("Atestado %s %s por %s", id_atestado, status.value, avaliado_por)
        return atestado


atestado_service = AtestadoService()
