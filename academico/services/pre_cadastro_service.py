"""Pre-enrollment service — public applications, review and conversion to Aluno."""

import logging
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from academico.core.exceptions import (
    ResourceConflictError, ResourceNotFoundError, ValidationError,
)
from academico.core.roles import TipoUsuario
from academico.core.validators import format_cpf, format_rg, only_digits
from academico.models.aluno import Aluno
from academico.models.curso import Curso
from academico.models.pre_cadastro import PreCadastro, StatusPreCadastro
from academico.services.auth_service import auth_service
from academico.services.crud_service import crud_service, to_dict

logger = logging.getLogger("academico")

AVALIAVEIS = (StatusPreCadastro.Pendente, StatusPreCadastro.EmAnalise)


def _aluno_por_cpf(db: Session, cpf: str) -> Optional[Aluno]:
    digits = only_digits(cpf)
    return db.query(Aluno).filter(Aluno.cpf.in_([digits, format_cpf(digits)])).first()


class PreCadastroService:
    """Manages applications from prospective students."""

    @staticmethod
    def get(db: Session, id_pre_cadastro: int) -> PreCadastro:
        pre = db.query(PreCadastro).filter(PreCadastro.id_pre_cadastro == id_pre_cadastro).first()
        if not pre:
            raise ResourceNotFoundError("Pré-cadastro não encontrado")
        return pre

    @staticmethod
    def submeter(db: Session, dados: Dict[str, Any]) -> PreCadastro:
        """Create an application from already-validated form data."""
        cpf = only_digits(dados["cpf"])
        em_andamento = (
            db.query(PreCadastro)
            .filter(
                PreCadastro.cpf == cpf,
                PreCadastro.status != StatusPreCadastro.Rejeitado,
            )
            .first()
        )
        if em_andamento:
            raise ResourceConflictError("CPF já possui um pré-cadastro em andamento")
        if _aluno_por_cpf(db, cpf):
            raise ResourceConflictError("CPF já está matriculado no sistema acadêmico")
        if not db.query(Curso).filter(Curso.id_curso == dados["id_curso_desejado"]).first():
            raise ValidationError("Curso selecionado não existe")

        pre = PreCadastro(**{**dados, "cpf": cpf, "status": StatusPreCadastro.Pendente})
        db.add(pre)
        db.commit()
        db.refresh(pre)
        logger.info("Pré-cadastro %s recebido", pre.id_pre_cadastro)
        return pre

    @staticmethod
    def listar(db: Session, status: Optional[StatusPreCadastro] = None) -> List[PreCadastro]:
        query = db.query(PreCadastro)
        if status is not None:
            query = query.filter(PreCadastro.status == status)
        return query.order_by(PreCadastro.data_envio.desc(), PreCadastro.id_pre_cadastro.desc()).all()

    @staticmethod
    def avaliar(
        db: Session,
        id_pre_cadastro: int,
        status: StatusPreCadastro,
        avaliado_por: str,
        observacoes: Optional[str] = None,
        motivo_rejeicao: Optional[str] = None,
    ) -> PreCadastro:
        """Record a review decision; only Pendente/EmAnalise applications can be reviewed."""
        if status == StatusPreCadastro.Pendente:
            raise ValidationError("Status de avaliação inválido")
        if status == StatusPreCadastro.Rejeitado and not (motivo_rejeicao or "").strip():
            raise ValidationError("Motivo da rejeição é obrigatório")

        pre = PreCadastroService.get(db, id_pre_cadastro)
        if pre.status not in AVALIAVEIS:
            raise ValidationError("Este pré-cadastro já foi avaliado")

        pre.status = status
        pre.observacoes = observacoes or None
        pre.motivo_rejeicao = motivo_rejeicao or None
        pre.avaliado_por = avaliado_por
        pre.data_avaliacao = datetime.utcnow()
        db.commit()
        db.refresh(pre)
        logger.info("Pré-cadastro %s avaliado: %s", id_pre_cadastro, status.value)
        return pre

    @staticmethod
    def converter(db: Session, id_pre_cadastro: int) -> Dict[str, Any]:
        """Create Aluno, ContatoAluno, Endereco and the login account from an approved application.

        The account gets a temporary password, returned once as
        ``senha_temporaria``; it is None when the CPF already had an account.
        """
        pre = PreCadastroService.get(db, id_pre_cadastro)
        if pre.status != StatusPreCadastro.Aprovado:
            raise ValidationError("Apenas pré-cadastros aprovados podem ser convertidos em aluno")
        if _aluno_por_cpf(db, pre.cpf):
            raise ResourceConflictError("Já existe um aluno com este CPF")

        alunos = crud_service.repository("alunos")
        contatos = crud_service.repository("contato_aluno")
        enderecos = crud_service.repository("enderecos")
        try:
            aluno = alunos.create(db, {
                "nome": pre.nome,
                "sobrenome": pre.sobrenome,
                "cpf": format_cpf(pre.cpf),
                "rg": format_rg(pre.rg),
                "nome_mae": pre.nome_mae,
                "nome_pai": pre.nome_pai or None,
                "data_nasc": pre.data_nasc,
                "email": pre.email,
                "descricao": "Criado automaticamente a partir do pré-cadastro",
            })
            contatos.create(db, {
                "id_aluno": aluno.id_aluno,
                "nome_tel1": pre.nome_responsavel or pre.nome_mae or pre.nome,
                "tel1": pre.telefone,
                "nome_tel2": pre.nome_responsavel or None,
                "tel2": pre.telefone_responsavel or None,
            })
            enderecos.create(db, {
                "id_aluno": aluno.id_aluno,
                "cep": pre.cep,
                "rua": pre.rua,
                "cidade": pre.cidade,
                "uf": pre.uf,
                "numero": pre.numero,
                "complemento": pre.complemento,
            })
            senha = secrets.token_urlsafe(9)
            if auth_service.add_account(db, pre.cpf, senha, TipoUsuario.Aluno) is None:
                senha = None
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(aluno)
        logger.info("Pré-cadastro %s convertido no aluno %s", id_pre_cadastro, aluno.id_aluno)
        return {"aluno": to_dict(aluno), "senha_temporaria": senha}


pre_cadastro_service = PreCadastroService()
