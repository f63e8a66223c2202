"""Registration service — students and staff together with their login accounts."""

import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from academico.core.exceptions import ResourceConflictError
from academico.core.roles import TipoUsuario
from academico.core.validators import format_cpf, format_rg, only_digits
from academico.models.aluno import Aluno
from academico.models.professor import Professor
from academico.services.auth_service import auth_service
from academico.services.crud_service import crud_service, to_dict

logger = logging.getLogger("academico")


class CadastroService:
    """Creates Aluno/Professor records and the matching account in one transaction.

    New accounts get the CPF digits as their initial password.
    """

    @staticmethod
    def cadastrar_aluno(db: Session, dados: Dict[str, Any]) -> Dict[str, Any]:
        cpf = dados["cpf"]
        if auth_service.find_student(db, cpf):
            raise ResourceConflictError("Já existe um aluno com este CPF")
        rg = dados["rg"]
        if db.query(Aluno).filter(Aluno.rg.in_([rg, format_rg(rg)])).first():
            raise ResourceConflictError("Já existe um aluno com este RG")

        contato = dados.pop("contato", None)
        endereco = dados.pop("endereco", None)
        try:
            aluno = crud_service.repository("alunos").create(db, {
                **dados,
                "cpf": format_cpf(cpf),
                "rg": format_rg(rg),
            })
            if contato:
                crud_service.repository("contato_aluno").create(db, {**contato, "id_aluno": aluno.id_aluno})
            if endereco:
                crud_service.repository("enderecos").create(db, {**endereco, "id_aluno": aluno.id_aluno})
            conta = auth_service.add_account(db, cpf, cpf, TipoUsuario.Aluno)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(aluno)
        logger.info("Aluno %s cadastrado (conta criada: %s)", aluno.id_aluno, conta is not None)
        return {"aluno": to_dict(aluno), "conta_criada": conta is not None}

    @staticmethod
    def cadastrar_professor(db: Session, dados: Dict[str, Any]) -> Dict[str, Any]:
        cpf = only_digits(dados["cpf"])
        if auth_service.find_staff(db, cpf):
            raise ResourceConflictError("Já existe um professor com este CPF")

        tipo = dados.pop("tipo")
        dados.pop("cpf")
        try:
            professor = crud_service.repository("professores").create(db, {
                **dados,
                "id_professor": cpf,
                "rg": format_rg(dados["rg"]),
            })
            conta = auth_service.add_account(db, cpf, cpf, tipo)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(professor)
        logger.info("Professor %s cadastrado como %s", cpf, tipo.value)
        return {"professor": to_dict(professor), "conta_criada": conta is not None}


cadastro_service = CadastroService()
