"""Models package — import all models so metadata.create_all sees every table."""

from academico.models.usuario import Usuario
from academico.models.aluno import Aluno, Endereco, ContatoAluno
from academico.models.professor import Professor
from academico.models.curso import Curso, Materia, CursoMateria, Turma, TurmaAluno, StatusMatricula
from academico.models.aula import Aula, DocAula, Presenca, DiaNaoLetivo
from academico.models.nota import Nota
from academico.models.atestado import AtestadoMedico, AtestadoAula, StatusAtestado
from academico.models.pre_cadastro import (
    PreCadastro, DocumentoPreCadastro, StatusPreCadastro, TipoDocumento,
)
from academico.models.audit_log import AuditLog

__all__ = [
    "Usuario", "Aluno", "Endereco", "ContatoAluno", "Professor",
    "Curso", "Materia", "CursoMateria", "Turma", "TurmaAluno", "StatusMatricula",
    "Aula", "DocAula", "Presenca", "DiaNaoLetivo", "Nota",
    "AtestadoMedico", "AtestadoAula", "StatusAtestado",
    "PreCadastro", "DocumentoPreCadastro", "StatusPreCadastro", "TipoDocumento",
    "AuditLog",
]
