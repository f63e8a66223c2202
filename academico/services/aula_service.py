"""Aula service — class registration, attendance and recurring scheduling."""

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy.orm import Session, selectinload

from academico.core.exceptions import ResourceNotFoundError, ValidationError
from academico.models.aula import Aula, DiaNaoLetivo, Presenca
from academico.services.crud_service import crud_service, to_dict

logger = logging.getLogger("academico")

# Sunday-based, matching the weekday numbers the clients send (0 = domingo)
DIAS_SEMANA = ("domingo", "segunda", "terça", "quarta", "quinta", "sexta", "sábado")
_SEM_ACENTO = {"terca": "terça", "sabado": "sábado"}
_HORARIO = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def dia_semana_index(dia: Union[str, int]) -> int:
    """Sunday-based weekday index for a name ("segunda", "terça-feira") or number."""
    if isinstance(dia, int):
        idx = dia
    else:
        nome = dia.strip().lower().replace("-feira", "")
        nome = _SEM_ACENTO.get(nome, nome)
        idx = DIAS_SEMANA.index(nome) if nome in DIAS_SEMANA else -1
    if not 0 <= idx <= 6:
        raise ValidationError("Dia da semana inválido.")
    return idx


def parse_horario(horario: str) -> time:
    match = _HORARIO.match(horario or "")
    if not match:
        raise ValidationError(f"Horário inválido: {horario!r} (use HH:MM)")
    return time(int(match.group(1)), int(match.group(2)))


def _sunday_index(day: date) -> int:
    return (day.weekday() + 1) % 7


def _intervalo(aula: Aula, day: date):
    inicio = datetime.combine(
        day, parse_horario(aula.horario) if aula.horario else aula.data_aula.time()
    )
    return inicio, inicio + timedelta(minutes=aula.duracao_minutos or 0)


def _get_aula(db: Session, id_aula: int) -> Aula:
    aula = db.query(Aula).filter(Aula.id_aula == id_aula).first()
    if not aula:
        raise ResourceNotFoundError("Aula não encontrada")
    return aula


class AulaService:
    """Aula workflows that span several records."""

    @staticmethod
    def get_aula(db: Session, id_aula: int) -> Dict[str, Any]:
        """Aula with its materia, turma and presenças (each with its aluno)."""
        aula = (
            db.query(Aula)
            .options(
                selectinload(Aula.presencas).selectinload(Presenca.aluno),
                selectinload(Aula.materia),
                selectinload(Aula.turma),
            )
            .filter(Aula.id_aula == id_aula)
            .first()
        )
        if not aula:
            raise ResourceNotFoundError("Aula não encontrada")
        out = to_dict(aula, ("materia", "turma"))
        out["presencas"] = [to_dict(p, ("aluno",)) for p in aula.presencas]
        return out

    @staticmethod
    def registrar_aula(
        db: Session,
        id_aula: int,
        presencas: Iterable[Dict[str, Any]],
        conteudo_ministrado: Optional[str] = None,
        observacoes_aula: Optional[str] = None,
        id_professor: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Record taught content and replace the aula's attendance atomically.

        The aula is marked concluded, its existing presenças are deleted and
        the given ones inserted. Any failure leaves the aula untouched.
        """
        aulas = crud_service.repository("aulas")
        presencas_repo = crud_service.repository("presencas")
        try:
            aula = aulas.find_one(db, {"id_aula": id_aula})
            if aula is None:
                raise ResourceNotFoundError("Aula não encontrada")
            aulas.update(db, aula, {
                "aula_concluida": True,
                "presencas_aplicadas": True,
                "conteudo_ministrado": conteudo_ministrado or None,
                "observacoes_aula": observacoes_aula or None,
            })
            db.query(Presenca).filter(Presenca.id_aula == id_aula).delete(synchronize_session=False)
            total = 0
            for item in presencas:
                presencas_repo.create(db, {
                    "id_aula": id_aula,
                    "id_aluno": int(item["id_aluno"]),
                    "id_professor": id_professor,
                    "presente": bool(item.get("presente")),
                })
                total += 1
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(aula)
        logger.info("Aula %s registrada com %d presenças", id_aula, total)
        return to_dict(aula)

    @staticmethod
    def registrar_presenca(
        db: Session,
        id_aula: int,
        id_aluno: int,
        id_professor: Optional[str],
        presente: bool,
    ) -> Dict[str, Any]:
        """Create or update one student's attendance and mark the aula concluded."""
        if not id_professor:
            raise ValidationError("id_professor é obrigatório para registrar presença")
        _get_aula(db, id_aula)

        criterio = {"id_aula": id_aula, "id_aluno": id_aluno}
        existente = crud_service.repository("presencas").find_first(db, criterio)
        data = {"presente": presente}
        if existente is None:
            data["id_professor"] = id_professor
        presenca = crud_service.handle(
            db, "upsert", "presencas", data={**criterio, **data}, where=criterio,
        )
        crud_service.handle(
            db, "update", "aulas", primary_key="id_aula",
            data={"id_aula": id_aula, "presencas_aplicadas": True, "aula_concluida": True},
        )
        return {"presenca": presenca, "is_update": existente is not None}

    @staticmethod
    def cancelar_aula(db: Session, id_aula: int) -> Dict[str, Any]:
        aula = _get_aula(db, id_aula)
        if aula.aula_concluida:
            raise ValidationError("Aula já está marcada como concluída/cancelada.")
        aula.aula_concluida = True
        db.commit()
        db.refresh(aula)
        return to_dict(aula)

    @staticmethod
    def remover_aulas(db: Session, id_materia: int, data_inicial: date, data_final: date) -> int:
        """Delete the matéria's aulas dated within [data_inicial, data_final]."""
        if data_inicial > data_final:
            raise ValidationError("Intervalo de datas inválido.")
        inicio = datetime.combine(data_inicial, time.min)
        fim = datetime.combine(data_final + timedelta(days=1), time.min)
        aulas = (
            db.query(Aula)
            .filter(Aula.id_materia == id_materia, Aula.data_aula >= inicio, Aula.data_aula < fim)
            .all()
        )
        for aula in aulas:
            db.delete(aula)
        db.commit()
        logger.info("Removidas %d aulas da matéria %s", len(aulas), id_materia)
        return len(aulas)

    @staticmethod
    def agendar_recorrentes(
        db: Session,
        id_materia: int,
        id_turma: int,
        dia_semana: Union[str, int],
        hora_inicio: str,
        duracao_minutos: int,
        data_inicial: date,
        data_final: date,
        excecoes: Iterable[date] = (),
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Create one aula per week on ``dia_semana`` between two dates.

        Dates listed in ``excecoes``, configured non-school days and slots
        overlapping another aula of the same turma are skipped and reported
        in ``puladas`` with the reason.
        """
        if duracao_minutos <= 0:
            raise ValidationError("Duração deve ser positiva.")
        if data_inicial > data_final:
            raise ValidationError("Intervalo de datas inválido.")
        weekday = dia_semana_index(dia_semana)
        inicio_hora = parse_horario(hora_inicio)
        excluidas = set(excecoes)
        nao_letivos = {
            d.data: d.descricao
            for d in db.query(DiaNaoLetivo).filter(
                DiaNaoLetivo.data >= data_inicial, DiaNaoLetivo.data <= data_final,
            )
        }

        dia = data_inicial + timedelta(days=(weekday - _sunday_index(data_inicial)) % 7)
        criadas: List[Dict[str, Any]] = []
        puladas: List[Dict[str, Any]] = []
        try:
            while dia <= data_final:
                if dia in excluidas:
                    puladas.append({"data": dia.isoformat(), "motivo": "data excluída"})
                elif dia in nao_letivos:
                    motivo = "dia não letivo"
                    if nao_letivos[dia]:
                        motivo = f"{motivo}: {nao_letivos[dia]}"
                    puladas.append({"data": dia.isoformat(), "motivo": motivo})
                else:
                    inicio = datetime.combine(dia, inicio_hora)
                    fim = inicio + timedelta(minutes=duracao_minutos)
                    mesmo_dia = (
                        db.query(Aula)
                        .filter(
                            Aula.id_turma == id_turma,
                            Aula.data_aula >= datetime.combine(dia, time.min),
                            Aula.data_aula < datetime.combine(dia + timedelta(days=1), time.min),
                        )
                        .all()
                    )
                    conflito = False
                    for existente in mesmo_dia:
                        ini_ex, fim_ex = _intervalo(existente, dia)
                        if inicio < fim_ex and fim > ini_ex:
                            conflito = True
                            break
                    if conflito:
                        puladas.append({
                            "data": dia.isoformat(),
                            "motivo": "Já existe uma aula neste horário ou sobreposição de duração",
                        })
                    else:
                        aula = Aula(
                            id_materia=id_materia,
                            id_turma=id_turma,
                            data_aula=inicio,
                            horario=hora_inicio,
                            duracao_minutos=duracao_minutos,
                            aula_concluida=False,
                        )
                        db.add(aula)
                        db.flush()
                        criadas.append({
                            "id_aula": aula.id_aula,
                            "data": dia.isoformat(),
                            "hora_inicio": hora_inicio,
                        })
                dia += timedelta(days=7)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            "Turma %s: %d aulas agendadas, %d puladas", id_turma, len(criadas), len(puladas),
        )
        return {"criadas": criadas, "puladas": puladas}


aula_service = AulaService()
