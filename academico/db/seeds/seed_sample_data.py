"""Seed sample academic data for demo purposes."""

from datetime import date

from sqlalchemy.orm import Session
from academico.models import Curso, CursoMateria, DiaNaoLetivo, Materia, Turma


def seed_sample_data(db: Session) -> None:
    """Insert a sample course with subjects, a class group and holidays."""
    if db.query(Curso).first():
        print("ℹ️  Courses already present, skipping sample data.")
        return

    curso = Curso(
        nome_curso="Técnico em Informática",
        carga_horaria_total=1200,
        descricao="Curso técnico integrado",
    )
    db.add(curso)
    db.flush()

    sample_materias = [
        ("Lógica de Programação", 120),
        ("Banco de Dados", 80),
        ("Redes de Computadores", 80),
        ("Matemática", 160),
    ]
    for nome, carga in sample_materias:
        materia = Materia(nome_materia=nome)
        db.add(materia)
        db.flush()
        db.add(CursoMateria(id_curso=curso.id_curso, id_materia=materia.id_materia, carga_horaria=carga))

    ano = date.today().year
    db.add(Turma(id_curso=curso.id_curso, nome_turma=f"INF-{ano}-A", ano_letivo=ano))

    feriados = [
        (date(ano, 4, 21), "Tiradentes"),
        (date(ano, 5, 1), "Dia do Trabalho"),
        (date(ano, 9, 7), "Independência do Brasil"),
        (date(ano, 10, 12), "Nossa Senhora Aparecida"),
        (date(ano, 11, 2), "Finados"),
        (date(ano, 11, 15), "Proclamação da República"),
    ]
    for dia, descricao in feriados:
        if not db.query(DiaNaoLetivo).filter(DiaNaoLetivo.data == dia).first():
            db.add(DiaNaoLetivo(data=dia, descricao=descricao))

    db.commit()
    print("✅ Sample data seeded (1 course, 4 subjects, 1 class group, holidays)")
