from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

import config
from db.models import AuditLog, Enrollment, School, SchoolClass, Student
from import_engine import (
    ImportAbortedError, ParseResult, SheetError, iter_import, process_import,
)
from import_engine.row_processor import RowProcessor
from tests.sheets import build_xlsx


def _row(name, birth="15/03/2015", school="EMEF Jardim", inep=35012345,
         turma="3º Ano A", periodo="Manhã", year=2025, cpf=None, sex="F"):
    return [name, birth, sex, cpf, school, inep, turma, periodo, year]


def test_blank_row_is_skipped_and_invalid_row_reported(session):
    """valid / blank / bad period: one enrollment, one error, no abort."""
    content = build_xlsx([
        _row("Maria da Silva"),
        [None] * 9,
        _row("João Souza", periodo="Invalido"),
    ])

    stats = process_import(content, "matriculas.xlsx")

    assert stats.total_records == 3
    assert stats.new_students == 1
    assert stats.new_schools == 1
    assert stats.new_classes == 1
    assert stats.new_enrollments == 1
    assert len(stats.errors) == 1
    assert stats.errors[0]["row"] == 4
    assert stats.errors[0]["message"].startswith("periodo:")
    assert session.query(Enrollment).count() == 1


def test_entities_are_shared_between_rows(session):
    content = build_xlsx([
        _row("Ana Lima", cpf="529.982.247-25"),
        _row("Ana Lima (irmã)", birth="02/02/2017", periodo="manha"),
        _row("Ana L.", birth="01/01/2014", cpf="52998224725", turma="4º Ano B"),
    ])

    stats = process_import(content, "matriculas.xlsx")

    assert stats.errors == []
    assert (stats.new_students, stats.updated_students) == (2, 1)
    assert stats.new_schools == 1
    assert stats.new_classes == 2
    assert (stats.new_enrollments, stats.updated_enrollments) == (2, 1)
    assert stats.processed == 3
    assert session.query(SchoolClass).count() == 2


def test_reimport_is_idempotent(session):
    content = build_xlsx([_row("Maria da Silva"), _row("Pedro Rocha", sex="M")])
    process_import(content, "matriculas.xlsx")

    stats = process_import(content, "matriculas.xlsx")

    assert (stats.new_students, stats.updated_students) == (0, 2)
    assert (stats.new_schools, stats.new_classes) == (0, 0)
    assert (stats.new_enrollments, stats.updated_enrollments) == (0, 2)
    assert session.query(Student).count() == 2
    assert session.query(Enrollment).count() == 2
    assert session.query(AuditLog).count() == 0


def test_class_change_is_audited_with_importing_user(session):
    process_import(build_xlsx([_row("Maria da Silva")]), "a.xlsx")

    stats = process_import(build_xlsx([_row("Maria da Silva", turma="3º Ano B")]),
                           "b.xlsx", changed_by=7)

    assert stats.updated_enrollments == 1
    enrollment = session.query(Enrollment).one()
    assert enrollment.class_name == "3º Ano B"
    entry = session.query(AuditLog).one()
    assert entry.record_id == enrollment.id
    assert entry.changed_by == 7


def test_school_without_inep_gets_generated_code(session):
    content = build_xlsx([
        _row("Maria da Silva", school="EMEF Sem Codigo", inep=None),
        _row("Pedro Rocha", school="EMEF Sem Codigo", inep=None),
    ])

    stats = process_import(content, "matriculas.xlsx")

    assert stats.new_schools == 1
    school = session.query(School).one()
    assert school.inep == config.INEP_SEED + 1


def test_too_many_invalid_rows_aborts_before_any_write(monkeypatch):
    opened = MagicMock()
    monkeypatch.setattr("import_engine.importer.get_session", opened)
    content = build_xlsx([
        _row("Maria da Silva"),
        _row("Sem Data", birth="99/99/2015"),
        _row("Sem Turma", turma=None),
    ])

    with pytest.raises(ImportAbortedError, match="Too many validation errors"):
        process_import(content, "matriculas.xlsx")
    opened.assert_not_called()


def test_half_invalid_rows_still_import(session):
    content = build_xlsx([_row("Maria da Silva"), _row("Sem Data", birth="")])

    stats = process_import(content, "matriculas.xlsx")

    assert stats.new_students == 1
    assert len(stats.errors) == 1


def test_no_valid_rows_aborts(monkeypatch):
    monkeypatch.setattr("import_engine.importer.parse_enrollment_file",
                        lambda raw: ParseResult(total_rows=2))

    with pytest.raises(ImportAbortedError, match="No valid records"):
        process_import(b"PK\x03\x04", "matriculas.xlsx")


def test_unreadable_file_raises_sheet_error():
    with pytest.raises(SheetError):
        process_import(b"PK\x03\x04garbage", "matriculas.xlsx")


def test_failing_row_rolls_back_only_its_own_writes(session, monkeypatch):
    """The school created by a failing row must not survive the savepoint."""
    import import_engine.row_processor as row_processor
    real = row_processor.find_or_create_class

    def flaky(session, *, name, **kwargs):
        if name == "Turma Quebrada":
            raise ValueError("class table unavailable")
        return real(session, name=name, **kwargs)

    monkeypatch.setattr(row_processor, "find_or_create_class", flaky)
    content = build_xlsx([
        _row("Maria da Silva"),
        _row("Pedro Rocha", school="EMEF Fantasma", inep=35099999, turma="Turma Quebrada"),
        _row("Lia Campos"),
    ])

    stats = process_import(content, "matriculas.xlsx")

    assert stats.new_students == 2
    assert stats.errors == [{"row": 3, "message": "class table unavailable"}]
    assert session.get(School, 35099999) is None
    assert session.query(Student).filter_by(full_name="Pedro Rocha").count() == 0


def test_connection_error_fails_the_whole_batch(session, monkeypatch):
    monkeypatch.setattr(config, "IMPORT_BATCH_SIZE", 2)
    real = RowProcessor.process

    def lost_connection(self, session, row):
        if row.row_number == 4:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return real(self, session, row)

    monkeypatch.setattr(RowProcessor, "process", lost_connection)
    content = build_xlsx([_row(f"Aluno {n}", birth=f"0{n}/01/2015") for n in range(1, 6)])

    stats = process_import(content, "matriculas.xlsx")

    assert stats.new_students == 3                  # batches 1 and 3
    assert [e["row"] for e in stats.errors] == [4, 5]
    assert all(e["message"].startswith("Batch processing error:") for e in stats.errors)
    assert session.query(Student).count() == 3


def test_progress_events(monkeypatch):
    monkeypatch.setattr(config, "IMPORT_BATCH_SIZE", 2)
    content = build_xlsx([_row(f"Aluno {n}", birth=f"0{n}/01/2015") for n in range(1, 4)])

    events = list(iter_import(content, "matriculas.xlsx"))

    assert events[0].percent == 0
    assert events[0].message == "Parsing spreadsheet..."
    assert all(not e.done for e in events[:-1])
    assert events[-1].done and events[-1].percent == 100
    assert events[-1].message.startswith("Import finished in")
    assert events[-1].stats.new_students == 3

    percents = [e.percent for e in events]
    assert percents == sorted(percents)
    messages = [e.message for e in events]
    assert "Processing batch 2 of 2..." in messages
    assert [m for m in messages if m.startswith("Processing record")] == [
        "Processing record 1 of 3...",
        "Processing record 2 of 3...",
        "Processing record 3 of 3...",
    ]


def test_on_progress_callback_receives_every_event():
    seen = []
    process_import(build_xlsx([_row("Maria da Silva")]), "matriculas.xlsx",
                   on_progress=lambda percent, message: seen.append(percent))

    assert seen[0] == 0
    assert seen[-1] == 100
