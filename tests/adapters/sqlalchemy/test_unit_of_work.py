from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, text

from spotcheck.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemySpotCheckUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from spotcheck.domain.model import PersistenceError, SpotCheckMismatchType
from tests.helpers.spotcheck_reports import S1, at, make_report, make_row

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemySpotCheckUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_repositories_require_an_open_block(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemySpotCheckUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_unit_of_work_persists_committed_rows(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemySpotCheckUnitOfWork() as uow:
        report_id = uow.repositories.reports.add(make_report({}, report_date_time=at(1)))
        uow.repositories.mismatches.add_all([make_row(S1, report_id=report_id)])
        uow.commit()

    with SqlAlchemySpotCheckUnitOfWork() as uow:
        stored = uow.repositories.mismatches.get(1)
        assert stored.mismatch_type is SpotCheckMismatchType.BILL_TITLE
        assert uow.repositories.mismatches.count_report_rows(report_id) == 1


def test_uncommitted_rows_roll_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemySpotCheckUnitOfWork() as uow:
        uow.repositories.reports.add(make_report({}, report_date_time=at(1)))
        raise RuntimeError("boom")

    with SqlAlchemySpotCheckUnitOfWork() as uow:
        assert uow.session.execute(text("SELECT COUNT(*) FROM spotcheck_report")).scalar_one() == 0


def test_driver_errors_surface_as_persistence_errors(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(PersistenceError), SqlAlchemySpotCheckUnitOfWork() as uow:
        uow.session.execute(text("SELECT * FROM missing_table"))
