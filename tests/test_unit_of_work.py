import pytest

import hostel_booking.config.database as database
from hostel_booking.core.exceptions import TransactionError
from hostel_booking.models.base.enums import RoomType
from hostel_booking.models.hostel.hostel import Hostel, RoomInventory
from hostel_booking.repositories.hostel import HostelRepository, InventoryRepository
from hostel_booking.services.common.unit_of_work import UnitOfWork

from tests.helpers import OWNER_ID


def _hostel(name="Lakeview Hostel"):
    return Hostel(
        name=name,
        owner_id=OWNER_ID,
        monthly_rent=5000,
        security_deposit=1000,
    )


def _count_hostels(session_factory):
    with session_factory() as session:
        return session.query(Hostel).count()


def test_commits_when_block_exits_cleanly(session_factory):
    with UnitOfWork(session_factory) as uow:
        uow.get_repo(HostelRepository).add(_hostel())
        assert uow.is_active

    assert uow.is_committed
    assert not uow.is_active
    assert _count_hostels(session_factory) == 1


def test_rolls_back_when_block_raises(session_factory):
    with pytest.raises(RuntimeError):
        with UnitOfWork(session_factory) as uow:
            uow.get_repo(HostelRepository).add(_hostel())
            raise RuntimeError("boom")

    assert not uow.is_committed
    assert _count_hostels(session_factory) == 0


def test_repositories_are_cached_per_unit(session_factory):
    with UnitOfWork(session_factory) as uow:
        assert uow.get_repo(HostelRepository) is uow.get_repo(HostelRepository)
        assert uow.get_repo(InventoryRepository) is not uow.get_repo(HostelRepository)


def test_get_repo_outside_context_fails(session_factory):
    with pytest.raises(RuntimeError):
        UnitOfWork(session_factory).get_repo(HostelRepository)


def test_failed_commit_raises_transaction_error(session_factory):
    with pytest.raises(TransactionError) as exc_info:
        with UnitOfWork(session_factory) as uow:
            hostel = uow.get_repo(HostelRepository).add(_hostel())
            uow.session.add(RoomInventory(
                hostel_id=hostel.id,
                room_type=RoomType.SINGLE,
                total_rooms=2,
                available_rooms=3,
            ))

    assert exc_info.value.details["error_type"] == "IntegrityError"
    assert exc_info.value.status_code == 500
    assert _count_hostels(session_factory) == 0


def test_explicit_rollback_discards_changes(session_factory):
    with UnitOfWork(session_factory) as uow:
        uow.get_repo(HostelRepository).add(_hostel())
        uow.rollback()

    assert not uow.is_committed
    assert _count_hostels(session_factory) == 0


def test_db_context_commits_and_rolls_back(session_factory, monkeypatch):
    monkeypatch.setattr(database, "SessionLocal", session_factory)

    with database.get_db_context() as session:
        session.add(_hostel())
    assert _count_hostels(session_factory) == 1

    with pytest.raises(ValueError):
        with database.get_db_context() as session:
            session.add(_hostel("Hilltop Hostel"))
            session.flush()
            raise ValueError("bad input")
    assert _count_hostels(session_factory) == 1
