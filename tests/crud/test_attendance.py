# tests/crud/test_attendance.py

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from evently.constants.rsvp import AttendanceStatus
from evently.crud.base import TransientStorageError
from evently.crud.crud_attendance import attendance_registry
from evently.models.attendance import Attendance
from evently.schemas.admission import RegistryOutcome
from tests.utils.event import create_random_event, force_confirmed_count
from tests.utils.user import create_random_user


def test_activate_creates_record(db_session):
    event = create_random_event(db_session)

    outcome = attendance_registry.activate(db_session, event_id=event.id, caller_id="user_1")

    assert outcome == RegistryOutcome.CREATED
    assert attendance_registry.status_of(
        db_session, event_id=event.id, caller_id="user_1"
    ) == AttendanceStatus.ACTIVE


def test_activate_twice_is_already_active(db_session):
    event = create_random_event(db_session)
    attendance_registry.activate(db_session, event_id=event.id, caller_id="user_1")

    outcome = attendance_registry.activate(db_session, event_id=event.id, caller_id="user_1")

    assert outcome == RegistryOutcome.ALREADY_ACTIVE
    assert db_session.query(Attendance).filter(Attendance.event_id == event.id).count() == 1


def test_deactivate_then_reactivate_reuses_record(db_session):
    event = create_random_event(db_session)
    attendance_registry.activate(db_session, event_id=event.id, caller_id="user_1")
    first = attendance_registry.get_by_pair(db_session, event_id=event.id, caller_id="user_1")
    first_id = first.id

    assert attendance_registry.deactivate(
        db_session, event_id=event.id, caller_id="user_1"
    ) == RegistryOutcome.CANCELLED
    assert attendance_registry.status_of(
        db_session, event_id=event.id, caller_id="user_1"
    ) == AttendanceStatus.CANCELLED

    assert attendance_registry.activate(
        db_session, event_id=event.id, caller_id="user_1"
    ) == RegistryOutcome.REACTIVATED

    db_session.expire_all()
    records = db_session.query(Attendance).filter(Attendance.event_id == event.id).all()
    assert len(records) == 1
    assert records[0].id == first_id
    assert records[0].status == AttendanceStatus.ACTIVE


def test_deactivate_without_record_is_not_active(db_session):
    event = create_random_event(db_session)

    outcome = attendance_registry.deactivate(db_session, event_id=event.id, caller_id="user_1")

    assert outcome == RegistryOutcome.NOT_ACTIVE


def test_deactivate_twice_is_not_active(db_session):
    event = create_random_event(db_session)
    attendance_registry.activate(db_session, event_id=event.id, caller_id="user_1")
    attendance_registry.deactivate(db_session, event_id=event.id, caller_id="user_1")

    outcome = attendance_registry.deactivate(db_session, event_id=event.id, caller_id="user_1")

    assert outcome == RegistryOutcome.NOT_ACTIVE


def test_status_of_unknown_pair_is_none(db_session):
    event = create_random_event(db_session)
    assert attendance_registry.status_of(
        db_session, event_id=event.id, caller_id="nobody"
    ) == AttendanceStatus.NONE


def test_activate_for_missing_event_raises_transient_error(db_session):
    # The foreign key fires, not the pair constraint, so this is not a duplicate.
    with pytest.raises(TransientStorageError):
        attendance_registry.activate(db_session, event_id="evt_missing", caller_id="user_1")


def test_activate_storage_fault_raises_transient_error():
    db_session = MagicMock()
    db_session.execute.side_effect = OperationalError(
        "UPDATE attendances", {}, Exception("disk I/O error")
    )

    with pytest.raises(TransientStorageError):
        attendance_registry.activate(db_session, event_id="evt_1", caller_id="user_1")

    db_session.rollback.assert_called_once()


def test_active_event_ids_and_count(db_session):
    first = create_random_event(db_session, title="First")
    second = create_random_event(db_session, title="Second")
    attendance_registry.activate(db_session, event_id=first.id, caller_id="user_1")
    attendance_registry.activate(db_session, event_id=second.id, caller_id="user_1")
    attendance_registry.deactivate(db_session, event_id=second.id, caller_id="user_1")
    attendance_registry.activate(db_session, event_id=first.id, caller_id="user_2")

    assert attendance_registry.active_event_ids(
        db_session, caller_id="user_1", event_ids=[first.id, second.id]
    ) == {first.id}
    assert attendance_registry.active_event_ids(
        db_session, caller_id="user_1", event_ids=[]
    ) == set()
    assert attendance_registry.count_active(db_session, event_id=first.id) == 2
    assert attendance_registry.count_active(db_session, event_id=second.id) == 0


def test_list_active_by_event_includes_profiles(db_session):
    event = create_random_event(db_session)
    user = create_random_user(db_session, name="Grace")
    attendance_registry.activate(db_session, event_id=event.id, caller_id=user.id)
    attendance_registry.activate(db_session, event_id=event.id, caller_id="external_caller")

    rows = attendance_registry.list_active_by_event(db_session, event_id=event.id)

    profiles = {attendance.caller_id: profile for attendance, profile in rows}
    assert profiles[user.id].name == "Grace"
    assert profiles["external_caller"] is None


def test_list_active_by_caller_skips_past_events(db_session):
    upcoming = create_random_event(db_session, title="Upcoming")
    past = create_random_event(db_session, title="Past", days_ahead=-1)
    attendance_registry.activate(db_session, event_id=upcoming.id, caller_id="user_1")
    attendance_registry.activate(db_session, event_id=past.id, caller_id="user_1")

    rows = attendance_registry.list_active_by_caller(db_session, caller_id="user_1")
    assert [event.id for _, event in rows] == [upcoming.id]

    rows = attendance_registry.list_active_by_caller(
        db_session, caller_id="user_1", upcoming_only=False
    )
    assert {event.id for _, event in rows} == {upcoming.id, past.id}


def test_drifted_event_ids(db_session):
    consistent = create_random_event(db_session, title="Consistent")
    drifted = create_random_event(db_session, title="Drifted")
    attendance_registry.activate(db_session, event_id=drifted.id, caller_id="user_1")
    force_confirmed_count(db_session, consistent.id, 0)

    assert attendance_registry.drifted_event_ids(db_session) == [drifted.id]
