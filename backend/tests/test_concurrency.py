"""Interleaved sessions on a file database: the compare-and-set commit decides the winner."""

from datetime import date

import pytest
from sqlalchemy.orm import Session, sessionmaker

from examroster.core.exceptions import ConflictError
from examroster.models.exam_room import ExamRoom
from examroster.services.assignment import AssignmentEngine, RoomAlreadyStaffedError
from examroster.services.registration import RegistrationWorkflow

DAY = date(2024, 5, 2)


@pytest.fixture()
def sessions(file_engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    opened: list[Session] = []

    def open_session() -> Session:
        session = factory()
        opened.append(session)
        return session

    yield open_session
    for session in opened:
        session.close()


def test_same_examiner_on_two_rooms_the_same_day(sessions, make_scenario):
    setup = make_scenario(sessions())
    semester = setup.semester()
    slot = setup.slot(setup.phase(semester), DAY)
    first = setup.room(setup.sub_slot(slot), "R101")
    second = setup.room(setup.sub_slot(slot), "R102")
    alice = setup.examiner(semester, "alice@uni.edu", days=[DAY])

    caller_a = AssignmentEngine(sessions())
    caller_b = AssignmentEngine(sessions())

    # Both callers pass eligibility before either commits.
    ticket_a = caller_a.prepare_assignment(first.id, alice.id)
    ticket_b = caller_b.prepare_assignment(second.id, alice.id)

    caller_b.commit(ticket_b, action="exam_room.assign")
    with pytest.raises(ConflictError):
        caller_a.commit(ticket_a, action="exam_room.assign")

    check = sessions()
    assert check.get(ExamRoom, first.id).examiner_id is None
    assert check.get(ExamRoom, second.id).examiner_id == alice.id


def test_two_examiners_race_for_one_room(sessions, make_scenario):
    setup = make_scenario(sessions())
    semester = setup.semester()
    room = setup.room(setup.sub_slot(setup.slot(setup.phase(semester), DAY)))
    alice = setup.examiner(semester, "alice@uni.edu", days=[DAY])
    bob = setup.examiner(semester, "bob@uni.edu", days=[DAY])

    caller_a = AssignmentEngine(sessions())
    caller_b = AssignmentEngine(sessions())

    ticket_a = caller_a.prepare_assignment(room.id, alice.id, replace=False)
    ticket_b = caller_b.prepare_assignment(room.id, bob.id, replace=False)

    caller_a.commit(ticket_a, action="exam_room.auto_fill")
    with pytest.raises(RoomAlreadyStaffedError):
        caller_b.commit(ticket_b, action="exam_room.auto_fill")

    assert sessions().get(ExamRoom, room.id).examiner_id == alice.id


def test_losing_examiner_version_keeps_room_untouched(sessions, make_scenario):
    setup = make_scenario(sessions())
    semester = setup.semester()
    slot = setup.slot(setup.phase(semester), DAY)
    first = setup.room(setup.sub_slot(slot), "R101")
    second = setup.room(setup.sub_slot(slot), "R102")
    alice = setup.examiner(semester, "alice@uni.edu", days=[DAY])

    workflow_a = RegistrationWorkflow(sessions())
    ticket = workflow_a.engine.prepare_assignment(first.id, alice.id)
    RegistrationWorkflow(sessions()).register(alice.id, second.id)

    with pytest.raises(ConflictError):
        workflow_a.engine.commit(ticket, action="exam_room.register")

    check = sessions()
    assert check.get(ExamRoom, first.id).examiner_id is None
    assert [room.id for room in RegistrationWorkflow(check).assignments_for(alice.id)] == [second.id]
