from datetime import date

import pytest

from examroster.core.exceptions import ConflictError, ForbiddenError, UnavailableError
from examroster.services.registration import RegistrationWorkflow

DAY = date(2024, 5, 2)


@pytest.fixture()
def open_room(scenario):
    semester = scenario.semester()
    phase = scenario.phase(semester)
    room = scenario.room(scenario.sub_slot(scenario.slot(phase, DAY)))
    return semester, phase, room


def test_register_then_unregister_round_trip(db_session, scenario, open_room):
    semester, _, room = open_room
    alice = scenario.examiner(semester, "alice@uni.edu", days=[DAY])
    workflow = RegistrationWorkflow(db_session)

    assert workflow.register(alice.id, room.id).examiner_id == alice.id
    assert workflow.unregister(alice.id, room.id).examiner_id is None


def test_register_twice_is_idempotent(db_session, scenario, open_room):
    semester, _, room = open_room
    alice = scenario.examiner(semester, "alice@uni.edu", days=[DAY])
    workflow = RegistrationWorkflow(db_session)

    first = workflow.register(alice.id, room.id)
    second = workflow.register(alice.id, room.id)

    assert first.id == second.id
    assert second.examiner_id == alice.id
    assert [item.id for item in workflow.assignments_for(alice.id)] == [room.id]


def test_register_on_room_held_by_another_examiner_conflicts(db_session, scenario, open_room):
    semester, _, room = open_room
    alice = scenario.examiner(semester, "alice@uni.edu", days=[DAY])
    bob = scenario.examiner(semester, "bob@uni.edu", days=[DAY])
    workflow = RegistrationWorkflow(db_session)
    workflow.register(alice.id, room.id)

    with pytest.raises(ConflictError):
        workflow.register(bob.id, room.id)


def test_register_requires_availability(db_session, scenario, open_room):
    semester, _, room = open_room
    carol = scenario.examiner(semester, "carol@uni.edu", days=[date(2024, 5, 3)])

    with pytest.raises(UnavailableError):
        RegistrationWorkflow(db_session).register(carol.id, room.id)


def test_unregister_someone_elses_room_is_forbidden(db_session, scenario, open_room):
    semester, _, room = open_room
    alice = scenario.examiner(semester, "alice@uni.edu", days=[DAY])
    bob = scenario.examiner(semester, "bob@uni.edu", days=[DAY])
    workflow = RegistrationWorkflow(db_session)
    workflow.register(alice.id, room.id)

    with pytest.raises(ForbiddenError) as exc_info:
        workflow.unregister(bob.id, room.id)

    assert exc_info.value.status_code == 403


def test_unregister_open_room_is_a_no_op(db_session, scenario, open_room):
    semester, _, room = open_room
    alice = scenario.examiner(semester, "alice@uni.edu", days=[DAY])

    assert RegistrationWorkflow(db_session).unregister(alice.id, room.id).examiner_id is None


def test_open_rooms_skip_staffed_and_unavailable_days(db_session, scenario, open_room):
    semester, phase, room = open_room
    other_day = scenario.room(scenario.sub_slot(scenario.slot(phase, date(2024, 5, 3))), "R201")
    taken = scenario.room(scenario.sub_slot(scenario.slot(phase, DAY)), "R301")
    alice = scenario.examiner(semester, "alice@uni.edu", days=[DAY])
    bob = scenario.examiner(semester, "bob@uni.edu", days=[DAY])
    workflow = RegistrationWorkflow(db_session)
    workflow.register(bob.id, taken.id)

    assert [item.id for item in workflow.open_rooms_for(alice.id, phase.id)] == [room.id]
    assert other_day.id not in [item.id for item in workflow.open_rooms_for(alice.id, phase.id)]

    workflow.register(alice.id, room.id)
    assert workflow.open_rooms_for(alice.id, phase.id) == []


def test_open_rooms_for_examiner_without_availability_is_empty(db_session, scenario, open_room):
    semester, phase, _ = open_room
    dave = scenario.examiner(semester, "dave@uni.edu")

    assert RegistrationWorkflow(db_session).open_rooms_for(dave.id, phase.id) == []
