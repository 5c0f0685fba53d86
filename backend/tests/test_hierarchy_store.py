from datetime import date

import pytest
from sqlalchemy import func, select

from examroster.core.exceptions import ConflictError, ResourceNotFoundError
from examroster.models.exam_room import ExamRoom
from examroster.models.exam_slot import ExamSlot
from examroster.models.examiner import Examiner
from examroster.models.examiner_log_time import ExaminerLogTime
from examroster.models.semester import Season
from examroster.models.sub_in_slot import SubInSlot


def _count(db_session, model):
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


def test_season_for_month():
    assert Season.for_month(1) == Season.SPRING
    assert Season.for_month(5) == Season.SUMMER
    assert Season.for_month(12) == Season.FALL
    with pytest.raises(ValueError):
        Season.for_month(13)


def test_exam_types_are_seeded_once(scenario):
    exam_types = scenario.store.list_exam_types()

    assert len(exam_types) == 8
    assert {(item.type, item.block, item.des) for item in exam_types} >= {("FE", 10, 0), ("PE", 5, 1)}


def test_duplicate_semester_conflicts(scenario):
    scenario.semester()

    with pytest.raises(ConflictError):
        scenario.semester()


def test_slot_day_must_fall_inside_phase_window(scenario):
    phase = scenario.phase(scenario.semester())

    with pytest.raises(ConflictError):
        scenario.slot(phase, date(2024, 5, 4))


def test_phase_window_must_be_ordered(scenario):
    semester = scenario.semester()

    with pytest.raises(ConflictError):
        scenario.phase(semester, start=date(2024, 5, 3), end=date(2024, 5, 1))


def test_update_phase_keeps_existing_slots_inside_window(db_session, scenario):
    phase = scenario.phase(scenario.semester())
    scenario.slot(phase, date(2024, 5, 3))
    makeup = scenario.exam_type(des=1)

    with pytest.raises(ConflictError):
        scenario.store.update_phase(phase.id, exam_type_id=makeup.id, end_day=date(2024, 5, 2))
    db_session.refresh(phase)
    assert phase.exam_type_id != makeup.id
    assert phase.end_day == date(2024, 5, 3)

    updated = scenario.store.update_phase(phase.id, exam_type_id=makeup.id, end_day=date(2024, 5, 10))
    assert updated.exam_type_id == makeup.id
    assert updated.end_day == date(2024, 5, 10)


def test_list_phases_joins_semester_and_exam_type(scenario):
    summer = scenario.semester()
    fall = scenario.semester(season=Season.FALL)
    summer_phase = scenario.phase(summer)
    scenario.phase(fall, start=date(2024, 10, 1), end=date(2024, 10, 5), des=1)

    details = scenario.store.list_phases(summer.id)

    assert [item.id for item in details] == [summer_phase.id]
    assert details[0].season == Season.SUMMER
    assert (details[0].type, details[0].block, details[0].des) == ("FE", 10, 0)
    assert len(scenario.store.list_phases()) == 2


def test_deleting_phase_cascades_to_rooms(db_session, scenario):
    semester = scenario.semester()
    phase = scenario.phase(semester)
    keep = scenario.phase(semester, start=date(2024, 5, 10), end=date(2024, 5, 12))
    scenario.room(scenario.sub_slot(scenario.slot(phase)), "R101")
    scenario.room(scenario.sub_slot(scenario.slot(phase)), "R102")
    kept_room = scenario.room(scenario.sub_slot(scenario.slot(keep, date(2024, 5, 11))), "R201")

    scenario.store.delete_phase(phase.id)

    with pytest.raises(ResourceNotFoundError):
        scenario.store.require_phase(phase.id)
    assert _count(db_session, ExamSlot) == 1
    assert _count(db_session, SubInSlot) == 1
    assert [room.id for room in db_session.execute(select(ExamRoom)).scalars()] == [kept_room.id]


def test_deleting_sub_slot_removes_its_rooms(db_session, scenario):
    slot = scenario.slot(scenario.phase(scenario.semester()))
    doomed = scenario.sub_slot(slot)
    scenario.room(doomed, "R101")
    survivor = scenario.room(scenario.sub_slot(slot), "R102")

    scenario.store.delete_sub_slot(doomed.id)

    assert [room.id for room in scenario.store.rooms_for_slot(slot.id)] == [survivor.id]


def test_semester_delete_is_limited_to_current_year(db_session, scenario):
    semester = scenario.semester(year=2023)
    phase = scenario.phase(semester, start=date(2023, 5, 1), end=date(2023, 5, 3))
    scenario.room(scenario.sub_slot(scenario.slot(phase, date(2023, 5, 2))))
    scenario.examiner(semester, "alice@uni.edu", days=[date(2023, 5, 2)])

    with pytest.raises(ConflictError):
        scenario.store.delete_semester(semester.id, today=date(2024, 1, 15))

    scenario.store.delete_semester(semester.id, today=date(2023, 12, 1))

    assert scenario.store.list_semesters() == []
    assert _count(db_session, ExamRoom) == 0
    assert _count(db_session, Examiner) == 0
    assert _count(db_session, ExaminerLogTime) == 0


def test_examiner_email_is_unique_per_semester(scenario):
    summer = scenario.semester()
    fall = scenario.semester(season=Season.FALL)
    scenario.examiner(summer, "Alice@Uni.edu")

    with pytest.raises(ConflictError):
        scenario.examiner(summer, "alice@uni.edu")

    other = scenario.examiner(fall, "alice@uni.edu")
    assert other.semester_id == fall.id
    assert scenario.store.examiner_by_email(summer.id, " ALICE@uni.edu ").email == "alice@uni.edu"


def test_examiner_identity_prefers_an_id_from_the_same_semester(scenario):
    summer = scenario.semester()
    fall = scenario.semester(season=Season.FALL)
    alice = scenario.examiner(summer, "alice@uni.edu")
    bob = scenario.examiner(summer, "bob@uni.edu")
    alice_fall = scenario.examiner(fall, "alice@uni.edu")
    store = scenario.store

    assert store.examiner_for_identity(summer.id, "alice@uni.edu", bob.id).id == bob.id
    assert store.examiner_for_identity(summer.id, "alice@uni.edu", alice_fall.id).id == alice.id
    assert store.examiner_for_identity(summer.id, "alice@uni.edu").id == alice.id
    assert store.examiner_for_identity(summer.id, "carol@uni.edu", 9999) is None


def test_room_context_walks_to_the_phase(scenario):
    phase = scenario.phase(scenario.semester())
    slot = scenario.slot(phase, date(2024, 5, 3))
    room = scenario.room(scenario.sub_slot(slot))

    context = scenario.store.room_context(room.id)

    assert context.phase.id == phase.id
    assert context.slot.id == slot.id
    assert context.day == date(2024, 5, 3)
