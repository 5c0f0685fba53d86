from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from examroster.core.exceptions import InternalServiceError, InvalidArgumentError, ResourceNotFoundError
from examroster.models.examiner import ExaminerType
from examroster.services.aggregation import (
    STATUS_NO_EXAMINERS,
    STATUS_NO_SLOTS,
    STATUS_OK,
    AggregationEngine,
)
from examroster.services.assignment import AssignmentEngine
from examroster.services.hierarchy import HierarchyStore

DAYS = [date(2024, 5, 1), date(2024, 5, 2), date(2024, 5, 3)]


def _rooms_per_day(scenario, phase, count_per_day):
    rooms = []
    for day in DAYS:
        sub_slot = scenario.sub_slot(scenario.slot(phase, day))
        rooms.append([scenario.room(sub_slot, f"R{day.day}{index}") for index in range(count_per_day)])
    return rooms


@pytest.fixture()
def loaded_phase(db_session, scenario):
    """A holds 3 rooms, B holds 3 and C holds 1; two rooms stay open."""
    semester = scenario.semester()
    phase = scenario.phase(semester)
    rooms = _rooms_per_day(scenario, phase, 3)
    a = scenario.examiner(semester, "a@uni.edu", days=DAYS)
    b = scenario.examiner(semester, "b@uni.edu", days=DAYS, type_examiner=ExaminerType.staff)
    c = scenario.examiner(semester, "c@uni.edu", days=DAYS, type_examiner=ExaminerType.volunteer)
    engine = AssignmentEngine(db_session)
    for day_rooms in rooms:
        engine.assign_examiner(day_rooms[0].id, a.id)
        engine.assign_examiner(day_rooms[1].id, b.id)
    engine.assign_examiner(rooms[0][2].id, c.id)
    return phase, a, b, c


def test_top_examiners_include_ties(db_session, loaded_phase):
    phase, a, b, _ = loaded_phase

    top = AggregationEngine(db_session).top_examiners_by_load(phase.id)

    assert [(item.examiner_id, item.quantity) for item in top] == [(a.id, 3), (b.id, 3)]


def test_top_examiners_with_two_tiers(db_session, loaded_phase):
    phase, a, b, c = loaded_phase

    top = AggregationEngine(db_session).top_examiners_by_load(phase.id, top_n=2)

    assert [item.examiner_id for item in top] == [a.id, b.id, c.id]
    assert top[-1].email == "c@uni.edu"


def test_top_examiners_rejects_non_positive_tiers(db_session, loaded_phase):
    phase, *_ = loaded_phase

    with pytest.raises(InvalidArgumentError) as exc_info:
        AggregationEngine(db_session).top_examiners_by_load(phase.id, top_n=0)

    assert exc_info.value.status_code == 422
    assert exc_info.value.details == {"top_n": 0}


def test_top_examiners_without_assignments_is_not_found(db_session, scenario):
    semester = scenario.semester()
    phase = scenario.phase(semester)
    scenario.room(scenario.sub_slot(scenario.slot(phase)))

    with pytest.raises(ResourceNotFoundError) as exc_info:
        AggregationEngine(db_session).top_examiners_by_load(phase.id)

    assert exc_info.value.message == f"No examiner holds an assignment in phase {phase.id}"


def test_staffed_rooms_never_exceed_total(db_session, loaded_phase):
    phase, *_ = loaded_phase
    aggregation = AggregationEngine(db_session)

    assert aggregation.count_staffed_rooms(phase.id) == 7
    assert aggregation.count_rooms(phase.id) == 9
    assert aggregation.load_distribution(phase.id) == {
        loaded_phase[1].id: 3,
        loaded_phase[2].id: 3,
        loaded_phase[3].id: 1,
    }


def test_counts_follow_releases_immediately(db_session, loaded_phase):
    phase, a, *_ = loaded_phase
    aggregation = AggregationEngine(db_session)
    room_id = AssignmentEngine(db_session).store.rooms_held_by(a.id)[0].id

    AssignmentEngine(db_session).release_examiner(room_id)

    assert aggregation.count_staffed_rooms(phase.id) == 6
    assert aggregation.load_distribution(phase.id)[a.id] == 2


def test_distinct_examiners_by_role(db_session, loaded_phase):
    phase, a, b, c = loaded_phase

    report = AggregationEngine(db_session).count_distinct_examiners(phase.id)

    assert report.status == STATUS_OK
    assert report.total == 3
    assert [item.examiner_id for item in report.examiners] == [a.id, b.id, c.id]
    assert report.by_role == {"lecturer": 1, "staff": 1, "volunteer": 1}


def test_distinct_examiners_for_phase_without_slots(db_session, scenario):
    phase = scenario.phase(scenario.semester())
    aggregation = AggregationEngine(db_session)

    report = aggregation.count_distinct_examiners(phase.id)

    assert report.status == STATUS_NO_SLOTS
    assert report.message == "This phase doesn't have any slots"
    assert report.total == 0
    assert aggregation.count_staffed_rooms(phase.id) == 0


def test_distinct_examiners_for_unstaffed_phase(db_session, scenario):
    phase = scenario.phase(scenario.semester())
    scenario.room(scenario.sub_slot(scenario.slot(phase)))

    report = AggregationEngine(db_session).count_distinct_examiners(phase.id)

    assert report.status == STATUS_NO_EXAMINERS
    assert report.message == "No examiner is assigned in this phase"


def test_missing_phase_is_not_found(db_session):
    aggregation = AggregationEngine(db_session)

    with pytest.raises(ResourceNotFoundError):
        aggregation.count_staffed_rooms(999)
    with pytest.raises(ResourceNotFoundError):
        aggregation.count_distinct_examiners(999)


def test_slot_utilization(db_session, loaded_phase):
    phase, *_ = loaded_phase

    utilization = AggregationEngine(db_session).slot_utilization(phase.id)

    assert [(item.day, item.total_rooms, item.staffed_rooms) for item in utilization] == [
        (DAYS[0], 3, 3),
        (DAYS[1], 3, 2),
        (DAYS[2], 3, 2),
    ]
    assert utilization[0].ratio == 1.0
    assert utilization[1].ratio == 0.6667


def test_available_examiner_count(db_session, scenario):
    semester = scenario.semester()
    phase = scenario.phase(semester)
    scenario.examiner(semester, "a@uni.edu", days=[DAYS[0], DAYS[1]])
    scenario.examiner(semester, "b@uni.edu", days=[DAYS[2]])
    scenario.examiner(semester, "c@uni.edu", days=[date(2024, 6, 1)])

    assert AggregationEngine(db_session).count_available_examiners(phase.id) == 2


def test_storage_failure_during_a_count_is_an_internal_error(db_session, loaded_phase, monkeypatch):
    phase, *_ = loaded_phase
    phase_id = phase.id

    def rooms_for_phase(self, phase_id):
        raise OperationalError("SELECT exam_rooms", {}, Exception("disk I/O error"))

    monkeypatch.setattr(HierarchyStore, "rooms_for_phase", rooms_for_phase)

    with pytest.raises(InternalServiceError) as exc_info:
        AggregationEngine(db_session).count_staffed_rooms(phase_id)

    assert exc_info.value.message == "Storage failure during dashboard.staffed_rooms"
