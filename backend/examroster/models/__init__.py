from examroster.models.activity_log import ActivityLog  # noqa: F401
from examroster.models.exam_phase import ExamPhase  # noqa: F401
from examroster.models.exam_room import ExamRoom  # noqa: F401
from examroster.models.exam_slot import ExamSlot  # noqa: F401
from examroster.models.exam_type import ExamType  # noqa: F401
from examroster.models.examiner import Examiner, ExaminerStatus, ExaminerType  # noqa: F401
from examroster.models.examiner_log_time import ExaminerLogTime  # noqa: F401
from examroster.models.semester import Season, Semester  # noqa: F401
from examroster.models.sub_in_slot import SubInSlot  # noqa: F401
