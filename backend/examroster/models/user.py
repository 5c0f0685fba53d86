from enum import Enum


class UserRole(str, Enum):
    student = "student"
    lecturer = "lecturer"
    staff = "staff"
    admin = "admin"

    @property
    def level(self) -> int:
        return ROLE_LEVELS[self]


ROLE_LEVELS = {
    UserRole.student: 0,
    UserRole.lecturer: 1,
    UserRole.staff: 2,
    UserRole.admin: 3,
}
