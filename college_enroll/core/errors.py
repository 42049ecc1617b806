from enum import Enum

from college_enroll.schemas.conflict import Conflict, SlotClash, StudentImpact


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    COLLEGE_MISMATCH = "COLLEGE_MISMATCH"
    TIMETABLE_CLASH = "TIMETABLE_CLASH"
    TIMETABLE_UPDATE_CONFLICT = "TIMETABLE_UPDATE_CONFLICT"
    DUPLICATE_SLOT = "DUPLICATE_SLOT"
    SLOT_OVERLAP = "SLOT_OVERLAP"
    ENROLLMENTS_EXIST = "ENROLLMENTS_EXIST"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"


class AppError(Exception):
    """Base class for all application errors.

    Subclasses fix `kind` and `status_code` and carry their own typed fields;
    `detail()` and `conflicts()` expose them to the HTTP error handler.
    """

    kind: ErrorKind
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def detail(self) -> dict:
        return {}

    def conflicts(self) -> list | None:
        return None


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, resource: str, ids: list[int] | int):
        self.resource = resource
        self.ids = list(ids) if isinstance(ids, (list, tuple, set)) else [ids]
        if len(self.ids) == 1:
            message = f"{resource} not found: {self.ids[0]}"
        else:
            message = f"{resource}(s) not found: {', '.join(str(i) for i in self.ids)}"
        super().__init__(message)

    def detail(self) -> dict:
        return {"resource": self.resource, "ids": self.ids}


class CollegeMismatchError(AppError):
    kind = ErrorKind.COLLEGE_MISMATCH
    status_code = 400

    def __init__(self, student_id: int, course_ids: list[int]):
        self.student_id = student_id
        self.course_ids = course_ids
        super().__init__("Student and courses must belong to the same college")

    def detail(self) -> dict:
        return {"student_id": self.student_id, "course_ids": self.course_ids}


class TimetableClashError(AppError):
    kind = ErrorKind.TIMETABLE_CLASH
    status_code = 409

    def __init__(self, conflicts: list[Conflict]):
        self.clashes = conflicts
        super().__init__("Cannot enroll: timetable clash detected")

    def conflicts(self) -> list[Conflict]:
        return self.clashes


class TimetableUpdateConflictError(AppError):
    kind = ErrorKind.TIMETABLE_UPDATE_CONFLICT
    status_code = 409

    def __init__(self, course_id: int, impacts: list[StudentImpact]):
        self.course_id = course_id
        self.impacts = impacts
        super().__init__(
            "Cannot update timetable: would create conflicts for enrolled students"
        )

    def detail(self) -> dict:
        return {
            "course_id": self.course_id,
            "student_ids": sorted({i.student_id for i in self.impacts}),
        }

    def conflicts(self) -> list[StudentImpact]:
        return self.impacts


class DuplicateSlotError(AppError):
    kind = ErrorKind.DUPLICATE_SLOT
    status_code = 409

    def __init__(self, course_id: int | None, clashes: list[SlotClash]):
        self.course_id = course_id
        self.clashes = clashes
        super().__init__("This time slot already exists in the course timetable")

    def detail(self) -> dict:
        return {"course_id": self.course_id}

    def conflicts(self) -> list[SlotClash]:
        return self.clashes


class SlotOverlapError(AppError):
    kind = ErrorKind.SLOT_OVERLAP
    status_code = 409

    def __init__(self, course_id: int | None, clashes: list[SlotClash]):
        self.course_id = course_id
        self.clashes = clashes
        super().__init__("Time slot overlaps another slot of the same course")

    def detail(self) -> dict:
        return {"course_id": self.course_id}

    def conflicts(self) -> list[SlotClash]:
        return self.clashes


class CourseHasEnrollmentsError(AppError):
    kind = ErrorKind.ENROLLMENTS_EXIST
    status_code = 409

    def __init__(self, course_id: int, enrolled: int):
        self.course_id = course_id
        self.enrolled = enrolled
        super().__init__("Cannot delete course with enrolled students")

    def detail(self) -> dict:
        return {"course_id": self.course_id, "enrolled": self.enrolled}


class DuplicateEntryError(AppError):
    kind = ErrorKind.DUPLICATE_ENTRY
    status_code = 409

    def __init__(self, resource: str, field: str):
        self.resource = resource
        self.field = field
        super().__init__(f"{resource} with this {field} already exists")

    def detail(self) -> dict:
        return {"resource": self.resource, "field": self.field}


class PersistenceError(AppError):
    kind = ErrorKind.PERSISTENCE_FAILURE
    status_code = 500

    def __init__(self):
        super().__init__("Database operation failed")


class InvalidTimeRangeError(AppError):
    kind = ErrorKind.INVALID_TIME_RANGE
    status_code = 422

    def __init__(self, slot_id: int):
        self.slot_id = slot_id
        super().__init__("End time must be after start time")

    def detail(self) -> dict:
        return {"slot_id": self.slot_id}
