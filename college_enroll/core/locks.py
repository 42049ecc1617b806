from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager
from threading import Lock


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = Lock()
        self.users = 0


class ScheduleLocks:
    """
    Per-course and per-student mutexes for the read-check-write sequences.

    Locks are always taken courses first, then students, each group in
    ascending id order, so two holders can never wait on each other.

    An entry lives only while some thread holds or waits for it, so the
    tables stay as small as the number of ids in flight.
    """

    def __init__(self) -> None:
        self._courses: dict[int, _KeyLock] = {}
        self._students: dict[int, _KeyLock] = {}
        self._guard = Lock()

    @contextmanager
    def _acquire(self, table: dict[int, _KeyLock], key: int) -> Iterator[None]:
        with self._guard:
            entry = table.get(key)
            if entry is None:
                entry = table[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if not entry.users:
                    del table[key]

    @contextmanager
    def hold(
        self,
        *,
        courses: Iterable[int] = (),
        students: Iterable[int] = (),
    ) -> Iterator[None]:
        with ExitStack() as stack:
            for course_id in sorted(set(courses)):
                stack.enter_context(self._acquire(self._courses, course_id))
            for student_id in sorted(set(students)):
                stack.enter_context(self._acquire(self._students, student_id))
            yield

    def in_use(self) -> int:
        """Number of course and student ids currently held or awaited."""
        with self._guard:
            return len(self._courses) + len(self._students)


_locks = ScheduleLocks()


def get_schedule_locks() -> ScheduleLocks:
    return _locks
