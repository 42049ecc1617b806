import pytest

from college_enroll.routers import courses as courses_router


def test_create_course_with_slots(client, seed):
    payload = {
        "college_id": seed.eng,
        "code": "CS201",
        "name": "Operating Systems",
        "time_slots": [
            {"day_of_week": 4, "start_time": "14:00", "end_time": "15:30"},
            {"day_of_week": 2, "start_time": "09:00", "end_time": "10:00"},
        ],
    }
    r = client.post("/courses", json=payload)
    assert r.status_code == 201, r.text
    course = r.json()
    assert [(s["day_of_week"], s["start_time"], s["end_time"]) for s in course["time_slots"]] == [
        (2, "09:00", "10:00"),
        (4, "14:00", "15:30"),
    ]

    r = client.get(f"/courses/{course['id']}/timetable")
    assert r.status_code == 200
    assert r.json()["course_code"] == "CS201"
    assert len(r.json()["slots"]) == 2


def test_create_course_rejects_bad_code(client, seed):
    r = client.post("/courses", json={"college_id": seed.eng, "code": "cs-1", "name": "Bad"})
    assert r.status_code == 422


def test_create_course_rejects_inverted_slot(client, seed):
    r = client.post(
        "/courses",
        json={
            "college_id": seed.eng,
            "code": "CS202",
            "name": "Compilers",
            "time_slots": [{"day_of_week": 1, "start_time": "11:00", "end_time": "10:00"}],
        },
    )
    assert r.status_code == 422


def test_create_course_rejects_bad_weekday(client, seed):
    r = client.post(
        "/courses",
        json={
            "college_id": seed.eng,
            "code": "CS203",
            "name": "Graphics",
            "time_slots": [{"day_of_week": 8, "start_time": "09:00", "end_time": "10:00"}],
        },
    )
    assert r.status_code == 422


def test_create_course_with_overlapping_slots(client, seed):
    r = client.post(
        "/courses",
        json={
            "college_id": seed.eng,
            "code": "CS204",
            "name": "Security",
            "time_slots": [
                {"day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
                {"day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
            ],
        },
    )
    assert r.status_code == 409
    assert r.json()["error_kind"] == "DUPLICATE_SLOT"


def test_duplicate_course_code_in_college(client, seed):
    r = client.post("/courses", json={"college_id": seed.eng, "code": "CS101", "name": "Again"})
    assert r.status_code == 409
    assert r.json()["error_kind"] == "DUPLICATE_ENTRY"

    # same code in another college is fine
    r = client.post("/courses", json={"college_id": seed.arts, "code": "CS101", "name": "Again"})
    assert r.status_code == 201


def test_list_courses_filters(client, seed):
    r = client.get("/courses", params={"college_id": seed.arts})
    assert [c["code"] for c in r.json()] == ["AR101"]

    r = client.get("/courses", params={"search": "data"})
    assert [c["code"] for c in r.json()] == ["CS104"]


def test_update_course(client, seed):
    r = client.patch(f"/courses/{seed.cs102}", json={"name": "Discrete Mathematics"})
    assert r.status_code == 200
    assert r.json()["name"] == "Discrete Mathematics"
    assert r.json()["code"] == "CS102"


def test_delete_course_blocked_while_enrolled(client, seed):
    r = client.delete(f"/courses/{seed.cs101}")
    assert r.status_code == 409
    assert r.json()["error_kind"] == "ENROLLMENTS_EXIST"
    assert r.json()["detail"]["enrolled"] == 1

    assert client.delete(f"/courses/{seed.cs102}").status_code == 204
    assert client.get(f"/courses/{seed.cs102}").status_code == 404


def test_enrolled_students(client, seed):
    r = client.get(f"/courses/{seed.cs101}/students")
    assert r.status_code == 200
    rows = r.json()
    assert [(row["student_id"], row["student_number"]) for row in rows] == [
        (seed.student, "ENG-001")
    ]


def test_admin_update_conflict_leaves_timetable(client, seed):
    client.post("/enrollments", json={"student_id": seed.student, "course_ids": [seed.cs103]})
    slot_id = client.get(f"/courses/{seed.cs103}/timetable").json()["slots"][0]["id"]

    r = client.patch(
        f"/admin/timetable/slots/{slot_id}",
        json={"start_time": "09:30", "end_time": "10:30"},
    )
    assert r.status_code == 409
    body = r.json()
    assert body["error_kind"] == "TIMETABLE_UPDATE_CONFLICT"
    assert body["detail"]["student_ids"] == [seed.student]
    assert body["conflicts"][0]["conflicting_course_code"] == "CS101"

    slots = client.get(f"/courses/{seed.cs103}/timetable").json()["slots"]
    assert [(s["start_time"], s["end_time"]) for s in slots] == [("10:00", "11:00")]


def test_admin_replace_timetable(client, seed):
    r = client.put(
        f"/admin/courses/{seed.cs101}/timetable",
        json={"slots": [{"day_of_week": 5, "start_time": "08:00", "end_time": "09:00"}]},
    )
    assert r.status_code == 200, r.text
    assert [(s["day_of_week"], s["start_time"]) for s in r.json()["slots"]] == [(5, "08:00")]


def test_admin_add_and_delete_slot(client, seed):
    r = client.post(
        f"/admin/courses/{seed.cs101}/timetable/slots",
        json={"day_of_week": 1, "start_time": "09:30", "end_time": "10:30"},
    )
    assert r.status_code == 409
    assert r.json()["error_kind"] == "SLOT_OVERLAP"

    r = client.post(
        f"/admin/courses/{seed.cs101}/timetable/slots",
        json={"day_of_week": 3, "start_time": "09:00", "end_time": "10:00"},
    )
    assert r.status_code == 201
    slots = r.json()["slots"]
    assert len(slots) == 2

    added = next(s for s in slots if s["day_of_week"] == 3)
    r = client.delete(f"/admin/timetable/slots/{added['id']}")
    assert r.status_code == 200
    assert len(r.json()["slots"]) == 1

    assert client.delete(f"/admin/timetable/slots/{added['id']}").status_code == 404


def test_admin_slot_edit_inverted_range(client, seed):
    slot_id = client.get(f"/courses/{seed.cs101}/timetable").json()["slots"][0]["id"]
    r = client.patch(f"/admin/timetable/slots/{slot_id}", json={"end_time": "08:30"})
    assert r.status_code == 422
    assert r.json()["error_kind"] == "INVALID_TIME_RANGE"


def test_admin_removes_enrollment(client, seed):
    enrollment_id = client.get(f"/enrollments/students/{seed.student}").json()[0]["id"]

    r = client.delete(f"/admin/students/{seed.student}/enrollments/{enrollment_id}")
    assert r.status_code == 204
    assert client.get(f"/enrollments/students/{seed.student}").json() == []


def test_delete_course_losing_race_to_enrollment(client, seed, monkeypatch):
    real_count = courses_router._count_enrollments
    stale = [0]

    def count(db, course_id):
        # first read misses the enrollment, as if it landed just after
        return stale.pop() if stale else real_count(db, course_id)

    monkeypatch.setattr(courses_router, "_count_enrollments", count)

    r = client.delete(f"/courses/{seed.cs101}")
    assert r.status_code == 409
    assert r.json()["error_kind"] == "ENROLLMENTS_EXIST"
    assert r.json()["detail"]["enrolled"] == 1

    r = client.get(f"/courses/{seed.cs101}")
    assert r.status_code == 200
    assert len(r.json()["time_slots"]) == 1


@pytest.mark.parametrize("start", ["9:00", "09:00:00", "09:00Z", 32400, "0900"])
def test_slot_times_must_be_hh_mm(client, seed, start):
    r = client.post(
        f"/admin/courses/{seed.cs101}/timetable/slots",
        json={"day_of_week": 4, "start_time": start, "end_time": "10:00"},
    )
    assert r.status_code == 422

    slots = client.get(f"/courses/{seed.cs101}/timetable").json()["slots"]
    assert len(slots) == 1
