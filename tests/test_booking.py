from fastapi import status

from tests.conf_tests import (  # pylint: disable=unused-import
    client,
    clear_db,
    test_db,
    test_room,
    faculty_user,
    faculty_headers,
    other_faculty_user,
    other_faculty_headers,
    student_user,
    student_headers,
    admin_user,
    admin_headers,
)

# pylint: disable=redefined-outer-name

BOOKING_DATE = "2024-01-10"


def booking_payload(room_id, start="09:00", end="10:00", day=BOOKING_DATE, course="CS101", **extra):
    return {
        "room_id": room_id,
        "course_name": course,
        "date": day,
        "start_time": start,
        "end_time": end,
        **extra,
    }


def create_booking(headers, room_id, **kwargs):
    return client.post("/bookings/", json=booking_payload(room_id, **kwargs), headers=headers)


# Creating
def test_create_booking_success(faculty_headers, faculty_user, test_room):
    response = create_booking(
        faculty_headers,
        test_room.id,
        expected_attendance=25,
        special_requirements="Projector",
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["room_id"] == test_room.id
    assert data["faculty_id"] == faculty_user.id
    assert data["course_name"] == "CS101"
    assert data["date"] == BOOKING_DATE
    assert data["start_time"] == "09:00:00"
    assert data["end_time"] == "10:00:00"
    assert data["expected_attendance"] == 25
    assert data["special_requirements"] == "Projector"
    assert data["status"] == "pending"
    assert "id" in data and "created_at" in data


def test_create_booking_round_trip(faculty_headers, test_room):
    created = create_booking(faculty_headers, test_room.id).json()
    response = client.get(f"/bookings/{created['id']}", headers=faculty_headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    for key, value in created.items():
        assert data[key] == value
    assert data["room"]["name"] == "Room A101"
    assert set(data["faculty"]) == {"id", "name", "email"}


def test_create_booking_ignores_foreign_faculty_id(faculty_headers, faculty_user, other_faculty_user, test_room):
    response = create_booking(faculty_headers, test_room.id, faculty_id=other_faculty_user.id)
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["faculty_id"] == faculty_user.id


def test_create_booking_unauthenticated(test_room):
    response = client.post("/bookings/", json=booking_payload(test_room.id))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_booking_invalid_token(test_room):
    response = client.post(
        "/bookings/", json=booking_payload(test_room.id), headers={"Authorization": "Bearer nope"}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_booking_forbidden_for_student(student_headers, test_room):
    response = create_booking(student_headers, test_room.id)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Faculty access required"


def test_create_booking_forbidden_for_admin(admin_headers, test_room):
    response = create_booking(admin_headers, test_room.id)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_create_booking_end_equals_start(faculty_headers, test_room):
    response = create_booking(faculty_headers, test_room.id, start="09:00", end="09:00")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "End time must be after start time"


def test_create_booking_end_before_start(faculty_headers, test_room):
    response = create_booking(faculty_headers, test_room.id, start="11:00", end="10:00")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_booking_seconds_rejected(faculty_headers, test_room):
    response = create_booking(faculty_headers, test_room.id, start="09:00:30", end="10:00")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_booking_missing_course(faculty_headers, test_room):
    payload = booking_payload(test_room.id)
    del payload["course_name"]
    response = client.post("/bookings/", json=payload, headers=faculty_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_booking_room_not_found(faculty_headers):
    response = create_booking(faculty_headers, 999)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Room not found"


def test_create_booking_attendance_over_capacity(faculty_headers, test_room):
    response = create_booking(faculty_headers, test_room.id, expected_attendance=31)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "exceeds room capacity" in response.json()["detail"]


def test_create_booking_overlapping(faculty_headers, other_faculty_headers, test_room):
    assert create_booking(faculty_headers, test_room.id).status_code == status.HTTP_201_CREATED
    response = create_booking(other_faculty_headers, test_room.id, start="09:30", end="10:30")
    assert response.status_code == status.HTTP_409_CONFLICT
    assert "already booked" in response.json()["detail"]


def test_create_booking_enclosing_existing(faculty_headers, test_room):
    create_booking(faculty_headers, test_room.id, start="09:00", end="10:00")
    response = create_booking(faculty_headers, test_room.id, start="08:00", end="12:00")
    assert response.status_code == status.HTTP_409_CONFLICT


def test_create_booking_touching_boundary(faculty_headers, test_room):
    create_booking(faculty_headers, test_room.id, start="09:00", end="10:00")
    response = create_booking(faculty_headers, test_room.id, start="10:00", end="11:00")
    assert response.status_code == status.HTTP_201_CREATED


def test_create_booking_other_day_or_room(admin_headers, faculty_headers, test_room):
    create_booking(faculty_headers, test_room.id)
    other_room = client.post("/rooms/", json={"name": "Lab C301", "capacity": 20}, headers=admin_headers).json()
    assert create_booking(faculty_headers, test_room.id, day="2024-01-11").status_code == status.HTTP_201_CREATED
    assert create_booking(faculty_headers, other_room["id"]).status_code == status.HTTP_201_CREATED


def test_cancelled_booking_frees_slot(faculty_headers, other_faculty_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    client.post(f"/bookings/{booking['id']}/cancel", headers=faculty_headers)
    response = create_booking(other_faculty_headers, test_room.id)
    assert response.status_code == status.HTTP_201_CREATED


# Listing and reading
def test_list_bookings_unauthenticated():
    response = client.get("/bookings/")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_list_bookings_faculty_defaults_to_own(faculty_headers, other_faculty_headers, faculty_user, test_room):
    create_booking(faculty_headers, test_room.id)
    create_booking(other_faculty_headers, test_room.id, start="11:00", end="12:00")
    response = client.get("/bookings/", headers=faculty_headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert len(data) == 1
    assert data[0]["faculty_id"] == faculty_user.id


def test_list_bookings_faculty_cannot_see_others(faculty_headers, other_faculty_user):
    response = client.get(f"/bookings/?faculty_id={other_faculty_user.id}", headers=faculty_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_list_bookings_student_sees_all(faculty_headers, other_faculty_headers, faculty_user, student_headers, test_room):
    create_booking(faculty_headers, test_room.id)
    create_booking(other_faculty_headers, test_room.id, start="11:00", end="12:00")
    response = client.get(f"/bookings/?faculty_id={faculty_user.id}", headers=student_headers)
    assert response.status_code == status.HTTP_200_OK
    assert len(response.json()) == 2


def test_list_bookings_admin_filters(faculty_headers, other_faculty_headers, other_faculty_user, admin_headers, test_room):
    create_booking(faculty_headers, test_room.id)
    create_booking(other_faculty_headers, test_room.id, start="11:00", end="12:00")
    assert len(client.get("/bookings/", headers=admin_headers).json()) == 2
    response = client.get(f"/bookings/?faculty_id={other_faculty_user.id}", headers=admin_headers)
    data = response.json()
    assert len(data) == 1
    assert data[0]["faculty"]["id"] == other_faculty_user.id
    assert "hashed_password" not in data[0]["faculty"]


def test_list_bookings_sorted_and_date_filtered(faculty_headers, test_room):
    create_booking(faculty_headers, test_room.id, day="2024-01-12", start="08:00", end="09:00")
    create_booking(faculty_headers, test_room.id, day="2024-01-10", start="14:00", end="15:00")
    create_booking(faculty_headers, test_room.id, day="2024-01-10", start="08:00", end="09:00")
    data = client.get("/bookings/", headers=faculty_headers).json()
    assert [(b["date"], b["start_time"]) for b in data] == [
        ("2024-01-10", "08:00:00"),
        ("2024-01-10", "14:00:00"),
        ("2024-01-12", "08:00:00"),
    ]
    ranged = client.get(
        "/bookings/?date_from=2024-01-11&date_to=2024-01-12", headers=faculty_headers
    ).json()
    assert [b["date"] for b in ranged] == ["2024-01-12"]


def test_list_bookings_status_filter(faculty_headers, test_room):
    first = create_booking(faculty_headers, test_room.id).json()
    create_booking(faculty_headers, test_room.id, start="11:00", end="12:00")
    client.post(f"/bookings/{first['id']}/cancel", headers=faculty_headers)
    data = client.get("/bookings/?status=cancelled", headers=faculty_headers).json()
    assert [b["id"] for b in data] == [first["id"]]


def test_get_booking_permissions(faculty_headers, other_faculty_headers, student_headers, admin_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    url = f"/bookings/{booking['id']}"
    assert client.get(url, headers=faculty_headers).status_code == status.HTTP_200_OK
    assert client.get(url, headers=student_headers).status_code == status.HTTP_200_OK
    assert client.get(url, headers=admin_headers).status_code == status.HTTP_200_OK
    assert client.get(url, headers=other_faculty_headers).status_code == status.HTTP_403_FORBIDDEN


def test_get_booking_not_found(admin_headers):
    response = client.get("/bookings/999", headers=admin_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


# Updating
def test_update_booking_by_owner(faculty_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    response = client.put(
        f"/bookings/{booking['id']}",
        json={"course_name": "CS102", "end_time": "10:30"},
        headers=faculty_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["course_name"] == "CS102"
    assert data["end_time"] == "10:30:00"
    assert data["start_time"] == "09:00:00"


def test_update_booking_unauthenticated(faculty_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    response = client.put(f"/bookings/{booking['id']}", json={"course_name": "Should Fail"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_update_booking_forbidden(faculty_headers, other_faculty_headers, student_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    url = f"/bookings/{booking['id']}"
    for headers in (other_faculty_headers, student_headers):
        response = client.put(url, json={"course_name": "Should Fail"}, headers=headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN


def test_update_booking_not_found(admin_headers):
    response = client.put("/bookings/999", json={"course_name": "X"}, headers=admin_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_update_booking_owner_cannot_reassign(faculty_headers, faculty_user, other_faculty_user, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    response = client.put(
        f"/bookings/{booking['id']}", json={"faculty_id": other_faculty_user.id}, headers=faculty_headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["faculty_id"] == faculty_user.id


def test_update_booking_admin_reassigns(faculty_headers, admin_headers, other_faculty_user, student_user, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    url = f"/bookings/{booking['id']}"
    response = client.put(url, json={"faculty_id": other_faculty_user.id}, headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["faculty_id"] == other_faculty_user.id

    response = client.put(url, json={"faculty_id": student_user.id}, headers=admin_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_booking_into_overlap(faculty_headers, test_room):
    create_booking(faculty_headers, test_room.id, start="09:00", end="10:00")
    second = create_booking(faculty_headers, test_room.id, start="10:00", end="11:00").json()
    response = client.put(
        f"/bookings/{second['id']}", json={"start_time": "09:45"}, headers=faculty_headers
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_update_booking_does_not_conflict_with_itself(faculty_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    response = client.put(
        f"/bookings/{booking['id']}", json={"start_time": "09:15", "end_time": "10:15"}, headers=faculty_headers
    )
    assert response.status_code == status.HTTP_200_OK


def test_update_booking_invalid_range(faculty_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    response = client.put(
        f"/bookings/{booking['id']}", json={"end_time": "08:00"}, headers=faculty_headers
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_booking_owner_cannot_confirm(faculty_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    response = client.put(
        f"/bookings/{booking['id']}", json={"status": "confirmed"}, headers=faculty_headers
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_update_booking_admin_confirms(faculty_headers, admin_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    response = client.put(
        f"/bookings/{booking['id']}", json={"status": "confirmed"}, headers=admin_headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "confirmed"


def test_update_cancelled_booking_rejected(faculty_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    url = f"/bookings/{booking['id']}"
    client.post(f"{url}/cancel", headers=faculty_headers)
    assert client.put(url, json={"course_name": "CS102"}, headers=faculty_headers).status_code == 400
    assert client.put(url, json={"status": "pending"}, headers=faculty_headers).status_code == 400


# Status transitions
def test_confirm_booking(faculty_headers, admin_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    url = f"/bookings/{booking['id']}/confirm"
    assert client.post(url, headers=faculty_headers).status_code == status.HTTP_403_FORBIDDEN
    response = client.post(url, headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "confirmed"


def test_confirm_cancelled_booking_rejected(faculty_headers, admin_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    client.post(f"/bookings/{booking['id']}/cancel", headers=faculty_headers)
    response = client.post(f"/bookings/{booking['id']}/confirm", headers=admin_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_cancel_booking_is_idempotent(faculty_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    url = f"/bookings/{booking['id']}/cancel"
    first = client.post(url, headers=faculty_headers)
    second = client.post(url, headers=faculty_headers)
    assert first.status_code == second.status_code == status.HTTP_200_OK
    assert first.json()["status"] == second.json()["status"] == "cancelled"


def test_cancel_booking_permissions(faculty_headers, other_faculty_headers, student_headers, admin_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    url = f"/bookings/{booking['id']}/cancel"
    assert client.post(url, headers=student_headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.post(url, headers=other_faculty_headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.post(url, headers=admin_headers).status_code == status.HTTP_200_OK


def test_delete_booking_marks_cancelled(faculty_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    response = client.delete(f"/bookings/{booking['id']}", headers=faculty_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    kept = client.get(f"/bookings/{booking['id']}", headers=faculty_headers)
    assert kept.status_code == status.HTTP_200_OK
    assert kept.json()["status"] == "cancelled"


def test_purge_booking(faculty_headers, admin_headers, test_room):
    booking = create_booking(faculty_headers, test_room.id).json()
    url = f"/bookings/{booking['id']}"
    assert client.delete(f"{url}/purge", headers=admin_headers).status_code == status.HTTP_400_BAD_REQUEST

    client.delete(url, headers=faculty_headers)
    assert client.delete(f"{url}/purge", headers=faculty_headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(f"{url}/purge", headers=admin_headers).status_code == status.HTTP_204_NO_CONTENT
    assert client.get(url, headers=admin_headers).status_code == status.HTTP_404_NOT_FOUND


def test_booking_scenario(faculty_headers, other_faculty_headers, admin_headers, student_headers, faculty_user, test_room):
    first = create_booking(faculty_headers, test_room.id, start="09:00", end="10:00", course="CS101")
    assert first.status_code == status.HTTP_201_CREATED
    assert first.json()["status"] == "pending"

    clash = create_booking(other_faculty_headers, test_room.id, start="09:30", end="10:30", course="MA201")
    assert clash.status_code == status.HTTP_409_CONFLICT

    confirmed = client.post(f"/bookings/{first.json()['id']}/confirm", headers=admin_headers)
    assert confirmed.json()["status"] == "confirmed"

    seen = client.get("/bookings/", headers=student_headers).json()
    assert len(seen) == 1
    assert seen[0]["faculty_id"] == faculty_user.id
    assert seen[0]["status"] == "confirmed"
    assert create_booking(student_headers, test_room.id, start="12:00", end="13:00").status_code == 403
    assert client.post(f"/bookings/{seen[0]['id']}/cancel", headers=student_headers).status_code == 403
