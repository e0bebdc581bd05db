"""
Tests for staff shifts.
"""
import pytest


@pytest.fixture
def staff_member(client, admin_headers, make_user):
    staff = client.post("/api/staff", json={"name": "Ada", "position": "Host"}, headers=admin_headers).json()
    headers = make_user("ada", "staff", staff_id=staff["id"])
    return staff, headers


def test_check_in_and_out(client, staff_member):
    staff, headers = staff_member

    response = client.post(f"/api/staff/{staff['id']}/check-in", json={"notes": "Table 8"}, headers=headers)
    assert response.status_code == 201
    shift = response.json()
    assert shift["status"] == "checked-in"
    assert shift["check_out_time"] is None

    current = client.get(f"/api/staff/{staff['id']}/shifts/current", headers=headers).json()
    assert current["id"] == shift["id"]

    response = client.post(f"/api/staff/{staff['id']}/check-out", json={}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "checked-out"
    assert response.json()["check_out_time"] is not None

    assert client.get(f"/api/staff/{staff['id']}/shifts/current", headers=headers).json() is None


def test_double_check_in_conflicts(client, staff_member):
    staff, headers = staff_member

    assert client.post(f"/api/staff/{staff['id']}/check-in", json={}, headers=headers).status_code == 201
    assert client.post(f"/api/staff/{staff['id']}/check-in", json={}, headers=headers).status_code == 409


def test_check_out_without_open_shift(client, staff_member):
    staff, headers = staff_member

    assert client.post(f"/api/staff/{staff['id']}/check-out", json={}, headers=headers).status_code == 404


def test_inactive_staff_cannot_check_in(client, admin_headers, staff_member):
    staff, _ = staff_member
    client.put(f"/api/staff/{staff['id']}", json={"status": "inactive"}, headers=admin_headers)

    assert client.post(f"/api/staff/{staff['id']}/check-in", json={}, headers=admin_headers).status_code == 400


def test_shift_history(client, staff_member):
    staff, headers = staff_member
    for _ in range(3):
        client.post(f"/api/staff/{staff['id']}/check-in", json={}, headers=headers)
        client.post(f"/api/staff/{staff['id']}/check-out", json={}, headers=headers)

    shifts = client.get(f"/api/staff/{staff['id']}/shifts", headers=headers).json()
    assert len(shifts) == 3
    assert all(shift["status"] == "checked-out" for shift in shifts)
    assert shifts[0]["check_in_time"] >= shifts[-1]["check_in_time"]

    assert len(client.get(f"/api/staff/{staff['id']}/shifts?limit=2", headers=headers).json()) == 2
    assert client.get(f"/api/staff/{staff['id']}/shifts?start_date=2000-01-01&end_date=2000-01-31", headers=headers).json() == []


def test_staff_cannot_touch_other_shifts(client, admin_headers, staff_member):
    _, headers = staff_member
    other = client.post("/api/staff", json={"name": "Bo"}, headers=admin_headers).json()

    assert client.post(f"/api/staff/{other['id']}/check-in", json={}, headers=headers).status_code == 403
    assert client.get(f"/api/staff/{other['id']}/shifts", headers=headers).status_code == 403
    assert client.post(f"/api/staff/{other['id']}/check-in", json={}, headers=admin_headers).status_code == 201


def test_unknown_staff_shift(client, admin_headers):
    assert client.post("/api/staff/999/check-in", json={}, headers=admin_headers).status_code == 404
