import pytest


@pytest.fixture
def space_id(client):
    resp = client.post('/api/parking-spaces', json={"spaceNumber": "A-01", "area": "A", "status": "AVAILABLE"})
    assert resp.status_code == 201
    return resp.get_json()["id"]


@pytest.fixture
def household_id(client):
    resp = client.post('/api/households', json={"householdNumber": "1201", "contactName": "Wang"})
    assert resp.status_code == 201
    return resp.get_json()["id"]


def rent(client, space_id, household_id, **overrides):
    body = {"parkingSpaceId": space_id, "householdId": household_id, "licensePlate": "ABC-123",
            "startDate": "2025-01-01", "endDate": "2025-02-01"}
    body.update(overrides)
    return client.post('/api/rentals', json=body)


# --- Parking spaces ---

def test_space_crud(client, space_id):
    resp = client.get(f'/api/parking-spaces/{space_id}')
    assert resp.status_code == 200
    assert resp.get_json() == {"id": space_id, "spaceNumber": "A-01", "area": "A",
                               "status": "AVAILABLE", "notes": None}

    resp = client.put(f'/api/parking-spaces/{space_id}', json={"notes": "corner"})
    assert resp.status_code == 200
    assert resp.get_json()["notes"] == "corner"
    assert resp.get_json()["spaceNumber"] == "A-01"

    assert client.delete(f'/api/parking-spaces/{space_id}').status_code == 204
    assert client.get(f'/api/parking-spaces/{space_id}').status_code == 404


def test_duplicate_space_is_400(client, space_id):
    resp = client.post('/api/parking-spaces', json={"spaceNumber": "A-01", "area": "A"})
    assert resp.status_code == 400
    assert "already exists" in resp.get_json()["message"]


def test_space_validation_message(client):
    resp = client.post('/api/parking-spaces', json={"spaceNumber": "", "status": "BROKEN"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["message"].startswith("Validation error:")
    fields = {err["field"] for err in body["errors"]}
    assert {"spaceNumber", "area", "status"} <= fields


def test_missing_body_is_400(client):
    resp = client.post('/api/households', data="not json", content_type="text/plain")
    assert resp.status_code == 400


def test_unknown_ids_are_404(client):
    assert client.get('/api/parking-spaces/999').status_code == 404
    assert client.put('/api/households/999', json={"notes": "x"}).status_code == 404
    assert client.delete('/api/households/999').status_code == 404
    assert client.get('/api/rentals/999').status_code == 404
    assert client.post('/api/rentals/999/end').status_code == 404
    assert client.get('/api/rental-requests/999').status_code == 404


def test_available_and_filters(client, space_id):
    client.post('/api/parking-spaces', json={"spaceNumber": "B-01", "area": "B", "status": "MAINTENANCE"})
    available = client.get('/api/parking-spaces/available').get_json()
    assert [s["spaceNumber"] for s in available] == ["A-01"]
    by_area = client.get('/api/parking-spaces?area=B').get_json()
    assert [s["spaceNumber"] for s in by_area] == ["B-01"]


# --- Rentals ---

def test_rental_scenario(client, space_id, household_id):
    logs_before = len(client.get('/api/activity-logs').get_json())
    resp = rent(client, space_id, household_id)
    assert resp.status_code == 201
    rental = resp.get_json()
    assert rental["isActive"] is True
    assert rental["startDate"] == "2025-01-01"

    assert client.get(f'/api/parking-spaces/{space_id}').get_json()["status"] == "OCCUPIED"
    logs = client.get('/api/activity-logs').get_json()
    assert len(logs) == logs_before + 1
    assert logs[0]["activityType"] == "RENTAL_CREATED"
    assert logs[0]["relatedId"] == rental["id"]

    # space is taken now
    assert rent(client, space_id, household_id).status_code == 400
    # and cannot be deleted, nor can the household
    assert client.delete(f'/api/parking-spaces/{space_id}').status_code == 400
    assert client.delete(f'/api/households/{household_id}').status_code == 400

    resp = client.post(f'/api/rentals/{rental["id"]}/end')
    assert resp.status_code == 200
    assert client.get(f'/api/parking-spaces/{space_id}').get_json()["status"] == "AVAILABLE"
    assert client.post(f'/api/rentals/{rental["id"]}/end').status_code == 400


def test_rental_validation(client, space_id, household_id):
    resp = rent(client, space_id, household_id, endDate="2024-12-01")
    assert resp.status_code == 400
    assert "End date must be after start date" in resp.get_json()["message"]

    resp = rent(client, space_id, 999)
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Household does not exist"

    resp = rent(client, 999, household_id)
    assert resp.status_code == 400
    assert client.get('/api/rentals').get_json() == []


def test_rental_update(client, space_id, household_id):
    rental_id = rent(client, space_id, household_id).get_json()["id"]
    resp = client.put(f'/api/rentals/{rental_id}', json={"licensePlate": "NEW-1"})
    assert resp.status_code == 200
    assert resp.get_json()["licensePlate"] == "NEW-1"

    resp = client.put(f'/api/rentals/{rental_id}', json={"endDate": "2024-06-01"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["message"] == "Validation error: endDate: End date must be after start date"
    assert body["errors"] == [{"field": "endDate", "message": "End date must be after start date"}]
    assert client.get(f"/api/rentals/{rental_id}").get_json()["endDate"] == "2025-02-01"


def test_manual_occupied_rejected(client, space_id):
    resp = client.put(f'/api/parking-spaces/{space_id}', json={"status": "OCCUPIED"})
    assert resp.status_code == 400


def test_active_and_expiring_lists(client, space_id, household_id):
    rent(client, space_id, household_id)
    assert len(client.get('/api/rentals/active').get_json()) == 1
    # ends in 2025, long past "today"
    assert client.get('/api/rentals/expiring?days=3').get_json() == []
    assert client.get('/api/rentals/expiring?days=abc').status_code == 400
    assert client.get('/api/rentals/expiring?days=0').status_code == 400
    assert client.get('/api/rentals/expiring?days=1').status_code == 200
    assert len(client.get(f'/api/parking-spaces/{space_id}/rentals').get_json()) == 1
    assert len(client.get(f'/api/households/{household_id}/rentals').get_json()) == 1


# --- Dashboard, logs, health ---

def test_dashboard_stats(client, space_id, household_id):
    client.post('/api/parking-spaces', json={"spaceNumber": "A-02", "area": "A", "status": "MAINTENANCE"})
    rent(client, space_id, household_id)
    stats = client.get('/api/dashboard/stats').get_json()
    assert stats == {"totalSpaces": 2, "occupiedSpaces": 1, "availableSpaces": 0,
                     "maintenanceSpaces": 1, "activeRentalsCount": 1}


def test_activity_log_limit(client, space_id, household_id):
    logs = client.get('/api/activity-logs?limit=1').get_json()
    assert len(logs) == 1
    assert logs[0]["activityType"] == "HOUSEHOLD_CREATED"
    assert client.get('/api/activity-logs?limit=0').status_code == 400


def test_health(client, storage):
    body = client.get('/api/health').get_json()
    assert body["status"] == "ok"
    assert body["storage"] == storage.backend
    if storage.backend == 'database':
        assert body["db"] == "connected"


# --- Requests & offers ---

def test_request_offer_flow(client):
    resp = client.post('/api/rental-requests', json={
        "name": "X", "contact": "Y", "licensePlate": "Z",
        "startDate": "2025-01-01", "endDate": "2025-01-03", "status": "MATCHED",
    })
    assert resp.status_code == 201
    request_id = resp.get_json()["id"]
    assert resp.get_json()["status"] == "PENDING"

    offer = {"spaceNumber": "B-02", "ownerName": "Owner", "ownerContact": "0900"}
    resp = client.post(f'/api/rental-requests/{request_id}/offers', json=offer)
    assert resp.status_code == 201
    assert resp.get_json()["requestId"] == request_id
    assert client.get(f'/api/rental-requests/{request_id}').get_json()["status"] == "MATCHED"

    resp = client.post(f'/api/rental-requests/{request_id}/offers', json=offer)
    assert resp.status_code == 400
    assert "no longer accepting offers" in resp.get_json()["message"]
    assert len(client.get(f'/api/rental-requests/{request_id}/offers').get_json()) == 1


def test_offer_to_missing_request(client):
    offer = {"spaceNumber": "B-02", "ownerName": "Owner", "ownerContact": "0900"}
    assert client.post('/api/rental-requests/999/offers', json=offer).status_code == 404


def test_request_status_override(client):
    request_id = client.post('/api/rental-requests', json={
        "name": "X", "contact": "Y", "licensePlate": "Z",
        "startDate": "2025-01-01", "endDate": "2025-01-03",
    }).get_json()["id"]

    resp = client.put(f'/api/rental-requests/{request_id}/status', json={"status": "CANCELLED"})
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "CANCELLED"
    assert client.put(f'/api/rental-requests/{request_id}/status', json={"status": "NOPE"}).status_code == 400
    assert client.put('/api/rental-requests/999/status', json={"status": "EXPIRED"}).status_code == 404
    assert client.get('/api/rental-requests?status=CANCELLED').get_json()[0]["id"] == request_id


def test_request_needs_contact(client):
    resp = client.post('/api/rental-requests', json={
        "name": "X", "licensePlate": "Z", "startDate": "2025-01-01", "endDate": "2025-01-03",
    })
    assert resp.status_code == 400
    assert "contact" in resp.get_json()["message"]
