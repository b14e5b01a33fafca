MORNING = "9:30-10:30"


def save_version(client, payload):
    response = client.post("/api/timetable/versions", json=payload)
    assert response.status_code == 201
    return response.json()


def put_session(client, day, room, time, **fields):
    response = client.put(
        "/api/timetable/current/slots",
        json={"day": day, "room": room, "time": time, **fields},
    )
    assert response.status_code == 200
    return response.json()


def test_version_lifecycle(client):
    listing = client.get("/api/timetable/versions").json()
    assert listing == {"versions": [], "latest_version": None, "selected_version": None}

    saved = save_version(client, {"days": {}})
    assert saved["version_number"] == 1
    assert saved["stats"]["total_slots"] == 0
    assert saved["is_selected"] is False

    added = client.post("/api/timetable/current/rooms", json={"room": "Lab1"})
    assert added.status_code == 200
    body = added.json()
    assert body["version_number"] == 2
    assert body["conflicts"] == []
    for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday"):
        assert body["grid"]["days"][day] == [{"room": "Lab1", "slots": [{"kind": "empty"}] * 7}]

    finalized = client.put("/api/timetable/finalize-version", params={"version": 2})
    assert finalized.status_code == 200
    assert finalized.json() == {"success": True, "version_number": 2}

    missing = client.put("/api/timetable/finalize-version", params={"version": 99})
    assert missing.status_code == 404

    listing = client.get("/api/timetable/versions").json()
    assert [item["version_number"] for item in listing["versions"]] == [1, 2]
    assert listing["latest_version"] == 2
    assert listing["selected_version"] == 2

    selected = client.get("/api/timetable/selected").json()
    assert selected["version_number"] == 2
    assert selected["is_selected"] is True
    assert selected["is_latest"] is True


def test_finalize_rejects_bad_identifiers(client):
    assert client.put("/api/timetable/finalize-version").status_code == 400
    assert client.put("/api/timetable/finalize-version", params={"version": "abc"}).status_code == 400
    assert client.put("/api/timetable/finalize-version", params={"version": "0"}).status_code == 400
    assert client.get("/api/timetable/versions/-2").status_code == 400
    assert client.put("/api/timetable/finalize-version", params={"version": "\u00b2"}).status_code == 400
    superscript = client.get("/api/timetable/versions/\u00b2")
    assert superscript.status_code == 400
    assert superscript.json()["message"] == "Invalid version number"


def test_selected_version_missing(client):
    response = client.get("/api/timetable/selected")
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "Version"


def test_duplicate_room_is_conflict_status(client):
    client.post("/api/timetable/current/rooms", json={"room": "Lab1"})
    response = client.post("/api/timetable/current/rooms", json={"room": "Lab1"})
    assert response.status_code == 409
    assert response.json()["details"]["room"] == "Lab1"
    assert client.get("/api/timetable/versions").json()["latest_version"] == 1


def test_editing_reports_conflicts(client):
    client.post("/api/timetable/current/rooms", json={"room": "Room A"})
    client.post("/api/timetable/current/rooms", json={"room": "Room B"})
    put_session(client, "Monday", "Room A", MORNING, subject="Math", teacher="Smith", section="A")
    body = put_session(client, "Monday", "Room B", MORNING, subject="Physics", teacher="Smith", section="B")

    assert body["version_number"] == 4
    assert len(body["conflicts"]) == 1
    conflict = body["conflicts"][0]
    assert conflict["conflict_type"] == "teacher_conflict"
    assert conflict["rooms"] == ["Room A", "Room B"]
    assert conflict["day"] == "Monday"

    current = client.get("/api/timetable/current").json()
    assert current["version_number"] == 4
    assert current["stats"]["scheduled"] == 2
    assert current["stats"]["rooms_per_day"]["Monday"] == 2

    deleted = client.delete(
        "/api/timetable/current/slots",
        params={"day": "Monday", "room": "Room B", "time": MORNING, "mode": "in_place"},
    )
    assert deleted.status_code == 200
    assert deleted.json()["version_number"] == 4
    assert deleted.json()["conflicts"] == []


def test_unknown_cell_returns_not_found(client):
    client.post("/api/timetable/current/rooms", json={"room": "Lab1"})
    response = client.put(
        "/api/timetable/current/slots",
        json={"day": "Monday", "room": "Lab7", "time": MORNING, "teacher": "Smith"},
    )
    assert response.status_code == 404

    response = client.delete(
        "/api/timetable/current/slots",
        params={"day": "Monday", "room": "Lab1", "time": "7:30-8:30"},
    )
    assert response.status_code == 404


def test_move_and_bulk_rows(client):
    client.post("/api/timetable/current/rooms", json={"room": "Lab1"})
    bulk = client.post(
        "/api/timetable/current/slots/bulk",
        json={
            "rows": [
                {"day": "Monday", "room": "Lab1", "time": MORNING, "subject": "Math", "teacher": "Smith", "section": "A"},
                {"day": "Monday", "room": "Lab1", "time": "10:30-11:30", "subject": "Art", "teacher": "Lee", "section": "B"},
            ]
        },
    )
    assert bulk.status_code == 200
    assert bulk.json()["stats"]["scheduled"] == 2

    moved = client.post(
        "/api/timetable/current/slots/move",
        json={
            "source": {"day": "Monday", "room": "Lab1", "time": MORNING},
            "target": {"day": "Monday", "room": "Lab1", "time": "10:30-11:30"},
        },
    )
    assert moved.status_code == 200
    slots = moved.json()["grid"]["days"]["Monday"][0]["slots"]
    assert slots[0]["teacher"] == "Lee"
    assert slots[1]["teacher"] == "Smith"

    empty_move = client.post(
        "/api/timetable/current/slots/move",
        json={
            "source": {"day": "Monday", "room": "Lab1", "time": "3:30-4:30"},
            "target": {"day": "Monday", "room": "Lab1", "time": MORNING},
        },
    )
    assert empty_move.status_code == 400


def test_delete_and_compare_versions(client, room_schedule):
    first = save_version(
        client,
        {"days": {"Monday": [room_schedule("Lab1", {MORNING: {"subject": "Math", "teacher": "Smith"}})]}},
    )["version_number"]
    second = save_version(
        client,
        {"days": {"Monday": [room_schedule("Lab1", {MORNING: {"subject": "Math", "teacher": "Jones"}})]}},
    )["version_number"]

    compare = client.get("/api/timetable/versions/compare", params={"from": first, "to": second})
    assert compare.status_code == 200
    assert compare.json() == {
        "from_version": first,
        "to_version": second,
        "added_slots": 0,
        "removed_slots": 0,
        "changed_slots": 1,
    }

    client.put("/api/timetable/finalize-version", params={"version": second})
    assert client.delete(f"/api/timetable/versions/{second}").status_code == 400
    assert client.delete(f"/api/timetable/versions/{first}").status_code == 204
    assert client.get(f"/api/timetable/versions/{first}").status_code == 404
    assert client.delete(f"/api/timetable/versions/{first}").status_code == 404


def test_overwrite_version(client, room_schedule):
    version = save_version(client, {"days": {}})["version_number"]
    response = client.put(
        f"/api/timetable/versions/{version}",
        json={"days": {"Tuesday": [room_schedule("Lab3")]}},
    )
    assert response.status_code == 200
    assert response.json()["stats"]["rooms_per_day"]["Tuesday"] == 1
    assert client.get("/api/timetable/versions").json()["latest_version"] == version


def test_analyze_validates_grid(client, room_schedule):
    bad = client.post(
        "/api/timetable/conflicts/analyze",
        json={"days": {"Monday": [{"room": "Lab1", "slots": [{"kind": "empty"}]}]}},
    )
    assert bad.status_code == 422

    duplicate = client.post(
        "/api/timetable/conflicts/analyze",
        json={"days": {"Monday": [room_schedule("Lab1"), room_schedule("Lab1")]}},
    )
    assert duplicate.status_code == 422

    grid = {
        "days": {
            "Monday": [
                room_schedule("Room A", {MORNING: {"subject": "Math", "teacher": "Smith", "section": "A"}}),
                room_schedule("Room B", {MORNING: {"subject": "Math", "teacher": "Jones", "section": "A"}}),
            ]
        }
    }
    analysis = client.post("/api/timetable/conflicts/analyze", json=grid)
    assert analysis.status_code == 200
    assert [c["conflict_type"] for c in analysis.json()["conflicts"]] == ["subject_section_conflict"]
    assert client.get("/api/timetable/versions").json()["versions"] == []


def test_teacher_and_section_views(client, room_schedule):
    assert client.get("/api/timetable/teachers").status_code == 404

    version = save_version(
        client,
        {
            "days": {
                "Monday": [room_schedule("Lab1", {MORNING: {"subject": "Math", "teacher": "Smith", "section": "A"}})],
                "Thursday": [room_schedule("Lab2", {MORNING: {"subject": "Art", "teacher": "Lee", "section": "A"}})],
            }
        },
    )["version_number"]

    assert client.get("/api/timetable/teachers").json() == ["Lee", "Smith"]
    assert client.get("/api/timetable/sections", params={"version": version}).json() == ["A"]

    smith = client.get("/api/timetable/teachers/Smith/sessions").json()
    assert [(s["day"], s["room"], s["time"]) for s in smith] == [("Monday", "Lab1", MORNING)]

    thursday_only = client.get("/api/timetable/sections/A/sessions", params={"days": ["Thursday"]}).json()
    assert [s["subject"] for s in thursday_only] == ["Art"]
