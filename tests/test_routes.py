"""HTTP surface: payload shapes and error mapping."""

from tests.conftest import DAY

DATE = DAY.isoformat()


def _book(client, court_id, start="09:00:00", end="10:00:00", **extra):
    body = {
        "court_id": court_id,
        "start_time": start,
        "end_time": end,
        "booking_date": DATE,
        "name": "Ali Khan",
        "phone": "03001234567",
        "email": "ali@example.com",
        "online_price": 2000,
        "cash_price": 0,
        "add_on": "Ball",
        "add_on_price": 300,
    }
    body.update(extra)
    return client.post("/bookings", json=body)


class TestGrid:

    def test_health(self, client):
        assert client.get("/health").get_json() == {"status": "ok"}

    def test_default_grid_payload(self, client, court):
        resp = client.get(f"/slots?court_id={court.id}&date={DATE}")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["is_custom"] is False
        assert [(s["start_time"], s["end_time"], s["name"]) for s in data["slots"]] == [
            ("09:00:00", "10:00:00", "Slot 1"),
            ("10:00:00", "11:00:00", "Slot 2"),
            ("11:00:00", "12:00:00", "Slot 3"),
        ]
        assert all(s["booked"] is False and s["booking_id"] is None for s in data["slots"])

    def test_missing_court_id(self, client, court):
        resp = client.get(f"/slots?date={DATE}")
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "VALIDATION_ERROR"

    def test_bad_date(self, client, court):
        resp = client.get(f"/slots?court_id={court.id}&date=02-03-2026")
        assert resp.status_code == 400

    def test_unknown_court(self, client):
        resp = client.get(f"/slots?court_id=99&date={DATE}")
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "COURT_NOT_FOUND"

    def test_overlapping_schedule_is_409(self, client, court):
        resp = client.put("/schedule", json={
            "court_id": court.id,
            "date": DATE,
            "custom_slots": [
                {"start_time": "09:00:00", "end_time": "10:00:00"},
                {"start_time": "09:30:00", "end_time": "10:30:00"},
            ],
        })
        assert resp.status_code == 409
        body = resp.get_json()
        assert body["code"] == "OVERLAP_CONFLICT"
        assert "overlaps" in body["error"]

    def test_adjacent_schedule_is_saved(self, client, court):
        resp = client.put("/schedule", json={
            "court_id": court.id,
            "date": DATE,
            "custom_slots": [
                {"start_time": "10:00:00", "end_time": "11:00:00"},
                {"start_time": "09:00:00", "end_time": "10:00:00"},
            ],
        })
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["is_custom"] is True
        assert [s["start_time"] for s in data["slots"]] == ["09:00:00", "10:00:00"]

    def test_invalid_range_in_schedule(self, client, court):
        resp = client.put("/schedule", json={
            "court_id": court.id,
            "date": DATE,
            "custom_slots": [{"start_time": "10:00:00", "end_time": "09:00:00"}],
        })
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_RANGE"

    def test_legacy_schedule_path(self, client, court):
        resp = client.post("/set-court-schedule", json={
            "court_id": court.id,
            "date": DATE,
            "default_slot": False,
            "custom_slots": [{"start_time": "18:00:00", "end_time": "19:00:00"}],
        })
        assert resp.status_code == 200
        assert len(resp.get_json()["slots"]) == 1

    def test_edit_and_remove_slot(self, client, court):
        slots = client.get(f"/slots?court_id={court.id}&date={DATE}").get_json()["slots"]

        resp = client.put(f"/slots/{slots[2]['id']}", json={"start_time": "11:00:00", "end_time": "11:45:00"})
        assert resp.status_code == 200
        assert resp.get_json()["slots"][2]["end_time"] == "11:45:00"

        resp = client.put(f"/slots/{slots[2]['id']}", json={"start_time": "10:30:00", "end_time": "11:45:00"})
        assert resp.status_code == 409

        resp = client.delete(f"/slots/{slots[1]['id']}")
        assert resp.status_code == 200
        assert len(resp.get_json()["slots"]) == 2


class TestBookings:

    def test_book_then_double_book(self, client, court):
        resp = _book(client, court.id)
        assert resp.status_code == 201
        booking = resp.get_json()
        assert booking["status"] == "CONFIRMED"
        assert booking["add_on"] == "Ball"

        resp = _book(client, court.id, name="Someone Else")
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "SLOT_UNAVAILABLE"

    def test_grid_shows_booking_details(self, client, court):
        booking = _book(client, court.id).get_json()
        slots = client.get(f"/slots?court_id={court.id}&date={DATE}").get_json()["slots"]
        first = slots[0]
        assert first["booked"] is True
        assert first["booking_id"] == booking["id"]
        assert first["booking_details"]["name"] == "Ali Khan"
        assert "booking_details" not in slots[1]

    def test_booking_validation(self, client, court):
        resp = _book(client, court.id, name="")
        assert resp.status_code == 400
        resp = _book(client, court.id, online_price="lots")
        assert resp.status_code == 400
        resp = _book(client, court.id, email="not-an-email")
        assert resp.status_code == 400

    def test_overflowing_price_is_rejected(self, client, court):
        resp = _book(client, court.id, online_price="1e400")
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "VALIDATION_ERROR"
        resp = _book(client, court.id, cash_price=10**400)
        assert resp.status_code == 400
        resp = _book(client, court.id, cash_price="nan")
        assert resp.status_code == 400

    def test_fractional_price_is_not_truncated(self, client, court):
        resp = _book(client, court.id, online_price=2000.9)
        assert resp.status_code == 400
        assert "whole amount" in resp.get_json()["error"]
        assert client.get("/summary").get_json()["totalBookings"] == 0

        # 2000.0 and "2000" are the same whole amount
        resp = _book(client, court.id, online_price="2000.0")
        assert resp.status_code == 201
        assert resp.get_json()["online_price"] == 2000

    def test_boolean_price_is_rejected(self, client, court):
        resp = _book(client, court.id, add_on_price=True)
        assert resp.status_code == 400

    def test_price_edit_uses_same_rules(self, client, court):
        booking = _book(client, court.id).get_json()
        resp = client.put(f"/bookings/{booking['id']}", json={"cash_price": 99.5})
        assert resp.status_code == 400
        assert client.get(f"/bookings/{booking['id']}").get_json()["cash_price"] == 0

    def test_edit_booking_prices(self, client, court):
        booking = _book(client, court.id).get_json()
        resp = client.put(f"/bookings/{booking['id']}", json={"cash_price": 1500})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["cash_price"] == 1500
        assert data["online_price"] == 2000
        assert (data["start_time"], data["end_time"]) == ("09:00:00", "10:00:00")

    def test_edit_booking_moves_slot(self, client, court):
        booking = _book(client, court.id).get_json()
        resp = client.put(f"/edit-booking/{booking['id']}", json={"start_time": "10:00:00", "end_time": "11:00:00"})
        assert resp.status_code == 200
        slots = client.get(f"/slots?court_id={court.id}&date={DATE}").get_json()["slots"]
        assert [s["booked"] for s in slots] == [False, True, False]

    def test_remove_booked_slot_is_409(self, client, court):
        booking = _book(client, court.id).get_json()
        resp = client.delete(f"/slots/{booking['slot_id']}")
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "SLOT_BOOKED"

    def test_listings_and_summary(self, client, court):
        _book(client, court.id)
        _book(client, court.id, start="10:00:00", end="11:00:00", phone="03110000000", cash_price=1000)

        booked = client.get(f"/bookings?court_id={court.id}&date={DATE}").get_json()["bookedSlots"]
        assert [b["start_time"] for b in booked] == ["09:00:00", "10:00:00"]

        recent = client.get("/bookings/recent?limit=1").get_json()
        assert len(recent) == 1
        assert recent[0]["start_time"] == "10:00:00"

        summary = client.get("/summary").get_json()
        assert summary == {"totalBookings": 2, "totalPrice": 2300 + 3300, "totalUsers": 2, "totalCourts": 1}

    def test_unknown_booking(self, client, court):
        assert client.get("/bookings/55").status_code == 404


class TestCancellationFlow:

    def test_full_flow(self, client, court, outbox):
        booking = _book(client, court.id).get_json()

        resp = client.post(f"/bookings/{booking['id']}/cancellation-code")
        assert resp.status_code == 200
        assert resp.get_json()["issued"] is True
        code = outbox[-1]["code"]

        resp = client.post(f"/bookings/{booking['id']}/cancellation-verify", json={"code": "000000"})
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "CODE_MISMATCH"

        resp = client.post(f"/bookings/{booking['id']}/cancellation-verify", json={"code": code})
        assert resp.status_code == 200
        assert resp.get_json()["cancelled"] is True

        resp = client.post(f"/bookings/{booking['id']}/cancellation-verify", json={"code": code})
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "CODE_ALREADY_USED"

        slots = client.get(f"/slots?court_id={court.id}&date={DATE}").get_json()["slots"]
        assert slots[0]["booked"] is False
        assert client.get(f"/bookings/{booking['id']}").get_json()["status"] == "CANCELLED"

    def test_legacy_otp_paths(self, client, court, outbox):
        booking = _book(client, court.id).get_json()
        assert client.post(f"/delete-booking/{booking['id']}/generate-otp").status_code == 200
        resp = client.post(f"/delete-booking/{booking['id']}/verify-otp", json={"otp": outbox[-1]["code"]})
        assert resp.status_code == 200

    def test_verify_requires_code(self, client, court):
        booking = _book(client, court.id).get_json()
        resp = client.post(f"/bookings/{booking['id']}/cancellation-verify", json={})
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "VALIDATION_ERROR"

    def test_audit_trail(self, client, court, outbox):
        booking = _book(client, court.id).get_json()
        client.post(f"/bookings/{booking['id']}/cancellation-code")
        client.post(f"/bookings/{booking['id']}/cancellation-verify", json={"code": "000000"})
        client.post(f"/bookings/{booking['id']}/cancellation-verify", json={"code": outbox[-1]["code"]})

        logs = client.get(f"/audit-logs?entity=booking&entity_id={booking['id']}").get_json()
        actions = [row["action"] for row in logs]
        assert set(actions) == {"BOOKING_CREATE", "CANCEL_CODE_ISSUE", "CANCEL_VERIFY_FAIL", "BOOKING_CANCEL"}
        fail = next(row for row in logs if row["action"] == "CANCEL_VERIFY_FAIL")
        assert fail["metadata"] == {"reason": "CODE_MISMATCH"}


class TestCourts:

    def test_create_and_list(self, client, app):
        resp = client.post("/courts", json={"name": "Padel Court", "category_id": 3, "slot_minutes": 90,
                                            "opening_time": "08:00", "closing_time": "11:00"})
        assert resp.status_code == 201
        court = resp.get_json()
        assert court["opening_time"] == "08:00:00"

        listed = client.get("/courts?category_id=3").get_json()["courts"]
        assert [c["name"] for c in listed] == ["Padel Court"]
        assert client.get("/courts?category_id=1").get_json()["courts"] == []

        legacy = client.post("/courts/by-category", json={"cat_id": 3}).get_json()["courts"]
        assert len(legacy) == 1

        slots = client.get(f"/slots?court_id={court['id']}&date={DATE}").get_json()["slots"]
        assert [(s["start_time"], s["end_time"]) for s in slots] == [("08:00:00", "09:30:00"), ("09:30:00", "11:00:00")]

    def test_duplicate_court_name(self, client, app):
        client.post("/courts", json={"name": "Court A"})
        resp = client.post("/courts", json={"name": "court a"})
        assert resp.status_code == 409
        assert resp.get_json() == {"error": "Court name already exists in this category",
                                   "code": "COURT_EXISTS", "details": {"category_id": 1}}

    def test_bad_category_id(self, client, app):
        resp = client.post("/courts/by-category", json={"cat_id": "abc"})
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "VALIDATION_ERROR"
        assert client.post("/courts/by-category", json={}).status_code == 400
        assert client.post("/courts/by-category", json={"cat_id": True}).status_code == 400
        assert client.get("/courts?category_id=abc").status_code == 400

    def test_numeric_string_category_id(self, client, app):
        client.post("/courts", json={"name": "Cricket Net", "category_id": 2})
        courts = client.post("/courts/by-category", json={"cat_id": "2"}).get_json()["courts"]
        assert [c["name"] for c in courts] == ["Cricket Net"]

    def test_bad_court_numbers(self, client, app):
        resp = client.post("/courts", json={"name": "Court B", "slot_minutes": "sixty"})
        assert resp.status_code == 400
        resp = client.post("/courts", json={"name": "Court B", "category_id": -1})
        assert resp.status_code == 400

    def test_bad_template(self, client, app):
        resp = client.post("/courts", json={"name": "Night", "opening_time": "22:00", "closing_time": "02:00"})
        assert resp.status_code == 400


class TestCustomMessage:

    def test_empty_until_saved(self, client, app):
        assert client.get("/custom-message").get_json() == {"message": "", "updated_at": None}

    def test_save_and_read_back(self, client, app, clock):
        resp = client.put("/custom-message", json={"message": "  Please arrive 10 minutes early.  "})
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "Please arrive 10 minutes early."

        body = client.get("/custom-message").get_json()
        assert body["message"] == "Please arrive 10 minutes early."
        assert body["updated_at"] == clock.now.isoformat()

        client.put("/custom-message", json={"message": "Bring your own ball please."})
        assert client.get("/custom-message").get_json()["message"] == "Bring your own ball please."

    def test_too_short_message_is_rejected(self, client, app):
        client.put("/custom-message", json={"message": "Welcome to the courts!"})

        resp = client.put("/custom-message", json={"message": "   short   "})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Message must be at least 10 characters."
        assert client.put("/custom-message", json={}).status_code == 400
        assert client.put("/custom-message", json={"message": 1234567890}).status_code == 400
        assert client.get("/custom-message").get_json()["message"] == "Welcome to the courts!"

    def test_update_is_audited(self, client, app):
        client.put("/custom-message", json={"message": "Welcome to the courts!"})
        logs = client.get("/audit-logs?action=CUSTOM_MESSAGE_UPDATE").get_json()
        assert len(logs) == 1
        assert logs[0]["metadata"] == {"length": 22}


class TestBookingConfirmation:

    def test_confirmation_after_booking(self, client, court, notices):
        booking = _book(client, court.id).get_json()
        assert notices == [{"booking_id": booking["id"], "message": None}]

    def test_confirmation_carries_custom_message(self, client, court, notices):
        client.put("/custom-message", json={"message": "Please arrive 10 minutes early."})
        _book(client, court.id)
        assert notices[-1]["message"] == "Please arrive 10 minutes early."

    def test_no_confirmation_when_booking_fails(self, client, court, notices):
        _book(client, court.id)
        _book(client, court.id, name="Someone Else")
        _book(client, court.id, start="09:30:00", end="10:30:00")
        assert len(notices) == 1


class TestBookingHistory:

    def _seed(self, client, court):
        ids = []
        for start, end, name in [
            ("09:00:00", "10:00:00", "Ali Khan"),
            ("10:00:00", "11:00:00", "Sara Ahmed"),
            ("11:00:00", "12:00:00", "Bilal Raza"),
        ]:
            ids.append(_book(client, court.id, start=start, end=end, name=name).get_json()["id"])
        return ids

    def test_lists_all_bookings_newest_first(self, client, court, outbox):
        ids = self._seed(client, court)
        client.post(f"/bookings/{ids[0]}/cancellation-code")
        client.post(f"/bookings/{ids[0]}/cancellation-verify", json={"code": outbox[-1]["code"]})

        body = client.get("/bookings/history").get_json()
        assert body["total"] == 3
        assert [b["id"] for b in body["bookings"]] == [ids[2], ids[1], ids[0]]
        assert body["bookings"][-1]["status"] == "CANCELLED"

    def test_paging_and_filters(self, client, court):
        ids = self._seed(client, court)

        page = client.get("/booking-history?per_page=2&page=2").get_json()
        assert page["total"] == 3
        assert [b["id"] for b in page["bookings"]] == [ids[0]]

        found = client.get("/bookings/history?q=sara").get_json()
        assert [b["name"] for b in found["bookings"]] == ["Sara Ahmed"]

        other_court = client.get(f"/bookings/history?court_id={court.id + 1}").get_json()
        assert other_court == {"bookings": [], "total": 0, "page": 1, "per_page": 10}

    def test_bad_paging(self, client, court):
        assert client.get("/bookings/history?page=0").status_code == 400
        assert client.get("/bookings/history?per_page=500").status_code == 400
        assert client.get("/bookings/history?court_id=abc").status_code == 400
