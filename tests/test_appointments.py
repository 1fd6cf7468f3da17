from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.domain.appointments.models import Appointment, AppointmentStatus

MONDAY = "2030-01-07"
SUNDAY = "2030-01-06"


async def book(client: AsyncClient, account, doctor, time="10:00", on=MONDAY, **extra):
    payload = {
        "doctorId": doctor.profile_id,
        "appointmentDate": on,
        "appointmentTime": time,
        "reason": "Check-up",
    }
    payload.update(extra)
    return await client.post("/api/appointments", json=payload, headers=account.headers)


@pytest.mark.appointments
@pytest.mark.integration
@pytest.mark.asyncio
class TestBooking:
    """Test booking appointments and the slot conflict check."""

    async def test_create_appointment(self, client: AsyncClient, patient, doctor, appointment_data) -> None:
        """Test a patient books a free slot."""
        response = await client.post("/api/appointments", json=appointment_data, headers=patient.headers)

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Appointment created successfully"
        appointment = data["appointment"]
        assert appointment["status"] == "scheduled"
        assert appointment["appointmentDate"] == MONDAY
        assert appointment["appointmentTime"] == "10:00"
        assert appointment["endTime"] == "10:30"
        assert appointment["symptoms"] == ["chest pain", "shortness of breath"]
        assert appointment["doctor"]["id"] == doctor.profile_id
        assert appointment["doctor"]["user"]["email"] == doctor.user["email"]
        assert appointment["patient"]["id"] == patient.profile_id

    async def test_patient_id_defaults_to_caller(self, client: AsyncClient, patient, doctor) -> None:
        response = await client.post(
            "/api/appointments",
            json={"doctorId": doctor.profile_id, "appointmentDate": MONDAY, "appointmentTime": "11:00"},
            headers=patient.headers,
        )

        assert response.status_code == 201
        appointment = response.json()["appointment"]
        assert appointment["patientId"] == patient.profile_id
        assert appointment["reason"] == "General consultation"

    async def test_slot_conflict(self, client: AsyncClient, patient, other_patient, doctor) -> None:
        """Test a second booking of the same doctor slot is rejected."""
        first = await book(client, patient, doctor)
        assert first.status_code == 201

        second = await book(client, other_patient, doctor)

        assert second.status_code == 400
        data = second.json()
        assert data["success"] is False
        assert data["message"] == "Time slot is already booked"
        assert data["errorCode"] == "SLOT_CONFLICT"

    async def test_same_time_other_doctor(self, client: AsyncClient, patient, doctor, other_doctor) -> None:
        """Test the conflict check is per doctor."""
        assert (await book(client, patient, doctor)).status_code == 201
        assert (await book(client, patient, other_doctor)).status_code == 201

    async def test_book_for_another_patient(self, client: AsyncClient, patient, other_patient, doctor) -> None:
        response = await book(client, patient, doctor, patientId=other_patient.profile_id)

        assert response.status_code == 403
        assert response.json()["message"] == "You can only book appointments for yourself"

    async def test_unknown_doctor(self, client: AsyncClient, patient) -> None:
        response = await client.post(
            "/api/appointments",
            json={"doctorId": "missing", "appointmentDate": MONDAY, "appointmentTime": "10:00"},
            headers=patient.headers,
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Doctor not found"

    async def test_unknown_patient(self, client: AsyncClient, patient, doctor) -> None:
        response = await book(client, patient, doctor, patientId="missing")

        assert response.status_code == 404
        assert response.json()["message"] == "Patient not found"

    async def test_invalid_time_format(self, client: AsyncClient, patient, doctor) -> None:
        response = await book(client, patient, doctor, time="9am")

        assert response.status_code == 400

    async def test_booking_requires_token(self, client: AsyncClient, appointment_data) -> None:
        response = await client.post("/api/appointments", json=appointment_data)

        assert response.status_code == 401

    async def test_rebook_after_cancel(self, client: AsyncClient, patient, other_patient, doctor) -> None:
        """Test a cancelled booking releases its slot."""
        first = await book(client, patient, doctor)
        appointment_id = first.json()["appointment"]["id"]

        cancel = await client.patch(
            f"/api/appointments/{appointment_id}/status",
            json={"status": "cancelled", "cancellationReason": "Travelling"},
            headers=patient.headers,
        )
        assert cancel.status_code == 200

        second = await book(client, other_patient, doctor)
        assert second.status_code == 201

    async def test_unique_index_rejects_duplicate_live_slot(self, db_session: AsyncSession, patient, doctor) -> None:
        """Test the database refuses two live bookings in one doctor slot."""
        slot = {
            "patient_id": patient.profile_id,
            "doctor_id": doctor.profile_id,
            "appointment_date": date(2030, 1, 7),
            "appointment_time": "15:00",
            "reason": "Check-up",
        }
        db_session.add(Appointment(**slot, status=AppointmentStatus.CANCELLED))
        db_session.add(Appointment(**slot, status=AppointmentStatus.SCHEDULED))
        await db_session.commit()

        db_session.add(Appointment(**slot, status=AppointmentStatus.CONFIRMED))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()


@pytest.mark.appointments
@pytest.mark.integration
@pytest.mark.asyncio
class TestAvailableSlots:
    """Test the free-slot lookup."""

    async def test_full_day(self, client: AsyncClient, patient, doctor) -> None:
        response = await client.get(
            f"/api/appointments/doctor/{doctor.profile_id}/available-slots",
            params={"date": MONDAY},
            headers=patient.headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "message" not in body
        slots = body["availableSlots"]
        assert len(slots) == 16
        assert slots[0] == "09:00"
        assert slots[-1] == "16:30"

    async def test_booked_slot_excluded(self, client: AsyncClient, patient, doctor) -> None:
        """Test a booked start time disappears and a cancelled one comes back."""
        booked = await book(client, patient, doctor, time="09:00", duration=60)
        appointment_id = booked.json()["appointment"]["id"]

        response = await client.get(
            f"/api/doctors/{doctor.profile_id}/available-slots",
            params={"date": MONDAY},
            headers=patient.headers,
        )
        slots = response.json()["availableSlots"]
        assert "09:00" not in slots
        assert "09:30" in slots
        assert len(slots) == 15

        await client.patch(
            f"/api/appointments/{appointment_id}/status",
            json={"status": "cancelled"},
            headers=patient.headers,
        )
        response = await client.get(
            f"/api/doctors/{doctor.profile_id}/available-slots",
            params={"date": MONDAY},
            headers=patient.headers,
        )
        assert "09:00" in response.json()["availableSlots"]

    async def test_day_off(self, client: AsyncClient, patient, doctor) -> None:
        """Test a weekday without availability yields an empty list."""
        response = await client.get(
            f"/api/appointments/doctor/{doctor.profile_id}/available-slots",
            params={"date": SUNDAY},
            headers=patient.headers,
        )

        assert response.status_code == 200
        assert response.json()["availableSlots"] == []

    async def test_missing_date(self, client: AsyncClient, patient, doctor) -> None:
        response = await client.get(
            f"/api/appointments/doctor/{doctor.profile_id}/available-slots",
            headers=patient.headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Date parameter is required"

    async def test_malformed_date(self, client: AsyncClient, patient, doctor) -> None:
        response = await client.get(
            f"/api/appointments/doctor/{doctor.profile_id}/available-slots",
            params={"date": "next monday"},
            headers=patient.headers,
        )

        assert response.status_code == 400

    async def test_unknown_doctor(self, client: AsyncClient, patient) -> None:
        response = await client.get(
            "/api/appointments/doctor/missing/available-slots",
            params={"date": MONDAY},
            headers=patient.headers,
        )

        assert response.status_code == 404


@pytest.mark.appointments
@pytest.mark.integration
@pytest.mark.asyncio
class TestAppointmentLifecycle:
    """Test reading, rescheduling, status changes and deletion."""

    async def test_cancel_keeps_record(self, client: AsyncClient, patient, doctor) -> None:
        """Test cancelling records who, why and when without deleting."""
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]

        response = await client.patch(
            f"/api/appointments/{appointment_id}/status",
            json={"status": "cancelled", "cancellationReason": "Feeling better"},
            headers=patient.headers,
        )

        assert response.status_code == 200
        appointment = response.json()["appointment"]
        assert appointment["status"] == "cancelled"
        assert appointment["cancellationReason"] == "Feeling better"
        assert appointment["cancelledBy"] == "patient"
        assert appointment["cancellationDate"] is not None

        fetched = await client.get(f"/api/appointments/{appointment_id}", headers=patient.headers)
        assert fetched.status_code == 200
        assert fetched.json()["appointment"]["status"] == "cancelled"

    async def test_patient_cannot_confirm(self, client: AsyncClient, patient, doctor) -> None:
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]

        response = await client.patch(
            f"/api/appointments/{appointment_id}/status",
            json={"status": "confirmed"},
            headers=patient.headers,
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Patients can only cancel their appointments"

    async def test_doctor_completes(self, client: AsyncClient, patient, doctor) -> None:
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]

        response = await client.patch(
            f"/api/appointments/{appointment_id}/status",
            json={"status": "completed"},
            headers=doctor.headers,
        )

        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "completed"

    async def test_other_doctor_cannot_change_status(self, client: AsyncClient, patient, doctor, other_doctor) -> None:
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]

        response = await client.patch(
            f"/api/appointments/{appointment_id}/status",
            json={"status": "confirmed"},
            headers=other_doctor.headers,
        )

        assert response.status_code == 403

    async def test_outsider_cannot_view(self, client: AsyncClient, patient, other_patient, doctor) -> None:
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]

        response = await client.get(f"/api/appointments/{appointment_id}", headers=other_patient.headers)

        assert response.status_code == 403

    async def test_admin_can_view(self, client: AsyncClient, admin, patient, doctor) -> None:
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]

        response = await client.get(f"/api/appointments/{appointment_id}", headers=admin.headers)

        assert response.status_code == 200

    async def test_reschedule(self, client: AsyncClient, patient, doctor) -> None:
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]

        response = await client.put(
            f"/api/appointments/{appointment_id}",
            json={"appointmentTime": "14:30", "notes": "Moved to afternoon"},
            headers=patient.headers,
        )

        assert response.status_code == 200
        appointment = response.json()["appointment"]
        assert appointment["appointmentTime"] == "14:30"
        assert appointment["notes"] == "Moved to afternoon"

    async def test_reschedule_into_taken_slot(self, client: AsyncClient, patient, other_patient, doctor) -> None:
        """Test moving a booking re-runs the conflict check."""
        await book(client, other_patient, doctor, time="11:00")
        mine = await book(client, patient, doctor, time="10:00")
        appointment_id = mine.json()["appointment"]["id"]

        response = await client.put(
            f"/api/appointments/{appointment_id}",
            json={"appointmentTime": "11:00"},
            headers=patient.headers,
        )

        assert response.status_code == 400
        assert response.json()["errorCode"] == "SLOT_CONFLICT"

    async def test_edit_without_moving(self, client: AsyncClient, patient, doctor) -> None:
        """Test an edit that keeps the slot does not conflict with itself."""
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]

        response = await client.put(
            f"/api/appointments/{appointment_id}",
            json={"appointmentTime": "10:00", "reason": "Follow-up on results"},
            headers=patient.headers,
        )

        assert response.status_code == 200
        assert response.json()["appointment"]["reason"] == "Follow-up on results"

    async def test_cancelled_cannot_be_rescheduled(self, client: AsyncClient, patient, doctor) -> None:
        """Test a cancelled booking keeps its time; notes may still change."""
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]
        await client.patch(
            f"/api/appointments/{appointment_id}/status",
            json={"status": "cancelled"},
            headers=patient.headers,
        )

        response = await client.put(
            f"/api/appointments/{appointment_id}",
            json={"appointmentTime": "15:00"},
            headers=patient.headers,
        )

        assert response.status_code == 400
        data = response.json()
        assert data["errorCode"] == "BUSINESS_LOGIC_ERROR"
        assert data["details"] == {"status": "cancelled"}

        noted = await client.put(
            f"/api/appointments/{appointment_id}",
            json={"notes": "Patient travelling"},
            headers=patient.headers,
        )
        assert noted.status_code == 200
        assert noted.json()["appointment"]["appointmentTime"] == "10:00"

    async def test_reactivation_clears_cancellation(self, client: AsyncClient, patient, doctor) -> None:
        """Test moving a cancelled booking back to scheduled drops who, why and when."""
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]
        await client.patch(
            f"/api/appointments/{appointment_id}/status",
            json={"status": "cancelled", "cancellationReason": "Feeling better"},
            headers=patient.headers,
        )

        response = await client.patch(
            f"/api/appointments/{appointment_id}/status",
            json={"status": "scheduled"},
            headers=doctor.headers,
        )

        assert response.status_code == 200
        appointment = response.json()["appointment"]
        assert appointment["status"] == "scheduled"
        assert appointment["cancellationReason"] is None
        assert appointment["cancelledBy"] is None
        assert appointment["cancellationDate"] is None

    async def test_doctor_deletes(self, client: AsyncClient, patient, doctor) -> None:
        booked = await book(client, patient, doctor)
        appointment_id = booked.json()["appointment"]["id"]

        forbidden = await client.delete(f"/api/appointments/{appointment_id}", headers=patient.headers)
        assert forbidden.status_code == 403

        response = await client.delete(f"/api/appointments/{appointment_id}", headers=doctor.headers)
        assert response.status_code == 200

        missing = await client.get(f"/api/appointments/{appointment_id}", headers=doctor.headers)
        assert missing.status_code == 404


@pytest.mark.appointments
@pytest.mark.integration
@pytest.mark.asyncio
class TestAppointmentListings:
    """Test patient, doctor and overview listings."""

    async def test_patient_listing_chronological(self, client: AsyncClient, patient, doctor) -> None:
        await book(client, patient, doctor, time="15:00")
        await book(client, patient, doctor, time="09:30")
        await book(client, patient, doctor, time="10:00", on="2030-01-08")

        response = await client.get("/api/appointments/patient", headers=patient.headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["currentPage"] == 1
        assert data["totalPages"] == 1
        times = [(a["appointmentDate"], a["appointmentTime"]) for a in data["appointments"]]
        assert times == [(MONDAY, "09:30"), (MONDAY, "15:00"), ("2030-01-08", "10:00")]

    async def test_patient_listing_pagination(self, client: AsyncClient, patient, doctor) -> None:
        for time in ("09:00", "09:30", "10:00"):
            await book(client, patient, doctor, time=time)

        response = await client.get(
            "/api/appointments/patient", params={"page": 2, "limit": 2}, headers=patient.headers
        )

        data = response.json()
        assert data["total"] == 3
        assert data["totalPages"] == 2
        assert [a["appointmentTime"] for a in data["appointments"]] == ["10:00"]

    async def test_patient_cannot_list_others(self, client: AsyncClient, patient, other_patient) -> None:
        response = await client.get(
            f"/api/appointments/patient/{other_patient.profile_id}", headers=patient.headers
        )

        assert response.status_code == 403

    async def test_doctor_listing_by_status_and_date(self, client: AsyncClient, patient, doctor) -> None:
        first = await book(client, patient, doctor, time="09:00")
        await book(client, patient, doctor, time="09:30")
        await book(client, patient, doctor, time="09:00", on="2030-01-08")
        await client.patch(
            f"/api/appointments/{first.json()['appointment']['id']}/status",
            json={"status": "confirmed"},
            headers=doctor.headers,
        )

        on_monday = await client.get(
            "/api/appointments/doctor", params={"date": MONDAY}, headers=doctor.headers
        )
        assert on_monday.json()["total"] == 2

        confirmed = await client.get(
            "/api/appointments/doctor", params={"status": "confirmed"}, headers=doctor.headers
        )
        assert confirmed.json()["total"] == 1
        assert confirmed.json()["appointments"][0]["appointmentTime"] == "09:00"

    async def test_doctor_listing_requires_doctor(self, client: AsyncClient, patient) -> None:
        response = await client.get("/api/appointments/doctor", headers=patient.headers)

        assert response.status_code == 403

    async def test_doctor_cannot_list_colleague(self, client: AsyncClient, doctor, other_doctor) -> None:
        response = await client.get(
            f"/api/appointments/doctor/{other_doctor.profile_id}", headers=doctor.headers
        )

        assert response.status_code == 403

    async def test_admin_lists_any_doctor(self, client: AsyncClient, admin, patient, doctor) -> None:
        await book(client, patient, doctor)

        response = await client.get(
            f"/api/appointments/doctor/{doctor.profile_id}", headers=admin.headers
        )

        assert response.status_code == 200
        assert response.json()["total"] == 1

    async def test_overview_stats(self, client: AsyncClient, patient, other_patient, doctor) -> None:
        """Test the overview counts only the caller's bookings."""
        await book(client, patient, doctor, time="09:00")
        await book(client, other_patient, doctor, time="09:30")

        patient_stats = await client.get("/api/appointments/stats/overview", headers=patient.headers)
        assert patient_stats.status_code == 200
        stats = patient_stats.json()["stats"]
        assert stats["totalAppointments"] == 1
        assert stats["upcomingAppointments"] == 1
        assert stats["completedAppointments"] == 0

        doctor_stats = await client.get("/api/appointments/stats/overview", headers=doctor.headers)
        assert doctor_stats.json()["stats"]["totalAppointments"] == 2
