from app.models.appointment import Appointment, PaymentStatus
from app.models.doctor import Doctor

from .conftest import PASSWORD


def book(client, headers, doctor_id, slot_date="15_8_2099", slot_time="10:00 AM"):
    response = client.post(
        "/api/v1/user/book-appointment",
        json={"docId": doctor_id, "slotDate": slot_date, "slotTime": slot_time},
        headers=headers,
    )
    return response.json()["appointmentId"]


def mark_completed(client, headers, appointment_id):
    return client.put(
        "/api/v1/doctor/appointments/mark-completed",
        json={"appointmentId": appointment_id},
        headers=headers,
    )


class TestDoctorDirectory:

    def test_public_list_hides_email(self, client, make_doctor):
        make_doctor(ledger={"15_8_2099": ["10:00 AM"]})
        make_doctor(email="wilson@example.com", name="James Wilson")

        response = client.get("/api/v1/doctor/list")
        assert response.status_code == 200

        doctors = response.json()["doctors"]
        assert [d["name"] for d in doctors] == ["Gregory House", "James Wilson"]
        assert "email" not in doctors[0]
        assert "password_hash" not in doctors[0]
        assert doctors[0]["slots_booked"] == {"15_8_2099": ["10:00 AM"]}
        assert doctors[1]["slots_booked"] == {}


class TestDoctorAuthentication:

    def test_login_success(self, client, make_doctor):
        make_doctor()

        response = client.post(
            "/api/v1/doctor/login",
            json={"email": "house@example.com", "password": PASSWORD},
        )
        assert response.status_code == 200
        assert response.json()["token"]

    def test_login_wrong_password(self, client, make_doctor):
        make_doctor()

        response = client.post(
            "/api/v1/doctor/login",
            json={"email": "house@example.com", "password": "Wrong123!"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_patient_token_is_rejected(self, client, make_user, user_headers):
        user = make_user()

        response = client.get("/api/v1/doctor/profile", headers=user_headers(user))
        assert response.status_code == 403


class TestDoctorProfile:

    def test_get_profile(self, client, make_doctor, doctor_headers):
        doctor = make_doctor()

        response = client.get("/api/v1/doctor/profile", headers=doctor_headers(doctor))
        assert response.status_code == 200

        profile = response.json()["doctor"]
        assert profile["email"] == "house@example.com"
        assert profile["fees"] == 500.0
        assert profile["address"] == {"line1": "Princeton-Plainsboro", "line2": "New Jersey"}

    def test_update_profile_changes_only_given_fields(self, client, db_session, make_doctor, doctor_headers):
        doctor = make_doctor()

        response = client.put(
            "/api/v1/doctor/profile/update",
            json={"fees": 750, "address": {"line1": "Mayo Clinic", "line2": "Rochester"}},
            headers=doctor_headers(doctor),
        )
        assert response.status_code == 200
        assert response.json()["doctor"]["fees"] == 750.0

        db_session.expire_all()
        stored = db_session.get(Doctor, doctor.id)
        assert stored.fees == 750.0
        assert stored.address == {"line1": "Mayo Clinic", "line2": "Rochester"}
        assert stored.about == "Head of diagnostic medicine."

    def test_update_profile_rejects_negative_fees(self, client, make_doctor, doctor_headers):
        doctor = make_doctor()

        response = client.put(
            "/api/v1/doctor/profile/update",
            json={"fees": -1},
            headers=doctor_headers(doctor),
        )
        assert response.status_code == 422

    def test_toggle_availability(self, client, db_session, make_doctor, doctor_headers):
        doctor = make_doctor()

        response = client.put("/api/v1/doctor/profile/availability", headers=doctor_headers(doctor))
        assert response.json() == {"success": True, "message": "Availability Changed"}

        db_session.expire_all()
        assert db_session.get(Doctor, doctor.id).available is False

        client.put("/api/v1/doctor/profile/availability", headers=doctor_headers(doctor))
        db_session.expire_all()
        assert db_session.get(Doctor, doctor.id).available is True


class TestDoctorAppointments:

    def test_appointments_are_in_slot_order(self, client, make_user, make_doctor, user_headers, doctor_headers):
        user = make_user()
        doctor = make_doctor()
        other_doctor = make_doctor(email="wilson@example.com", name="James Wilson")
        late = book(client, user_headers(user), doctor.id, "15_8_2099", "11:00 AM")
        early = book(client, user_headers(user), doctor.id, "15_8_2099", "09:00 AM")
        earliest = book(client, user_headers(user), doctor.id, "1_1_2099", "04:00 PM")
        book(client, user_headers(user), other_doctor.id)

        response = client.get("/api/v1/doctor/appointments", headers=doctor_headers(doctor))
        assert response.status_code == 200
        assert [a["id"] for a in response.json()["appointments"]] == [earliest, early, late]

    def test_mark_completed_settles_pending_payment(self, client, db_session, make_user, make_doctor, user_headers, doctor_headers):
        user = make_user()
        doctor = make_doctor()
        appointment_id = book(client, user_headers(user), doctor.id)

        response = mark_completed(client, doctor_headers(doctor), appointment_id)
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["appointment"]["isCompleted"] is True

        db_session.expire_all()
        appointment = db_session.get(Appointment, appointment_id)
        assert appointment.is_completed is True
        assert appointment.payment_status == PaymentStatus.PAID

    def test_mark_completed_twice_is_soft_failure(self, client, make_user, make_doctor, user_headers, doctor_headers):
        user = make_user()
        doctor = make_doctor()
        appointment_id = book(client, user_headers(user), doctor.id)
        mark_completed(client, doctor_headers(doctor), appointment_id)

        response = mark_completed(client, doctor_headers(doctor), appointment_id)
        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "Appointment is already marked as completed."}

    def test_cancelled_appointment_cannot_be_completed(self, client, db_session, make_user, make_doctor, user_headers, doctor_headers):
        user = make_user()
        doctor = make_doctor()
        appointment_id = book(client, user_headers(user), doctor.id)
        client.post(
            "/api/v1/user/cancel-appointment",
            json={"appointmentId": appointment_id},
            headers=user_headers(user),
        )

        response = mark_completed(client, doctor_headers(doctor), appointment_id)
        assert response.json() == {"success": False, "message": "Cannot mark a cancelled appointment as completed."}

        db_session.expire_all()
        assert db_session.get(Appointment, appointment_id).is_completed is False

    def test_other_doctors_appointment_is_not_found(self, client, make_user, make_doctor, user_headers, doctor_headers):
        user = make_user()
        doctor = make_doctor()
        other_doctor = make_doctor(email="wilson@example.com", name="James Wilson")
        appointment_id = book(client, user_headers(user), doctor.id)

        response = mark_completed(client, doctor_headers(other_doctor), appointment_id)
        assert response.status_code == 404
        assert response.json()["detail"] == "Appointment not found or does not belong to you."
