import asyncio
from datetime import date, timedelta

from clinic.core.exceptions import ConflictError
from clinic.domain.appointments.service import AppointmentService
from clinic.domain.auth.models import UserRole
from clinic.domain.auth.service import AuthenticationService
from clinic.domain.doctors.models import WEEKDAYS
from clinic.domain.doctors.repository import DoctorRepository
from clinic.domain.doctors.service import DoctorService
from clinic.domain.medicines.models import MedicineCategory, DosageForm
from clinic.domain.medicines.service import MedicineService
from clinic.domain.patients.repository import PatientRepository
from clinic.domain.prescriptions.service import PrescriptionService
from clinic.infrastructure.database import AsyncSessionLocal, close_db, init_db

PASSWORD = "password123"

DOCTORS = [
    {"first_name": "Sarah", "last_name": "Johnson", "specialization": "Cardiology", "experience": 15},
    {"first_name": "Michael", "last_name": "Chen", "specialization": "Dermatology", "experience": 8},
    {"first_name": "Amina", "last_name": "Okafor", "specialization": "Pediatrics", "experience": 11},
]

PATIENTS = [
    {"first_name": "John", "last_name": "Doe", "blood_group": "O+", "height": 180, "weight": 82},
    {"first_name": "Jane", "last_name": "Smith", "blood_group": "A-", "height": 165, "weight": 60},
]

MEDICINES = [
    {"name": "Paracetamol", "generic_name": "Acetaminophen", "category": MedicineCategory.PAINKILLER,
     "dosage_form": DosageForm.TABLET, "strength": "500mg", "price": 3.5, "stock_quantity": 200},
    {"name": "Amoxicillin", "generic_name": "Amoxicillin", "category": MedicineCategory.ANTIBIOTIC,
     "dosage_form": DosageForm.CAPSULE, "strength": "500mg", "price": 12.0, "stock_quantity": 45,
     "prescription_required": True},
    {"name": "Vitamin D3", "generic_name": "Cholecalciferol", "category": MedicineCategory.VITAMIN,
     "dosage_form": DosageForm.TABLET, "strength": "1000IU", "price": 8.25, "stock_quantity": 6},
    {"name": "Salbutamol", "generic_name": "Albuterol", "category": MedicineCategory.PRESCRIPTION,
     "dosage_form": DosageForm.INHALER, "strength": "100mcg", "price": 19.9, "stock_quantity": 0,
     "prescription_required": True},
]

WORKWEEK = {
    day: {"start": "09:00", "end": "17:00", "available": day not in ("saturday", "sunday")}
    for day in WEEKDAYS
}


def next_weekday(start: date) -> date:
    day = start + timedelta(days=1)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


async def register(db, email: str, role: UserRole, **fields):
    auth_service = AuthenticationService(db)
    try:
        user, _ = await auth_service.register_user(
            {"email": email, "password": PASSWORD, "role": role, **fields}
        )
        print(f"Created {role.value}: {email}")
    except ConflictError:
        user, _ = await auth_service.authenticate_user(email, PASSWORD)
        print(f"Exists {role.value}: {email}")
    return user


async def seed():
    print("Initializing database...")
    await init_db()

    async with AsyncSessionLocal() as db:
        print("\n--- 1. Accounts ---")
        await register(db, "admin@connectcare.test", UserRole.ADMIN, first_name="Clinic", last_name="Admin")

        doctor_users = []
        for i, data in enumerate(DOCTORS, start=1):
            doctor_users.append(await register(db, f"doctor{i}@connectcare.test", UserRole.DOCTOR, **data))

        patient_users = []
        for i, data in enumerate(PATIENTS, start=1):
            patient_users.append(await register(db, f"patient{i}@connectcare.test", UserRole.PATIENT, **data))

        print("\n--- 2. Doctor Schedules ---")
        doctor_service = DoctorService(db)
        doctors = []
        for user in doctor_users:
            doctor = await doctor_service.get_doctor_for_user(user)
            doctor = await doctor_service.update_availability(user, doctor.id, WORKWEEK)
            doctors.append(doctor)
            print(f"Dr. {user.full_name}: weekdays 09:00 - 17:00")

        print("\n--- 3. Medicine Store ---")
        medicine_service = MedicineService(db)
        existing, _ = await medicine_service.list_medicines(limit=100)
        known = {medicine.name for medicine in existing}
        for data in MEDICINES:
            if data["name"] in known:
                continue
            medicine = await medicine_service.create_medicine(data)
            print(f"Added {medicine.name} ({medicine.stock_quantity} in stock)")

        print("\n--- 4. Book Appointment ---")
        appointment_service = AppointmentService(db)
        visit_day = next_weekday(date.today())
        try:
            appointment = await appointment_service.create_appointment(
                patient_users[0],
                {
                    "doctor_id": doctors[0].id,
                    "appointment_date": visit_day,
                    "appointment_time": "10:00",
                    "reason": "Chest pain on exertion",
                    "symptoms": ["chest pain", "fatigue"],
                },
            )
            print(f"Booked {appointment.id} on {visit_day} at 10:00")
        except ConflictError:
            print(f"Slot {visit_day} 10:00 already booked")

        slots = await appointment_service.get_available_slots(doctors[0].id, visit_day)
        print(f"Remaining slots on {visit_day}: {len(slots)}")

        print("\n--- 5. Prescribe Medication ---")
        patient = await PatientRepository(db).get_by_user_id(patient_users[0].id)
        doctor = await DoctorRepository(db).get_by_user_id(doctor_users[0].id)
        prescription = await PrescriptionService(db).create_prescription(
            doctor,
            {
                "patient_id": patient.id,
                "diagnosis": "Stable angina",
                "symptoms": ["chest pain"],
                "medications": [{
                    "name": "Aspirin",
                    "dosage": "75mg",
                    "frequency": "Once daily",
                    "duration": "30 days",
                    "instructions": "Take after breakfast",
                    "quantity": 30,
                }],
                "follow_up_date": visit_day + timedelta(days=30),
            },
        )
        print(f"Created Prescription: {prescription.prescription_number}")

    await close_db()
    print("\nSeed data loaded. Every account uses the password", PASSWORD)


if __name__ == "__main__":
    asyncio.run(seed())
