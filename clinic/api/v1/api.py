from fastapi import APIRouter
from clinic.api.v1.admin import routes as admin
from clinic.api.v1.appointments import routes as appointments
from clinic.api.v1.auth import routes as auth
from clinic.api.v1.doctors import routes as doctors
from clinic.api.v1.medicines import routes as medicines
from clinic.api.v1.messages import routes as messages
from clinic.api.v1.patients import routes as patients
from clinic.api.v1.prescriptions import routes as prescriptions

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(admin.router)
api_router.include_router(doctors.router)
api_router.include_router(patients.router)
api_router.include_router(appointments.router)
api_router.include_router(prescriptions.router)
api_router.include_router(medicines.router)
api_router.include_router(messages.router)
