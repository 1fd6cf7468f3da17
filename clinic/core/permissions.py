from typing import Iterable, Optional

from clinic.core.exceptions import AuthorizationError
from clinic.domain.auth.models import User, UserRole


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


def is_doctor(user: User) -> bool:
    return user.role == UserRole.DOCTOR


def is_patient(user: User) -> bool:
    return user.role == UserRole.PATIENT


def check_role(user: User, allowed: Iterable[UserRole]) -> None:
    """Raise ``AuthorizationError`` unless the user holds one of ``allowed``"""
    if user.role not in tuple(allowed):
        raise AuthorizationError(
            "Access denied. Insufficient permissions.",
            details={"role": user.role.value},
        )


def _owner_user_id(profile) -> Optional[str]:
    return profile.user_id if profile is not None else None


class PermissionChecker:
    """Ownership rules for records shared between a patient and a doctor.

    Every check expects the record's ``patient`` and ``doctor``
    relationships to be loaded.
    """

    @staticmethod
    def is_participant(user: User, record) -> bool:
        return user.id in (_owner_user_id(record.patient), _owner_user_id(record.doctor))

    @staticmethod
    def is_record_doctor(user: User, record) -> bool:
        return is_doctor(user) and _owner_user_id(record.doctor) == user.id

    @staticmethod
    def is_record_patient(user: User, record) -> bool:
        return is_patient(user) and _owner_user_id(record.patient) == user.id

    @staticmethod
    def can_view_appointment(user: User, appointment) -> bool:
        return is_admin(user) or PermissionChecker.is_participant(user, appointment)

    @staticmethod
    def can_edit_appointment(user: User, appointment) -> bool:
        return PermissionChecker.can_view_appointment(user, appointment)

    @staticmethod
    def can_set_appointment_status(user: User, appointment, new_status) -> bool:
        """Patients may only cancel; doctors act on their own bookings; admins on any"""
        if is_admin(user):
            return True
        if is_doctor(user):
            return PermissionChecker.is_record_doctor(user, appointment)
        if is_patient(user):
            return (
                PermissionChecker.is_record_patient(user, appointment)
                and getattr(new_status, "value", new_status) == "cancelled"
            )
        return False

    @staticmethod
    def can_view_prescription(user: User, prescription) -> bool:
        return is_admin(user) or PermissionChecker.is_participant(user, prescription)

    @staticmethod
    def can_manage_prescription(user: User, prescription) -> bool:
        return PermissionChecker.is_record_doctor(user, prescription)

    @staticmethod
    def can_download_prescription(user: User, prescription) -> bool:
        return (
            PermissionChecker.is_record_doctor(user, prescription)
            or PermissionChecker.is_record_patient(user, prescription)
        )

    @staticmethod
    def can_manage_availability(user: User, doctor) -> bool:
        return is_admin(user) or (is_doctor(user) and doctor.user_id == user.id)
