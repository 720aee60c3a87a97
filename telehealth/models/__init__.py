from telehealth.models.hospital import Hospital
from telehealth.models.user import User, UserRole
from telehealth.models.availability import Availability, AvailabilityStatus
from telehealth.models.appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    ConsultationType,
)
from telehealth.models.message import Message
from telehealth.models.notification import Notification, NotificationStatus

__all__ = [
    "Hospital",
    "User",
    "UserRole",
    "Availability",
    "AvailabilityStatus",
    "Appointment",
    "AppointmentStatus",
    "AppointmentType",
    "ConsultationType",
    "Message",
    "Notification",
    "NotificationStatus",
]
