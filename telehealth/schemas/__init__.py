from telehealth.schemas.common import Envelope, ErrorEnvelope
from telehealth.schemas.user import UserCreate, UserResponse, DoctorSummary, DoctorUpdate
from telehealth.schemas.hospital import HospitalCreate, HospitalUpdate, HospitalResponse, HospitalDetail
from telehealth.schemas.availability import AvailabilityCreate, AvailabilityResponse
from telehealth.schemas.appointment import (
    AppointmentInitiate,
    AppointmentCancel,
    AppointmentResponse,
    JoinResponse,
)
from telehealth.schemas.message import MessageCreate, MessageResponse
from telehealth.schemas.notification import NotificationResponse

__all__ = [
    "Envelope",
    "ErrorEnvelope",
    "UserCreate",
    "UserResponse",
    "DoctorSummary",
    "DoctorUpdate",
    "HospitalCreate",
    "HospitalUpdate",
    "HospitalResponse",
    "HospitalDetail",
    "AvailabilityCreate",
    "AvailabilityResponse",
    "AppointmentInitiate",
    "AppointmentCancel",
    "AppointmentResponse",
    "JoinResponse",
    "MessageCreate",
    "MessageResponse",
    "NotificationResponse",
]
