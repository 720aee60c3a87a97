"""Services package - Business logic layer."""

from telehealth.services.user_service import UserService
from telehealth.services.hospital_service import HospitalService
from telehealth.services.slot_ledger import SlotLedger
from telehealth.services.appointment_service import AppointmentService
from telehealth.services.session_gate import SessionGate
from telehealth.services.message_service import MessageService
from telehealth.services.notification_service import NotificationDispatcher, NotificationService
from telehealth.services.media_session import LiveKitSessionProvider
from telehealth.services.policy import Actor, WorkflowPolicy

__all__ = [
    "UserService",
    "HospitalService",
    "SlotLedger",
    "AppointmentService",
    "SessionGate",
    "MessageService",
    "NotificationDispatcher",
    "NotificationService",
    "LiveKitSessionProvider",
    "Actor",
    "WorkflowPolicy",
]
