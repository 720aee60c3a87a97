"""Workflow policy - who may do what, and the time constants the workflow uses."""

from dataclasses import dataclass, field
from uuid import UUID

from telehealth.config import Settings
from telehealth.models.user import User, UserRole


@dataclass(frozen=True)
class Actor:
    """The authenticated caller: identity and role only."""

    user_id: UUID
    role: str
    display_name: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(user_id=user.id, role=user.role, display_name=user.full_name)


@dataclass(frozen=True)
class WorkflowPolicy:
    initiator_roles: frozenset[str] = frozenset({UserRole.PATIENT.value})
    admin_roles: frozenset[str] = field(
        default_factory=lambda: frozenset({UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value})
    )
    doctor_can_cancel: bool = False
    cancellation_window_hours: int = 24
    default_virtual_duration_minutes: int = 30
    session_token_ttl_seconds: int = 3600

    @classmethod
    def from_settings(cls, settings: Settings) -> "WorkflowPolicy":
        return cls(
            initiator_roles=settings.initiator_roles_set,
            admin_roles=settings.admin_roles_set,
            doctor_can_cancel=settings.doctor_can_cancel,
            cancellation_window_hours=settings.cancellation_window_hours,
            default_virtual_duration_minutes=settings.default_virtual_duration_minutes,
            session_token_ttl_seconds=settings.session_token_ttl_seconds,
        )

    def is_admin(self, actor: Actor) -> bool:
        return actor.role in self.admin_roles

    def can_initiate(self, actor: Actor) -> bool:
        return actor.role in self.initiator_roles
