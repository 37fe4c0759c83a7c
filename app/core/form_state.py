from __future__ import annotations

import copy
import threading
import uuid

from app.schemas.registration import (
    AvatarFile,
    RegistrationInput,
    RegistrationRecord,
    SkillInput,
)
from app.core.registration_validation import errors_by_field


class RegistrationFormState:
    """
    The one mutable object behind a registration form. Every edit goes through
    an explicit setter; validation reads a copy via snapshot().

    The minimum-skills rule is only checked on submit, so the skill list may
    shrink to zero here.
    """

    def __init__(self, form_id: str | None = None):
        self.id = form_id or uuid.uuid4().hex
        self.avatar: AvatarFile | None = None
        self.name = ""
        self.email = ""
        self.password = ""
        self.confirm_password = ""
        self.skills: list[SkillInput] = []
        self.errors: list[dict] = []

    def set_avatar(self, avatar: AvatarFile) -> None:
        self.avatar = avatar

    def clear_avatar(self) -> None:
        self.avatar = None

    def set_name(self, value: str) -> None:
        self.name = value

    def set_email(self, value: str) -> None:
        self.email = value

    def set_password(self, value: str) -> None:
        self.password = value

    def set_confirm_password(self, value: str) -> None:
        self.confirm_password = value

    def append_skill(self, name: str = "", level=1) -> int:
        self.skills.append(SkillInput(name=name, level=level))
        return len(self.skills) - 1

    def update_skill(self, index: int, *, name: str | None = None, level=None) -> None:
        skill = self._skill_at(index)
        if name is not None:
            skill.name = name
        if level is not None:
            skill.level = level

    def remove_skill(self, index: int) -> None:
        self._skill_at(index)
        del self.skills[index]

    def _skill_at(self, index: int) -> SkillInput:
        # negative indexes would silently address the tail
        if index < 0 or index >= len(self.skills):
            raise IndexError(f"No skill at position {index}")
        return self.skills[index]

    def snapshot(self) -> RegistrationInput:
        return RegistrationInput(
            avatar=self.avatar,
            name=self.name,
            email=self.email,
            password=self.password,
            confirmPassword=self.confirm_password,
            skills=copy.deepcopy(self.skills),
        )

    def apply_record(self, record: RegistrationRecord) -> None:
        """Write normalized values back after a successful submit."""
        self.avatar = record.avatar
        self.name = record.name
        self.email = record.email
        self.password = record.password
        self.confirm_password = record.confirmPassword
        self.skills = [SkillInput(name=s.name, level=s.level) for s in record.skills]
        self.errors = []

    def set_errors(self, errors: list[dict]) -> None:
        self.errors = list(errors)

    def error_for(self, field: str) -> str | None:
        return errors_by_field(self.errors).get(field)

    def to_out(self) -> dict:
        return {
            "id": self.id,
            "avatar": self.avatar.describe() if self.avatar else None,
            "name": self.name,
            "email": self.email,
            "password": self.password,
            "confirmPassword": self.confirm_password,
            "skills": [{"name": s.name, "level": s.level} for s in self.skills],
            "errors": errors_by_field(self.errors),
        }


class FormStateStore:
    """In-process registry of open forms. Nothing survives a restart."""

    def __init__(self):
        self._forms: dict[str, RegistrationFormState] = {}
        self._lock = threading.Lock()

    def create(self) -> RegistrationFormState:
        state = RegistrationFormState()
        with self._lock:
            self._forms[state.id] = state
        return state

    def get(self, form_id: str) -> RegistrationFormState | None:
        with self._lock:
            return self._forms.get(form_id)

    def discard(self, form_id: str) -> bool:
        with self._lock:
            return self._forms.pop(form_id, None) is not None


form_store = FormStateStore()


def get_form_store() -> FormStateStore:
    return form_store
