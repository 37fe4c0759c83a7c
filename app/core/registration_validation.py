from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from email_validator import EmailNotValidError, validate_email as check_email_syntax

from app.core.config import settings
from app.schemas.registration import (
    AvatarFile,
    RegistrationInput,
    RegistrationRecord,
    Skill,
)

logger = logging.getLogger(__name__)

PASSWORD_MISMATCH_MESSAGE = "The passwords did not match"


@dataclass(frozen=True)
class RegistrationRules:
    avatar_max_bytes: int = 5 * 1024 * 1024
    required_email_domain: str = "@gov.pt"
    min_password_length: int = 6
    min_skills: int = 2
    min_skill_level: int = 1
    max_skill_level: int = 5

    @classmethod
    def from_settings(cls) -> "RegistrationRules":
        return cls(
            avatar_max_bytes=settings.AVATAR_MAX_BYTES,
            required_email_domain=settings.REQUIRED_EMAIL_DOMAIN,
        )


class RegistrationValidationFailed(Exception):
    """Raised with every field and cross-field error found in one pass."""

    def __init__(self, errors: list[dict]):
        super().__init__(f"{len(errors)} validation error(s)")
        self.errors = errors


def _error(path: list[str | int], code: str, message: str) -> dict:
    return {
        "field": ".".join(str(p) for p in path),
        "path": list(path),
        "code": code,
        "message": message,
    }


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _format_size(n: int) -> str:
    mb = 1024 * 1024
    if n % mb == 0:
        return f"{n // mb}MB"
    if n % 1024 == 0:
        return f"{n // 1024}KB"
    return f"{n} bytes"


def _domain_label(domain: str) -> str:
    # "@gov.pt" -> ".gov.pt"
    return "." + domain.lstrip("@")


def capitalize_words(name: str) -> str:
    """
    Trim, then force the first character of each space-separated word to
    upper case. The rest of each word is left as typed, so "joHN" -> "JoHN".
    """
    words = name.strip().split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


def validate_avatar(avatar: AvatarFile | None, rules: RegistrationRules) -> tuple[AvatarFile | None, list[dict]]:
    if avatar is None or not avatar.filename:
        return None, [_error(["avatar"], "required", "Avatar is required")]

    if not avatar.size < rules.avatar_max_bytes:
        limit = _format_size(rules.avatar_max_bytes)
        return None, [_error(["avatar"], "max_size", f"File size must be less than {limit}")]

    return avatar, []


def validate_name(value: Any) -> tuple[str | None, list[dict]]:
    s = _text(value)
    if s == "":
        return None, [_error(["name"], "required", "Name is required")]
    return capitalize_words(s), []


def validate_email(value: Any, rules: RegistrationRules) -> tuple[str | None, list[dict]]:
    """
    Checks run in order and stop at the first failure:
      required -> syntax -> (lowercase) -> required domain suffix
    """
    s = _text(value)
    if s == "":
        return None, [_error(["email"], "required", "Email is required")]

    try:
        check_email_syntax(s, check_deliverability=False)
    except EmailNotValidError:
        return None, [_error(["email"], "email", "Email must be a valid email address")]

    email = s.lower()
    if not email.endswith(rules.required_email_domain.lower()):
        label = _domain_label(rules.required_email_domain)
        return None, [_error(["email"], "domain", f"Email must be a {label} email address")]

    return email, []


def validate_password(value: Any, rules: RegistrationRules, *, field: str, label: str) -> tuple[str | None, list[dict]]:
    s = _text(value)
    if len(s) < rules.min_password_length:
        return None, [
            _error([field], "min_length", f"{label} must be at least {rules.min_password_length} characters")
        ]
    return s, []


def _coerce_level(value: Any) -> int | float:
    """
    Numeric coercion of a form value: blank -> 0, numeric text -> number.
    Raises ValueError when the value is not numeric.
    """
    if isinstance(value, bool):
        raise ValueError("boolean is not a level")
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        x = value
    else:
        s = _text(value).strip()
        if s == "":
            return 0
        # float() also takes "1_0" and "inf", which are not form numbers
        if "_" in s:
            raise ValueError("not a number")
        x = float(s)

    if not math.isfinite(x):
        raise ValueError("not a number")
    if x.is_integer():
        return int(x)
    return x


def _skill_value(entry: Any, key: str) -> Any:
    if isinstance(entry, dict):
        return entry.get(key)
    return getattr(entry, key, None)


def _validate_skill(index: int, entry: Any, rules: RegistrationRules) -> tuple[Skill | None, list[dict]]:
    errors: list[dict] = []

    name = _text(_skill_value(entry, "name"))
    if name == "":
        errors.append(_error(["skills", index, "name"], "required", "Skill name is required"))

    path = ["skills", index, "level"]
    try:
        level = _coerce_level(_skill_value(entry, "level"))
    except (TypeError, ValueError):
        errors.append(_error(path, "type", "Skill level must be a number"))
        level = None

    if level is not None:
        if level < rules.min_skill_level:
            errors.append(_error(path, "min", f"Skill level must be at least {rules.min_skill_level}"))
        elif level > rules.max_skill_level:
            errors.append(_error(path, "max", f"Skill level must be at most {rules.max_skill_level}"))

    if errors:
        return None, errors
    return Skill(name=name, level=level), []


def validate_skills(entries: Any, rules: RegistrationRules) -> tuple[list[Skill] | None, list[dict]]:
    """
    Each entry is checked on its own (name, level); the list length is checked
    separately so a short list still reports its bad entries.
    """
    entries = list(entries or [])
    errors: list[dict] = []
    skills: list[Skill] = []

    for i, entry in enumerate(entries):
        skill, entry_errors = _validate_skill(i, entry, rules)
        errors.extend(entry_errors)
        if skill is not None:
            skills.append(skill)

    if len(entries) < rules.min_skills:
        errors.append(_error(["skills"], "min_items", f"You must have at least {rules.min_skills} skills"))

    if errors:
        return None, errors
    return skills, []


def check_passwords_match(password: Any, confirm_password: Any) -> list[dict]:
    if _text(password) != _text(confirm_password):
        return [_error(["confirmPassword"], "mismatch", PASSWORD_MISMATCH_MESSAGE)]
    return []


def collect_registration_errors(
    raw: RegistrationInput,
    rules: RegistrationRules | None = None,
) -> tuple[RegistrationRecord | None, list[dict]]:
    """
    Runs every field rule and then the password-match rule, whatever the
    field rules returned. Returns (record, []) or (None, errors).
    """
    rules = rules or RegistrationRules.from_settings()
    errors: list[dict] = []

    avatar, e = validate_avatar(raw.avatar, rules)
    errors.extend(e)
    name, e = validate_name(raw.name)
    errors.extend(e)
    email, e = validate_email(raw.email, rules)
    errors.extend(e)
    password, e = validate_password(raw.password, rules, field="password", label="Password")
    errors.extend(e)
    confirm, e = validate_password(raw.confirmPassword, rules, field="confirmPassword", label="Confirm Password")
    errors.extend(e)
    skills, e = validate_skills(raw.skills, rules)
    errors.extend(e)

    errors.extend(check_passwords_match(raw.password, raw.confirmPassword))

    if errors:
        logger.info("Registration validation failed on fields: %s", sorted({e["field"] for e in errors}))
        return None, errors

    record = RegistrationRecord(
        avatar=avatar,
        name=name,
        email=email,
        password=password,
        confirmPassword=confirm,
        skills=tuple(skills),
    )
    return record, []


def validate_registration(
    raw: RegistrationInput,
    rules: RegistrationRules | None = None,
) -> RegistrationRecord:
    record, errors = collect_registration_errors(raw, rules)
    if errors:
        raise RegistrationValidationFailed(errors)
    return record


def errors_by_field(errors: list[dict]) -> dict[str, str]:
    """First message per field, the one shown next to the input."""
    out: dict[str, str] = {}
    for e in errors:
        out.setdefault(e["field"], e["message"])
    return out
