from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field


class AvatarFile:
    """
    An uploaded image: its name and size travel with a handle to the bytes,
    so the same value can be validated and later sent to storage.
    """

    def __init__(
        self,
        filename: str,
        size: int,
        content_type: str | None = None,
        read: Callable[[], bytes] | None = None,
    ):
        self.filename = filename
        self.size = size
        self.content_type = content_type
        self._read = read or (lambda: b"")

    def read(self) -> bytes:
        return self._read()

    def _key(self):
        return (self.filename, self.size, self.content_type)

    def __eq__(self, other):
        if not isinstance(other, AvatarFile):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return f"AvatarFile(filename={self.filename!r}, size={self.size})"

    @classmethod
    def from_bytes(cls, filename: str, payload: bytes, content_type: str | None = None) -> "AvatarFile":
        return cls(
            filename=filename,
            size=len(payload),
            content_type=content_type,
            read=lambda: payload,
        )

    def describe(self) -> dict:
        return {"name": self.filename, "size": self.size, "content_type": self.content_type}


@dataclass
class SkillInput:
    name: Any = ""
    level: Any = 1


@dataclass
class RegistrationInput:
    """Raw values as entered in the form. Nothing here is validated."""
    avatar: AvatarFile | None = None
    name: Any = ""
    email: Any = ""
    password: Any = ""
    confirmPassword: Any = ""
    skills: list[SkillInput] = field(default_factory=list)


class Skill(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    level: int | float = Field(ge=1, le=5)


class RegistrationRecord(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    avatar: AvatarFile
    name: str
    email: str
    password: str
    confirmPassword: str
    skills: tuple[Skill, ...]

    def to_output(self) -> dict:
        return {
            "avatar": self.avatar.describe(),
            "name": self.name,
            "email": self.email,
            "password": self.password,
            "confirmPassword": self.confirmPassword,
            "skills": [s.model_dump() for s in self.skills],
        }

    def to_input(self) -> RegistrationInput:
        """Feed a normalized record back in as raw values."""
        return RegistrationInput(
            avatar=self.avatar,
            name=self.name,
            email=self.email,
            password=self.password,
            confirmPassword=self.confirmPassword,
            skills=[SkillInput(name=s.name, level=s.level) for s in self.skills],
        )


class SkillRow(BaseModel):
    name: str = ""
    level: int | float | str | None = 1


class SkillRowUpdate(BaseModel):
    name: str | None = None
    level: int | float | str | None = None


class FormFieldsUpdate(BaseModel):
    """Partial update of the text fields of a registration form."""
    name: str | None = None
    email: str | None = None
    password: str | None = None
    confirmPassword: str | None = None


class AvatarOut(BaseModel):
    name: str
    size: int
    content_type: str | None


class FormStateOut(BaseModel):
    id: str
    avatar: AvatarOut | None
    name: str
    email: str
    password: str
    confirmPassword: str
    skills: list[SkillRow]
    errors: dict[str, str]


class UploadOut(BaseModel):
    bucket: str
    key: str
    mode: str


class RegistrationOut(BaseModel):
    record: dict
    output: str  # record rendered as indented JSON
    upload: UploadOut
