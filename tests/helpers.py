from app.schemas.registration import AvatarFile, RegistrationInput, SkillInput
from app.services.avatar_storage import AvatarUploadError


class FakeAvatarStorage:
    def __init__(self):
        self.uploads: list[dict] = []

    def upload(self, bucket: str, key: str, payload: bytes, content_type: str | None = None) -> None:
        self.uploads.append(
            {"bucket": bucket, "key": key, "payload": payload, "content_type": content_type}
        )


class FailingAvatarStorage:
    def __init__(self):
        self.attempts = 0

    def upload(self, bucket: str, key: str, payload: bytes, content_type: str | None = None) -> None:
        self.attempts += 1
        raise AvatarUploadError(bucket, key)


def make_avatar(filename: str = "pic.png", size: int = 2048, content_type: str = "image/png") -> AvatarFile:
    return AvatarFile.from_bytes(filename, b"\x89" * size, content_type)


def make_input(**overrides) -> RegistrationInput:
    values = {
        "avatar": make_avatar(),
        "name": "maria silva",
        "email": "Maria@GOV.PT",
        "password": "secret1",
        "confirmPassword": "secret1",
        "skills": [SkillInput(name="go", level=3), SkillInput(name="sql", level=4)],
    }
    values.update(overrides)
    return RegistrationInput(**values)


def registration_form_data(**overrides) -> dict:
    data = {
        "name": "maria silva",
        "email": "Maria@GOV.PT",
        "password": "secret1",
        "confirmPassword": "secret1",
        "skill_name": ["go", "sql"],
        "skill_level": ["3", "4"],
    }
    data.update(overrides)
    return data


def avatar_upload(filename: str = "pic.png", size: int = 2048, content_type: str = "image/png") -> dict:
    return {"avatar": (filename, b"\x89" * size, content_type)}
