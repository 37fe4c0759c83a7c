from itertools import zip_longest
from typing import NoReturn

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile, status

from app.core.registration_validation import (
    RegistrationValidationFailed,
    collect_registration_errors,
)
from app.schemas.registration import AvatarFile, RegistrationInput, RegistrationOut, SkillInput
from app.schemas.validation import ValidationPreviewResponse
from app.services.avatar_storage import AvatarStorage, AvatarUploadError, get_avatar_storage
from app.services.registration_submission import submit_registration

router = APIRouter(prefix="/registrations", tags=["registrations"])


def avatar_from_upload(upload: UploadFile | None) -> AvatarFile | None:
    if upload is None:
        return None
    payload = upload.file.read()
    return AvatarFile.from_bytes(upload.filename or "", payload, upload.content_type)


def _raw_input(
    avatar: UploadFile | None,
    name: str,
    email: str,
    password: str,
    confirm_password: str,
    skill_name: list[str],
    skill_level: list[str],
) -> RegistrationInput:
    # skill rows arrive as two repeated fields, paired by position
    skills = [
        SkillInput(name=n or "", level=lv)
        for n, lv in zip_longest(skill_name, skill_level, fillvalue=None)
    ]
    return RegistrationInput(
        avatar=avatar_from_upload(avatar),
        name=name,
        email=email,
        password=password,
        confirmPassword=confirm_password,
        skills=skills,
    )


def raise_validation_failed(errors: list[dict]) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"message": "Registration validation failed", "errors": errors},
    )


def raise_upload_failed(e: AvatarUploadError) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"message": "Avatar upload failed", "bucket": e.bucket, "key": e.key},
    )


@router.post("", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
def create_registration(
    background_tasks: BackgroundTasks,
    avatar: UploadFile = File(None),
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirmPassword: str = Form(""),
    skill_name: list[str] = Form([]),
    skill_level: list[str] = Form([]),
    storage: AvatarStorage = Depends(get_avatar_storage),
):
    """
    Validate a registration, upload the avatar, and return the normalized
    record together with its indented JSON rendering.
    """
    raw = _raw_input(avatar, name, email, password, confirmPassword, skill_name, skill_level)

    try:
        result = submit_registration(raw, storage=storage, background_tasks=background_tasks)
    except RegistrationValidationFailed as e:
        raise_validation_failed(e.errors)
    except AvatarUploadError as e:
        raise_upload_failed(e)

    return result.to_out()


@router.post("/validate", response_model=ValidationPreviewResponse)
def preview_registration(
    avatar: UploadFile = File(None),
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirmPassword: str = Form(""),
    skill_name: list[str] = Form([]),
    skill_level: list[str] = Form([]),
):
    """Dry run: same rules as submit, never uploads."""
    raw = _raw_input(avatar, name, email, password, confirmPassword, skill_name, skill_level)
    record, errors = collect_registration_errors(raw)
    return ValidationPreviewResponse(
        valid=not errors,
        errors=errors,
        record=record.to_output() if record else None,
    )
