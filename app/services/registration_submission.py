from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from fastapi import BackgroundTasks

from app.core.config import settings
from app.core.registration_validation import RegistrationRules, validate_registration
from app.schemas.registration import RegistrationInput, RegistrationRecord
from app.services.avatar_storage import AvatarStorage, AvatarUploadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    record: RegistrationRecord
    output: str
    bucket: str
    key: str
    mode: str

    def to_out(self) -> dict:
        return {
            "record": self.record.to_output(),
            "output": self.output,
            "upload": {"bucket": self.bucket, "key": self.key, "mode": self.mode},
        }


def render_record(record: RegistrationRecord) -> str:
    return json.dumps(record.to_output(), indent=2)


def _upload_in_background(
    storage: AvatarStorage,
    bucket: str,
    key: str,
    payload: bytes,
    content_type: str | None,
) -> None:
    # nobody is waiting on this call; the failure is only logged
    try:
        storage.upload(bucket, key, payload, content_type)
    except AvatarUploadError:
        logger.exception("Background avatar upload failed for %s", key)


def submit_registration(
    raw: RegistrationInput,
    *,
    storage: AvatarStorage,
    background_tasks: BackgroundTasks | None = None,
    rules: RegistrationRules | None = None,
) -> SubmissionResult:
    """
    validate -> upload avatar (key = original file name) -> render record.

    Raises RegistrationValidationFailed before any upload is attempted.
    In "await" mode an AvatarUploadError propagates to the caller; in
    "background" mode the upload is queued and its outcome is not reported.
    """
    record = validate_registration(raw, rules)

    bucket = settings.AVATAR_BUCKET
    key = record.avatar.filename
    mode = settings.AVATAR_UPLOAD_MODE
    payload = record.avatar.read()

    if mode == "background" and background_tasks is None:
        logger.debug("No background task queue for %s, uploading inline", key)

    if mode == "background" and background_tasks is not None:
        background_tasks.add_task(
            _upload_in_background, storage, bucket, key, payload, record.avatar.content_type
        )
    else:
        mode = "await"
        storage.upload(bucket, key, payload, record.avatar.content_type)

    return SubmissionResult(
        record=record,
        output=render_record(record),
        bucket=bucket,
        key=key,
        mode=mode,
    )
