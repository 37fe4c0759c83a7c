from fastapi import APIRouter, BackgroundTasks, Body, Depends, File, HTTPException, UploadFile, status

from app.api.registrations import avatar_from_upload, raise_upload_failed, raise_validation_failed
from app.core.form_state import FormStateStore, RegistrationFormState, get_form_store
from app.core.registration_validation import RegistrationValidationFailed
from app.schemas.registration import (
    FormFieldsUpdate,
    FormStateOut,
    RegistrationOut,
    SkillRow,
    SkillRowUpdate,
)
from app.services.avatar_storage import AvatarStorage, AvatarUploadError, get_avatar_storage
from app.services.registration_submission import submit_registration

router = APIRouter(prefix="/forms/registration", tags=["registration-forms"])


def _get_form_or_404(store: FormStateStore, form_id: str) -> RegistrationFormState:
    state = store.get(form_id)
    if not state:
        raise HTTPException(status_code=404, detail="Form not found")
    return state


@router.post("", response_model=FormStateOut, status_code=status.HTTP_201_CREATED)
def create_form(store: FormStateStore = Depends(get_form_store)):
    state = store.create()
    return state.to_out()


@router.get("/{form_id}", response_model=FormStateOut)
def get_form(form_id: str, store: FormStateStore = Depends(get_form_store)):
    return _get_form_or_404(store, form_id).to_out()


@router.patch("/{form_id}", response_model=FormStateOut)
def update_fields(
    form_id: str,
    payload: FormFieldsUpdate,
    store: FormStateStore = Depends(get_form_store),
):
    state = _get_form_or_404(store, form_id)

    if payload.name is not None:
        state.set_name(payload.name)
    if payload.email is not None:
        state.set_email(payload.email)
    if payload.password is not None:
        state.set_password(payload.password)
    if payload.confirmPassword is not None:
        state.set_confirm_password(payload.confirmPassword)

    return state.to_out()


@router.put("/{form_id}/avatar", response_model=FormStateOut)
def set_avatar(
    form_id: str,
    avatar: UploadFile = File(...),
    store: FormStateStore = Depends(get_form_store),
):
    state = _get_form_or_404(store, form_id)
    state.set_avatar(avatar_from_upload(avatar))
    return state.to_out()


@router.delete("/{form_id}/avatar", response_model=FormStateOut)
def clear_avatar(form_id: str, store: FormStateStore = Depends(get_form_store)):
    state = _get_form_or_404(store, form_id)
    state.clear_avatar()
    return state.to_out()


@router.post("/{form_id}/skills", response_model=FormStateOut, status_code=status.HTTP_201_CREATED)
def append_skill(
    form_id: str,
    payload: SkillRow | None = Body(default=None),
    store: FormStateStore = Depends(get_form_store),
):
    state = _get_form_or_404(store, form_id)
    row = payload or SkillRow()
    state.append_skill(row.name, row.level)
    return state.to_out()


@router.patch("/{form_id}/skills/{index}", response_model=FormStateOut)
def update_skill(
    form_id: str,
    index: int,
    payload: SkillRowUpdate,
    store: FormStateStore = Depends(get_form_store),
):
    state = _get_form_or_404(store, form_id)
    try:
        state.update_skill(index, name=payload.name, level=payload.level)
    except IndexError:
        raise HTTPException(status_code=404, detail="Skill not found")
    return state.to_out()


@router.delete("/{form_id}/skills/{index}", response_model=FormStateOut)
def remove_skill(form_id: str, index: int, store: FormStateStore = Depends(get_form_store)):
    state = _get_form_or_404(store, form_id)
    try:
        state.remove_skill(index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Skill not found")
    return state.to_out()


@router.post("/{form_id}/submit", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
def submit_form(
    form_id: str,
    background_tasks: BackgroundTasks,
    store: FormStateStore = Depends(get_form_store),
    storage: AvatarStorage = Depends(get_avatar_storage),
):
    state = _get_form_or_404(store, form_id)

    try:
        result = submit_registration(state.snapshot(), storage=storage, background_tasks=background_tasks)
    except RegistrationValidationFailed as e:
        # keep the messages on the form so a GET shows them next to each field
        state.set_errors(e.errors)
        raise_validation_failed(e.errors)
    except AvatarUploadError as e:
        raise_upload_failed(e)

    state.apply_record(result.record)
    return result.to_out()


@router.delete("/{form_id}", status_code=status.HTTP_204_NO_CONTENT)
def discard_form(form_id: str, store: FormStateStore = Depends(get_form_store)):
    if not store.discard(form_id):
        raise HTTPException(status_code=404, detail="Form not found")
