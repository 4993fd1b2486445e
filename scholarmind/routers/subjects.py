from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

from scholarmind.domain.errors import DataStoreError
from scholarmind.routers.deps import get_store, store_error_to_http

router = APIRouter(prefix="/subjects", tags=["subjects"])


class SubjectForm(BaseModel):
    name: str


@router.get("")
async def list_subjects(request: Request):
    store = await get_store(request)
    return {"ready": store.ready, "subjects": [s.to_dict() for s in store.subjects]}


@router.post("", status_code=201)
async def add_subject(form: SubjectForm, request: Request):
    store = await get_store(request)
    try:
        subject = await store.add_subject(form.name)
    except DataStoreError as exc:
        raise store_error_to_http(exc)
    return subject.to_dict()


@router.delete("/{subject_id}")
async def delete_subject(subject_id: str, request: Request):
    store = await get_store(request)
    try:
        await store.delete_subject(subject_id)
    except DataStoreError as exc:
        raise store_error_to_http(exc)
    return {"ok": True}
