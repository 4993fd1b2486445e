from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from scholarmind.domain.errors import DataStoreError
from scholarmind.domain.records import Goal
from scholarmind.routers.deps import get_store, store_error_to_http
from scholarmind.services.data_store import DataStore

router = APIRouter(prefix="/goals", tags=["goals"])


class GoalForm(BaseModel):
    title: str
    subject: str
    description: str = ""


class GoalPatch(BaseModel):
    title: Optional[str] = None
    subject: Optional[str] = None
    description: Optional[str] = None


def _goal_dict(store: DataStore, goal: Goal) -> dict:
    data = goal.to_dict()
    data["subject_exists"] = store.subject_for(goal) is not None
    return data


@router.get("")
async def list_goals(request: Request, subject: str | None = None):
    store = await get_store(request)
    goals = store.goals_for_subject(subject) if subject is not None else store.goals
    return {"ready": store.ready, "goals": [_goal_dict(store, g) for g in goals]}


@router.post("", status_code=201)
async def add_goal(form: GoalForm, request: Request):
    store = await get_store(request)
    try:
        goal = await store.add_goal(form.title, form.subject, form.description)
    except DataStoreError as exc:
        raise store_error_to_http(exc)
    return _goal_dict(store, goal)


@router.post("/{goal_id}/toggle")
async def toggle_goal(goal_id: str, request: Request):
    store = await get_store(request)
    try:
        goal = await store.toggle_goal_completion(goal_id)
    except DataStoreError as exc:
        raise store_error_to_http(exc)
    return _goal_dict(store, goal)


@router.patch("/{goal_id}")
async def update_goal(goal_id: str, patch: GoalPatch, request: Request):
    store = await get_store(request)
    try:
        goal = await store.update_goal(goal_id, **patch.model_dump(exclude_unset=True))
    except DataStoreError as exc:
        raise store_error_to_http(exc)
    return _goal_dict(store, goal)


@router.delete("/{goal_id}")
async def delete_goal(goal_id: str, request: Request):
    store = await get_store(request)
    try:
        await store.delete_goal(goal_id)
    except DataStoreError as exc:
        raise store_error_to_http(exc)
    return {"ok": True}
