"""Routes handling todo CRUD operations."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...deps import CurrentUserDependency, TodoServiceDependency
from ...models import Todo
from ...schemas import (
    DeleteResponse,
    TodoCreate,
    TodoListResponse,
    TodoRead,
    TodoResponse,
    TodoUpdate,
)

router = APIRouter(prefix="/todos", tags=["todos"])


def _map_todo(todo: Todo) -> TodoRead:
    return TodoRead.model_validate(todo)


@router.get("", response_model=TodoListResponse, summary="List the caller's todos")
async def list_todos(
    current_user: CurrentUserDependency,
    service: TodoServiceDependency,
) -> TodoListResponse:
    todos = await service.list_todos(current_user.external_id)
    return TodoListResponse(todos=[_map_todo(todo) for todo in todos])


@router.post(
    "",
    response_model=TodoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a todo",
)
async def create_todo(
    payload: TodoCreate,
    current_user: CurrentUserDependency,
    service: TodoServiceDependency,
) -> TodoResponse:
    todo = await service.create_todo(
        current_user.external_id,
        title=payload.title,
        attachment_key=payload.attachment_key,
    )
    return TodoResponse(todo=_map_todo(todo))


@router.put("/{todo_id}", response_model=TodoResponse, summary="Partially update a todo")
async def update_todo(
    todo_id: str,
    payload: TodoUpdate,
    current_user: CurrentUserDependency,
    service: TodoServiceDependency,
) -> TodoResponse:
    todo = await service.update_todo(
        current_user.external_id,
        todo_id,
        payload.model_dump(exclude_unset=True),
    )
    return TodoResponse(todo=_map_todo(todo))


@router.delete("/{todo_id}", response_model=DeleteResponse, summary="Delete a todo")
async def delete_todo(
    todo_id: str,
    current_user: CurrentUserDependency,
    service: TodoServiceDependency,
) -> DeleteResponse:
    await service.delete_todo(current_user.external_id, todo_id)
    return DeleteResponse(success=True)
