import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from example.core.validation import raise_if_invalid
from example.db.session import get_db
from example.models.todo import Todo
from example.schemas.todo import TodoCreate, TodoOut, TodoPatch, TodoUpdate
from example.schemas.validation import ValidationProblem
from example.validators import todo_patch_validator

router = APIRouter(prefix="/todos", tags=["todos"])


def _get_todo_or_404(db: Session, todo_id: str) -> Todo:
    try:
        key = uuid.UUID(todo_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Todo not found")
    todo = db.get(Todo, key)
    if not todo:
        raise HTTPException(status_code=404, detail="Todo not found")
    return todo


@router.get("", response_model=list[TodoOut])
def list_todos(
    include_complete: bool = Query(default=True, description="Include finished todos"),
    limit: int = Query(default=100, ge=1, le=500, description="Maximum number of results"),
    offset: int = Query(default=0, ge=0, description="Number of results to skip"),
    db: Session = Depends(get_db),
):
    query = db.query(Todo)
    if not include_complete:
        query = query.filter(Todo.is_complete.is_(False))
    return query.order_by(Todo.priority.desc(), Todo.created_at.asc()).offset(offset).limit(limit).all()


@router.post("", response_model=TodoOut, status_code=201)
def create_todo(payload: TodoCreate, db: Session = Depends(get_db)):
    todo = Todo(
        title=payload.title,
        description=payload.description,
        priority=int(payload.priority),
        due_date=payload.due_date,
        estimate_hours=payload.estimate_hours,
        tags=list(payload.tags),
    )
    db.add(todo)
    db.flush()
    db.refresh(todo)
    return todo


@router.get("/{todo_id}", response_model=TodoOut)
def get_todo(todo_id: str, db: Session = Depends(get_db)):
    return _get_todo_or_404(db, todo_id)


@router.put("/{todo_id}", response_model=TodoOut)
def replace_todo(todo_id: str, payload: TodoUpdate, db: Session = Depends(get_db)):
    todo = _get_todo_or_404(db, todo_id)
    for key, value in payload.model_dump().items():
        setattr(todo, key, value)
    db.flush()
    db.refresh(todo)
    return todo


@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    responses={400: {"model": ValidationProblem, "description": "Validation failed"}},
)
def patch_todo(todo_id: str, payload: TodoPatch, db: Session = Depends(get_db)):
    todo = _get_todo_or_404(db, todo_id)
    raise_if_invalid(todo_patch_validator, payload)

    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is None and key in ("title", "priority", "is_complete"):
            continue
        setattr(todo, key, value)
    db.flush()
    db.refresh(todo)
    return todo


@router.delete("/{todo_id}", status_code=204)
def delete_todo(todo_id: str, db: Session = Depends(get_db)):
    todo = _get_todo_or_404(db, todo_id)
    db.delete(todo)
    return Response(status_code=204)
