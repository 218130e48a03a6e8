from datetime import datetime

from fastapi import APIRouter, HTTPException
from loguru import logger

from penny.deps import conversations, repo
from penny.engine.calendar import grain_bounds, local_now
from penny.models.schemas import Expense, Interval, MessageRequest, TurnResult, UserContext

router = APIRouter()


@router.post("/users/{user_id}/messages", response_model=TurnResult)
async def post_message(user_id: str, request: MessageRequest):
    logger.info("Message from {}: {}", user_id, request.text)
    return await conversations.handle_text(user_id, request.text, user_name=request.user_name)


@router.get("/users/{user_id}/context", response_model=UserContext)
def get_context(user_id: str):
    context = repo.get_context(user_id)
    if context is None:
        raise HTTPException(status_code=404, detail="User not found")
    return context


@router.get("/users/{user_id}/expenses", response_model=list[Expense])
def list_expenses(user_id: str, start: datetime | None = None, end: datetime | None = None):
    week_start, week_end = grain_bounds(local_now(), "week")
    # Naive bounds are read as server-local time.
    interval = Interval(
        start=(start or week_start).astimezone(),
        end=(end or week_end).astimezone(),
    )
    if interval.start > interval.end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    return repo.query_expenses(user_id, interval)


@router.delete("/users/{user_id}")
def delete_user(user_id: str):
    if not repo.delete_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Deleted user {}", user_id)
    return {"detail": "User deleted"}
