from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from pydantic import BaseModel, Field, field_validator

from utils.board import SubscriptionBoard
from utils.formatting import format_amount, format_renewal_date, normalize_amount
from utils.renewals import is_overdue

router = APIRouter()


# Pydantic models for request/response
class SubscriptionCreate(BaseModel):
    company_name: str
    description: Optional[str] = ""
    amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    renewal_date: date

    @field_validator("company_name")
    @classmethod
    def company_name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("company_name is required")
        return v


class SubscriptionOut(BaseModel):
    id: str
    company_name: str
    description: str = ""
    amount: float
    renewal_date: Optional[date] = None
    notification_sent: bool = False
    is_overdue: bool = False
    renewal_display: str
    amount_display: str


class ToastOut(BaseModel):
    kind: str
    message: str
    title: Optional[str] = None


class BoardResponse(BaseModel):
    success: bool
    loading: bool = False
    subscriptions: List[SubscriptionOut] = []
    upcoming: List[SubscriptionOut] = []
    toasts: List[ToastOut] = []


def get_board(request: Request) -> SubscriptionBoard:
    return request.app.state.board


def _present(sub: Mapping[str, Any], now: datetime) -> SubscriptionOut:
    return SubscriptionOut(
        id=str(sub["id"]),
        company_name=sub.get("company_name") or "",
        description=sub.get("description") or "",
        amount=normalize_amount(sub.get("amount")),
        renewal_date=sub.get("renewal_date"),
        notification_sent=bool(sub.get("notification_sent")),
        is_overdue=is_overdue(sub, now),
        renewal_display=format_renewal_date(sub.get("renewal_date")),
        amount_display=format_amount(sub.get("amount")),
    )


def _board_response(board: SubscriptionBoard, success: bool) -> BoardResponse:
    now = board.clock()
    return BoardResponse(
        success=success,
        loading=board.loading,
        subscriptions=[_present(s, now) for s in board.subscriptions],
        upcoming=[_present(s, now) for s in board.upcoming(now)],
        toasts=[ToastOut(**t.to_dict()) for t in board.drain_toasts()],
    )


@router.get("/", response_model=BoardResponse)
def refresh_subscriptions(
    background_tasks: BackgroundTasks,
    board: SubscriptionBoard = Depends(get_board),
):
    """
    Re-fetch the full list and re-evaluate the renewal window.
    Reminders for subscriptions due soon are sent after the response.
    """
    ok = board.refresh(schedule=background_tasks.add_task)
    return _board_response(board, ok)


@router.get("/upcoming", response_model=List[SubscriptionOut])
def get_upcoming(board: SubscriptionBoard = Depends(get_board)):
    now = board.clock()
    return [_present(s, now) for s in board.upcoming(now)]


@router.post("/", response_model=BoardResponse)
def create(
    data: SubscriptionCreate,
    background_tasks: BackgroundTasks,
    board: SubscriptionBoard = Depends(get_board),
):
    ok = board.add(data.model_dump(), schedule=background_tasks.add_task)
    return _board_response(board, ok)


@router.delete("/{id}", response_model=BoardResponse)
def delete(
    id: str,
    background_tasks: BackgroundTasks,
    board: SubscriptionBoard = Depends(get_board),
):
    ok = board.delete(id, schedule=background_tasks.add_task)
    return _board_response(board, ok)
