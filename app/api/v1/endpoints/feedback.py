"""Homeowner feedback endpoint. Open to anonymous visitors."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.feedback import FeedbackCreate, FeedbackOut
from app.services.feedback_service import submit_feedback

router = APIRouter()


@router.post("/", response_model=FeedbackOut, status_code=status.HTTP_201_CREATED)
async def create_feedback(payload: FeedbackCreate, db: AsyncSession = Depends(get_db)):
    return await submit_feedback(db, payload)
