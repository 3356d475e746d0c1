"""FastAPI dependencies for the judging core."""

from fastapi import Depends
from sqlalchemy.orm import Session

from .db import get_db
from domain.judging import SubmissionPipeline
from infra.services import JudgeClient, get_judge_client


def get_pipeline(
    db: Session = Depends(get_db),
    judge: JudgeClient = Depends(get_judge_client),
) -> SubmissionPipeline:
    return SubmissionPipeline(db, judge)


__all__ = ["get_pipeline"]
