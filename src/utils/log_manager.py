"""Attempt log lookups."""

from sqlalchemy.orm import Session

from core.exceptions import LogNotFoundError
from models.log import LogModel


class LogManager:
    """Read access to challenge attempt logs."""

    def __init__(self, db: Session):
        self.db = db

    def get_log(self, log_id: int) -> LogModel:
        model = self.db.query(LogModel).filter(LogModel.id == log_id).first()
        if not model:
            raise LogNotFoundError(log_id)
        return model
