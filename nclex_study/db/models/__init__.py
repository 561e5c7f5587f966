# SQLAlchemy models
from .base import Base
from .review import ReviewStateRecord
from .simulation import QuestionRecord, SimulationAttemptRecord

__all__ = [
    "Base",
    "ReviewStateRecord",
    "QuestionRecord",
    "SimulationAttemptRecord",
]
