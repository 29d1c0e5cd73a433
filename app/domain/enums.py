"""Enums shared across the domain layer."""

from enum import Enum


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    MIXED = "mixed"


class QuestionDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionCategory(str, Enum):
    DATA_STRUCTURES = "data-structures"
    ALGORITHMS = "algorithms"
    SYSTEM_DESIGN = "system-design"
    BEHAVIORAL = "behavioral"
    CODING = "coding"


class Language(str, Enum):
    PYTHON = "python"
    CPP = "cpp"
    JAVA = "java"
    JAVASCRIPT = "javascript"


class InterviewStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in (InterviewStatus.COMPLETED, InterviewStatus.ABANDONED)


class SessionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    EXPIRED = "expired"

    @property
    def is_live(self) -> bool:
        return self in (SessionStatus.ACTIVE, SessionStatus.PAUSED)


# Forward-only ordering; terminal states may only repeat themselves.
_INTERVIEW_RANK = {
    InterviewStatus.PENDING: 0,
    InterviewStatus.IN_PROGRESS: 1,
    InterviewStatus.COMPLETED: 2,
    InterviewStatus.ABANDONED: 2,
}


def can_transition(current: InterviewStatus, target: InterviewStatus) -> bool:
    """True when moving an interview from ``current`` to ``target`` never goes backwards."""
    if current.is_terminal:
        return current == target
    return _INTERVIEW_RANK[target] >= _INTERVIEW_RANK[current]
