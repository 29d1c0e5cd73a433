from abc import ABC

from app.ports.user_port import UserPort
from app.ports.interview_port import InterviewPort
from app.ports.question_port import QuestionPort
from app.ports.mock_session_port import MockSessionPort


class DatabasePort(UserPort, InterviewPort, QuestionPort, MockSessionPort, ABC):
    """
    Aggregate port for CRUD operations against the data store.
    Inherits from domain-specific ports to strictly follow ISP.
    """
