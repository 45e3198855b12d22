"""
API package initialization.

Exports shared schema models for external use.
"""

# Re-export commonly used schema models
from .schemas import (  # noqa: F401
    QuizIn,
    QuizOut,
    QuizMetaOut,
    JoinIn,
    JoinOut,
    SubmissionIn,
    SubmissionOut,
    LeaderboardEntryOut,
    QuestionReportOut,
)
