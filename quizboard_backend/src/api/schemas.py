from typing import List, Literal, Optional
from pydantic import BaseModel, Field, model_validator

QuizType = Literal["quiz", "poll"]
Theme = Literal["blue", "purple", "green", "orange", "pink"]


# PUBLIC_INTERFACE
class QuestionIn(BaseModel):
    """A question as submitted by the quiz creator."""
    text: str = Field(..., min_length=1, description="Question prompt text.")
    options: List[str] = Field(..., min_length=2, description="Answer options, at least two.")
    correct_answer: int = Field(default=0, ge=0, description="Index of the correct option (0-based). Ignored for polls.")
    timer: Optional[int] = Field(default=None, description="Time limit in seconds; defaults to 30 and is clamped into [5, 300].")

    @model_validator(mode="after")
    def _correct_answer_in_range(self) -> "QuestionIn":
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer must index into options")
        if any(not o.strip() for o in self.options):
            raise ValueError("options must not be blank")
        return self


# PUBLIC_INTERFACE
class QuizIn(BaseModel):
    """Input model for creating a quiz or poll."""
    title: str = Field(..., min_length=1, description="Title of the quiz.")
    type: QuizType = Field(default="quiz", description="'quiz' is scored, 'poll' only collects votes.")
    theme: Theme = Field(default="blue", description="Presentation theme name.")
    questions: List[QuestionIn] = Field(..., min_length=1, description="Ordered questions, at least one.")


# PUBLIC_INTERFACE
class QuizQuestion(BaseModel):
    """A stored multiple-choice question."""
    id: str = Field(..., description="Identifier for the question within the quiz.")
    text: str = Field(..., description="Question prompt text.")
    options: List[str] = Field(..., description="Answer options.")
    correct_answer: int = Field(..., description="Index of the correct option within the options list (0-based).")
    timer: int = Field(..., description="Time limit in seconds.")


# PUBLIC_INTERFACE
class QuizOut(BaseModel):
    """Full quiz payload returned after creation or retrieval."""
    id: str = Field(..., description="Unique identifier for the quiz.")
    title: str = Field(..., description="Title of the quiz.")
    type: QuizType = Field(..., description="Quiz or poll.")
    theme: Theme = Field(..., description="Presentation theme name.")
    created_at: str = Field(..., description="Creation timestamp (ISO-8601, UTC).")
    questions: List[QuizQuestion] = Field(..., description="Ordered quiz questions.")


# PUBLIC_INTERFACE
class QuizMetaOut(BaseModel):
    """Metadata view of a quiz for listing endpoints."""
    id: str = Field(..., description="Unique identifier for the quiz.")
    title: str = Field(..., description="Title of the quiz.")
    type: QuizType = Field(..., description="Quiz or poll.")
    theme: Theme = Field(..., description="Presentation theme name.")
    created_at: str = Field(..., description="Creation timestamp (ISO-8601, UTC).")
    question_count: int = Field(..., description="Number of questions contained in the quiz.")
    participants: int = Field(..., description="Number of players who submitted answers.")


# PUBLIC_INTERFACE
class JoinIn(BaseModel):
    """Input model for joining a quiz."""
    name: str = Field(..., min_length=1, max_length=100, description="Display name of the player.")

    @model_validator(mode="after")
    def _name_not_blank(self) -> "JoinIn":
        if not self.name.strip():
            raise ValueError("name must not be blank")
        return self


# PUBLIC_INTERFACE
class JoinOut(BaseModel):
    """Identifier handed to a player after joining."""
    player_id: str = Field(..., description="Identifier to submit answers with.")


# PUBLIC_INTERFACE
class AnswerIn(BaseModel):
    """A single answer inside a submission."""
    question_id: str = Field(..., description="Identifier of the answered question.")
    selected_option: int = Field(..., ge=-1, description="Selected option index, or -1 for an unanswered poll question.")
    response_time: float = Field(default=0.0, ge=0, description="Seconds taken to answer.")


# PUBLIC_INTERFACE
class SubmissionIn(BaseModel):
    """Input model for submitting answers."""
    player_id: str = Field(..., description="Identifier received when joining.")
    answers: List[AnswerIn] = Field(..., description="Answers given by the player.")


# PUBLIC_INTERFACE
class SubmissionOut(BaseModel):
    """Result of an accepted submission."""
    score: int = Field(..., description="Number of correct answers.")


# PUBLIC_INTERFACE
class PlayerOut(BaseModel):
    """Player details shown on the leaderboard."""
    id: str
    name: str
    quiz_id: str
    score: int = 0
    joined_at: Optional[str] = None


# PUBLIC_INTERFACE
class LeaderboardEntryOut(BaseModel):
    """One ranked row of the results leaderboard."""
    player: PlayerOut
    score: int = Field(..., description="Number of correct answers.")
    average_response_time: float = Field(..., description="Average response time in seconds.")
    fastest_response: Optional[float] = Field(..., description="Fastest response in seconds; null when no answer was timed.")
    total_questions: int = Field(..., description="Number of questions in the quiz.")
    time_efficiency: str = Field(..., description="Speed relative to the allotted time, e.g. '75.0%'.")
    combined_score: float = Field(..., description="80% accuracy plus 20% time efficiency, used for ranking.")


# PUBLIC_INTERFACE
class OptionCountOut(BaseModel):
    """How often one option was chosen."""
    index: int
    text: str
    count: int


# PUBLIC_INTERFACE
class QuestionReportOut(BaseModel):
    """Answer distribution of one question."""
    question_id: str
    text: str
    options: List[OptionCountOut]
    answered: int = Field(..., description="Number of responses that picked a valid option.")
    correct_count: Optional[int] = Field(..., description="Correct answers; null for polls.")
    correct_percentage: Optional[float] = Field(..., description="Share of correct answers; null for polls or when unanswered.")
