import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.core.config import AppConfig, load_config
from src.core.exceptions import DuplicateSubmission, NotFoundError, ValidationError
from src.core.logging_config import configure_logging
from src.storage.json_store import QuizJsonStore
from src.services.leaderboard import question_report, rank_results
from src.services.quizzes import create_quiz, join_quiz
from src.services.submissions import submit_answers
from src.api.schemas import (
    JoinIn,
    JoinOut,
    LeaderboardEntryOut,
    QuestionReportOut,
    QuizIn,
    QuizMetaOut,
    QuizOut,
    SubmissionIn,
    SubmissionOut,
)

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "System", "description": "System and service endpoints"},
    {"name": "Quizzes", "description": "Quiz creation and retrieval endpoints"},
    {"name": "Play", "description": "Joining, submitting answers and reading results"},
]


# PUBLIC_INTERFACE
def get_store(request: Request) -> QuizJsonStore:
    """Return the store created for this application instance."""
    return request.app.state.store


def _require_quiz(store: QuizJsonStore, quiz_id: str) -> dict:
    quiz = store.get_quiz(quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(DuplicateSubmission)
    async def _duplicate(request: Request, exc: DuplicateSubmission):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def _invalid(request: Request, exc: ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def _internal(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def _register_routes(app: FastAPI) -> None:
    @app.get("/", summary="Health Check", tags=["System"])
    def health_check(store: QuizJsonStore = Depends(get_store)):
        """
        Health check endpoint.

        Returns:
            JSON payload with a simple 'Healthy' message and the current data file path.
        """
        # Load ensures file exists with default structure
        _ = store.load_all()
        return {"message": "Healthy", "data_file": store.path}

    @app.post(
        "/quizzes",
        response_model=QuizOut,
        status_code=status.HTTP_201_CREATED,
        summary="Create a quiz or poll",
        tags=["Quizzes"],
    )
    def create_quiz_endpoint(quiz_in: QuizIn, store: QuizJsonStore = Depends(get_store)) -> QuizOut:
        """
        Create and persist a quiz.

        Question ids are generated by the server and timers are clamped into [5, 300] seconds.
        """
        quiz = create_quiz(
            store,
            title=quiz_in.title,
            questions=[q.model_dump() for q in quiz_in.questions],
            quiz_type=quiz_in.type,
            theme=quiz_in.theme,
        )
        return QuizOut(**quiz)

    @app.get(
        "/quizzes",
        response_model=List[QuizMetaOut],
        summary="List quizzes",
        description="Returns quiz metadata with question and participant counts, newest first.",
        tags=["Quizzes"],
    )
    def list_quizzes(store: QuizJsonStore = Depends(get_store)) -> List[QuizMetaOut]:
        participants = store.count_participants()
        metas = [
            QuizMetaOut(
                id=q.get("id", ""),
                title=q.get("title", ""),
                type=q.get("type", "quiz"),
                theme=q.get("theme", "blue"),
                created_at=q.get("created_at", ""),
                question_count=len(q.get("questions", []) or []),
                participants=participants.get(str(q.get("id", "")), 0),
            )
            for q in store.list_quizzes()
        ]
        metas.sort(key=lambda m: m.created_at, reverse=True)
        return metas

    @app.get("/quizzes/{quiz_id}", response_model=QuizOut, summary="Get quiz by id", tags=["Quizzes"])
    def get_quiz(quiz_id: str, store: QuizJsonStore = Depends(get_store)) -> QuizOut:
        """
        Retrieve a single quiz by identifier.

        Raises:
            HTTPException 404 if the quiz is not found.
        """
        return QuizOut(**_require_quiz(store, quiz_id))

    @app.delete(
        "/quizzes/{quiz_id}",
        summary="Delete a quiz",
        description="Deletes the quiz together with its players and responses.",
        tags=["Quizzes"],
    )
    def delete_quiz(quiz_id: str, store: QuizJsonStore = Depends(get_store)):
        if not store.delete_quiz(quiz_id):
            raise HTTPException(status_code=404, detail="Quiz not found")
        logger.info("Deleted quiz %s", quiz_id)
        return {"message": "Quiz deleted successfully"}

    @app.post("/quizzes/{quiz_id}/join", response_model=JoinOut, summary="Join a quiz", tags=["Play"])
    def join(quiz_id: str, join_in: JoinIn, store: QuizJsonStore = Depends(get_store)) -> JoinOut:
        player = join_quiz(store, quiz_id, join_in.name)
        return JoinOut(player_id=player["id"])

    @app.post("/quizzes/{quiz_id}/submit", response_model=SubmissionOut, summary="Submit answers", tags=["Play"])
    def submit(quiz_id: str, submission: SubmissionIn, store: QuizJsonStore = Depends(get_store)) -> SubmissionOut:
        """
        Score and store a player's answers.

        Responds 404 for an unknown quiz or player, 400 for malformed answers
        and 409 when the player has already submitted.
        """
        response = submit_answers(
            store,
            quiz_id=quiz_id,
            player_id=submission.player_id,
            answers=[a.model_dump() for a in submission.answers],
        )
        return SubmissionOut(score=response["score"])

    @app.get(
        "/quizzes/{quiz_id}/results",
        response_model=List[LeaderboardEntryOut],
        summary="Ranked results",
        description="Leaderboard ranked by combined score. Clients poll this endpoint for live updates.",
        tags=["Play"],
    )
    def results(quiz_id: str, store: QuizJsonStore = Depends(get_store)):
        quiz = _require_quiz(store, quiz_id)
        return rank_results(quiz, store.find_responses_by_quiz(quiz_id), store.find_players_by_quiz(quiz_id))

    @app.get(
        "/quizzes/{quiz_id}/report",
        response_model=List[QuestionReportOut],
        summary="Per-question report",
        description="Option distribution and correctness of every question.",
        tags=["Play"],
    )
    def report(quiz_id: str, store: QuizJsonStore = Depends(get_store)):
        quiz = _require_quiz(store, quiz_id)
        return question_report(quiz, store.find_responses_by_quiz(quiz_id))


# PUBLIC_INTERFACE
def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    Build the FastAPI application.

    This is the composition root: configuration is read once here (or passed
    in) and the store is created from it. Serve with
    `uvicorn --factory src.api.main:create_app`.

    Raises:
        ConfigError: If no config is given and required environment variables are missing.
    """
    if config is None:
        config = load_config()
    configure_logging(config.log_level)

    app = FastAPI(
        title="Quizboard Backend",
        description="Backend service for creating quizzes and polls, collecting answers and ranking players.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.config = config
    app.state.store = QuizJsonStore(path=config.data_file)

    # CORS configuration to allow frontend integration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    _register_routes(app)
    logger.info("Quizboard backend ready, data file %s", app.state.store.path)
    return app
