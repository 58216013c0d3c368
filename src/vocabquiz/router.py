import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import APIRouter, Cookie, Depends, Form, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import settings
from .globals import ActiveSession, sessions, vocab_manager
from .parser import parse_vocabulary
from .quiz import QuizSession
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Request Models ---
class ParseRequest(BaseModel):
    text: str
    separator: Optional[str] = None


class CreateSetRequest(ParseRequest):
    name: str = ""
    source_file_name: Optional[str] = None


class RenameSetRequest(BaseModel):
    name: str


class AddWordRequest(BaseModel):
    word: str
    definition: str


# --- Dependencies ---
def get_vocab_manager() -> VocabularyManager:
    return vocab_manager


def get_session_registry() -> Dict[str, ActiveSession]:
    return sessions


def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return session_id


def get_active_session(
    session_id: Optional[str] = Depends(get_session_id),
    registry: Dict[str, ActiveSession] = Depends(get_session_registry),
) -> Optional[ActiveSession]:
    if not session_id or session_id not in registry:
        return None
    active = registry[session_id]
    if datetime.now() - active.created_at > timedelta(
        minutes=settings.SESSION_TIMEOUT_MINUTES
    ):
        del registry[session_id]
        logger.info(f"Session expired: {session_id}")
        return None
    return active


def clamp_options(number_of_options: int) -> int:
    return max(settings.MIN_OPTIONS, min(settings.MAX_OPTIONS, number_of_options))


def _invalid_session() -> JSONResponse:
    return JSONResponse({"error": "Session invalid"}, status_code=401)


def _question_payload(quiz: QuizSession) -> Dict[str, Any]:
    question = quiz.current_question
    payload: Dict[str, Any] = {
        "current_index": quiz.current_question_index,
        "total_questions": len(quiz.questions),
        "score": quiz.score,
        "is_complete": quiz.is_complete,
        "is_second_chance_round": quiz.is_second_chance_round,
        "question": None,
    }
    if question is not None:
        payload["question"] = {
            "word": question.word_text,
            "options": question.options,
            "user_answer_index": question.user_answer_index,
        }
    return payload


# --- Parsing & Sets ---
@router.post("/api/parse")
async def parse_text(body: ParseRequest):
    pairs = parse_vocabulary(body.text, body.separator)
    return [pair.model_dump() for pair in pairs]


@router.get("/api/sets")
async def list_sets(manager: VocabularyManager = Depends(get_vocab_manager)):
    return manager.get_sets()


@router.post("/api/sets", status_code=201)
async def create_set(
    body: CreateSetRequest, manager: VocabularyManager = Depends(get_vocab_manager)
):
    pairs = await run_in_threadpool(parse_vocabulary, body.text, body.separator)
    if not pairs:
        return JSONResponse(
            {
                "error": "No vocabulary words found. Please ensure your text "
                "contains word-definition pairs."
            },
            status_code=422,
        )
    vocab_set = manager.create_set(body.name, pairs, body.source_file_name)
    return vocab_set.model_dump(mode="json")


@router.get("/api/sets/{set_id}")
async def get_set(
    set_id: uuid.UUID, manager: VocabularyManager = Depends(get_vocab_manager)
):
    vocab_set = manager.get_set(set_id)
    if vocab_set is None:
        return JSONResponse({"error": "Set not found"}, status_code=404)
    return vocab_set.model_dump(mode="json")


@router.patch("/api/sets/{set_id}")
async def rename_set(
    set_id: uuid.UUID,
    body: RenameSetRequest,
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    if manager.get_set(set_id) is None:
        return JSONResponse({"error": "Set not found"}, status_code=404)
    vocab_set = manager.rename_set(set_id, body.name)
    return {"id": str(vocab_set.id), "name": vocab_set.name}


@router.delete("/api/sets/{set_id}")
async def delete_set(
    set_id: uuid.UUID, manager: VocabularyManager = Depends(get_vocab_manager)
):
    if not manager.delete_set(set_id):
        return JSONResponse({"error": "Set not found"}, status_code=404)
    return {"status": "success"}


@router.post("/api/sets/{set_id}/words", status_code=201)
async def add_word(
    set_id: uuid.UUID,
    body: AddWordRequest,
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    if manager.get_set(set_id) is None:
        return JSONResponse({"error": "Set not found"}, status_code=404)
    word = manager.add_word(set_id, body.word, body.definition)
    if word is None:
        return JSONResponse(
            {"error": "Word and definition must not be empty"}, status_code=400
        )
    return word.model_dump(mode="json")


@router.patch("/api/sets/{set_id}/words/{word_id}")
async def update_word(
    set_id: uuid.UUID,
    word_id: uuid.UUID,
    body: AddWordRequest,
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    if manager.find_word(set_id, word_id) is None:
        return JSONResponse({"error": "Word not found"}, status_code=404)
    word = manager.update_word(set_id, word_id, body.word, body.definition)
    if word is None:
        return JSONResponse(
            {"error": "Word and definition must not be empty"}, status_code=400
        )
    return word.model_dump(mode="json")


@router.delete("/api/sets/{set_id}/words/{word_id}")
async def delete_word(
    set_id: uuid.UUID,
    word_id: uuid.UUID,
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    if manager.get_set(set_id) is None or not manager.delete_word(set_id, word_id):
        return JSONResponse({"error": "Word not found"}, status_code=404)
    return {"status": "success"}


# --- Quiz ---
@router.post("/start")
async def start_quiz_session(
    set_id: uuid.UUID = Form(...),
    number_of_options: int = Form(settings.NUMBER_OF_OPTIONS),
    manager: VocabularyManager = Depends(get_vocab_manager),
    session_id: Optional[str] = Depends(get_session_id),
    registry: Dict[str, ActiveSession] = Depends(get_session_registry),
):
    if manager.get_set(set_id) is None:
        return JSONResponse({"error": "Set not found"}, status_code=404)

    number_of_options = clamp_options(number_of_options)
    quiz = QuizSession()
    ok = await run_in_threadpool(
        quiz.generate_quiz, manager.get_words(set_id), number_of_options
    )
    if not ok:
        return JSONResponse({"error": str(quiz.generation_error)}, status_code=422)

    if session_id:
        registry.pop(session_id, None)
    new_id = str(uuid.uuid4())
    registry[new_id] = ActiveSession(
        quiz=quiz, set_id=set_id, number_of_options=number_of_options
    )
    logger.info(f"New session: {new_id} [Set: {set_id}, Options: {number_of_options}]")

    response = JSONResponse(_question_payload(quiz))
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=new_id,
        httponly=True,
        samesite="Lax",
    )
    return response


@router.get("/api/quiz")
async def get_question_data(active: Optional[ActiveSession] = Depends(get_active_session)):
    if not active:
        return _invalid_session()
    return _question_payload(active.quiz)


@router.post("/submit_answer")
async def submit_answer(
    selected_option_index: int = Form(...),
    active: Optional[ActiveSession] = Depends(get_active_session),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    if not active:
        return _invalid_session()
    quiz = active.quiz
    question = quiz.current_question
    if question is None or quiz.is_complete:
        return JSONResponse({"error": "No question to answer"}, status_code=400)
    if question.user_answer_index is not None:
        return JSONResponse({"error": "Already answered"}, status_code=400)
    if not (0 <= selected_option_index < len(question.options)):
        return JSONResponse({"error": "Invalid option"}, status_code=400)

    word = manager.find_word(active.set_id, question.word_id)
    if word is None:
        return JSONResponse({"error": "Word no longer exists"}, status_code=404)

    is_correct = quiz.submit_answer(selected_option_index, word)
    return {
        "word": question.word_text,
        "user_answer": question.options[selected_option_index],
        "correct_answer": question.correct_definition,
        "correct_answer_index": question.correct_answer_index,
        "is_correct": is_correct,
    }


@router.post("/api/next")
async def next_question(active: Optional[ActiveSession] = Depends(get_active_session)):
    if not active:
        return _invalid_session()
    active.quiz.next_question()
    return _question_payload(active.quiz)


@router.post("/api/second_chance")
async def start_second_chance(
    active: Optional[ActiveSession] = Depends(get_active_session),
):
    if not active:
        return _invalid_session()
    quiz = active.quiz
    ok = await run_in_threadpool(
        quiz.start_second_chance_round, active.number_of_options
    )
    if not ok:
        return JSONResponse({"error": str(quiz.generation_error)}, status_code=422)
    return _question_payload(quiz)


@router.post("/api/restart")
async def restart_quiz(
    active: Optional[ActiveSession] = Depends(get_active_session),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    if not active:
        return _invalid_session()
    quiz = active.quiz
    quiz.reset()
    ok = await run_in_threadpool(
        quiz.generate_quiz, manager.get_words(active.set_id), active.number_of_options
    )
    if not ok:
        return JSONResponse({"error": str(quiz.generation_error)}, status_code=422)
    return _question_payload(quiz)


@router.get("/api/result")
async def get_result_data(active: Optional[ActiveSession] = Depends(get_active_session)):
    if not active:
        return _invalid_session()
    quiz = active.quiz
    return {
        "correct_count": quiz.score,
        "total_questions": len(quiz.questions),
        "score_percentage": quiz.score_percentage,
        "is_complete": quiz.is_complete,
        "is_second_chance_round": quiz.is_second_chance_round,
        "can_start_second_chance": quiz.can_start_second_chance,
        "incorrect_words": [
            {"word": w.word, "definition": w.definition} for w in quiz.incorrect_words
        ],
    }


@router.post("/api/reset")
async def reset_session(
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    registry: Dict[str, ActiveSession] = Depends(get_session_registry),
):
    active = registry.pop(session_id, None) if session_id else None
    if active is not None:
        active.quiz.reset()
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"status": "success"}
