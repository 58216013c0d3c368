import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict

from .config import settings
from .quiz import QuizSession
from .vocabulary import VocabularyManager


@dataclass
class ActiveSession:
    quiz: QuizSession
    set_id: uuid.UUID
    number_of_options: int
    created_at: datetime = field(default_factory=datetime.now)


vocab_manager = VocabularyManager(settings.VOCAB_DIR)
sessions: Dict[str, ActiveSession] = {}
