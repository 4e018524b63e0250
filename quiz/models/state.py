"""Quiz State - Snapshot de quiz em andamento (retomavel)."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .schemas import Question, QuizConfig


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class QuizProgress:
    """Estado de um quiz em andamento.

    Attributes:
        quiz_id: ID do quiz
        config: Configuracao usada na geracao
        questions: Questoes geradas
        answers: Respostas paralelas as questoes (None = nao respondida)
        question_index: Questao atual (0-based)
        elapsed_seconds: Tempo decorrido
        start_time: Inicio do quiz (ISO)
        last_saved: Ultimo salvamento (ISO)
    """

    quiz_id: str
    config: QuizConfig
    questions: list[Question] = field(default_factory=list)
    answers: list[Any] = field(default_factory=list)
    question_index: int = 0
    elapsed_seconds: int = 0
    start_time: str = field(default_factory=_now_iso)
    last_saved: str = field(default_factory=_now_iso)

    def __post_init__(self) -> None:
        # Uma resposta por questao
        if len(self.answers) < len(self.questions):
            self.answers = self.answers + [None] * (len(self.questions) - len(self.answers))

    @property
    def answered_count(self) -> int:
        return sum(1 for a in self.answers if a is not None)

    @property
    def is_complete(self) -> bool:
        return bool(self.questions) and self.answered_count == len(self.questions)

    def record_answer(self, index: int, answer: Any) -> None:
        """Registra resposta da questao `index`."""
        if index < 0 or index >= len(self.questions):
            raise IndexError(f"Questao {index} fora do intervalo")
        self.answers[index] = answer
        self.question_index = min(index + 1, len(self.questions) - 1)

    def touch(self) -> None:
        """Atualiza timestamp de salvamento."""
        self.last_saved = _now_iso()

    def to_dict(self) -> dict[str, Any]:
        """Converte para dicionario (para persistencia)."""
        return {
            "quiz_id": self.quiz_id,
            "config": self.config.model_dump(mode="json"),
            "questions": [q.model_dump(mode="json") for q in self.questions],
            "answers": self.answers,
            "question_index": self.question_index,
            "elapsed_seconds": self.elapsed_seconds,
            "start_time": self.start_time,
            "last_saved": self.last_saved,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuizProgress":
        """Cria instancia a partir de dicionario."""
        return cls(
            quiz_id=data["quiz_id"],
            config=QuizConfig(**data["config"]),
            questions=[Question(**q) for q in data.get("questions", [])],
            answers=list(data.get("answers", [])),
            question_index=data.get("question_index", 0),
            elapsed_seconds=data.get("elapsed_seconds", 0),
            start_time=data.get("start_time") or _now_iso(),
            last_saved=data.get("last_saved") or _now_iso(),
        )
