"""Normalização de registros de quiz com formatos heterogêneos."""

from typing import Any

from core.logger import get_logger

logger = get_logger("quiz_data_normalizer")

NOT_ANSWERED = "Not answered"
UNKNOWN_ANSWER = "Unknown"

# Ordem de busca da resposta correta em registros antigos
CORRECT_ANSWER_KEYS = ("correct_answer", "correctAnswer", "answer", "correct")


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class QuizDataNormalizer:
    """Converte registros de quiz (atuais e legados) em formato uniforme.

    Questões: lista, {"questions": [...]} ou {"data": [...]}.
    Respostas: lista, {"answers": [...]} ou dict com chaves numéricas.
    """

    @classmethod
    def normalize_record(cls, record: dict[str, Any] | None) -> dict[str, Any] | None:
        """Registro completo -> {questions, user_answers, items, score, time_spent}."""
        if not record:
            return None

        questions = cls.normalize_questions(record.get("questions"))
        answers = cls.normalize_answers(record.get("answers"))

        items = []
        for index, question in enumerate(questions):
            user_answer = answers[index] if index < len(answers) else NOT_ANSWERED
            items.append(
                {
                    **question,
                    "user_answer": user_answer,
                    "is_correct": cls.is_answer_correct(user_answer, question["correct_answer"]),
                }
            )

        return {
            "questions": questions,
            "user_answers": answers,
            "items": items,
            "score": record.get("score") or 0,
            "time_spent": record.get("time_spent") or record.get("time_spent_minutes") or 0,
        }

    @classmethod
    def normalize_questions(cls, data: Any) -> list[dict[str, Any]]:
        if not data:
            return []
        if isinstance(data, list):
            items = data
        elif isinstance(data, dict) and isinstance(data.get("questions"), list):
            items = data["questions"]
        elif isinstance(data, dict) and "data" in data:
            items = data["data"] if isinstance(data["data"], list) else []
        else:
            logger.warning("Formato de questões não reconhecido", kind=type(data).__name__)
            return []
        return [cls.normalize_question(q, i) for i, q in enumerate(items)]

    @staticmethod
    def normalize_question(question: Any, index: int) -> dict[str, Any]:
        if not isinstance(question, dict):
            return {
                "question": f"Question {index + 1} (data unavailable)",
                "options": None,
                "correct_answer": UNKNOWN_ANSWER,
                "explanation": None,
            }

        # Primeira chave presente vence, mesmo que o valor seja False
        correct = UNKNOWN_ANSWER
        for key in CORRECT_ANSWER_KEYS:
            if question.get(key) is not None:
                correct = question[key]
                break

        return {
            "question": question.get("question") or question.get("text") or f"Question {index + 1}",
            "options": question["options"] if isinstance(question.get("options"), list) else None,
            "correct_answer": _as_text(correct),
            "explanation": question.get("explanation") or question.get("rationale"),
        }

    @staticmethod
    def normalize_answers(data: Any) -> list[str]:
        if not data:
            return []
        if isinstance(data, list):
            return [NOT_ANSWERED if a is None else _as_text(a) for a in data]
        if isinstance(data, dict) and isinstance(data.get("answers"), list):
            return [NOT_ANSWERED if a is None else _as_text(a) for a in data["answers"]]
        if isinstance(data, dict):
            numeric = sorted((k for k in data if str(k).lstrip("-").isdigit()), key=lambda k: int(k))
            return [NOT_ANSWERED if data[k] is None else _as_text(data[k]) for k in numeric]
        return []

    @staticmethod
    def is_answer_correct(user_answer: str, correct_answer: str) -> bool:
        if not user_answer or not correct_answer or user_answer == NOT_ANSWERED:
            return False
        return user_answer.strip().lower() == correct_answer.strip().lower()
