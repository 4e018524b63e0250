"""Quiz Scoring Engine - Pontuacao de sessoes e analise de desempenho."""

from dataclasses import dataclass, field
from typing import Any

from ..models.schemas import Question, QuestionResult
from .answer_normalizer import AnswerNormalizer


@dataclass
class SessionScore:
    """Resultado da pontuacao de uma sessao."""

    score: float
    correct_count: int
    total_questions: int
    results: list[QuestionResult] = field(default_factory=list)
    category_breakdown: dict[str, dict[str, Any]] = field(default_factory=dict)
    fallback_count: int = 0

    @property
    def category_scores(self) -> dict[str, float]:
        """Percentual por categoria."""
        return {name: data["percentage"] for name, data in self.category_breakdown.items()}


class QuizScoringEngine:
    """Motor de pontuacao para quizzes avancados.

    Cada questao vale o mesmo; o score e o percentual de acertos. O credito
    parcial (essay_short, scenario_based) e reportado por questao mas nao
    altera o acerto.

    Faixas de analise:
        - >= 80%: ponto forte
        - < 60%: ponto fraco (vira topico recomendado, ate 3)

    Example:
        >>> engine = QuizScoringEngine()
        >>> result = engine.score_session(questions, ["B", True, None])
        >>> result.score
        66.7
    """

    STRENGTH_THRESHOLD = 80
    WEAKNESS_THRESHOLD = 60
    MAX_RECOMMENDED_TOPICS = 3

    def evaluate_answer(self, question: Question, user_answer: Any) -> QuestionResult:
        """Avalia uma resposta individual.

        Args:
            question: Questao respondida
            user_answer: Resposta bruta do usuario (None = nao respondida)

        Returns:
            QuestionResult com acerto, credito parcial e textos de exibicao
        """
        is_correct = user_answer is not None and AnswerNormalizer.compare_answers(
            user_answer, question.correct_answer, question.type, question.options
        )
        partial = (
            AnswerNormalizer.calculate_partial_score(
                user_answer, question.correct_answer, question.type
            )
            if user_answer is not None
            else 0.0
        )
        if is_correct:
            partial = max(partial, 1.0)

        return QuestionResult(
            question_id=question.id,
            is_correct=is_correct,
            partial_score=round(min(partial, 1.0), 4),
            user_answer=AnswerNormalizer.format_answer_for_display(
                user_answer, question.type, question.options
            ),
            correct_answer=AnswerNormalizer.format_answer_for_display(
                question.correct_answer, question.type, question.options
            ),
        )

    def score_session(self, questions: list[Question], answers: list[Any]) -> SessionScore:
        """Calcula pontuacao completa da sessao.

        Args:
            questions: Questoes do quiz
            answers: Respostas (lista paralela, None para nao respondidas)

        Returns:
            SessionScore com score, acertos e breakdown por categoria

        Raises:
            ValueError: Se o numero de respostas diferir do de questoes
        """
        if len(questions) != len(answers):
            raise ValueError(
                f"Numero de respostas ({len(answers)}) diferente do numero de questoes ({len(questions)})"
            )

        results: list[QuestionResult] = []
        breakdown: dict[str, dict[str, Any]] = {}
        correct_count = 0

        for question, answer in zip(questions, answers):
            result = self.evaluate_answer(question, answer)
            results.append(result)
            if result.is_correct:
                correct_count += 1

            for category in question.metadata.categories or ["General"]:
                entry = breakdown.setdefault(category, {"correct": 0, "total": 0})
                entry["total"] += 1
                if result.is_correct:
                    entry["correct"] += 1

        for entry in breakdown.values():
            entry["percentage"] = round(entry["correct"] / entry["total"] * 100, 1)

        total = len(questions)
        score = round(correct_count / total * 100, 1) if total else 0.0

        return SessionScore(
            score=score,
            correct_count=correct_count,
            total_questions=total,
            results=results,
            category_breakdown=breakdown,
            fallback_count=sum(1 for q in questions if q.is_fallback),
        )

    def analyze_performance(self, sessions: list[dict[str, Any]]) -> dict[str, Any]:
        """Agrega desempenho por categoria a partir de sessoes salvas.

        Args:
            sessions: Registros de sessao (score e category_scores)

        Returns:
            Dict com medias por categoria, pontos fortes/fracos,
            topicos recomendados e progresso geral
        """
        if not sessions:
            return {
                "sessions_analyzed": 0,
                "category_averages": {},
                "strengths": [],
                "weaknesses": [],
                "recommended_topics": [],
                "overall_progress": 0.0,
            }

        per_category: dict[str, list[float]] = {}
        total_score = 0.0
        for session in sessions:
            total_score += float(session.get("score") or 0)
            for category, value in (session.get("category_scores") or {}).items():
                per_category.setdefault(category, []).append(float(value))

        averages = {
            category: round(sum(values) / len(values), 1)
            for category, values in per_category.items()
        }
        strengths = [c for c, avg in averages.items() if avg >= self.STRENGTH_THRESHOLD]
        weaknesses = [c for c, avg in averages.items() if avg < self.WEAKNESS_THRESHOLD]

        return {
            "sessions_analyzed": len(sessions),
            "category_averages": averages,
            "strengths": strengths,
            "weaknesses": weaknesses,
            "recommended_topics": weaknesses[: self.MAX_RECOMMENDED_TOPICS],
            "overall_progress": round(total_score / len(sessions), 1),
        }
