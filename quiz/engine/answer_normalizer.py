"""Answer Normalizer - Forma canonica e comparacao de respostas por tipo."""

import math
import re
from typing import Any

from ..models.enums import FREE_TEXT_QUESTION_TYPES, QuestionType

OPTION_LETTERS = ["A", "B", "C", "D"]

_OPTION_PREFIX = re.compile(r"^([A-Da-d])\)")
_SINGLE_LETTER = re.compile(r"^[A-Da-d]$")


class AnswerNormalizer:
    """Normaliza e compara respostas dos nove tipos de questao.

    Formas canonicas:
        - multiple_choice_extended: letra A-D ("B) Paris" -> "B", 1 -> "B")
        - true_false_explained: bool ("true"/"t"/"1" -> True)
        - texto livre: string sem espacos nas pontas, minuscula
        - multi_part: lista de strings normalizadas

    Todas as normalizacoes sao idempotentes.

    Example:
        >>> AnswerNormalizer.compare_answers("B", "B) Paris", QuestionType.MULTIPLE_CHOICE_EXTENDED)
        True
    """

    # Fracao minima de palavras-chave em comum para texto livre
    TEXT_MATCH_THRESHOLD = 0.6

    # Respostas abaixo deste tamanho exigem igualdade exata
    MIN_FUZZY_LENGTH = 10

    # Palavras com ate este tamanho sao ignoradas na sobreposicao
    MIN_KEYWORD_LENGTH = 3

    PARTIAL_CREDIT_TYPES = frozenset({QuestionType.ESSAY_SHORT, QuestionType.SCENARIO_BASED})

    # =========================================================================
    # NORMALIZACAO
    # =========================================================================

    @classmethod
    def normalize_answer(cls, answer: Any, question_type: QuestionType | str) -> Any:
        """Reduz uma resposta a forma canonica do tipo.

        Args:
            answer: Resposta bruta (letra, indice, booleano, texto, lista)
            question_type: Tipo da questao

        Returns:
            Valor canonico, ou None se a resposta estiver vazia/irreconhecivel
        """
        if answer is None:
            return None

        qtype = QuestionType(question_type)

        if qtype == QuestionType.MULTIPLE_CHOICE_EXTENDED:
            return cls._normalize_multiple_choice(answer)
        if qtype == QuestionType.TRUE_FALSE_EXPLAINED:
            return cls._normalize_true_false(answer)
        if qtype == QuestionType.MULTI_PART:
            return cls._normalize_multi_part(answer)
        if qtype in FREE_TEXT_QUESTION_TYPES:
            return cls._normalize_text(answer)
        return answer

    @staticmethod
    def _normalize_multiple_choice(answer: Any) -> str | int | None:
        if isinstance(answer, bool):
            return None
        if isinstance(answer, int):
            # Indice 0-based -> letra
            if 0 <= answer < len(OPTION_LETTERS):
                return OPTION_LETTERS[answer]
            return answer
        if isinstance(answer, str):
            text = answer.strip()
            match = _OPTION_PREFIX.match(text)
            if match:
                return match.group(1).upper()
            if _SINGLE_LETTER.match(text):
                return text.upper()
            return text
        return None

    @staticmethod
    def _normalize_true_false(answer: Any) -> bool | None:
        if isinstance(answer, bool):
            return answer
        if isinstance(answer, int):
            if answer in (0, 1):
                return bool(answer)
            return None
        if isinstance(answer, str):
            value = answer.strip().lower()
            if value in ("true", "t", "1"):
                return True
            if value in ("false", "f", "0"):
                return False
        return None

    @staticmethod
    def _normalize_text(answer: Any) -> str:
        text = answer if isinstance(answer, str) else ("" if answer is None else str(answer))
        return " ".join(text.split()).lower()

    @classmethod
    def _normalize_multi_part(cls, answer: Any) -> list[str]:
        if isinstance(answer, (list, tuple)):
            return [cls._normalize_text(a) for a in answer]
        return []

    # =========================================================================
    # COMPARACAO
    # =========================================================================

    @classmethod
    def compare_answers(
        cls,
        user_answer: Any,
        correct_answer: Any,
        question_type: QuestionType | str,
        options: list[str] | None = None,
    ) -> bool:
        """Compara resposta do usuario com a correta apos normalizar ambas.

        Args:
            user_answer: Resposta do usuario
            correct_answer: Resposta correta
            question_type: Tipo da questao
            options: Alternativas (permite responder com o texto da opcao)

        Returns:
            True se a resposta e considerada correta
        """
        qtype = QuestionType(question_type)
        user = cls.normalize_answer(user_answer, qtype)
        correct = cls.normalize_answer(correct_answer, qtype)

        if user is None or correct is None:
            return False

        if qtype == QuestionType.MULTIPLE_CHOICE_EXTENDED:
            if options and isinstance(user, str) and user not in OPTION_LETTERS:
                user = cls._letter_for_option_text(user, options) or user
            return cls._compare_multiple_choice(user, correct)
        if qtype == QuestionType.TRUE_FALSE_EXPLAINED:
            return user is correct
        if qtype == QuestionType.MULTI_PART:
            return cls._compare_multi_part(user, correct)
        if qtype in FREE_TEXT_QUESTION_TYPES:
            return cls._compare_text(user, correct)
        return user == correct

    @staticmethod
    def _letter_for_option_text(text: str, options: list[str]) -> str | None:
        wanted = text.strip().lower()
        for index, option in enumerate(options):
            body = _OPTION_PREFIX.sub("", option.strip()).strip().lower()
            if body == wanted and index < len(OPTION_LETTERS):
                return OPTION_LETTERS[index]
        return None

    @staticmethod
    def _compare_multiple_choice(user: str | int, correct: str | int) -> bool:
        user_norm = str(user).strip().upper()
        correct_norm = str(correct).strip().upper()
        if user_norm == correct_norm:
            return True

        # Indice fora de A-D nao normalizado: mapear na mesma ordem A=0
        if isinstance(user, int) and isinstance(correct, str):
            return 0 <= user < len(OPTION_LETTERS) and OPTION_LETTERS[user] == correct_norm
        if isinstance(user, str) and isinstance(correct, int):
            return 0 <= correct < len(OPTION_LETTERS) and user_norm == OPTION_LETTERS[correct]
        return False

    @classmethod
    def _compare_text(cls, user: str, correct: str) -> bool:
        if len(user) < cls.MIN_FUZZY_LENGTH:
            return user == correct
        if user == correct:
            return True
        return cls.word_overlap_ratio(user, correct) >= cls.TEXT_MATCH_THRESHOLD

    @classmethod
    def _compare_multi_part(cls, user: list[str], correct: list[str]) -> bool:
        if not correct or len(user) != len(correct):
            return False
        return all(cls._compare_text(u, c) for u, c in zip(user, correct))

    # =========================================================================
    # SOBREPOSICAO DE PALAVRAS
    # =========================================================================

    @classmethod
    def _keywords(cls, text: str) -> list[str]:
        words = re.findall(r"[\w']+", text.lower())
        return [w for w in words if len(w) > cls.MIN_KEYWORD_LENGTH]

    @staticmethod
    def _words_match(correct_word: str, user_word: str) -> bool:
        # Contencao em qualquer direcao ("reduce" ~ "reduces")
        return correct_word in user_word or user_word in correct_word

    @classmethod
    def word_overlap_ratio(cls, user_text: str, correct_text: str) -> float:
        """Fracao de palavras-chave em comum entre as duas respostas.

        Conta as palavras da resposta correta (mais de 3 letras) encontradas
        por contencao nas palavras-chave do usuario. O divisor e o menor dos
        dois conjuntos, mas nunca menos que metade das palavras da resposta
        correta: uma unica palavra-chave nao cobre uma resposta longa.
        """
        correct_words = cls._keywords(correct_text)
        user_words = cls._keywords(user_text)
        if not correct_words or not user_words:
            return 0.0

        matched = sum(
            1 for word in correct_words if any(cls._words_match(word, u) for u in user_words)
        )
        denominator = max(
            min(len(correct_words), len(user_words)), math.ceil(len(correct_words) / 2)
        )
        return min(matched / denominator, 1.0)

    @classmethod
    def calculate_partial_score(
        cls, user_answer: Any, correct_answer: Any, question_type: QuestionType | str
    ) -> float:
        """Credito parcial (0.0-1.0).

        Respostas corretas valem 1.0. Apenas essay_short e scenario_based
        recebem credito proporcional a sobreposicao; os demais tipos valem 0.0
        quando errados.
        """
        qtype = QuestionType(question_type)
        if cls.compare_answers(user_answer, correct_answer, qtype):
            return 1.0

        if qtype in cls.PARTIAL_CREDIT_TYPES:
            user_text = cls._normalize_text(user_answer)
            correct_text = cls._normalize_text(correct_answer)
            if not user_text:
                return 0.0
            return round(cls.word_overlap_ratio(user_text, correct_text), 4)

        return 0.0

    # =========================================================================
    # EXIBICAO
    # =========================================================================

    @classmethod
    def format_answer_for_display(
        cls, answer: Any, question_type: QuestionType | str, options: list[str] | None = None
    ) -> str:
        """Formata resposta para a tela de resultados."""
        if answer is None:
            return "Not answered"

        qtype = QuestionType(question_type)

        if qtype == QuestionType.MULTIPLE_CHOICE_EXTENDED:
            letter = cls._normalize_multiple_choice(answer)
            if options and isinstance(letter, str) and len(letter) == 1:
                for option in options:
                    if option.startswith(f"{letter})"):
                        return option
            return str(answer)

        if qtype == QuestionType.TRUE_FALSE_EXPLAINED:
            if answer is True:
                return "True"
            if answer is False:
                return "False"
            return str(answer)

        if qtype == QuestionType.MULTI_PART and isinstance(answer, (list, tuple)):
            return "\n".join(f"{i + 1}. {a}" for i, a in enumerate(answer))

        return str(answer)
