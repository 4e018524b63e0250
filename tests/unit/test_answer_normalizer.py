# =============================================================================
# TESTES - Answer Normalizer
# =============================================================================
# Normalizacao e comparacao de respostas dos nove tipos de questao
# =============================================================================

import pytest

from quiz.engine.answer_normalizer import AnswerNormalizer
from quiz.models.enums import QuestionType

MC = QuestionType.MULTIPLE_CHOICE_EXTENDED
TF = QuestionType.TRUE_FALSE_EXPLAINED
ESSAY = QuestionType.ESSAY_SHORT


class TestNormalizeMultipleChoice:
    """Multipla escolha vira letra A-D."""

    @pytest.mark.parametrize(
        "answer,expected",
        [("B) Paris", "B"), ("b", "B"), (" C ", "C"), (0, "A"), (3, "D"), ("a) text", "A")],
    )
    def test_forms_reduce_to_letter(self, answer, expected):
        assert AnswerNormalizer.normalize_answer(answer, MC) == expected

    def test_none_stays_none(self):
        assert AnswerNormalizer.normalize_answer(None, MC) is None

    def test_bool_is_not_a_choice(self):
        assert AnswerNormalizer.normalize_answer(True, MC) is None

    def test_idempotent(self):
        once = AnswerNormalizer.normalize_answer("B) Paris", MC)
        assert AnswerNormalizer.normalize_answer(once, MC) == once


class TestIdempotence:
    """normalize(normalize(x)) == normalize(x) para os nove tipos."""

    @pytest.mark.parametrize(
        "question_type,answer",
        [
            (QuestionType.MULTIPLE_CHOICE_EXTENDED, "b) Paris"),
            (QuestionType.TRUE_FALSE_EXPLAINED, " T "),
            (QuestionType.SCENARIO_BASED, "  Call The   Manager "),
            (QuestionType.VISUAL_INTERPRETATION, "Sales PEAK in June"),
            (QuestionType.MULTI_PART, [" First  Part", "SECOND part "]),
            (QuestionType.DIAGRAM_LABELING, " Left Ventricle "),
            (QuestionType.CHART_ANALYSIS, "Revenue   doubles"),
            (QuestionType.COMPARISON, "Mitosis MAKES two cells"),
            (QuestionType.ESSAY_SHORT, "\tGlucose and  Oxygen\n"),
        ],
    )
    def test_normalize_twice_is_stable(self, question_type, answer):
        once = AnswerNormalizer.normalize_answer(answer, question_type)

        assert once is not None
        assert AnswerNormalizer.normalize_answer(once, question_type) == once

    def test_covers_every_type(self):
        assert len(list(QuestionType)) == 9


class TestNormalizeTrueFalse:
    """Verdadeiro/falso vira booleano."""

    @pytest.mark.parametrize("answer", ["true", "T", "1", True, 1, " TRUE "])
    def test_truthy_forms(self, answer):
        assert AnswerNormalizer.normalize_answer(answer, TF) is True

    @pytest.mark.parametrize("answer", ["false", "f", "0", False, 0])
    def test_falsy_forms(self, answer):
        assert AnswerNormalizer.normalize_answer(answer, TF) is False

    def test_unrecognized_is_none(self):
        assert AnswerNormalizer.normalize_answer("maybe", TF) is None


class TestNormalizeText:
    """Texto livre: trim + minusculas + espacos colapsados."""

    def test_free_text(self):
        assert AnswerNormalizer.normalize_answer("  Hello   World ", ESSAY) == "hello world"

    def test_diagram_labeling_is_free_text(self):
        result = AnswerNormalizer.normalize_answer(" Left Ventricle ", QuestionType.DIAGRAM_LABELING)
        assert result == "left ventricle"

    def test_multi_part_list(self):
        result = AnswerNormalizer.normalize_answer([" A ", "B b"], QuestionType.MULTI_PART)
        assert result == ["a", "b b"]


class TestCompareAnswers:
    """Comparacao apos normalizacao."""

    def test_letter_matches_prefixed_option(self):
        assert AnswerNormalizer.compare_answers("B", "B) Paris", MC) is True

    def test_index_matches_letter(self):
        assert AnswerNormalizer.compare_answers(1, "B", MC) is True

    def test_option_text_matches_letter(self):
        options = ["A) Rome", "B) Paris", "C) Madrid"]
        assert AnswerNormalizer.compare_answers("Paris", "B", MC, options) is True

    def test_wrong_letter(self):
        assert AnswerNormalizer.compare_answers("A", "B", MC) is False

    def test_true_false_string_vs_bool(self):
        assert AnswerNormalizer.compare_answers("true", True, TF) is True
        assert AnswerNormalizer.compare_answers("false", True, TF) is False

    def test_unanswered_is_wrong(self):
        assert AnswerNormalizer.compare_answers(None, "B", MC) is False

    def test_paraphrase_accepted(self):
        """Sobreposicao de 2/3 das palavras-chave basta."""
        assert AnswerNormalizer.compare_answers(
            "it helps reduce cost", "reduces operational cost significantly", ESSAY
        ) is True

    def test_unrelated_text_rejected(self):
        assert AnswerNormalizer.compare_answers(
            "the weather is lovely today", "reduces operational cost significantly", ESSAY
        ) is False

    def test_single_keyword_does_not_cover_long_answer(self):
        """1 de 11 palavras-chave nao e acerto nem credito integral."""
        correct = (
            "photosynthesis converts light energy into chemical energy "
            "stored inside glucose molecules"
        )

        assert AnswerNormalizer.compare_answers("the photosynthesis", correct, ESSAY) is False
        assert AnswerNormalizer.calculate_partial_score("the photosynthesis", correct, ESSAY) < 0.6

    def test_overlap_ratio_uses_correct_answer_size(self):
        ratio = AnswerNormalizer.word_overlap_ratio(
            "it helps reduce cost", "reduces operational cost significantly"
        )

        assert ratio == pytest.approx(2 / 3)
        assert AnswerNormalizer.word_overlap_ratio(
            "photosynthesis", "photosynthesis makes glucose from water and sunlight"
        ) == pytest.approx(1 / 3)

    def test_short_answer_requires_exact(self):
        assert AnswerNormalizer.compare_answers("cost", "costs", ESSAY) is False
        assert AnswerNormalizer.compare_answers("Cost ", "cost", ESSAY) is True

    def test_multi_part_all_parts(self):
        correct = ["photosynthesis makes glucose", "respiration releases energy"]
        user = ["Photosynthesis makes glucose", "respiration releases energy"]
        assert AnswerNormalizer.compare_answers(user, correct, QuestionType.MULTI_PART) is True
        assert AnswerNormalizer.compare_answers(user[:1], correct, QuestionType.MULTI_PART) is False


class TestPartialScore:
    """Credito parcial apenas para essay_short e scenario_based."""

    def test_correct_is_full_credit(self):
        assert AnswerNormalizer.calculate_partial_score("B", "B", MC) == 1.0

    def test_wrong_choice_is_zero(self):
        assert AnswerNormalizer.calculate_partial_score("A", "B", MC) == 0.0

    def test_essay_partial_overlap(self):
        """1 de 4 palavras-chave em comum."""
        score = AnswerNormalizer.calculate_partial_score(
            "plants need sunlight badly", "plants produce glucose oxygen water energy", ESSAY
        )
        assert score == 0.25

    def test_comparison_gets_no_partial_credit(self):
        score = AnswerNormalizer.calculate_partial_score(
            "totally different answer here", "photosynthesis versus respiration", QuestionType.COMPARISON
        )
        assert score == 0.0


class TestFormatForDisplay:
    """Textos da tela de resultados."""

    def test_not_answered(self):
        assert AnswerNormalizer.format_answer_for_display(None, MC) == "Not answered"

    def test_option_text_shown(self):
        options = ["A) Rome", "B) Paris"]
        assert AnswerNormalizer.format_answer_for_display("B", MC, options) == "B) Paris"

    def test_boolean(self):
        assert AnswerNormalizer.format_answer_for_display(True, TF) == "True"
        assert AnswerNormalizer.format_answer_for_display(False, TF) == "False"

    def test_multi_part_numbered(self):
        result = AnswerNormalizer.format_answer_for_display(["x", "y"], QuestionType.MULTI_PART)
        assert result == "1. x\n2. y"
