import itertools
import math
import unittest

from propeval.models import Category, Question, UserAnswer
from propeval.scoring.engine import (
    InvalidQuestionError,
    category_max_score,
    category_score,
    classify,
    completion_rate,
    evaluate,
    max_weight_of,
    percentage_of,
    question_max_score,
    score_of,
    total_max_score,
)

from tests.helpers import three_question_tree, two_category_tree


def _pick(tree, question_id, answer_id):
    for _, q in tree.iter_questions():
        if q.id == question_id:
            return UserAnswer.select(q, q.find_answer(answer_id))
    raise KeyError(question_id)


class CeilingTests(unittest.TestCase):
    def test_question_ceiling_uses_max_answer_weight(self) -> None:
        tree = three_question_tree()
        q1 = tree.categories[0].questions[0]
        self.assertEqual(max_weight_of(q1), 4.0)
        self.assertEqual(question_max_score(q1), 8.0)

    def test_category_and_total_ceilings(self) -> None:
        tree = three_question_tree()
        self.assertEqual(category_max_score(tree.categories[0]), 10.0)
        self.assertEqual(category_max_score(tree.categories[1]), 4.5)
        self.assertEqual(total_max_score(tree.categories), 14.5)

    def test_question_without_answers_is_rejected(self) -> None:
        q = Question(id="empty", text="?", weight=1.0, answers=[])
        with self.assertRaises(InvalidQuestionError):
            max_weight_of(q)
        with self.assertRaises(ValueError):
            total_max_score([Category(id="c", name="C", questions=[q])])

    def test_empty_category_has_zero_ceiling(self) -> None:
        self.assertEqual(category_max_score(Category(id="c", name="Empty")), 0.0)


class ScoreTests(unittest.TestCase):
    def test_score_is_sum_of_weight_products(self) -> None:
        answers = [
            UserAnswer("q1", "x", 2.0, 2.0),
            UserAnswer("q3", "y", 3.0, 1.5),
        ]
        self.assertEqual(score_of(answers), 8.5)
        self.assertEqual(score_of(reversed(answers)), 8.5)
        self.assertEqual(score_of([]), 0.0)

    def test_percentage_zero_denominator_is_zero(self) -> None:
        for score in (0.0, 3.0, -1.0, 1e9):
            pct = percentage_of(score, 0)
            self.assertEqual(pct, 0.0)
            self.assertFalse(math.isnan(pct))

    def test_percentage_is_not_rounded(self) -> None:
        self.assertAlmostEqual(percentage_of(1.0, 3.0), 33.333333333333336)

    def test_completion_rate(self) -> None:
        self.assertEqual(completion_rate(1, 4), 25.0)
        self.assertEqual(completion_rate(0, 0), 0.0)

    def test_monotonic_in_answers_and_choices(self) -> None:
        tree = three_question_tree()
        low = [_pick(tree, "q1", "q1-a2")]
        more = low + [_pick(tree, "q3", "q3-a1")]
        higher = [_pick(tree, "q1", "q1-a3"), _pick(tree, "q3", "q3-a1")]
        self.assertLessEqual(score_of(low), score_of(more))
        self.assertLessEqual(score_of(more), score_of(higher))

    def test_percentage_bounded_for_every_answer_combination(self) -> None:
        tree = three_question_tree()
        questions = [q for _, q in tree.iter_questions()]
        max_score = total_max_score(tree.categories)
        options = [[None] + q.answers for q in questions]
        for combo in itertools.product(*options):
            answers = [UserAnswer.select(q, a) for q, a in zip(questions, combo) if a is not None]
            pct = percentage_of(score_of(answers), max_score)
            self.assertGreaterEqual(pct, 0.0)
            self.assertLessEqual(pct, 100.0)


class ClassifyTests(unittest.TestCase):
    def test_tier_boundaries_are_inclusive(self) -> None:
        self.assertEqual(classify(60)[0], "Good")
        self.assertEqual(classify(59.999)[0], "Novice")
        self.assertEqual(classify(80)[0], "Expert")
        self.assertEqual(classify(79.999)[0], "Good")
        self.assertEqual(classify(0)[0], "Novice")
        self.assertEqual(classify(100)[0], "Expert")

    def test_badges_follow_level(self) -> None:
        self.assertEqual(classify(85), ("Expert", "evaluation-expert"))
        self.assertEqual(classify(65), ("Good", "evaluation-good"))
        self.assertEqual(classify(10), ("Novice", "evaluation-novice"))


class EvaluateTests(unittest.TestCase):
    def test_two_category_scenario(self) -> None:
        tree = two_category_tree()
        result = evaluate(tree.categories, [_pick(tree, "q1", "q1-a2")])

        self.assertEqual(result.max_possible_score, 10.0)
        self.assertEqual(result.total_score, 3.0)
        self.assertAlmostEqual(result.percentage, 30.0)
        self.assertAlmostEqual(result.completion_rate, 50.0)
        self.assertEqual(result.level, "Novice")
        self.assertEqual(result.badge, "evaluation-novice")

        first, second = result.category_scores
        self.assertAlmostEqual(first.percentage, 60.0)
        self.assertEqual((first.score, first.max_score), (3.0, 5.0))
        self.assertEqual((first.questions_answered, first.total_questions), (1, 1))
        self.assertEqual(second.percentage, 0.0)
        self.assertEqual((second.questions_answered, second.total_questions), (0, 1))

    def test_category_score_only_counts_its_questions(self) -> None:
        tree = three_question_tree()
        answers = [_pick(tree, "q1", "q1-a3"), _pick(tree, "q3", "q3-a3")]
        interior = category_score(tree.categories[0], answers)
        self.assertEqual(interior.score, 8.0)
        self.assertEqual(interior.questions_answered, 1)
        self.assertEqual(interior.total_questions, 2)
        self.assertAlmostEqual(interior.percentage, 80.0)

    def test_localized_category_names(self) -> None:
        tree = two_category_tree()
        result = evaluate(tree.categories, [], language="ro")
        self.assertEqual([c.category_name for c in result.category_scores], ["Structură", "Acoperiș"])
        result = evaluate(tree.categories, [], language="de")
        self.assertEqual([c.category_name for c in result.category_scores], ["Structure", "Roof"])

    def test_precomputed_denominator_is_used(self) -> None:
        tree = two_category_tree()
        result = evaluate(tree.categories, [_pick(tree, "q1", "q1-a3")], max_possible_score=20.0)
        self.assertEqual(result.max_possible_score, 20.0)
        self.assertAlmostEqual(result.percentage, 25.0)

    def test_full_marks_is_expert(self) -> None:
        tree = three_question_tree()
        answers = [_pick(tree, "q1", "q1-a3"), _pick(tree, "q2", "q2-a2"), _pick(tree, "q3", "q3-a3")]
        result = evaluate(tree.categories, answers)
        self.assertAlmostEqual(result.percentage, 100.0)
        self.assertEqual(result.level, "Expert")
        self.assertEqual(result.completion_rate, 100.0)

    def test_no_questions(self) -> None:
        result = evaluate([], [])
        self.assertEqual(result.percentage, 0.0)
        self.assertEqual(result.completion_rate, 0.0)
        self.assertEqual(result.category_scores, ())


if __name__ == "__main__":
    unittest.main()
