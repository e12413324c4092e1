import json
import tempfile
import unittest
from pathlib import Path

from propeval.models import Answer, Question
from propeval.tree import TreeFormatError, load_property_type, parse_property_type, tree_problems

from tests.helpers import two_category_tree

YAML_TREE = """\
property_type:
  id: house
  name:
    en: House
    ro: Casă
  categories:
    - id: structure
      name: Structure
      name_ro: Structură
      questions:
        - id: q1
          text: Foundation condition?
          weight: 2
          answers:
            - {id: a1, text: Poor, weight: 0}
            - {id: a2, text: Good, weight: 4}
"""


class ParseTests(unittest.TestCase):
    def test_round_trip_through_json(self) -> None:
        tree = two_category_tree()
        self.assertEqual(parse_property_type(tree.to_json()), tree)

    def test_localized_names(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "house.yml"
            path.write_text(YAML_TREE, encoding="utf-8")
            tree = load_property_type(path)
        self.assertEqual(tree.display_name(), "House")
        self.assertEqual(tree.display_name("ro"), "Casă")
        category = tree.categories[0]
        self.assertEqual(category.display_name("ro"), "Structură")
        self.assertEqual(category.questions[0].weight, 2.0)
        self.assertEqual([a.weight for a in category.questions[0].answers], [0.0, 4.0])

    def test_json_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "house.json"
            path.write_text(json.dumps(two_category_tree().to_json()), encoding="utf-8")
            self.assertEqual(load_property_type(path).total_questions, 2)

    def test_malformed_documents(self) -> None:
        with self.assertRaises(TreeFormatError):
            parse_property_type(["not", "a", "mapping"])
        with self.assertRaises(TreeFormatError):
            parse_property_type({"name": "No id"})
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "broken.json"
            path.write_text("{", encoding="utf-8")
            with self.assertRaises(TreeFormatError):
                load_property_type(path)


class ProblemTests(unittest.TestCase):
    def test_sound_tree(self) -> None:
        self.assertEqual(tree_problems(two_category_tree()), [])

    def test_violations_are_reported(self) -> None:
        tree = two_category_tree()
        roof = tree.categories[1]
        roof.questions.append(Question(id="q1", text="Duplicate", weight=0.0, answers=[]))
        roof.questions.append(Question(id="q9", text="Negative", weight=1.0, answers=[Answer("x", "x", -1.0)]))
        problems = tree_problems(tree)
        self.assertEqual(len(problems), 4)
        self.assertTrue(any("Duplicate question id" in p for p in problems))
        self.assertTrue(any("non-positive weight" in p for p in problems))
        self.assertTrue(any("negative weight" in p for p in problems))


if __name__ == "__main__":
    unittest.main()
