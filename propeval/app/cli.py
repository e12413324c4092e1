from __future__ import annotations

"""CLI for propeval using EvaluationSessionManager."""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .. import __version__
from ..clock import SystemClock
from ..config.config import load_config, validate_config
from ..models import PropertyInfo, PropertyType, Screen, UserAnswer
from ..results.persist import JsonResultSink
from ..results.report import format_text_report
from ..results.schema import DurableSaver
from ..scoring.engine import category_max_score, evaluate, question_max_score
from ..storage.backends import JsonFileStorage
from ..storage.results_store import ParquetResultSink
from ..storage.store import SessionStore
from ..tree import TreeFormatError, load_property_type, tree_problems
from .session_manager import EvaluationSessionManager

QUESTION_PROMPT = "Choice number, n=next s=skip p=previous b=back r=restart q=quit: "


def _build_ui() -> Dict[str, Callable[..., Any]]:
    def ask(prompt: str) -> str:
        return input(prompt)

    def inform(msg: str) -> None:
        print(msg)

    return {"ask": ask, "inform": inform}


def _make_saver(cfg: Dict[str, Any]) -> Optional[DurableSaver]:
    results = cfg["results"]
    if results["format"] == "parquet":
        return ParquetResultSink(results["output_path"])
    if results["format"] == "json":
        path = Path(results["output_path"])
        if path.suffix != ".json":
            path = path / "evaluations.json"
        return JsonResultSink(path)
    return None


def _ask_number(ui: Dict[str, Callable[..., Any]], prompt: str, cast: Callable[[str], Any]) -> Any:
    while True:
        raw = ui["ask"](prompt).strip()
        if not raw:
            return None
        try:
            return cast(raw)
        except ValueError:
            ui["inform"]("Please enter a number, or leave blank.")


def _ask_property_info(ui: Dict[str, Callable[..., Any]]) -> Optional[PropertyInfo]:
    name = ui["ask"]("Property name (b to go back): ").strip()
    if name.lower() == "b":
        return None
    location = ui["ask"]("Location (optional): ").strip() or None
    surface = _ask_number(ui, "Surface in m² (optional): ", float)
    floors = ui["ask"]("Floors (optional): ").strip() or None
    year = _ask_number(ui, "Construction year (optional): ", int)
    return PropertyInfo(name=name, location=location, surface=surface, floors=floors, construction_year=year)


def _question_step(mgr: EvaluationSessionManager, ui: Dict[str, Callable[..., Any]], language: str) -> bool:
    """Show the current question and apply one command. Returns False to quit."""
    inform = ui["inform"]
    category, question = mgr.current_category, mgr.current_question
    inform(f"\n[{mgr.question_index + 1}/{mgr.total_questions}] {category.display_name(language)}")
    inform(question.text)
    current = mgr.current_answer
    for i, a in enumerate(question.answers, start=1):
        marker = "*" if current is not None and current.answer_id == a.id else " "
        inform(f" {marker}{i}. {a.text}")
    inform(f"Score so far: {mgr.current_score:.1f}/{mgr.max_possible_score:.1f}")

    cmd = ui["ask"](QUESTION_PROMPT).strip().lower()
    if cmd.isdigit():
        idx = int(cmd) - 1
        if 0 <= idx < len(question.answers):
            mgr.answer(question.answers[idx].id)
        else:
            inform("No such choice.")
    elif cmd in ("", "n"):
        if mgr.can_go_next:
            mgr.next()
        else:
            inform("Answer the last question to finish (or s to skip it).")
    elif cmd == "s":
        mgr.skip()
    elif cmd == "p":
        if mgr.question_index > 0:
            mgr.previous()
        else:
            inform("Already at the first question.")
    elif cmd == "b":
        mgr.back()
    elif cmd == "r":
        mgr.restart()
    elif cmd == "q":
        return False
    else:
        inform("Unknown command.")
    return True


def run_interactive(
    mgr: EvaluationSessionManager,
    ui: Dict[str, Callable[..., Any]],
    *,
    language: str = "en",
    improvement_limit: Optional[int] = None,
) -> int:
    inform = ui["inform"]
    if mgr.mount() is not None:
        pending = mgr.pending_resume
        reply = ui["ask"](
            f"Resume previous evaluation at question {pending.question_index + 1} "
            f"({len(pending.answers)} answered)? [y/N]: "
        )
        if reply.strip().lower().startswith("y"):
            mgr.resume()
        else:
            mgr.start_fresh()

    while True:
        screen = mgr.screen
        if screen is Screen.START:
            inform(f"\nProperty evaluation: {mgr.property_type.display_name(language)} ({mgr.total_questions} questions)")
            if ui["ask"]("Press Enter to start, q to quit: ").strip().lower() == "q":
                return 0
            mgr.start()
        elif screen is Screen.PROPERTY_INFO:
            info = _ask_property_info(ui)
            if info is None:
                mgr.back()
                continue
            for field_name, message in mgr.save_property_info(info).items():
                inform(f"  {field_name}: {message}")
        elif screen is Screen.QUESTIONS:
            if not _question_step(mgr, ui, language):
                inform("Progress saved. Run again to resume.")
                return 0
        else:
            inform("")
            inform(
                format_text_report(
                    mgr.result,
                    mgr.property_type.display_name(language),
                    datetime.now(),
                    property_info=mgr.property_info,
                    limit=improvement_limit,
                )
            )
            if mgr.pending_save is not None:
                saved = mgr.pending_save.result()
                inform("Evaluation saved." if saved else "Evaluation could not be saved; the result above is still valid.")
            if ui["ask"]("r to evaluate again, Enter to exit: ").strip().lower() == "r":
                mgr.restart()
            else:
                return 0


def _resolve_answers(tree: PropertyType, picks: list) -> list:
    """Turn [{question_id, answer_id}, ...] into UserAnswers; later picks replace earlier ones."""
    questions = {q.id: q for _, q in tree.iter_questions()}
    chosen: Dict[Any, UserAnswer] = {}
    for pick in picks:
        q = questions.get(pick["question_id"])
        if q is None:
            raise TreeFormatError(f"Unknown question id {pick['question_id']!r}")
        a = q.find_answer(pick["answer_id"])
        if a is None:
            raise TreeFormatError(f"Unknown answer id {pick['answer_id']!r} for question {q.id!r}")
        chosen[q.id] = UserAnswer.select(q, a)
    return list(chosen.values())


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="propeval")
    p.add_argument("--version", action="version", version=f"propeval {__version__}")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    st = sub.add_parser("show-tree", help="Print a question tree with score ceilings")
    st.add_argument("--tree", required=True)
    st.add_argument("--language", default=None)

    rp = sub.add_parser("run", help="Run an evaluation interactively")
    rp.add_argument("--tree", required=True)
    rp.add_argument("--config", default=None)
    rp.add_argument("--language", default=None)
    rp.add_argument("--explain", action="store_true")

    rep = sub.add_parser("report", help="Score a saved answers file and print the report")
    rep.add_argument("--tree", required=True)
    rep.add_argument("--answers", required=True, help="JSON list of {question_id, answer_id}")
    rep.add_argument("--config", default=None)
    rep.add_argument("--language", default=None)
    rep.add_argument("--out", default=None, help="Write the report to this file")

    args = p.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        tree = load_property_type(args.tree)
    except (OSError, TreeFormatError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.cmd == "show-tree":
        lang = args.language
        print(f"{tree.display_name(lang)} ({tree.total_questions} questions)")
        for c in tree.categories:
            print(f"- {c.display_name(lang)}: max {category_max_score(c):.1f}")
            for q in c.questions:
                ceiling = question_max_score(q) if q.answers else 0.0
                print(f"    {q.id}: {q.text} (weight {q.weight:g}, max {ceiling:.1f})")
        problems = tree_problems(tree)
        for problem in problems:
            print(f"WARNING: {problem}", file=sys.stderr)
        return 1 if problems else 0

    cfg = validate_config(load_config(args.config))
    language = args.language or cfg["ui"]["language"]
    problems = tree_problems(tree)
    if problems:
        for problem in problems:
            print(f"ERROR: {problem}", file=sys.stderr)
        return 1

    if args.cmd == "report":
        try:
            picks = json.loads(Path(args.answers).read_text(encoding="utf-8"))
            answers = _resolve_answers(tree, picks)
        except (OSError, ValueError, KeyError, TypeError) as e:
            print(f"ERROR: Cannot read answers: {e}", file=sys.stderr)
            return 1
        result = evaluate(tree.categories, answers, language=language)
        text = format_text_report(
            result,
            tree.display_name(language),
            datetime.now(),
            limit=cfg["report"]["improvement_limit"],
        )
        if args.out:
            Path(args.out).write_text(text, encoding="utf-8")
        else:
            print(text)
        return 0

    if args.cmd == "run":
        if args.explain:
            from .explain import enable as explain_enable
            explain_enable(True)
        clock = SystemClock()
        store = SessionStore(
            JsonFileStorage(cfg["session"]["storage_dir"]),
            clock,
            max_age_ms=cfg["session"]["max_age_ms"],
        )
        with EvaluationSessionManager(
            tree, store, saver=_make_saver(cfg), clock=clock, language=language
        ) as mgr:
            return run_interactive(
                mgr,
                _build_ui(),
                language=language,
                improvement_limit=cfg["report"]["improvement_limit"],
            )

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
