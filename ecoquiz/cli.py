"""Terminal quiz client: runs QuizMachine against a running quiz API."""

from __future__ import annotations

import argparse
import random
from typing import Callable, List, Optional

from ecoquiz.config import settings
from ecoquiz.utils.gateway import GatewayError, QuizGateway
from ecoquiz.utils.logging_config import configure_logging
from ecoquiz.utils.quiz_engine import (
    GENDERS,
    OnboardingError,
    QuizMachine,
    QuizState,
    answer_for_key,
)

# typed shortcuts for the arrow keys
_KEY_ALIASES = {
    "j": "ArrowRight", "y": "ArrowRight", ">": "ArrowRight",
    "n": "ArrowLeft", "<": "ArrowLeft",
}
CANCEL = "x"


def _parse_selection(raw: str, options) -> Optional[List[str]]:
    """'1,3' -> [options[0], options[2]]; None when the input is not valid."""
    picked = []
    for part in raw.replace(" ", "").split(","):
        if not part:
            continue
        if not part.isdigit() or not 1 <= int(part) <= len(options):
            return None
        picked.append(options[int(part) - 1])
    return picked


def run_quiz(machine: QuizMachine, ask: Callable[[str], str], inform: Callable[[str], None]) -> int:
    """Drives one quiz from onboarding to results. Returns the score."""
    while machine.state == QuizState.ONBOARDING:
        gender = ask(f"Geschlecht ({'/'.join(GENDERS)}): ")
        age = ask("Alter: ")
        try:
            if machine.start(age, gender) is None:
                return -1
        except OnboardingError as e:
            inform(str(e))

    while machine.state != QuizState.RESULTS:
        if machine.state == QuizState.ANSWERING:
            q = machine.current_question
            inform(f"\nFrage {machine.question_number}/{machine.session.total_questions}")
            inform(q.text)
            raw = ask("[j] Ja  [n] Nein: ").strip().lower()
            answer = answer_for_key(_KEY_ALIASES.get(raw, raw))
            if answer is None:
                inform("Bitte j oder n eingeben.")
                continue
            machine.answer(answer)
        else:
            options = machine.reason_options()
            inform("Warum Ja?" if machine.pending_answer == "yes" else "Warum Nein?")
            for i, reason in enumerate(options, start=1):
                inform(f"  {i}. {reason}")
            raw = ask(f"Gründe (z.B. 1,3; leer = keine; {CANCEL} = zurück): ").strip().lower()
            if raw == CANCEL:
                machine.cancel()
                continue
            selection = _parse_selection(raw, options)
            if selection is None:
                inform("Ungültige Auswahl.")
                continue
            machine.submit_reasons(selection)

    score = machine.score()
    inform(f"\nDein Score: {score}%  (Ja: {machine.yes_count()}, Nein: {machine.no_count()})")
    return score


def print_stats(gateway: QuizGateway, inform: Callable[[str], None]) -> None:
    stats = gateway.fetch_aggregate("simple")
    inform(f"Teilnehmende: {stats['totalParticipants']}  Abgeschlossen: {stats['completedSurveys']}")
    inform(f"Durchschnittlicher Score: {stats['averageScore']}%")
    for r in stats["topScoreRange"]:
        inform(f"  {r['range']:>8}: {r['count']} ({r['percentage']}%)")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Nachhaltigkeits-Quiz im Terminal")
    parser.add_argument("--base-url", default=settings.API_BASE_URL, help="URL of the quiz API")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the question order")
    parser.add_argument("--stats", action="store_true", help="Print public statistics and exit")
    args = parser.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)

    with QuizGateway(base_url=args.base_url) as gateway:
        if args.stats:
            try:
                print_stats(gateway, print)
            except GatewayError as e:
                print(f"Statistik nicht verfügbar: {e}")
                return 1
            return 0

        machine = QuizMachine(
            gateway,
            rng=random.Random(args.seed),
            notify=lambda title, text: print(f"[{title}] {text}"),
        )
        try:
            score = run_quiz(machine, input, print)
        except (KeyboardInterrupt, EOFError):
            print("\nAbgebrochen.")
            return 130
    return 0 if score >= 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
