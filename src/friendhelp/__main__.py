"""Command line entry point for Friend&Help."""

import asyncio
import logging
import sys
from pathlib import Path

# Load environment variables from .env file before importing other modules
from dotenv import load_dotenv
load_dotenv(".env", override=False)

from friendhelp.advice import EMPTY_ADVICE_MESSAGE, present_advice
from friendhelp.checkin import CheckInController, CheckInState, needs_check_in
from friendhelp.companion import CompanionController
from friendhelp.config import settings
from friendhelp.config.loader import get_config_path, get_yaml_defaults
from friendhelp.config.llm_factory import validate_llm_config
from friendhelp.context import AppContext
from friendhelp.errors import StoreError
from friendhelp.insights import compute_insights
from friendhelp.logging import configure_logging, format_log_context
from friendhelp.models import DayEntry
from friendhelp.storage import clear_all_data

logger = logging.getLogger(__name__)

USAGE = """Available commands:
  friendhelp checkin        - Daily check-in (/end to finish early, /quit to abandon)
  friendhelp chat           - Companion chat (/new, /archive, /open ID, /quit)
  friendhelp insights       - Weekly happiness overview
  friendhelp advice         - Advice from the latest check-in
  friendhelp config verify  - Verify configuration
  friendhelp wipe           - Delete every entry and chat session"""


def config_verify() -> int:
    """Verify configuration loading and print status.

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    print("Friend&Help Configuration Verification")
    print("=" * 40)

    errors = []

    try:
        defaults = get_yaml_defaults()
        if get_config_path().exists():
            print(f"✓ config.yaml loaded ({len(defaults)} keys)")
        else:
            print("  config.yaml not found (using built-in defaults)")
    except ValueError as e:
        errors.append(f"config.yaml: {e}")
        print(f"✗ config.yaml: {e}")

    data_root = Path(settings.DATA_ROOT)
    if data_root.exists():
        print(f"✓ DATA_ROOT: {data_root}")
    else:
        print(f"  DATA_ROOT: {data_root} (will be created)")

    try:
        validate_llm_config()
        print(f"✓ LLM provider: {settings.DEFAULT_LLM_PROVIDER}")
    except ValueError as e:
        errors.append(f"LLM config: {e}")
        print(f"✗ LLM config: {e}")

    print("=" * 40)
    if errors:
        print(f"\nVerification failed with {len(errors)} error(s)")
        for error in errors:
            print(f"  - {error}")
        return 1

    print("\nAll checks passed!")
    return 0


async def _read_line(prompt: str) -> str | None:
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return None


def _print_entry(entry: DayEntry) -> None:
    analysis = entry.analysis
    print(f"\nHappiness score: {analysis.happiness_score}")
    print(analysis.summary)
    if analysis.detected_emotions:
        print(f"Emotions: {', '.join(analysis.detected_emotions)}")


def _load_entries(context: AppContext) -> list[DayEntry]:
    try:
        return context.entry_store.load_entries()
    except StoreError as e:
        logger.warning(f'{format_log_context("cli", component="main", user=context.user_id)} {e}')
        return []


async def run_checkin(context: AppContext) -> int:
    if not needs_check_in(_load_entries(context)):
        print("You already checked in today.")

    controller = CheckInController(context)
    print(f"Friend&Help: {controller.messages[0].content}")

    while controller.state in (CheckInState.OPENING, CheckInState.GATHERING):
        line = await _read_line(f"{controller.placeholder} ")
        if line is None or line.strip() == "/quit":
            controller.cancel()
            print("Check-in abandoned. Nothing was saved.")
            return 0

        if line.strip() == "/end":
            if not controller.can_finalize:
                print("Answer at least one follow-up before finishing.")
                continue
            print("Analyzing your day...")
            entry = await controller.finalize()
        else:
            seen = len(controller.messages)
            entry = await controller.submit(line)
            for message in controller.messages[seen:]:
                if message.role == "assistant":
                    print(f"Friend&Help: {message.content}")

        if entry is not None:
            _print_entry(entry)
            return 0

    return 0


async def run_chat(context: AppContext) -> int:
    controller = CompanionController(context)
    session = controller.bootstrap()
    for message in session.messages:
        print(f"{'You' if message.role == 'user' else 'Friend&Help'}: {message.content}")

    while True:
        line = await _read_line("> ")
        if line is None or line.strip() == "/quit":
            return 0

        command, _, argument = line.strip().partition(" ")
        if command == "/new":
            session = controller.create_session()
            print(f"Friend&Help: {session.messages[0].content}")
        elif command == "/archive":
            controller.select(None)
            for item in controller.archive():
                print(f"  {item.id}  {item.title}  ({len(item.messages)} messages)")
        elif command == "/open":
            session = controller.select(argument.strip() or None)
            if session is None:
                print("No session selected.")
                continue
            print(f"-- {session.title} --")
            for message in session.messages:
                print(f"{'You' if message.role == 'user' else 'Friend&Help'}: {message.content}")
        else:
            if controller.active_session is None:
                print("Open a session with /open ID or start one with /new.")
                continue
            reply = await controller.send(line)
            if reply is None:
                print("(no reply, try again)")
            else:
                print(f"Friend&Help: {reply.content}")


def show_insights(context: AppContext) -> int:
    view = compute_insights(_load_entries(context))
    print(f"Average happiness: {view.mean}")
    for slot in view.slots:
        if slot is None:
            print("  ---  .")
        else:
            print(f"  {slot.label}  {slot.score:3d} {'#' * (slot.score // 5)}")
    print(f"\n{view.headline}")
    return 0


def show_advice(context: AppContext) -> int:
    view = present_advice(_load_entries(context))
    if view.is_empty:
        print(EMPTY_ADVICE_MESSAGE)
        return 0
    for rank, text in view.items:
        print(f"{rank}. {text}")
    return 0


def wipe(user_id: str) -> int:
    answer = input(f"Delete every entry and chat session for '{user_id}'? Type 'yes': ")
    if answer.strip().lower() != "yes":
        print("Nothing deleted.")
        return 1
    clear_all_data(user_id)
    print("All data deleted.")
    return 0


def run_main() -> None:
    """Synchronous entry point for console script."""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1].lower()
    if command == "config":
        if len(sys.argv) > 2 and sys.argv[2].lower() == "verify":
            sys.exit(config_verify())
        print(USAGE)
        sys.exit(1)

    configure_logging()

    if command == "wipe":
        sys.exit(wipe(settings.USER_ID))

    context = AppContext.create(settings.USER_ID)
    try:
        if command == "checkin":
            sys.exit(asyncio.run(run_checkin(context)))
        elif command == "chat":
            sys.exit(asyncio.run(run_chat(context)))
        elif command == "insights":
            sys.exit(show_insights(context))
        elif command == "advice":
            sys.exit(show_advice(context))
    except KeyboardInterrupt:
        sys.exit(0)

    print(USAGE)
    sys.exit(1)


if __name__ == "__main__":
    run_main()
