"""Interactive question loop over the knowledge base.

Usage::

    python -m src.cli.chat

Each line typed is searched and answered; ``exit``/``quit``, Ctrl-C or
Ctrl-D end the session.  The loop only reads from the store and never
touches the processing ledger.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any, Callable

from src.config.settings import Settings
from src.utils.errors import KnowledgeAssistantError

_EXIT_WORDS = frozenset({"exit", "quit", ":q"})


async def chat_loop(
    components: dict[str, Any],
    read_line: Callable[[str], str] = input,
    limit: int = 5,
) -> int:
    """Run the prompt loop until the user leaves.

    Returns
    -------
    int
        Number of questions answered.
    """
    answer_service = components["answer_service"]
    answered = 0

    print("Ask a question about your documents (type 'exit' to leave).")
    while True:
        try:
            line = await asyncio.to_thread(read_line, "\n> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break

        question = line.strip()
        if not question:
            continue
        if question.lower() in _EXIT_WORDS:
            break

        try:
            answer = await answer_service.ask(question, limit)
        except KnowledgeAssistantError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            continue

        print(answer.answer)
        for result in answer.sources:
            print(f"  - {result.source}")
        answered += 1

    print("Goodbye.")
    return answered


async def _run(components: dict[str, Any], limit: int) -> None:
    try:
        await chat_loop(components, limit=limit)
    finally:
        await components["vector_store"].close()


def main() -> None:
    app_settings = Settings()

    from src.main import build_components
    from src.utils.logging import configure_logging

    configure_logging(log_level="WARNING")
    components = build_components(app_settings)
    try:
        asyncio.run(_run(components, app_settings.search_limit))
    except KeyboardInterrupt:
        print("\nGoodbye.")


if __name__ == "__main__":
    main()
