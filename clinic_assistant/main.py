"""Main entry point for the clinic assistant."""

import logging
import sys

from clinic_assistant.config import get_settings


# Client libraries that log every HTTP request or SQL statement at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite", "sqlalchemy.engine", "google_genai")


def setup_logging():
    """Send logs to stdout at the configured level."""
    settings = get_settings()
    level = getattr(logging, settings.log_level)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def main():
    """Main entry point - runs CLI."""
    setup_logging()

    from clinic_assistant.cli.commands import app

    app()


async def ask(text: str, patient_id: str | None = None):
    """Programmatic API for one chat turn.

    Example:
        import asyncio
        from clinic_assistant.main import ask

        reply = asyncio.run(ask("Başım ağrıyor"))
    """
    from clinic_assistant.assistant import ConversationalRouter, create_classifier_from_settings
    from clinic_assistant.cli.commands import open_store

    async with open_store() as session_factory:
        router = ConversationalRouter(session_factory, create_classifier_from_settings())
        return await router.handle(text, patient_id=patient_id)


if __name__ == "__main__":
    main()
