"""Command-line entrypoint that serves the tent API."""

import uvicorn

from havenox.config import Settings


def main() -> None:
    """Run the HavenOx tent API with live sockets."""
    settings = Settings()
    uvicorn.run(
        "havenox.api.asgi:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
