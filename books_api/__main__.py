import logging

import uvicorn

from .config import get_settings
from .otel import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    logging.getLogger("books_api").debug("listening on %s:%s", settings.host, settings.port)
    uvicorn.run(
        "books_api.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
