"""Run the API with uvicorn: ``python -m servicedesk`` or the ``servicedesk`` script."""

import uvicorn

from servicedesk.core.config import get_settings


def main() -> None:
    settings = get_settings()
    # logging is configured by the app lifespan
    uvicorn.run("servicedesk.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
