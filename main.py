"""Launch the PasteGIS FastAPI server."""

import uvicorn

from pastegis.config import settings
from pastegis.logs import configure_logging


def main():
    configure_logging(settings.log_level)
    uvicorn.run("pastegis.server:app", host=settings.host, port=settings.port, reload=settings.reload)


if __name__ == "__main__":
    main()
