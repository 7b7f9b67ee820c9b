"""Run the API server: ``python -m aoimap``."""

import uvicorn

from aoimap.config import settings


def main() -> None:
    uvicorn.run("aoimap.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    main()
