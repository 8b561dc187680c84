"""Run the API with uvicorn: python -m akademi"""

import uvicorn

from akademi.config import settings


def main() -> None:
    uvicorn.run("akademi.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
