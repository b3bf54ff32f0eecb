import uvicorn

from finboard.config import settings


def main() -> None:
    uvicorn.run("finboard.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
