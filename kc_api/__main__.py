import uvicorn

from .config import settings


def main() -> None:
    uvicorn.run("kc_api.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
