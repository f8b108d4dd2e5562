import uvicorn

from starquiz.core.settings import settings


def main() -> None:
    uvicorn.run("starquiz.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
