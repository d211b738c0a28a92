import uvicorn

from orderhook.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("orderhook.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
