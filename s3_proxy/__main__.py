"""Run the proxy: python -m s3_proxy."""

import uvicorn

from .config.settings import get_settings


def main() -> None:
    settings = get_settings()

    uvicorn.run(
        "s3_proxy.main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
        log_level=settings.effective_log_level.lower(),
    )


if __name__ == "__main__":
    main()
