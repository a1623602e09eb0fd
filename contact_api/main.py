import uvicorn

from contact_api.core.app_factory import create_app
from contact_api.core.config import settings

app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
