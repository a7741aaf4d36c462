"""Run the API server.

Run with: python -m app
"""

import uvicorn

from app.main import app


def main() -> None:
    """Serve on the host/port from settings."""
    settings = app.state.settings
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_config=None)


if __name__ == "__main__":
    main()
