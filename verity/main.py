"""Entry point for running the Verity API server."""

import sys

import uvicorn

from .api.app import create_app
from .infrastructure.config import configure_logging, load_config
from .infrastructure.dependencies import ServiceContainer


def main() -> int:
    """Run the API server using uvicorn."""
    config = load_config()
    configure_logging(config.logging)

    app = create_app(ServiceContainer(config))
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
