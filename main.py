"""
main.py

DropLink: ephemeral file sharing. Upload a file, share the link, and the
file disappears once the retention window has passed.

Notes:
  - Configuration is read from the environment (see app_factory.AppConfig)
  - Swagger docs available at /docs, health check at /health
  - With SWEEP_MODE=thread the expiry sweep runs inside this process
"""

import logging

from app_factory import AppConfig, create_app
from config.logging_config import configure_logging

logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging()

    config = AppConfig()
    app = create_app(config)

    logger.info(f"DropLink listening on {config.host}:{config.port}")
    try:
        # The reloader would fork a second process with its own sweep thread
        app.run(
            host=config.host,
            port=config.port,
            debug=config.debug,
            threaded=True,
            use_reloader=False,
        )
    finally:
        app.sweep_scheduler.stop()


if __name__ == "__main__":
    main()
