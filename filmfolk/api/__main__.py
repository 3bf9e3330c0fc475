"""
Development entrypoint: python -m filmfolk.api
In production run the app through a WSGI server (gunicorn/uwsgi).
"""
import logging
import os
import sys

from filmfolk.utils.exceptions import ConfigError

from . import create_app

logger = logging.getLogger("filmfolk")


def main():
    try:
        app = create_app()
    except ConfigError as err:
        logging.basicConfig(level=logging.ERROR)
        logger.critical("failed to start: %s", err.message)
        sys.exit(1)

    host = os.getenv("FLASK_RUN_HOST", "0.0.0.0")
    debug = os.getenv("FLASK_DEBUG", str(app.config.get("DEBUG", False))).lower() in ("1", "true", "yes")
    app.run(host=host, port=app.config["APP_PORT"], debug=debug)


if __name__ == "__main__":
    main()
