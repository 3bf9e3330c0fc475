import logging
import logging.config

DEV_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
KV_FORMAT = "time=%(asctime)s level=%(levelname)s logger=%(name)s msg=\"%(message)s\""

DEV_ENVS = ("dev", "development")


def configure_logging(env: str = "dev", level: str | None = None) -> None:
    """Install the root logging config. Development is verbose and human-readable."""
    is_dev = (env or "").lower() in DEV_ENVS
    level = (level or ("DEBUG" if is_dev else "INFO")).upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": DEV_FORMAT if is_dev else KV_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                # SQL echo is controlled by the engine, not by the app level
                "sqlalchemy.engine": {"level": "WARNING"},
                "werkzeug": {"level": "INFO" if is_dev else "WARNING"},
            },
        }
    )
