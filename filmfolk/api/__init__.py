from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from filmfolk.api.config import get_config, validate_config
from filmfolk.api.context import EXTENSION_KEY
from filmfolk.api.errors import register_error_handlers
from filmfolk.api.middleware import register_middleware
from filmfolk.models.db_storage import DBStorage
from filmfolk.services.auth_service import AuthService
from filmfolk.services.oauth_service import GoogleOAuthClient
from filmfolk.utils.log import configure_logging
from filmfolk.utils.rate_limit import FixedWindowRateLimiter
from filmfolk.utils.security import TokenIssuer

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "FilmFolk API",
        "version": "1.0.0",
        "description": "Social movie reviews: accounts, movies, reviews, comment threads and followers.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1, health at the root
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}

API_PREFIX = "/api/v1"


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    Builds the storage handle, token issuer, auth service, OAuth client and
    rate limiters once and registers them in app.extensions; nothing is a
    module-level singleton. Raises ConfigError when configuration is invalid.
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)
    validate_config(app.config)

    if not app.config["TESTING"]:
        configure_logging(app.config["APP_ENV"], app.config.get("LOG_LEVEL"))

    # Cross-Origin Resource Sharing restricted to the configured origins
    origins = app.config["ALLOWED_ORIGINS"]
    CORS(app, resources={r"/*": {"origins": "*" if "*" in origins else origins}})

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    storage = DBStorage(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()

    issuer = TokenIssuer(app.config["JWT_SECRET_KEY"])
    app.extensions[EXTENSION_KEY] = {
        "storage": storage,
        "token_issuer": issuer,
        "auth_service": AuthService(
            storage,
            issuer,
            access_ttl_minutes=app.config["JWT_ACCESS_TOKEN_TTL"],
            refresh_ttl_days=app.config["JWT_REFRESH_TOKEN_TTL"],
            bcrypt_rounds=app.config["BCRYPT_ROUNDS"],
        ),
        "google_oauth": GoogleOAuthClient(
            app.config.get("GOOGLE_CLIENT_ID"),
            app.config.get("GOOGLE_CLIENT_SECRET"),
            app.config.get("GOOGLE_REDIRECT_URL"),
            timeout=app.config.get("OAUTH_TIMEOUT_SECONDS", 10),
        ),
        "rate_limiters": {
            "global": FixedWindowRateLimiter(app.config["RATE_LIMIT_PER_MINUTE"], 60),
            "auth": FixedWindowRateLimiter(app.config["AUTH_RATE_LIMIT_PER_MINUTE"], 60),
        },
    }

    register_middleware(app)
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .oauth import bp as oauth_bp
    from .users import bp as users_bp
    from .movies import bp as movies_bp
    from .moderation import bp as moderation_bp
    from .reviews import bp as reviews_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp, url_prefix=f"{API_PREFIX}/auth")
    app.register_blueprint(oauth_bp, url_prefix=f"{API_PREFIX}/auth")
    app.register_blueprint(users_bp, url_prefix=API_PREFIX)
    app.register_blueprint(movies_bp, url_prefix=API_PREFIX)
    app.register_blueprint(moderation_bp, url_prefix=API_PREFIX)
    app.register_blueprint(reviews_bp, url_prefix=f"{API_PREFIX}/reviews")

    # Remove the request's DB session at the end of each app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to FilmFolk API",
            "docs": "/apidocs/",
            "health": "/health",
        }, 200

    return app
