"""Flask extensions shared by the application factory and the blueprints."""

from flask import current_app
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate


def _default_rate_limit() -> str:
    return current_app.config.get("RATELIMIT_DEFAULT", "60 per minute")


cors = CORS()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address, default_limits=[_default_rate_limit])
migrate = Migrate()
