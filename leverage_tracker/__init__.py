from flask import Flask

from .config import Config
from .errors import register_error_handlers
from .extensions import STORE_KEY, cors, db, login_manager
from .store import build_store


def create_app(config_object=Config):
    app = Flask(__name__, template_folder="templates")
    app.config.from_object(config_object)
    # module loggers (leverage_tracker.*) propagate to the app logger
    app.logger.setLevel(app.config["LOG_LEVEL"])

    db.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": "*"}})
    login_manager.init_app(app)
    # registers the user / request loaders on login_manager
    from . import auth  # noqa: F401

    app.extensions[STORE_KEY] = build_store(app.config)
    app.logger.debug("Using %s store", app.extensions[STORE_KEY].name)

    from .auth.routes import auth_bp
    from .leverages.routes import leverages_bp
    from .main.routes import main_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(leverages_bp)
    app.register_blueprint(main_bp)

    register_error_handlers(app)

    return app
