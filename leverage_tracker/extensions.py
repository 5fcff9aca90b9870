from flask import current_app
from flask_cors import CORS
from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
login_manager = LoginManager()
cors = CORS()

STORE_KEY = "leverage_store"


def get_store():
    """The progression store picked for this app at startup."""
    return current_app.extensions[STORE_KEY]
