import logging
from collections.abc import Mapping

from flask import Flask
from flask_cors import CORS

from .config import Config
from .extensions import db
from .routes import register_routes
from .storage import build_storage, install_storage, prepare_storage

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def create_app(config_object=None, storage=None):
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_object(Config)
    if isinstance(config_object, Mapping):
        app.config.from_mapping(config_object)
    elif config_object:
        app.config.from_object(config_object)
    else:
        app.config.from_envvar("APP_SETTINGS", silent=True)

    logging.basicConfig(level=app.config["LOG_LEVEL"], format=LOG_FORMAT)

    db.init_app(app)

    origins = [origin.strip() for origin in str(app.config["CORS_ORIGINS"]).split(",") if origin.strip()]
    CORS(app,
         origins=origins or ["*"],
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization", "X-API-Key"],
         methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    )

    # an injected backend is used as is; otherwise STORAGE_MODE picks one
    if storage is None:
        storage = prepare_storage(app, build_storage(app.config["STORAGE_MODE"]))
    install_storage(app, storage)

    register_routes(app)

    return app
