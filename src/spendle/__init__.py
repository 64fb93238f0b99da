"""Spendle application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask, jsonify

from .config import BaseConfig, DevConfig, TestConfig
from .errors import SpendleError
from .logging_config import get_logger, setup_logging

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    """Yield blueprint import paths registered on every app."""

    yield "spendle.blueprints.auth"
    yield "spendle.blueprints.ledger"
    yield "spendle.blueprints.recurring"
    yield "spendle.blueprints.goals"
    yield "spendle.blueprints.analytics"


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_cls = _resolve_config(config_name or app.config.get("ENV"))
    config_obj = config_cls()
    app.config.from_object(config_obj)
    app.config["SPENDLE_CONFIG"] = config_obj

    setup_logging(config_obj)

    _register_blueprints(app)
    _register_error_handlers(app)

    # Imported lazily so importing model classes stays free of engine setup
    from .extensions import init_db

    init_db(app)

    from . import cli

    cli.init_app(app)

    get_logger("app").info(
        "Application created",
        extra={"config": config_cls.__name__, "marker_backend": config_obj.MARKER_BACKEND},
    )
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


def _register_error_handlers(app: Flask) -> None:
    logger = get_logger("app")

    @app.errorhandler(SpendleError)
    def _handle_spendle_error(exc: SpendleError):
        if exc.status_code >= 500:
            logger.error("Request failed", extra={"error": exc.code}, exc_info=exc)
        return jsonify(exc.to_dict()), exc.status_code


__all__ = ["create_app"]
