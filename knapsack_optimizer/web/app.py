"""Flask application factory for the knapsack optimizer dashboard."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from flask import Flask

from knapsack_optimizer import config
from knapsack_optimizer.storage.database import initialize_database
from knapsack_optimizer.web.routes import bp as dashboard_bp


def create_app(test_config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY=config.SECRET_KEY,
        DATABASE_PATH=config.DATABASE_PATH,
        UPLOAD_DIR=config.UPLOAD_DIR,
        EXPORT_DIR=config.EXPORT_DIR,
        HISTORY_PAGE_SIZE=config.HISTORY_PAGE_SIZE,
    )
    if test_config is not None:
        app.config.update(test_config)

    app.logger.setLevel(config.LOG_LEVEL)

    # Create the history database if it does not exist yet
    initialize_database(app.config["DATABASE_PATH"])

    app.register_blueprint(dashboard_bp)
    return app


if __name__ == "__main__":
    application = create_app()
    application.run(debug=True)
