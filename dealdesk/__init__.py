import os
import logging

import click
from flask import Flask, jsonify

from dealdesk.config import config_by_name
from dealdesk.extensions import db, migrate, store


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate settings (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    store.init_app(app, db)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from dealdesk import models  # noqa: F401

    # --- Register blueprints ---
    from dealdesk.blueprints.api import api_bp

    app.register_blueprint(api_bp)

    # --- Error handlers ---
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({"error": "Internal server error"}), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    # --- Schema bootstrap ---
    # Skipped under the flask CLI (FlaskGroup sets FLASK_RUN_FROM_CLI) so
    # `flask db upgrade` or `--help` never wait on the database; use
    # `flask init-db` there instead.
    if app.config["DB_BOOTSTRAP_ON_STARTUP"] and not os.environ.get("FLASK_RUN_FROM_CLI"):
        with app.app_context():
            store.bootstrap(seed=app.config["SEED_DEMO_DATA"])

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("init-db")
    @click.option("--seed", is_flag=True, help="Insert demo rows into an empty store.")
    def init_db(seed):
        """Create missing tables, retrying while the database comes up.

        Usage:
            flask init-db
            flask init-db --seed
        """
        attempts = store.bootstrap(seed=seed)
        click.echo(f"Database ready ({attempts} attempt(s)).")

    @app.cli.command("seed-demo")
    def seed_demo():
        """Insert the demo organization, contact and deal if none exist."""
        if store.seed_demo_data():
            click.echo("Demo data created.")
        else:
            click.echo("Organizations already exist, nothing seeded.")

    @app.cli.command("win-deal")
    @click.argument("deal_id")
    @click.option(
        "--policy",
        type=click.Choice(["reject", "noop", "rerun"]),
        default=None,
        help="Override DEAL_REWIN_POLICY for this run.",
    )
    def win_deal(deal_id, policy):
        """Win a deal from the shell and print the spawned project.

        Usage:
            flask win-deal 3f2b...-uuid
            flask win-deal 3f2b...-uuid --policy noop
        """
        from dealdesk.services.deal_service import DealWinError, win_deal as _win

        try:
            result = _win(store, deal_id, rewin_policy=policy)
        except DealWinError as e:
            raise click.ClickException(str(e)) from e

        state = "Created" if result.created else "Existing"
        click.echo(f"{state} project: {result.project_id}")
        for task_id in result.task_ids:
            click.echo(f"  task: {task_id}")
