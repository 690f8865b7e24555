#!/usr/bin/env python3
"""
PSEDB - School health (PSE) enrollment database
================================================

Single-command run:  python main.py
Spreadsheet import:  flask --app main import-enrollments matriculas.xlsx

See config.py for all environment-variable tunables.
"""

import logging

import click
from flask import Flask, jsonify

import config
from db import init_db
from api import api_bp


def create_app() -> Flask:
    """Flask application factory."""

    app = Flask(__name__)
    app.secret_key = config.SECRET
    # Multipart framing adds a little on top of the file itself; the
    # exact size limit is enforced by the import file gate.
    app.config["MAX_CONTENT_LENGTH"] = config.IMPORT_MAX_FILE_SIZE * 2

    # ── Initialise database ─────────────────────────────────────────
    init_db(config.DB_URL)

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)

    @app.route("/api/v1/health")
    def health():
        return jsonify({"status": "ok"})

    _register_cli(app)
    return app


def _register_cli(app: Flask):

    @app.cli.command("import-enrollments")
    @click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
    @click.option("--validate-only", is_flag=True,
                  help="Run the pre-flight checks without writing anything.")
    def import_enrollments_command(file_path, validate_only):
        """Import an enrollment spreadsheet (.xlsx / .xls)."""
        from pathlib import Path
        from import_engine import (
            validate_file, process_import, ImportAbortedError, SheetError,
        )

        path = Path(file_path)
        content = path.read_bytes()

        check = validate_file(content, path.name)
        for warning in check.warnings:
            click.echo(f"  warning: {warning}")
        if not check.is_valid:
            for err in check.errors:
                click.echo(f"  error: {err}", err=True)
            raise SystemExit(1)

        click.echo(f"  {path.name}: {check.valid_rows} valid / {check.total_rows} rows")
        if validate_only:
            return

        def _progress(percent: int, message: str):
            if not message.startswith("Processing record"):
                click.echo(f"  [{percent:3d}%] {message}")

        try:
            stats = process_import(content, path.name, on_progress=_progress)
        except (ImportAbortedError, SheetError) as exc:
            click.echo(f"  aborted: {exc}", err=True)
            raise SystemExit(1)

        click.echo(f"  Students: {stats.new_students} new, {stats.updated_students} existing")
        click.echo(f"  Schools: {stats.new_schools} new   Classes: {stats.new_classes} new")
        click.echo(f"  Enrollments: {stats.new_enrollments} new, "
                   f"{stats.updated_enrollments} updated")
        if stats.errors:
            click.echo(f"  First errors (max 10) of {len(stats.errors)}:")
            for err in stats.errors[:10]:
                click.echo(f"    Row {err['row']}: {err['message']}")


def main():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 56)
    print("  PSEDB - School health enrollment database")
    print("=" * 56)

    app = create_app()
    print(f"  Database: {config.DB_URL}")

    print(f"\n  http://{config.HOST}:{config.PORT}")
    print("=" * 56)

    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)


if __name__ == "__main__":
    main()
