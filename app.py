from datetime import time

from flask import Flask, jsonify
from config import Config
from routes import health_bp, audit_bp, booking_bp, court_bp, message_bp, schedule_bp

from models import db
from flask_migrate import Migrate
from scheduling.errors import SchedulingError
from scheduling.service import ScheduleService
from utils.emailer import send_booking_confirmation, send_cancellation_code


def create_app(config_object=Config, **service_overrides):
    """
    service_overrides are passed to ScheduleService (clock, code_factory,
    code_sender...), mainly so tests can control time and codes.
    """
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(schedule_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(court_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(message_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    service_overrides.setdefault("code_sender", send_cancellation_code)
    service_overrides.setdefault("booking_notifier", send_booking_confirmation)
    app.extensions["schedule_service"] = ScheduleService.from_config(db.session, app.config, **service_overrides)

    @app.errorhandler(SchedulingError)
    def _scheduling_error(exc):
        return jsonify(**exc.to_dict()), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
import click
from models.court import Court
from scheduling.schemas import parse_date

DEMO_COURTS = [
    # (name, category_id, opening, closing, slot_minutes)
    ("Futsal Court 1", 1, time(9, 0), time(23, 0), 60),
    ("Futsal Court 2", 1, time(9, 0), time(23, 0), 60),
    ("Cricket Net", 2, time(10, 0), time(22, 0), 60),
    ("Padel Court", 3, time(8, 0), time(22, 0), 90),
]

def register_cli(app):
    @app.cli.command("seed-courts")
    def seed_courts():
        """Create the demo courts if they do not exist yet (idempotent)."""
        db.create_all()
        service = app.extensions["schedule_service"]
        existing = {(c.category_id, c.name_normalized) for c in Court.query.all()}
        created = 0
        for name, category_id, opening, closing, minutes in DEMO_COURTS:
            if (category_id, name.lower()) in existing:
                continue
            service.create_court(name, category_id, opening, closing, minutes)
            created += 1
        print(f"{created} court(s) created")

    @app.cli.command("show-grid")
    @click.argument("court_id", type=int)
    @click.argument("date")
    def show_grid(court_id, date):
        """Print the slot grid of a court for YYYY-MM-DD."""
        service = app.extensions["schedule_service"]
        try:
            grid = service.get_grid(court_id, parse_date(date))
        except SchedulingError as exc:
            print(exc.message)
            return

        kind = "custom" if grid.is_custom else "default"
        print(f"Court {court_id} on {grid.date.isoformat()} ({kind} schedule)")
        for slot in grid.slots:
            status = f"BOOKED #{slot.booking_id}" if slot.is_booked else "available"
            print(f"  {slot.label:<8} {slot.time_range}  {status}")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
