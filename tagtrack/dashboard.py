"""Flask monitoring dashboard for the tracking pipeline."""

from flask import Flask, jsonify, request

from tagtrack.scheduler import MetricsScheduler
from tagtrack.stats import SinkStats


def create_dashboard_app(stats: SinkStats, scheduler: MetricsScheduler) -> Flask:
    app = Flask(__name__)

    @app.route("/stats")
    def stats_view():
        snap = stats.snapshot()
        snap["last_snapshot"] = scheduler.last_snapshot
        return jsonify(snap)

    @app.route("/activities")
    def activities():
        n = request.args.get("n", default=10, type=int)
        return jsonify(stats.get_recent(n))

    @app.route("/health")
    def health():
        return jsonify(status="ok")

    return app


def run_dashboard(app: Flask, port: int):
    """Run the Flask app (intended for use in a daemon thread)."""
    app.run(host="0.0.0.0", port=port, use_reloader=False)
