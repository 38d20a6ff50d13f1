"""Lightweight dashboard API server: reads from the tracker and serves JSON."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import parse_qs, urlparse

from applytrack.orchestrator import ApplyTrackService

logger = logging.getLogger(__name__)


class NotFound(Exception):
    """Raised for paths the dashboard does not serve."""


def _int_param(query: dict[str, list[str]], name: str) -> int | None:
    """Non-negative integer query parameter, or None when absent or unusable."""
    try:
        value = int(query.get(name, [""])[0])
    except ValueError:
        return None
    return value if value >= 0 else None


def build_payload(path: str, query: dict[str, list[str]], service: ApplyTrackService) -> Any:
    """Return the JSON-serialisable body for an API *path*.

    ``/api/export/csv`` returns a ``str``; every other route returns JSON data.
    """
    if path == "/api/stats":
        return service.stats().to_dict()
    if path == "/api/sankey":
        graph = service.flow()
        return {**graph.to_dict(), "empty": graph.is_empty}
    if path in ("/api/applications", "/api/export/json"):
        return json.loads(service.tracker.export_json())
    if path == "/api/export/csv":
        return service.tracker.export_csv()
    if path == "/api/activity":
        events = service.timeline(days=_int_param(query, "days"))
        return {"count": len(events), "data": [asdict(e) for e in events]}
    if path == "/api/reminders/upcoming":
        reminders = service.upcoming_reminders(hours=_int_param(query, "hours"))
        return {"count": len(reminders), "data": [r.to_dict() for r in reminders]}
    if path == "/api/reminders":
        completed = query.get("completed", [""])[0].lower()
        reminders = service.tracker.list_reminders(
            completed={"true": True, "false": False}.get(completed)
        )
        return {"count": len(reminders), "data": [r.to_dict() for r in reminders]}
    if path == "/api/contacts":
        contacts = service.tracker.list_contacts()
        return {"count": len(contacts), "data": [c.to_dict() for c in contacts]}
    raise NotFound(path)


def make_handler(service: ApplyTrackService) -> type[BaseHTTPRequestHandler]:
    class DashboardHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            parsed = urlparse(self.path)
            try:
                payload = build_payload(parsed.path, parse_qs(parsed.query), service)
            except NotFound:
                self._json_response({"success": False, "error": "not found"}, status=404)
                return
            if isinstance(payload, str):
                self._csv_response(payload)
            else:
                self._json_response({"success": True, "data": payload})

        def _json_response(self, data: Any, status: int = 200) -> None:
            body = json.dumps(data, default=str).encode()
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Access-Control-Allow-Origin", "*")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def _csv_response(self, text: str) -> None:
            body = (text or "No data").encode()
            self.send_response(200)
            self.send_header("Content-Type", "text/csv")
            self.send_header("Content-Disposition", "attachment; filename=applytrack-export.csv")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: Any) -> None:
            logger.debug("dashboard: " + format, *args)

    return DashboardHandler


def serve(service: ApplyTrackService, port: int = 8787) -> None:
    server = HTTPServer(("0.0.0.0", port), make_handler(service))
    logger.info("Dashboard running at http://localhost:%d", port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down dashboard.")
    finally:
        server.server_close()
