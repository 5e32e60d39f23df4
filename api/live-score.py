"""Vercel Serverless Function for live gameweek scores."""

import json
import sys
from http.server import BaseHTTPRequestHandler
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from tvt.api import live_score_response, parse_query  # noqa: E402
from tvt.constants import CACHE_CONTROL_VALUE  # noqa: E402
from tvt.logging_config import setup_logging  # noqa: E402

setup_logging(log_to_file=False)


class handler(BaseHTTPRequestHandler):  # noqa: N801
    def do_OPTIONS(self):
        """Handle CORS preflight."""
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.send_header('Access-Control-Max-Age', '86400')
        self.send_header('Content-Length', '0')
        self.end_headers()

    def do_GET(self):
        """Score a gameweek (?gw=&matchupId=)."""
        try:
            status, body = live_score_response(parse_query(self.path))
        except Exception as e:
            return self._send_json(500, {'error': str(e)})
        return self._send_json(status, body)

    def _send_json(self, status_code: int, data: dict):
        """Send JSON response with CORS and cache headers."""
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        if status_code == 200:
            self.send_header('Cache-Control', CACHE_CONTROL_VALUE)
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def log_message(self, format, *args):
        """Suppress default logging."""
        pass
