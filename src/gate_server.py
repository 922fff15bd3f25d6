"""
gatelang — HTTP API Server
Copyright (c) 2026 Alex P. Slaby — MIT License

JSON API over the circuit parser and emulator.
All endpoints accept/return JSON. Stateless & deterministic.

Routes:
  POST /tokenize {code}         → {tokens}
  POST /parse    {code}         → {input_count, tree, source}
  POST /emulate  {code}         → {ok, title, text}
  GET  /test                    → {ok, title, text}
  GET  /health                  → {ok, version}
  GET  /schema                  → {json_schema}
"""

import sys, json
from http.server import HTTPServer, BaseHTTPRequestHandler
from urllib.parse import urlparse

from gate import to_source
from gate_parser import tokenize, parse, ParseError
from gate_json import to_json, tokens_to_json, GATE_IR_SCHEMA
from gate_commands import dispatch
from gate_config import ServerConfig, ConfigError


VERSION = "0.1.0"


class BadRequest(Exception):
    pass


class GateHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the gate API."""

    def do_GET(self):
        path = urlparse(self.path).path
        if path == "/health":
            self._json_response({"ok": True, "version": VERSION, "service": "gate-api"})
        elif path == "/schema":
            self._json_response(GATE_IR_SCHEMA)
        elif path == "/test":
            self._json_response(dispatch("test", {}, self.server.config).to_dict())
        else:
            self._json_response({"error": f"Unknown GET endpoint: {path}"}, 404)

    def do_POST(self):
        path = urlparse(self.path).path

        handlers = {
            "/tokenize": self._handle_tokenize,
            "/parse": self._handle_parse,
            "/emulate": self._handle_emulate,
        }

        handler = handlers.get(path)
        if handler:
            try:
                body = self._read_body()
                result, code = handler(body)
                self._json_response(result, code)
            except BadRequest as e:
                self._json_response({"ok": False, "error": str(e), "type": "bad_request"}, 400)
            except ParseError as e:
                self._json_response({"ok": False, "error": str(e), "type": "parse_error",
                                     "kind": e.kind, "col": e.col}, 400)
            except Exception as e:
                self._json_response({"ok": False, "error": str(e), "type": "internal"}, 500)
        else:
            self._json_response({"error": f"Unknown POST endpoint: {path}"}, 404)

    def _code(self, body):
        code = body.get("code")
        if not isinstance(code, str):
            raise BadRequest("Field 'code' must be a string")
        if len(code) > self.server.config.max_code_length:
            raise BadRequest(f"Code is longer than {self.server.config.max_code_length} characters")
        return code

    def _handle_tokenize(self, body):
        tokens = tokenize(self._code(body))
        return {"ok": True, "tokens": tokens_to_json(tokens)}, 200

    def _handle_parse(self, body):
        input_count, tree = parse(tokenize(self._code(body)))
        return {"ok": True, "input_count": input_count,
                "tree": to_json(tree), "source": to_source(tree)}, 200

    def _handle_emulate(self, body):
        self._code(body)
        response = dispatch("emulate", body, self.server.config)
        return response.to_dict(), 200 if response.ok else 422

    def _read_body(self):
        length = int(self.headers.get('Content-Length', 0))
        if length == 0:
            return {}
        raw = self.rfile.read(length)
        try:
            body = json.loads(raw)
        except ValueError as e:
            raise BadRequest(f"Invalid JSON body: {e}") from e
        if not isinstance(body, dict):
            raise BadRequest("Request body must be a JSON object")
        return body

    def _json_response(self, data, code=200):
        body = json.dumps(data, indent=2, ensure_ascii=False, default=str).encode()
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        if self.server.config.log_requests:
            sys.stderr.write(f"{self.address_string()} {format % args}\n")


class GateServer(HTTPServer):
    def __init__(self, config=None):
        self.config = config or ServerConfig.default()
        super().__init__((self.config.host, self.config.port), GateHandler)

    def run(self):
        host, port = self.server_address[:2]
        print(f"gate API listening on {host}:{port}")
        self.serve_forever()


def create_app(config=None):
    return GateServer(config)


if __name__ == "__main__":
    try:
        config = ServerConfig.from_file(sys.argv[1]) if len(sys.argv) > 1 else ServerConfig()
    except ConfigError as e:
        print(e, file=sys.stderr)
        sys.exit(1)
    create_app(config).run()
