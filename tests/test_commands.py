"""
Tests for the command layer, configuration, CLI and HTTP API
"""
import pytest, json, sys, os, threading
import urllib.request, urllib.error
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from gate_commands import Response, run_test, run_emulate, dispatch
from gate_config import ServerConfig, ConfigError
from gate_server import GateServer, VERSION
import gate_cli


AND_TABLE = (
    ".0 .1 | out\n"
    " 0  0 |   0\n"
    " 0  1 |   0\n"
    " 1  0 |   0\n"
    " 1  1 |   1\n"
)

# Nested past the interpreter's recursion limit, still under max_code_length.
DEEP_OR = "or(" * 900 + ".0" + ")" * 900


# ═══════════════════════════════════════════
# RESPONSES & COMMANDS
# ═══════════════════════════════════════════

class TestResponse:
    def test_success(self):
        r = Response.success("Title", "text")
        assert r.ok is True
        assert r.to_dict() == {"ok": True, "title": "Title", "text": "text"}

    def test_failure(self):
        r = Response.failure("Oops", "bad")
        assert r.ok is False

    def test_canned(self):
        assert Response.invalid_command().text == "The command is invalid."
        assert Response.unimplemented().text == "The command is not implemented."
        assert Response.unimplemented().title == "Internal error"


class TestEmulateCommand:
    def test_hello(self):
        r = run_test()
        assert (r.ok, r.title, r.text) == (True, "Test", "Hello world!")

    def test_single_line(self):
        r = run_emulate("and(.0,.1)")
        assert r.ok
        assert r.title == "Success"
        assert r.text == "[0]:\n```\n" + AND_TABLE + "```\n"

    def test_multi_line(self):
        r = run_emulate("!.0\nor(.0,.1)")
        assert r.ok
        assert r.text.startswith("[0]:\n```\n.0 | out\n")
        assert "\n[1]:\n```\n.0 .1 | out\n" in r.text

    def test_parse_error_on_later_line(self):
        r = run_emulate(".0\nxor(.0,.1)\nand(")
        assert not r.ok
        assert r.title == "[1] Parsing error"
        assert r.text == 'The function "xor" is unknown'

    def test_lex_error(self):
        r = run_emulate("and(.x)")
        assert r.title == "[0] Parsing error"
        assert r.text == '"" is not a valid number'

    def test_empty_code(self):
        r = run_emulate("")
        assert r.title == "[0] Parsing error"
        assert r.text == "The expression cannot be empty"

    def test_trailing_newline_is_an_empty_line(self):
        r = run_emulate(".0\n")
        assert r.title == "[1] Parsing error"

    def test_carriage_returns_are_whitespace(self):
        assert run_emulate(".0\r\n!.0").ok

    def test_deep_nesting(self):
        r = run_emulate(DEEP_OR + "\n!" + DEEP_OR, ServerConfig(max_code_length=8000))
        assert r.ok, r.text
        assert r.text == ("[0]:\n```\n.0 | out\n 0 |   0\n 1 |   1\n```\n"
                          "[1]:\n```\n.0 | out\n 0 |   1\n 1 |   0\n```\n")

    def test_too_many_inputs(self):
        r = run_emulate(".16")
        assert not r.ok
        assert r.title == "[0] Emulation error"
        assert r.text == "Too many inputs"

    def test_configured_input_limit(self):
        config = ServerConfig(max_inputs=3)
        assert run_emulate("or(.0,.2)", config).ok
        assert run_emulate("or(.0,.3)", config).text == "Too many inputs"

    def test_code_too_long(self):
        config = ServerConfig(max_code_length=10)
        r = run_emulate("or(.0,.1,.2)", config)
        assert r.title == "Invalid input"

    def test_not_a_string(self):
        assert run_emulate(None).text == "The command is invalid."

    def test_dispatch(self):
        assert dispatch("test").text == "Hello world!"
        assert dispatch("emulate", {"code": ".0"}).ok
        assert dispatch("lexicon").text == "The command is not implemented."

    def test_dispatch_logs(self, capsys):
        dispatch("test", {}, ServerConfig(log_requests=True))
        assert capsys.readouterr().out == "/test\n"

    def test_dispatch_quiet_by_default(self, capsys):
        dispatch("test")
        assert capsys.readouterr().out == ""


# ═══════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════

class TestConfig:
    def _write(self, tmp_path, text):
        path = tmp_path / "config.toml"
        path.write_text(text)
        return str(path)

    def test_defaults(self):
        c = ServerConfig.default()
        assert c.max_inputs == 16
        assert c.max_code_length == 4000
        assert c.log_requests is False

    def test_strict(self):
        c = ServerConfig.strict()
        assert (c.max_inputs, c.max_code_length) == (8, 1000)

    def test_to_dict(self):
        d = ServerConfig(port=9000).to_dict()
        assert d["port"] == 9000
        assert set(d) == {"host", "port", "max_inputs", "max_code_length", "log_requests"}

    def test_from_file(self, tmp_path):
        path = self._write(tmp_path, '[server]\nport = 9001\nmax-inputs = 4\nlog-requests = true\n')
        c = ServerConfig.from_file(path)
        assert (c.port, c.max_inputs, c.log_requests) == (9001, 4, True)
        assert c.max_code_length == 4000

    def test_empty_file(self, tmp_path):
        c = ServerConfig.from_file(self._write(tmp_path, ""))
        assert c.to_dict() == ServerConfig().to_dict()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Could not read config file"):
            ServerConfig.from_file(str(tmp_path / "nope.toml"))

    def test_bad_toml(self, tmp_path):
        with pytest.raises(ConfigError, match="Could not parse config file"):
            ServerConfig.from_file(self._write(tmp_path, "[server\n"))

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ConfigError, match="unknown key"):
            ServerConfig.from_file(self._write(tmp_path, "[server]\ntoken = 'x'\n"))

    def test_wrong_type(self, tmp_path):
        with pytest.raises(ConfigError, match="must be int"):
            ServerConfig.from_file(self._write(tmp_path, "[server]\nport = '80'\n"))

    def test_bool_is_not_int(self, tmp_path):
        with pytest.raises(ConfigError):
            ServerConfig.from_file(self._write(tmp_path, "[server]\nmax-inputs = true\n"))

    def test_input_limit_bounded_by_emulator(self):
        with pytest.raises(ConfigError):
            ServerConfig(max_inputs=64)


# ═══════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════

class TestCLI:
    def _run(self, capsys, args):
        code = gate_cli.main(args)
        return code, capsys.readouterr().out

    def test_tokenize(self, capsys):
        code, out = self._run(capsys, ["tokenize", "-e", "!.3"])
        assert code == 0
        data = json.loads(out)
        assert [t["kind"] for t in data["tokens"]] == ["NOT", "INPUT"]

    def test_parse(self, capsys):
        code, out = self._run(capsys, ["parse", "-e", "or(and(.0,.1),!.2)"])
        assert code == 0
        data = json.loads(out)
        assert data["input_count"] == 3
        tree = data["tree"]
        assert tree["nodes"][tree["root"]]["kind"] == "or"
        assert data["source"] == "or(and(.0,.1),!.2)"

    def test_parse_error(self, capsys):
        code, out = self._run(capsys, ["parse", "-e", "and(.0,,.1)"])
        assert code == 1
        data = json.loads(out)
        assert data["ok"] is False
        assert data["kind"] == "UnexpectedComma"
        assert data["error"].startswith("Unexpected comma in code")

    def test_tokenize_error(self, capsys):
        code, out = self._run(capsys, ["tokenize", "-e", "."])
        assert code == 1
        assert json.loads(out)["kind"] == "InvalidNumber"

    def test_tree(self, capsys):
        code, out = self._run(capsys, ["tree", "-e", "and(.0,!.1)"])
        assert code == 0
        assert out == "and\n   ├─ .0\n   └─ !\n      └─ .1\n"

    def test_deep_nesting(self, capsys):
        code, out = self._run(capsys, ["parse", "-e", DEEP_OR])
        assert code == 0
        assert json.loads(out)["tree"]["metadata"]["node_count"] == 901
        code, out = self._run(capsys, ["tree", "-e", DEEP_OR])
        assert code == 0
        lines = out.splitlines()
        assert len(lines) == 901
        assert lines[-1] == "   " * 900 + "└─ .0"

    def test_emulate(self, capsys):
        code, out = self._run(capsys, ["emulate", "-e", "and(.0,.1)"])
        assert code == 0
        assert json.loads(out)["text"] == "[0]:\n```\n" + AND_TABLE + "```\n"

    def test_emulate_failure(self, capsys):
        code, out = self._run(capsys, ["emulate", "-e", "xor(.0)"])
        assert code == 1
        assert json.loads(out)["title"] == "[0] Parsing error"

    def test_emulate_file(self, capsys, tmp_path):
        path = tmp_path / "circuits.txt"
        path.write_text("and(.0,.1)\n!.0\n")
        code, out = self._run(capsys, ["emulate", "-f", str(path)])
        assert code == 0
        assert "[1]:" in json.loads(out)["text"]

    def test_missing_file(self, capsys, tmp_path):
        code, _ = self._run(capsys, ["emulate", "-f", str(tmp_path / "none.txt")])
        assert code == 1

    def test_missing_source(self, capsys):
        code, _ = self._run(capsys, ["parse"])
        assert code == 2

    def test_unknown_option(self, capsys):
        code, _ = self._run(capsys, ["parse", "-x", "1"])
        assert code == 2

    def test_unknown_command(self, capsys):
        code, out = self._run(capsys, ["nonexistent"])
        assert code == 2
        assert "Unknown command" in json.loads(out)["error"]

    def test_help(self, capsys):
        code, out = self._run(capsys, ["help"])
        assert code == 0
        assert "tokenize" in out

    def test_no_args(self, capsys):
        code, _ = self._run(capsys, [])
        assert code == 2

    def test_serve_bad_config(self, capsys, tmp_path):
        code = gate_cli.main(["serve", "--config", str(tmp_path / "missing.toml")])
        assert code == 1
        assert "Could not read config file" in capsys.readouterr().err

    def test_serve_bad_port(self, capsys):
        code, _ = self._run(capsys, ["serve", "--port", "http"])
        assert code == 2


# ═══════════════════════════════════════════
# HTTP API
# ═══════════════════════════════════════════

@pytest.fixture
def server():
    srv = GateServer(ServerConfig(host="127.0.0.1", port=0))
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.shutdown()
    srv.server_close()


def _request(server, path, body=None, raw=None):
    host, port = server.server_address[:2]
    data = raw if raw is not None else (json.dumps(body).encode() if body is not None else None)
    req = urllib.request.Request(f"http://{host}:{port}{path}", data=data,
                                 headers={"Content-Type": "application/json"})
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            return resp.status, json.loads(resp.read())
    except urllib.error.HTTPError as e:
        return e.code, json.loads(e.read())


class TestServer:
    def test_health(self, server):
        status, data = _request(server, "/health")
        assert status == 200
        assert data == {"ok": True, "version": VERSION, "service": "gate-api"}

    def test_test(self, server):
        status, data = _request(server, "/test")
        assert status == 200
        assert data["text"] == "Hello world!"

    def test_tokenize(self, server):
        status, data = _request(server, "/tokenize", {"code": "and(.0)"})
        assert status == 200
        assert [t["kind"] for t in data["tokens"]] == ["IDENT", "LPAREN", "INPUT", "RPAREN"]

    def test_parse(self, server):
        status, data = _request(server, "/parse", {"code": "!.0"})
        assert status == 200
        assert data["input_count"] == 1
        assert data["tree"]["root"] == 1
        assert data["tree"]["nodes"] == [
            {"kind": "input", "index": 0},
            {"kind": "not", "children": [0]},
        ]
        assert data["source"] == "!.0"

    def test_parse_deep_nesting(self, server):
        status, data = _request(server, "/parse", {"code": DEEP_OR})
        assert status == 200
        assert data["input_count"] == 1
        assert data["source"] == DEEP_OR
        assert data["tree"]["metadata"]["max_depth"] == 900

    def test_emulate_deep_nesting(self, server):
        status, data = _request(server, "/emulate", {"code": "!" + DEEP_OR})
        assert status == 200
        assert data["ok"] is True

    def test_schema(self, server):
        status, data = _request(server, "/schema")
        assert status == 200
        assert data["title"] == "Gate-IR v1"
        assert data["required"] == ["version", "root", "nodes"]

    def test_parse_error(self, server):
        status, data = _request(server, "/parse", {"code": "xor(.0,.1)"})
        assert status == 400
        assert data["type"] == "parse_error"
        assert data["kind"] == "UnknownFunction"
        assert data["error"] == 'The function "xor" is unknown'

    def test_emulate(self, server):
        status, data = _request(server, "/emulate", {"code": "and(.0,.1)"})
        assert status == 200
        assert data["ok"] is True
        assert AND_TABLE in data["text"]

    def test_emulate_failure(self, server):
        status, data = _request(server, "/emulate", {"code": ".0\n.0 .1"})
        assert status == 422
        assert data["title"] == "[1] Parsing error"
        assert data["text"] == "Unexpected tokens after expression"

    def test_missing_code(self, server):
        status, data = _request(server, "/parse", {})
        assert status == 400
        assert data["type"] == "bad_request"

    def test_invalid_json(self, server):
        status, data = _request(server, "/parse", raw=b"{not json")
        assert status == 400
        assert data["type"] == "bad_request"

    def test_unknown_routes(self, server):
        assert _request(server, "/nope")[0] == 404
        assert _request(server, "/nope", {"code": ".0"})[0] == 404
