#!/usr/bin/env python3
"""
gatelang — Command Line Interface
Copyright (c) 2026 Alex P. Slaby — MIT License

Usage:
  python gate_cli.py tokenize -e CODE        Token stream (JSON)
  python gate_cli.py parse    -e CODE        Input count + JSON-IR
  python gate_cli.py emulate  -e CODE        Truth tables, one per line
  python gate_cli.py emulate  -f FILE
  python gate_cli.py tree     -e CODE        Indented tree (text)
  python gate_cli.py serve [--config PATH] [--port N]
  python gate_cli.py help

Exit codes: 0 ok, 1 input error, 2 usage error.
"""

import sys, os, json
sys.path.insert(0, os.path.dirname(__file__))

from gate import render_tree, to_source
from gate_parser import tokenize, parse, format_error, ParseError
from gate_json import to_json, tokens_to_json
from gate_commands import dispatch
from gate_config import ServerConfig, ConfigError

EXIT_OK = 0
EXIT_INPUT = 1
EXIT_USAGE = 2

USAGE = __doc__.split("Usage:")[1].split("Exit codes")[0].rstrip()


class UsageError(Exception):
    pass


def _emit(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _options(args):
    """Parse `-e CODE`, `-f FILE`, `--config PATH`, `--port N`."""
    opts = {}
    i = 0
    while i < len(args):
        flag = args[i]
        if flag not in ("-e", "-f", "--config", "--port"):
            raise UsageError(f"Unknown option: {flag}")
        if i + 1 >= len(args):
            raise UsageError(f"Option {flag} needs a value")
        opts[flag] = args[i + 1]
        i += 2
    return opts


def _source(opts):
    if "-e" in opts:
        return opts["-e"]
    if "-f" in opts:
        with open(opts["-f"]) as f:
            return f.read().rstrip('\n')
    raise UsageError("Expected -e CODE or -f FILE")


def cmd_tokenize(opts):
    code = _source(opts)
    try:
        tokens = tokenize(code)
    except ParseError as e:
        _emit({"ok": False, "error": format_error(code, e), "kind": e.kind})
        return EXIT_INPUT
    _emit({"ok": True, "tokens": tokens_to_json(tokens)})
    return EXIT_OK


def cmd_parse(opts):
    code = _source(opts)
    try:
        input_count, tree = parse(tokenize(code))
    except ParseError as e:
        _emit({"ok": False, "error": format_error(code, e), "kind": e.kind})
        return EXIT_INPUT
    _emit({"ok": True, "input_count": input_count, "tree": to_json(tree),
           "source": to_source(tree)})
    return EXIT_OK


def cmd_tree(opts):
    code = _source(opts)
    try:
        _, tree = parse(tokenize(code))
    except ParseError as e:
        print(format_error(code, e))
        return EXIT_INPUT
    print(render_tree(tree))
    return EXIT_OK


def cmd_emulate(opts):
    response = dispatch("emulate", {"code": _source(opts)})
    _emit(response.to_dict())
    return EXIT_OK if response.ok else EXIT_INPUT


def cmd_serve(opts):
    from gate_server import create_app
    try:
        config = ServerConfig.from_file(opts["--config"]) if "--config" in opts else ServerConfig()
    except ConfigError as e:
        print(e, file=sys.stderr)
        return EXIT_INPUT
    if "--port" in opts:
        if not opts["--port"].isdigit():
            raise UsageError(f"Invalid port: {opts['--port']}")
        config.port = int(opts["--port"])
    create_app(config).run()
    return EXIT_OK


COMMANDS = {
    "tokenize": cmd_tokenize,
    "parse": cmd_parse,
    "tree": cmd_tree,
    "emulate": cmd_emulate,
    "serve": cmd_serve,
}


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("help", "--help", "-h"):
        print("Usage:" + USAGE)
        return EXIT_OK if argv else EXIT_USAGE

    command = COMMANDS.get(argv[0])
    if command is None:
        _emit({"ok": False, "error": f"Unknown command: {argv[0]}"})
        return EXIT_USAGE
    try:
        return command(_options(argv[1:]))
    except UsageError as e:
        _emit({"ok": False, "error": str(e)})
        return EXIT_USAGE
    except OSError as e:
        _emit({"ok": False, "error": str(e)})
        return EXIT_INPUT


if __name__ == "__main__":
    sys.exit(main())
