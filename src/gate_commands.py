"""
gatelang — Command Handlers
Copyright (c) 2026 Alex P. Slaby — MIT License

Commands answer with a Response (title + text, success or failure).

  test                 → "Hello world!"
  emulate {code}       → one truth table per source line

Multi-line submissions are processed line by line; the first failing
line ("[i] Parsing error" / "[i] Emulation error") discards the rest.
"""

from gate import Emulator, EmulatorError
from gate_parser import tokenize, parse, ParseError
from gate_config import ServerConfig


class Response:
    """Result of a command, rendered by the HTTP API or CLI."""

    def __init__(self, ok, title, text):
        self.ok = ok
        self.title = title
        self.text = text

    def __repr__(self):
        state = "ok" if self.ok else "failed"
        return f"Response({state}, {self.title!r})"

    @classmethod
    def success(cls, title, text):
        return cls(True, title, text)

    @classmethod
    def failure(cls, title, text):
        return cls(False, title, text)

    @classmethod
    def invalid_command(cls):
        return cls(False, "Internal error", "The command is invalid.")

    @classmethod
    def unimplemented(cls):
        return cls(False, "Internal error", "The command is not implemented.")

    def to_dict(self):
        return {"ok": self.ok, "title": self.title, "text": self.text}


# ═══════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════

def run_test(body=None, config=None):
    return Response.success("Test", "Hello world!")


def run_emulate(code, config=None):
    config = config or ServerConfig.default()
    if not isinstance(code, str):
        return Response.invalid_command()
    if len(code) > config.max_code_length:
        return Response.failure(
            "Invalid input", f"Code is longer than {config.max_code_length} characters")

    out = []
    for i, statement in enumerate(code.split('\n')):
        try:
            input_count, component = parse(tokenize(statement))
        except ParseError as e:
            return Response.failure(f"[{i}] Parsing error", str(e))
        if input_count > config.max_inputs:
            return Response.failure(f"[{i}] Emulation error", "Too many inputs")
        try:
            emulator = Emulator(input_count, component)
        except EmulatorError:
            return Response.failure(f"[{i}] Emulation error", "Could not create emulator")
        try:
            table = emulator.emulate_all()
        except EmulatorError:
            return Response.failure(f"[{i}] Emulation error", "Could not emulate")
        out.append(f"[{i}]:\n```\n{table}```\n")
    return Response.success("Success", "".join(out))


COMMANDS = {
    "test": lambda body, config: run_test(body, config),
    "emulate": lambda body, config: run_emulate(body.get("code"), config),
}


def dispatch(command, body=None, config=None):
    """Route a command name to its handler."""
    config = config or ServerConfig.default()
    if config.log_requests:
        print(f"/{command}")
    handler = COMMANDS.get(command)
    if handler is None:
        return Response.unimplemented()
    return handler(body or {}, config)
