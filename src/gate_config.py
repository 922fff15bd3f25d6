"""
gatelang — Server Configuration
Copyright (c) 2026 Alex P. Slaby — MIT License

Settings for the command layer and HTTP API. Loaded from a TOML file
(`.config.toml` by default):

  [server]
  host = "127.0.0.1"
  port = 8421
  max-inputs = 16
  max-code-length = 4000
  log-requests = true
"""

import tomllib
from gate import MAX_WIDTH


DEFAULT_CONFIG_FILE = ".config.toml"


class ConfigError(Exception):
    pass


# key in file → (attribute, type)
_KEYS = {
    "host":            ("host", str),
    "port":            ("port", int),
    "max-inputs":      ("max_inputs", int),
    "max-code-length": ("max_code_length", int),
    "log-requests":    ("log_requests", bool),
}


class ServerConfig:
    """Configuration for the command layer and HTTP server."""

    def __init__(self,
                 host="127.0.0.1",
                 port=8421,
                 max_inputs=16,
                 max_code_length=4000,
                 log_requests=False):
        if max_inputs > MAX_WIDTH:
            raise ConfigError(f"max-inputs {max_inputs} exceeds emulator width {MAX_WIDTH}")
        self.host = host
        self.port = port
        self.max_inputs = max_inputs
        self.max_code_length = max_code_length
        self.log_requests = log_requests

    @classmethod
    def default(cls):
        return cls()

    @classmethod
    def strict(cls):
        """Small circuits and short submissions only."""
        return cls(max_inputs=8, max_code_length=1000)

    @classmethod
    def from_file(cls, path=DEFAULT_CONFIG_FILE):
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except OSError as e:
            raise ConfigError(f"Could not read config file: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Could not parse config file: {e}") from e

        section = data.get("server", {})
        if not isinstance(section, dict):
            raise ConfigError("Could not parse config file: [server] must be a table")
        kwargs = {}
        for key, value in section.items():
            if key not in _KEYS:
                raise ConfigError(f"Could not parse config file: unknown key '{key}'")
            attr, ty = _KEYS[key]
            # bool is an int subclass; keep the two apart.
            if not isinstance(value, ty) or (ty is int and isinstance(value, bool)):
                raise ConfigError(
                    f"Could not parse config file: '{key}' must be {ty.__name__}")
            kwargs[attr] = value
        return cls(**kwargs)

    def to_dict(self):
        return {
            "host": self.host,
            "port": self.port,
            "max_inputs": self.max_inputs,
            "max_code_length": self.max_code_length,
            "log_requests": self.log_requests,
        }
