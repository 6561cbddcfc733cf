"""wavecli errors - exception taxonomy with user-facing hints."""

from enum import Enum


class WaveError(Exception):
    """Base class for every failure the CLI reports to the user."""

    suggestion: str | None = None

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        if suggestion is not None:
            self.suggestion = suggestion

    def __str__(self) -> str:
        return self.message


# ── Variables ────────────────────────────────────────────────────────────


class VariableKind(Enum):
    FILE = "file"
    ENVIRONMENT = "environment"


class MissingVariable(WaveError):
    def __init__(self, name: str, kind: VariableKind):
        self.name = name
        self.kind = kind
        if kind is VariableKind.ENVIRONMENT:
            message = f"Missing environment variable: {name}"
            hint = f"Export {name} or add it to the env_file named in config.yaml"
        else:
            message = f"Missing variable: {name}"
            hint = "Define it under 'variables:' in the collection file"
        super().__init__(f"Failed to resolve variables: {message}", hint)


# ── Collections ──────────────────────────────────────────────────────────


class InvalidCollection(WaveError):
    suggestion = "Make sure the collection file exists in the collections directory and is valid YAML"


class ConfigError(InvalidCollection):
    suggestion = "Check config.yaml in the collections directory"


class RequestNotFound(WaveError):
    def __init__(self, collection: str, request: str, available: list[str] | None = None):
        self.collection = collection
        self.request = request
        self.available = list(available or [])
        hint = "Check the collection YAML file to see all available requests"
        if self.available:
            hint = "Available requests: " + ", ".join(self.available)
        super().__init__(
            f"Request '{request}' not found in collection '{collection}'.",
            hint,
        )


# ── CLI input ────────────────────────────────────────────────────────────


class InvalidCliParam(WaveError):
    suggestion = (
        "Use 'key:value' for headers and 'key=value' for body fields, "
        "e.g. Authorization:Bearer123 name=john age=30"
    )


class InvalidUrl(WaveError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(
            f"Invalid URL '{url}'. URLs must include a host, e.g. https://api.example.com",
            "Example: wave get https://api.example.com/users",
        )


# ── Transport ────────────────────────────────────────────────────────────


class HttpError(WaveError):
    """Raised by HTTP backends."""


class NetworkError(HttpError):
    def __init__(self, message: str):
        super().__init__(f"Network error: {message}", "Check the URL and that the server is reachable")


class ParseError(HttpError):
    def __init__(self, message: str):
        super().__init__(f"Parse error: {message}")


class UnsupportedMethod(HttpError):
    def __init__(self, method: str):
        self.method = method
        super().__init__(
            f"Unsupported HTTP method: '{method}'",
            "Supported methods: GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS",
        )
