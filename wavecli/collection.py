"""wavecli collections - load YAML request collections and resolve their variables."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from wavecli.body import BodySpec, FormBody, JsonBody
from wavecli.core import resolve_collections_dir, resolve_vars
from wavecli.errors import InvalidCollection, RequestNotFound, UnsupportedMethod
from wavecli.executor import HttpMethod

logger = logging.getLogger(__name__)

COLLECTION_EXTENSIONS = (".yaml", ".yml")


@dataclass
class RequestTemplate:
    name: str
    method: HttpMethod
    url: str
    headers: dict[str, str] | None = None
    body: BodySpec | None = None


@dataclass
class Collection:
    variables: dict[str, str] = field(default_factory=dict)
    requests: list[RequestTemplate] = field(default_factory=list)
    name: str = ""

    def request_names(self) -> list[str]:
        return [r.name for r in self.requests]


# ── Loading ──────────────────────────────────────────────────────────────


def collection_search_paths(name: str, collections_dir: str | Path | None = None) -> list[Path]:
    directory = Path(collections_dir) if collections_dir else resolve_collections_dir()
    return [directory / f"{name}{ext}" for ext in COLLECTION_EXTENSIONS]


def load_collection(name: str, collections_dir: str | Path | None = None) -> Collection:
    """Load collection <name> from the collections directory.

    Tries <name>.yaml, then <name>.yml; the first successful parse wins.
    When every existing candidate fails, the first failure is raised.
    """
    candidates = collection_search_paths(name, collections_dir)
    first_error: InvalidCollection | None = None
    for path in candidates:
        logger.debug("looking for collection at %s", path)
        if not path.is_file():
            continue
        try:
            coll = load_collection_file(path)
        except InvalidCollection as e:
            logger.debug("failed to load %s: %s", path, e)
            if first_error is None:
                first_error = e
            continue
        coll.name = name
        return coll
    if first_error is not None:
        raise first_error
    raise InvalidCollection(
        f"Collection file not found: '{name}.yaml' or '{name}.yml'. Searched:\n"
        + "\n".join(f"  - {p}" for p in candidates),
    )


def load_collection_file(path: str | Path) -> Collection:
    """Read and validate a single collection YAML file."""
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise InvalidCollection(f"Cannot read collection file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise InvalidCollection(f"Invalid YAML in collection file '{path}': {e}") from e

    if not isinstance(data, dict):
        raise InvalidCollection(f"Collection file '{path}' must be a mapping")

    variables = data.get("variables") or {}
    if not isinstance(variables, dict):
        raise InvalidCollection(f"'variables' in '{path}' must be a mapping")

    raw_requests = data.get("requests")
    if not isinstance(raw_requests, list):
        raise InvalidCollection(f"Collection file '{path}' must contain a 'requests' list")

    requests = [_parse_request(item, i, path) for i, item in enumerate(raw_requests)]
    return Collection(
        variables={str(k): _scalar_str(v) for k, v in variables.items()},
        requests=requests,
        name=path.stem,
    )


def _parse_request(item: Any, index: int, path: Path) -> RequestTemplate:
    if not isinstance(item, dict):
        raise InvalidCollection(f"Request #{index + 1} in '{path}' must be a mapping")

    for key in ("name", "method", "url"):
        if item.get(key) in (None, ""):
            raise InvalidCollection(f"Request #{index + 1} in '{path}' is missing '{key}'")

    name = str(item["name"])
    try:
        method = HttpMethod.parse(item["method"])
    except UnsupportedMethod as e:
        raise InvalidCollection(f"Invalid HTTP method in request '{name}': {item['method']}") from e

    headers = item.get("headers")
    if headers is not None:
        if not isinstance(headers, dict):
            raise InvalidCollection(f"Headers of request '{name}' must be a mapping")
        headers = {str(k): _scalar_str(v) for k, v in headers.items()}

    body = None
    if item.get("body") is not None:
        body = _parse_body(item["body"], name)

    return RequestTemplate(
        name=name,
        method=method,
        url=str(item["url"]),
        headers=headers,
        body=body,
    )


def _parse_body(raw: Any, request_name: str) -> BodySpec:
    """Parse a body mapping holding exactly one of 'json' or 'form'."""
    if not isinstance(raw, dict):
        raise InvalidCollection(f"Body of request '{request_name}' must be a mapping")

    unknown = [k for k in raw if k not in ("json", "form")]
    if unknown:
        raise InvalidCollection(
            f"Unknown body key '{unknown[0]}' in request '{request_name}', expected 'json' or 'form'",
        )
    if "json" in raw and "form" in raw:
        raise InvalidCollection(
            f"Only one of 'json' or 'form' can be used in the body of request '{request_name}'",
        )
    if "json" in raw:
        data = raw["json"] if raw["json"] is not None else {}
        if not isinstance(data, dict):
            raise InvalidCollection(f"'json' body of request '{request_name}' must be a mapping")
        return JsonBody({str(k): _yaml_to_json(v) for k, v in data.items()})
    if "form" in raw:
        data = raw["form"] if raw["form"] is not None else {}
        if not isinstance(data, dict):
            raise InvalidCollection(f"'form' body of request '{request_name}' must be a mapping")
        return FormBody.from_mapping(data)
    raise InvalidCollection(f"Body of request '{request_name}' must contain either 'json' or 'form'")


def _yaml_to_json(value: Any) -> Any:
    """Convert a YAML value into JSON-encodable types (dates become strings)."""
    if isinstance(value, dict):
        return {str(k): _yaml_to_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_yaml_to_json(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _scalar_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def find_request(collection: Collection, name: str) -> RequestTemplate:
    """Return the first request with this name."""
    for req in collection.requests:
        if req.name == name:
            return req
    raise RequestNotFound(collection.name, name, collection.request_names())


def list_collections(collections_dir: str | Path | None = None) -> tuple[Path, list[str]]:
    """List collection names in the collections directory.

    Returns (resolved_dir, sorted names). config.yaml is not a collection.
    """
    directory = Path(collections_dir) if collections_dir else resolve_collections_dir()
    if not directory.is_dir():
        return (directory, [])
    names = {
        f.stem
        for f in directory.iterdir()
        if f.is_file() and f.suffix in COLLECTION_EXTENSIONS and f.stem != "config"
    }
    return (directory, sorted(names))


# ── Resolution ───────────────────────────────────────────────────────────


def resolve_request(
    template: RequestTemplate,
    file_vars: Mapping[str, str],
    env: Mapping[str, str] | None = None,
) -> RequestTemplate:
    """Return a copy of template with every placeholder substituted.

    Order: url, header values, body. JSON bodies only have their string
    leaves resolved; numbers, booleans and nulls keep their type.
    """
    url = resolve_vars(template.url, file_vars, env)

    headers = None
    if template.headers is not None:
        headers = {k: resolve_vars(v, file_vars, env) for k, v in template.headers.items()}

    body: BodySpec | None = None
    if isinstance(template.body, JsonBody):
        body = JsonBody(_resolve_json(template.body.data, file_vars, env))
    elif isinstance(template.body, FormBody):
        body = FormBody([(k, resolve_vars(v, file_vars, env)) for k, v in template.body.fields])

    return RequestTemplate(
        name=template.name,
        method=template.method,
        url=url,
        headers=headers,
        body=body,
    )


def _resolve_json(obj: Any, file_vars: Mapping[str, str], env: Mapping[str, str] | None) -> Any:
    if isinstance(obj, str):
        return resolve_vars(obj, file_vars, env)
    if isinstance(obj, dict):
        return {k: _resolve_json(v, file_vars, env) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_resolve_json(item, file_vars, env) for item in obj]
    return copy.deepcopy(obj)
