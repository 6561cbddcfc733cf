"""wavecli CLI - terminal HTTP client with YAML request collections."""

import logging
import sys
from urllib.parse import urlsplit

import click

from wavecli import __version__

logger = logging.getLogger(__name__)

TOOL_HELP = """\
wave — Terminal HTTP client.

Send ad-hoc requests or replay named requests from YAML collections.

\b
AD-HOC REQUESTS
───────────────
  wave get example.com
  wave post example.com name=john age=30
  wave put example.com Authorization:Bearer123 status=active
  wave post example.com --form name=john email=john@example.com

  Trailing parameters:
    key:value    header        (Authorization:Bearer123)
    key=value    body field    (age=30 → JSON number, active=true → JSON bool)
    --form       send body fields as application/x-www-form-urlencoded;
                 must come before any other parameter

\b
COLLECTIONS
───────────
  wave collection myCollection myRequest
  wave c myCollection myRequest Authorization:Bearer456   # override a header
  wave c myCollection "Create User" name=bob               # override a body field
  wave list                  # list collections
  wave list myCollection     # list requests in a collection

  Collections live in .wave/<name>.yaml (or .yml). Override the directory
  with --dir or $WAVE_DIR.

\b
COLLECTION FILE FORMAT (.wave/<name>.yaml)
──────────────────────────────────────────
  \b
  variables:
    base_url: https://api.example.com
  requests:
    - name: Get User
      method: GET
      url: ${base_url}/users/${user_id}
      headers:
        Authorization: Bearer ${env:TOKEN}
    - name: Create User
      method: POST
      url: ${base_url}/users
      body:
        json: { name: Alice }      # or form: { key: value }, never both

  ${name} reads a collection variable, ${env:NAME} an environment variable.
  A missing variable is an error.

\b
CONFIG FILE (.wave/config.yaml)
───────────────────────────────
  \b
  defaults:
    env_file: .env      # loaded into ${env:...}, relative to config.yaml
    timeout: 30         # seconds; unset = no timeout
    verbose: false      # show response headers by default
"""


def make_backend(defaults: dict):
    """Build the HTTP backend used for dispatch."""
    from wavecli.executor import RequestsBackend

    return RequestsBackend(timeout=defaults.get("timeout"))


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group(
    help=TOOL_HELP,
    context_settings={"max_content_width": 88},
)
@click.option(
    "--dir",
    "collections_dir",
    default=None,
    help="Collections directory. Default: $WAVE_DIR, then ./.wave.",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    envvar="WAVE_DEBUG",
    help="Log resolution and dispatch details to stderr.",
)
@click.version_option(__version__, prog_name="wave")
@click.pass_context
def main(ctx, collections_dir, debug):
    """Send HTTP requests from the terminal."""
    from wavecli.core import load_config, resolve_collections_dir, resolve_config_path
    from wavecli.errors import WaveError

    _configure_logging(debug)

    directory = resolve_collections_dir(collections_dir)
    try:
        config = load_config(resolve_config_path(directory))
    except WaveError as e:
        _fail(e)
    ctx.obj = {"dir": directory, "config": config}


# ── Ad-hoc commands ──────────────────────────────────────────────────────


def _adhoc_command(method_name: str, accepts_form: bool):
    help_text = f"Send a {method_name} request to URL."
    if accepts_form:
        help_text += " Body fields are sent as JSON unless --form comes first."

    @click.command(
        name=method_name.lower(),
        help=help_text,
        context_settings={"ignore_unknown_options": True},
    )
    @click.argument("url")
    @click.argument("params", nargs=-1, type=click.UNPROCESSED)
    @click.option("-v", "--verbose", is_flag=True, default=False, help="Show all response headers.")
    @click.pass_obj
    def command(obj, url, params, verbose):
        from wavecli.errors import InvalidCliParam, WaveError
        from wavecli.executor import HttpMethod
        from wavecli.merge import FORM_FLAG, build_adhoc_request, parse_params

        try:
            method = HttpMethod(method_name)
            full_url = validate_url(url)
            if not accepts_form and FORM_FLAG in params:
                raise InvalidCliParam(f"'{FORM_FLAG}' is not supported for {method_name} requests")
            override = parse_params(params)
            request = build_adhoc_request(method, full_url, override)
            _dispatch(request, _verbose(verbose, obj), obj)
        except WaveError as e:
            _fail(e)

    return command


for _name, _form in (
    ("GET", False),
    ("POST", True),
    ("PUT", True),
    ("PATCH", True),
    ("DELETE", False),
    ("HEAD", False),
    ("OPTIONS", False),
):
    main.add_command(_adhoc_command(_name, _form))


# ── Collections ──────────────────────────────────────────────────────────


@click.command(
    name="collection",
    context_settings={"ignore_unknown_options": True},
)
@click.argument("collection_name")
@click.argument("request_name")
@click.argument("params", nargs=-1, type=click.UNPROCESSED)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show all response headers.")
@click.pass_obj
def collection_cmd(obj, collection_name, request_name, params, verbose):
    """Run a saved request from a collection."""
    from wavecli.collection import find_request, load_collection, resolve_request
    from wavecli.core import load_env
    from wavecli.errors import WaveError
    from wavecli.merge import build_collection_request, parse_params

    config = obj["config"]
    defaults = config.get("defaults", {})
    try:
        override = parse_params(params)
        coll = load_collection(collection_name, obj["dir"])
        template = find_request(coll, request_name)
        env = load_env(defaults.get("env_file"), config.get("_config_dir"))
        resolved = resolve_request(template, coll.variables, env)
        request = build_collection_request(resolved, override)
        _dispatch(request, _verbose(verbose, obj), obj)
    except WaveError as e:
        _fail(e)


main.add_command(collection_cmd)
main.add_command(collection_cmd, name="c")


@main.command(name="list")
@click.argument("collection_name", required=False)
@click.pass_obj
def list_cmd(obj, collection_name):
    """List collections, or the requests in COLLECTION_NAME."""
    from wavecli.collection import list_collections, load_collection
    from wavecli.errors import WaveError

    if collection_name is None:
        directory, names = list_collections(obj["dir"])
        if not names:
            click.echo(f"No collections found in: {directory}")
            return
        click.echo(f"Collections from: {directory}")
        click.echo(f"{len(names)} available:\n")
        for name in names:
            click.echo(f"  {name}")
        return

    try:
        coll = load_collection(collection_name, obj["dir"])
    except WaveError as e:
        _fail(e)
    if not coll.requests:
        click.echo(f"No requests in collection '{collection_name}'.")
        return
    click.echo(f"{len(coll.requests)} requests in '{collection_name}':\n")
    for req in coll.requests:
        click.echo(f"  {req.name}")
        click.echo(f"    {req.method} {req.url}")


# ── Helpers ──────────────────────────────────────────────────────────────


def validate_url(url: str) -> str:
    """Prepend http:// when no scheme is given; reject URLs without a usable host."""
    from wavecli.errors import InvalidUrl

    if not url.strip():
        raise InvalidUrl(url)
    if not url.startswith(("http://", "https://")):
        url = f"http://{url}"
    host = urlsplit(url).hostname or ""
    if "." not in host and host != "localhost":
        raise InvalidUrl(url)
    return url


def _verbose(flag, obj) -> bool:
    """CLI -v wins; otherwise fall back to defaults.verbose from config."""
    return flag or bool(obj["config"].get("defaults", {}).get("verbose", False))


def _dispatch(request, verbose, obj):
    """Send request through the configured backend and print the response."""
    from wavecli.executor import Client
    from wavecli.printer import format_response
    from wavecli.spinner import spinner

    client = Client(make_backend(obj["config"].get("defaults", {})))
    logger.debug("dispatching %s %s", request.method, request.url)
    with spinner(f"{request.method} {request.url}"):
        resp = client.send(request)
    click.echo(format_response(resp, verbose=verbose))
    return resp


def _fail(error):
    click.echo(f"Error: {error}", err=True)
    if error.suggestion:
        click.echo(f"Suggestion: {error.suggestion}", err=True)
    sys.exit(1)
