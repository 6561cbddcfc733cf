"""wavecli printer - human-readable response output."""

from __future__ import annotations

import json

import click

from wavecli.executor import HttpResponse


def status_color(status: int) -> str:
    if 200 <= status < 300:
        return "green"
    if 300 <= status < 400:
        return "yellow"
    if 400 <= status < 600:
        return "red"
    return "white"


def _header_line(key: str, value: str) -> str:
    return f"{click.style(key, fg='blue')}: {value}"


def format_response(resp: HttpResponse, verbose: bool = False) -> str:
    """Format a response for the terminal.

    - Status line, coloured by class
    - All headers when verbose or on 4xx/5xx
    - Otherwise only Content-Type, and only for non-JSON bodies
    - JSON bodies pretty-printed, anything else verbatim
    """
    lines: list[str] = [click.style(f"Status: {resp.status}", fg=status_color(resp.status), bold=True)]

    try:
        parsed = json.loads(resp.body)
        is_json = True
    except ValueError:
        parsed = None
        is_json = False

    show_all = verbose or 400 <= resp.status <= 599
    if show_all:
        for key, value in resp.headers.items():
            lines.append(_header_line(key, value))
    elif not is_json:
        for key, value in resp.headers.items():
            if key.lower() == "content-type":
                lines.append(_header_line(key, value))
                break

    if is_json:
        lines.append(json.dumps(parsed, indent=2, ensure_ascii=False))
    elif resp.body:
        lines.append(resp.body)

    return "\n".join(lines)
