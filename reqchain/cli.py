"""reqchain CLI - send one request through the fluent client."""

import dataclasses
import json
import sys

import click

TOOL_HELP = """\
reqchain — fluent HTTP client.

Builds a request from METHOD and PATH, sends it, and prints the decoded
response.

\b
EXAMPLES
────────
  reqchain GET https://api.example.com/users -q page=2
  reqchain POST /users -b '{"name":"Ada"}'
  reqchain POST /upload --form title=Report --form files=@a.pdf --form files=@b.pdf

  With a .reqchain.yaml config providing base_url, relative paths work:
    reqchain GET /users

\b
CONFIG (.reqchain.yaml)
───────────────────────
  defaults:
    base_url: https://api.example.com
    prefix: v1
    headers:
      Authorization: "Bearer ${API_TOKEN}"
    env_file: .env
    debug: false

\b
EXIT CODES
──────────
  0  2xx response
  1  HTTP error, transport failure or bad input
"""


@click.command(
    cls=click.Command,
    help=TOOL_HELP,
    context_settings={"max_content_width": 88},
)
@click.argument("method")
@click.argument("path")
@click.option(
    "-c",
    "--config",
    "config_file",
    default=None,
    help="Config file path. Default: .reqchain.yaml in CWD, then ~/.reqchain/config.yaml.",
)
@click.option(
    "-q",
    "--query",
    multiple=True,
    help="Query parameter as key=value. Repeatable; a repeated key keeps the last value.",
)
@click.option(
    "-H",
    "--header",
    multiple=True,
    help="HTTP header as 'Name: Value'. Repeatable.",
)
@click.option("-b", "--body", default=None, help="Request body as JSON string.")
@click.option(
    "--form",
    "form_fields",
    multiple=True,
    help="Form field as KEY=VALUE or KEY=@FILE for file upload. "
    "Sends multipart/form-data. Repeatable. "
    "Mutually exclusive with --body.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Request timeout in seconds. Default: none.",
)
@click.option("--debug", is_flag=True, default=False, help="Print request diagnostics to stderr.")
@click.option(
    "--raw",
    is_flag=True,
    default=False,
    help="Output the response body only. Useful for piping.",
)
def main(method, path, config_file, query, header, body, form_fields, timeout, debug, raw):
    """Send one HTTP request and print the decoded response."""
    from reqchain.client import NextClient
    from reqchain.core import client_config_from_file
    from reqchain.errors import HttpError, ReqchainError
    from reqchain.form import parse_form_fields

    if form_fields and body:
        click.echo("ERROR: --form and --body are mutually exclusive.", err=True)
        sys.exit(1)

    config = client_config_from_file(config_file)
    if debug:
        config = dataclasses.replace(config, debug=True)

    try:
        payload = json.loads(body) if body else None
    except json.JSONDecodeError as e:
        click.echo(f"ERROR: Invalid JSON body: {e}", err=True)
        sys.exit(1)

    try:
        builder = NextClient(config).request(method, path, _parse_pairs(query))
    except ValueError:
        click.echo(f"ERROR: Unsupported method: {method}", err=True)
        sys.exit(1)

    if form_fields:
        try:
            builder = builder.form(parse_form_fields(form_fields))
        except OSError as e:
            click.echo(f"ERROR: Cannot read form file: {e}", err=True)
            sys.exit(1)
    elif payload is not None:
        builder = builder.json(payload)

    try:
        result = builder.send(_parse_headers(header), {"timeout": timeout})
    except HttpError as e:
        click.echo(f"ERROR: HTTP Error {e.status_code} {e.status_text}".rstrip(), err=True)
        click.echo(_format_body(e.response), err=True)
        sys.exit(1)
    except ReqchainError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)

    if raw:
        click.echo(_format_body(result.data))
        return
    click.echo(f"STATUS: {result.status_code}")
    if result.data is not None:
        click.echo("BODY:")
        click.echo(_format_body(result.data))


# ── Helpers ──────────────────────────────────────────────────────────────


def _parse_headers(header_tuples):
    """Parse -H 'Name: Value' tuples into a dict."""
    headers = {}
    for h in header_tuples:
        if ":" in h:
            k, v = h.split(":", 1)
            headers[k.strip()] = v.strip()
    return headers


def _parse_pairs(pairs):
    """Parse key=value tuples into a dict; later keys win."""
    result = {}
    for pair in pairs:
        if "=" in pair:
            k, v = pair.split("=", 1)
            result[k.strip()] = v
    return result


def _format_body(body):
    if isinstance(body, dict | list):
        return json.dumps(body, indent=2)
    return str(body) if body is not None else ""
