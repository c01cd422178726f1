"""CLI entry point for ash-mailcap.

Meant to be wired into ~/.mailcap for the notifications Stash sends when
someone comments on a review, e.g.

    text/plain; ash-mailcap -c -x 'less %s' %s; copiousoutput
"""

from __future__ import annotations

import importlib.metadata
import logging
import os
import sys
import textwrap
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from ashmail_core.config import DEFAULT_CONFIG_PATH, ConfigError, load_config, load_template
from ashmail_core.dispatcher import Dispatcher
from ashmail_core.template import DEFAULT_EDITOR_WRAPPER, TemplateError

# stdout is reserved for replayed review output.
console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    handler = RichHandler(console=console, show_time=False, show_path=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def _build_cache(config: dict):
    """Instantiate the cache backend from the merged settings.

      cache: true → FileCache in temp_dir
      (default)   → NoOpCache (every lookup misses, nothing recorded)
    """
    from ashmail_store.noop import NoOpCache

    if config.get("cache"):
        from ashmail_store.file import FileCache

        return FileCache(directory=config.get("temp_dir"))

    return NoOpCache()


def _exit(code: int) -> None:
    """Exit with ``code`` even if the reader of stdout has gone away."""
    try:
        sys.stdout.flush()
    except BrokenPipeError:
        # Leftover buffered output would fail again in the interpreter's
        # final flush and turn the exit status into 120.
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
    sys.exit(code)


def _read_input(path: Path) -> str:
    try:
        return path.read_bytes().decode("utf-8", errors="replace")
    except OSError as e:
        raise click.ClickException(f"can't read specified file: {e}") from e


_WRAPPER_EXAMPLE = textwrap.indent(DEFAULT_EDITOR_WRAPPER.replace("\n\n", "\n"), "    ")

_HELP = f"""Open the review comment mentioned in a Stash notification.

FILE is an e-mail that Stash sends when someone adds a comment to a
review. ash is started on that review with $EDITOR pointing at a generated
wrapper which opens the editor scrolled to the comment.

\b
Default wrapper for the editor:

\b
{_WRAPPER_EXAMPLE}

\b
A custom wrapper (-t) uses the same syntax and gets two variables:
  {{{{.CommentID}}}}  comment mentioned in FILE
  {{{{.ReviewURL}}}}  full URL of the review
"""


@click.command(help=_HELP, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(
    version=importlib.metadata.version("ash-mailcap"),
    prog_name="ash-mailcap",
)
@click.argument("input_path", metavar="FILE", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-t",
    "--template",
    "template_path",
    default=None,
    help="Template file for the editor wrapper. Overrides config file.",
)
@click.option(
    "-x",
    "--fallback",
    default=None,
    help="Shell command to run if FILE contains no link to a comment.",
)
@click.option(
    "-c",
    "--cache",
    is_flag=True,
    help="Cache ash output and show it instead of calling ash again. "
    "The editor can't be used interactively, stdout is copied to the cache file.",
)
@click.option("--review-command", default=None, help="Review tool to run. Overrides config file.")
@click.option(
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to the configuration file.",
    envvar="ASH_MAILCAP_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every step to stderr.")
def main(
    input_path: Path,
    template_path: str | None,
    fallback: str | None,
    cache: bool,
    review_command: str | None,
    config_path: str,
    verbose: bool,
):
    _configure_logging(verbose)

    try:
        config = load_config(
            config_path,
            cli_overrides={
                "template": template_path,
                "fallback": fallback,
                # An absent flag must not switch off `cache: true` from the file.
                "cache": True if cache else None,
                "review_command": review_command,
            },
        )
        template = load_template(config)
    except (ConfigError, TemplateError) as e:
        raise click.ClickException(str(e)) from e

    text = _read_input(input_path)

    dispatcher = Dispatcher(
        template=template,
        cache=_build_cache(config),
        fallback=config.get("fallback"),
        review_command=config["review_command"],
        temp_dir=config["temp_dir"],
    )
    _exit(int(dispatcher.dispatch(text)))
