"""Cyclopts CLI entrypoint for parsing saved talk pages.

The ``talkparse`` console script reads an HTML file, segments it into
comments and sections and prints either JSON or a short human-readable
listing. Options can also be provided through ``TALKPARSE_*`` environment
variables.

Examples
--------
Parse a saved page with a custom wiki configuration:

>>> from talkparse.cli import app
>>> app.run(
...     ["parse", "page.html", "--config", "frwiki.yaml", "--format", "summary"]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import WikiConfig, load_wiki_config
from .export import encode_json
from .parser import parse_html

if typ.TYPE_CHECKING:
    from .models import ParseResult

OutputFormat = typ.Literal["json", "summary"]

app = App(name="talkparse", config=cyclopts.config.Env("TALKPARSE_", command=False))  # type: ignore[unknown-argument]


def _summary_lines(result: ParseResult) -> list[str]:
    lines = [result.summary()]
    for comment in result.comments:
        indent = "  " * comment.level
        label = comment.anchor or f"unsigned by {comment.author_name}"
        lines.append(f"{indent}{label}: {comment.text[:60]}")
    lines.extend(
        f"warning ({warning.kind}): {warning.message}" for warning in result.warnings
    )
    return lines


@app.command(help="Segment a saved talk page into comments and sections.")
def parse(
    path: Path,
    *,
    config: typ.Annotated[
        Path | None,
        Parameter(help="Path to a wiki configuration YAML file"),
    ] = None,
    root: typ.Annotated[
        str | None,
        Parameter(help="CSS selector of the element holding the discussion"),
    ] = None,
    output_format: typ.Annotated[
        OutputFormat, Parameter(name="--format", help="Output format")
    ] = "json",
    verbose: typ.Annotated[
        bool, Parameter(help="Log debugging details to stderr")
    ] = False,
) -> None:
    """Parse the HTML file at ``path`` and print the result.

    Parameters
    ----------
    path : Path
        Saved HTML of the talk page.
    config : Path or None, optional
        Wiki configuration; English Wikipedia defaults when omitted.
    root : str or None, optional
        CSS selector of the content element; the whole document by default.
    output_format : {"json", "summary"}, optional
        ``json`` prints the full result, ``summary`` one line per comment.
    verbose : bool, optional
        Enable debug logging.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ValueError
        If ``root`` matches no element.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if not path.exists():
        msg = f"HTML file '{path}' not found."
        raise FileNotFoundError(msg)
    wiki_config = load_wiki_config(config) if config is not None else WikiConfig()
    result = parse_html(path.read_text(encoding="utf-8"), wiki_config, root)

    if output_format == "json":
        print(encode_json(result).decode("utf-8"))
    else:
        for line in _summary_lines(result):
            print(line)


def main() -> None:
    """Invoke the Cyclopts application that powers the ``talkparse`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
