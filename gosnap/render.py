"""Console rendering of compare outcomes."""

from __future__ import annotations

import click

from gosnap.models import CompareOutcome, Severity

# (label, colour) per severity; every Severity must have an entry.
STATUS_TAGS: dict[Severity, tuple[str, str]] = {
    Severity.OK: ("[ OK ]", "green"),
    Severity.WARN: ("[WARN]", "yellow"),
    Severity.ERROR: ("[FAIL]", "red"),
}


def status_tag(severity: Severity, color: bool = True) -> str:
    try:
        label, fg = STATUS_TAGS[severity]
    except KeyError:
        raise ValueError(f"no status tag for severity {severity!r}") from None
    if not color:
        return label
    return click.style(label, fg=fg, bold=True)


def format_outcomes(outcomes: list[CompareOutcome], color: bool = True) -> list[str]:
    """One line per outcome: tag, import path padded to the widest, message."""
    width = max((len(o.import_path) for o in outcomes), default=0)
    return [
        f"{status_tag(o.severity, color)} {o.import_path.ljust(width)} {o.message}"
        for o in outcomes
    ]


def echo_outcomes(outcomes: list[CompareOutcome], color: bool | None = None) -> None:
    for line in format_outcomes(outcomes):
        click.echo(line, color=color)
