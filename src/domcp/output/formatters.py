"""Output mode dispatch for ServiceResult.

The CLI renders results for humans (Rich tables and colors), for scripts
(``--quiet``) or for machines (``--json``). This module only picks the
mode; the Rich rendering lives in :mod:`domcp.output.renderers`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domcp.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult according to *settings*."""
    settings = settings or OutputSettings()
    if settings.json_output:
        exclude = None if settings.verbose else {"meta"}
        return result.model_dump_json(indent=2, exclude=exclude)

    from domcp.output.renderers import render_quiet, render_result

    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
