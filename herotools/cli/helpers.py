from typing import Any, Callable, Dict, Optional, Union

import click
from click.core import ParameterSource

from herotools.formats import ExportOptions, Format

EXPORT_OPTIONS = "export_options"

# A click default is not a user choice, ExportOptions has its own defaults
USER_GIVEN = (
    ParameterSource.COMMANDLINE,
    ParameterSource.ENVIRONMENT,
    ParameterSource.PROMPT,
)


def export_option(*args: Any, **kwargs: Any) -> Callable:
    """An option that ends up as an ExportOptions field instead of a command
    argument. Commands get the fields the user gave as an `export_options`
    dict, or nothing when none were given"""
    return click.option(
        *args, callback=collect_export_option, expose_value=False, **kwargs
    )


def collect_export_option(
    ctx: click.Context, param: Union[click.Option, click.Parameter], value: Any
) -> None:
    assert param.name is not None
    if ctx.get_parameter_source(param.name) in USER_GIVEN:
        ctx.params.setdefault(EXPORT_OPTIONS, {})[param.name] = value


def make_export_options(export_options: Optional[Dict[str, Any]]) -> ExportOptions:
    kwargs = dict(export_options or {})
    if "format" in kwargs:
        kwargs["format"] = Format(kwargs["format"])
    return ExportOptions(**kwargs)


def common_export_options(f: Callable) -> Callable:
    """Options shared by every command that writes a chart"""
    decorators = [
        export_option(
            "--resolution",
            "target_resolution",
            type=click.IntRange(min=1),
            help="Ticks per beat of the written chart (default: 192)",
        ),
        export_option(
            "--lyrics-fix/--no-lyrics-fix",
            "substitute_lyric_chars",
            default=True,
            help="Remove Rock Band pitch markers from lyrics",
        ),
        export_option(
            "--copy-down/--no-copy-down",
            "copy_down_empty_difficulty",
            default=True,
            help="Fill empty difficulties with the next harder one",
        ),
        export_option(
            "--forced/--no-forced",
            "forced",
            default=True,
            help="Keep forced note flags",
        ),
        export_option(
            "-f",
            "--format",
            "format",
            type=click.Choice([Format.CHART.value, Format.MSCE.value]),
            help="Output file format (default: chart)",
        ),
    ]
    for decorator in reversed(decorators):
        f = decorator(f)
    return f
