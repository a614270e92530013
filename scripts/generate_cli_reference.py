#!/usr/bin/env python3
"""Generate CLI reference documentation from the typer app."""

import inspect
from pathlib import Path
from typing import Any

from typer.models import ArgumentInfo

from networth.cli import app


def format_option(param_name: str, param: Any) -> str:
    """Format an option with its flags and help text."""
    flags = list(param.param_decls or []) or [f"--{param_name.replace('_', '-')}"]
    parts = [f"- {', '.join(f'`{flag}`' for flag in flags)}"]

    if param.help:
        parts.append(f": {param.help}")

    if param.default is not None and param.default is not False:
        parts.append(f" (default: {param.default})")

    return "".join(parts)


def format_argument(param_name: str, param: ArgumentInfo) -> str:
    required = param.default is ... or param.default is inspect.Parameter.empty
    suffix = "required" if required else "optional"
    help_text = f": {param.help}" if param.help else ""
    return f"- `{param_name.upper()}` ({suffix}){help_text}"


def generate_command_doc(command_name: str, command_obj: Any) -> str:
    """Generate documentation for a single command."""
    callback = command_obj.callback
    doc = (callback.__doc__ or "No description available.").strip()

    lines = [
        f"### {command_name}",
        "",
        doc,
        "",
        "**Usage:**",
        "",
        "```bash",
        f"networth {command_name}",
        "```",
        "",
    ]

    sig = inspect.signature(callback)
    arguments = []
    options = []
    for param_name, param in sig.parameters.items():
        if isinstance(param.default, ArgumentInfo):
            arguments.append(format_argument(param_name, param.default))
        elif hasattr(param.default, "help"):
            options.append(format_option(param_name, param.default))

    if arguments:
        lines.extend(["**Arguments:**", "", *arguments, ""])

    if options:
        lines.extend(["**Options:**", "", *options, ""])

    return "\n".join(lines)


def generate_cli_reference() -> str:
    """Generate complete CLI reference documentation."""
    lines = [
        "# CLI Commands Reference",
        "",
        "Complete reference for all networth CLI commands and options.",
        "",
        "## Usage",
        "",
        "```bash",
        "networth [COMMAND] [OPTIONS]",
        "```",
        "",
        "## Commands",
        "",
    ]

    commands = sorted(
        app.registered_commands,
        key=lambda x: x.name or (x.callback.__name__ if x.callback else ""),
    )
    for command_obj in commands:
        command_name = command_obj.name or (command_obj.callback.__name__ if command_obj.callback else "unknown")
        lines.append(generate_command_doc(command_name, command_obj))
        lines.append("")

    return "\n".join(lines)


def main() -> None:
    """Generate and write CLI reference documentation."""
    output_path = Path(__file__).parent.parent / "docs" / "cli-commands.md"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    output_path.write_text(generate_cli_reference())
    print(f"Generated CLI reference at {output_path}")


if __name__ == "__main__":
    main()
