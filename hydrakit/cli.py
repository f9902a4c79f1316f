from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import Configuration, load_config
from .context import Context
from .document import ComponentDocument
from .errors import HydrakitError
from .jsonic import dumps as jdumps
from .loader import TemplateLoader
from .schemas import SchemaExtractor
from .version import tool_version
from .view import View


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hydrakit",
        description="Component templates with client-side data hydration",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level for diagnostics on stderr",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sp_render = sub.add_parser("render", help="Render a template (HTML on stdout)")
    sp_render.add_argument("name", help="template name relative to a template directory, without extension")
    sp_render.add_argument(
        "--templates",
        action="append",
        metavar="DIR",
        help="template directory (repeatable; defaults to config template_paths or cwd)",
    )
    sp_render.add_argument(
        "--data",
        metavar="JSON|@FILE|-",
        help="client data: inline JSON, @file to read from a file, or - for stdin",
    )
    sp_render.add_argument("--config", metavar="YAML", help="configuration file")
    sp_render.add_argument(
        "--hydration",
        action="store_true",
        help="append the hydration script tags after the HTML",
    )

    sp_check = sub.add_parser("check", help="Parse component files and report their structure (JSON)")
    sp_check.add_argument("files", nargs="+", help="component files")

    sp_schemas = sub.add_parser("schemas", help="List schema sections of a template directory (JSON)")
    sp_schemas.add_argument("directory", help="template directory")
    sp_schemas.add_argument("--stats", action="store_true", help="print counts instead of the list")

    return p


def _parse_data(data_arg: Optional[str]) -> Dict[str, Any]:
    """
    Parses the --data argument.

    Supports three forms:
    - Inline JSON: '{"user": {"name": "Ann"}}'
    - From file: @path/to/data.json
    - From stdin: -
    """
    if not data_arg:
        return {}

    if data_arg == "-":
        text = sys.stdin.read()
    elif data_arg.startswith("@"):
        file_path = Path(data_arg[1:])
        if not file_path.is_file():
            raise ValueError(f"Data file not found: {file_path}")
        text = file_path.read_text(encoding="utf-8")
    else:
        text = data_arg

    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid --data JSON: {e}")
    if not isinstance(data, dict):
        raise ValueError("--data must be a JSON object")
    return data


def _config(ns: argparse.Namespace) -> Configuration:
    config = load_config(Path(ns.config)) if getattr(ns, "config", None) else Configuration()
    templates: Optional[List[str]] = getattr(ns, "templates", None)
    if templates:
        config = config.replace(template_paths=tuple(str(Path(t).resolve()) for t in templates))
    elif not config.template_paths:
        config = config.replace(template_paths=(str(Path.cwd()),))
    return config.validate()


def _run_render(ns: argparse.Namespace) -> int:
    config = _config(ns)
    context = Context.minimal(client=_parse_data(ns.data), config=config)
    view = View(context, TemplateLoader.from_config(config))

    result = view.render(ns.name)
    sys.stdout.write(result.html)
    if ns.hydration and result.scripts:
        sys.stdout.write("\n" + result.scripts)
    return 0


def _describe(document: ComponentDocument) -> Dict[str, Any]:
    return {
        "file": document.file_path,
        "sections": list(document.sections),
        "window": document.window_attribute,
        "merge": document.merge_strategy,
        "mode": document.contribution_mode,
        "layout": document.layout,
        "variables": document.all_variables,
        "partials": document.partials,
    }


def _run_check(ns: argparse.Namespace) -> int:
    reports = []
    failed = False
    for file_name in ns.files:
        try:
            reports.append(_describe(ComponentDocument.parse_file(Path(file_name))))
        except HydrakitError as e:
            failed = True
            reports.append({"file": file_name, "error": str(e)})
    sys.stdout.write(jdumps({"documents": reports}))
    return 1 if failed else 0


def _run_schemas(ns: argparse.Namespace) -> int:
    extractor = SchemaExtractor(Path(ns.directory))
    if ns.stats:
        sys.stdout.write(jdumps(extractor.stats()))
    else:
        sys.stdout.write(jdumps({"schemas": extractor.extract_all()}))
    return 0


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, ns.log_level), format="[%(levelname)s] %(name)s: %(message)s")

    try:
        if ns.cmd == "render":
            return _run_render(ns)
        if ns.cmd == "check":
            return _run_check(ns)
        if ns.cmd == "schemas":
            return _run_schemas(ns)
    except HydrakitError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
