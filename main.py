import argparse
import logging
import sys
from pathlib import Path

from config import configure_logging, load_settings
from errors import ConfigError, EngineError, ParseError
from parser import parse
from traversal import describe, infer_program, render, type_errors

logger = logging.getLogger("jsinfer")

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jsinfer", description="Infer types of a JavaScript file.")
    parser.add_argument("path", type=Path, help="source file to check")
    parser.add_argument("--all", dest="report", action="store_const", const="all", help="report every typed node, not only identifiers")
    parser.add_argument("--config", type=Path, help="YAML settings file (default: ./jsinfer.yaml if present)")
    parser.add_argument("--log-level", help="logging level, e.g. DEBUG")
    parser.add_argument("--no-prelude", dest="prelude", action="store_const", const=False, help="do not predeclare builtin globals")
    return parser

def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    try:
        settings = load_settings(args.config).override(
            report=args.report,
            log_level=args.log_level,
            prelude=args.prelude,
        )
    except ConfigError as exc:
        print(f"jsinfer: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level)

    try:
        code = args.path.read_text(encoding="utf-8")
        cache = infer_program(parse(code), prelude=settings.prelude)
    except OSError as exc:
        print(f"jsinfer: {exc}", file=sys.stderr)
        return 2
    except (ParseError, EngineError) as exc:
        print(f"{args.path}:{exc}", file=sys.stderr)
        return 2

    for node, rendered in render(cache, everything=settings.report == "all"):
        print(f"{args.path}:{node.loc}: {describe(node)}: {rendered}")
    errors = type_errors(cache)
    logger.info("%s: %d typed nodes, %d type errors", args.path, len(cache), len(errors))
    for entry in errors:
        print(f"{args.path}:{entry.node.loc}: type error in {describe(entry.node)}", file=sys.stderr)
    return 1 if errors else 0

if __name__ == "__main__":
    sys.exit(main())
