"""CLI entrypoints for yuibuild commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .host import FileSystemHost
from .logging import configure_logging
from .models import BundleEvent
from .orchestrator import Orchestrator
from .pipeline import PipelineStatus


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_bundle_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the bundle root (defaults to current directory).",
    )
    parser.add_argument(
        "files",
        nargs="*",
        help="Modified files; every file in the bundle is considered when omitted.",
    )
    parser.add_argument(
        "--name",
        default=None,
        help="Bundle name (defaults to the bundle directory name).",
    )
    parser.add_argument(
        "--build-dir",
        default=None,
        help="Build output directory (defaults to <bundle>/build).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yuibuild",
        description="Build YUI modules and loader metadata for a bundle.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="List the modules and build.json files that need a rebuild.",
    )
    _add_verbose_option(resolve_parser, suppress_default=True)
    _add_bundle_arguments(resolve_parser)

    build_parser = subparsers.add_parser(
        "build",
        help="Rebuild changed modules and regenerate the loader meta-module.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_bundle_arguments(build_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for yuibuild commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=True if args.verbose else None)

    host = FileSystemHost()
    try:
        bundle = host.add_bundle(args.path, name=args.name, build_directory=args.build_dir)
        config = load_config(Path(bundle.path))
    except FileNotFoundError as exc:
        parser.exit(1, f"{exc}\n")
    except ConfigError as exc:
        parser.exit(1, f"yuibuild: invalid configuration: {exc}\n")

    orchestrator = Orchestrator(config)
    files = [str(Path(file).expanduser().resolve()) for file in args.files]
    if not files:
        files = host.get_bundle_files(bundle.name)

    if args.command == "resolve":
        targets = orchestrator.resolve_targets(bundle, files, host)
        if not targets:
            print("Nothing to build")
            return
        for target in targets:
            print(_relativize(Path(target)))
    elif args.command == "build":
        result = asyncio.run(orchestrator.bundle_updated(BundleEvent(bundle, files), host))
        if result.status is PipelineStatus.SKIPPED:
            print("Nothing to build")
        elif result.status is PipelineStatus.FAILED:
            parser.exit(
                1,
                f"yuibuild build failed at stage '{result.failed_stage}': {result.error}\n"
                "Run with --verbose for more details.\n",
            )
        else:
            print(f"Built {len(result.targets)} target(s) for bundle {bundle.name}")
            if bundle.yui.meta_module_fullpath:
                print(f"Loader meta-module at {_relativize(Path(bundle.yui.meta_module_fullpath))}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
