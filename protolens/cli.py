"""
CLI -- Command interface for the preview pipeline

Every command works on one document below the documents root and prints
JSON on stdout, except ``inject`` and ``bundle`` which print code.

Exit codes:
  0  success
  1  invalid input or configuration
  2  source could not be parsed or compiled
  3  document or screen not found
"""

import argparse
import json
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ConfigManager, configure_logging
from .core.inspector import inject_inspector_ids
from .core.normalizer import ensure_default_export
from .errors import CompileError, DocumentNotFoundError, ParseError, ProtolensError
from .services.bundler import EsbuildBundler
from .services.documents import DocumentStore
from .services.pipeline import PreviewPipeline
from .services.watcher import ChangeWatcher
from . import __version__

EXIT_INVALID = 1
EXIT_COMPILE = 2
EXIT_NOT_FOUND = 3


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


class ProtolensCLI:
    """Command handlers bound to one project directory."""

    def __init__(self, project_dir: Path):
        self.project_dir = Path(project_dir)
        self.config_manager = ConfigManager(self.project_dir)
        self.config = self.config_manager.load()
        self.store = DocumentStore(
            self.config_manager.documents_root,
            overlay_file=self.config.documents.overlay_file,
        )
        self.pipeline = PreviewPipeline(self.store, EsbuildBundler(self.config.bundler))

    def tree(self, args) -> int:
        nodes = self.pipeline.tree(args.document, args.screen)
        _print_json([node.to_dict() for node in nodes])
        return 0

    def copy(self, args) -> int:
        _print_json(self.pipeline.copy(args.document, args.screen))
        return 0

    def inject(self, args) -> int:
        path = self.store.source_path(args.document, args.screen)
        source = ensure_default_export(self.store.read_source(args.document, args.screen), file_path=path)
        sys.stdout.write(inject_inspector_ids(source, str(path)))
        return 0

    def bundle(self, args) -> int:
        code = self.pipeline.bundle(args.document, args.screen)
        if args.output:
            Path(args.output).write_text(code, encoding='utf-8')
            _print_json({"ok": True, "output": args.output, "bytes": len(code.encode('utf-8'))})
        else:
            sys.stdout.write(code)
        return 0

    def edit(self, args) -> int:
        source_value = args.source_value
        if source_value is None:
            entry = next(
                (e for e in self.pipeline.entries(args.document, args.screen) if e.key == args.key),
                None,
            )
            if entry is None:
                print(f"Error: no text entry with key {args.key}", file=sys.stderr)
                return EXIT_INVALID
            source_value = entry.source_value

        record = self.pipeline.edit(args.document, args.key, args.value, source_value)
        _print_json({"ok": True, "key": args.key, "entry": record.to_dict()})
        return 0

    def approve(self, args) -> int:
        overlay = self.store.overlay_store(args.document).read()
        keys: List[str] = list(overlay.entries) if args.all else args.keys
        if not keys:
            print("Error: give at least one key, or --all", file=sys.stderr)
            return EXIT_INVALID

        approvals = []
        for key in keys:
            record = overlay.get(key)
            if record is None:
                print(f"Error: no pending edit for {key}", file=sys.stderr)
                return EXIT_INVALID
            approvals.append({"key": key, "value": record.edited_value})

        _print_json(self.pipeline.approve(args.document, approvals, args.screen))
        return 0

    def watch(self, args) -> int:
        def announce(document_id: Optional[str], message) -> None:
            payload: Dict[str, Any] = {"document": document_id}
            payload.update(message.to_dict())
            print(json.dumps(payload), flush=True)

        self.pipeline.add_reload_listener(announce)
        watcher = ChangeWatcher(self.store.root)
        self.pipeline.attach(watcher)
        with watcher:
            try:
                while True:
                    time.sleep(args.interval)
            except KeyboardInterrupt:
                pass
        return 0

    def config_cmd(self, args) -> int:
        if args.set:
            if '=' not in args.set:
                print("Error: use --set KEY=VALUE", file=sys.stderr)
                return EXIT_INVALID
            key, value = args.set.split('=', 1)
            error = self.config_manager.set(key.strip(), value.strip(), "user" if args.user else "project")
            if error:
                print(f"Error: {error}", file=sys.stderr)
                return EXIT_INVALID
        _print_json(self.config_manager.load().to_dict())
        return 0


def _add_document_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('document', help='Document directory name')
    parser.add_argument('--screen', '-s', default=None,
                        help='Screen name (default: index)')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='protolens',
        description="protolens -- inspect, instrument and edit the copy of component prototypes",
    )
    parser.add_argument(
        '--project', '-p',
        default=os.environ.get("PROTOLENS_PROJECT_PATH", "."),
        help='Project directory (default: PROTOLENS_PROJECT_PATH or current)'
    )
    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'protolens {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    p = subparsers.add_parser('tree', help='Print the component tree as JSON')
    _add_document_arguments(p)

    p = subparsers.add_parser('copy', help='Print text entries merged with pending edits')
    _add_document_arguments(p)

    p = subparsers.add_parser('inject', help='Print the source with inspector ids')
    _add_document_arguments(p)

    p = subparsers.add_parser('bundle', help='Compile the document to an ES module')
    _add_document_arguments(p)
    p.add_argument('--output', '-o', help='Write the bundle to a file')

    p = subparsers.add_parser('edit', help='Record a copy edit')
    _add_document_arguments(p)
    p.add_argument('key', help='Text entry key')
    p.add_argument('value', help='New text')
    p.add_argument('--source-value', default=None,
                   help='Source value the edit is based on (default: current source)')

    p = subparsers.add_parser('approve', help='Write pending edits into the source')
    _add_document_arguments(p)
    p.add_argument('keys', nargs='*', help='Keys to approve')
    p.add_argument('--all', action='store_true', help='Approve every pending edit')

    p = subparsers.add_parser('watch', help='Print a JSON line per document change')
    p.add_argument('--interval', type=float, default=1.0, help=argparse.SUPPRESS)

    p = subparsers.add_parser('config', help='View or set configuration')
    p.add_argument('--set', metavar='KEY=VALUE', help='Set a value (e.g. bundler.timeout=60)')
    p.add_argument('--user', action='store_true', help='Write to user config instead of project')

    return parser


HANDLERS = {
    'tree': ProtolensCLI.tree,
    'copy': ProtolensCLI.copy,
    'inject': ProtolensCLI.inject,
    'bundle': ProtolensCLI.bundle,
    'edit': ProtolensCLI.edit,
    'approve': ProtolensCLI.approve,
    'watch': ProtolensCLI.watch,
    'config': ProtolensCLI.config_cmd,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the protolens CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    cli = ProtolensCLI(Path(args.project))
    configure_logging(cli.config.logging.level)

    try:
        return HANDLERS[args.command](cli, args)
    except (ParseError, CompileError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_COMPILE
    except DocumentNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except ProtolensError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID


if __name__ == '__main__':
    sys.exit(main())
