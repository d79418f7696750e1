"""
ipsqr - command line access to the template store and language setting.

Works on the same store file as the API service (storage.path in
default.yaml, or IPSQR_STORAGE_PATH).

Usage:
    ipsqr list [--endpoint /gen]
    ipsqr search "eps"
    ipsqr stats
    ipsqr export [--output backup.json | --output -]
    ipsqr import backup.json [--overwrite]
    ipsqr clear --yes
    ipsqr payload K=PR V=01 C=1 R=160000000000000012 "N=EPS Beograd" [--gen]
    ipsqr language [en]
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ipsqr.api.payload import build_gen_request, build_payload_text
from ipsqr.core.config import load_config
from ipsqr.core.storage import JsonFileStore, KeyValueStore
from ipsqr.domain.errors import IpsQrError
from ipsqr.domain.schemas import Template
from ipsqr.i18n.coordinator import LanguageCoordinator
from ipsqr.i18n.translator import Translator
from ipsqr.templates.manager import TemplateManager

logger = logging.getLogger(__name__)


def _open_store(args: argparse.Namespace, config: dict[str, Any]) -> KeyValueStore:
    path = Path(args.store or config["storage"]["path"])
    return JsonFileStore(path, quota_bytes=config["storage"].get("quota_bytes"))


def _print_templates(templates: list[Template]) -> None:
    if not templates:
        print("No templates.")
        return
    for t in templates:
        print(f"{t.id}  {t.endpoint:<10} used {t.usage_count:>3}x  {t.name}")


def _parse_fields(pairs: list[str]) -> dict[str, str]:
    fields = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Expected KEY=VALUE, got: {pair}")
        key, value = pair.split("=", 1)
        fields[key.strip()] = value
    return fields


# =============================================================================
# Commands
# =============================================================================

def cmd_list(args: argparse.Namespace, manager: TemplateManager) -> int:
    if args.endpoint:
        templates = manager.filter_by_endpoint(args.endpoint)
    else:
        templates = manager.list_templates()
    _print_templates(templates)
    return 0


def cmd_search(args: argparse.Namespace, manager: TemplateManager) -> int:
    _print_templates(manager.search(args.query))
    return 0


def cmd_stats(args: argparse.Namespace, manager: TemplateManager) -> int:
    print(json.dumps(manager.statistics().to_dict(), indent=2))
    return 0


def cmd_export(args: argparse.Namespace, manager: TemplateManager) -> int:
    content = manager.export_json()
    if args.output == "-":
        print(content)
        return 0

    output = Path(args.output or manager.export_filename())
    output.write_text(content, encoding="utf-8")
    logger.info(f"Exported {len(manager)} templates → {output}")
    return 0


def cmd_import(args: argparse.Namespace, manager: TemplateManager) -> int:
    result = manager.import_file(Path(args.file), overwrite=args.overwrite)
    logger.info(f"Imported: {result.imported}, skipped: {result.skipped}")
    for error in result.errors[:5]:
        logger.warning(f"  - {error}")
    if not result.persisted:
        logger.error(f"Import not saved: {result.storage_error}")
        return 1
    return 0


def cmd_clear(args: argparse.Namespace, manager: TemplateManager) -> int:
    if not args.yes:
        logger.error("Refusing to delete all templates without --yes")
        return 1
    manager.clear()
    return 0


def cmd_payload(args: argparse.Namespace) -> int:
    fields = _parse_fields(args.fields)
    if args.gen:
        print(json.dumps(build_gen_request(fields), ensure_ascii=False, indent=2))
    else:
        print(build_payload_text(fields))
    return 0


def cmd_language(args: argparse.Namespace, store: KeyValueStore, config: dict[str, Any]) -> int:
    coordinator = LanguageCoordinator(
        store,
        Translator.from_bundled(),
        default_language=config["language"]["default"],
    )
    if args.code:
        outcome = coordinator.change_language(args.code)
        logger.info(f"Language {args.code}: {outcome.value}")
    print(coordinator.current_language)
    return 0


# =============================================================================
# Entry Point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ipsqr",
        description="NBS IPS QR templates and settings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=str, help="YAML config (default: default.yaml)")
    parser.add_argument("--store", type=str, help="store file (overrides storage.path)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="list templates")
    p.add_argument("--endpoint", type=str, help="only this endpoint (e.g. /gen)")

    p = sub.add_parser("search", help="search name, description and endpoint")
    p.add_argument("query")

    sub.add_parser("stats", help="template statistics")

    p = sub.add_parser("export", help="export templates to JSON")
    p.add_argument("--output", "-o", type=str, help="file path, '-' for stdout")

    p = sub.add_parser("import", help="import templates from a JSON export")
    p.add_argument("file")
    p.add_argument("--overwrite", action="store_true", help="replace same name+endpoint")

    p = sub.add_parser("clear", help="delete all templates")
    p.add_argument("--yes", action="store_true", help="confirm")

    p = sub.add_parser("payload", help="build IPS QR payload text from KEY=VALUE")
    p.add_argument("fields", nargs="+")
    p.add_argument("--gen", action="store_true", help="print /gen JSON body instead")

    p = sub.add_parser("language", help="show or change the interface language")
    p.add_argument("code", nargs="?")

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        if args.command == "payload":
            return cmd_payload(args)

        config = load_config(Path(args.config) if args.config else None)
        store = _open_store(args, config)

        if args.command == "language":
            return cmd_language(args, store, config)

        manager = TemplateManager(store)
        commands = {
            "list": cmd_list,
            "search": cmd_search,
            "stats": cmd_stats,
            "export": cmd_export,
            "import": cmd_import,
            "clear": cmd_clear,
        }
        return commands[args.command](args, manager)
    except (IpsQrError, ValueError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
