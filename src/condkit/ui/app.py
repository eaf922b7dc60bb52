"""Standalone condition editor.

Usage examples:
    condkit-editor --catalog fields.json                  # start from a default rule
    condkit-editor --catalog fields.json --data rule.json # edit an existing tree
    condkit-editor --data rule.json --output out.json     # catalog from settings
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from ..builder.catalog import FieldCatalog, load_catalog
from ..builder.model import TreeModel
from ..builder.session import ConditionsBuilder
from ..core.events import DATES_INITIALIZE
from ..core.services import CoreServices


class ConditionsBuilderError(RuntimeError):
    """Raised when the command line does not describe a usable session."""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="condkit-editor", description="Edit a boolean condition tree.")
    parser.add_argument("--catalog", type=Path, help="JSON field catalog (defaults to builder.catalog_path)")
    parser.add_argument("--data", type=Path, help="JSON tree to edit ({\"data\": [...]} or a bare list)")
    parser.add_argument("--output", type=Path, help="Write the collected tree here instead of stdout")
    parser.add_argument("--data-dir", type=Path, help="Settings directory (defaults to the user config dir)")
    return parser.parse_args(argv)


def build_session(args: argparse.Namespace, services: CoreServices) -> ConditionsBuilder:
    catalog_path = args.catalog or services.catalog_path()
    if catalog_path is None:
        raise ConditionsBuilderError("No field catalog given and builder.catalog_path is not configured")
    catalog: FieldCatalog = load_catalog(catalog_path)
    model = TreeModel()
    if args.data is not None:
        try:
            model = TreeModel.from_json(args.data.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConditionsBuilderError(f"Cannot read {args.data}: {exc}") from exc
    return ConditionsBuilder(catalog, model, services=services)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    services = CoreServices(data_dir=args.data_dir)
    logger = services.get_logger("Editor")
    services.event_bus.subscribe(
        DATES_INITIALIZE, lambda _name, data: logger.debug("Date inputs %s on row %s", data["roles"], data["row"])
    )
    try:
        builder = build_session(args, services)
    except ConditionsBuilderError as exc:
        logger.error("%s", exc)
        return 2

    from PySide6.QtWidgets import QApplication  # type: ignore[import-not-found]

    from .widget import ConditionsBuilderDialog

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName(services.app_name)
    dialog = ConditionsBuilderDialog(builder)
    if not dialog.exec():
        logger.info("Editing cancelled")
        return 1
    payload = json.dumps(dialog.result_data(), indent=2, ensure_ascii=False)
    if args.output is not None:
        args.output.write_text(payload, encoding="utf-8")
        logger.info("Wrote %s", args.output)
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
