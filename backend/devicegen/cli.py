"""Command line entrypoint: ``devicegen`` / ``python -m devicegen``.

Examples:
    devicegen --device-id living_room_tv
    devicegen --device-ids tv,processor --max-concurrency 2 --stop-on-error
    devicegen --batch --device-classes LgTv,AppleTVDevice --generate-router --validate
    devicegen --mode local --mapping-file config/device-state-mapping.json --batch
    devicegen --test-connection
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from . import settings
from .batch import BatchOrchestrator, BatchResult
from .config import CONFIG_MODE, DOCS_DIR, MAPPING_FILE, OUTPUT_DIR, SCENARIO_DIR, TYPES_DIR
from .docs import write_docs
from .exceptions import DeviceGenError
from .families import list_supported_families
from .generator import DevicePageGenerator
from .integration.manifest import ManifestStore, update_router_section
from .logging_config import get_generator_logger
from .sources import create_config_source
from .validation import run_validation_suite

logger = logging.getLogger(__name__)


def _csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="devicegen", description="Generate device remote-control pages")

    selector = parser.add_argument_group("device selection")
    selector.add_argument("--device-id", help="Generate a single device")
    selector.add_argument("--device-ids", type=_csv, help="Comma-separated device ids")
    selector.add_argument("--batch", action="store_true", help="Generate every discovered device")
    selector.add_argument("--device-classes", type=_csv, help="With --batch: only these device classes")

    run = parser.add_argument_group("run options")
    run.add_argument("--max-concurrency", type=int, default=settings.BATCH_MAX_CONCURRENCY)
    run.add_argument("--continue-on-error", dest="continue_on_error", action="store_true", default=True)
    run.add_argument("--stop-on-error", dest="continue_on_error", action="store_false")
    run.add_argument("--schema-ref", help="State schema reference, module:Class or path.py:Class")
    run.add_argument("-v", "--verbose", action="store_true")

    source = parser.add_argument_group("configuration source")
    source.add_argument("--mode", choices=("remote", "local"), default=CONFIG_MODE)
    source.add_argument("--api-base-url", help="Device configuration service URL (remote mode)")
    source.add_argument("--mapping-file", default=MAPPING_FILE, help="Mapping file (local mode)")
    source.add_argument("--scenario-dir", default=SCENARIO_DIR)

    output = parser.add_argument_group("output")
    output.add_argument("--output-dir", default=OUTPUT_DIR)
    output.add_argument("--types-dir", default=TYPES_DIR)
    output.add_argument("--docs-dir", default=DOCS_DIR)
    output.add_argument("--router-file", help="Router source whose generated block is rewritten")

    post = parser.add_argument_group("post-generation steps")
    post.add_argument("--validate", action="store_true", help="Run component and compiler validation")
    post.add_argument("--generate-docs", action="store_true")
    post.add_argument("--generate-router", action="store_true", help="Merge generated pages into the manifest")

    info = parser.add_argument_group("diagnostics")
    info.add_argument("--test-connection", action="store_true")
    info.add_argument("--list-classes", action="store_true")
    return parser


async def _post_steps(args: argparse.Namespace, generator: DevicePageGenerator, result: BatchResult) -> bool:
    """Docs, router and validation; returns False when validation fails."""
    ok = True
    structures = [r.structure for r in result.results if r.success and r.structure is not None]

    if args.generate_docs and structures:
        write_docs(structures, args.docs_dir)

    if args.generate_router and args.router_file and generator.manifest is not None:
        router = Path(args.router_file)
        current = router.read_text(encoding="utf-8") if router.exists() else ""
        entries = generator.manifest.read("devices")
        router.write_text(update_router_section(current, entries), encoding="utf-8")
        logger.info("Router %s updated with %d route(s)", router, len(entries))

    if args.validate:
        report = await run_validation_suite(args.output_dir)
        ok = bool(report["success"])
        if not ok:
            for item in report["component"]["errors"] + report["source"]["errors"]:
                logger.error("Validation: %s", item)
    return ok


async def run(args: argparse.Namespace) -> int:
    if args.list_classes:
        for family in list_supported_families():
            print(family)
        return 0

    source = create_config_source(args.mode, args.api_base_url, args.mapping_file, args.scenario_dir)
    try:
        if args.test_connection:
            reachable = await source.check_reachable()
            print(f"Configuration source ({args.mode}): {'reachable' if reachable else 'unreachable'}")
            return 0 if reachable else 1

        manifest = ManifestStore(args.output_dir) if args.generate_router else None
        generator = DevicePageGenerator(source, args.output_dir, args.types_dir, manifest=manifest)
        orchestrator = BatchOrchestrator(generator)

        if args.device_id:
            result = await orchestrator.process_many([args.device_id], 1, schema_ref=args.schema_ref)
            exit_ok = result.successful == 1
        elif args.device_ids:
            result = await orchestrator.process_many(
                args.device_ids, args.max_concurrency, args.continue_on_error, args.schema_ref,
            )
            exit_ok = result.success_rate > 0
        elif args.batch:
            result = await orchestrator.process_all(args.device_classes, args.max_concurrency,
                                                    args.continue_on_error)
            exit_ok = result.success_rate > 0
        else:
            logger.error("No device selected: pass --device-id, --device-ids or --batch")
            return 2

        print(result.summary())
        try:
            validation_ok = await _post_steps(args, generator, result)
        except (DeviceGenError, OSError) as e:
            logger.error("Post-generation step failed: %s", e)
            return 1
        return 0 if exit_ok and validation_ok else 1
    finally:
        close = getattr(source, "close", None)
        if close is not None:
            await close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    get_generator_logger(args.verbose)
    return asyncio.run(run(args))
