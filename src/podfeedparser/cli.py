from __future__ import annotations

import argparse
import dataclasses
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional, Sequence

from .config import IngestConfig
from .main import FeedStats, process_feed, read_feed_file
from .outputs import JsonDirectorySink, RecordSink, SequenceCounter

logger = logging.getLogger(__name__)

_FEED_EXTENSIONS = frozenset({".xml", ".txt"})
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="podfeedparser",
        description="Normalize downloaded podcast feeds into newsfeeds/nfitems JSON rows.",
    )
    p.add_argument("--inputs", default=None, help="Directory of downloaded feed files.")
    p.add_argument("--outputs", default=None, help="Directory receiving per-run output folders.")
    p.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of feeds to process concurrently.",
    )
    p.add_argument(
        "--recover",
        action="store_true",
        default=None,
        help="Keep parsing past XML errors instead of stopping at the first one.",
    )
    p.add_argument("--log-level", default=None, help="Logging level (default: INFO).")
    return p.parse_args(argv)


def _apply_args(config: IngestConfig, args: argparse.Namespace) -> IngestConfig:
    overrides = {
        "inputs_dir": args.inputs,
        "outputs_dir": args.outputs,
        "max_workers": args.workers,
        "recover": args.recover,
        "log_level": args.log_level.upper() if args.log_level else None,
    }
    return dataclasses.replace(
        config, **{k: v for k, v in overrides.items() if v is not None}
    )


def discover_feed_files(inputs_dir: Path) -> list[Path]:
    """Regular ``.xml``/``.txt`` files in ``inputs_dir``; ``OSError`` propagates."""
    return sorted(
        path
        for path in inputs_dir.iterdir()
        if path.is_file() and path.suffix.lower() in _FEED_EXTENSIONS
    )


def _process_file(
    path: Path, sink: RecordSink, config: IngestConfig
) -> Optional[FeedStats]:
    start = time.perf_counter()
    try:
        feed = read_feed_file(path)
    except OSError as e:
        logger.error("Unable to open file '%s': %s", path, e)
        return None

    stats = process_feed(
        feed.payload,
        feed.feed_id,
        sink,
        recover=config.recover,
        chunk_size=config.chunk_size,
        source_name=feed.name,
    )
    logger.info(
        "Processed %s in %.3fs (%d items)",
        feed.name,
        time.perf_counter() - start,
        stats.items,
    )
    return stats


def run(config: IngestConfig) -> int:
    program_start = time.perf_counter()

    inputs_dir = Path(config.inputs_dir)
    try:
        paths = discover_feed_files(inputs_dir)
    except OSError as e:
        logger.error("Unable to read directory '%s': %s", inputs_dir, e)
        return 1

    output_dir = Path(config.outputs_dir) / str(int(time.time()))
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Failed to create outputs folder '%s': %s", output_dir, e)
    sink = JsonDirectorySink(output_dir, SequenceCounter())

    processed = 0
    if paths:
        max_workers = max(1, min(config.max_workers, len(paths)))
        with ThreadPoolExecutor(max_workers=max_workers) as ex:
            futures = {ex.submit(_process_file, path, sink, config): path for path in paths}
            for fut in as_completed(futures):
                try:
                    stats = fut.result()
                except Exception:
                    logger.exception("%s failed during processing", futures[fut].name)
                    continue
                if stats is not None:
                    processed += 1

    logger.info(
        "Processed %d of %d files into %s; total runtime %.3fs",
        processed,
        len(paths),
        output_dir,
        time.perf_counter() - program_start,
    )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        config = _apply_args(IngestConfig.from_env(), args)
        logging.basicConfig(level=config.log_level, format=_LOG_FORMAT)
    except ValueError as e:
        logging.basicConfig(format=_LOG_FORMAT)
        logger.error("%s", e)
        return 2

    return run(config)
