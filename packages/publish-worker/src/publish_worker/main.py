"""
Entrypoint for the publish worker. Wires AWS adapters from env and runs one
ingestion (publish) or one asset delete.

Usage:
    python -m publish_worker publish SOURCE THUMBNAIL --title T --description D --owner-id U
        [--category music] [--tag live] ...
    python -m publish_worker delete ASSET_ID
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading

from vidpub_aws_adapters import asset_store_from_env, object_storage_from_env
from vidpub_shared import Category, PipelineError, PublishMetadata, configure_logging
from vidpub_shared.interfaces import AssetStore, ObjectStorage

from .config import PublishWorkerSettings, get_settings
from .encoder import FfmpegEncoder
from .orchestrator import TranscodeOrchestrator
from .pipeline import IngestionPipeline
from .publisher import PublishCoordinator
from .renditions import load_catalog

logger = logging.getLogger(__name__)


def build_pipeline(
    settings: PublishWorkerSettings,
    storage: ObjectStorage,
    asset_store: AssetStore,
) -> IngestionPipeline:
    """Construct every component explicitly from settings and the injected clients."""
    catalog = load_catalog(settings.rendition_catalog_json)
    encoder = FfmpegEncoder(
        ffmpeg_path=settings.ffmpeg_path,
        ffprobe_path=settings.ffprobe_path,
        timeout_sec=settings.encode_timeout_seconds,
    )
    orchestrator = TranscodeOrchestrator(
        encoder, max_concurrency=settings.encode_max_concurrency
    )
    publisher = PublishCoordinator(
        storage,
        catalog,
        max_concurrency=settings.upload_max_concurrency,
        videos_folder=settings.videos_folder,
        thumbnails_folder=settings.thumbnails_folder,
    )
    return IngestionPipeline(
        orchestrator,
        publisher,
        storage,
        asset_store,
        catalog,
        work_dir_root=settings.work_dir_root,
    )


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="publish_worker", description=__doc__.split("\n\n")[0])
    sub = parser.add_subparsers(dest="command", required=True)

    pub = sub.add_parser("publish", help="Transcode, upload and persist one video")
    pub.add_argument("source", help="Local path of the source video")
    pub.add_argument("thumbnail", help="Local path of the thumbnail image")
    pub.add_argument("--title", required=True)
    pub.add_argument("--description", required=True)
    pub.add_argument("--owner-id", required=True)
    pub.add_argument(
        "--category",
        action="append",
        default=[],
        choices=[c.value for c in Category],
    )
    pub.add_argument("--tag", action="append", default=[])

    delete = sub.add_parser("delete", help="Delete an asset and all its remote objects")
    delete.add_argument("asset_id")
    return parser.parse_args(argv)


def _install_cancel_handler(cancel_event: threading.Event) -> None:
    def _on_signal(signum, frame) -> None:
        logger.warning("signal %s received, cancelling ingestion", signum)
        cancel_event.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = _parse_args(argv)
    settings = get_settings()
    pipeline = build_pipeline(settings, object_storage_from_env(), asset_store_from_env())

    if args.command == "delete":
        try:
            found = pipeline.delete_asset(args.asset_id)
        except PipelineError as e:
            logger.error("delete: asset_id=%s failed: %s: %s", args.asset_id, type(e).__name__, e)
            return 1
        if not found:
            logger.error("delete: asset_id=%s not found", args.asset_id)
            return 1
        return 0

    meta = PublishMetadata(
        title=args.title,
        description=args.description,
        owner_id=args.owner_id,
        categories=[Category(c) for c in args.category],
        tags=args.tag,
    )
    cancel_event = threading.Event()
    _install_cancel_handler(cancel_event)
    try:
        asset = pipeline.run(args.source, args.thumbnail, meta, cancel_event=cancel_event)
    except PipelineError as e:
        logger.error("publish failed: %s: %s", type(e).__name__, e)
        return 1
    sys.stdout.write(asset.model_dump_json(indent=2) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
