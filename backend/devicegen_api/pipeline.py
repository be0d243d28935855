"""Pipeline adapter for the HTTP service.

Manages the configuration source lifecycle (one per process) and hands
out generators and manifest stores bound to it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from devicegen.config import OUTPUT_DIR, TYPES_DIR
from devicegen.generator import DevicePageGenerator
from devicegen.integration.manifest import ManifestStore
from devicegen.sources import ConfigSource, create_config_source

logger = logging.getLogger(__name__)

# Singletons (initialized via lifespan)
_source: Optional[ConfigSource] = None
_manifest: Optional[ManifestStore] = None
_lock = asyncio.Lock()


async def init_pipeline() -> ConfigSource:
    global _source, _manifest
    async with _lock:
        if _source is None:
            _source = create_config_source()
            _manifest = ManifestStore(OUTPUT_DIR)
            logger.info("Pipeline ready: output=%s types=%s", OUTPUT_DIR, TYPES_DIR)
    return _source


async def close_pipeline() -> None:
    global _source, _manifest
    if _source is not None:
        close = getattr(_source, "close", None)
        if close is not None:
            await close()
    _source = None
    _manifest = None


async def get_source() -> ConfigSource:
    if _source is None:
        return await init_pipeline()
    return _source


async def get_manifest() -> ManifestStore:
    if _manifest is None:
        await init_pipeline()
    return _manifest


async def get_generator() -> DevicePageGenerator:
    """FastAPI dependency: a generator sharing the process-wide source and manifest."""
    source = await get_source()
    return DevicePageGenerator(source, OUTPUT_DIR, TYPES_DIR, manifest=await get_manifest())
