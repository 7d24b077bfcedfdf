"""Synchronizes stored descriptors with the live API description.

One run walks every existing chunk, refreshes each descriptor's schemas from
the matching live operation, rewrites only the chunks that changed and then
enforces the chunk size limit on them. Descriptors with no live counterpart
are left as they are. Runs must not overlap; callers serialize them.
"""

import asyncio
from pathlib import Path
from typing import Any

from api_tool_catalog.errors import CatalogError
from api_tool_catalog.log import get_logger
from api_tool_catalog.models import OperationDescriptor, SyncReport
from api_tool_catalog.parser.swagger import build_input_schema, build_output_schema, find_operation
from api_tool_catalog.store.chunks import ChunkStore
from api_tool_catalog.sync.client import fetch_api_description
from api_tool_catalog.sync.validator import validate_descriptors

logger = get_logger(__name__)


def schemas_differ(
    current: tuple[dict[str, Any], dict[str, Any]],
    live: tuple[dict[str, Any], dict[str, Any]],
) -> bool:
    """Deep comparison of (input_schema, output_schema) pairs."""
    return current[0] != live[0] or current[1] != live[1]


class SwaggerSyncEngine:
    """Keeps a ChunkStore in step with one API description source."""

    def __init__(self, store: ChunkStore, source: str, timeout: float = 30.0):
        self.store = store
        self.source = source
        self.timeout = timeout

    async def sync(self) -> SyncReport:
        """Run one sync pass. Never raises; failures are returned in the report."""
        report = SyncReport()
        try:
            document = await fetch_api_description(self.source, timeout=self.timeout)
            for path in self.store.existing_chunks():
                await asyncio.to_thread(self._sync_chunk, path, document, report)
        except CatalogError as e:
            logger.error("Sync aborted: {}", e)
            report.success = False
            report.error = str(e)
        except Exception as e:
            logger.exception("Sync aborted with unexpected error")
            report.success = False
            report.error = f"{e.__class__.__name__}: {e}"
        else:
            logger.info(
                "Sync complete: {} updated, {} chunks written, {} invalid",
                len(report.updated),
                len(report.chunks_written),
                len(report.invalid),
            )
        return report

    def _sync_chunk(self, path: Path, document: dict[str, Any], report: SyncReport) -> None:
        descriptors = self.store.load(path)
        report.chunks_checked.append(path.name)

        dirty = False
        for descriptor in descriptors:
            if self._refresh(descriptor, document, report):
                dirty = True

        for name, error in validate_descriptors(descriptors).items():
            logger.warning("Invalid schema for tool {} in {}: {}", name, path.name, error)
            report.invalid[name] = error

        if dirty:
            self.store.write(path, descriptors)
            written = self.store.enforce_size(path) or [path]
            for p in written:
                if p.name not in report.chunks_written:
                    report.chunks_written.append(p.name)

    def _refresh(self, descriptor: OperationDescriptor, document: dict[str, Any], report: SyncReport) -> bool:
        operation = find_operation(document, descriptor.path, descriptor.method)
        if operation is None:
            report.unmatched.append(descriptor.name)
            return False

        live = (build_input_schema(operation), build_output_schema(operation))
        if not schemas_differ((descriptor.input_schema, descriptor.output_schema), live):
            return False

        descriptor.input_schema, descriptor.output_schema = live
        report.updated.append(descriptor.name)
        logger.info("Updated schemas for {} {} ({})", descriptor.method, descriptor.path, descriptor.name)
        return True
