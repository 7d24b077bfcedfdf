"""Chunked on-disk storage for the operation catalog.

The catalog lives in a fixed number of slots, ``<prefix><n><suffix>`` for
``n`` in ``1..chunk_count``, inside one directory. Each slot is a tab-indented
JSON array holding at most ``max_chunk_entries`` descriptors, and no name
appears in more than one slot.
"""

import json
import os
import shutil
import tempfile
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from api_tool_catalog.config import Settings
from api_tool_catalog.errors import StoreError
from api_tool_catalog.log import get_logger
from api_tool_catalog.models import OperationDescriptor

logger = get_logger(__name__)


class ChunkStore:
    """Reads and writes the fixed set of chunk files."""

    def __init__(
        self,
        directory: Path,
        prefix: str = "tools-",
        suffix: str = ".json",
        chunk_count: int = 20,
        max_entries: int = 20,
    ):
        self.directory = Path(directory)
        self.prefix = prefix
        self.suffix = suffix
        self.chunk_count = chunk_count
        self.max_entries = max_entries

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChunkStore":
        return cls(
            directory=settings.catalog_dir,
            prefix=settings.chunk_prefix,
            suffix=settings.chunk_suffix,
            chunk_count=settings.chunk_count,
            max_entries=settings.max_chunk_entries,
        )

    def chunk_path(self, n: int) -> Path:
        return self.directory / f"{self.prefix}{n}{self.suffix}"

    def chunk_paths(self) -> Iterator[Path]:
        """Yield every slot in the fixed range, whether or not its file exists."""
        for n in range(1, self.chunk_count + 1):
            yield self.chunk_path(n)

    def existing_chunks(self) -> Iterator[Path]:
        for path in self.chunk_paths():
            if path.exists():
                yield path

    def load(self, path: Path) -> list[OperationDescriptor]:
        """Load one chunk. Any read or parse failure raises StoreError."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreError(f"Failed to load tools from {path}: {e}") from e

        if not isinstance(data, list):
            raise StoreError(f"Failed to load tools from {path}: expected a JSON array")
        try:
            return [OperationDescriptor.model_validate(item) for item in data]
        except ValidationError as e:
            raise StoreError(f"Failed to load tools from {path}: {e}") from e

    def load_all(self) -> list[OperationDescriptor]:
        """Load every existing chunk, in slot order."""
        descriptors = []
        for path in self.existing_chunks():
            descriptors.extend(self.load(path))
        return descriptors

    def write(self, path: Path, descriptors: list[OperationDescriptor]) -> None:
        """Write one chunk atomically: readers see either the old or the new file."""
        path = Path(path)
        text = json.dumps(
            [d.to_json_dict() for d in descriptors], indent="\t", ensure_ascii=False
        )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(text)
                    fh.write("\n")
                # mkstemp creates 0600; keep the chunk readable as before
                if path.exists():
                    shutil.copymode(path, tmp_name)
                else:
                    os.chmod(tmp_name, 0o666 & ~_current_umask())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StoreError(f"Failed to write tools to {path}: {e}") from e

    def enforce_size(self, path: Path) -> list[Path]:
        """Split an oversized chunk, moving its overflow into slots with free room.

        Returns the chunk files that were rewritten (empty when the chunk fits).
        """
        path = Path(path)
        descriptors = self.load(path)
        if len(descriptors) <= self.max_entries:
            return []

        overflow = descriptors[self.max_entries:]
        targets: dict[Path, list[OperationDescriptor]] = {}
        for slot in self.chunk_paths():
            if not overflow:
                break
            if slot == path:
                continue
            entries = self.load(slot) if slot.exists() else []
            names = {d.name for d in entries}
            room = self.max_entries - len(entries)
            moved = False
            while room > 0 and overflow:
                candidate = overflow.pop(0)
                if candidate.name in names:
                    logger.warning("Dropping duplicate descriptor {} while splitting {}", candidate.name, path)
                    continue
                entries.append(candidate)
                names.add(candidate.name)
                room -= 1
                moved = True
            if moved:
                targets[slot] = entries

        if overflow:
            raise StoreError(
                f"Chunk {path} exceeds {self.max_entries} entries and no slot has room "
                f"for {len(overflow)} more"
            )

        # Targets first: a failure leaves duplicates behind, never lost entries.
        for slot, entries in targets.items():
            self.write(slot, entries)
        self.write(path, descriptors[: self.max_entries])
        written = [path, *targets]
        logger.info("Split {} into {}", path.name, ", ".join(p.name for p in written))
        return written

    def write_all(self, descriptors: list[OperationDescriptor]) -> list[Path]:
        """Replace the whole catalog: fill slots from 1 and remove stale ones."""
        chunks = [
            descriptors[i : i + self.max_entries]
            for i in range(0, len(descriptors), self.max_entries)
        ]
        if len(chunks) > self.chunk_count:
            raise StoreError(
                f"{len(descriptors)} descriptors need {len(chunks)} chunks but only "
                f"{self.chunk_count} slots are configured"
            )

        written = []
        for n, chunk in enumerate(chunks, start=1):
            path = self.chunk_path(n)
            self.write(path, chunk)
            written.append(path)
        for n in range(len(chunks) + 1, self.chunk_count + 1):
            self.chunk_path(n).unlink(missing_ok=True)
        return written


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask
