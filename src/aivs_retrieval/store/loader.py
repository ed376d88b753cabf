import json
import numbers
import time
from pathlib import Path
from typing import Any, Optional

import aiofiles

from aivs_retrieval.errors import MalformedRecord, StoreUnavailable
from aivs_retrieval.models.chunk import Chunk
from aivs_retrieval.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 1000


def decode_line(raw_line: bytes, line_number: int) -> str:
    """
    Decode and strip one raw line of the index file.

    Raises:
        MalformedRecord: If the line is not valid UTF-8
    """
    try:
        return raw_line.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise MalformedRecord(line_number, f"invalid UTF-8 ({e.reason})") from e


def parse_record(line: str, line_number: int, source_name: str) -> Chunk:
    """
    Parse one line of the index file into a Chunk.

    Args:
        line: Raw line, already stripped
        line_number: 1-based position in the file, used for the fallback identifier
        source_name: File name used for the fallback identifier

    Returns:
        The parsed chunk

    Raises:
        MalformedRecord: If the line is not a JSON object with text and a numeric embedding
    """
    try:
        record = json.loads(line)
    except ValueError as e:
        raise MalformedRecord(line_number, f"invalid JSON ({e})") from e

    if not isinstance(record, dict):
        raise MalformedRecord(line_number, "record is not an object")

    embedding = record.get("embedding")
    if not isinstance(embedding, list) or not embedding:
        raise MalformedRecord(line_number, "missing embedding")
    if not all(isinstance(v, numbers.Real) and not isinstance(v, bool) for v in embedding):
        raise MalformedRecord(line_number, "embedding is not numeric")

    text = record.get("text")
    if not isinstance(text, str):
        raise MalformedRecord(line_number, "missing text")

    identifier = record.get("id")
    if identifier is None:
        identifier = f"{source_name}:{line_number}"

    metadata = {k: v for k, v in record.items() if k not in ("id", "text", "embedding")}
    try:
        return Chunk(identifier=str(identifier), text=text, embedding=embedding, metadata=metadata)
    except (ValueError, OverflowError) as e:
        raise MalformedRecord(line_number, f"embedding value out of range ({e})") from e


async def load_chunks(
        path: str | Path,
        limit: Optional[int] = None,
        batch_size: int = DEFAULT_BATCH_SIZE
) -> list[Chunk]:
    """
    Read a JSONL embedding index line by line.

    Lines that are not valid records are dropped; the load carries on.

    Args:
        path: Path to the JSONL index file
        limit: Maximum number of chunks to keep (None or <= 0 for no limit)
        batch_size: Number of accepted chunks between progress log lines

    Returns:
        Chunks in file order, truncated to the limit

    Raises:
        StoreUnavailable: If the file cannot be opened or read
    """
    path = Path(path)
    limit = limit if limit and limit > 0 else None
    batch_size = max(batch_size, 1)
    start_time = time.time()
    logger.info(f"Loading vector index from {path} (limit {limit or 'none'})")

    chunks: list[Chunk] = []
    dropped = 0
    line_number = 0
    try:
        async with aiofiles.open(path, mode='rb') as f:
            async for raw_line in f:
                line_number += 1
                try:
                    line = decode_line(raw_line, line_number)
                    if not line:
                        continue
                    chunks.append(parse_record(line, line_number, path.name))
                except MalformedRecord as e:
                    dropped += 1
                    logger.debug(str(e))
                    continue

                if len(chunks) % batch_size == 0:
                    logger.info(f"  {len(chunks)} vectors loaded")
                if limit is not None and len(chunks) >= limit:
                    logger.info(f"Chunk limit reached ({limit})")
                    break
    except OSError as e:
        logger.error(f"Could not read vector index {path}: {e}")
        raise StoreUnavailable(str(path), str(e)) from e

    processing_time_ms = int((time.time() - start_time) * 1000)
    if dropped:
        logger.warning(f"Dropped {dropped} malformed lines from {path}")
    logger.info(f"Loaded {len(chunks)} vectors from {path} ({processing_time_ms}ms)")
    return chunks


async def load_metadata(path: str | Path, limit: int = 10) -> list[dict[str, Any]]:
    """
    Read a sample of the chunk metadata companion file.

    The metadata file is optional; a missing file gives an empty list.

    Args:
        path: Path to the metadata JSONL file
        limit: Number of rows to return

    Returns:
        Up to `limit` parsed metadata rows
    """
    sample: list[dict[str, Any]] = []
    total = 0
    try:
        async with aiofiles.open(path, mode='rb') as f:
            async for raw_line in f:
                if not raw_line.strip():
                    continue
                total += 1
                if len(sample) >= limit:
                    continue
                try:
                    row = json.loads(decode_line(raw_line, total))
                except (MalformedRecord, ValueError):
                    logger.debug(f"Skipping malformed metadata line {total}")
                    continue
                if isinstance(row, dict):
                    sample.append(row)
    except OSError as e:
        logger.warning(f"Metadata file missing or unreadable: {path} ({e})")
        return []

    logger.info(f"Metadata sample loaded ({len(sample)}/{total})")
    return sample
