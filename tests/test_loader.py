"""
Test suite for loading the JSONL embedding index.

Covers record parsing, malformed line handling, limits and missing files.
"""

import json

import pytest

from aivs_retrieval.errors import MalformedRecord, StoreUnavailable
from aivs_retrieval.store.loader import load_chunks, load_metadata, parse_record


class TestParseRecord:
    """Test suite for single-line parsing."""

    def test_should_keep_extra_fields_as_metadata(self) -> None:
        line = json.dumps({"id": 7, "text": "t", "embedding": [1, 2.5], "title": "Guide"})

        chunk = parse_record(line, 1, "vector.index")

        assert chunk.identifier == "7"
        assert chunk.text == "t"
        assert chunk.embedding == (1.0, 2.5)
        assert chunk.metadata == {"title": "Guide"}

    def test_should_fall_back_to_file_and_line_identifier(self) -> None:
        line = json.dumps({"text": "t", "embedding": [0.1]})

        chunk = parse_record(line, 42, "vector.index")

        assert chunk.identifier == "vector.index:42"

    @pytest.mark.parametrize("line", [
        "{not json",
        "[1, 2, 3]",
        json.dumps({"text": "no embedding"}),
        json.dumps({"text": "empty", "embedding": []}),
        json.dumps({"text": "strings", "embedding": ["a", "b"]}),
        json.dumps({"text": "bools", "embedding": [True, False]}),
        json.dumps({"embedding": [0.1, 0.2]}),
        '{"text": "huge", "embedding": [' + "9" * 400 + ']}',
        '{"text": "too long", "embedding": [' + "1" * 5000 + ']}',
    ])
    def test_should_reject_malformed_lines(self, line: str) -> None:
        with pytest.raises(MalformedRecord) as exc_info:
            parse_record(line, 3, "vector.index")

        assert exc_info.value.line_number == 3


class TestLoadChunks:
    """Test suite for load_chunks."""

    @pytest.mark.asyncio
    async def test_should_return_chunks_in_file_order(self, write_index, three_chunk_rows) -> None:
        path = write_index(three_chunk_rows)

        chunks = await load_chunks(path)

        assert [c.identifier for c in chunks] == ["a", "b", "c"]
        assert chunks[0].metadata["title"] == "CIS"

    @pytest.mark.asyncio
    async def test_should_skip_invalid_line_without_aborting(self, write_index, three_chunk_rows) -> None:
        rows = [three_chunk_rows[0], "this is not json", three_chunk_rows[1], three_chunk_rows[2]]
        path = write_index(rows)

        chunks = await load_chunks(path)

        assert len(chunks) == len(rows) - 1
        assert [c.identifier for c in chunks] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_should_skip_line_with_invalid_utf8(self, tmp_path) -> None:
        path = tmp_path / "vector.index"
        path.write_bytes(
            b'{"text": "first", "embedding": [1.0]}\n'
            b'{"text": "\xff\xfe", "embedding": [1.0]}\n'
            b'{"text": "second", "embedding": [2.0]}\n'
        )

        chunks = await load_chunks(path)

        assert [c.text for c in chunks] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_should_skip_embedding_too_large_for_float(self, write_index) -> None:
        path = write_index([
            {"text": "first", "embedding": [1.0]},
            '{"text": "huge", "embedding": [' + "9" * 400 + ']}',
            {"text": "second", "embedding": [2.0]},
        ])

        chunks = await load_chunks(path)

        assert [c.text for c in chunks] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_should_not_truncate_without_limit(self, write_index) -> None:
        rows = ['{"text": "t", "embedding": [1.0]}'] * 50005
        path = write_index(rows)

        chunks = await load_chunks(path)

        assert len(chunks) == 50005

    @pytest.mark.asyncio
    async def test_should_skip_lines_without_embedding(self, write_index) -> None:
        path = write_index([
            {"text": "kept", "embedding": [0.5]},
            {"text": "dropped"},
            "",
            {"text": "also kept", "embedding": [0.25]},
        ])

        chunks = await load_chunks(path)

        assert [c.text for c in chunks] == ["kept", "also kept"]

    @pytest.mark.asyncio
    async def test_should_stop_at_limit(self, write_index) -> None:
        rows = [{"text": f"chunk {i}", "embedding": [float(i)]} for i in range(10)]
        path = write_index(rows)

        chunks = await load_chunks(path, limit=4, batch_size=2)

        assert [c.text for c in chunks] == ["chunk 0", "chunk 1", "chunk 2", "chunk 3"]

    @pytest.mark.asyncio
    async def test_should_count_only_accepted_records_towards_limit(self, write_index) -> None:
        path = write_index([
            "garbage",
            {"text": "one", "embedding": [1.0]},
            "garbage",
            {"text": "two", "embedding": [2.0]},
            {"text": "three", "embedding": [3.0]},
        ])

        chunks = await load_chunks(path, limit=2)

        assert [c.text for c in chunks] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_should_treat_non_positive_limit_as_unlimited(self, write_index, three_chunk_rows) -> None:
        path = write_index(three_chunk_rows)

        assert len(await load_chunks(path, limit=None)) == 3
        assert len(await load_chunks(path, limit=0)) == 3

    @pytest.mark.asyncio
    async def test_should_return_empty_list_for_empty_file(self, tmp_path) -> None:
        path = tmp_path / "empty.index"
        path.write_text("", encoding="utf-8")

        assert await load_chunks(path) == []

    @pytest.mark.asyncio
    async def test_should_raise_store_unavailable_for_missing_file(self, tmp_path) -> None:
        with pytest.raises(StoreUnavailable):
            await load_chunks(tmp_path / "missing.index")

    @pytest.mark.asyncio
    async def test_should_raise_store_unavailable_for_directory(self, tmp_path) -> None:
        with pytest.raises(StoreUnavailable):
            await load_chunks(tmp_path)


class TestLoadMetadata:
    """Test suite for the optional metadata sample."""

    @pytest.mark.asyncio
    async def test_should_return_first_rows(self, write_index) -> None:
        path = write_index([{"title": f"Doc {i}"} for i in range(15)], name="chunks_metadata.jsonl")

        sample = await load_metadata(path, limit=3)

        assert sample == [{"title": "Doc 0"}, {"title": "Doc 1"}, {"title": "Doc 2"}]

    @pytest.mark.asyncio
    async def test_should_skip_malformed_rows(self, write_index) -> None:
        path = write_index(["nope", {"title": "Doc"}], name="chunks_metadata.jsonl")

        assert await load_metadata(path) == [{"title": "Doc"}]

    @pytest.mark.asyncio
    async def test_should_skip_rows_with_invalid_utf8(self, tmp_path) -> None:
        path = tmp_path / "chunks_metadata.jsonl"
        path.write_bytes(b'{"title": "\xff"}\n{"title": "Doc"}\n')

        assert await load_metadata(path) == [{"title": "Doc"}]

    @pytest.mark.asyncio
    async def test_should_return_empty_list_when_missing(self, tmp_path) -> None:
        assert await load_metadata(tmp_path / "absent.jsonl") == []
