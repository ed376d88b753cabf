from dotenv import load_dotenv
load_dotenv()

import asyncio
import json
from typing import Any

from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent, ServerCapabilities

from aivs_retrieval.config import Settings
from aivs_retrieval.llm.embedding import get_embedder
from aivs_retrieval.models.match import Match
from aivs_retrieval.retrieval.context import retrieve_context
from aivs_retrieval.store.vector_store import VectorStore
from aivs_retrieval.utils.logger import get_logger

logger = get_logger(__name__)

SERVER_NAME = "aivs-context-search"

server = Server(SERVER_NAME)
settings = Settings.from_env()
store = VectorStore(
    get_embedder(settings),
    top_k=settings.top_k,
    embed_timeout=settings.embedding_timeout,
)


def match_to_dict(match: Match) -> dict[str, Any]:
    return {
        "id": match.chunk.identifier,
        "text": match.chunk.text,
        "score": match.score,
        "metadata": dict(match.chunk.metadata),
    }


@server.list_tools()
async def handle_list_tools() -> list[Tool]:
    """List available tools for searching the compliance index."""
    return [
        Tool(
            name="search_chunks",
            description="Embed a text query and return the most similar passages from the loaded index",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "The text query to search for (at least 3 characters)"
                    },
                    "limit": {
                        "type": "integer",
                        "description": f"Maximum number of results to return (default: {settings.top_k})",
                        "default": settings.top_k
                    }
                },
                "required": ["query"]
            }
        ),
        Tool(
            name="retrieve_context",
            description="Return the joined passage text that would be used as report context for a question",
            inputSchema={
                "type": "object",
                "properties": {
                    "question": {
                        "type": "string",
                        "description": "The user's question"
                    },
                    "min_score": {
                        "type": "number",
                        "description": f"Minimum similarity score for a passage to be kept (default: {settings.min_score})",
                        "default": settings.min_score
                    }
                },
                "required": ["question"]
            }
        ),
        Tool(
            name="index_info",
            description="Report whether the index is loaded, how many chunks it holds and their dimension",
            inputSchema={"type": "object", "properties": {}}
        )
    ]


async def search_tool(arguments: dict[str, Any]) -> str:
    query = arguments.get("query")
    if not query:
        raise ValueError("Query parameter is required")
    limit = arguments.get("limit")
    limit = settings.top_k if limit is None else int(limit)

    matches = await store.search(query, top_k=limit)
    if not matches:
        return json.dumps({"message": "No matching passages found", "results": []})
    return json.dumps({"results": [match_to_dict(m) for m in matches]}, indent=2)


async def context_tool(arguments: dict[str, Any]) -> str:
    question = arguments.get("question")
    if not question:
        raise ValueError("Question parameter is required")
    min_score = float(arguments.get("min_score", settings.min_score))

    context = await retrieve_context(
        store,
        question,
        min_score=min_score,
        max_chars=settings.context_char_limit,
    )
    return json.dumps(context.to_dict(), indent=2)


@server.call_tool()
async def handle_call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls for the compliance index."""
    if name == "search_chunks":
        handler = search_tool
    elif name == "retrieve_context":
        handler = context_tool
    elif name == "index_info":
        return [TextContent(type="text", text=json.dumps(store.info().to_dict()))]
    else:
        raise ValueError(f"Unknown tool: {name}")

    try:
        response_text = await handler(arguments or {})
    except Exception as e:
        logger.error(f"Error running {name}: {e}", exc_info=True)
        response_text = f"Error running {name}: {str(e)}"

    return [
        TextContent(
            type="text",
            text=response_text
        )
    ]


async def main():
    """Run the MCP server, preloading the index in the background."""
    logger.info(f"Starting {SERVER_NAME} MCP server")
    preload = store.start_loading(
        settings.index_path,
        limit=settings.chunk_limit,
        batch_size=settings.load_batch_size,
    )

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version="1.0.0",
                    capabilities=ServerCapabilities(
                        tools={},
                    ),
                ),
            )
    finally:
        if not preload.done():
            preload.cancel()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
