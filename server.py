# In server.py
import asyncio
import logging
import sys
from typing import Optional

from fastmcp import FastMCP

from coromondex.config import LOG_LEVEL
from coromondex.exceptions import CoromondexError, UnknownSpeciesError
from coromondex.services.catalog import Catalog, load_catalog

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

mcp = FastMCP("Coromondex Server")

_catalog: Optional[Catalog] = None
_catalog_lock = asyncio.Lock()


async def get_catalog() -> Catalog:
    # Chains are built once, on the first request, and reused afterwards
    global _catalog
    async with _catalog_lock:
        if _catalog is None:
            _catalog = await load_catalog()
    return _catalog


@mcp.resource("coromon://{name}")
async def get_coromon(name: str) -> dict:
    try:
        catalog = await get_catalog()
        return catalog.describe(name)
    except UnknownSpeciesError as e:
        logger.error(f"Coromon not found: {e}")
        raise Exception(f"Coromon '{name}' not found")
    except CoromondexError as e:
        logger.error(f"Error getting coromon: {e}")
        raise Exception(f"Failed to get coromon: {str(e)}")


@mcp.tool()
async def resolve_coromon(req: dict) -> dict:
    """
    Resolves the plus tier and effective traits of a Coromon.
    Expects req with 'coromon' (a name or an id).
    """
    coromon = req.get("coromon")
    if coromon is None or str(coromon).strip() == "":
        raise Exception("'coromon' is required")
    try:
        catalog = await get_catalog()
        resolved = catalog.resolve(coromon)
        result = resolved.model_dump(mode="json")
        result["display"] = resolved.display()
        return result
    except UnknownSpeciesError as e:
        logger.error(f"Coromon not found: {e}")
        raise Exception(f"Coromon '{coromon}' not found")
    except CoromondexError as e:
        logger.error(f"Resolve error: {e}")
        raise Exception(f"Resolve failed: {str(e)}")


@mcp.tool()
async def evolution_lines() -> dict:
    """Lists every evolution line, base form first. Titans are not included."""
    catalog = await get_catalog()
    return {"lines": catalog.evolution_lines()}


@mcp.tool()
async def coromon_traits_report() -> dict:
    """Lists every Coromon with its plus tier and traits, falling back to the final evolution's traits."""
    catalog = await get_catalog()
    return {"coromon": catalog.traits_report()}


@mcp.tool()
async def type_matchup(req: dict) -> dict:
    """
    Computes the damage multiplier of an attacking type against one or more defending types.
    Expects req with 'attacking' and 'defending' (a type name or a list of type names).
    """
    attacking = req.get("attacking")
    defending = req.get("defending")
    if not attacking or not defending:
        raise Exception("Both attacking and defending are required")
    if isinstance(defending, str):
        defending = [defending]
    if not isinstance(defending, list):
        raise Exception("'defending' must be a type name or a list of type names")
    try:
        catalog = await get_catalog()
        return catalog.type_matchup(attacking, defending)
    except CoromondexError as e:
        logger.error(f"Type matchup error: {e}")
        raise Exception(f"Type matchup failed: {str(e)}")


if __name__ == "__main__":
    try:
        logger.info("Starting Coromondex MCP Server...")
        mcp.run(transport="stdio")
    except Exception as e:
        logger.error(f"Server failed: {e}", exc_info=True)
        sys.exit(1)
