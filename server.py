#!/usr/bin/env python3

"""
Astroquery MCP Server - Unified Astronomical Archive Access

A Model Context Protocol (MCP) server that exposes astronomical archives
(TAP services and REST APIs) as a flat set of query tools.

Features:
- One tool per archive query, validated with pydantic models
- Bounded network requests with uniform text errors
- Tabular results rendered as compact text
- stdio transport, or HTTP (streamable HTTP and SSE) when a host/port is given

Usage:
    python server.py
    python server.py --port 3000
"""

import argparse
import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

from dotenv import load_dotenv

# Settings in .env must be visible before config is imported
load_dotenv()

import httpx
import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from pydantic import AnyUrl, ValidationError

import config
from data_sources import (
    AavsoDataSource, AdsDataSource, AlmaDataSource, EsaskyDataSource,
    EsoDataSource, ExoplanetDataSource, FermiDataSource, GaiaDataSource,
    HeasarcDataSource, IrsaDataSource, JplDataSource, MastDataSource,
    NedDataSource, NistDataSource, QueryParams, SdssDataSource,
    SimbadDataSource, SplatalogueDataSource, VizierDataSource,
)
from data_sources.aavso import AavsoRegionQuery, AavsoStarQuery
from data_sources.ads import AdsQuery
from data_sources.alma import AlmaQuery
from data_sources.esasky import EsaskyQuery
from data_sources.eso import EsoQuery
from data_sources.exoplanet import ExoplanetQuery
from data_sources.fermi import FermiAdqlQuery, FermiCatalogQuery
from data_sources.gaia import GaiaConeSearch
from data_sources.heasarc import HeasarcQuery
from data_sources.irsa import IrsaAdqlQuery, IrsaQuery
from data_sources.jpl import HorizonsQuery, SbdbQuery
from data_sources.mast import MastQuery
from data_sources.ned import NedQuery
from data_sources.nist import NistQuery
from data_sources.sdss import SdssQuery
from data_sources.simbad import SimbadConeSearch, SimbadQuery
from data_sources.splatalogue import SplatalogueQuery
from data_sources.vizier import VizierQuery

# Configure logging
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize server
server = Server(config.SERVER_NAME)


@dataclass(frozen=True)
class ToolDefinition:
    """
    One MCP tool.

    handler is "<data source attribute>.<method>" on AstroMCPServer; the
    method receives the validated params model.
    """

    name: str
    description: str
    params: Type[QueryParams]
    handler: str


TOOL_REGISTRY: List[ToolDefinition] = [
    ToolDefinition("simbad_query", "Query the SIMBAD astronomical database for an object identifier",
             SimbadQuery, "simbad.query_object"),
    ToolDefinition("simbad_cone_search", "Search SIMBAD for objects within a radius of sky coordinates",
             SimbadConeSearch, "simbad.cone_search"),
    ToolDefinition("vizier_query", "Query the VizieR catalog database for a specific catalog, optionally around coordinates",
             VizierQuery, "vizier.query_catalog"),
    ToolDefinition("gaia_cone_search", "Query the Gaia DR3 archive via cone search",
             GaiaConeSearch, "gaia.cone_search"),
    ToolDefinition("alma_query", "Query the ALMA archive for observations by target name or coordinates",
             AlmaQuery, "alma.query_observations"),
    ToolDefinition("eso_query", "Query the ESO (European Southern Observatory) science archive by target, instrument, or coordinates",
             EsoQuery, "eso.query_archive"),
    ToolDefinition("esasky_query", "Query the ESASky archive for astronomical observations by position and radius",
             EsaskyQuery, "esasky.query_observations"),
    ToolDefinition("exoplanet_query", "Query the NASA Exoplanet Archive for confirmed exoplanet data",
             ExoplanetQuery, "exoplanet.query_planets"),
    ToolDefinition("fermi_lat_catalog_query", "Query the Fermi LAT point source catalog (4FGL-DR4, the latest 14-year catalog)",
             FermiCatalogQuery, "fermi.query_catalog"),
    ToolDefinition("fermi_lat_adql", "Execute a raw ADQL query on the Fermi LAT archive (TAP service)",
             FermiAdqlQuery, "fermi.run_adql"),
    ToolDefinition("irsa_query", "Query the NASA/IPAC Infrared Science Archive (IRSA) by coordinates and catalog",
             IrsaQuery, "irsa.query_catalog"),
    ToolDefinition("irsa_tap", "Execute a raw ADQL query against the IRSA TAP service",
             IrsaAdqlQuery, "irsa.run_adql"),
    ToolDefinition("heasarc_query", "Query HEASARC (High Energy Astrophysics Science Archive) by object name and mission catalog",
             HeasarcQuery, "heasarc.query_mission"),
    ToolDefinition("ads_query", "Query the NASA Astrophysics Data System for papers and bibliographic information (requires ADS_API_KEY)",
             AdsQuery, "ads.search"),
    ToolDefinition("jpl_horizons", "Query JPL Horizons for solar system body ephemerides, orbital elements, or state vectors",
             HorizonsQuery, "jpl.horizons"),
    ToolDefinition("jpl_sbdb", "Query the JPL Small-Body Database for asteroid/comet orbital and physical data",
             SbdbQuery, "jpl.small_body"),
    ToolDefinition("mast_query", "Search MAST (Mikulski Archive for Space Telescopes) for observations by object name or coordinates",
             MastQuery, "mast.query_observations"),
    ToolDefinition("ned_query", "Query the NASA/IPAC Extragalactic Database (NED) for object information by name",
             NedQuery, "ned.lookup"),
    ToolDefinition("nist_lines", "Query the NIST Atomic Spectra Database for spectral line data",
             NistQuery, "nist.query_lines"),
    ToolDefinition("sdss_query", "Query the Sloan Digital Sky Survey (SDSS DR18). Supports cone search, specobjid lookup, and plate/mjd/fiberid lookup.",
             SdssQuery, "sdss.query"),
    ToolDefinition("splatalogue_lines", "Query the Splatalogue spectral line database by frequency range. Optionally filter by chemical species name.",
             SplatalogueQuery, "splatalogue.query_lines"),
    ToolDefinition("aavso_query_star", "Query AAVSO VSX (Variable Star Index) for a specific variable star by name",
             AavsoStarQuery, "aavso.query_star"),
    ToolDefinition("aavso_query_region", "Query AAVSO VSX for variable stars in a circular region around coordinates",
             AavsoRegionQuery, "aavso.query_region"),
]

TOOLS_BY_NAME: Dict[str, ToolDefinition] = {tool.name: tool for tool in TOOL_REGISTRY}


class AstroMCPServer:
    """
    Unified astronomical MCP server.

    Holds one instance of every data source. All of them share the optional
    httpx client; without one each request opens its own.

    Architecture:
    =============
    - Data Sources: one class per archive (TAP services and REST APIs)
    - I/O Module: HTTP primitive, TAP client, response parsers, text rendering
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize every data source.

        Args:
            client: Optional shared httpx client (injected by tests)
        """
        self.client = client

        self.simbad = SimbadDataSource(client=client)
        self.vizier = VizierDataSource(client=client)
        self.gaia = GaiaDataSource(client=client)
        self.alma = AlmaDataSource(client=client)
        self.eso = EsoDataSource(client=client)
        self.esasky = EsaskyDataSource(client=client)
        self.exoplanet = ExoplanetDataSource(client=client)
        self.fermi = FermiDataSource(client=client)
        self.irsa = IrsaDataSource(client=client)
        self.heasarc = HeasarcDataSource(client=client, resolver=self.simbad)
        self.ads = AdsDataSource(client=client)
        self.jpl = JplDataSource(client=client)
        self.mast = MastDataSource(client=client)
        self.ned = NedDataSource(client=client)
        self.nist = NistDataSource(client=client)
        self.sdss = SdssDataSource(client=client)
        self.splatalogue = SplatalogueDataSource(client=client)
        self.aavso = AavsoDataSource(client=client)

        logger.info(f"Astroquery MCP server initialized with {len(TOOL_REGISTRY)} tools")

    async def run_tool(self, tool: ToolDefinition, params: QueryParams) -> Dict[str, Any]:
        source_name, method_name = tool.handler.split('.')
        method = getattr(getattr(self, source_name), method_name)
        return await method(params)

    def data_sources_table(self) -> str:
        rows = []
        for tool in TOOL_REGISTRY:
            source = getattr(self, tool.handler.split('.')[0])
            endpoint = source.tap_endpoint or "REST API"
            rows.append(f"- {tool.name} [{source.source_name}]: {endpoint}")
        return '\n'.join(rows)


# Initialize unified server
astro_server = AstroMCPServer()


@server.list_resources()
async def handle_list_resources() -> list[types.Resource]:
    """
    List the documentation resources of the server.
    """
    return [
        types.Resource(
            uri="astro://help/overview",
            name="Astroquery MCP Server Help",
            description="Overview of the astronomical archive tools",
            mimeType="text/plain"
        ),
        types.Resource(
            uri="astro://info/data_sources",
            name="Data Sources",
            description="Archives behind each tool and their service endpoints",
            mimeType="text/plain"
        )
    ]


@server.read_resource()
async def handle_read_resource(uri: AnyUrl) -> str:
    """
    Read and return the content of a documentation resource.
    """
    if uri.scheme != "astro":
        raise ValueError(f"Unsupported URI scheme: {uri.scheme}")

    path = str(uri).replace("astro://", "")

    if path == "help/overview":
        tool_lines = '\n'.join(
            f"{i}. {tool.name} - {tool.description}" for i, tool in enumerate(TOOL_REGISTRY, 1)
        )
        return f"""
Astroquery MCP Server - Unified Astronomical Archive Access
===========================================================

Each tool runs one query against an astronomical archive and returns the
result as text. Tabular results list up to 5 rows in full, or a table of at
most 8 columns and 20 rows.

Available Tools:
===============
{tool_lines}

Notes:
- All coordinates in decimal degrees (ICRS/J2000)
- Every tool accepts lang='en' or lang='zh' for the output language
- ads_query needs the ADS_API_KEY environment variable
"""

    elif path == "info/data_sources":
        return f"""
Astronomical Data Sources
=========================

{astro_server.data_sources_table()}
"""

    else:
        raise ValueError(f"Unknown resource: {path}")


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List all available astronomical archive tools."""
    return [
        types.Tool(
            name=tool.name,
            description=tool.description,
            inputSchema=tool.params.model_json_schema(),
        )
        for tool in TOOL_REGISTRY
    ]


@server.call_tool(validate_input=False)
async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> list[types.TextContent]:
    """
    Handle tool calls for astronomical archive queries.
    """
    tool = TOOLS_BY_NAME.get(name)
    if tool is None:
        return [types.TextContent(type="text", text=f"Error executing {name}: Unknown tool")]

    try:
        params = tool.params.model_validate(arguments or {})
    except ValidationError as e:
        return [types.TextContent(type="text", text=f"Invalid arguments for {name}: {e}")]

    try:
        logger.info(f"Running {name}")
        result = await astro_server.run_tool(tool, params)

        if result['status'] == 'error':
            return [types.TextContent(type="text", text=result['error'])]
        return [types.TextContent(type="text", text=result['text'])]

    except Exception as e:
        logger.error(f"Error in tool {name}: {str(e)}")
        return [types.TextContent(
            type="text",
            text=f"Error executing {name}: {str(e)}"
        )]


def initialization_options() -> InitializationOptions:
    return InitializationOptions(
        server_name=config.SERVER_NAME,
        server_version=config.SERVER_VERSION,
        capabilities=server.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={}
        ),
    )


async def main():
    """
    Run the server over stdio.
    """
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, initialization_options())


def create_http_app():
    """
    Build the Starlette app serving streamable HTTP at /mcp and SSE at /sse.
    """
    from mcp.server.sse import SseServerTransport
    from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
    from starlette.applications import Starlette
    from starlette.responses import Response
    from starlette.routing import Mount, Route

    session_manager = StreamableHTTPSessionManager(
        app=server,
        event_store=None,
        json_response=False,
        stateless=True,
    )
    sse = SseServerTransport("/messages/")

    async def handle_streamable_http(scope, receive, send):
        await session_manager.handle_request(scope, receive, send)

    async def handle_sse(request):
        async with sse.connect_sse(request.scope, request.receive, request._send) as (read_stream, write_stream):
            await server.run(read_stream, write_stream, initialization_options())
        return Response()

    @contextlib.asynccontextmanager
    async def lifespan(app):
        async with session_manager.run():
            logger.info("Streamable HTTP session manager started")
            yield

    return Starlette(
        routes=[
            Mount("/mcp", app=handle_streamable_http),
            Route("/sse", endpoint=handle_sse, methods=["GET"]),
            Mount("/messages/", app=sse.handle_post_message),
        ],
        lifespan=lifespan,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="astroquery-mcp", description="MCP server for astronomical archives")
    parser.add_argument("--host", help="HTTP server host")
    parser.add_argument("--port", type=int, help="HTTP server port")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level (DEBUG, INFO, ...)")
    return parser.parse_args(argv)


def run(argv: Optional[List[str]] = None):
    """
    Console entry point: stdio unless a host or port is given.
    """
    args = parse_args(argv)
    logging.getLogger().setLevel(args.log_level.upper())

    if args.host is None and args.port is None:
        logger.info("Astroquery MCP server running on stdio")
        asyncio.run(main())
        return

    import uvicorn

    host = args.host or config.HTTP_HOST
    port = args.port or config.HTTP_PORT
    logger.info(f"Astroquery MCP server listening on http://{host}:{port}")
    uvicorn.run(create_http_app(), host=host, port=port, log_level=args.log_level.lower())


if __name__ == "__main__":
    run()
