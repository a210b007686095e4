from __future__ import annotations

import logging
from typing import Annotated, Awaitable, Callable, Literal, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult
from pydantic import Field

from ..utils.config import AppConfig, get_config, init_runtime
from ..utils.logger import RequestLogger
from .exa_core import run_crawl_tool, run_search_tool
from .exa_types import ContentsOptions, CrawlRequest, SearchRequest, TextOptions
from .guides import register_user_guides

logger = logging.getLogger(__name__)

COMPANY_RESEARCH_DOMAINS = (
    "bloomberg.com",
    "reuters.com",
    "crunchbase.com",
    "sec.gov",
    "linkedin.com",
    "forbes.com",
    "businesswire.com",
    "prnewswire.com",
)
RESEARCH_PAPER_DOMAINS = (
    "arxiv.org",
    "scholar.google.com",
    "researchgate.net",
    "pubmed.ncbi.nlm.nih.gov",
    "ieee.org",
    "acm.org",
)

NumResults = Annotated[
    Optional[int],
    Field(description="Number of search results to return (default: 5)"),
]


def _text_contents(max_characters: int) -> ContentsOptions:
    return ContentsOptions(text=TextOptions(max_characters=max_characters), livecrawl="preferred")


def _neural_search(cfg: AppConfig, query: str, num_results: Optional[int], **kwargs) -> SearchRequest:
    return SearchRequest(
        query=query,
        type="neural",
        num_results=num_results or cfg.default_num_results,
        contents=_text_contents(cfg.default_max_characters),
        **kwargs,
    )


async def web_search_exa(
    query: Annotated[str, Field(description="Search query")],
    num_results: NumResults = None,
) -> CallToolResult:
    cfg = get_config()
    request_logger = RequestLogger.for_tool("web_search_exa")
    request_logger.start(query)

    request = SearchRequest(
        query=query,
        type="auto",
        num_results=num_results or cfg.default_num_results,
        contents=_text_contents(cfg.default_max_characters),
    )
    response = await run_search_tool(
        request_logger=request_logger,
        request=request,
        api_key=cfg.exa_api_key,
        timeout_ms=cfg.timeout_ms,
        results_label="results",
        empty_results_message="No search results found. Please try a different query.",
        error_message="Search error: Failed to retrieve results from Exa.",
    )
    return response.to_call_tool_result()


async def company_research_exa(
    company_name: Annotated[str, Field(description="Name of the company to research")],
    num_results: NumResults = None,
) -> CallToolResult:
    cfg = get_config()
    request_logger = RequestLogger.for_tool("company_research_exa")
    request_logger.start(company_name)

    request = _neural_search(
        cfg,
        f"{company_name} company business corporation information news financial",
        num_results,
        include_domains=COMPANY_RESEARCH_DOMAINS,
    )
    response = await run_search_tool(
        request_logger=request_logger,
        request=request,
        api_key=cfg.exa_api_key,
        timeout_ms=cfg.timeout_ms,
        request_label="company research",
        results_label="company research results",
        empty_results_message="No company information found. Please try a different company name.",
        error_message="Company research error: Failed to retrieve results from Exa.",
    )
    return response.to_call_tool_result()


async def competitor_finder_exa(
    company_name: Annotated[str, Field(description="Name of the company to find competitors for")],
    industry: Annotated[
        Optional[str],
        Field(description="Industry sector (optional, helps narrow search)"),
    ] = None,
    num_results: NumResults = None,
) -> CallToolResult:
    cfg = get_config()
    request_logger = RequestLogger.for_tool("competitor_finder_exa")
    request_logger.start(f"{company_name} in {industry}" if industry else company_name)

    if industry:
        query = f"{company_name} competitors similar companies {industry} industry competitive landscape"
    else:
        query = f"{company_name} competitors similar companies competitive landscape market"

    response = await run_search_tool(
        request_logger=request_logger,
        request=_neural_search(cfg, query, num_results),
        api_key=cfg.exa_api_key,
        timeout_ms=cfg.timeout_ms,
        request_label="competitor analysis",
        results_label="competitor analysis results",
        empty_results_message="No competitor information found. Please try a different company name or industry.",
        error_message="Competitor finder error: Failed to retrieve results from Exa.",
    )
    return response.to_call_tool_result()


async def crawling_exa(
    url: Annotated[str, Field(description="URL to crawl and extract content from")],
    max_characters: Annotated[
        Optional[int],
        Field(description="Maximum characters to extract (default: 3000)"),
    ] = None,
) -> CallToolResult:
    cfg = get_config()
    request_logger = RequestLogger.for_tool("crawling_exa")
    request_logger.start(url)

    request = CrawlRequest(
        ids=(url,),
        contents=_text_contents(max_characters or cfg.default_max_characters),
    )
    response = await run_crawl_tool(
        request_logger=request_logger,
        request=request,
        api_key=cfg.exa_api_key,
        timeout_ms=cfg.timeout_ms,
        request_label="crawl request",
        empty_results_message="No content found for the provided URL.",
        error_message="Crawling error: Failed to retrieve results from Exa.",
        success_log=lambda _payload: "Successfully crawled content from URL",
    )
    return response.to_call_tool_result()


_GITHUB_SUFFIXES = {
    "repositories": "GitHub repository",
    "code": "GitHub code",
    "users": "GitHub user profile",
}


async def github_search_exa(
    query: Annotated[
        str,
        Field(description="GitHub search query (repository name, programming language, username, etc.)"),
    ],
    search_type: Annotated[
        Optional[Literal["repositories", "code", "users", "all"]],
        Field(description="Type of GitHub content to search (default: all)"),
    ] = None,
    num_results: NumResults = None,
) -> CallToolResult:
    cfg = get_config()
    request_logger = RequestLogger.for_tool("github_search_exa")
    request_logger.start(f"{query} ({search_type or 'all'})")

    suffix = _GITHUB_SUFFIXES.get(search_type or "all", "GitHub")
    response = await run_search_tool(
        request_logger=request_logger,
        request=_neural_search(cfg, f"{query} {suffix}", num_results, include_domains=("github.com",)),
        api_key=cfg.exa_api_key,
        timeout_ms=cfg.timeout_ms,
        request_label="GitHub search",
        results_label="GitHub results",
        empty_results_message="No GitHub content found. Please try a different query.",
        error_message="GitHub search error: Failed to retrieve results from Exa.",
    )
    return response.to_call_tool_result()


_LINKEDIN_SUFFIXES = {
    "profiles": "LinkedIn profile",
    "companies": "LinkedIn company",
}


async def linkedin_search_exa(
    query: Annotated[str, Field(description="LinkedIn search query (e.g., person name, company, job title)")],
    search_type: Annotated[
        Optional[Literal["profiles", "companies", "all"]],
        Field(description="Type of LinkedIn content to search (default: all)"),
    ] = None,
    num_results: NumResults = None,
) -> CallToolResult:
    cfg = get_config()
    request_logger = RequestLogger.for_tool("linkedin_search_exa")
    request_logger.start(f"{query} ({search_type or 'all'})")

    suffix = _LINKEDIN_SUFFIXES.get(search_type or "all", "LinkedIn")
    response = await run_search_tool(
        request_logger=request_logger,
        request=_neural_search(cfg, f"{query} {suffix}", num_results, include_domains=("linkedin.com",)),
        api_key=cfg.exa_api_key,
        timeout_ms=cfg.timeout_ms,
        request_label="LinkedIn search",
        results_label="LinkedIn results",
        empty_results_message="No LinkedIn content found. Please try a different query.",
        error_message="LinkedIn search error: Failed to retrieve results from Exa.",
    )
    return response.to_call_tool_result()


async def research_paper_search_exa(
    query: Annotated[str, Field(description="Research paper search query")],
    num_results: NumResults = None,
) -> CallToolResult:
    cfg = get_config()
    request_logger = RequestLogger.for_tool("research_paper_search_exa")
    request_logger.start(query)

    response = await run_search_tool(
        request_logger=request_logger,
        request=_neural_search(
            cfg,
            f"{query} academic paper research study",
            num_results,
            include_domains=RESEARCH_PAPER_DOMAINS,
        ),
        api_key=cfg.exa_api_key,
        timeout_ms=cfg.timeout_ms,
        request_label="research papers",
        results_label="research papers",
        empty_results_message="No research papers found. Please try a different query.",
        error_message="Research paper search error: Failed to retrieve results from Exa.",
    )
    return response.to_call_tool_result()


async def wikipedia_search_exa(
    query: Annotated[str, Field(description="Wikipedia search query (topic, person, place, concept, etc.)")],
    num_results: NumResults = None,
) -> CallToolResult:
    cfg = get_config()
    request_logger = RequestLogger.for_tool("wikipedia_search_exa")
    request_logger.start(query)

    response = await run_search_tool(
        request_logger=request_logger,
        request=_neural_search(cfg, f"{query} Wikipedia", num_results, include_domains=("wikipedia.org",)),
        api_key=cfg.exa_api_key,
        timeout_ms=cfg.timeout_ms,
        request_label="Wikipedia search",
        results_label="Wikipedia articles",
        empty_results_message="No Wikipedia articles found. Please try a different query.",
        error_message="Wikipedia search error: Failed to retrieve results from Exa.",
    )
    return response.to_call_tool_result()


TOOL_REGISTRY: dict[str, tuple[Callable[..., Awaitable[CallToolResult]], str]] = {
    "web_search_exa": (
        web_search_exa,
        "Search the web using Exa AI - performs real-time web searches and returns the content "
        "from the most relevant websites. Supports configurable result counts.",
    ),
    "company_research_exa": (
        company_research_exa,
        "Research companies using Exa AI - finds information about businesses, organizations and "
        "corporations, including operations, news, financial information and industry analysis.",
    ),
    "competitor_finder_exa": (
        competitor_finder_exa,
        "Find competitors for a business using Exa AI - identifies similar companies, the competitive "
        "landscape and market positioning, directly or within a given industry.",
    ),
    "crawling_exa": (
        crawling_exa,
        "Extract and crawl content from a specific URL using Exa AI - retrieves full text content and "
        "metadata from a known web page.",
    ),
    "github_search_exa": (
        github_search_exa,
        "Search GitHub repositories and code using Exa AI - finds repositories, code snippets, "
        "documentation and developer profiles on GitHub.",
    ),
    "linkedin_search_exa": (
        linkedin_search_exa,
        "Search LinkedIn profiles and companies using Exa AI - finds professional profiles, company "
        "pages and business-related content on LinkedIn.",
    ),
    "research_paper_search_exa": (
        research_paper_search_exa,
        "Search for academic papers and research using Exa AI - finds scholarly articles, research "
        "papers and academic content.",
    ),
    "wikipedia_search_exa": (
        wikipedia_search_exa,
        "Search Wikipedia articles using Exa AI - finds factual information from Wikipedia entries, "
        "useful for research and fact-checking.",
    ),
}


def create_server(cfg: AppConfig) -> FastMCP:
    server = FastMCP("exa-search")
    for name in cfg.enabled_tools:
        fn, description = TOOL_REGISTRY[name]
        server.add_tool(fn, name=name, description=description, structured_output=False)
    logger.info("Registered tools: %s", ", ".join(cfg.enabled_tools))
    register_user_guides(server)
    return server


def main() -> None:
    cfg = init_runtime()
    logger.info("Exa Search MCP Server starting...")
    if cfg.exa_api_key:
        logger.info("Exa API key configured: ***")
    else:
        logger.warning("No Exa API key configured; EXA_API_KEY will be read on every call")
    if cfg.proxy:
        logger.info("Proxy enabled: %s", cfg.proxy)
    mcp = create_server(cfg)
    logger.info("Waiting for MCP client connection...")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
