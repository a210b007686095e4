"""Markdown guides served as MCP resources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from mcp.server.fastmcp import FastMCP

from ..utils.logger import log


@dataclass(frozen=True)
class UserGuide:
    uri: str
    name: str
    description: str
    content: str
    mime_type: str = "text/markdown"


FACT_CHECKING_GUIDE = UserGuide(
    uri="guide://fact-checking-workflow",
    name="Fact-Checking Workflow Guide",
    description=(
        "Three-step workflow for detecting and verifying claims with Exa search: "
        "extract claims, search for evidence, verify accuracy"
    ),
    content="""# Fact-Checking Workflow with Exa

Use this workflow to verify statements in a piece of text, for example an
AI-generated answer that may contain hallucinations.

## 1. Extract claims

Ask a model to list every verifiable factual statement in the text and return
them as a JSON array of strings. Leave out opinions and statements that no
external source could confirm.

```json
[
  "Company X was founded in 2020",
  "The product has over 1 million users"
]
```

Split compound statements into atomic claims; each one is checked separately.

## 2. Search for evidence

Run one targeted search per claim, using the claim text as the query and
3 to 5 results:

- `web_search_exa` for recent events and general facts
- `research_paper_search_exa` for scientific claims
- `company_research_exa` for business facts
- `wikipedia_search_exa` for established historical facts

```python
evidence = [
    {"claim": claim, "sources": await web_search_exa(query=claim, num_results=5)}
    for claim in claims
]
```

## 3. Verify claims

Give each claim and its sources to a model and ask for one of:

- SUPPORTED: the sources clearly confirm the claim
- REFUTED: the sources contradict the claim
- INSUFFICIENT: there is not enough evidence

Request a confidence score (0-100) and a short explanation:

```json
{
  "claim": "Company X was founded in 2020",
  "assessment": "REFUTED",
  "confidence": 95,
  "explanation": "Several sources give 2018 as the founding year",
  "supporting_sources": [],
  "refuting_sources": ["https://example.com/a", "https://example.com/b"]
}
```

Summarize the run as total claims plus the SUPPORTED, REFUTED and
INSUFFICIENT counts, followed by the per-claim details.

## Tips

1. Prefer authoritative sources such as papers, official sites and established outlets.
2. Check publication dates for time-sensitive claims.
3. Look for sources that contradict a claim as well as ones that support it.
4. Combine several tools when one domain list is too narrow.
""",
)

USER_GUIDES: tuple[UserGuide, ...] = (FACT_CHECKING_GUIDE,)


def _guide_reader(guide: UserGuide) -> Callable[[], str]:
    def _read() -> str:
        log(f"Serving user guide resource: {guide.uri}")
        return guide.content

    return _read


def register_user_guides(server: FastMCP) -> None:
    for guide in USER_GUIDES:
        server.resource(
            guide.uri,
            name=guide.name,
            description=guide.description,
            mime_type=guide.mime_type,
        )(_guide_reader(guide))

    log(f"Registered {len(USER_GUIDES)} user guide resources")


__all__ = ["FACT_CHECKING_GUIDE", "USER_GUIDES", "UserGuide", "register_user_guides"]
