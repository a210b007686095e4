import asyncio
import json
import os
import re
import unittest
from unittest.mock import patch

from exasearch.tools.exa_core import run_crawl_tool, run_search_tool
from exasearch.tools.exa_types import ContentsOptions, CrawlRequest, SearchRequest
from exasearch.utils.config import _reset_runtime_for_tests, init_runtime
from exasearch.utils.logger import RequestLogger, new_request_id

_POST = "exasearch.tools.exa_core.curl_requests.post"


class _FakeResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self) -> None:
        return None


def _messages(captured) -> list[str]:
    return [record.getMessage() for record in captured.records]


class RequestLoggerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._env = patch.dict(os.environ, {}, clear=False)
        self._env.start()
        os.environ.pop("EXA_API_KEY", None)
        _reset_runtime_for_tests()
        init_runtime(argv=[])

    def tearDown(self) -> None:
        self._env.stop()
        _reset_runtime_for_tests()

    def test_request_ids_are_unique_and_tagged(self) -> None:
        ids = {new_request_id("web_search_exa") for _ in range(50)}
        self.assertEqual(len(ids), 50)
        for request_id in ids:
            self.assertRegex(request_id, r"^web_search_exa-\d+-[0-9a-f]{5}$")

    def test_lines_carry_prefix_id_and_tool(self) -> None:
        request_logger = RequestLogger("req-1", "wikipedia_search_exa")
        with self.assertLogs("exasearch.requests", level="INFO") as captured:
            request_logger.start("Ada Lovelace")
            request_logger.complete()
        self.assertEqual(
            _messages(captured),
            [
                '[EXA-MCP-DEBUG] [req-1] [wikipedia_search_exa] Starting search for query: "Ada Lovelace"',
                "[EXA-MCP-DEBUG] [req-1] [wikipedia_search_exa] Successfully completed request",
            ],
        )

    def test_successful_run_logs_in_order(self) -> None:
        request_logger = RequestLogger("req-2", "github_search_exa")
        request = SearchRequest(query="httpx GitHub", num_results=2, contents=ContentsOptions())
        body = '{"results": [{"id": "1"}, {"id": "2"}]}'
        with patch(_POST, return_value=_FakeResponse(body)):
            with self.assertLogs("exasearch.requests", level="INFO") as captured:
                asyncio.run(
                    run_search_tool(
                        request_logger=request_logger,
                        request=request,
                        api_key="k",
                        request_label="GitHub search",
                        results_label="GitHub results",
                        empty_results_message="empty",
                        error_message="failed",
                    )
                )
        lines = [re.sub(r"^\[EXA-MCP-DEBUG\] \[req-2\] \[github_search_exa\] ", "", m) for m in _messages(captured)]
        self.assertEqual(
            lines,
            [
                "Sending request to Exa API for GitHub search",
                "Received response from Exa API for GitHub search",
                "Found 2 GitHub results",
                "Successfully completed request",
            ],
        )

    def test_empty_run_warns_then_completes(self) -> None:
        request_logger = RequestLogger("req-3", "crawling_exa")
        request = CrawlRequest(ids=("https://example.com",), contents=ContentsOptions())
        with patch(_POST, return_value=_FakeResponse('{"results": []}')):
            with self.assertLogs("exasearch.requests", level="INFO") as captured:
                response = asyncio.run(
                    run_crawl_tool(
                        request_logger=request_logger,
                        request=request,
                        api_key="k",
                        empty_results_message="No content found for the provided URL.",
                        error_message="failed",
                    )
                )
        messages = _messages(captured)
        self.assertEqual(response.text, "No content found for the provided URL.")
        self.assertTrue(messages[2].endswith("Warning: Empty or invalid response from Exa API"))
        self.assertTrue(messages[-1].endswith("Successfully completed request"))

    def test_failed_run_ends_with_single_error_line(self) -> None:
        request_logger = RequestLogger("req-4", "web_search_exa")
        request = SearchRequest(query="q", num_results=1, contents=ContentsOptions())
        with patch(_POST) as mock_post:
            with self.assertLogs("exasearch.requests", level="INFO") as captured:
                response = asyncio.run(
                    run_search_tool(
                        request_logger=request_logger,
                        request=request,
                        results_label="results",
                        empty_results_message="empty",
                        error_message="failed",
                    )
                )
        self.assertEqual(mock_post.call_count, 0)
        self.assertTrue(response.is_error)
        self.assertEqual(captured.records[-1].levelname, "ERROR")
        self.assertIn("Error: Exa API key is required", captured.records[-1].getMessage())
        self.assertFalse(any("Successfully completed" in m for m in _messages(captured)))


if __name__ == "__main__":
    unittest.main()
