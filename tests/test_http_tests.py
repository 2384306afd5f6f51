"""Tests for the HTTP tester."""

from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from sitecheck.errors import AggregateAssertionError, ConfigurationError, TransportError
from sitecheck.executor.http_tests import HttpTester


@pytest.mark.asyncio
class TestAssertUrlsFail:
    """Tests for HttpTester.assert_urls_fail."""

    async def test_not_found_passes(self, http_tester):
        report = await http_tester.assert_urls_fail(["https://example.com/missing"])
        assert report.passed
        assert report.responses == ["Not Found"]

    async def test_ok_response_fails_naming_url(self, http_tester):
        with pytest.raises(AggregateAssertionError) as exc_info:
            await http_tester.assert_urls_fail(["https://example.com/hello"])

        error = exc_info.value
        assert error.operation == "HttpTester.assert_urls_fail"
        assert len(error.errors) == 1
        assert "expected to fail but was 200 ok" in error.errors[0]
        assert "https://example.com/hello" in error.errors[0]

    async def test_transport_error_counts_as_failure(self, http_tester):
        report = await http_tester.assert_urls_fail(["https://unreachable.test/"])
        assert report.passed

    async def test_failing_response_body_checked(self, http_tester):
        report = await http_tester.assert_urls_fail([
            {"url": "https://example.com/private", "responseCode": 403, "contains": "Forbidden"},
        ])
        assert report.passed

    async def test_failing_response_wrong_code(self, http_tester):
        http_tester.exceptions_enabled = False
        report = await http_tester.assert_urls_fail([
            {"url": "https://example.com/private", "responseCode": 404},
        ])
        assert not report.passed
        assert "Was expected to be 404 but was 403" in report.errors[0]

    async def test_duplicates_rejected_before_any_request(self, config):
        handler = AsyncMock()
        tester = HttpTester(config, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

        with pytest.raises(ConfigurationError, match="duplicate urls"):
            await tester.assert_urls_fail(["https://example.com/x", "https://example.com/x"])

        handler.assert_not_called()

    async def test_unknown_key_rejected(self, http_tester):
        with pytest.raises(ConfigurationError, match="bogusField"):
            await http_tester.assert_urls_fail([{"url": "https://example.com/x", "bogusField": 1}])


@pytest.mark.asyncio
class TestAssertHttpRequests:
    """Tests for HttpTester.assert_http_requests."""

    async def test_all_checks_pass(self, http_tester):
        report = await http_tester.assert_http_requests([
            {
                "url": "https://$host/hello",
                "responseCode": 200,
                "is": "hello world",
                "contains": ["hello", "world"],
                "startWith": "hello",
                "endWith": "world",
                "notContains": "error",
            },
        ])
        assert report.passed
        assert report.responses == ["hello world"]

    async def test_every_failure_collected(self, http_tester):
        http_tester.exceptions_enabled = False
        report = await http_tester.assert_http_requests([
            {"url": "https://example.com/hello", "contains": ["missing"], "startWith": "bye"},
            {"url": "https://example.com/", "notContains": "Home"},
        ])
        assert not report.passed
        assert len(report.errors) == 3
        assert "Response expected to contain: missing" in report.errors[0]
        assert "Response expected to start with: bye" in report.errors[1]
        assert "Response NOT expected to contain: Home" in report.errors[2]

    async def test_prefix_and_suffix_lists(self, http_tester):
        report = await http_tester.assert_http_requests([
            {"url": "https://example.com/hello", "startWith": ["hello", "hell"], "endWith": ["world", "d"]},
        ])
        assert report.passed

    async def test_each_failing_prefix_reported(self, http_tester):
        http_tester.exceptions_enabled = False
        report = await http_tester.assert_http_requests([
            {"url": "https://example.com/hello", "startWith": ["hello", "bye", "ciao"], "endWith": ["earth"]},
        ])
        assert len(report.errors) == 3
        assert "Response expected to start with: bye" in report.errors[0]
        assert "Response expected to start with: ciao" in report.errors[1]
        assert "Response expected to end with: earth" in report.errors[2]

    async def test_duplicate_post_requests_rejected_before_any_request(self, config):
        handler = Mock(return_value=httpx.Response(200))
        tester = HttpTester(config, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

        with pytest.raises(ConfigurationError, match="duplicate urls"):
            await tester.assert_http_requests([
                {"url": "https://example.com/form", "postParameters": {"a": 1}},
                {"url": "https://example.com/form", "postParameters": {"a": 1}},
            ])

        handler.assert_not_called()

    async def test_order_checked_in_contains(self, http_tester):
        http_tester.exceptions_enabled = False
        report = await http_tester.assert_http_requests([
            {"url": "https://example.com/hello", "contains": ["world", "hello"]},
        ])
        assert report.errors == [
            "The following string was found on text, but does not follow the expected strict order: hello"
        ]

    async def test_non_success_status_fails_without_expected_code(self, http_tester):
        with pytest.raises(AggregateAssertionError, match="Could not load url: https://example.com/missing"):
            await http_tester.assert_http_requests(["https://example.com/missing"])

    async def test_non_success_status_allowed_with_expected_code(self, http_tester):
        report = await http_tester.assert_http_requests([
            {"url": "https://example.com/missing", "responseCode": 404, "is": "Not Found"},
        ])
        assert report.passed

    async def test_transport_error_reported(self, http_tester):
        http_tester.exceptions_enabled = False
        report = await http_tester.assert_http_requests(["https://unreachable.test/"])
        assert len(report.errors) == 1
        assert report.errors[0].startswith("Could not load url: https://unreachable.test/")

    async def test_post_parameters_sent_as_form(self, http_tester):
        report = await http_tester.assert_http_requests([
            {"url": "https://example.com/form", "postParameters": {"name": "ada"}, "is": "received name=ada"},
        ])
        assert report.passed

    async def test_same_url_with_different_post_parameters_allowed(self, http_tester):
        report = await http_tester.assert_http_requests([
            {"url": "https://example.com/form", "postParameters": {"name": "a"}},
            {"url": "https://example.com/form", "postParameters": {"name": "b"}},
        ])
        assert report.passed

    async def test_wildcards_replaced_in_expected_texts(self, http_tester):
        http_tester.wildcards["$word"] = "world"
        report = await http_tester.assert_http_requests([
            {"url": "https://$host/hello", "endWith": "$word"},
        ])
        assert report.passed


@pytest.mark.asyncio
class TestHttpTesterClient:
    async def test_fetch_text(self, http_tester):
        assert await http_tester.fetch_text("https://example.com/hello") == "hello world"

    async def test_fetch_text_transport_error(self, http_tester):
        with pytest.raises(TransportError, match="Could not load url"):
            await http_tester.fetch_text("https://unreachable.test/")

    async def test_injected_client_not_closed(self, config):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        async with HttpTester(config, client=client) as tester:
            await tester.fetch_text("https://example.com/")
        assert not client.is_closed
        await client.aclose()

    async def test_owned_client_closed(self, config):
        tester = HttpTester(config)
        client = tester.client
        await tester.aclose()
        assert client.is_closed
