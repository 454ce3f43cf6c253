"""Tests for parsing and submitting the Google Drive virus scan warning page."""

import asyncio
from urllib.parse import parse_qsl, urlparse

import httpx
import pytest

from shared.clients.filehost.gdrive.FileHostClientGdrive import FileHostClientGdrive
from shared.clients.filehost.models.Interstitial import InterstitialForm
from tests.conftest import PDF_BYTES, html_response, pdf_response

WARNING_PAGE = """<!DOCTYPE html><html><head><title>Google Drive - Virus scan warning</title></head>
<body><div class="uc-main">
<p class="uc-warning-caption">Google Drive can't scan this file for viruses.</p>
<form id="download-form" action="https://drive.usercontent.google.com/download" method="get">
  <input type="submit" id="uc-download-link" class="goog-inline-block jfk-button" value="Download anyway"/>
  <input type="hidden" name="id" value="ID1">
  <input type="hidden" name="export" value="download">
  <input type="hidden" name="authuser" value="0">
  <input type="hidden" name="confirm" value="t">
  <input type="hidden" name="uuid" value="b3f1c2d4-0000-1111-2222-333344445555">
  <input type="hidden" name="at" value="APZUnTX&amp;token">
</form></div></body></html>"""

MINIMAL_PAGE = """<html><body>
<form id="download-form" action="https://drive.usercontent.google.com/download">
<input type="hidden" name="id" value="ID1"><input type="hidden" name="confirm" value="t">
</form></body></html>"""


@pytest.fixture
def gdrive(helper_config) -> FileHostClientGdrive:
    return FileHostClientGdrive(helper_config)


class TestParseInterstitial:
    def test_full_form(self, gdrive):
        form = gdrive.parse_interstitial(WARNING_PAGE)
        assert form.action == "https://drive.usercontent.google.com/download"
        assert form.id == "ID1"
        assert form.uuid == "b3f1c2d4-0000-1111-2222-333344445555"
        assert form.at == "APZUnTX&token"
        assert [name for name, _ in form.get_query_params()] == ["id", "export", "authuser", "confirm", "uuid", "at"]

    def test_minimal_form_query(self, gdrive):
        form = gdrive.parse_interstitial(MINIMAL_PAGE)
        assert form.get_followup_url() == "https://drive.usercontent.google.com/download?id=ID1&confirm=t"

    def test_unquoted_attributes(self, gdrive):
        page = (
            "<form id=download-form action=https://drive.usercontent.google.com/download method=get>"
            "<input type=hidden name=id value=ID1><input type=hidden name=confirm value=t></form>"
        )
        form = gdrive.parse_interstitial(page)
        assert form is not None
        assert form.get_followup_url() == "https://drive.usercontent.google.com/download?id=ID1&confirm=t"

    def test_missing_id(self, gdrive):
        page = '<form id="download-form" action="https://x/download"><input name="confirm" value="t"></form>'
        assert gdrive.parse_interstitial(page) is None

    def test_missing_action(self, gdrive):
        page = '<form id="download-form"><input name="id" value="ID1"></form>'
        assert gdrive.parse_interstitial(page) is None

    def test_no_form(self, gdrive):
        assert gdrive.parse_interstitial("<html><body>Quota exceeded</body></html>") is None
        assert gdrive.parse_interstitial("") is None

    def test_relative_action_resolved_against_page(self, gdrive):
        page = '<form id="download-form" action="/download"><input name="id" value="ID1"></form>'
        form = gdrive.parse_interstitial(page, page_url="https://drive.usercontent.google.com/uc?id=ID1")
        assert form.action == "https://drive.usercontent.google.com/download"

    def test_data_attributes_are_not_field_names(self, gdrive):
        page = '<form data-id="other" id="download-form" action="https://x/d"><input data-name="id" name="id" value="ID1"></form>'
        form = gdrive.parse_interstitial(page)
        assert form is not None
        assert form.id == "ID1"

    def test_followup_url_appends_to_existing_query(self):
        form = InterstitialForm(action="https://x/download?foo=1", id="ID1")
        assert form.get_followup_url() == "https://x/download?foo=1&id=ID1"


class TestResolveInterstitial:
    def _interstitial(self) -> httpx.Response:
        response = html_response(WARNING_PAGE)
        response.request = httpx.Request("GET", "https://drive.google.com/uc?export=download&id=ID1&confirm=t")
        return response

    def test_followup_returns_payload(self, gdrive):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return pdf_response()

        async def run():
            await gdrive.boot(transport=httpx.MockTransport(handler))
            try:
                return await gdrive.do_resolve_interstitial(self._interstitial())
            finally:
                await gdrive.close()

        assert asyncio.run(run()) == PDF_BYTES
        assert len(seen) == 1
        parsed = urlparse(str(seen[0].url))
        assert parsed.netloc == "drive.usercontent.google.com"
        assert dict(parse_qsl(parsed.query))["uuid"] == "b3f1c2d4-0000-1111-2222-333344445555"

    def test_followup_error_status(self, gdrive):
        async def run():
            await gdrive.boot(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
            try:
                return await gdrive.do_resolve_interstitial(self._interstitial())
            finally:
                await gdrive.close()

        assert asyncio.run(run()) is None

    def test_followup_network_error(self, gdrive):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async def run():
            await gdrive.boot(transport=httpx.MockTransport(handler))
            try:
                return await gdrive.do_resolve_interstitial(self._interstitial())
            finally:
                await gdrive.close()

        assert asyncio.run(run()) is None

    def test_unparseable_page_makes_no_request(self, gdrive):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return pdf_response()

        page = html_response("<html>nothing here</html>")
        page.request = httpx.Request("GET", "https://drive.google.com/uc?id=ID1")

        async def run():
            await gdrive.boot(transport=httpx.MockTransport(handler))
            try:
                return await gdrive.do_resolve_interstitial(page)
            finally:
                await gdrive.close()

        assert asyncio.run(run()) is None
        assert calls == []
