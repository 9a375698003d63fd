"""Tests for decode_response: success decoding and error classification."""

import pytest

from reqchain.decode import decode_response, read_error_body
from reqchain.errors import HttpError, ProtocolError, UnsupportedContentType
from reqchain.transport import TransportResponse


class TestSuccess:
    def test_json_body(self, transport_response):
        result = decode_response(transport_response(200, {"x": 1}))
        assert result.status_code == 200
        assert result.data == {"x": 1}

    def test_json_with_charset(self, transport_response):
        resp = transport_response(200, '{"x": 1}', content_type="application/json; charset=utf-8")
        assert decode_response(resp).data == {"x": 1}

    def test_text_body(self, transport_response):
        result = decode_response(transport_response(200, "hello", content_type="text/plain"))
        assert result.data == "hello"

    def test_html_is_text(self, transport_response):
        resp = transport_response(201, "<p>hi</p>", content_type="text/html")
        assert decode_response(resp).data == "<p>hi</p>"

    def test_missing_content_type_is_text(self, transport_response):
        result = decode_response(transport_response(200, "plain", content_type=None))
        assert result.data == "plain"

    def test_empty_json_body_is_none(self, transport_response):
        result = decode_response(transport_response(204, None))
        assert result.status_code == 204
        assert result.data is None

    def test_result_carries_status_text_and_url(self, transport_response):
        resp = transport_response(200, {}, reason="OK", url="http://api.test/x")
        result = decode_response(resp)
        assert result.status_text == "OK"
        assert result.url == "http://api.test/x"

    def test_unsupported_content_type(self, transport_response):
        resp = transport_response(200, "<x/>", content_type="application/xml")
        with pytest.raises(UnsupportedContentType) as exc_info:
            decode_response(resp)
        assert not isinstance(exc_info.value, HttpError)
        assert exc_info.value.kind == "protocol"
        assert "application/xml" in str(exc_info.value)

    def test_malformed_success_json(self, transport_response):
        resp = transport_response(200, "{not json")
        with pytest.raises(ProtocolError):
            decode_response(resp)


class TestHttpErrors:
    def test_json_error_body(self, transport_response):
        resp = transport_response(404, {"error": "not found"}, reason="Not Found")
        with pytest.raises(HttpError) as exc_info:
            decode_response(resp)
        err = exc_info.value
        assert err.status_code == 404
        assert err.raw_response_body == {"error": "not found"}
        assert err.status_text == "Not Found"
        assert err.kind == "http"

    def test_malformed_json_falls_back_to_text(self, transport_response):
        resp = transport_response(500, "Internal <b>oops</b>", reason="Server Error")
        with pytest.raises(HttpError) as exc_info:
            decode_response(resp)
        assert exc_info.value.status_code == 500
        assert exc_info.value.response == "Internal <b>oops</b>"

    def test_error_body_parsed_regardless_of_content_type(self, transport_response):
        resp = transport_response(422, '{"field": "name"}', content_type="text/plain")
        with pytest.raises(HttpError) as exc_info:
            decode_response(resp)
        assert exc_info.value.response == {"field": "name"}

    def test_unsupported_type_on_error_is_still_http_error(self, transport_response):
        resp = transport_response(503, "<busy/>", content_type="application/xml")
        with pytest.raises(HttpError):
            decode_response(resp)

    @pytest.mark.parametrize("status", [199, 300, 301, 400, 599])
    def test_outside_2xx_raises(self, transport_response, status):
        with pytest.raises(HttpError):
            decode_response(transport_response(status, {}))

    @pytest.mark.parametrize("status", [200, 250, 299])
    def test_inside_2xx_succeeds(self, transport_response, status):
        assert decode_response(transport_response(status, {})).status_code == status


class TestReadErrorBody:
    def test_body_can_be_read_twice(self, transport_response):
        resp = transport_response(500, "not json")
        assert read_error_body(resp) == "not json"
        assert resp.text() == "not json"

    def test_empty_body_is_empty_text(self, transport_response):
        assert read_error_body(transport_response(500, None)) == ""


class TestUnknownCharset:
    def test_error_response_still_classified(self):
        resp = TransportResponse(
            500,
            {"Content-Type": "text/plain; charset=bogus-x"},
            b"boom",
            reason="Server Error",
            encoding="bogus-x",
        )
        with pytest.raises(HttpError) as exc_info:
            decode_response(resp)
        assert exc_info.value.status_code == 500
        assert exc_info.value.response == "boom"

    def test_success_response_decodes_as_utf8(self):
        resp = TransportResponse(
            200,
            {"Content-Type": "text/plain; charset=bogus-x"},
            b"fine",
            encoding="bogus-x",
        )
        assert decode_response(resp).data == "fine"
