import json

import pytest

from services.errors import (
    BackendUnavailable,
    GeodictError,
    MissingInput,
    UnsupportedOption,
    check_callback,
    fail,
    make_json,
    render_error,
)


def test_fail_raises_requested_error_class():
    with pytest.raises(MissingInput) as excinfo:
        fail("nothing to do", "json", 500, "cb", MissingInput)
    err = excinfo.value
    assert (err.message, err.output_format, err.code, err.callback) == ("nothing to do", "json", 500, "cb")


def test_fail_defaults_to_class_status():
    with pytest.raises(BackendUnavailable) as excinfo:
        fail("down", "json", error_cls=BackendUnavailable)
    assert excinfo.value.code == 503


def test_xml_error_envelope():
    status, body, media_type = render_error(GeodictError('Unsupported documentType: "text/html"'))
    assert status == 500
    assert media_type == "application/xml"
    assert body == (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<error>Unsupported documentType: "text/html"</error>'
    )


def test_xml_error_message_is_escaped():
    _, body, _ = render_error(GeodictError("bad <input> & more"))
    assert "<error>bad &lt;input&gt; &amp; more</error>" in body


def test_json_error_keeps_status_without_callback():
    status, body, media_type = render_error(GeodictError("boom", "json", 500))
    assert status == 500
    assert media_type == "application/json"
    assert json.loads(body) == {"error": "boom"}


def test_jsonp_error_is_delivered_as_200():
    status, body, media_type = render_error(GeodictError("boom", "json", 503, "cb"))
    assert status == 200
    assert media_type == "application/javascript"
    assert body == 'cb({"error":"boom"});'


def test_callback_is_ignored_for_xml_errors():
    status, body, _ = render_error(GeodictError("boom", "xml", 500, "cb"))
    assert status == 500
    assert body.endswith("<error>boom</error>")


def test_unknown_format_falls_back_to_plain_text():
    status, body, media_type = render_error(GeodictError('Unsupported outputType: "csv"', "csv"))
    assert status == 500
    assert body == 'Unsupported outputType: "csv"'
    assert media_type == "text/plain"


def test_make_json_is_compact_and_keeps_order():
    assert make_json({"b": 1, "a": None}) == '{"b":1,"a":null}'
    assert make_json([1], "fn") == "fn([1]);"


@pytest.mark.parametrize("callback", ["cb", "jQuery.handlers.got_places", "$jsonp1", "", None])
def test_identifier_callbacks_are_accepted(callback):
    check_callback(callback)


@pytest.mark.parametrize("callback", ["alert(1)//", "cb;x", "<script>", "1cb", "cb\n"])
def test_other_callbacks_are_rejected_unwrapped(callback):
    with pytest.raises(UnsupportedOption) as excinfo:
        check_callback(callback)
    status, body, media_type = render_error(excinfo.value)
    assert status == 400
    assert media_type == "application/json"
    assert json.loads(body) == {"error": f'Unsupported callback: "{callback}"'}
