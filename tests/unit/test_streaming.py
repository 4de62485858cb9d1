"""Server-sent event decoder tests."""

from loomflow.client.streaming import SSEDecoder


def test_decoder_buffers_partial_lines():
    decoder = SSEDecoder()
    assert decoder.feed('data: {"a"') == []
    assert decoder.feed(': 1}\n') == ['{"a": 1}']
    assert decoder.feed("\n") == []


def test_decoder_ignores_comments_and_other_fields():
    decoder = SSEDecoder()
    payloads = decoder.feed(": keep-alive\nevent: message\ndata: one\n\ndata:two\n")
    assert payloads == ["one", "two"]


def test_done_sentinel_is_consumed_and_stops_decoding():
    decoder = SSEDecoder()
    assert decoder.feed("data: first\ndata: [DONE]\ndata: late\n") == ["first"]
    assert decoder.done


def test_flush_returns_unterminated_payload():
    decoder = SSEDecoder()
    assert decoder.feed("data: tail") == []
    assert decoder.flush() == ["tail"]
    assert decoder.flush() == []


def test_crlf_line_endings():
    decoder = SSEDecoder()
    assert decoder.feed("data: x\r\n\r\ndata: y\r\n") == ["x", "y"]
