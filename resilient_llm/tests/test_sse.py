"""Tests for event-stream line framing."""

from resilient_llm.streaming import DONE_SENTINEL, RecordKind, SSEDecoder, SSERecord, parse_line


class TestParseLine:
    """Tests for single-line classification."""

    def test_data_line(self):
        assert parse_line('data: {"a": 1}') == SSERecord(RecordKind.DATA, '{"a": 1}')

    def test_done_sentinel(self):
        assert parse_line(f"data: {DONE_SENTINEL}") == SSERecord(RecordKind.DONE)

    def test_comment_line(self):
        record = parse_line(": OPENROUTER PROCESSING")
        assert record.kind is RecordKind.COMMENT
        assert record.data == "OPENROUTER PROCESSING"

    def test_blank_lines_ignored(self):
        assert parse_line("") is None
        assert parse_line("   ") is None
        assert parse_line("\r") is None

    def test_other_fields_ignored(self):
        assert parse_line("event: message") is None
        assert parse_line("id: 42") is None

    def test_carriage_return_stripped(self):
        assert parse_line('data: {"a": 1}\r') == SSERecord(RecordKind.DATA, '{"a": 1}')


class TestSSEDecoder:
    """Tests for incremental decoding across chunk boundaries."""

    def test_complete_lines_in_one_chunk(self):
        decoder = SSEDecoder()
        records = decoder.feed(b'data: {"a": 1}\n\ndata: {"b": 2}\n\n')

        assert [r.data for r in records] == ['{"a": 1}', '{"b": 2}']
        assert decoder.buffer == ""

    def test_partial_line_buffered(self):
        decoder = SSEDecoder()

        assert decoder.feed(b'data: {"a":') == []
        assert decoder.buffer == 'data: {"a":'

        records = decoder.feed(b" 1}\n")
        assert records == [SSERecord(RecordKind.DATA, '{"a": 1}')]
        assert decoder.buffer == ""

    def test_split_inside_prefix(self):
        decoder = SSEDecoder()

        assert decoder.feed(b"da") == []
        assert decoder.feed(b"ta") == []
        records = decoder.feed(b': {"x": true}\n')

        assert records == [SSERecord(RecordKind.DATA, '{"x": true}')]

    def test_split_inside_multibyte_character(self):
        decoder = SSEDecoder()
        data = 'data: {"c": "café"}\n'.encode("utf-8")
        cut = data.index("é".encode("utf-8")) + 1

        assert decoder.feed(data[:cut]) == []
        records = decoder.feed(data[cut:])

        assert records[0].data == '{"c": "café"}'

    def test_crlf_line_endings(self):
        decoder = SSEDecoder()
        records = decoder.feed(b'data: {"a": 1}\r\n\r\ndata: [DONE]\r\n')

        assert [r.kind for r in records] == [RecordKind.DATA, RecordKind.DONE]

    def test_text_chunks_accepted(self):
        decoder = SSEDecoder()
        assert decoder.feed('data: {"a": 1}\n')[0].kind is RecordKind.DATA

    def test_flush_returns_unterminated_line(self):
        decoder = SSEDecoder()
        decoder.feed(b'data: {"tail": 1}')

        assert decoder.flush() == [SSERecord(RecordKind.DATA, '{"tail": 1}')]
        assert decoder.buffer == ""
        assert decoder.flush() == []
