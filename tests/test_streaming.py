"""
Tests for frame parsing and delta accumulation of the streaming wire format.
"""

from conduit.streaming import DeltaAccumulator, FrameType, StreamFrame, parse_frame


def delta_line(text: str) -> str:
    return 'data: {"type":"content_block_delta","delta":{"text":"%s"}}' % text


# ---------------------------------------------------------------------------
# Frame parsing
# ---------------------------------------------------------------------------


class TestParseFrame:
    def test_delta_frame(self):
        frame = parse_frame(delta_line("Hi"))
        assert frame is not None
        assert frame.is_delta
        assert frame.type == FrameType.CONTENT_BLOCK_DELTA
        assert frame.delta_text == "Hi"

    def test_prefix_without_space(self):
        frame = parse_frame('data:{"type":"content_block_delta","delta":{"text":"x"}}')
        assert frame.delta_text == "x"

    def test_done_sentinel(self):
        frame = parse_frame("data: [DONE]")
        assert frame.done

    def test_non_data_lines_are_skipped(self):
        assert parse_frame("") is None
        assert parse_frame("event: content_block_delta") is None
        assert parse_frame(": keep-alive") is None

    def test_invalid_json_is_skipped(self):
        assert parse_frame("data: {not json") is None

    def test_non_object_payload_is_skipped(self):
        assert parse_frame("data: [1, 2, 3]") is None

    def test_other_frame_types_are_not_deltas(self):
        frame = parse_frame('data: {"type":"message_start","message":{}}')
        assert frame is not None
        assert not frame.is_delta

    def test_missing_delta_text_is_empty(self):
        frame = StreamFrame.from_raw('{"type":"content_block_delta","delta":{}}')
        assert frame.delta_text == ""


# ---------------------------------------------------------------------------
# Accumulation
# ---------------------------------------------------------------------------


class TestDeltaAccumulator:
    def test_assembles_text_and_reports_partials(self):
        seen = []
        acc = DeltaAccumulator(seen.append)
        for line in [delta_line("Hi"), "", delta_line(" there"), "data: [DONE]"]:
            if not acc.feed_line(line):
                break
        assert seen == ["Hi", "Hi there"]
        assert acc.text == "Hi there"
        assert acc.done

    def test_partials_are_prefix_extensions(self):
        seen = []
        acc = DeltaAccumulator(seen.append)
        for piece in ["a", "bc", "", "def"]:
            acc.feed_line(delta_line(piece))
        for previous, current in zip(seen, seen[1:]):
            assert current.startswith(previous)
            assert len(current) >= len(previous)

    def test_lines_after_done_are_ignored(self):
        acc = DeltaAccumulator()
        assert acc.feed_line(delta_line("x"))
        assert not acc.feed_line("data: [DONE]")
        assert not acc.feed_line(delta_line("y"))
        assert acc.text == "x"

    def test_counts_skipped_lines(self):
        acc = DeltaAccumulator()
        acc.feed_line("data: garbage")
        acc.feed_line("event: ping")
        acc.feed_line("")
        assert acc.skipped == 2
        assert acc.frames == 0

    def test_failing_callback_does_not_break_stream(self):
        def explode(text):
            raise RuntimeError("render failed")

        acc = DeltaAccumulator(explode)
        acc.feed_line(delta_line("a"))
        acc.feed_line(delta_line("b"))
        assert acc.text == "ab"

    def test_separate_accumulators_do_not_share_text(self):
        first = DeltaAccumulator()
        second = DeltaAccumulator()
        first.feed_line(delta_line("one"))
        second.feed_line(delta_line("two"))
        assert first.text == "one"
        assert second.text == "two"
