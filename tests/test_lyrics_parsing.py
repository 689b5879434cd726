import dataclasses

import pytest

from lyrics_box.lrc.model import LyricLine
from lyrics_box.lrc.parse import parse_generated, parse_lrc, parse_lrc_with_stats


def test_parse_single_tag():
    lines = parse_lrc("[01:23.45]  hello world  \n")
    assert len(lines) == 1
    assert lines[0].time == pytest.approx(83.45)
    assert lines[0].text == "hello world"
    assert lines[0].translation is None
    assert lines[0].original_time_tag == "[01:23.45]"


def test_parse_three_digit_fraction():
    lines = parse_lrc("[00:02.005]x\n[00:03.50]y\n")
    assert [ln.time for ln in lines] == [pytest.approx(2.005), pytest.approx(3.5)]


def test_parse_multiple_timestamps():
    lines = parse_lrc("[00:01.00][00:05.00]same text\n")
    assert [ln.time for ln in lines] == [1.0, 5.0]
    assert [ln.text for ln in lines] == ["same text", "same text"]
    assert [ln.original_time_tag for ln in lines] == ["[00:01.00]", "[00:05.00]"]


def test_same_timestamp_becomes_translation():
    lines = parse_lrc("[00:10.00]Hello\n[00:11.00]World\n[00:10.00]Bonjour\n")
    assert lines == (
        LyricLine(time=10.0, text="Hello", translation="Bonjour", original_time_tag="[00:10.00]"),
        LyricLine(time=11.0, text="World", translation=None, original_time_tag="[00:11.00]"),
    )


def test_third_record_at_same_time_is_dropped():
    lines, stats = parse_lrc_with_stats("[00:10.00]Hello\n[00:10.00]Bonjour\n[00:10.00]Hola\n")
    assert len(lines) == 1
    assert lines[0].text == "Hello"
    assert lines[0].translation == "Bonjour"
    assert stats.translations_merged == 1
    assert stats.records_dropped == 1


def test_translations_for_repeated_line():
    text = "[00:01.00][00:05.00]Hi\n[00:01.00]Salut\n[00:05.00]Salut encore\n"
    lines = parse_lrc(text)
    assert [(ln.time, ln.text, ln.translation) for ln in lines] == [
        (1.0, "Hi", "Salut"),
        (5.0, "Hi", "Salut encore"),
    ]


def test_equal_times_with_different_precision_merge():
    lines = parse_lrc("[00:01.50]a\n[00:01.500]b\n")
    assert len(lines) == 1
    assert lines[0].translation == "b"


def test_sorted_even_when_source_is_not():
    lines = parse_lrc("[00:30.00]C\n[00:05.00]B\n[00:01.00]A\n")
    assert [ln.text for ln in lines] == ["A", "B", "C"]
    assert [ln.time for ln in lines] == sorted(ln.time for ln in lines)


@pytest.mark.parametrize(
    "line",
    [
        "Album: Test",
        "[ar:Some Artist]",
        "[ti:Some Title]",
        "[1:23.45]one digit minute",
        "[01:23]no fraction",
        "[01:23.4]one digit fraction",
        "[01:23.4567]four digit fraction",
        "intro [00:01.00] tag not at start",
        "",
        "   ",
    ],
)
def test_lines_without_leading_tag_are_ignored(line):
    assert parse_lrc(line + "\n") == ()


def test_empty_input():
    assert parse_lrc("") == ()


def test_whitespace_only_text_is_empty_line():
    lines = parse_lrc("[00:03.00]   \n")
    assert len(lines) == 1
    assert lines[0].text == ""


def test_out_of_range_seconds_are_accepted():
    lines = parse_lrc("[00:75.00]late\n[99:59.99]very late\n")
    assert lines[0].time == 75.0
    assert lines[1].time == pytest.approx(99 * 60 + 59.99)


def test_crlf_line_endings():
    lines = parse_lrc("[00:01.00]A\r\n[00:02.00]B\r\n")
    assert [ln.text for ln in lines] == ["A", "B"]


@pytest.mark.parametrize("sep", ["\x0b", "\x0c", "\x1c", "\x1e", "\x85", "\u2028", "\u2029", "\r"])
def test_only_newlines_split_lines(sep):
    lines, stats = parse_lrc_with_stats(f"[00:01.00]a b\n[00:02.00]c{sep}d\n")
    assert [ln.text for ln in lines] == ["a b", f"c{sep}d"]
    assert stats.lines_total == 2
    assert stats.lines_ignored == 0


def test_missing_final_newline():
    lines, stats = parse_lrc_with_stats("[00:01.00]a\r\n[00:02.00]b")
    assert [ln.text for ln in lines] == ["a", "b"]
    assert stats.lines_total == 2


def test_byte_order_mark_is_ignored():
    lines = parse_lrc("\ufeff[00:01.00]first\n[00:02.00]second\n")
    assert [ln.text for ln in lines] == ["first", "second"]
    assert lines[0].original_time_tag == "[00:01.00]"


def test_byte_order_mark_kept_in_raw_text():
    raw = "\ufeff[00:01.00]first\r\n"
    lyrics = parse_generated(raw)
    assert lyrics.raw_lrc == raw
    assert [ln.text for ln in lyrics.lines] == ["first"]


def test_leading_whitespace_before_tag():
    lines = parse_lrc("  [00:01.00]indented\n")
    assert [ln.text for ln in lines] == ["indented"]


def test_text_keeps_inner_brackets():
    lines = parse_lrc("[00:01.00]hey [00:02.00] there\n")
    assert len(lines) == 1
    assert lines[0].text == "hey [00:02.00] there"


def test_mixed_garbage_is_skipped():
    text = "[ti:Song]\nrandom words\n[00:01.00]first\n[bad]\n[00:02.00]second\n"
    lines, stats = parse_lrc_with_stats(text)
    assert [ln.text for ln in lines] == ["first", "second"]
    assert stats.lines_total == 5
    assert stats.lines_with_timestamps == 2
    assert stats.lines_ignored == 3
    assert stats.records_total == 2
    assert stats.lines_out == 2


def test_parse_is_idempotent():
    text = "[00:02.00]b\n[00:01.00]a\n[00:01.00]translated a\n"
    assert parse_lrc(text) == parse_lrc(text)


def test_result_is_immutable():
    lines = parse_lrc("[00:01.00]a\n")
    assert isinstance(lines, tuple)
    with pytest.raises(dataclasses.FrozenInstanceError):
        lines[0].time = 2.0  # type: ignore[misc]


def test_parse_generated_keeps_raw_text():
    raw = "[ti:Song]\n[00:01.00]a\r\n[00:01.00]b\n"
    lyrics = parse_generated(raw)
    assert lyrics.raw_lrc == raw
    assert len(lyrics.lines) == 1
    assert lyrics.has_translation
