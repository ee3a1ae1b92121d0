import io

from pixview.status import StatusReporter


def make(total=100):
    stream = io.StringIO()
    return StatusReporter(total, stream), stream


def test_first_update_prints_prefix():
    reporter, stream = make()
    reporter.update(".")
    assert stream.getvalue() == "[  0%] ."


def test_group_of_ten_separated_by_space():
    reporter, stream = make()
    for _ in range(11):
        reporter.update(".")
    assert stream.getvalue() == "[  0%] " + "." * 10 + " ."


def test_fifty_prints_summary_line():
    reporter, stream = make(100)
    for _ in range(51):
        reporter.update(".")
    out = stream.getvalue()
    assert "   50/100 (100)\n[ 50%] ." in out
    assert out.endswith(".")


def test_finish_writes_newline_and_resets():
    reporter, stream = make()
    reporter.update(".")
    reporter.finish()
    reporter.update("x")
    assert stream.getvalue() == "[  0%] .\n[  0%] x"


def test_empty_char_finishes():
    reporter, stream = make()
    reporter.update(".")
    reporter.update("")
    assert stream.getvalue().endswith("\n")


def test_mark_error_pads_and_skips_group_space():
    reporter, stream = make()
    for _ in range(10):
        reporter.update(".")
    before = stream.getvalue()
    reporter.mark_error()
    reporter.update("s")
    added = stream.getvalue()[len(before):]
    assert added.strip() == "s"
    assert added.startswith(" ")
    assert len(added) == 1 + (10 + 1 + 7)


def test_callable_total_is_read_live():
    sizes = [100]
    stream = io.StringIO()
    reporter = StatusReporter(lambda: sizes[0], stream)
    reporter.update(".")
    sizes[0] = 80
    for _ in range(50):
        reporter.update(".")
    assert "(80)" in stream.getvalue()
    assert "/100 " in stream.getvalue()