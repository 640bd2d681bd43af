import io

import pytest

from sysyc.runtime import SysYRuntime


def make(text="", clock=None):
    out, err = io.StringIO(), io.StringIO()
    rt = SysYRuntime(io.StringIO(text), out, err, clock)
    return rt, out, err


def ticking(*values):
    ticks = iter(values)
    return lambda: next(ticks)


def test_getint_reads_signed_numbers():
    rt, _, _ = make("  -42\n7")
    assert rt.getint() == -42
    assert rt.getint() == 7


def test_getch_does_not_skip_whitespace():
    rt, _, _ = make("12 x")
    assert rt.getint() == 12
    assert rt.getch() == ord(" ")
    assert rt.getch() == ord("x")


def test_getch_at_end_raises():
    rt, _, _ = make("")
    with pytest.raises(EOFError):
        rt.getch()


def test_getint_at_end_raises():
    rt, _, _ = make("   ")
    with pytest.raises(EOFError):
        rt.getint()


def test_getint_bad_input_raises():
    rt, _, _ = make("abc")
    with pytest.raises(ValueError):
        rt.getint()


def test_getint_stops_at_non_digit():
    rt, _, _ = make("5-3")
    assert rt.getint() == 5
    assert rt.getint() == -3


def test_getfloat_hex_and_decimal():
    rt, _, _ = make("0x1.8p+0 2.5")
    assert rt.getfloat() == 1.5
    assert rt.getfloat() == 2.5


def test_getarray_fills_list():
    rt, _, _ = make("3 4 5 6 9")
    a = [0] * 5
    assert rt.getarray(a) == 3
    assert a == [4, 5, 6, 0, 0]
    assert rt.getint() == 9


def test_getfarray_fills_list():
    rt, _, _ = make("2 0x1p+1 0.5")
    a = []
    assert rt.getfarray(a) == 2
    assert a == [2.0, 0.5]


def test_putint_and_putch():
    rt, out, _ = make()
    rt.putint(-17)
    rt.putch(ord("\n"))
    assert out.getvalue() == "-17\n"


def test_putarray_format():
    rt, out, _ = make()
    rt.putarray(3, [1, 2, 3, 4])
    assert out.getvalue() == "3: 1 2 3\n"


def test_putfloat_uses_hex_notation():
    rt, out, _ = make()
    rt.putfloat(1.5)
    assert out.getvalue() == "0x1.8p+0"


@pytest.mark.parametrize("value", [0.0, 1.0, -3.25, 1024.0, 0.1])
def test_putfloat_getfloat_round_trip(value):
    rt, out, _ = make()
    rt.putfloat(value)
    reader, _, _ = make(out.getvalue())
    written = reader.getfloat()
    rt2, out2, _ = make()
    rt2.putfloat(written)
    assert out2.getvalue() == out.getvalue()


def test_putfarray_round_trip():
    rt, out, _ = make()
    rt.putfarray(2, [0.5, -2.0])
    reader, _, _ = make(out.getvalue().replace(":", ""))
    a = []
    assert reader.getfarray(a) == 2
    assert a == [0.5, -2.0]


def test_putf_formats_arguments():
    rt, out, _ = make()
    rt.putf("%d-%s %a %5d%%\n", 3, "x", 1.0, 42)
    assert out.getvalue() == "3-x 0x1p+0    42%\n"


def test_putf_missing_argument_raises():
    rt, _, _ = make()
    with pytest.raises(TypeError):
        rt.putf("%d %d", 1)


def test_timer_records_interval():
    rt, _, err = make(clock=ticking(100, 105))
    rt.starttime(7)
    rt.stoptime(9)
    (record,) = rt.timers
    assert (record.start_line, record.stop_line) == (7, 9)
    assert record.microseconds == 5
    rt.report()
    lines = err.getvalue().splitlines()
    assert lines[0] == "Timer@0007-0009: 0H-0M-0S-5us"
    assert lines[1] == "TOTAL: 0H-0M-0S-5us"


def test_timer_split_is_consistent():
    elapsed = 9_876_543_210
    rt, _, _ = make(clock=ticking(0, elapsed))
    rt.starttime(1)
    rt.stoptime(2)
    t = rt.timers[0]
    assert 0 <= t.microseconds < 1_000_000
    assert 0 <= t.seconds < 60 and 0 <= t.minutes < 60
    total = ((t.hours * 60 + t.minutes) * 60 + t.seconds) * 1_000_000 + t.microseconds
    assert total == elapsed


def test_report_without_timers_prints_total():
    rt, _, err = make()
    rt.report()
    assert err.getvalue() == "TOTAL: 0H-0M-0S-0us\n"


def test_stoptime_without_start_raises():
    rt, _, _ = make(clock=ticking(1))
    with pytest.raises(RuntimeError):
        rt.stoptime(3)