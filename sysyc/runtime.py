"""The SysY runtime library: console input and output, and timers."""

from __future__ import annotations

import math
import re
import struct
import sys
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterator, MutableSequence, Sequence, TextIO

_MAX_TIMERS = 1024

_INT_CHARS = frozenset("+-0123456789")
_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_CHARS = frozenset("+-.0123456789abcdefABCDEFxXpP")
_FLOAT_RE = re.compile(
    r"[+-]?(?:0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?"
    r"|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)
_SPEC_RE = re.compile(
    r"%([-+ #0]*)(\*|\d+)?(?:\.(\*|\d*))?(hh|h|ll|l|L|q|j|z|t)?([diouxXeEfFgGaAcs%])"
)


def _to_i32(value: int) -> int:
    value = int(value) & 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _to_f32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", float(value)))[0]


def _hex_float(value: float) -> str:
    """Format a float the way C's %a does."""
    if math.isnan(value):
        return "-nan" if math.copysign(1.0, value) < 0 else "nan"
    if math.isinf(value):
        return "-inf" if value < 0 else "inf"
    mantissa, exponent = value.hex().split("p")
    if "." in mantissa:
        whole, frac = mantissa.split(".")
        frac = frac.rstrip("0")
        mantissa = f"{whole}.{frac}" if frac else whole
    return f"{mantissa}p{exponent}"


def _c_format(fmt: str, args: Sequence[Any]) -> str:
    """Expand printf-style conversions, including %a."""
    remaining: Iterator[Any] = iter(args)

    def take() -> Any:
        try:
            return next(remaining)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    def convert(match: re.Match[str]) -> str:
        flags, width, precision, _, conv = match.groups()
        if conv == "%":
            return "%"
        if width == "*":
            width = str(take())
        if precision == "*":
            precision = str(take())
        value = take()
        if conv in "aA":
            text = _hex_float(float(value))
            if conv == "A":
                text = text.upper()
            if not text.startswith("-"):
                if "+" in flags:
                    text = "+" + text
                elif " " in flags:
                    text = " " + text
            size = int(width or 0)
            return text.ljust(size) if "-" in flags else text.rjust(size)
        if conv == "u":
            conv = "d"
            value = int(value) & 0xFFFFFFFF
        elif conv in "oxX":
            value = int(value) & 0xFFFFFFFF
        elif conv == "c" and isinstance(value, int):
            value = chr(value & 0xFF)
        spec = "%" + flags + (width or "")
        if precision is not None:
            spec += "." + precision
        return (spec + conv) % value

    return _SPEC_RE.sub(convert, fmt)


@dataclass
class TimerRecord:
    """One measured interval, split into hours, minutes, seconds and microseconds."""

    start_line: int
    stop_line: int
    hours: int
    minutes: int
    seconds: int
    microseconds: int


class SysYRuntime:
    """Input, output and timing functions available to SysY programs."""

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self._clock = clock if clock is not None else (lambda: time.time_ns() // 1000)
        self._pushback: list[str] = []
        self._start: int | None = None
        self._start_line = 0
        self.timers: list[TimerRecord] = []

    def _getc(self) -> str:
        if self._pushback:
            return self._pushback.pop()
        return self.stdin.read(1)

    def _ungetc(self, text: str) -> None:
        self._pushback.extend(reversed(text))

    def _skip_whitespace(self) -> None:
        ch = self._getc()
        while ch and ch.isspace():
            ch = self._getc()
        if ch:
            self._ungetc(ch)

    def _scan(self, chars: frozenset[str], pattern: re.Pattern[str]) -> str:
        self._skip_whitespace()
        buffer = []
        ch = self._getc()
        while ch and ch in chars:
            buffer.append(ch)
            ch = self._getc()
        if ch:
            self._ungetc(ch)
        text = "".join(buffer)
        match = pattern.match(text)
        if match is None:
            self._ungetc(text)
            if not text and not ch:
                raise EOFError("end of input")
            raise ValueError(f"no number in input at {text + ch!r}")
        token = match.group(0)
        self._ungetc(text[len(token):])
        return token

    def getint(self) -> int:
        """Read a decimal integer."""
        return _to_i32(int(self._scan(_INT_CHARS, _INT_RE)))

    def getch(self) -> int:
        """Read one character and return its code."""
        ch = self._getc()
        if not ch:
            raise EOFError("end of input")
        return ord(ch)

    def getfloat(self) -> float:
        """Read a decimal or hexadecimal float, rounded to single precision."""
        token = self._scan(_FLOAT_CHARS, _FLOAT_RE)
        value = float.fromhex(token) if "x" in token.lower() else float(token)
        return _to_f32(value)

    def getarray(self, a: MutableSequence[int]) -> int:
        """Read a count and that many integers into a; return the count."""
        n = self.getint()
        a[:n] = [self.getint() for _ in range(n)]
        return n

    def getfarray(self, a: MutableSequence[float]) -> int:
        """Read a count and that many floats into a; return the count."""
        n = self.getint()
        a[:n] = [self.getfloat() for _ in range(n)]
        return n

    def putint(self, a: int) -> None:
        self.stdout.write(str(_to_i32(a)))

    def putch(self, a: int) -> None:
        self.stdout.write(chr(a & 0xFF))

    def putarray(self, n: int, a: Sequence[int]) -> None:
        items = "".join(f" {_to_i32(x)}" for x in a[:n])
        self.stdout.write(f"{n}:{items}\n")

    def putfloat(self, a: float) -> None:
        self.stdout.write(_hex_float(_to_f32(a)))

    def putfarray(self, n: int, a: Sequence[float]) -> None:
        items = "".join(f" {_hex_float(_to_f32(x))}" for x in a[:n])
        self.stdout.write(f"{n}:{items}\n")

    def putf(self, fmt: str, *args: Any) -> None:
        """Write a printf-style formatted string."""
        self.stdout.write(_c_format(fmt, args))

    def starttime(self, lineno: int) -> None:
        """Start a timer begun at the given source line."""
        self._start_line = lineno
        self._start = self._clock()

    def stoptime(self, lineno: int) -> None:
        """Stop the running timer and record its interval."""
        end = self._clock()
        if self._start is None:
            raise RuntimeError("stoptime called before starttime")
        if len(self.timers) >= _MAX_TIMERS - 1:
            raise IndexError("too many timers")
        seconds, microseconds = divmod(end - self._start, 1_000_000)
        minutes, seconds = divmod(seconds, 60)
        hours, minutes = divmod(minutes, 60)
        self.timers.append(
            TimerRecord(self._start_line, lineno, hours, minutes, seconds, microseconds)
        )

    def report(self) -> None:
        """Write every timer and the total to the error stream."""
        hours = minutes = seconds = microseconds = 0
        for t in self.timers:
            self.stderr.write(
                f"Timer@{t.start_line:04d}-{t.stop_line:04d}: "
                f"{t.hours}H-{t.minutes}M-{t.seconds}S-{t.microseconds}us\n"
            )
            microseconds += t.microseconds
            seconds += t.seconds
            microseconds %= 1_000_000
            minutes += t.minutes
            seconds %= 60
            hours += t.hours
            minutes %= 60
        self.stderr.write(f"TOTAL: {hours}H-{minutes}M-{seconds}S-{microseconds}us\n")