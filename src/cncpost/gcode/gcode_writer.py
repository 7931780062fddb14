"""Low-level G-code line formatting helpers."""

from __future__ import annotations

from typing import Optional


def fmt(value: float, decimals: int = 3) -> str:
    """Format a coordinate with a fixed number of decimals."""
    text = f"{value:.{decimals}f}"
    # Avoid "-0.000" for values that round to zero
    if float(text) == 0.0:
        text = f"{0.0:.{decimals}f}"
    return text


def num(value: float) -> str:
    """Render a rate or count as supplied: ``1000``, ``250.5``."""
    if isinstance(value, bool):
        raise TypeError("expected a number, got bool")
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def signed(value: float, decimals: int = 3) -> str:
    """Heidenhain coordinate style: explicit sign, fixed decimals."""
    text = fmt(value, decimals)
    return text if text.startswith("-") else f"+{text}"


def _with_comment(words: list[str], note: Optional[str]) -> str:
    line = " ".join(words)
    if note:
        line += f" ; {note}"
    return line


def rapid(
    x: Optional[float] = None,
    y: Optional[float] = None,
    z: Optional[float] = None,
    note: Optional[str] = None,
) -> str:
    """G0 rapid traverse."""
    parts = ["G0"]
    if x is not None:
        parts.append(f"X{fmt(x)}")
    if y is not None:
        parts.append(f"Y{fmt(y)}")
    if z is not None:
        parts.append(f"Z{fmt(z)}")
    return _with_comment(parts, note)


def linear(
    x: Optional[float] = None,
    y: Optional[float] = None,
    z: Optional[float] = None,
    f: Optional[float] = None,
    note: Optional[str] = None,
) -> str:
    """G1 linear interpolation."""
    parts = ["G1"]
    if x is not None:
        parts.append(f"X{fmt(x)}")
    if y is not None:
        parts.append(f"Y{fmt(y)}")
    if z is not None:
        parts.append(f"Z{fmt(z)}")
    if f is not None:
        parts.append(f"F{num(f)}")
    return _with_comment(parts, note)


def arc(
    code: str,
    x: float,
    y: float,
    z: Optional[float],
    i: float,
    j: float,
    f: Optional[float] = None,
    note: Optional[str] = None,
) -> str:
    """G2/G3 circular interpolation with centre offsets I/J."""
    parts = [code, f"X{fmt(x)}", f"Y{fmt(y)}"]
    if z is not None:
        parts.append(f"Z{fmt(z)}")
    parts.append(f"I{fmt(i)}")
    parts.append(f"J{fmt(j)}")
    if f is not None:
        parts.append(f"F{num(f)}")
    return _with_comment(parts, note)


def command(code: str, note: Optional[str] = None) -> str:
    """A bare modal/M-code line such as ``G90`` or ``M3 S12000``."""
    return _with_comment([code], note)


def comment(text: str) -> str:
    """Semicolon line comment."""
    return f"; {text}" if text else ";"
