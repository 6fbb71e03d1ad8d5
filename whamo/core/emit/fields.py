from __future__ import annotations

from typing import Union

# Card layout: keyword left-justified, value right-justified, fixed columns.
LINE_WIDTH = 80
KEY_WIDTH = 10
VALUE_WIDTH = 14
ID_WIDTH = 6
NUMBER_WIDTH = 5

# Decimals per keyword; every real field of a keyword is written alike so columns line up.
DECIMALS = {
    "ELEV": 3,
    "ELTOP": 3,
    "ELBOTTOM": 3,
    "LENG": 3,
    "DIAM": 4,
    "CELE": 2,
    "CELERITY": 2,
    "FRIC": 5,
    "FRICTION": 5,
    "CPLUS": 4,
    "CMINUS": 4,
    "DTCOMP": 4,
    "DTOUT": 4,
    "TMAX": 3,
}


class FieldOverflow(ValueError):
    """Value does not fit its fixed-width column."""


def fmt_real(value: float, decimals: int) -> str:
    """
    Fixed-point text, independent of locale, never in exponent notation.
    A value that rounds to zero is written without a sign.
    """
    text = format(float(value), f".{decimals}f")
    if float(text) == 0.0:
        text = format(0.0, f".{decimals}f")
    return text


def fmt_value(keyword: str, value: Union[int, float]) -> str:
    if isinstance(value, int):
        return str(value)
    return fmt_real(value, DECIMALS[keyword])


def field_line(keyword: str, value: Union[int, float]) -> str:
    text = fmt_value(keyword, value)
    if len(text) > VALUE_WIDTH:
        raise FieldOverflow(f"{keyword} value {text} does not fit in {VALUE_WIDTH} columns")
    return f" {keyword:<{KEY_WIDTH}}{text:>{VALUE_WIDTH}}"


def node_line(number: int, elevation: float) -> str:
    text = fmt_real(elevation, DECIMALS["ELEV"])
    if len(text) > VALUE_WIDTH:
        raise FieldOverflow(f"ELEV value {text} does not fit in {VALUE_WIDTH} columns")
    return f"NODE {number:>{NUMBER_WIDTH}} ELEV {text:>{VALUE_WIDTH}}"


def elem_at(elem_id: str, node_number: int) -> str:
    return f" ELEM {elem_id:<{ID_WIDTH}} AT   {node_number:>{NUMBER_WIDTH}}"


def elem_link(elem_id: str, upstream: int, downstream: int) -> str:
    return f" ELEM {elem_id:<{ID_WIDTH}} LINK {upstream:>{NUMBER_WIDTH}} {downstream:>{NUMBER_WIDTH}}"


def comment(text: str) -> str:
    """Single comment card; control characters become spaces, long text is cut."""
    clean = "".join(ch if ch.isprintable() else " " for ch in str(text)).strip()
    return f"C  {clean}"[:LINE_WIDTH].rstrip()
