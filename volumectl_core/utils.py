# coding=utf-8
import logging
import math
import os
import re
import sys
from typing import Union
from urllib.parse import quote

from prettytable import PrettyTable

from volumectl_core import constants


def get_env_var(name, default=None):
    return os.environ.get(name, default)


def get_env_flag(name):
    """Return True when the variable holds a non-zero integer."""
    value = os.environ.get(name)
    if not value:
        return False
    try:
        return int(value.strip()) != 0
    except ValueError:
        return False


def get_logger(name="", level=None):
    # first configure a root logger
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)
    logg = logging.getLogger()

    log_level = os.getenv(constants.ENV_LOG_LEVEL)
    log_level = log_level.upper() if log_level else (level or constants.LOG_LEVEL)

    try:
        logg.setLevel(log_level)
    except ValueError as e:
        logg.warning(f'Invalid {constants.ENV_LOG_LEVEL}: {str(e)}')
        logg.setLevel(level or constants.LOG_LEVEL)

    if not logg.hasHandlers():
        # stdout carries command output
        logger_handler = logging.StreamHandler(stream=sys.stderr)
        logger_handler.setFormatter(logging.Formatter('%(asctime)s: %(levelname)s: %(message)s'))
        logg.addHandler(logger_handler)

    if name:
        logg = logging.getLogger(f"root.{name}")
        logg.propagate = True

    return logg


def print_table(data: list, title=None, fields=None):
    if data:
        x = PrettyTable(field_names=fields or list(data[0].keys()), max_width=70, title=title)
        x.align = 'l'
        for row_data in data:
            row = []
            for key in x.field_names:
                row.append(row_data.get(key, ""))
            x.add_row(row)
        return x.__str__()


def print_fields(data: dict, title=None):
    """Render a mapping as a two-column field/value table."""
    if data:
        x = PrettyTable(field_names=["Field", "Value"], max_width=70, title=title)
        x.align = 'l'
        for key, value in data.items():
            x.add_row([key, value])
        return x.__str__()


_humanbytes_parameter = {
    'si': (10, 3, math.log10, ''),
    'iec': (2, 10, math.log2, 'i'),
    'jedec': (2, 10, math.log2, ''),
}


def humanbytes(size: int, mode: str = 'iec') -> str:
    """Return the given bytes as a human friendly including the appropriate unit."""
    if not size or size < 0:
        return '0 B'

    base, exponent, log, infix = _humanbytes_parameter[mode]

    prefixes = ['', 'k' if mode == 'si' else 'K', 'M', 'G', 'T', 'P', 'E', 'Z']
    exponent_multiplier = min(int(log(size) / exponent), len(prefixes) - 1)

    size_in_unit = size / (base ** (exponent * exponent_multiplier))
    prefix = prefixes[exponent_multiplier]

    return f"{size_in_unit:.1f} {prefix}{infix if prefix else ''}B"


def _parse_unit(unit: str, mode: str = 'si/iec', strict: bool = True) -> tuple[int, int]:
    """Parse the given unit, returning the associated base and exponent

    Mode can be either 'si/iec' to parse decimal (SI) and binary (IEC) units, or
    'jedec' for binary only units. If `strict`, parsing will be case-sensitive and
    expect the 'B' suffix.
    """
    regexes = {
        'si/iec': r'^((?P<prefix>[kKMGTPEZ])(?P<binary>i)?)?' + ('B$' if strict else 'B?$'),
        'jedec': r'^(?P<prefix>[KMGTPEZ])?' + ('B$' if strict else 'B?$'),
    }

    m = re.match(regexes[mode], unit, flags=re.IGNORECASE if not strict else 0)
    if m is None:
        raise ValueError("Invalid unit")

    binary = (mode == 'jedec') or (m.group('binary') is not None)
    prefix = m.group('prefix') or ''

    if strict and ((binary and (prefix == 'k')) or ((not binary) and (prefix == 'K'))):
        raise ValueError("Invalid unit")

    exponent_multipliers = ['', 'K', 'M', 'G', 'T', 'P', 'E', 'Z']
    return (
        2 if binary else 10,
        (10 if binary else 3) * exponent_multipliers.index(prefix.upper())
    )


def parse_size(size: Union[str, int], mode: str = 'si/iec', assume_unit: str = '', strict: bool = False) -> int:
    """Parse the given data size

    If passed and not explicitly given, 'assume_unit' will be assumed.
    Mode can be either 'si/iec' to parse decimal (SI) and binary (IEC) units, or
    'jedec' for binary only units. Returns -1 for anything unparsable.
    """
    try:
        if isinstance(size, int):
            size_in_unit = size
            unit = assume_unit
        else:
            m = re.match(r'^(?P<size_in_unit>\d+) ?(?P<unit>\w+)?$', size.strip())
            if m is None:
                raise ValueError(f"Invalid size: {size}")

            size_in_unit = int(m.group('size_in_unit'))
            unit = m.group('unit') if m.group('unit') else assume_unit

        base, exponent = _parse_unit(unit, mode, strict=strict)
        return size_in_unit * (base ** exponent)
    except ValueError:
        return -1


def compact_params(params):
    """Drop every None value, keeping insertion order."""
    return {key: value for key, value in params.items() if value is not None}


def quote_name(name):
    """Percent-encode a user supplied name for use as a single path segment.

    Beyond the standard unsafe set, '/' and '.' are escaped so a name can
    never address another path or be collapsed as a dot segment.
    """
    return quote(str(name), safe='').replace('.', '%2E')


def mask_secrets(params, fields=constants.SECRET_FIELDS):
    if not params:
        return params
    return {key: "****" if key in fields and value is not None else value for key, value in params.items()}
