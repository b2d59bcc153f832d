import sys

import atheris

with atheris.instrument_imports():
    from watchsim.utils import (
        clamp,
        parse_bool,
        parse_float,
        parse_int,
        parse_optional_int,
        sanitize_hostname,
    )


def TestOneInput(data: bytes) -> None:
    """Fuzz env-style parsing helpers with arbitrary input."""
    value = data.decode("utf-8", errors="ignore")

    sanitize_hostname(value)

    # Parsers fall back to defaults and must never raise
    parse_bool(value)
    parse_int(value, default=0)
    parse_optional_int(value)
    level = parse_float(value, default=0.0)
    if level == level:
        assert 0 <= clamp(level, 0, 100) <= 100


def main() -> None:
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
