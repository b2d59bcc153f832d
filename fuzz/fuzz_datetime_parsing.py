import sys

import atheris

with atheris.instrument_imports():
    from watchsim.datetime_utils import format_elapsed, parse_time_of_day, parse_time_string
    from watchsim.errors import InvalidTime


def TestOneInput(data: bytes) -> None:
    """Fuzz alarm time parsing and elapsed formatting with arbitrary input."""
    value = data.decode("utf-8", errors="ignore")

    result = parse_time_of_day(value)
    if result is not None:
        hour, minute = result
        assert 0 <= hour <= 23 and 0 <= minute <= 59

    try:
        parse_time_string(value)
    except InvalidTime:
        pass

    if data:
        format_elapsed(int.from_bytes(data[:8], byteorder="little"))


def main() -> None:
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
