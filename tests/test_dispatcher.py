import pytest

from aiohc import DispatchCounters, Dispatcher, parse_count


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 1),
        ("", 1),
        ("abc", 1),
        ("0", 1),
        (0, 1),
        ("-5", 1),
        ("1.5", 1),
        ("1", 1),
        ("50", 50),
        (" 7 ", 7),
        (12, 12),
    ],
)
def test_parse_count(raw, expected):
    assert parse_count(raw) == expected


def test_counters_complete_once():
    counters = DispatchCounters(3)
    assert counters.record(True) is False
    assert counters.record(False) is False
    assert counters.record(True) is True
    assert counters.completed
    assert (counters.total, counters.succeeded, counters.failed) == (3, 2, 1)
    assert counters.summary() == "total=3, succeeded=2, failed=1"


def test_counters_never_complete_twice():
    counters = DispatchCounters(1)
    assert counters.record(True) is True
    assert counters.record(True) is False


def summaries(lines):
    return [line for line in lines if line.startswith("total=")]


@pytest.mark.asyncio
async def test_dispatch_against_server(session_start, constants):
    lines = []
    dispatcher = Dispatcher(
        constants["SERVER_HOST"], constants["SERVER_PORT"], "/hello/", echo=lines.append
    )
    counters = await dispatcher.run(50)

    assert counters.total == 50
    assert counters.succeeded + counters.failed == 50
    assert summaries(lines) == [counters.summary()]
    assert lines[-1] == counters.summary()
    assert len(lines) == 51


@pytest.mark.asyncio
async def test_dispatch_lines_show_body(session_start, constants):
    lines = []
    dispatcher = Dispatcher(
        constants["SERVER_HOST"], constants["SERVER_PORT"], "/hello/", echo=lines.append
    )
    await dispatcher.run(3)

    request_lines = sorted(lines[:-1])
    assert request_lines == [f"[{index}] hello" for index in range(3)]
    assert lines[-1] == "total=3, succeeded=3, failed=0"


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, None, "bad"])
async def test_dispatch_defaults_to_one(session_start, constants, count):
    lines = []
    dispatcher = Dispatcher(
        constants["SERVER_HOST"], constants["SERVER_PORT"], "/hello/", echo=lines.append
    )
    counters = await dispatcher.run(count)
    assert counters.requested == 1
    assert lines == ["[0] hello", "total=1, succeeded=1, failed=0"]


@pytest.mark.asyncio
async def test_dispatch_unreachable(unreachable_port):
    lines = []
    dispatcher = Dispatcher("127.0.0.1", unreachable_port, "/hello/", echo=lines.append)
    counters = await dispatcher.run(50)

    assert (counters.total, counters.succeeded, counters.failed) == (50, 0, 50)
    assert summaries(lines) == ["total=50, succeeded=0, failed=50"]
    assert lines[-1] == "total=50, succeeded=0, failed=50"
    assert all("ConnectionRefusedError" in line for line in lines[:-1])


@pytest.mark.asyncio
async def test_dispatch_counts_error_statuses_as_success(session_start, constants):
    lines = []
    dispatcher = Dispatcher(
        constants["SERVER_HOST"], constants["SERVER_PORT"], "/teapot", echo=lines.append
    )
    counters = await dispatcher.run(2)
    assert counters.succeeded == 2


@pytest.mark.asyncio
async def test_dispatch_timeout_counts_failure(session_start, constants):
    lines = []
    dispatcher = Dispatcher(
        constants["SERVER_HOST"],
        constants["SERVER_PORT"],
        "/slow",
        echo=lines.append,
        timeout=0.2,
    )
    counters = await dispatcher.run(2)
    assert counters.failed == 2
    assert lines[-1] == "total=2, succeeded=0, failed=2"


@pytest.mark.asyncio
async def test_dispatch_unencodable_host():
    lines = []
    dispatcher = Dispatcher("a..b", 80, "/", echo=lines.append)
    counters = await dispatcher.run(3)

    assert (counters.total, counters.succeeded, counters.failed) == (3, 0, 3)
    assert len(lines) == 4
    assert all("UnicodeError" in line for line in lines[:-1])
    assert lines[-1] == "total=3, succeeded=0, failed=3"


@pytest.mark.asyncio
async def test_dispatch_connection_lost_mid_body(truncating_server):
    host, port = truncating_server
    lines = []
    dispatcher = Dispatcher(host, port, "/", echo=lines.append)
    counters = await dispatcher.run(5)

    assert (counters.total, counters.succeeded, counters.failed) == (5, 0, 5)
    assert summaries(lines) == ["total=5, succeeded=0, failed=5"]
    assert lines[-1] == "total=5, succeeded=0, failed=5"
    assert all("IncompleteReadError" in line for line in lines[:-1])


def test_ipv6_host_header_is_bracketed():
    raw = Dispatcher("::1", 8080, "/hello/")._raw_request()
    assert b"\r\nHost: [::1]:8080\r\n" in raw
    raw = Dispatcher("127.0.0.1", 8888, "/hello/")._raw_request()
    assert b"\r\nHost: 127.0.0.1:8888\r\n" in raw
