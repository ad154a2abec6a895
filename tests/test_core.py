import pytest

from portpick.core import find_available_ports, parse_services_content


def test_parse_services_content_empty():
    assert parse_services_content("", "test_empty", False) == set()


def test_parse_services_content_comments_and_blank_lines():
    content = "# This is a comment\n\n  # Another comment\n  \n"
    assert parse_services_content(content, "test_comments", False) == set()


def test_parse_services_content_valid_tcp():
    content = "service1\t80/tcp\nservice2   100/tcp # comment\nservice3 200/tcp"
    assert parse_services_content(content, "test_valid_tcp", False) == {80, 100, 200}


def test_parse_services_content_ignore_udp_and_unknown():
    content = "service_tcp\t80/tcp\nservice_udp\t53/udp\nunknown\t123/tcp\nvalid_service 443/tcp"
    ports = parse_services_content(content, "test_ignore_udp_unknown", False)
    assert ports == {80, 443}
    assert 53 not in ports
    assert 123 not in ports


def test_parse_services_content_mixed_delimiters():
    content = "http\t80/tcp\nhttps  443/tcp\nssh 22/tcp # Secure Shell"
    assert parse_services_content(content, "test_mixed_delimiters", False) == {80, 443, 22}


@pytest.mark.parametrize(
    "line",
    [
        "big 70000/tcp",
        "word abc/tcp",
        "triple 80/tcp/extra",
        "noslash 80",
        "UNKNOWN 81/tcp",
        "lonely",
        "neg -5/tcp",
    ],
)
def test_parse_services_content_rejects_invalid_lines(line):
    assert parse_services_content(line, "invalid", False) == set()


def test_parse_services_content_case_insensitive_protocol_and_crlf():
    content = "web 8080/TCP\r\nalt 8081/Tcp\r\n"
    assert parse_services_content(content, "case", False) == {8080, 8081}


def test_parse_services_content_duplicates_collapse():
    content = "a 22/tcp\nb 22/tcp\nc 22/udp"
    assert parse_services_content(content, "dups", False) == {22}


def test_parse_services_content_verbose_output(capsys):
    parse_services_content("a 1/tcp\nb 2/tcp", "sample source", True)
    out = capsys.readouterr().out
    assert "Parsing services data from sample source..." in out
    assert "Found 2 distinct TCP ports from sample source." in out


def test_find_available_ports_single():
    assert find_available_ports({1024, 1025}, 1, False) == [1026]


def test_find_available_ports_multiple_non_continuous():
    assert find_available_ports({1024, 1026}, 2, False) == [1025, 1027]


def test_find_available_ports_continuous():
    assert find_available_ports({1024, 1027}, 3, True) == [1028, 1029, 1030]


def test_find_available_ports_continuous_at_range_boundary():
    forbidden = set(range(1024, 49151 - 2))
    assert find_available_ports(forbidden, 3, True) == [49149, 49150, 49151]


def test_find_available_ports_continuous_does_not_span_ranges():
    forbidden = set(range(1024, 49150))
    assert find_available_ports(forbidden, 3, True) == [49152, 49153, 49154]


def test_find_available_ports_none_available_in_range():
    forbidden = set(range(1024, 65536))
    assert find_available_ports(forbidden, 1, False) == []


def test_find_available_ports_num_ports_zero():
    assert find_available_ports(set(), 0, False) == []
    assert find_available_ports(set(), 0, True) == []


def test_find_available_ports_prefer_registered_range():
    assert find_available_ports(set(), 1, False) == [1024]


def test_find_available_ports_fallback_to_dynamic_range():
    forbidden = set(range(1024, 49152))
    assert find_available_ports(forbidden, 1, False) == [49152]


def test_find_available_ports_continuous_block_too_large():
    too_large = (49151 - 1024 + 1) + (65535 - 49152 + 1) + 100
    assert find_available_ports(set(), too_large, True) == []


def test_find_available_ports_partial_result_when_not_enough():
    forbidden = set(range(1024, 65534))
    assert find_available_ports(forbidden, 5, False) == [65534, 65535]


def test_find_available_ports_accepts_list():
    assert find_available_ports([1024, 1025, 1026], 2, True) == [1027, 1028]


@pytest.mark.parametrize("bad", [-1, 65536])
def test_find_available_ports_rejects_out_of_range_count(bad):
    with pytest.raises(ValueError):
        find_available_ports(set(), bad, False)