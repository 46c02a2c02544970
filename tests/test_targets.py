import pytest

from portsweep.targets import ParseError, expand_range, expand_targets, int_to_ip, ip_to_int, parse_ipv4


def test_single_address():
    assert expand_targets("192.168.1.10") == ["192.168.1.10"]


def test_single_address_surrounding_whitespace():
    assert expand_targets("  10.1.2.3\n") == ["10.1.2.3"]


def test_list_keeps_input_order():
    assert expand_targets("10.0.0.2 10.0.0.1") == ["10.0.0.2", "10.0.0.1"]


def test_list_drops_repeated_whitespace():
    assert expand_targets("10.0.0.1    10.0.0.2\t\n10.0.0.3") == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]


def test_list_does_not_dedupe():
    assert expand_targets("10.0.0.1 10.0.0.1") == ["10.0.0.1", "10.0.0.1"]


@pytest.mark.parametrize("raw", ["10.0.0.1 not-an-ip", "10.0.0.256", "host.example", "::1", "10.0.0.0/24", "010.0.0.1"])
def test_list_rejects_malformed_tokens(raw):
    with pytest.raises(ParseError):
        expand_targets(raw)


@pytest.mark.parametrize("raw", ["", "   ", "\n\t"])
def test_empty_input(raw):
    with pytest.raises(ParseError):
        expand_targets(raw)


def test_range_basic():
    assert expand_targets("10.0.0.1-10.0.0.3") == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]


def test_range_crosses_octet_boundary():
    assert expand_targets("10.0.0.254-10.0.1.2") == [
        "10.0.0.254",
        "10.0.0.255",
        "10.0.1.0",
        "10.0.1.1",
        "10.0.1.2",
    ]


def test_range_of_one():
    assert expand_targets("172.16.5.5-172.16.5.5") == ["172.16.5.5"]


def test_range_tolerates_spaces_around_separator():
    assert expand_targets("10.0.0.1 - 10.0.0.2") == ["10.0.0.1", "10.0.0.2"]


def test_range_count_order_and_no_gaps():
    out = expand_targets("192.168.1.250-192.168.2.5")
    ordinals = [ip_to_int(a) for a in out]
    assert len(out) == ip_to_int("192.168.2.5") - ip_to_int("192.168.1.250") + 1 == 12
    assert ordinals == list(range(ordinals[0], ordinals[-1] + 1))


def test_inverted_range_is_an_error():
    with pytest.raises(ParseError):
        expand_targets("10.0.0.3-10.0.0.1")


@pytest.mark.parametrize("raw", ["10.0.0.1-", "-10.0.0.1", "10.0.0.1-bogus", "10.0.0.1-10.0.0.3-10.0.0.5"])
def test_malformed_range(raw):
    with pytest.raises(ParseError):
        expand_targets(raw)


def test_parse_error_is_a_value_error():
    with pytest.raises(ValueError):
        expand_targets("nope")


@pytest.mark.parametrize(
    "address, ordinal",
    [
        ("0.0.0.0", 0),
        ("0.0.0.255", 255),
        ("0.0.1.0", 256),
        ("10.0.0.1", 0x0A000001),
        ("192.168.1.1", 0xC0A80101),
        ("255.255.255.255", 0xFFFFFFFF),
    ],
)
def test_ordinal_conversion(address, ordinal):
    assert ip_to_int(address) == ordinal
    assert int_to_ip(ordinal) == address


@pytest.mark.parametrize("ordinal", [-1, 1 << 32])
def test_int_to_ip_out_of_range(ordinal):
    with pytest.raises(ParseError):
        int_to_ip(ordinal)


def test_expand_range_full_edge_of_space():
    assert expand_range("255.255.255.254", "255.255.255.255") == ["255.255.255.254", "255.255.255.255"]


def test_parse_ipv4_rejects_octet_overflow():
    with pytest.raises(ParseError):
        parse_ipv4("1.2.3.999")
