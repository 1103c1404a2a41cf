"""Unit tests for external term format payload parsing."""

import erlang
import pytest

from sysmon_receiver.pipeline.payload import (
    PayloadDecodeError,
    RawRecord,
    normalize_term,
    parse_erlang_term,
)


class TestParseErlangTerm:
    """Test parse_erlang_term."""

    def test_tagged_tuple(self, node_role_payload):
        raw = parse_erlang_term(node_role_payload)

        assert raw == RawRecord(tag="node_role", values=("nodeA", (1, 2, 3), "leader"))

    def test_values_normalized(self, op_stat_payload):
        raw = parse_erlang_term(op_stat_payload)

        assert raw.tag == "op_stat_kafka_msg1"
        assert len(raw.values) == 6
        assert raw.values[1] == "42"
        assert raw.values[3] is None
        assert raw.values[4] == "node@host"
        assert raw.values[5] == (1700, 0, 5)

    def test_large_integers(self, etf):
        payload = etf.term(etf.tuple_of(etf.atom("app_top"), etf.integer(-70000)))

        assert parse_erlang_term(payload).values == (-70000,)

    def test_booleans(self, etf):
        payload = etf.term(etf.tuple_of(etf.atom("app_top"), etf.atom("true"), etf.atom("false")))

        assert parse_erlang_term(payload).values == (True, False)

    def test_tag_only(self, etf):
        raw = parse_erlang_term(etf.term(etf.tuple_of(etf.atom("node_role"))))

        assert raw == RawRecord(tag="node_role", values=())

    def test_bytearray_accepted(self, node_role_payload):
        assert parse_erlang_term(bytearray(node_role_payload)).tag == "node_role"

    @pytest.mark.parametrize(
        "payload",
        [b"", b"\x83", b"not a term", b"\x83h\x02d\x00\x03foo", b"\x84d\x00\x03foo"],
    )
    def test_malformed_bytes(self, payload):
        with pytest.raises(PayloadDecodeError):
            parse_erlang_term(payload)

    def test_not_bytes(self):
        with pytest.raises(PayloadDecodeError, match="Expected bytes"):
            parse_erlang_term("node_role")

    def test_not_a_tuple(self, etf):
        with pytest.raises(PayloadDecodeError, match="tagged tuple"):
            parse_erlang_term(etf.term(etf.atom("node_role")))

    def test_empty_tuple(self, etf):
        with pytest.raises(PayloadDecodeError, match="tagged tuple"):
            parse_erlang_term(etf.term(etf.tuple_of()))

    def test_tag_not_an_atom(self, etf):
        with pytest.raises(PayloadDecodeError, match="not an atom"):
            parse_erlang_term(etf.term(etf.tuple_of(etf.integer(1), etf.atom("x"))))

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_erlang_term(b"garbage")


class TestNormalizeTerm:
    """Test normalize_term."""

    def test_atom(self):
        assert normalize_term(erlang.OtpErlangAtom(b"gen_server")) == "gen_server"

    def test_special_atoms(self):
        assert normalize_term(erlang.OtpErlangAtom(b"undefined")) is None
        assert normalize_term(erlang.OtpErlangAtom(b"true")) is True
        assert normalize_term(erlang.OtpErlangAtom(b"false")) is False

    def test_binary(self):
        assert normalize_term(erlang.OtpErlangBinary(b"payload")) == b"payload"

    def test_charlist_bytes(self):
        assert normalize_term(b"abc") == "abc"

    def test_latin1_charlist(self):
        assert normalize_term(b"caf\xe9\tbar\n") == "caf\xe9\tbar\n"

    @pytest.mark.parametrize(
        "term, expected",
        [
            (b"\x01\x02\x03", [1, 2, 3]),
            (b"ab\x00", [97, 98, 0]),
            (b"\x80", [128]),
        ],
    )
    def test_non_printable_charlist_stays_integers(self, term, expected):
        assert normalize_term(term) == expected

    def test_empty_list(self):
        assert normalize_term([]) == []

    def test_nested_containers(self):
        term = (
            erlang.OtpErlangAtom(b"lists"),
            [erlang.OtpErlangAtom(b"map"), 2],
            {"foo": erlang.OtpErlangBinary(b"bar")},
        )

        assert normalize_term(term) == ("lists", ["map", 2], {"foo": b"bar"})

    def test_charlist_keys(self):
        assert normalize_term({b"ab": 1}) == {"ab": 1}

    @pytest.mark.parametrize("value", [None, 1, 2.5, "text", True])
    def test_plain_values_unchanged(self, value):
        assert normalize_term(value) == value
