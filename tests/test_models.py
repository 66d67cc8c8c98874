"""Tests for levels, group keys and record helpers."""

import pytest

from loggly_client.models import (
    NO_TAG,
    Level,
    apply_defaults,
    build_record,
    group_key_for,
    merge,
)


class TestLevel:
    def test_ordering(self):
        assert Level.DEBUG < Level.INFO < Level.NOTICE < Level.WARNING
        assert Level.WARNING < Level.ERROR < Level.CRITICAL < Level.ALERT < Level.EMERGENCY

    def test_parse_names(self):
        assert Level.parse("error") is Level.ERROR
        assert Level.parse("  Info ") is Level.INFO
        assert Level.parse("warn") is Level.WARNING

    def test_parse_int_and_level(self):
        assert Level.parse(4) is Level.ERROR
        assert Level.parse(Level.ALERT) is Level.ALERT

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            Level.parse("verbose")


class TestGroupKey:
    def test_no_partner_id(self):
        assert group_key_for({"message": "hi"}) == NO_TAG

    def test_partner_id(self):
        assert group_key_for({"partnerID": "x"}) == "x"

    def test_non_string_partner_id(self):
        assert group_key_for({"partnerID": 42}) == "42"


class TestRecordHelpers:
    def test_build_record(self):
        record = build_record(Level.WARNING, "db", {"query": "select"}, {"ms": 3})
        assert record == {
            "level": "warning",
            "component": "db",
            "query": "select",
            "ms": 3,
        }

    def test_build_record_props_override_in_order(self):
        record = build_record(Level.INFO, "api", {"a": 1}, {"a": 2})
        assert record["a"] == 2

    def test_merge_later_wins(self):
        assert merge({"a": 1}, {"a": 2, "b": 3}, None) == {"a": 2, "b": 3}

    def test_apply_defaults_caller_wins(self):
        record = apply_defaults({"hostname": "mine"}, {"hostname": "default", "env": "prod"})
        assert record == {"hostname": "mine", "env": "prod"}
