import logging

from utils.logging_utils import OneLineFormatter, compact_json


def record(message):
    return logging.LogRecord("flow_runner", logging.INFO, __file__, 1, message, None, None)


def test_multiline_messages_collapse_to_one_line():
    formatter = OneLineFormatter(fmt="%(message)s")
    assert formatter.format(record("node 2 failed:\n  ValueError:   nope\n")) == "node 2 failed: ValueError: nope"


def test_long_messages_are_truncated_when_limited():
    formatter = OneLineFormatter(fmt="%(message)s", max_len=10)
    assert formatter.format(record("x" * 40)) == "x" * 10 + " …(truncated)"
    assert OneLineFormatter(fmt="%(message)s").format(record("x" * 40)) == "x" * 40


def test_compact_json_falls_back_for_unserializable_keys():
    assert compact_json({"a": [1, 2]}) == '{"a":[1,2]}'
    assert compact_json({(1, 2): "tuple key"}) == "{(1, 2): 'tuple key'}"
