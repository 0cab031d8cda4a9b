"""Unit tests for core/abbrlink.py"""

import re

from mdstage.core.abbrlink import find_abbrlink, generate_abbrlink


def test_generate_abbrlink_is_deterministic():
    """Hashing identical content twice gives the same abbrlink."""
    text = "# Title\n\nSame body.\n"
    assert generate_abbrlink(text) == generate_abbrlink(text)


def test_generate_abbrlink_is_eight_lowercase_hex():
    assert re.fullmatch(r"[0-9a-f]{8}", generate_abbrlink("anything"))


def test_generate_abbrlink_is_md5_prefix():
    """md5('hello') = 5d41402abc4b2a76b9719d911017c592"""
    assert generate_abbrlink("hello") == "5d41402a"


def test_generate_abbrlink_differs_for_different_content():
    assert generate_abbrlink("a") != generate_abbrlink("b")


def test_find_abbrlink_reads_line_value():
    assert find_abbrlink("title: x\nabbrlink: 0badf00d\n") == "0badf00d"


def test_find_abbrlink_none_when_absent():
    assert find_abbrlink("# Title\n\nabbrlinks are described here.\n") is None
