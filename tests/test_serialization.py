"""Decoding of raw action input."""
from __future__ import annotations

from dataclasses import dataclass

import pytest

from flyte_client.serialization import decode_input


@dataclass
class CreateIssue:
    project: str
    title: str


def test_decode_input_returns_json_value():
    assert decode_input(b'{"project": "FOO", "count": 2}') == {"project": "FOO", "count": 2}
    assert decode_input(b"null") is None
    assert decode_input(b"") is None


def test_decode_input_into_dataclass():
    issue = decode_input(b'{"project": "FOO", "title": "broken"}', into=CreateIssue)

    assert issue == CreateIssue(project="FOO", title="broken")


def test_decode_input_into_requires_an_object():
    with pytest.raises(TypeError):
        decode_input(b"[1, 2]", into=CreateIssue)
