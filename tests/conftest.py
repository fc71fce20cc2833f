"""Shared fixtures: an isolated engine (dictionary, cache, fake auxiliary source) per test."""

import os

# Keep tests offline and out of logs/ before gokaku settings are imported
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("STROKE_LOOKUP_ENABLED", "false")

import pytest

from gokaku.services.stroke_dictionary import StrokeDictionary
from gokaku.services.stroke_resolver import ResolutionCache, StrokeResolver

# Counts used throughout the five-grade examples (山田太志)
EXAMPLE_STROKES = {"山": 3, "田": 5, "太": 4, "志": 3}


class FakeStrokeSource:
    """Auxiliary source double that records every bulk lookup."""

    def __init__(self, values=None, error=None, result=None):
        self.values = dict(values or {})
        self.error = error
        self.result = result
        self.calls = []

    async def lookup(self, chars):
        self.calls.append(list(chars))
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return {ch: self.values.get(ch) for ch in chars}


@pytest.fixture
def dictionary():
    return StrokeDictionary(EXAMPLE_STROKES)


@pytest.fixture
def cache():
    return ResolutionCache(max_size=64)


@pytest.fixture
def source():
    return FakeStrokeSource()


@pytest.fixture
def resolver(dictionary, cache, source):
    return StrokeResolver(dictionary, cache, source)


@pytest.fixture
def make_source():
    return FakeStrokeSource
