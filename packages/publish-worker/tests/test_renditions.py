"""Tests for the rendition catalog."""

import json

import pytest

from publish_worker.renditions import (
    DEFAULT_CATALOG,
    canonical_spec,
    load_catalog,
    parse_catalog,
)


def test_default_catalog_low_to_high() -> None:
    assert [s.name for s in DEFAULT_CATALOG] == ["480p", "720p", "1080p"]
    assert [(s.width, s.height) for s in DEFAULT_CATALOG] == [
        (640, 480),
        (1280, 720),
        (1920, 1080),
    ]
    assert all(s.crf == 28 and s.video_codec == "libx264" for s in DEFAULT_CATALOG)


def test_canonical_is_middle_entry() -> None:
    assert canonical_spec(DEFAULT_CATALOG).name == "720p"


def test_canonical_single_and_even_catalogs() -> None:
    one = DEFAULT_CATALOG[:1]
    two = DEFAULT_CATALOG[:2]
    assert canonical_spec(one).name == "480p"
    assert canonical_spec(two).name == "720p"


def test_canonical_empty_rejected() -> None:
    with pytest.raises(ValueError):
        canonical_spec(())


def test_parse_catalog() -> None:
    raw = json.dumps(
        [
            {"name": "360p", "width": 640, "height": 360, "crf": 30},
            {"name": "540p", "width": 960, "height": 540},
        ]
    )
    catalog = parse_catalog(raw)
    assert [s.name for s in catalog] == ["360p", "540p"]
    assert catalog[0].crf == 30
    assert catalog[1].crf == 28


@pytest.mark.parametrize(
    "raw",
    [
        "[]",
        "not json",
        json.dumps([{"name": "x", "width": 1}]),
        json.dumps(
            [
                {"name": "dup", "width": 2, "height": 2},
                {"name": "dup", "width": 4, "height": 4},
            ]
        ),
    ],
)
def test_parse_catalog_rejects_invalid(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_catalog(raw)


def test_load_catalog_defaults_when_unset() -> None:
    assert load_catalog(None) is DEFAULT_CATALOG
    assert load_catalog("") is DEFAULT_CATALOG
