"""
Rendition catalog: the fixed set of outputs produced from one source file.

The catalog is ordered low to high quality. Its middle entry is the canonical
rendition used as the asset's default playback URL.
"""

from __future__ import annotations

from pydantic import TypeAdapter, ValidationError
from vidpub_shared import RenditionSpec

DEFAULT_CRF = 28

DEFAULT_CATALOG: tuple[RenditionSpec, ...] = (
    RenditionSpec(name="480p", width=640, height=480, crf=DEFAULT_CRF),
    RenditionSpec(name="720p", width=1280, height=720, crf=DEFAULT_CRF),
    RenditionSpec(name="1080p", width=1920, height=1080, crf=DEFAULT_CRF),
)

_CATALOG_ADAPTER = TypeAdapter(list[RenditionSpec])


def parse_catalog(raw_json: str) -> tuple[RenditionSpec, ...]:
    """
    Parse a JSON list of rendition specs.

    Raises ValueError on invalid JSON, an empty list, or duplicate names.
    """
    try:
        specs = _CATALOG_ADAPTER.validate_json(raw_json)
    except ValidationError as e:
        raise ValueError(f"invalid rendition catalog: {e}") from e
    if not specs:
        raise ValueError("rendition catalog must not be empty")
    names = [s.name for s in specs]
    if len(set(names)) != len(names):
        raise ValueError(f"duplicate rendition names in catalog: {names}")
    return tuple(specs)


def load_catalog(raw_json: str | None) -> tuple[RenditionSpec, ...]:
    """Catalog from settings: the parsed override when given, else the default."""
    if raw_json:
        return parse_catalog(raw_json)
    return DEFAULT_CATALOG


def canonical_spec(catalog: tuple[RenditionSpec, ...] | list[RenditionSpec]) -> RenditionSpec:
    """Middle entry of the catalog: balanced quality/bandwidth for default playback."""
    if not catalog:
        raise ValueError("rendition catalog must not be empty")
    return catalog[len(catalog) // 2]
