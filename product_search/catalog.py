"""Catalog loading from a local (or downloadable) JSON product dump."""
from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Iterable, List, Tuple
from urllib.error import URLError
from urllib.request import urlopen

from pydantic import ValidationError

from .models import ProductRecord

logger = logging.getLogger(__name__)

GIT_LFS_POINTER = "version https://git-lfs.github.com/spec/v1"


def ensure_data_file(path: str | Path, source_url: str | None = None) -> Path:
    """Ensure a data file exists locally, downloading it when a URL is provided."""
    file_path = Path(path)
    if file_path.exists():
        return file_path
    if not source_url:
        raise FileNotFoundError(
            f"Required data file missing and no download URL provided: {file_path}"
        )
    logger.info("Downloading %s from %s", file_path, source_url)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with urlopen(source_url) as response, file_path.open("wb") as handle:
            shutil.copyfileobj(response, handle)
    except (OSError, URLError) as exc:
        raise RuntimeError(f"Failed to download {source_url} -> {file_path}") from exc
    return file_path


def _load_rows(path: Path) -> List[Any]:
    with path.open("r", encoding="utf-8") as fh:
        first_line = fh.readline()
        # Detect Git LFS placeholder to avoid attempting to parse it as JSON.
        if first_line.startswith(GIT_LFS_POINTER):
            logger.warning("Catalog file %s is a Git LFS pointer; real data not downloaded", path)
            return []
        fh.seek(0)
        payload = json.load(fh)
    if isinstance(payload, dict):
        payload = payload.get("items") or payload.get("products") or []
    if not isinstance(payload, list):
        logger.warning("Catalog file %s does not contain a product list", path)
        return []
    return payload


def build_catalog(rows: Iterable[Any]) -> Tuple[ProductRecord, ...]:
    """Validate raw rows into records, skipping the ones that cannot be used.

    Duplicate ids are kept as supplied; ranking dedupes them per query.
    """

    records: List[ProductRecord] = []
    skipped = 0
    for position, raw in enumerate(rows):
        if not isinstance(raw, dict):
            skipped += 1
            logger.warning("Skipping catalog row %s: expected an object, got %s", position, type(raw).__name__)
            continue
        try:
            records.append(ProductRecord.model_validate(raw))
        except ValidationError as exc:
            skipped += 1
            logger.warning("Skipping catalog row %s: %s", position, exc.errors()[0].get("msg"))
    if skipped:
        logger.info("Catalog built with %s records, %s rows skipped", len(records), skipped)
    return tuple(records)


def load_catalog(path: str | Path, source_url: str | None = None) -> Tuple[ProductRecord, ...]:
    data_file = ensure_data_file(path, source_url or None)
    catalog = build_catalog(_load_rows(data_file))
    logger.info("Loaded %s products from %s", len(catalog), data_file)
    return catalog
