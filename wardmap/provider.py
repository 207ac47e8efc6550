"""Data providers: the raw ward GeoJSON document and report listings."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Protocol

import requests
from loguru import logger
from pydantic import BaseModel, ValidationError

from .config import ProviderConfig
from .errors import FetchFailure, ParseFailure
from .models import Report


class DatasetProvider(Protocol):
    async def fetch_raw_dataset(self) -> dict[str, Any]: ...


class ReportFilter(BaseModel):
    limit: int = 100
    category: str | None = None
    status: str | None = None
    municipality_id: str | None = None

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def _get_json(url: str, params: dict | None, timeout: float) -> Any:
    try:
        resp = requests.get(url, params=params, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise FetchFailure(f"Could not download {url}: {e}") from e
    try:
        return resp.json()
    except ValueError as e:
        raise ParseFailure(f"Response from {url} is not valid JSON") from e


class HttpMapDataProvider:
    """Fetches the ward dataset and report listings from the backend."""

    def __init__(self, config: ProviderConfig | None = None):
        self.config = config or ProviderConfig()

    async def fetch_raw_dataset(self) -> dict[str, Any]:
        url = self.config.resolved_dataset_url
        logger.info(f"Downloading ward boundaries from {url}")
        return await asyncio.to_thread(_get_json, url, None, self.config.timeout_s)

    async def fetch_reports(self, report_filter: ReportFilter | None = None) -> list[Report]:
        report_filter = report_filter or ReportFilter(limit=self.config.report_limit)
        body = await asyncio.to_thread(
            _get_json, self.config.reports_url, report_filter.to_params(),
            self.config.timeout_s,
        )
        return parse_reports(body)


def parse_reports(body: Any) -> list[Report]:
    """Extract reports from ``{"reports": [...]}`` or ``{"data": {"reports": [...]}}``."""
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        body = body["data"]
    if not isinstance(body, dict) or not isinstance(body.get("reports"), list):
        raise ParseFailure("Report listing has no 'reports' list")
    try:
        return [Report.model_validate(r) for r in body["reports"]]
    except ValidationError as e:
        raise ParseFailure(f"Malformed report in listing: {e.error_count()} error(s)") from e


class FileDatasetProvider:
    """Reads a GeoJSON document bundled with the application."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    async def fetch_raw_dataset(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._load)

    def _load(self) -> dict[str, Any]:
        logger.info(f"Loading ward boundaries from {self.path}")
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except OSError as e:
            raise FetchFailure(f"Could not read {self.path}: {e}") from e
        except ValueError as e:
            raise ParseFailure(f"{self.path} is not valid JSON") from e
