from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from pipesh import logging_utils
from pipesh.executor import PipelineExecutor
from pipesh.jobs import JobRegistry


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    # CLI commands install sinks bound to the runner's temporary streams.
    monkeypatch.setattr(logging_utils, "_CONFIGURED", None)
    yield
    logger.remove()


@pytest.fixture
def jobs() -> JobRegistry:
    return JobRegistry()


@pytest.fixture
def executor(jobs: JobRegistry) -> PipelineExecutor:
    return PipelineExecutor(jobs)


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path
