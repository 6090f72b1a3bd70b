from __future__ import annotations

from typing import Iterator

import pytest

from docmaster.services import telemetry


@pytest.fixture(autouse=True)
def reset_telemetry_between_tests() -> Iterator[None]:
    # Counters and request samples are module-level; keep them isolated per test.
    telemetry.reset()
    yield
    telemetry.reset()
