import os
from typing import List, Optional, Tuple

import pytest

from gnss_obs.rinex_io.records import ObservationRecord

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")


def header_line(value: str, label: str) -> str:
    return value.ljust(60) + label.ljust(20)


def obs_field(value: Optional[float], lli: str = " ", ssi: str = " ") -> str:
    if value is None:
        return " " * 14 + lli + ssi
    return f"{value:14.3f}{lli}{ssi}"


class Recorder:
    """Collects callback events in order; records are copied."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, object]] = []

    def on_header(self, label: str, value: str) -> None:
        self.events.append(("header", (label.strip(), value)))

    def on_observation(self, record: ObservationRecord) -> None:
        self.events.append(("obs", record.copy()))

    @property
    def records(self) -> List[ObservationRecord]:
        return [payload for kind, payload in self.events if kind == "obs"]

    @property
    def header_labels(self) -> List[str]:
        return [payload[0] for kind, payload in self.events if kind == "header"]

    @property
    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.events]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def mixed_v211_path() -> str:
    return os.path.join(DATA_DIR, "mixed_v211.obs")


@pytest.fixture
def septentrio_v302_path() -> str:
    return os.path.join(DATA_DIR, "septentrio_v302.rnx")
