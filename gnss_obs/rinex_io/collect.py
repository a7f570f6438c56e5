"""
Observation callbacks that accumulate what the reader streams past them.

Example:

    reader = ObsReader()
    collector = ObservationCollector(reader)
    with open("SEPT0100.19O") as f:
        reader.parse(f, on_observation=collector)
    arrays = collector.to_arrays()
    arrays.records["G05"]["C1C"]
"""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List

import numpy as np

from .records import EpochFlag, ObservationRecord

if TYPE_CHECKING:
    from .obs_reader import ObsReader

GPS_EPOCH = datetime(1980, 1, 6, 0, 0, 0)


@dataclass
class ObservationArrays:
    # seconds since GPS_EPOCH, in the file's time system
    epochs: np.ndarray
    # prn -> obs code (or "index", "<code>_SSI", "<code>_LLI") -> values
    records: Dict[str, Dict[str, np.ndarray]]


class EpochCounter:
    """
    Counts nominal epochs (flags 0 and 1) and their satellite observations;
    never stops the reader.  Cycle-slip records repeat an epoch already
    counted, so they are skipped along with event records.
    """

    def __init__(self) -> None:
        self.num_epochs = 0
        self.num_obs = 0

    def __call__(self, record: ObservationRecord) -> None:
        if record.epoch_flag > EpochFlag.POWER_FAILURE or not record.has_timestamp:
            return None
        self.num_epochs += 1
        self.num_obs += len(record.satellites)
        return None


class ObservationCollector:

    def __init__(
        self, reader: "ObsReader", include_ssi: bool = True, include_lli: bool = True
    ) -> None:
        self._reader = reader
        self._include_ssi = include_ssi
        self._include_lli = include_lli
        self._epochs: List[float] = []
        self._arrays: Dict[str, Dict[str, List[float]]] = {}

    def __call__(self, record: ObservationRecord) -> None:
        # events carry no measurements and cycle-slip values are corrections
        if record.epoch_flag > EpochFlag.POWER_FAILURE or not record.has_timestamp:
            return None
        record_index = len(self._epochs)
        self._epochs.append((record.time() - GPS_EPOCH).total_seconds())
        catalog = self._reader.observation_types
        for sat in record.satellites:
            obs_codes = [code.strip() for code in catalog.codes_for(sat.prn)]
            if sat.prn not in self._arrays:
                self._arrays[sat.prn] = self._new_satellite_entry(obs_codes)
            sat_arrays = self._arrays[sat.prn]
            sat_arrays["index"].append(record_index)
            for obs_code, obs in zip(obs_codes, sat.observations):
                sat_arrays[obs_code].append(obs.value if obs.is_present else np.nan)
                if obs_code[0] == "L":
                    if self._include_ssi:
                        sat_arrays[obs_code + "_SSI"].append(obs.ssi)
                    if self._include_lli:
                        sat_arrays[obs_code + "_LLI"].append(obs.lli)
        return None

    def _new_satellite_entry(self, obs_codes: List[str]) -> Dict[str, List[float]]:
        entry: Dict[str, List[float]] = {obs_code: [] for obs_code in obs_codes}
        for obs_code in obs_codes:
            if obs_code[0] != "L":
                continue
            if self._include_ssi:
                entry[obs_code + "_SSI"] = []
            if self._include_lli:
                entry[obs_code + "_LLI"] = []
        entry["index"] = []
        return entry

    def to_arrays(self, strip_all_nan: bool = True) -> ObservationArrays:
        """
        Get the collected observations as numpy arrays.

        Args:
            strip_all_nan: drop a satellite's code if it was never observed

        Returns:
            ObservationArrays; `records[prn]["index"]` gives the positions in
            `epochs` at which the satellite has values
        """
        records: Dict[str, Dict[str, np.ndarray]] = {}
        for prn, obs_lists in self._arrays.items():
            obs_dict = {}
            for obs_code, values in obs_lists.items():
                if obs_code == "index":
                    obs_dict[obs_code] = np.array(values, dtype=int)
                    continue
                arr = np.array(values, dtype=float)
                if strip_all_nan and np.all(np.isnan(arr)):
                    continue
                obs_dict[obs_code] = arr
            records[prn] = obs_dict
        return ObservationArrays(np.array(self._epochs), records)
