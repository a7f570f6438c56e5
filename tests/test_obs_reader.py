import pytest

from conftest import header_line, obs_field
from gnss_obs.rinex_io.errors import RinexError, StructuralError
from gnss_obs.rinex_io.obs_reader import ObsReader, ParserMode, parse
from gnss_obs.rinex_io.obs_types import UNIVERSAL_SYSTEM
from gnss_obs.rinex_io.records import EpochFlag

# header and observation callbacks, in order, for tests/data/mixed_v211.obs
MIXED_V211_SEQUENCE = (
    ["RINEX VERSION / TYPE", "COMMENT", "PGM / RUN BY / DATE", "COMMENT", "MARKER NAME",
     "MARKER NUMBER", "OBSERVER / AGENCY", "REC # / TYPE / VERS", "ANT # / TYPE",
     "APPROX POSITION XYZ", "ANTENNA: DELTA H/E/N", "WAVELENGTH FACT L1/2",
     "WAVELENGTH FACT L1/2", "RCV CLOCK OFFS APPL", "# / TYPES OF OBSERV", "INTERVAL",
     "TIME OF FIRST OBS", "END OF HEADER"]
    + ["obs", "obs"]
    + ["WAVELENGTH FACT L1/2", "COMMENT", "COMMENT", "COMMENT"]
    + ["obs", "obs", "COMMENT", "obs", "obs"]
    + ["MARKER NAME", "MARKER NUMBER", "ANTENNA: DELTA H/E/N", "COMMENT"]
    + ["obs", "obs", "obs", "COMMENT", "obs", "obs", "COMMENT", "obs", "obs"]
    + ["COMMENT", "COMMENT", "obs", "obs", "COMMENT", "COMMENT", "COMMENT"]
)


def event_sequence(recorder):
    return [kind if kind == "obs" else payload[0] for kind, payload in recorder.events]


def test_mixed_v211_sequence(mixed_v211_path, recorder):
    reader = ObsReader(recorder.on_header, recorder.on_observation)
    with open(mixed_v211_path) as f:
        assert reader.parse(f) is None
    assert event_sequence(recorder) == MIXED_V211_SEQUENCE
    assert reader.version == 2
    assert reader.observation_types[UNIVERSAL_SYSTEM] == ("P1", "L1", "L2", "P2", "L5")
    assert reader.interval == 18.0
    assert reader.wavelength_factors["G 9"] == (1, 2)
    assert reader.mode is ParserMode.DATA
    assert reader.header_lines_remaining == 0


def test_mixed_v211_epoch_flags(mixed_v211_path, recorder):
    with open(mixed_v211_path, "rb") as f:
        parse(f, on_observation=recorder.on_observation)
    flags = [record.epoch_flag for record in recorder.records]
    assert flags == [0, 4, 0, 2, 0, 3, 0, 5, 4, 0, 4, 6, 4, 0, 4]
    assert all(record.year == 2005 for record in recorder.records)
    site_change = recorder.records[5]
    assert (site_change.minute, site_change.second) == (11, 48.0)


def test_header_value_passed_unstripped(mixed_v211_path, recorder):
    with open(mixed_v211_path) as f:
        parse(f, on_header=recorder.on_header)
    label, value = recorder.events[0][1]
    assert label == "RINEX VERSION / TYPE"
    assert value == "     2.11           OBSERVATION DATA    M (MIXED)           "


def test_header_callback_stops_parsing(mixed_v211_path):
    labels = []

    def on_header(label, value):
        labels.append(label.strip())
        if label.strip() == "END OF HEADER":
            return "done"
        return None

    observations = []
    reader = ObsReader(on_header, observations.append)
    with open(mixed_v211_path) as f:
        assert reader.parse(f) == "done"
    assert len(labels) == 18
    assert observations == []


def test_observation_callback_stops_parsing(mixed_v211_path):
    seen = []

    def on_observation(record):
        seen.append(record.copy())
        return False if len(seen) == 3 else None

    with open(mixed_v211_path) as f:
        assert ObsReader(on_observation=on_observation).parse(f) is False
    assert len(seen) == 3
    assert seen[2].satellites[5].prn == "E11"


def test_record_is_reused_between_callbacks(mixed_v211_path):
    seen = []
    with open(mixed_v211_path) as f:
        parse(f, on_observation=seen.append)
    assert all(record is seen[0] for record in seen)


def test_callbacks_passed_to_parse_replace_constructor_callbacks(mixed_v211_path, recorder):
    old = []
    reader = ObsReader(on_observation=old.append)
    with open(mixed_v211_path) as f:
        reader.parse(f, on_observation=recorder.on_observation)
    assert old == []
    assert len(recorder.records) == 15
    assert reader.on_observation == recorder.on_observation


def test_reentrant_parse_rejected(mixed_v211_path):
    reader = ObsReader()

    def on_header(label, value):
        reader.parse(["x"])

    with open(mixed_v211_path) as f:
        with pytest.raises(RuntimeError):
            reader.parse(f, on_header=on_header)
    # the guard is released after the failed parse
    with open(mixed_v211_path) as f:
        assert reader.parse(f, on_header=lambda label, value: None) is None


def test_reader_state_reset_between_parses(mixed_v211_path, septentrio_v302_path):
    reader = ObsReader()
    with open(mixed_v211_path) as f:
        reader.parse(f)
    with open(septentrio_v302_path) as f:
        reader.parse(f)
    assert reader.version == 3
    assert UNIVERSAL_SYSTEM not in reader.observation_types
    assert reader.interval is None
    assert reader.wavelength_factors == {}


def test_string_and_bytes_documents(mixed_v211_path):
    with open(mixed_v211_path) as f:
        text = f.read()
    counts = []
    for document in (text, text.encode("ascii"), text.replace("\n", "\r\n")):
        records = []
        parse(document, on_observation=records.append)
        counts.append(len(records))
    assert counts == [15, 15, 15]


def test_end_of_input_inside_record(mixed_v211_path):
    with open(mixed_v211_path) as f:
        lines = f.readlines()
    # stop in the middle of the first epoch's observation lines
    with pytest.raises(StructuralError, match="input ended inside an observation record") as excinfo:
        parse(lines[:20])
    assert excinfo.value.line_number == 20


def test_end_of_input_in_embedded_header_is_fine():
    lines = [
        header_line("     2.11           OBSERVATION DATA    G", "RINEX VERSION / TYPE"),
        header_line("     1    C1", "# / TYPES OF OBSERV"),
        header_line("", "END OF HEADER"),
        " 05  3 24 13 14 48.0000000  4  3",
        header_line("only one of three", "COMMENT"),
    ]
    records = []
    reader = parse(lines, on_observation=records.append)
    assert records[0].epoch_flag == EpochFlag.HEADER_INFORMATION
    assert reader.header_lines_remaining == 2


def test_error_reports_line():
    lines = [
        header_line("     2.11           OBSERVATION DATA    G", "RINEX VERSION / TYPE"),
        header_line("     1    C1", "# / TYPES OF OBSERV"),
        header_line("", "END OF HEADER"),
        " 05  3 24 13 14 48.0000000  9  1G01",
    ]
    with pytest.raises(RinexError) as excinfo:
        parse(lines)
    err = excinfo.value
    assert isinstance(err, ValueError)
    assert err.line_number == 4
    assert err.line == lines[3]
    assert str(err).startswith("line 4: invalid epoch flag")


def test_version_two_line_too_wide_in_header():
    lines = [header_line("     2.11           OBSERVATION DATA    G", "RINEX VERSION / TYPE") + "x"]
    with pytest.raises(RinexError, match="Oversized"):
        parse(lines)


def test_rinex3_satellite_lines_may_exceed_80_columns():
    fields = "".join(obs_field(20000000.0 + i) for i in range(6))
    lines = [
        header_line("     3.04           OBSERVATION DATA    G", "RINEX VERSION / TYPE"),
        header_line("G    6 C1C L1C D1C S1C C2W L2W", "SYS / # / OBS TYPES"),
        header_line("", "END OF HEADER"),
        "> 2021 03 19 12 00  0.0000000  0  1",
        "G01" + fields,
    ]
    records = []
    parse(lines, on_observation=lambda record: records.append(record.copy()))
    assert len(lines[-1]) > 80
    assert records[0].satellites[0].observations[5].value == 20000005.0


def test_undecodable_text_file(tmp_path):
    path = tmp_path / "bad.obs"
    path.write_bytes(b"     2.11           OBSERVATION DATA    G\xff" + b" " * 19 + b"RINEX VERSION / TYPE\n")
    with open(path, encoding="utf-8") as f:
        with pytest.raises(RinexError, match="not decodable text") as excinfo:
            parse(f)
    assert excinfo.value.line_number == 1
    assert excinfo.value.line == ""
