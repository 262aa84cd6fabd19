"""Tests for the ephemeris CLI commands."""

import json
import os
import shutil
import tempfile
import unittest

from click.testing import CliRunner

from solsys.cli import cli
from solsys.cli.ephemeris import parse_epoch

from jpl_fixtures import (
    AU_KM,
    MARS,
    NUTATIONS,
    START_JD,
    SUN,
    RecordBuilder,
    write_ephemeris,
)


class TestEphemerisCommands(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "de430.bin")
        records = []
        for index in range(2):
            record = RecordBuilder(index)
            record.set_constant(MARS, [AU_KM, 2 * AU_KM, -AU_KM])
            record.set_constant(SUN, [0.0, 0.0, 0.0])
            record.set_constant(NUTATIONS, [1e-5, -2e-5])
            records.append(record)
        write_ephemeris(self.path, records)
        self.runner = CliRunner()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_info(self):
        result = self.runner.invoke(cli, ["info", self.path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("JPL Planetary Ephemeris DE430/LE430", result.output)
        self.assertIn("DE number: 430", result.output)
        self.assertIn(f"Start JD:  {START_JD}", result.output)
        self.assertIn("Constants: 3", result.output)

    def test_constants(self):
        result = self.runner.invoke(cli, ["constants", self.path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("DENUM", result.output)
        self.assertIn(repr(AU_KM), result.output)

    def test_named_constant(self):
        result = self.runner.invoke(cli, ["constants", self.path, "au"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.strip(), f"AU     {AU_KM!r}")

        result = self.runner.invoke(cli, ["constants", self.path, "GMS"])
        self.assertEqual(result.exit_code, 1)

    def test_state_json(self):
        result = self.runner.invoke(
            cli, ["state", self.path, str(START_JD + 16.0), "mars", "--json"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["target"], "MARS")
        self.assertEqual(data["center"], "SOLAR_SYSTEM_BARYCENTER")
        self.assertEqual(data["julian_date"], START_JD + 16.0)
        for actual, expected in zip(data["position"], [1.0, 2.0, -1.0]):
            self.assertAlmostEqual(actual, expected, places=12)
        self.assertEqual(data["velocity"], [0.0, 0.0, 0.0])

    def test_state_km_text(self):
        result = self.runner.invoke(
            cli, ["state", self.path, "2000-01-01T00:00:00", "mars", "--center", "sun", "--km"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("JD 2451544.500000000 MARS from SUN", result.output)
        self.assertIn(f"{AU_KM: .15e}", result.output)

    def test_state_nutations(self):
        result = self.runner.invoke(
            cli, ["state", self.path, str(START_JD + 1.0), "nutations", "--json"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["dpsi"], 1e-5)
        self.assertEqual(data["deps"], -2e-5)

    def test_state_out_of_range(self):
        result = self.runner.invoke(cli, ["state", self.path, "2400000.5", "mars"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("outside the ephemeris span", result.output)

    def test_unknown_body(self):
        result = self.runner.invoke(cli, ["state", self.path, str(START_JD), "vulcan"])
        self.assertEqual(result.exit_code, 2)

    def test_missing_file(self):
        missing = os.path.join(self.temp_dir, "missing.bin")
        result = self.runner.invoke(cli, ["info", missing])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("No ephemeris file", result.output)

    def test_ksize_for_unknown_de_number(self):
        path = os.path.join(self.temp_dir, "de999.bin")
        write_ephemeris(path, [RecordBuilder(0)], de_number=999)
        result = self.runner.invoke(cli, ["info", path])
        self.assertEqual(result.exit_code, 1)

        result = self.runner.invoke(cli, ["info", path, "--ksize", "2036"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("DE number: 999", result.output)


class TestParseEpoch(unittest.TestCase):
    def test_julian_date(self):
        self.assertEqual(parse_epoch("2451545.0").jd, 2451545.0)

    def test_iso_datetime(self):
        date = parse_epoch("2000-01-01T12:00:00+00:00")
        self.assertEqual(date.jd, 2451545.0)

    def test_naive_is_utc(self):
        self.assertEqual(parse_epoch("2000-01-01T06:00:00").fraction, 0.25)

    def test_invalid(self):
        from click import BadParameter

        with self.assertRaises(BadParameter):
            parse_epoch("yesterday")


if __name__ == "__main__":
    unittest.main()
