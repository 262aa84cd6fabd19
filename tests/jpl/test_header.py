import os
import shutil
import tempfile
import unittest

from solsys.jpl.errors import EphemerisError, FormatMismatchError
from solsys.jpl.header import (
    FIXED_PREFIX_LENGTH,
    EphemerisFormat,
    EphemerisHeader,
    Pointer,
    detect_byteorder,
    read_de_number,
    select_format,
)

from jpl_fixtures import (
    AU_KM,
    DE430_KSIZE,
    DE430_POINTERS,
    EMRAT,
    START_JD,
    STEP_DAYS,
    RecordBuilder,
    write_ephemeris,
)


class TestEphemerisFormat(unittest.TestCase):
    def test_known_de_numbers(self):
        self.assertEqual(EphemerisFormat.for_de_number(430).ksize, 2036)
        self.assertEqual(EphemerisFormat.for_de_number(405).ksize, 2036)
        self.assertEqual(EphemerisFormat.for_de_number(406).ksize, 1456)
        self.assertEqual(EphemerisFormat.for_de_number(200).ksize, 1652)

    def test_sizes(self):
        fmt = EphemerisFormat(de_number=430, ksize=2036)
        self.assertEqual(fmt.record_size, 8144)
        self.assertEqual(fmt.coefficient_count, 1018)

    def test_unknown_de_number(self):
        with self.assertRaises(FormatMismatchError):
            EphemerisFormat.for_de_number(999)


class TestPointer(unittest.TestCase):
    def test_present(self):
        self.assertTrue(Pointer(3, 14, 4).present)
        self.assertFalse(Pointer(0, 0, 0).present)

    def test_end(self):
        self.assertEqual(Pointer(3, 14, 4).end(3), 170)
        self.assertEqual(Pointer(819, 10, 4).end(2), 898)


class TestHeaderDecoding(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "test.bin")
        self.fmt = EphemerisFormat.for_de_number(430)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def read_header(self, **kwargs) -> bytes:
        write_ephemeris(self.path, [RecordBuilder(0)], **kwargs)
        with open(self.path, "rb") as f:
            return f.read(2 * self.fmt.record_size)

    def test_decode_little_endian(self):
        header = EphemerisHeader.decode(self.read_header(), self.fmt)

        self.assertEqual(header.byteorder, "<")
        self.assertEqual(header.de_number, 430)
        self.assertEqual(header.title, "JPL Planetary Ephemeris DE430/LE430")
        self.assertEqual(header.time_span, (START_JD, START_JD + STEP_DAYS, STEP_DAYS))
        self.assertEqual(header.au, AU_KM)
        self.assertEqual(header.emrat, EMRAT)
        self.assertEqual(header.names, ["DENUM", "AU", "EMRAT"])
        self.assertEqual(header.ncon, 3)
        self.assertEqual(header.constants()["AU"], AU_KM)
        self.assertEqual(header.pointers[0], Pointer(3, 14, 4))
        self.assertEqual(header.nutation, Pointer(819, 10, 4))
        self.assertEqual(header.libration, Pointer(899, 10, 4))
        self.assertEqual(header.implied_coefficient_count(), 1018)

    def test_decode_big_endian(self):
        little = EphemerisHeader.decode(self.read_header(), self.fmt)
        big = EphemerisHeader.decode(self.read_header(byteorder=">"), self.fmt)

        self.assertEqual(big.byteorder, ">")
        self.assertEqual(big.time_span, little.time_span)
        self.assertEqual(big.pointers, little.pointers)
        self.assertEqual(big.values, little.values)

    def test_detect_byteorder_rejects_garbage(self):
        with self.assertRaises(FormatMismatchError):
            detect_byteorder(bytes(FIXED_PREFIX_LENGTH))

    def test_read_de_number(self):
        data = self.read_header()
        self.assertEqual(read_de_number(data[:FIXED_PREFIX_LENGTH]), 430)

    def test_short_prefix(self):
        data = self.read_header()
        with self.assertRaises(FormatMismatchError):
            read_de_number(data[:100])

    def test_truncated_header(self):
        data = self.read_header()
        with self.assertRaises(FormatMismatchError):
            EphemerisHeader.decode(data[: self.fmt.record_size + 10], self.fmt)

    def test_known_de_number_with_wrong_record_size(self):
        data = self.read_header()
        with self.assertRaises(FormatMismatchError):
            EphemerisHeader.decode(data, EphemerisFormat(de_number=430, ksize=1456))

    def test_pointer_table_disagrees_with_record_size(self):
        data = self.read_header(de_number=999)
        with self.assertRaises(FormatMismatchError):
            EphemerisHeader.decode(data, EphemerisFormat(de_number=999, ksize=2000))

    def test_explicit_format_for_unknown_de_number(self):
        data = self.read_header(de_number=999)
        header = EphemerisHeader.decode(data, EphemerisFormat(de_number=0, ksize=DE430_KSIZE))
        self.assertEqual(header.de_number, 999)

    def test_select_format(self):
        data = self.read_header(de_number=999)
        with self.assertRaises(FormatMismatchError):
            select_format(data[:FIXED_PREFIX_LENGTH], None)

        explicit = EphemerisFormat(de_number=999, ksize=DE430_KSIZE)
        self.assertIs(select_format(data[:FIXED_PREFIX_LENGTH], explicit), explicit)

    def test_invalid_time_span(self):
        data = self.read_header(stop=START_JD - 1.0)
        with self.assertRaises(FormatMismatchError):
            EphemerisHeader.decode(data, self.fmt)

    def test_missing_body_pointer(self):
        # Pluto left out of the pointer table
        pointers = list(DE430_POINTERS)
        pointers[8] = (0, 0, 0)
        data = self.read_header(pointers=pointers)
        with self.assertRaises(FormatMismatchError):
            EphemerisHeader.decode(data, self.fmt)

    def test_single_coefficient_body_pointer(self):
        pointers = list(DE430_POINTERS)
        pointers[10] = (753, 1, 2)
        data = self.read_header(pointers=pointers)
        with self.assertRaises(FormatMismatchError):
            EphemerisHeader.decode(data, self.fmt)

    def test_nutations_and_librations_may_be_absent(self):
        pointers = list(DE430_POINTERS)
        pointers[11] = (0, 0, 0)
        data = self.read_header(
            de_number=998, ksize=1636, pointers=pointers, libration=(0, 0, 0)
        )
        header = EphemerisHeader.decode(data, EphemerisFormat(de_number=998, ksize=1636))
        self.assertFalse(header.nutation.present)
        self.assertFalse(header.libration.present)

    def test_format_error_is_ephemeris_error(self):
        self.assertTrue(issubclass(FormatMismatchError, EphemerisError))
        self.assertTrue(issubclass(FormatMismatchError, ValueError))


if __name__ == "__main__":
    unittest.main()
