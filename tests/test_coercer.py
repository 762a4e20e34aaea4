import datetime as dt
import decimal
import unittest
import uuid

from param_schema.coercer import DEFAULT_COERCER, CoercionError, TypeCoercer


class CoercerTests(unittest.TestCase):
    def setUp(self):
        self.c = DEFAULT_COERCER

    def test_integer_from_string(self):
        self.assertEqual(self.c.coerce("integer", "123"), 123)
        self.assertEqual(self.c.coerce("integer", " -4 "), -4)
        self.assertEqual(self.c.coerce("id", 7), 7)

    def test_integer_rejects(self):
        for bad in ["12.0", "abc", 1.5, True, None, []]:
            with self.assertRaises(CoercionError, msg=repr(bad)):
                self.c.coerce("integer", bad)

    def test_float(self):
        self.assertEqual(self.c.coerce("float", "87.5"), 87.5)
        self.assertEqual(self.c.coerce("float", "-90"), -90.0)
        self.assertEqual(self.c.coerce("float", 3), 3.0)
        for bad in ["nan", "inf", "1,5", False]:
            with self.assertRaises(CoercionError, msg=repr(bad)):
                self.c.coerce("float", bad)

    def test_boolean(self):
        self.assertIs(self.c.coerce("boolean", "true"), True)
        self.assertIs(self.c.coerce("boolean", "1"), True)
        self.assertIs(self.c.coerce("boolean", "False"), False)
        self.assertIs(self.c.coerce("boolean", False), False)
        with self.assertRaises(CoercionError):
            self.c.coerce("boolean", "yes")

    def test_string_is_strict(self):
        self.assertEqual(self.c.coerce("string", "x"), "x")
        with self.assertRaises(CoercionError):
            self.c.coerce("string", 5)

    def test_decimal_and_scale_option(self):
        self.assertEqual(self.c.coerce("decimal", "1.50"), decimal.Decimal("1.50"))
        self.assertEqual(self.c.coerce("decimal", 0.1), decimal.Decimal("0.1"))
        self.assertEqual(
            self.c.coerce("decimal", "2.345", {"scale": 2}), decimal.Decimal("2.34")
        )
        with self.assertRaises(CoercionError):
            self.c.coerce("decimal", "NaN")

    def test_dates_and_times(self):
        self.assertEqual(self.c.coerce("date", "2025-08-03"), dt.date(2025, 8, 3))
        self.assertEqual(self.c.coerce("time", "12:30:00"), dt.time(12, 30))
        self.assertEqual(
            self.c.coerce("naive_datetime", "2025-08-03T12:00:00Z"),
            dt.datetime(2025, 8, 3, 12, 0),
        )
        with self.assertRaises(CoercionError):
            self.c.coerce("date", "2025-13-01")

    def test_utc_datetime(self):
        utc = dt.timezone.utc
        self.assertEqual(
            self.c.coerce("utc_datetime", "2024-12-31T23:59:59.500-05:00"),
            dt.datetime(2025, 1, 1, 4, 59, 59, tzinfo=utc),
        )
        # naive input is taken as UTC
        self.assertEqual(
            self.c.coerce("utc_datetime", "2025-08-03T12:00:00"),
            dt.datetime(2025, 8, 3, 12, tzinfo=utc),
        )
        self.assertEqual(
            self.c.coerce("utc_datetime_usec", "2025-08-03T12:00:00.250Z").microsecond,
            250000,
        )
        with self.assertRaises(CoercionError):
            self.c.coerce("utc_datetime", "not-dt")

    def test_binary_id(self):
        u = uuid.uuid4()
        self.assertEqual(self.c.coerce("binary_id", str(u).upper()), str(u))
        self.assertEqual(self.c.coerce("binary_id", u), str(u))
        with self.assertRaises(CoercionError):
            self.c.coerce("binary_id", "xyz")

    def test_map_and_any(self):
        self.assertEqual(self.c.coerce("map", {"a": 1}), {"a": 1})
        with self.assertRaises(CoercionError):
            self.c.coerce("map", [1])
        marker = object()
        self.assertIs(self.c.coerce("any", marker), marker)

    def test_dataframe(self):
        try:
            import pandas as pd
        except ImportError:
            self.skipTest("pandas is not installed, skipping DataFrame test")
        df = self.c.coerce("dataframe", [{"a": 1, "b": 2}, {"a": 3, "b": 4}])
        self.assertIsInstance(df, pd.DataFrame)
        self.assertEqual(list(df.columns), ["a", "b"])
        self.assertEqual(len(df), 2)
        cols = self.c.coerce("dataframe", {"a": [1, 2]})
        self.assertEqual(cols["a"].tolist(), [1, 2])
        with self.assertRaises(CoercionError):
            self.c.coerce("dataframe", "nope")

    def test_overflow_is_a_coercion_error(self):
        with self.assertRaises(CoercionError):
            self.c.coerce("float", 10 ** 400)
        with self.assertRaises(CoercionError):
            self.c.coerce("decimal", "1e30", {"scale": 2})

    def test_unknown_tag(self):
        with self.assertRaises(CoercionError):
            self.c.coerce("nope", "x")


class CustomCoercerTests(unittest.TestCase):
    def test_register_custom_tag_does_not_touch_default(self):
        c = TypeCoercer().register("upper", lambda v, opts: str(v).upper())
        self.assertTrue(c.knows("upper"))
        self.assertFalse(DEFAULT_COERCER.knows("upper"))
        self.assertEqual(c.coerce("upper", "abc"), "ABC")

    def test_copy_is_independent(self):
        a = TypeCoercer()
        b = a.copy().register("x", lambda v, o: v)
        self.assertIn("x", b.tags)
        self.assertNotIn("x", a.tags)


if __name__ == "__main__":
    unittest.main()
