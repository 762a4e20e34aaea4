import json
import tempfile
import unittest
from pathlib import Path

from param_schema import compile_schema, parser
from tests._util import LOCATION


class ParserTests(unittest.TestCase):
    def setUp(self):
        self.schema = compile_schema(
            {
                "start_dtg!": "utc_datetime",
                "data_source!": "string",
                "num_records": "integer",
                "enable_feature": "boolean",
                "tags": ["string"],
                "near": {"embeds_one": LOCATION},
            },
            "Job",
        )
        self.base = {
            "start_dtg":   "2025-08-03T00:00:00Z",
            "data_source": "/tmp/data.csv",
        }

    def test_parse_mapping(self):
        out = parser.parse_input(self.base, schema=self.schema)
        self.assertEqual(out, self.base)

    def test_parse_path(self):
        with tempfile.NamedTemporaryFile("w+", delete=False) as tmp:
            json.dump(self.base, tmp)
            tmp.flush()
            p = Path(tmp.name)
        try:
            out = parser.parse_input(p, schema=self.schema)
            self.assertEqual(out, self.base)
        finally:
            p.unlink(missing_ok=True)

    def test_parse_json_literal(self):
        literal = json.dumps(self.base)
        out = parser.parse_input(literal, schema=self.schema)
        self.assertEqual(out, self.base)

    def test_json_literal_must_be_object(self):
        with self.assertRaises(ValueError):
            parser.parse_input("[1, 2]", schema=self.schema)

    def test_parse_cli_tokens(self):
        cli = [
            "--start-dtg", self.base["start_dtg"],
            "--data-source", "/tmp/data.csv",
        ]
        out = parser.parse_input(cli, schema=self.schema)
        self.assertEqual(out, self.base)

    def test_parse_cli_string(self):
        out = parser.parse_input("--data-source '/tmp/my data.csv'", schema=self.schema)
        self.assertEqual(out, {"data_source": "/tmp/my data.csv"})

    def test_cli_values_stay_strings(self):
        out = parser.parse_input(["--num-records", "100"], schema=self.schema)
        self.assertEqual(out["num_records"], "100")

    def test_parse_cli_with_boolean_flag(self):
        out_with_flag = parser.parse_input(["--enable-feature"], schema=self.schema)
        self.assertEqual(out_with_flag["enable_feature"], "true")

        out_without_flag = parser.parse_input([], schema=self.schema)
        self.assertNotIn("enable_feature", out_without_flag)

    def test_arrays_and_embeds(self):
        out = parser.parse_input(
            ["--tags", "a", "b", "--near", '{"latitude": 1}'], schema=self.schema
        )
        self.assertEqual(out, {"tags": ["a", "b"], "near": {"latitude": 1}})

    def test_unknown_argument_raises(self):
        with self.assertRaises(ValueError):
            parser.parse_input(["--unknown", "x"], schema=self.schema)

    def test_parse_unsupported_type_raises(self):
        with self.assertRaises(TypeError):
            parser.parse_input(12345, schema=self.schema)


class ParserConfigTests(unittest.TestCase):
    def setUp(self):
        self.schema = compile_schema({"start_dtg!": "string", "end_dtg": "string"}, "Window")
        self.base = {"start_dtg": "2025-01-01T00:00:00Z", "end_dtg": None}

    def test_config_flag_overrides_everything(self):
        with tempfile.NamedTemporaryFile("w+", delete=False) as tmp:
            json.dump(self.base, tmp)
            tmp.flush()
            cfg = Path(tmp.name)

        try:
            cli = ["--config", str(cfg), "--start-dtg", "BAD"]  # ignored
            out = parser.parse_input(cli, schema=self.schema)
            self.assertEqual(out, self.base)
        finally:
            cfg.unlink(missing_ok=True)

    def test_config_file_not_found_raises(self):
        cli = ["--config", "/tmp/does-not-exist.json"]
        with self.assertRaises(FileNotFoundError):
            parser.parse_input(cli, schema=self.schema)

    def test_config_file_bad_json_raises(self):
        with tempfile.NamedTemporaryFile("w+", delete=False) as tmp:
            tmp.write("{ not json")
            tmp.flush()
            cfg = Path(tmp.name)
        try:
            cli = ["--config", str(cfg)]
            with self.assertRaises(json.JSONDecodeError):
                parser.parse_input(cli, schema=self.schema)
        finally:
            cfg.unlink(missing_ok=True)
