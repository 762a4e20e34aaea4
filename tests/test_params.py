import json
import unittest

from param_schema import Params, ValidationError, defparams, field
from tests._util import LOCATION, tmp_json

KITTEN_PARAMS = {
    "breed": "Russian Blue",
    "age_min": "0",
    "age_max": "4",
    "near_location": {"latitude": "87.5", "longitude": "-90.0"},
}


class DefParamsTests(unittest.TestCase):
    def setUp(self):
        self.kitten = defparams(
            "Kitten",
            {
                "breed!": "string",
                "age_min": "integer",
                "age_max": "integer",
                "near_location!": {"latitude": "float", "longitude": "float"},
            },
        )
        self.puppy = defparams(
            "Puppy",
            {
                "breed!": "string",
                "age_min": "integer",
                "age_max": "integer",
                "near_location!": {"embeds_one": LOCATION},
            },
        )
        self.dragon = defparams(
            "Dragon",
            {
                "breed!": "string",
                "age_min": "integer",
                "age_max": "integer",
                "near_locations!": {"embeds_many": LOCATION},
            },
        )

    def test_required_and_optional_lists(self):
        for p in (self.kitten, self.puppy):
            self.assertEqual(sorted(p.required), ["breed", "near_location"])
            self.assertEqual(p.optional, ["age_min", "age_max"])

    def test_empty_input_is_an_error(self):
        for p in (self.kitten, self.puppy, self.dragon):
            res = p.cast({})
            self.assertFalse(res.ok, p.name)
            self.assertFalse(res.changeset.valid)

    def test_kitten_casts_everything(self):
        res = self.kitten.cast(KITTEN_PARAMS)
        self.assertTrue(res.ok)
        self.assertEqual(
            res.value,
            {
                "breed": "Russian Blue",
                "age_min": 0,
                "age_max": 4,
                "near_location": {"latitude": 87.5, "longitude": -90.0},
            },
        )

    def test_puppy_uses_external_schema(self):
        self.assertTrue(self.puppy.cast(KITTEN_PARAMS).ok)

    def test_dragon_many_locations(self):
        params = dict(KITTEN_PARAMS)
        del params["near_location"]
        params["near_locations"] = [
            {"latitude": "87.5", "longitude": "-90.0"},
            {"latitude": "67.5", "longitude": "-60.0"},
        ]
        out = self.dragon.cast(params).unwrap()
        self.assertEqual(
            out["near_locations"],
            [{"latitude": 87.5, "longitude": -90.0}, {"latitude": 67.5, "longitude": -60.0}],
        )

    def test_unwrap_raises_on_error(self):
        with self.assertRaises(ValidationError) as ctx:
            self.kitten.cast({"breed": "x"}).unwrap()
        self.assertEqual([e.path for e in ctx.exception.errors], [("near_location",)])

    def test_string_arrays(self):
        strings = defparams("StringArray", {"tags!": ["string"]})
        self.assertEqual(strings.cast({"tags": ["hello", "world"]}, mode="struct").value.tags, ["hello", "world"])

    def test_schema_options_default(self):
        opts = defparams("SchemaOptions", {"foo": [("field", "string"), ("default", "FOO")]})
        self.assertEqual(opts.cast({}).value, {"foo": "FOO"})
        self.assertEqual(opts.cast({}, mode="struct").value.foo, "FOO")

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            self.kitten.cast(KITTEN_PARAMS, mode="json")

    def test_changeset_is_not_projected(self):
        ch = self.kitten.changeset({"age_min": "2"})
        self.assertEqual(ch.get_change("age_min"), 2)
        self.assertFalse(ch.valid)


class HookOverrideTests(unittest.TestCase):
    def setUp(self):
        def toddlers(result, raw):
            return result.validate_inclusion("age", range(1, 7))

        self.kid = defparams("Kid", {"name": "string", "age": "integer"}, hook=toddlers)

    def custom(self, result, raw):
        return result.validate_required(["name"]).validate_inclusion("age", range(10, 21))

    def test_user_can_override_hook_per_call(self):
        self.assertFalse(self.kid.cast({"name": "hugo", "age": 5}, hook=self.custom).ok)

    def test_schema_hook_is_default(self):
        self.assertTrue(self.kid.cast({"name": "hugo", "age": 5}).ok)

    def test_struct_output(self):
        m = self.kid.cast({"name": "hugo", "age": "5"}, mode="struct").unwrap()
        self.assertEqual(m.name, "hugo")
        self.assertEqual(m.age, 5)


class LoadTests(unittest.TestCase):
    def test_load_bundled_definitions(self):
        location = Params.load("location.json")
        search = Params.load("product_search.json", registry={"Location": location})
        self.assertEqual(search.name, "ProductSearch")
        self.assertEqual(search.required, ["text"])

        out = search.cast({"text": "boots", "near": {"latitude": "1", "longitude": "2"}}).unwrap()
        self.assertEqual(
            out,
            {
                "text": "boots",
                "near": {"latitude": 1.0, "longitude": 2.0},
                "page": 1,
                "price": {"currency": "EUR"},
            },
        )

    def test_load_from_disk(self):
        path = tmp_json({"name": "Ping", "description": "d", "fields": {"host!": "string"}})
        try:
            ping = Params.load(path)
            self.assertEqual(ping.description, "d")
            self.assertTrue(ping.cast({"host": "a"}).ok)
        finally:
            path.unlink(missing_ok=True)

    def test_load_rejects_incomplete_definition(self):
        path = tmp_json({"name": "Ping", "fields": {}})
        try:
            with self.assertRaises(ValueError):
                Params.load(path)
        finally:
            path.unlink(missing_ok=True)


class ParseAndCastTests(unittest.TestCase):
    def setUp(self):
        self.search = defparams(
            "Search",
            {
                "text!": "string",
                "page": field("integer", default=1),
                "exact": "boolean",
                "tags": ["string"],
                "near": {"embeds_one": LOCATION},
            },
        )

    def test_cli_tokens(self):
        out = self.search.parse_and_cast(
            ["--text", "boots", "--page", "3", "--exact", "--tags", "a", "b",
             "--near", json.dumps({"latitude": 1, "longitude": 2})]
        ).unwrap()
        self.assertEqual(
            out,
            {
                "text": "boots",
                "page": 3,
                "exact": True,
                "tags": ["a", "b"],
                "near": {"latitude": 1.0, "longitude": 2.0},
            },
        )

    def test_json_literal_keeps_nulls(self):
        out = self.search.parse_and_cast('{"text": "x", "page": null}').unwrap()
        self.assertEqual(out, {"text": "x", "page": None})

    def test_no_source_means_no_flags(self):
        res = self.search.parse_and_cast()
        self.assertFalse(res.ok)

    def test_kwargs_reach_cast(self):
        res = self.search.parse_and_cast({"text": "x"}, mode="struct")
        self.assertEqual(res.value.page, 1)
        self.assertIsNone(res.value.near)


if __name__ == "__main__":
    unittest.main()
