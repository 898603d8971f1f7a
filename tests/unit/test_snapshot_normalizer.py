"""
Tests for permissive snapshot normalization.

These tests verify:
1. Idempotence: normalize(normalize(x)) == normalize(x)
2. Order independence for arrays keyed by name / referencePath
3. Numeric rounding to six places, half away from zero
4. Removal of "id" properties at every level
5. Non-finite numbers become strings
"""

import json
import unittest
from dataclasses import dataclass, field
from typing import List

from bridgeline import canonicalize, normalize_json, normalize_value
from bridgeline.core.canon import round_number


@dataclass
class Part:
    name: str
    id: int
    mass: float


@dataclass
class Assembly:
    title: str
    parts: List[Part] = field(default_factory=list)


class TestNormalizeJson(unittest.TestCase):
    def test_idempotent(self):
        """Normalizing canonical text returns it unchanged."""
        text = json.dumps(
            {
                "b": [{"name": "z", "v": 1.23456789}, {"name": "a", "id": 3}],
                "a": {"ID": 1, "x": -0.0},
            }
        )

        once = normalize_json(text)
        twice = normalize_json(once)

        self.assertEqual(once, twice)

    def test_named_arrays_are_order_independent(self):
        """Arrays of objects keyed by name or referencePath sort stably."""
        first = json.dumps({"items": [{"name": "B"}, {"name": "A"}, {"name": "C"}]})
        second = json.dumps({"items": [{"name": "C"}, {"name": "B"}, {"name": "A"}]})

        self.assertEqual(normalize_json(first), normalize_json(second))
        names = [i["name"] for i in json.loads(normalize_json(first))["items"]]
        self.assertEqual(names, ["A", "B", "C"])

    def test_reference_path_sorts_when_name_missing(self):
        text = json.dumps(
            {"refs": [{"referencePath": "b/c"}, {"referencePath": "a/c"}]}
        )

        refs = json.loads(normalize_json(text))["refs"]

        self.assertEqual([r["referencePath"] for r in refs], ["a/c", "b/c"])

    def test_sort_is_stable_for_equal_keys(self):
        text = json.dumps(
            {"items": [{"name": "A", "n": 1}, {"name": "A", "n": 2}, {"name": "0", "n": 3}]}
        )

        items = json.loads(normalize_json(text))["items"]

        self.assertEqual([i["n"] for i in items], [3, 1, 2])

    def test_unkeyed_arrays_keep_order(self):
        text = json.dumps({"values": [3, 1, 2], "objs": [{"x": 2}, {"x": 1}]})

        result = json.loads(normalize_json(text))

        self.assertEqual(result["values"], [3, 1, 2])
        self.assertEqual(result["objs"], [{"x": 2}, {"x": 1}])

    def test_key_order_is_preserved(self):
        text = '{"zeta": 1, "alpha": 2}'
        self.assertEqual(list(json.loads(normalize_json(text))), ["zeta", "alpha"])

    def test_id_removed_everywhere(self):
        """'id' properties vanish at every depth, whatever their case."""
        text = json.dumps(
            {"id": 1, "child": {"Id": 2, "keep": True, "list": [{"ID": 3, "v": 4}]}}
        )

        result = json.loads(normalize_json(text))

        self.assertEqual(result, {"child": {"keep": True, "list": [{"v": 4}]}})

    def test_rounding_to_six_places(self):
        """Values that differ past the sixth decimal normalize equally."""
        self.assertEqual(
            normalize_json('{"v": 1.0000004}'), normalize_json('{"v": 1.0000001}')
        )
        self.assertEqual(json.loads(normalize_json('{"v": 0.1234567}'))["v"], 0.123457)

    def test_rounding_is_symmetric_around_zero(self):
        self.assertEqual(round_number(0.5), 0.5)
        self.assertEqual(round_number(0.00000251), 0.000003)
        self.assertEqual(round_number(-0.00000251), -0.000003)
        self.assertEqual(round_number(-1.2345674), -1.234567)

    def test_negative_zero_collapses(self):
        text = normalize_json('{"v": -0.0000001}')
        self.assertIn('"v": 0.0', text)
        self.assertNotIn("-0.0", text)

    def test_non_finite_numbers_become_strings(self):
        result = canonicalize(
            {"a": float("nan"), "b": float("inf"), "c": float("-inf")}
        )
        self.assertEqual(result, {"a": "NaN", "b": "Infinity", "c": "-Infinity"})

    def test_large_floats_and_integers_pass_through(self):
        self.assertEqual(round_number(1e300), 1e300)
        self.assertEqual(canonicalize({"n": 10**20}), {"n": 10**20})

    def test_booleans_and_null_are_untouched(self):
        result = json.loads(normalize_json('{"t": true, "f": false, "n": null}'))
        self.assertEqual(result, {"t": True, "f": False, "n": None})

    def test_invalid_json_raises_value_error(self):
        with self.assertRaises(ValueError):
            normalize_json("{broken")


class TestNormalizeValue(unittest.TestCase):
    def test_dataclasses_are_converted(self):
        """Model objects normalize like their JSON equivalent."""
        model = Assembly("Rig", [Part("wheel", 7, 1.00000049), Part("axle", 8, 2.5)])
        plain = {
            "title": "Rig",
            "parts": [
                {"name": "axle", "mass": 2.5},
                {"name": "wheel", "mass": 1.0},
            ],
        }

        self.assertEqual(normalize_value(model), normalize_value(plain))

    def test_objects_with_to_dict(self):
        class Node:
            def to_dict(self):
                return {"name": "n", "id": "drop-me"}

        self.assertEqual(json.loads(normalize_value(Node())), {"name": "n"})

    def test_input_is_not_mutated(self):
        value = {"id": 1, "items": [{"name": "b"}, {"name": "a"}]}
        canonicalize(value)
        self.assertEqual(value, {"id": 1, "items": [{"name": "b"}, {"name": "a"}]})


if __name__ == "__main__":
    unittest.main()
