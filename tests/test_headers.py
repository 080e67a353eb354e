"""Tests for header merging."""

import itertools
import unittest

from pydatasource.headers import flatten_headers, header_signature, merge_headers


class MergeHeadersTest(unittest.TestCase):
    def test_case_insensitive_keys_accumulate_and_empty_list_suppresses(self):
        merged = merge_headers(
            {"User-Agent": ["pydatasource/test"]},
            {
                "Foo": ["bar"],
                "foo": ["baz"],
                "User-Agent": [],
                "Accept-Encoding": ["test"],
            },
            None,
        )
        self.assertEqual(merged, {"Accept-Encoding": ["test"], "Foo": ["bar", "baz"]})
        self.assertNotIn("User-Agent", merged)

    def test_extra_layer_appends_after_configured(self):
        merged = merge_headers(
            None,
            {"X-Trace": ["a", "a"]},
            {"x-trace": ["b"]},
        )
        self.assertEqual(merged, {"X-Trace": ["a", "a", "b"]})

    def test_extra_layer_reintroduces_suppressed_header(self):
        merged = merge_headers(
            {"User-Agent": ["default"]},
            {"User-Agent": []},
            {"User-Agent": ["override"]},
        )
        self.assertEqual(merged, {"User-Agent": ["override"]})

    def test_empty_extra_list_does_not_suppress_default(self):
        merged = merge_headers({"User-Agent": ["default"]}, None, {"user-agent": []})
        self.assertEqual(merged, {"User-Agent": ["default"]})

    def test_configured_replaces_default(self):
        merged = merge_headers({"User-Agent": ["default"]}, {"user-agent": ["mine"]})
        self.assertEqual(merged, {"user-agent": ["mine"]})

    def test_none_inputs_are_empty(self):
        self.assertEqual(merge_headers(None, None, None), {})

    def test_string_values_become_lists(self):
        merged = merge_headers({"Accept": "*/*"}, {"X-One": "1"})
        self.assertEqual(merged, {"Accept": ["*/*"], "X-One": ["1"]})

    def test_output_is_deterministic(self):
        defaults = {"User-Agent": ["ua"], "Accept": ["*/*"]}
        configured = {"B": ["2"], "A": ["1"], "Accept": ["application/json"]}
        extra = {"C": ["3"], "a": ["1b"]}
        first = merge_headers(defaults, configured, extra)
        for _ in range(3):
            again = merge_headers(defaults, configured, extra)
            self.assertEqual(list(again.items()), list(first.items()))
        for perm in itertools.permutations(configured.items()):
            out = merge_headers(defaults, dict(perm), extra)
            self.assertEqual(list(out.items()), list(first.items()))
        self.assertEqual(list(first), ["A", "Accept", "B", "C", "User-Agent"])

    def test_inputs_are_not_mutated(self):
        configured = {"Foo": ["bar"]}
        merged = merge_headers(None, configured, {"Foo": ["baz"]})
        merged["Foo"].append("qux")
        self.assertEqual(configured, {"Foo": ["bar"]})


class HeaderHelpersTest(unittest.TestCase):
    def test_signature_ignores_key_case_and_order(self):
        a = header_signature({"Foo": ["1"], "Bar": ["2"]})
        b = header_signature({"bar": ["2"], "foo": ["1"]})
        self.assertEqual(a, b)
        self.assertNotEqual(a, header_signature({"Foo": ["2"], "Bar": ["2"]}))

    def test_flatten_joins_values(self):
        self.assertEqual(
            flatten_headers({"Foo": ["bar", "baz"], "A": ["1"]}),
            {"Foo": "bar, baz", "A": "1"},
        )


if __name__ == "__main__":
    unittest.main()
