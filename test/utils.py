"""
Tests for the shared helpers.

This module verifies:
- Unset: singleton identity, falsy semantics, representation, finality,
  copy/pickle identity and PEP 604 unions.
- coalesce(): only Unset is replaced.
- rename(): direct and decorator forms.
- mirror(): read-only access with container copies.
- ordinal(): spelled-out and suffixed positions.
"""
import copy
import pickle
import unittest
from unittest import TestCase

from argweave.utils import *


class UnsetTest(TestCase):
    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsyButNotNone(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, None)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testFinal(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testCopiesKeepIdentity(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testUnionWithTypes(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertNotIsInstance(3, str | Unset)


class CoalesceTest(TestCase):
    def testReplacesUnset(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))

    def testKeepsFalsyValues(self):
        for value in (None, 0, "", [], False):
            with self.subTest(value=value):
                self.assertIs(coalesce(value, "fallback"), value)


class RenameTest(TestCase):
    def testDirectForm(self):
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self):
        @rename("decorated")
        def function():
            pass

        self.assertEqual(function.__name__, "decorated")

    def testArgumentChecks(self):
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 42)
        with self.assertRaises(TypeError):
            rename()


class MirrorTest(TestCase):
    class Holder:
        items = mirror("items")
        table = mirror("table")
        label = mirror("label")

        def __init__(self):
            self._items = (1, [2, 3])
            self._table = {"key": ["value"]}
            self._label = "text"

    def testReturnsCopies(self):
        holder = self.Holder()
        items = holder.items
        items[1].append(4)
        self.assertEqual(items, [1, [2, 3, 4]])
        self.assertEqual(holder.items, [1, [2, 3]])

        table = holder.table
        table["key"].append("other")
        self.assertEqual(holder.table, {"key": ["value"]})

    def testStringsAreNotSequencesHere(self):
        self.assertEqual(self.Holder().label, "text")

    def testReadOnly(self):
        with self.assertRaises(AttributeError):
            self.Holder().label = "other"

    def testNameMustBeString(self):
        with self.assertRaises(TypeError):
            mirror(1)


class OrdinalTest(TestCase):
    def testSpelledOut(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(3), "third")
        self.assertEqual(ordinal(10), "tenth")

    def testSuffixed(self):
        cases = {11: "11th", 12: "12th", 13: "13th", 21: "21st", 22: "22nd", 23: "23rd", 111: "111th", 101: "101st"}
        for number, expected in cases.items():
            with self.subTest(number=number):
                self.assertEqual(ordinal(number), expected)

    def testRejectsNonIntegers(self):
        with self.assertRaises(TypeError):
            ordinal("1")
        with self.assertRaises(TypeError):
            ordinal(True)


if __name__ == "__main__":
    unittest.main()
