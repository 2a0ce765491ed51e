"""
Utils module behavioral tests (sentinel, coalesce, rename, mirror).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import unittest
from types import MappingProxyType
from unittest import TestCase

from decorum.utils import Unset, UnsetType, coalesce, rename, mirror


class TestUnset(TestCase):
    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)

    def testFalseyAndRepr(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testFinalClass(self):
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})

    def testUnion(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", Unset | str)


class TestCoalesce(TestCase):
    def testReplacesOnlyUnset(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertEqual(coalesce((), (1,)), ())


class TestRename(TestCase):
    def testFunctionForm(self):
        def original():
            pass

        self.assertIs(rename(original, "renamed"), original)
        self.assertEqual(original.__name__, "renamed")
        self.assertEqual(original.__qualname__, "renamed")

    def testDecoratorForm(self):
        @rename("attach")
        def wrapper():
            pass

        self.assertEqual(wrapper.__qualname__, "attach")

    def testRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 1)
        with self.assertRaises(TypeError):
            rename(len, "length")
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):
    def setUp(self):
        class Holder:
            items = mirror("items")
            table = mirror("table")
            tags = mirror("tags")
            label = mirror("label")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}
                self._tags = {"x"}
                self._label = "name"

        self.holder = Holder()

    def testReadOnlyViews(self):
        self.assertEqual(self.holder.items, (1, 2))
        self.assertIsInstance(self.holder.table, MappingProxyType)
        self.assertEqual(self.holder.tags, frozenset({"x"}))
        self.assertEqual(self.holder.label, "name")

    def testMappingViewIsLive(self):
        table = self.holder.table
        self.holder._table["b"] = 2
        self.assertEqual(table["b"], 2)

    def testPropertyCannotBeAssigned(self):
        with self.assertRaises(AttributeError):
            self.holder.items = ()

    def testRejectsNonStringName(self):
        with self.assertRaises(TypeError):
            mirror(1)


if __name__ == '__main__':
    unittest.main()
