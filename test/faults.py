"""
Faults module behavioral tests (codes, triggering, rendering, host configuration).

Conventions
- Test method names follow CamelCase per project convention.
- Rich output is captured from a colorless console for deterministic comparison.
"""

from __future__ import annotations

import copy
import unittest
from unittest import TestCase

from rich.console import Console

from decorum.faults import (
    FaultCode,
    DecoratorException,
    UnmarkableReceiverError,
    DecoratorWarning,
    NonCallableReplacementWarning,
    trigger,
)


def _render(renderable):
    console = Console(color_system=None, force_terminal=False, width=200)
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()


class TestFaultCode(TestCase):
    def testNormalizeDefaultsToNumericValue(self):
        self.assertEqual(FaultCode.UNMARKABLE_RECEIVER.normalize(), "21101")

    def testNormalizeUsesHostCodes(self):
        main = __import__("__main__")
        previous = getattr(main, "__codes__", None)
        main.__codes__ = {FaultCode.UNMARKABLE_RECEIVER: "UR"}
        try:
            self.assertEqual(FaultCode.UNMARKABLE_RECEIVER.normalize(), "UR")
            self.assertEqual(FaultCode.NON_CALLABLE_REPLACEMENT.normalize(), "22101")
        finally:
            if previous is None:
                del main.__codes__
            else:
                main.__codes__ = previous


class TestFaults(TestCase):
    def testDefaultsComeFromTheFaultClass(self):
        error = UnmarkableReceiverError("cannot mark")
        self.assertIs(error.options["code"], FaultCode.UNMARKABLE_RECEIVER)
        self.assertEqual(error.options["title"], "unmarkable receiver")
        self.assertEqual(str(error), "cannot mark")

    def testOptionsAreReadOnly(self):
        error = UnmarkableReceiverError("cannot mark")
        with self.assertRaises(TypeError):
            error.options["code"] = None  # NOQA: read-only view

    def testErrorIsAnAttributeError(self):
        self.assertTrue(issubclass(UnmarkableReceiverError, DecoratorException))
        self.assertTrue(issubclass(UnmarkableReceiverError, AttributeError))

    def testReplaceMergesOptions(self):
        error = UnmarkableReceiverError("cannot mark", receiver=1)
        replaced = copy.replace(error, receiver=2, extra="x")
        self.assertIsNot(replaced, error)
        self.assertEqual(replaced.options["receiver"], 2)
        self.assertEqual(replaced.options["extra"], "x")
        self.assertEqual(replaced.message, "cannot mark")
        self.assertEqual(error.options["receiver"], 1)

    def testTriggerRaisesErrors(self):
        with self.assertRaises(UnmarkableReceiverError) as context:
            trigger(UnmarkableReceiverError("cannot mark"), receiver="r")
        self.assertEqual(context.exception.options["receiver"], "r")
        self.assertIsNone(context.exception.__cause__)

    def testTriggerEmitsWarnings(self):
        with self.assertWarns(NonCallableReplacementWarning) as context:
            trigger(NonCallableReplacementWarning("returned 5"), replacement=5)
        self.assertIsInstance(context.warning, DecoratorWarning)
        self.assertEqual(context.warning.options["replacement"], 5)
        self.assertEqual(context.filename, __file__)

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


class TestRendering(TestCase):
    def testErrorRendering(self):
        output = _render(UnmarkableReceiverError("cannot mark receiver", colorful=False))
        self.assertIn("[ decorum — 21101 | Unmarkable Receiver ]", output)
        self.assertIn("cannot mark receiver", output)
        self.assertIn("→ decorated methods need weak-referenceable receivers", output)

    def testWarningRendering(self):
        output = _render(NonCallableReplacementWarning("returned 5"))
        self.assertIn("22101", output)
        self.assertIn("Non-Callable Replacement", output)
        self.assertIn("returned 5", output)

    def testFancyRenderingUsesAPanel(self):
        output = _render(NonCallableReplacementWarning("returned 5", fancy=True))
        self.assertIn("╭", output)
        self.assertIn("returned 5", output)

    def testMissingHintIsOmitted(self):
        output = _render(UnmarkableReceiverError("cannot mark", hint=""))
        self.assertNotIn("→", output)


if __name__ == '__main__':
    unittest.main()
