# tests/test_device_classifier.py
"""
Unit tests for the Device Classifier.
"""

import math
import unittest
from core.device import DeviceKind, RawDevice, SourceSpec
from core.gate_library import GateLibrary
from simulation.device_classifier import (
    classify,
    parse_source_spec,
    NetlistError,
    SourceSpecError,
    DeviceClassificationError
)

LIBRARY = GateLibrary()


class TestParseSourceSpec(unittest.TestCase):
    """Tests for parse_source_spec."""

    def test_pulse(self):
        """Test a full pulse specification."""
        spec = parse_source_spec("pulse(0,1,1n,0.1n,0.1n,5n,10n)")
        self.assertEqual(spec.kind, "pulse")
        self.assertEqual(len(spec.args), 7)
        self.assertEqual(spec.args[:2], (0.0, 1.0))
        self.assertTrue(math.isclose(spec.args[2], 1e-9))
        self.assertTrue(math.isclose(spec.args[6], 1e-8))

    def test_single_argument(self):
        self.assertEqual(parse_source_spec("dc(1)"), SourceSpec("dc", (1.0,)))

    def test_whitespace(self):
        """Test whitespace around kind, parentheses and arguments."""
        spec = parse_source_spec("  sin ( 0 , 1 , 1meg ) ")
        self.assertEqual(spec.kind, "sin")
        self.assertEqual(spec.args, (0.0, 1.0, 1e6))

    def test_empty_arguments(self):
        """Test that kind() needs at least one number."""
        with self.assertRaises(SourceSpecError):
            parse_source_spec("dc()")
        with self.assertRaises(SourceSpecError):
            parse_source_spec("pulse(  )")

    def test_malformed(self):
        """Test values that don't match kind(args)."""
        for bad in ("5", "pulse(0,1", "x pulse(0,1)", "pulse(0,1) extra", "(0,1)", ""):
            with self.assertRaises(SourceSpecError, msg=bad):
                parse_source_spec(bad)

    def test_bad_argument(self):
        with self.assertRaises(SourceSpecError) as ctx:
            parse_source_spec("pulse(0,abc)")
        self.assertIn("abc", str(ctx.exception))

    def test_not_text(self):
        with self.assertRaises(SourceSpecError):
            parse_source_spec(None)

    def test_error_hierarchy(self):
        self.assertTrue(issubclass(SourceSpecError, NetlistError))
        self.assertTrue(issubclass(DeviceClassificationError, NetlistError))


class TestDeviceKind(unittest.TestCase):
    """Tests for DeviceKind.from_type_tag."""

    def test_builtin_tags(self):
        self.assertIs(DeviceKind.from_type_tag("ground", LIBRARY), DeviceKind.GROUND)
        self.assertIs(DeviceKind.from_type_tag("jumper", LIBRARY), DeviceKind.CONNECT)
        self.assertIs(DeviceKind.from_type_tag("analog:v_source", LIBRARY), DeviceKind.VOLTAGE_SOURCE)
        self.assertIs(DeviceKind.from_type_tag("analog:v_probe", LIBRARY), DeviceKind.VOLTAGE_PROBE)

    def test_gates(self):
        self.assertIs(DeviceKind.from_type_tag("gates:nand2", LIBRARY), DeviceKind.PRIMITIVE_GATE)
        self.assertIsNone(DeviceKind.from_type_tag("gates:frobnicator", LIBRARY))

    def test_unknown(self):
        self.assertIsNone(DeviceKind.from_type_tag("analog:resistor", LIBRARY))
        self.assertIsNone(DeviceKind.from_type_tag("text", LIBRARY))


class TestClassify(unittest.TestCase):
    """Tests for classify."""

    def test_gate(self):
        """Test that gates keep only the timing properties that are set."""
        raw = RawDevice(
            "gates:nand2",
            {"a": "n1", "b": "n2", "z": "n3"},
            {"name": "g1", "tpd": "20p", "cin": "0.004p", "tr": "", "color": "red"}
        )
        device = classify(raw, LIBRARY)

        self.assertIs(device.kind, DeviceKind.PRIMITIVE_GATE)
        self.assertEqual(device.primitive, "nand2")
        self.assertEqual(device.name, "g1")
        self.assertEqual(device.connections, ["n1", "n2", "n3"])
        self.assertEqual(device.pins, {"a": "n1", "b": "n2", "z": "n3"})
        self.assertEqual(set(device.properties), {"name", "tpd", "cin"})
        self.assertTrue(math.isclose(device.properties["tpd"], 2e-11))
        self.assertTrue(math.isclose(device.properties["cin"], 4e-15))

    def test_gate_numeric_properties(self):
        """Test that numbers are accepted as-is."""
        raw = RawDevice("gates:inverter", {"a": "x", "z": "y"}, {"tpd": 1e-11, "size": 2})
        device = classify(raw, LIBRARY)
        self.assertEqual(device.properties["tpd"], 1e-11)
        self.assertEqual(device.properties["size"], 2.0)

    def test_gate_bad_property(self):
        raw = RawDevice("gates:and2", {"a": "x", "b": "y", "z": "z"}, {"name": "g2", "tpd": "fast"})
        with self.assertRaises(DeviceClassificationError) as ctx:
            classify(raw, LIBRARY)
        self.assertEqual(ctx.exception.device_name, "g2")
        self.assertIn("tpd", str(ctx.exception))

    def test_gate_not_in_library(self):
        raw = RawDevice("gates:and2", {"a": "x"}, {})
        self.assertIsNone(classify(raw, GateLibrary(["inverter"])))

    def test_voltage_source(self):
        raw = RawDevice(
            "analog:v_source",
            {"nplus": "a", "nminus": "gnd"},
            {"name": "Vin", "value": "step(0,1,2n)"}
        )
        device = classify(raw, LIBRARY)
        self.assertIs(device.kind, DeviceKind.VOLTAGE_SOURCE)
        self.assertEqual(device.properties["value"].kind, "step")
        self.assertEqual(device.pins["nplus"], "a")
        self.assertEqual(device.connections, ["a", "gnd"])

    def test_voltage_source_bad_value(self):
        raw = RawDevice("analog:v_source", {"nplus": "a", "nminus": "b"}, {"name": "V1", "value": "5"})
        with self.assertRaises(DeviceClassificationError) as ctx:
            classify(raw, LIBRARY)
        self.assertIsInstance(ctx.exception.__cause__, SourceSpecError)

    def test_ground(self):
        device = classify(RawDevice("ground", {"gnd": "n0"}), LIBRARY)
        self.assertIs(device.kind, DeviceKind.GROUND)
        self.assertEqual(device.connections, ["n0"])

    def test_ground_list_connections(self):
        device = classify(RawDevice("ground", ["n0"]), LIBRARY)
        self.assertEqual(device.connections, ["n0"])

    def test_ground_without_connection(self):
        with self.assertRaises(DeviceClassificationError):
            classify(RawDevice("ground", {}), LIBRARY)

    def test_jumper(self):
        """Test that a jumper lists every attached node."""
        device = classify(RawDevice("jumper", {"n1": "a", "n2": "b", "n3": "c"}), LIBRARY)
        self.assertIs(device.kind, DeviceKind.CONNECT)
        self.assertEqual(device.connections, ["a", "b", "c"])

    def test_probe(self):
        raw = RawDevice("analog:v_probe", {"probe": "out"}, {"name": "p1", "color": "red", "offset": "0.5"})
        device = classify(raw, LIBRARY)
        self.assertIs(device.kind, DeviceKind.VOLTAGE_PROBE)
        self.assertEqual(device.properties["color"], "red")
        self.assertEqual(device.properties["offset"], 0.5)
        self.assertEqual(device.pins, {"probe": "out"})

    def test_probe_default_offset(self):
        device = classify(RawDevice("analog:v_probe", {"probe": "out"}, {"color": "blue"}), LIBRARY)
        self.assertEqual(device.properties["offset"], 0.0)

    def test_unrecognized_devices_ignored(self):
        """Test that devices with no simulation counterpart are dropped."""
        self.assertIsNone(classify(RawDevice("analog:resistor", {"n1": "a", "n2": "b"}), LIBRARY))
        self.assertIsNone(classify(RawDevice("text"), LIBRARY))


if __name__ == '__main__':
    unittest.main()
