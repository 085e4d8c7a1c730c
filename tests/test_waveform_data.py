# tests/test_waveform_data.py
"""
Unit tests for Waveform Data Structures.
"""

import unittest
from simulation.waveform_data import (
    StepWaveform,
    value_at_time,
    logic_label,
    step_points,
    LOGIC_0,
    LOGIC_1,
    LOGIC_X,
    LOGIC_Z
)


class TestValueAtTime(unittest.TestCase):
    """Tests for value_at_time."""

    def setUp(self):
        self.times = [1.0, 2.0, 3.0]
        self.values = ['a', 'b', 'c']

    def test_before_first_sample(self):
        """Test that nothing is reported before the first sample."""
        self.assertIsNone(value_at_time(0, self.times, self.values))

    def test_between_samples(self):
        self.assertEqual(value_at_time(1.5, self.times, self.values), 'a')
        self.assertEqual(value_at_time(2.9, self.times, self.values), 'b')

    def test_exact_sample_time(self):
        """Test that a value takes effect at its own time point."""
        self.assertEqual(value_at_time(1.0, self.times, self.values), 'a')
        self.assertEqual(value_at_time(2.0, self.times, self.values), 'b')
        self.assertEqual(value_at_time(3.0, self.times, self.values), 'c')

    def test_after_last_sample(self):
        """Test that the last value holds past the end."""
        self.assertEqual(value_at_time(5, self.times, self.values), 'c')

    def test_missing_values(self):
        self.assertIsNone(value_at_time(1.5, self.times, None))
        self.assertIsNone(value_at_time(1.5, [], []))

    def test_single_sample(self):
        self.assertIsNone(value_at_time(-1.0, [0.0], [LOGIC_1]))
        self.assertEqual(value_at_time(10.0, [0.0], [LOGIC_1]), LOGIC_1)


class TestLogicLabel(unittest.TestCase):
    """Tests for logic_label."""

    def test_levels(self):
        self.assertEqual(logic_label(LOGIC_0), "0")
        self.assertEqual(logic_label(LOGIC_1), "1")
        self.assertEqual(logic_label(LOGIC_X), "X")
        self.assertEqual(logic_label(LOGIC_Z), "Z")

    def test_other_values(self):
        self.assertEqual(logic_label(7), "7")


class TestStepWaveform(unittest.TestCase):
    """Tests for StepWaveform."""

    def test_creation(self):
        wf = StepWaveform(times=[0.0, 1e-9], values=[LOGIC_0, LOGIC_1])
        self.assertEqual(len(wf), 2)
        self.assertFalse(wf.is_empty)
        self.assertEqual(wf.end_time, 1e-9)

    def test_empty(self):
        wf = StepWaveform()
        self.assertTrue(wf.is_empty)
        self.assertIsNone(wf.end_time)
        self.assertIsNone(wf.value_at(0.0))

    def test_length_mismatch(self):
        """Test that mismatched lengths raise ValueError."""
        with self.assertRaises(ValueError):
            StepWaveform(times=[0.0, 1.0], values=[LOGIC_0])

    def test_iteration(self):
        wf = StepWaveform(times=[0.0, 1.0], values=[LOGIC_0, LOGIC_1])
        self.assertEqual(list(wf), [(0.0, LOGIC_0), (1.0, LOGIC_1)])

    def test_value_at(self):
        wf = StepWaveform(times=[0.0, 1.0, 2.0], values=[LOGIC_0, LOGIC_1, LOGIC_X])
        self.assertEqual(wf.value_at(0.5), LOGIC_0)
        self.assertEqual(wf.value_at(1.0), LOGIC_1)
        self.assertEqual(wf.value_at(9.0), LOGIC_X)

    def test_transitions(self):
        """Test that repeated values are collapsed."""
        wf = StepWaveform(times=[0.0, 1.0, 2.0, 3.0], values=[LOGIC_0, LOGIC_0, LOGIC_1, LOGIC_1])
        self.assertEqual(wf.transitions(), [(0.0, LOGIC_0), (2.0, LOGIC_1)])


class TestStepPoints(unittest.TestCase):
    """Tests for step_points."""

    def test_vertical_edges(self):
        xs, ys = step_points([0.0, 1.0, 2.0], [0, 1, 0], end_time=3.0)
        self.assertEqual(xs, [0.0, 1.0, 1.0, 2.0, 2.0, 3.0])
        self.assertEqual(ys, [0, 0, 1, 1, 0, 0])

    def test_no_end_time(self):
        xs, ys = step_points([0.0, 1.0], [1, 0])
        self.assertEqual(xs, [0.0, 1.0, 1.0])
        self.assertEqual(ys, [1, 1, 0])

    def test_end_time_before_last_sample(self):
        xs, _ = step_points([0.0, 5.0], [1, 0], end_time=2.0)
        self.assertEqual(xs[-1], 5.0)

    def test_empty(self):
        self.assertEqual(step_points([], [], end_time=1.0), ([], []))


if __name__ == '__main__':
    unittest.main()
