"""
Tests for data models
"""

import dataclasses
import unittest

from detect_crop.models import ROI, Detection, PolicyConfig


class TestDetection(unittest.TestCase):
    """Test Detection value type."""

    def test_derived_geometry(self):
        """Test width, height, and center come from the box edges."""
        det = Detection(
            class_id=16, label="dog", confidence=0.9,
            left=100.0, top=50.0, right=300.0, bottom=150.0,
        )

        self.assertEqual(det.width, 200.0)
        self.assertEqual(det.height, 100.0)
        self.assertEqual(det.center, (200.0, 100.0))
        self.assertEqual(det.as_xyxy(), (100, 50, 300, 150))

    def test_is_immutable(self):
        """Test detections cannot be modified after creation."""
        det = Detection(16, "dog", 0.9, 0.0, 0.0, 10.0, 10.0)

        with self.assertRaises(dataclasses.FrozenInstanceError):
            det.confidence = 0.1


class TestROI(unittest.TestCase):
    """Test ROI rectangle."""

    def test_edges(self):
        """Test right/bottom are exclusive edges."""
        roi = ROI(x=10, y=20, width=416, height=416)

        self.assertEqual(roi.right, 426)
        self.assertEqual(roi.bottom, 436)
        self.assertEqual(roi.as_xyxy(), (10, 20, 426, 436))


class TestPolicyConfig(unittest.TestCase):
    """Test PolicyConfig defaults and construction."""

    def test_defaults(self):
        """Test defaults match the documented configuration surface."""
        policy = PolicyConfig()

        self.assertEqual(policy.target_class, "dog")
        self.assertEqual(policy.min_confidence, 0.70)
        self.assertEqual(policy.crop_size, (416, 416))
        self.assertEqual(policy.min_pacing_interval, 20)

    def test_from_config(self):
        """Test building policy from a config dictionary."""
        config = {
            "policy": {
                "target_class": "person",
                "min_confidence": 0.5,
                "crop": {"width": 320, "height": 240},
                "min_pacing_interval": 5,
            }
        }

        policy = PolicyConfig.from_config(config)

        self.assertEqual(policy.target_class, "person")
        self.assertEqual(policy.min_confidence, 0.5)
        self.assertEqual(policy.crop_size, (320, 240))
        self.assertEqual(policy.min_pacing_interval, 5)

    def test_from_empty_config_uses_defaults(self):
        """Test missing sections fall back to defaults."""
        self.assertEqual(PolicyConfig.from_config({}), PolicyConfig())

    def test_invalid_values_rejected(self):
        """Test nonsensical crop size and pacing raise ValueError."""
        with self.assertRaises(ValueError):
            PolicyConfig(crop_width=0)
        with self.assertRaises(ValueError):
            PolicyConfig(min_pacing_interval=-1)

    def test_is_immutable(self):
        """Test policy cannot be mutated during the loop."""
        policy = PolicyConfig()

        with self.assertRaises(dataclasses.FrozenInstanceError):
            policy.target_class = "cat"


if __name__ == "__main__":
    unittest.main()
