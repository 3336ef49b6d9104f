"""Test suite for the Firefly AI categorizer."""
