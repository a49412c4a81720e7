"""Tests for image-bump."""
