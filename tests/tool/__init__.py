"""Tests for the image-bump command line tools."""
