"""Tests for the Offer Up engine."""
