"""Fact collectors and the machinery they share."""
