"""Electricity bill calculator: split a metered bill between a property and its sub-meters."""
