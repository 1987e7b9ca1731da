"""Recurrence: calendar primitives, frequency expansion and financial-year resolution."""
