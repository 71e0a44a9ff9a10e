"""HTTP surface of the presidency simulator."""
