"""Reference rating algorithm."""
