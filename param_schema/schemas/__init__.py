"""Bundled params definitions, loadable by basename through loader.load_definition."""
