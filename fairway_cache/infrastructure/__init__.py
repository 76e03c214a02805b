"""
Infrastructure Layer

Storage backends and the cache store built on them.
"""
