"""core/ -- Configuration and per-call context shared by every other package.

Layer rule: core/ imports only stdlib and third-party libraries.
"""
