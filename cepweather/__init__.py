"""
CEP Weather - postal code to current temperature.

This package holds two HTTP services: a public Input service that validates
a CEP and forwards it, and an internal Orchestrator service that resolves the
CEP to a city and looks up the current weather for it.
"""

__version__ = "1.0.0"
