"""
Runtime wiring and the UI execution context.
"""
