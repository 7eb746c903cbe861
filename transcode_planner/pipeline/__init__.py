"""
This package assembles complete command plans.

A pipeline combines the services for every requested output and CM variant,
threading the temporary paths from the encode steps into the mux steps.
"""
