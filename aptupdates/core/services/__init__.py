"""
Pipeline stages: parse, resolve phasing, classify, aggregate.
"""
