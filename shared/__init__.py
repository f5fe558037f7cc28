"""
Shared Kernel

Base classes and utilities shared by the rental bounded contexts:
entities, value objects, domain errors, the unit of work and the
message bus used to dispatch booking commands.
"""
