"""
Co-ownership consensus - group decisions over shared vehicles.

Co-owners of a vehicle propose changes that touch shared state (fund
expenditures, ownership reallocations, vehicle upgrades). Every affected
co-owner votes, and a proposal is applied exactly once after its quorum
rule is met.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
