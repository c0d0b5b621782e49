"""Pricing engines.

- :mod:`.tree` : binomial lattice (constant and time-varying parameters)
- :mod:`.trinomial` : trinomial lattice
- :mod:`.bond_futures_hw` : bond futures in the Hull-White one-factor model
- :mod:`.bond_futures_discounting` : bond futures from discounting only
- :mod:`.batch` : many independent positions at once
"""
