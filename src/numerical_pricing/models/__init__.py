"""Models: lattice specifications and Hull-White one-factor functions."""
