"""HTTP service exposing the device page generator."""
