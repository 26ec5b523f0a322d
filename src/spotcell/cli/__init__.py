"""SpotCell CLI — command-line interface."""
