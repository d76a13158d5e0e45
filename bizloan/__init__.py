"""bizloan: small-business financing feasibility engine."""

__version__ = "0.1.0"
