"""Package health aggregation across deps.dev, GitHub and package registries."""

__version__ = "0.1.0"
