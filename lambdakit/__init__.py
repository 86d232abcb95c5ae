"""lambdakit: bootstrap and package server-less AWS projects."""

__version__ = "0.1.0"
