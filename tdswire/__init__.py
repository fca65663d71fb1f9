"""Encoders and decoders for pieces of the Tabular Data Stream wire protocol."""

__version__ = "0.1.0"