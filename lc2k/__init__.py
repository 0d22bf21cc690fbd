"""Assembler and cache-aware simulator for the LC2K instruction set."""

__version__ = "0.1.0"
__all__ = ["assembler", "cache", "simulator"]