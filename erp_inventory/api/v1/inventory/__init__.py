from . import normalization, transformations

__all__ = ["normalization", "transformations"]
