"""Matrix protocol client adapter."""

from matrix_actions.adapters.matrix.client import MatrixApiError, MatrixHttpClient

__all__ = ["MatrixApiError", "MatrixHttpClient"]
