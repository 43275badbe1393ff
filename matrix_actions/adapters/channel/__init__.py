"""Outer channel adapter."""

from matrix_actions.adapters.channel.message_actions import MatrixMessageActions

__all__ = ["MatrixMessageActions"]
