"""Core domain layer - entities, interfaces, and exceptions."""

from invoicekit.core import entities, exceptions, interfaces

__all__ = ["entities", "interfaces", "exceptions"]
