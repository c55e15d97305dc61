"""Dependency injection for FastAPI endpoints"""

from datetime import date
from fastapi import Request
from planning_gateway.infrastructure.clients.ledger import LedgerClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_ledger_client() -> LedgerClient:
    """Provide Ledger webhook client instance"""
    return LedgerClient()


def get_today() -> date:
    """Reference date schedules are generated from"""
    return date.today()
