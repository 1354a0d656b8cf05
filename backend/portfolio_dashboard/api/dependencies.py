"""FastAPI dependencies."""

from fastapi import Request

from portfolio_dashboard.services.dashboard import Dashboard


def get_dashboard(request: Request) -> Dashboard:
    """The Dashboard built in the application lifespan."""
    return request.app.state.dashboard
