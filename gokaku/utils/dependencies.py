"""Dependency injection for the long-lived engine objects built at startup."""

from fastapi import HTTPException, Request, status

from gokaku.services.stroke_resolver import StrokeResolver


def get_stroke_resolver(request: Request) -> StrokeResolver:
    """Return the process-wide stroke resolver created in the application lifespan.

    Raises:
        HTTPException: 503 if the application has not finished starting up
    """
    resolver = getattr(request.app.state, "stroke_resolver", None)
    if resolver is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Stroke resolver is not initialized",
        )
    return resolver
