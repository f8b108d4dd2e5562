"""API router registration helpers.

Routers are imported inside `register_routes` so importing a submodule does not
pull in the whole app.
"""

from fastapi import FastAPI


def register_routes(app: FastAPI) -> None:
    """Attach all API routers (lazy imports)."""
    from starquiz.api.quiz import router as quiz_router
    from starquiz.api.system import router as system_router

    routers = [
        system_router,
        quiz_router,
    ]
    for router in routers:
        app.include_router(router)
