"""Thin API launcher.

This is the uvicorn entrypoint. All application logic lives in the folio package.
Run with: uvicorn apps.api.main:app --reload

Note: The app instance is created here (not in folio.app) so that tests can
build their own instances with create_app.
"""

from folio.app import add_request_id_middleware, create_app

app = create_app()
# Add request-id middleware LAST so it runs FIRST (outermost)
add_request_id_middleware(app)

__all__ = ["app"]
