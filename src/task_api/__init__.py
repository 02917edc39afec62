"""
FastAPI Task API package.

The application instance lives in ``task_api.main``:

    uvicorn task_api.main:app
"""

__version__ = "0.1.0"
