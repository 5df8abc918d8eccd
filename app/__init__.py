# =============================================================================
# app/ - Portico Web Application Package
# =============================================================================
# This package contains the FastAPI web application:
# - main.py: App factory, exception handlers, route table
# - pipeline.py: The ordered middleware chain
# - middleware/: Individual pipeline stages
# - config.py: Environment variable loading and settings
# - routers/: Health endpoints
# - server.py: Process entry point (database bootstrap, then uvicorn)
# =============================================================================

__version__ = "1.0.0"
