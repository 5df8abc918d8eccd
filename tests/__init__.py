# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Portico server:
# - test_pipeline.py: Middleware order, headers, static files, fallback
# - test_sanitize.py / test_body_parser.py / test_rate_limit.py: Stages
# - test_auth.py: Cookies, sessions and bearer tokens
# - test_connection_service.py / test_server.py: Database bootstrap
#
# Run tests with: pytest
# =============================================================================
