"""
modploy Test Suite
==================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/           → Tests for modploy.core (config, models, enums)
    ├── test_infrastructure/ → Tests for modploy.infrastructure (archive, runtime, watcher)
    ├── test_deployment/     → Tests for modploy.deployment (classifier, installer, ...)
    ├── test_integration/    → End-to-end tests with a real directory watcher
    └── conftest.py          → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_deployment/   # Run only deployment engine tests
"""
