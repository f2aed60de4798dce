"""
Test suite for reserve-flywheel

Contains:
- tests/unit/          : Unit tests for individual components
- tests/integration/   : End-to-end flywheel scenarios
"""
