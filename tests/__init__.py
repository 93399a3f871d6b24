"""
Speech Capture Tests
====================

Unit tests for the speech capture components.

Test Structure:
- test_level.py, test_ambient.py, test_windowing.py, test_buffer.py: detection building blocks
- test_engine.py: speech boundary state machine
- test_encoder.py: WAV/buffer encoding and resampling
- test_session.py: end-to-end capture sessions
- conftest.py: Shared test helpers and fixtures

To run tests:
    pytest tests/
"""
